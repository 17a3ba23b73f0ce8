"""CLI tools: operator commands (direct DB) and the terminal views (HTTP client)."""

import functools
import sys
from datetime import date, timedelta

import click

from volunteer_hub.client.auth import AuthService
from volunteer_hub.client.config import ClientSettings
from volunteer_hub.client.dashboards import AdminDashboard, DashboardService, PlatformDashboard
from volunteer_hub.client.errors import VolunteerHubError
from volunteer_hub.client.gateway import ApiClient
from volunteer_hub.client.guard import LOGIN_PATH, RouteGuard
from volunteer_hub.client.managers.calendar import CalendarManager
from volunteer_hub.client.managers.documents import DocumentManager
from volunteer_hub.client.managers.organizations import OrganizationManager
from volunteer_hub.client.managers.tasks import TaskManager
from volunteer_hub.client.managers.users import UserManager, VolunteerManager
from volunteer_hub.client.session import SessionStore
from volunteer_hub.db.enums import (
    AssignmentStatus, DocumentCategory, DocumentVisibility, EventType, Role,
    RsvpStatus, TaskPriority, TaskSortField, TaskStatus,
)
from volunteer_hub.utils.uploads import PREVIEW_DOWNLOAD

DEMO_ORG_NAME = "Red Cross"
DEMO_ORG_PASSWORD = "redcross123"
DEMO_ADMIN_EMAIL = "admin@redcross.local"


@click.group()
@click.option("--org", "organization_id", default=None, help="Organization id (super admin only)")
@click.pass_context
def cli(ctx, organization_id: str | None):
    """Volunteer Hub CLI tools."""
    ctx.ensure_object(dict)
    if organization_id:
        ctx.obj["organization_id"] = organization_id


# ============================================================================
# Helpers
# ============================================================================

def _api(ctx) -> ApiClient:
    """The ApiClient for this invocation; tests inject one through ctx.obj."""
    obj = ctx.find_root().obj
    if "api" not in obj:
        settings = ClientSettings()
        session = SessionStore(settings.SESSION_FILE).hydrate()
        obj["api"] = ApiClient(session, settings)
    api = obj["api"]
    if obj.get("organization_id"):
        api.organization_id = obj["organization_id"]
    return api


def reports_errors(func):
    """Echo client failures as a single error line and exit non-zero."""
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except VolunteerHubError as e:
            click.echo(f"❌ {e.message}", err=True)
            sys.exit(1)
    return wrapper


def _choice(enum_cls) -> click.Choice:
    return click.Choice([member.value for member in enum_cls])


def _short_date(value) -> str:
    return str(value)[:10] if value else "-"


def _echo_task(task: dict) -> None:
    flag = " (overdue)" if TaskManager.is_overdue(task) else ""
    click.echo(
        f"  [{task['status']}] {task['title']}  priority={task['priority']}  "
        f"due={_short_date(task.get('due_date'))}{flag}  id={task['id']}"
    )


def _echo_event(event: dict) -> None:
    capacity = event.get("max_volunteers")
    spots = f"{event.get('confirmed_signups', 0)}/{capacity}" if capacity else str(event.get("confirmed_signups", 0))
    rsvp = event.get("user_rsvp_status") or "-"
    if not CalendarManager.can_signup(event):
        spots += " (full)"
    click.echo(
        f"  {event['start_date']} {event['title']}  type={event['event_type']}  "
        f"signups={spots}  you={rsvp}  id={event['id']}"
    )


def _echo_document(document: dict) -> None:
    pin = "📌 " if document.get("is_pinned") else ""
    click.echo(
        f"  {pin}{document['title']}  [{document['category']}/{document['visibility']}]  "
        f"{document['file_name']} ({document['file_size_mb']} MB)  id={document['id']}"
    )


def _echo_user(user: dict) -> None:
    status = "active" if user.get("is_active") else "inactive"
    org = user.get("organization_name") or ""
    click.echo(
        f"  {user['display_name']} <{user['email']}>  role={user['role']}  {status}  {org}"
    )


# ============================================================================
# Operator commands (direct database access)
# ============================================================================

@cli.command()
@click.option("--email", required=True, help="Super admin email address")
@click.option("--name", default=None, help="Display name")
@click.option("--password", prompt=True, hide_input=True, confirmation_prompt=True)
def create_super_admin(email: str, name: str | None, password: str):
    """
    Create a platform super admin account.

    Example:
        volunteer-hub create-super-admin --email "ops@example.org" --name "Ops"
    """
    from volunteer_hub.core.security import hash_password
    from volunteer_hub.db.models import SuperAdmin
    from volunteer_hub.db.session import SessionLocal
    from volunteer_hub.utils.normalization import normalize_email

    db = SessionLocal()
    try:
        email = normalize_email(email)
        existing = db.query(SuperAdmin).filter(SuperAdmin.email == email).first()
        if existing:
            click.echo(f"❌ Super admin already exists: {email}")
            sys.exit(1)

        admin = SuperAdmin(email=email, name=name, password_hash=hash_password(password))
        db.add(admin)
        db.commit()
        click.echo(f"✓ Created super admin: {email}")
        click.echo(f"  ID: {admin.id}")
    except Exception as e:
        db.rollback()
        click.echo(f"❌ Error: {e}")
        sys.exit(1)
    finally:
        db.close()


@cli.command()
@click.option("--name", required=True, help="Organization name")
@click.option("--password", prompt=True, hide_input=True, confirmation_prompt=True,
              help="Shared organization password")
@click.option("--admin-email", default=None, help="Email of the first nonprofit admin")
def create_org(name: str, password: str, admin_email: str | None):
    """
    Create an organization and whitelist its first admin.

    Example:
        volunteer-hub create-org --name "Food Bank" --admin-email "admin@foodbank.org"
    """
    from volunteer_hub.db.session import SessionLocal
    from volunteer_hub.schemas.organization import OrganizationCreate
    from volunteer_hub.services import org_service

    db = SessionLocal()
    try:
        org = org_service.create_organization(
            db,
            OrganizationCreate(
                name=name,
                password=password,
                nonprofit_admin_email=admin_email,
            ),
            added_by="cli",
        )
        click.echo(f"✓ Created organization: {org.name}")
        click.echo(f"  ID: {org.id}")
        if admin_email:
            click.echo(f"✓ Whitelisted {admin_email} as nonprofit admin")
            click.echo("→ Admin logs in with that email and the organization password")
    except Exception as e:
        db.rollback()
        click.echo(f"❌ Error: {e}")
        sys.exit(1)
    finally:
        db.close()


@cli.command()
def seed_demo():
    """
    Create the demo organization with an admin, two volunteers, a task and an event.

    Safe to run twice: an existing demo organization is left untouched.
    """
    from volunteer_hub.db.session import SessionLocal
    from volunteer_hub.schemas.calendar import EventCreate
    from volunteer_hub.schemas.organization import OrganizationCreate
    from volunteer_hub.schemas.task import TaskCreate
    from volunteer_hub.schemas.user import VolunteerCreate
    from volunteer_hub.services import calendar_service, org_service, task_service, user_service

    db = SessionLocal()
    try:
        if org_service.get_org_by_name(db, DEMO_ORG_NAME):
            click.echo(f"✓ Demo organization already exists: {DEMO_ORG_NAME}")
            return

        org = org_service.create_organization(
            db,
            OrganizationCreate(
                name=DEMO_ORG_NAME,
                password=DEMO_ORG_PASSWORD,
                description="Demo organization",
                nonprofit_admin_email=DEMO_ADMIN_EMAIL,
            ),
            added_by="seed",
        )
        volunteers = [
            ("Jane Doe", "jane@redcross.local"),
            ("John Smith", "john@redcross.local"),
        ]
        for name, email in volunteers:
            user_service.add_volunteer(
                db, org.id, VolunteerCreate(name=name, email=email), added_by="seed"
            )

        task_service.create_task(
            db,
            org.id,
            None,
            TaskCreate(
                title="Sort donated supplies",
                description="Sort and label the donation boxes in the warehouse.",
                priority=TaskPriority.HIGH,
                assign_to_emails=[email for _, email in volunteers],
            ),
        )
        calendar_service.create_event(
            db,
            org.id,
            None,
            EventCreate(
                title="Blood drive",
                location="Community center",
                start_date=date.today() + timedelta(days=7),
                max_volunteers=10,
            ),
        )

        click.echo(f"✓ Created demo organization: {DEMO_ORG_NAME}")
        click.echo(f"  Admin: {DEMO_ADMIN_EMAIL}")
        click.echo(f"  Password: {DEMO_ORG_PASSWORD}")
        click.echo(f"✓ Added {len(volunteers)} volunteers, 1 task, 1 event")
    except Exception as e:
        db.rollback()
        click.echo(f"❌ Error: {e}")
        sys.exit(1)
    finally:
        db.close()


@cli.command()
def migrate_profile_notes():
    """
    Lift legacy profile JSON (firstName, phone, ...) into the profile columns.

    Run once after upgrading; users without legacy notes are skipped.
    """
    from volunteer_hub.db.session import SessionLocal
    from volunteer_hub.services import user_service

    db = SessionLocal()
    try:
        count = user_service.migrate_legacy_notes(db)
        click.echo(f"✓ Migrated profile notes for {count} user(s)")
    except Exception as e:
        db.rollback()
        click.echo(f"❌ Error: {e}")
        sys.exit(1)
    finally:
        db.close()


# ============================================================================
# Session
# ============================================================================

@cli.command()
@click.option("--email", prompt=True)
@click.option("--password", prompt=True, hide_input=True)
@click.pass_context
@reports_errors
def login(ctx, email: str, password: str):
    """Log in with your email and your organization's password."""
    body = AuthService(_api(ctx)).login(email, password)
    user = body["user"]
    click.echo(f"✓ Logged in as {user['display_name']} ({body['userType']})")


@cli.command()
@click.pass_context
@reports_errors
def logout(ctx):
    """Log out and forget the stored session."""
    AuthService(_api(ctx)).logout()
    click.echo("✓ Logged out")


@cli.command()
@click.pass_context
@reports_errors
def whoami(ctx):
    """Show the logged-in user."""
    auth = AuthService(_api(ctx))
    body = auth.get_current_user()
    user = body["user"]
    click.echo(f"{user['display_name']} <{user['email']}>")
    click.echo(f"  Role: {body['userType']}")
    if user.get("organization_name"):
        click.echo(f"  Organization: {user['organization_name']}")
    allowed = [name for name, value in auth.permissions().items() if value]
    if allowed:
        click.echo(f"  Permissions: {', '.join(sorted(allowed))}")


@cli.command()
@click.argument("email")
@click.pass_context
@reports_errors
def check_email(ctx, email: str):
    """Check whether an email may log in, before asking for a password."""
    body = AuthService(_api(ctx)).check_email(email)
    mark = "✓" if body["allowed"] else "❌"
    click.echo(f"{mark} {body['message']}")


@cli.command()
@click.option("--first-name", default=None)
@click.option("--last-name", default=None)
@click.option("--email", default=None)
@click.option("--phone", default=None)
@click.option("--address", default=None)
@click.option("--birthday", type=click.DateTime(["%Y-%m-%d"]), default=None)
@click.pass_context
@reports_errors
def profile(ctx, **changes):
    """Update your profile; fields not given keep their current values."""
    if changes.get("birthday"):
        changes["birthday"] = changes["birthday"].date()
    user = AuthService(_api(ctx)).update_profile(
        **{k: v for k, v in changes.items() if v is not None}
    )
    click.echo(f"✓ Profile updated: {user['display_name']} <{user['email']}>")


@cli.command()
@click.option("--password", prompt="New password", hide_input=True)
@click.option("--confirm", prompt="Confirm password", hide_input=True)
@click.option("--organization-id", default=None, help="Target organization (super admin only)")
@click.pass_context
@reports_errors
def change_org_password(ctx, password: str, confirm: str, organization_id: str | None):
    """Rotate your organization's shared login password."""
    body = AuthService(_api(ctx)).change_org_password(password, confirm, organization_id)
    click.echo(f"✓ {body['message']}")


@cli.command()
@click.pass_context
@reports_errors
def dashboard(ctx):
    """Show the dashboard for your role."""
    api = _api(ctx)
    guard = RouteGuard(AuthService(api))
    if guard.resolve("/") == LOGIN_PATH:
        click.echo("❌ Not logged in. Run `volunteer-hub login` first.", err=True)
        sys.exit(1)

    view = DashboardService(api).for_role(guard.user_type)
    if isinstance(view, PlatformDashboard):
        click.echo("Platform overview")
        for key, value in view.stats.items():
            click.echo(f"  {key.replace('_', ' ')}: {value}")
        click.echo("Recent organizations")
        for org in view.recent_organizations:
            click.echo(f"  {org['name']}  users={org['user_count']}")
    elif isinstance(view, AdminDashboard):
        stats = view.volunteer_stats
        click.echo(f"Volunteers: {stats.get('total', 0)} ({stats.get('active_this_week', 0)} active this week)")
        click.echo(f"Tasks: {view.task_overview}")
        click.echo("Upcoming events")
        for event in view.upcoming_events:
            _echo_event(event)
        click.echo("Recent documents")
        for document in view.recent_documents:
            _echo_document(document)
    else:
        click.echo(f"Welcome, {view.greeting_name}")
        click.echo(f"Task stats: {view.task_stats}")
        click.echo("Your tasks")
        for task in view.tasks:
            _echo_task(task)
        click.echo("Upcoming events")
        for event in view.upcoming_events:
            _echo_event(event)


# ============================================================================
# Tasks
# ============================================================================

@cli.group()
def tasks():
    """Task management."""


@tasks.command("list")
@click.option("--status", type=_choice(TaskStatus), default=None)
@click.option("--priority", type=_choice(TaskPriority), default=None)
@click.option("--assigned-to", default=None, help="User id")
@click.pass_context
@reports_errors
def tasks_list(ctx, status, priority, assigned_to):
    items = TaskManager(_api(ctx)).list(status, priority, assigned_to)
    click.echo(f"{len(items)} task(s)")
    for task in items:
        _echo_task(task)


@tasks.command("mine")
@click.option("--status", type=_choice(AssignmentStatus), default=None)
@click.option("--priority", type=_choice(TaskPriority), default=None)
@click.option("--sort-by", type=_choice(TaskSortField), default="due_date")
@click.option("--page", default=1, type=int)
@click.option("--limit", default=20, type=int)
@click.pass_context
@reports_errors
def tasks_mine(ctx, status, priority, sort_by, page, limit):
    body = TaskManager(_api(ctx)).my_tasks(status, priority, sort_by, page, limit)
    stats = body["stats"]
    click.echo(
        f"{stats['total']} assigned, {stats['completed']} completed, "
        f"{stats['overdue']} overdue, {stats['due_soon']} due soon"
    )
    for task in body["tasks"]:
        _echo_task(task)
    pagination = body["pagination"]
    click.echo(f"Page {pagination['page']} of {pagination['pages']}")


@tasks.command("create")
@click.option("--title", required=True)
@click.option("--description", default=None)
@click.option("--due", type=click.DateTime(), default=None, help="Due date (YYYY-MM-DD)")
@click.option("--priority", type=_choice(TaskPriority), default="medium")
@click.option("--assign", "emails", multiple=True, required=True, help="Assignee email (repeatable)")
@click.pass_context
@reports_errors
def tasks_create(ctx, title, description, due, priority, emails):
    body = TaskManager(_api(ctx)).create(title, list(emails), description, due, priority)
    click.echo(f"✓ {body['message']} ({body['assignedTo']} assigned)")
    click.echo(f"  ID: {body['task']['id']}")


@tasks.command("update")
@click.argument("task_id")
@click.option("--title", default=None)
@click.option("--description", default=None)
@click.option("--due", type=click.DateTime(), default=None)
@click.option("--priority", type=_choice(TaskPriority), default=None)
@click.pass_context
@reports_errors
def tasks_update(ctx, task_id, title, description, due, priority):
    fields = {
        "title": title,
        "description": description,
        "due_date": due,
        "priority": priority,
    }
    task = TaskManager(_api(ctx)).update(task_id, **{k: v for k, v in fields.items() if v is not None})
    click.echo(f"✓ Updated task: {task['title']}")


@tasks.command("delete")
@click.argument("task_id")
@click.pass_context
@reports_errors
def tasks_delete(ctx, task_id):
    manager = TaskManager(_api(ctx))
    task = manager.get(task_id)
    if not click.confirm(f"Delete task '{task['title']}'?"):
        click.echo("Cancelled")
        return
    manager.delete(task)
    click.echo("✓ Task deleted")


@tasks.command("complete")
@click.argument("task_id")
@click.option("--user-id", required=True, help="Assignee user id")
@click.option("--notes", default=None)
@click.option("--feedback", default=None)
@click.pass_context
@reports_errors
def tasks_complete(ctx, task_id, user_id, notes, feedback):
    task = TaskManager(_api(ctx)).complete_for_user(task_id, user_id, notes, feedback)
    click.echo(f"✓ Marked complete; task is now {task['status']}")


@tasks.command("status")
@click.argument("task_id")
@click.argument("status", type=_choice(AssignmentStatus))
@click.option("--notes", default=None)
@click.pass_context
@reports_errors
def tasks_status(ctx, task_id, status, notes):
    task = TaskManager(_api(ctx)).update_status(task_id, status, notes)
    click.echo(f"✓ Status updated; task is now {task['status']}")


@tasks.command("assign")
@click.argument("task_id")
@click.argument("email")
@click.pass_context
@reports_errors
def tasks_assign(ctx, task_id, email):
    task = TaskManager(_api(ctx)).assign(task_id, email)
    click.echo(f"✓ Assigned {email} ({task['assigned_count']} assignee(s))")


@tasks.command("export")
@click.option("--output", type=click.Path(file_okay=False), default=".")
@click.pass_context
@reports_errors
def tasks_export(ctx, output):
    path = TaskManager(_api(ctx)).export_csv(output)
    click.echo(f"✓ Wrote {path}")


# ============================================================================
# Events
# ============================================================================

@cli.group()
def events():
    """Calendar events."""


@events.command("list")
@click.option("--upcoming", is_flag=True)
@click.option("--month", type=click.IntRange(1, 12), default=None)
@click.option("--year", type=int, default=None)
@click.pass_context
@reports_errors
def events_list(ctx, upcoming, month, year):
    items = CalendarManager(_api(ctx)).list(upcoming=upcoming, month=month, year=year)
    click.echo(f"{len(items)} event(s)")
    for event in items:
        _echo_event(event)


@events.command("upcoming")
@click.option("--limit", type=click.IntRange(1, 50), default=5)
@click.pass_context
@reports_errors
def events_upcoming(ctx, limit):
    for event in CalendarManager(_api(ctx)).upcoming(limit):
        _echo_event(event)


@events.command("update")
@click.argument("event_id")
@click.option("--title", default=None)
@click.option("--date", "start_date", type=click.DateTime(["%Y-%m-%d"]), default=None)
@click.option("--end-date", type=click.DateTime(["%Y-%m-%d"]), default=None)
@click.option("--location", default=None)
@click.option("--description", default=None)
@click.option("--max-volunteers", type=click.IntRange(min=1), default=None)
@click.pass_context
@reports_errors
def events_update(ctx, event_id, title, start_date, end_date, location, description, max_volunteers):
    fields = {
        "title": title,
        "start_date": start_date.date() if start_date else None,
        "end_date": end_date.date() if end_date else None,
        "location": location,
        "description": description,
        "max_volunteers": max_volunteers,
    }
    event = CalendarManager(_api(ctx)).update(
        event_id, **{k: v for k, v in fields.items() if v is not None}
    )
    click.echo(f"✓ Updated event: {event['title']}")


@events.command("show")
@click.argument("event_id")
@click.pass_context
@reports_errors
def events_show(ctx, event_id):
    event = CalendarManager(_api(ctx)).get(event_id)
    _echo_event(event)
    if event.get("location"):
        click.echo(f"  Location: {event['location']}")
    if event.get("video_link"):
        click.echo(f"  Join: {event['video_link']}")
    if event.get("description"):
        click.echo(f"  {event['description']}")
    for attendee in event.get("attendees") or []:
        click.echo(f"    - {attendee['name']} ({attendee['status']})")


@events.command("create")
@click.option("--title", required=True)
@click.option("--date", "start_date", type=click.DateTime(["%Y-%m-%d"]), required=True)
@click.option("--end-date", type=click.DateTime(["%Y-%m-%d"]), default=None)
@click.option("--start-time", default=None, help="HH:MM")
@click.option("--end-time", default=None, help="HH:MM")
@click.option("--all-day", is_flag=True)
@click.option("--location", default=None)
@click.option("--description", default=None)
@click.option("--type", "event_type", type=_choice(EventType), default=EventType.VOLUNTEER_EVENT.value)
@click.option("--max-volunteers", type=click.IntRange(min=1), default=None)
@click.option("--video-link", default=None)
@click.pass_context
@reports_errors
def events_create(ctx, title, start_date, end_date, start_time, end_time, all_day,
                  location, description, event_type, max_volunteers, video_link):
    fields = {
        "end_date": end_date.date() if end_date else None,
        "start_time": start_time,
        "end_time": end_time,
        "is_all_day": all_day,
        "location": location,
        "description": description,
        "event_type": event_type,
        "max_volunteers": max_volunteers,
        "video_link": video_link,
    }
    event = CalendarManager(_api(ctx)).create(
        title, start_date.date(), **{k: v for k, v in fields.items() if v is not None}
    )
    click.echo(f"✓ Created event: {event['title']}")
    click.echo(f"  ID: {event['id']}")


@events.command("delete")
@click.argument("event_id")
@click.pass_context
@reports_errors
def events_delete(ctx, event_id):
    manager = CalendarManager(_api(ctx))
    event = manager.get(event_id)
    if not click.confirm(f"Delete event '{event['title']}' and its signups?"):
        click.echo("Cancelled")
        return
    manager.delete(event_id)
    click.echo("✓ Event deleted")


@events.command("rsvp")
@click.argument("event_id")
@click.argument("status", type=_choice(RsvpStatus))
@click.option("--notes", default=None)
@click.pass_context
@reports_errors
def events_rsvp(ctx, event_id, status, notes):
    body = CalendarManager(_api(ctx)).rsvp(event_id, status, notes)
    click.echo(f"✓ {body['message']}")


@events.command("export")
@click.argument("event_id")
@click.option("--output", type=click.Path(file_okay=False), default=".")
@click.pass_context
@reports_errors
def events_export(ctx, event_id, output):
    path = CalendarManager(_api(ctx)).export(event_id, output)
    click.echo(f"✓ Wrote {path}")


# ============================================================================
# Documents
# ============================================================================

@cli.group()
def docs():
    """Documents."""


@docs.command("list")
@click.option("--category", type=_choice(DocumentCategory), default=None)
@click.pass_context
@reports_errors
def docs_list(ctx, category):
    items = DocumentManager(_api(ctx)).list(category)
    click.echo(f"{len(items)} document(s)")
    for document in items:
        _echo_document(document)


@docs.command("upload")
@click.argument("path", type=click.Path(exists=True, dir_okay=False))
@click.option("--title", required=True)
@click.option("--description", default=None)
@click.option("--category", type=_choice(DocumentCategory), default=DocumentCategory.GENERAL.value)
@click.option("--visibility", type=_choice(DocumentVisibility), default=DocumentVisibility.ALL.value)
@click.option("--pin", is_flag=True)
@click.pass_context
@reports_errors
def docs_upload(ctx, path, title, description, category, visibility, pin):
    document = DocumentManager(_api(ctx)).upload(
        path, title, description, category, visibility, pin
    )
    click.echo(f"✓ Uploaded {document['file_name']} ({document['file_size_mb']} MB)")


@docs.command("download")
@click.argument("document_id")
@click.option("--output", type=click.Path(file_okay=False), default=".")
@click.pass_context
@reports_errors
def docs_download(ctx, document_id, output):
    manager = DocumentManager(_api(ctx))
    path = manager.download(manager.get(document_id), output)
    click.echo(f"✓ Saved {path}")


@docs.command("open")
@click.argument("document_id")
@click.pass_context
@reports_errors
def docs_open(ctx, document_id):
    """Open a temporary copy with the system viewer; it is deleted afterwards."""
    manager = DocumentManager(_api(ctx))
    document = manager.get(document_id)
    if manager.preview_mode(document["mime_type"]) == PREVIEW_DOWNLOAD:
        click.echo("No inline preview for this type; use `docs download` instead.")
        return
    with manager.preview(document) as path:
        click.launch(str(path))
        click.pause("Press any key when you are done viewing...")


@docs.command("pin")
@click.argument("document_id")
@click.pass_context
@reports_errors
def docs_pin(ctx, document_id):
    manager = DocumentManager(_api(ctx))
    document = manager.toggle_pin(manager.get(document_id))
    click.echo(f"✓ {'Pinned' if document['is_pinned'] else 'Unpinned'} {document['title']}")


@docs.command("delete")
@click.argument("document_id")
@click.pass_context
@reports_errors
def docs_delete(ctx, document_id):
    manager = DocumentManager(_api(ctx))
    document = manager.get(document_id)
    if not click.confirm(f"Delete document '{document['title']}'?"):
        click.echo("Cancelled")
        return
    manager.delete(document_id)
    click.echo("✓ Document deleted")


# ============================================================================
# Organizations (super admin)
# ============================================================================

@cli.group()
def orgs():
    """Organizations (super admin)."""


@orgs.command("list")
@click.pass_context
@reports_errors
def orgs_list(ctx):
    for org in OrganizationManager(_api(ctx)).list():
        status = "active" if org["is_active"] else "inactive"
        click.echo(
            f"  {org['name']}  {status}  users={org['user_count']}  "
            f"tasks={org['task_count']}  documents={org['document_count']}  id={org['id']}"
        )


@orgs.command("create")
@click.option("--name", required=True)
@click.option("--password", prompt=True, hide_input=True, confirmation_prompt=True)
@click.option("--admin-email", default=None)
@click.option("--admin-notes", default=None)
@click.option("--description", default=None)
@click.option("--contact-email", default=None)
@click.pass_context
@reports_errors
def orgs_create(ctx, name, password, admin_email, admin_notes, description, contact_email):
    extra = {"description": description, "contact_email": contact_email}
    org = OrganizationManager(_api(ctx)).create(
        name, password, admin_email, admin_notes,
        **{k: v for k, v in extra.items() if v is not None},
    )
    click.echo(f"✓ Created organization: {org['name']}")
    click.echo(f"  ID: {org['id']}")


@orgs.command("update")
@click.argument("org_id")
@click.option("--name", default=None)
@click.option("--description", default=None)
@click.option("--website", default=None)
@click.option("--phone", default=None)
@click.option("--address", default=None)
@click.option("--contact-email", default=None)
@click.pass_context
@reports_errors
def orgs_update(ctx, org_id, **fields):
    org = OrganizationManager(_api(ctx)).update(
        org_id, **{k: v for k, v in fields.items() if v is not None}
    )
    click.echo(f"✓ Updated organization: {org['name']}")


@orgs.command("activate")
@click.argument("org_id")
@click.pass_context
@reports_errors
def orgs_activate(ctx, org_id):
    org = OrganizationManager(_api(ctx)).toggle_active(org_id, True)
    click.echo(f"✓ Activated {org['name']}")


@orgs.command("deactivate")
@click.argument("org_id")
@click.pass_context
@reports_errors
def orgs_deactivate(ctx, org_id):
    if not click.confirm("Deactivate this organization? Its members will not be able to log in."):
        click.echo("Cancelled")
        return
    org = OrganizationManager(_api(ctx)).toggle_active(org_id, False)
    click.echo(f"✓ Deactivated {org['name']}")


# ============================================================================
# Users (super admin) and volunteers (nonprofit admin)
# ============================================================================

@cli.group()
def users():
    """Whitelisted users across organizations (super admin)."""


@users.command("list")
@click.option("--organization-id", default=None)
@click.pass_context
@reports_errors
def users_list(ctx, organization_id):
    items = UserManager(_api(ctx)).list(organization_id)
    click.echo(f"{len(items)} user(s)")
    for user in items:
        _echo_user(user)


@users.command("add")
@click.argument("email")
@click.option("--organization-id", required=True)
@click.option("--role", type=click.Choice([Role.VOLUNTEER.value, Role.NONPROFIT_ADMIN.value]),
              default=Role.VOLUNTEER.value)
@click.option("--notes", default=None)
@click.pass_context
@reports_errors
def users_add(ctx, email, organization_id, role, notes):
    user = UserManager(_api(ctx)).add_to_organization(email, organization_id, role, notes)
    click.echo(f"✓ Added {user['email']} to {user['organization_name']} as {user['role']}")


@users.command("role")
@click.argument("email")
@click.argument("role", type=click.Choice([Role.VOLUNTEER.value, Role.NONPROFIT_ADMIN.value]))
@click.option("--organization-id", required=True)
@click.pass_context
@reports_errors
def users_role(ctx, email, role, organization_id):
    user = UserManager(_api(ctx)).update_role(email, role, organization_id)
    click.echo(f"✓ {user['email']} is now {user['role']}")


@users.command("update")
@click.argument("email")
@click.option("--first-name", default=None)
@click.option("--last-name", default=None)
@click.option("--phone", default=None)
@click.option("--notes", default=None)
@click.option("--organization-id", default=None)
@click.pass_context
@reports_errors
def users_update(ctx, email, **fields):
    user = UserManager(_api(ctx)).update_profile(
        email, **{k: v for k, v in fields.items() if v is not None}
    )
    click.echo(f"✓ Updated {user['display_name']}")


@users.command("remove")
@click.argument("email")
@click.pass_context
@reports_errors
def users_remove(ctx, email):
    if not click.confirm(f"Remove {email} from the platform? This cannot be undone."):
        click.echo("Cancelled")
        return
    body = UserManager(_api(ctx)).remove_from_organization(email)
    click.echo(f"✓ {body.get('message', 'User removed')}")


@cli.group()
def volunteers():
    """Volunteers of your organization (nonprofit admin)."""


@volunteers.command("list")
@click.pass_context
@reports_errors
def volunteers_list(ctx):
    items = VolunteerManager(_api(ctx)).list()
    click.echo(f"{len(items)} member(s)")
    for user in items:
        _echo_user(user)


@volunteers.command("add")
@click.argument("email")
@click.option("--name", default=None, help="Full name")
@click.option("--role", type=click.Choice([Role.VOLUNTEER.value, Role.NONPROFIT_ADMIN.value]),
              default=Role.VOLUNTEER.value)
@click.option("--notes", default=None)
@click.pass_context
@reports_errors
def volunteers_add(ctx, email, name, role, notes):
    user = VolunteerManager(_api(ctx)).add(email, name, role, notes)
    click.echo(f"✓ Added {user['display_name']} <{user['email']}> as {user['role']}")


@volunteers.command("update")
@click.argument("email")
@click.option("--name", default=None)
@click.option("--role", type=click.Choice([Role.VOLUNTEER.value, Role.NONPROFIT_ADMIN.value]),
              default=None)
@click.option("--phone", default=None)
@click.option("--notes", default=None)
@click.option("--active/--inactive", "is_active", default=None)
@click.pass_context
@reports_errors
def volunteers_update(ctx, email, **fields):
    user = VolunteerManager(_api(ctx)).update(
        email, **{k: v for k, v in fields.items() if v is not None}
    )
    click.echo(f"✓ Updated {user['display_name']}")


@volunteers.command("remove")
@click.argument("email")
@click.pass_context
@reports_errors
def volunteers_remove(ctx, email):
    if not click.confirm(f"Remove {email} from your organization?"):
        click.echo("Cancelled")
        return
    VolunteerManager(_api(ctx)).remove(email)
    click.echo(f"✓ Removed {email}")


@volunteers.command("stats")
@click.pass_context
@reports_errors
def volunteers_stats(ctx):
    for key, value in VolunteerManager(_api(ctx)).stats().items():
        click.echo(f"  {key.replace('_', ' ')}: {value}")


@volunteers.command("directory")
@click.pass_context
@reports_errors
def volunteers_directory(ctx):
    """Organization directory (visible to every member)."""
    for entry in VolunteerManager(_api(ctx)).directory():
        click.echo(f"  {entry['name']} <{entry['email']}>  phone={entry['phone']}  role={entry['role']}")


@volunteers.command("export")
@click.option("--output", type=click.Path(file_okay=False), default=".")
@click.pass_context
@reports_errors
def volunteers_export(ctx, output):
    path = VolunteerManager(_api(ctx)).export_csv(output)
    click.echo(f"✓ Wrote {path}")


if __name__ == "__main__":
    cli()
