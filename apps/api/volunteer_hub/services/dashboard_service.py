"""Dashboard service - read-only aggregates for the role dashboards."""

from uuid import UUID

from sqlalchemy.orm import Session

from volunteer_hub.db.enums import AssignmentStatus, Role
from volunteer_hub.db.models import User
from volunteer_hub.schemas.auth import UserSession
from volunteer_hub.services import (
    auth_service, calendar_service, document_service, task_service, user_service,
)
from volunteer_hub.utils.names import NOT_SET, admin_notes_text, display_name

VOLUNTEER_TASK_LIMIT = 10
VOLUNTEER_EVENT_LIMIT = 10
ADMIN_EVENT_LIMIT = 5
DOCUMENT_LIMIT = 6
RECENT_ACTIVITY_LIMIT = 10
NOT_PROVIDED = "Not provided"


def volunteer_dashboard(db: Session, session: UserSession, user: User) -> dict:
    """Open assignments first (soonest due), then completed ones."""
    assignments = task_service.list_my_assignments(db, session.org_id, user.id)
    open_first = sorted(
        assignments, key=lambda a: a.status == AssignmentStatus.COMPLETED.value
    )
    events = calendar_service.list_events(
        db, session.org_id, upcoming=True, limit=VOLUNTEER_EVENT_LIMIT
    )
    documents = document_service.list_documents(
        db, session.org_id, include_admin_only=False, limit=DOCUMENT_LIMIT
    )
    return {
        "user": auth_service.to_user_read(user),
        "tasks": [
            task_service.to_my_task_item(db, a)
            for a in open_first[:VOLUNTEER_TASK_LIMIT]
        ],
        "upcomingEvents": [
            calendar_service.to_event_read(db, e, user.id) for e in events
        ],
        "documents": [document_service.to_document_read(d) for d in documents],
        "taskStats": task_service.my_task_stats(db, session.org_id, user.id),
    }


def admin_dashboard(db: Session, org_id: UUID, viewer_id: UUID | None) -> dict:
    events = calendar_service.list_events(
        db, org_id, upcoming=True, limit=ADMIN_EVENT_LIMIT
    )
    documents = document_service.list_documents(
        db, org_id, include_admin_only=True, limit=DOCUMENT_LIMIT
    )
    return {
        "volunteerStats": user_service.volunteer_stats(db, org_id),
        "taskOverview": task_service.org_task_overview(db, org_id),
        "recentActivity": task_service.recent_completions(
            db, org_id, limit=RECENT_ACTIVITY_LIMIT
        ),
        "upcomingEvents": [
            calendar_service.to_event_read(db, e, viewer_id) for e in events
        ],
        "recentDocuments": [document_service.to_document_read(d) for d in documents],
        "volunteers": user_service.list_volunteers(db, org_id),
    }


def volunteer_directory(db: Session, org_id: UUID, include_admin_notes: bool) -> list[dict]:
    """Members of the organization with display fallbacks for missing fields."""
    users = (
        db.query(User)
        .filter(User.organization_id == org_id)
        .order_by(User.first_name, User.last_name, User.email)
        .all()
    )
    directory = []
    for user in users:
        entry = {
            "id": str(user.id),
            "name": display_name(user),
            "firstName": user.first_name or NOT_SET,
            "lastName": user.last_name or NOT_SET,
            "email": user.email,
            "phone": user.phone or NOT_PROVIDED,
            "role": Role(user.role).value,
            "isActive": user.is_active,
            "lastLogin": user.last_login.isoformat() if user.last_login else None,
        }
        if include_admin_notes:
            entry["adminNotes"] = admin_notes_text(user)
        directory.append(entry)
    return directory
