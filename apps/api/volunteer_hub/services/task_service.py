"""Task service - business logic for tasks and per-volunteer assignments."""

import logging
from datetime import timedelta
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.orm import Session, selectinload

from volunteer_hub.core.config import settings
from volunteer_hub.db.enums import (
    PRIORITY_RANK, AssignmentStatus, Role, TaskPriority, TaskSortField, TaskStatus,
)
from volunteer_hub.db.models import Task, TaskAssignment, User, WhitelistedEmail
from volunteer_hub.schemas.task import (
    AssignmentRead, MyTaskItem, MyTaskStats, TaskCreate, TaskRead, TaskUpdate,
)
from volunteer_hub.services import email_service
from volunteer_hub.utils.dates import as_utc, utc_now
from volunteer_hub.utils.names import display_name
from volunteer_hub.utils.normalization import normalize_email
from volunteer_hub.utils.tasks import (
    has_completed_work, is_due_soon, is_overdue, rollup_task_status,
)

logger = logging.getLogger(__name__)

DEFAULT_ADMIN_COMPLETION_NOTES = "Completed by admin"


# =============================================================================
# Queries
# =============================================================================

def get_task(db: Session, task_id: UUID, org_id: UUID) -> Task | None:
    """Get task by ID (org-scoped)."""
    return (
        db.query(Task)
        .options(selectinload(Task.assignments).selectinload(TaskAssignment.user))
        .filter(Task.id == task_id, Task.organization_id == org_id)
        .first()
    )


def list_tasks(
    db: Session,
    org_id: UUID,
    status: TaskStatus | None = None,
    priority: TaskPriority | None = None,
    assigned_to: UUID | None = None,
    limit: int | None = None,
) -> list[Task]:
    """All tasks of an organization, soonest due first (no due date last)."""
    query = (
        db.query(Task)
        .options(selectinload(Task.assignments).selectinload(TaskAssignment.user))
        .filter(Task.organization_id == org_id)
    )
    if status:
        query = query.filter(Task.status == status.value)
    if priority:
        query = query.filter(Task.priority == priority.value)
    if assigned_to:
        query = query.filter(
            Task.assignments.any(TaskAssignment.user_id == assigned_to)
        )
    query = query.order_by(
        Task.due_date.is_(None), Task.due_date.asc(), Task.created_at.desc()
    )
    if limit:
        query = query.limit(limit)
    return query.all()


def _my_sort_key(sort_by: TaskSortField):
    far_future = utc_now() + timedelta(days=365 * 100)

    def key(assignment: TaskAssignment):
        task = assignment.task
        if sort_by == TaskSortField.PRIORITY:
            return (PRIORITY_RANK.get(TaskPriority(task.priority), 99), task.title.lower())
        if sort_by == TaskSortField.CREATED_AT:
            # Newest first
            return -as_utc(task.created_at).timestamp()
        if sort_by == TaskSortField.TITLE:
            return task.title.lower()
        return as_utc(task.due_date) if task.due_date else far_future
    return key


def list_my_assignments(
    db: Session,
    org_id: UUID,
    user_id: UUID,
    status: AssignmentStatus | None = None,
    priority: TaskPriority | None = None,
    sort_by: TaskSortField = TaskSortField.DUE_DATE,
) -> list[TaskAssignment]:
    """The caller's assignments, filtered and sorted."""
    query = (
        db.query(TaskAssignment)
        .join(Task, Task.id == TaskAssignment.task_id)
        .options(selectinload(TaskAssignment.task))
        .filter(TaskAssignment.user_id == user_id, Task.organization_id == org_id)
    )
    if status:
        query = query.filter(TaskAssignment.status == status.value)
    if priority:
        query = query.filter(Task.priority == priority.value)
    return sorted(query.all(), key=_my_sort_key(sort_by))


def my_task_stats(db: Session, org_id: UUID, user_id: UUID) -> MyTaskStats:
    """Counts across all of the caller's assignments (ignores filters)."""
    assignments = list_my_assignments(db, org_id, user_id)
    now = utc_now()
    stats = MyTaskStats(total=len(assignments))
    for a in assignments:
        if a.status == AssignmentStatus.ASSIGNED.value:
            stats.assigned += 1
        elif a.status == AssignmentStatus.IN_PROGRESS.value:
            stats.in_progress += 1
        elif a.status == AssignmentStatus.COMPLETED.value:
            stats.completed += 1
        if is_overdue(a.task.due_date, a.status, now):
            stats.overdue += 1
        elif is_due_soon(a.task.due_date, a.status, settings.DUE_SOON_DAYS, now):
            stats.due_soon += 1
    return stats


def org_task_overview(db: Session, org_id: UUID) -> dict:
    """Status counts for the admin dashboard."""
    tasks = list_tasks(db, org_id)
    now = utc_now()
    overview = {
        "total": len(tasks),
        "pending": 0,
        "in_progress": 0,
        "completed": 0,
        "overdue": 0,
        "total_assignments": 0,
        "completed_assignments": 0,
    }
    for task in tasks:
        overview[task.status] = overview.get(task.status, 0) + 1
        if is_overdue(task.due_date, task.status, now):
            overview["overdue"] += 1
        overview["total_assignments"] += len(task.assignments)
        overview["completed_assignments"] += sum(
            1 for a in task.assignments if a.status == AssignmentStatus.COMPLETED.value
        )
    return overview


def recent_completions(db: Session, org_id: UUID, limit: int = 10) -> list[dict]:
    """Most recently completed assignments (admin activity feed)."""
    rows = (
        db.query(TaskAssignment)
        .join(Task, Task.id == TaskAssignment.task_id)
        .options(selectinload(TaskAssignment.task), selectinload(TaskAssignment.user))
        .filter(
            Task.organization_id == org_id,
            TaskAssignment.status == AssignmentStatus.COMPLETED.value,
            TaskAssignment.completed_at.is_not(None),
        )
        .order_by(TaskAssignment.completed_at.desc())
        .limit(limit)
        .all()
    )
    return [
        {
            "type": "task_completed",
            "task_id": str(a.task_id),
            "task_title": a.task.title,
            "user_id": str(a.user_id),
            "user_name": display_name(a.user),
            "completion_notes": a.completion_notes,
            "occurred_at": as_utc(a.completed_at).isoformat(),
        }
        for a in rows
    ]


# =============================================================================
# Mutations
# =============================================================================

def _resolve_assignees(db: Session, org_id: UUID, emails: list[str]) -> list[User]:
    """
    Members of the organization matching the emails.

    Whitelisted emails that have not logged in yet get their user record
    created here so they can be assigned work before first login.
    """
    normalized = {e for e in (normalize_email(x) for x in emails) if e}
    if not normalized:
        return []
    users = (
        db.query(User)
        .filter(
            User.organization_id == org_id,
            func.lower(User.email).in_(normalized),
            User.is_active.is_(True),
        )
        .all()
    )
    missing = normalized - {u.email.lower() for u in users}
    if missing:
        entries = db.query(WhitelistedEmail).filter(
            WhitelistedEmail.organization_id == org_id,
            WhitelistedEmail.email.in_(missing),
            WhitelistedEmail.is_active.is_(True),
        ).all()
        for entry in entries:
            if db.query(User).filter(User.email == entry.email).first():
                # Belongs to another organization
                continue
            user = User(
                email=entry.email,
                organization_id=org_id,
                role=entry.role,
                admin_notes=entry.admin_notes,
            )
            db.add(user)
            users.append(user)
        db.flush()
    return sorted(users, key=lambda u: u.email)


def _notify_assigned(task: Task, users: list[User]) -> None:
    due = as_utc(task.due_date).date().isoformat() if task.due_date else None
    for user in users:
        email_service.notify_task_assigned(
            to_email=user.email,
            volunteer_name=display_name(user),
            task_title=task.title,
            due_date=due,
            org_name=task.organization.name if task.organization else None,
        )


def create_task(
    db: Session,
    org_id: UUID,
    user_id: UUID | None,
    data: TaskCreate,
) -> tuple[Task, int]:
    """
    Create a task with one assignment per resolvable email.

    Emails that do not belong to the organization are skipped.

    Raises:
        ValueError: Missing assignees or none of them found
    """
    if not data.title.strip() or not data.assign_to_emails:
        raise ValueError("Title and at least one assignee email are required")

    assignees = _resolve_assignees(db, org_id, data.assign_to_emails)
    if not assignees:
        raise ValueError("No valid volunteers found for assignment")

    task = Task(
        organization_id=org_id,
        title=data.title.strip(),
        description=data.description,
        due_date=data.due_date,
        priority=data.priority.value,
        status=TaskStatus.PENDING.value,
        created_by=user_id,
    )
    db.add(task)
    db.flush()

    for user in assignees:
        db.add(TaskAssignment(
            task_id=task.id,
            user_id=user.id,
            status=AssignmentStatus.ASSIGNED.value,
            assigned_by=user_id,
        ))
    db.commit()
    db.refresh(task)

    logger.info("Task created id=%s org=%s assignees=%s", task.id, org_id, len(assignees))
    _notify_assigned(task, assignees)
    return task, len(assignees)


def update_task(db: Session, task: Task, data: TaskUpdate) -> Task:
    """
    Update task fields.

    Uses exclude_unset=True so only explicitly provided fields are updated.
    description and due_date can be cleared with None.
    """
    update_data = data.model_dump(exclude_unset=True)
    if not update_data:
        raise ValueError("No fields provided for update")

    clearable_fields = {"description", "due_date"}
    for field, value in update_data.items():
        if value is None and field not in clearable_fields:
            continue
        if field == "priority":
            value = value.value
        if field == "title":
            value = value.strip()
        setattr(task, field, value)

    db.commit()
    db.refresh(task)
    return task


def delete_task(db: Session, task: Task) -> None:
    """
    Hard-delete a task and its assignments.

    Raises:
        ValueError: Task has completed work
    """
    if has_completed_work(task.status, (a.status for a in task.assignments)):
        raise ValueError("Cannot delete a task with completed work")
    db.delete(task)
    db.commit()
    logger.info("Task deleted id=%s", task.id)


def assign_volunteer(
    db: Session,
    task: Task,
    email: str,
    assigned_by: UUID | None,
) -> TaskAssignment:
    """
    Add one more assignee to an existing task.

    Raises:
        ValueError: Volunteer not in the organization, or already assigned
    """
    users = _resolve_assignees(db, task.organization_id, [email])
    if not users:
        raise ValueError("Volunteer not found in this organization")
    user = users[0]
    if any(a.user_id == user.id for a in task.assignments):
        raise ValueError("Already assigned")

    assignment = TaskAssignment(
        user_id=user.id,
        status=AssignmentStatus.ASSIGNED.value,
        assigned_by=assigned_by,
    )
    task.assignments.append(assignment)
    _apply_rollup(task)
    db.commit()
    db.refresh(assignment)
    _notify_assigned(task, [user])
    return assignment


def _find_assignment(task: Task, user_id: UUID) -> TaskAssignment | None:
    for assignment in task.assignments:
        if assignment.user_id == user_id:
            return assignment
    return None


def _apply_rollup(task: Task) -> None:
    task.status = rollup_task_status(a.status for a in task.assignments).value


def _notify_completed(db: Session, task: Task, assignment: TaskAssignment) -> None:
    admins = (
        db.query(User)
        .filter(
            User.organization_id == task.organization_id,
            User.role == Role.NONPROFIT_ADMIN.value,
            User.is_active.is_(True),
        )
        .all()
    )
    for admin in admins:
        if admin.id == assignment.user_id:
            continue
        email_service.notify_task_completed(
            to_email=admin.email,
            admin_name=display_name(admin),
            volunteer_name=display_name(assignment.user),
            task_title=task.title,
            completion_notes=assignment.completion_notes,
        )


def complete_for_user(
    db: Session,
    task: Task,
    user_id: UUID,
    completion_notes: str | None = None,
    admin_feedback: str | None = None,
) -> TaskAssignment:
    """
    Admin-driven completion of one volunteer's assignment.

    Raises:
        LookupError: User is not assigned to the task
        ValueError: Assignment already completed
    """
    assignment = _find_assignment(task, user_id)
    if not assignment:
        raise LookupError("Assignment not found for this volunteer")
    if assignment.status == AssignmentStatus.COMPLETED.value:
        raise ValueError("Task is already completed for this volunteer")

    assignment.status = AssignmentStatus.COMPLETED.value
    assignment.completed_at = utc_now()
    assignment.completion_notes = completion_notes or DEFAULT_ADMIN_COMPLETION_NOTES
    if admin_feedback is not None:
        assignment.admin_feedback = admin_feedback
    _apply_rollup(task)

    db.commit()
    db.refresh(task)
    logger.info("Assignment completed by admin task=%s user=%s", task.id, user_id)
    return assignment


def update_assignment_status(
    db: Session,
    task: Task,
    user_id: UUID,
    status: AssignmentStatus,
    completion_notes: str | None = None,
) -> TaskAssignment:
    """
    Self-service status change by the assignee.

    Raises:
        LookupError: Caller is not assigned to the task
    """
    assignment = _find_assignment(task, user_id)
    if not assignment:
        raise LookupError("Task not found or not assigned to you")

    was_completed = assignment.status == AssignmentStatus.COMPLETED.value
    assignment.status = status.value
    if status == AssignmentStatus.COMPLETED:
        if not was_completed:
            assignment.completed_at = utc_now()
        if completion_notes is not None:
            assignment.completion_notes = completion_notes
    else:
        assignment.completed_at = None
    _apply_rollup(task)

    db.commit()
    db.refresh(task)

    if status == AssignmentStatus.COMPLETED and not was_completed:
        _notify_completed(db, task, assignment)
    return assignment


# =============================================================================
# Serialization
# =============================================================================

def to_assignment_read(assignment: TaskAssignment, due_date=None) -> AssignmentRead:
    return AssignmentRead(
        id=assignment.id,
        user_id=assignment.user_id,
        user_name=display_name(assignment.user),
        user_email=assignment.user.email,
        status=AssignmentStatus(assignment.status),
        assigned_at=assignment.assigned_at,
        completed_at=assignment.completed_at,
        completion_notes=assignment.completion_notes,
        admin_feedback=assignment.admin_feedback,
        is_overdue=is_overdue(due_date, assignment.status),
    )


def to_task_read(task: Task, viewer_id: UUID | None = None) -> TaskRead:
    """
    Serialize a task with its assignments.

    With `viewer_id`, only that member's assignment is included; the counts
    still cover every assignee.
    """
    assignments = [to_assignment_read(a, task.due_date) for a in task.assignments]
    visible = assignments if viewer_id is None else [a for a in assignments if a.user_id == viewer_id]
    return TaskRead(
        id=task.id,
        title=task.title,
        description=task.description,
        due_date=task.due_date,
        priority=TaskPriority(task.priority),
        status=TaskStatus(task.status),
        created_by=task.created_by,
        created_by_name=display_name(task.creator) if task.creator else None,
        created_at=task.created_at,
        updated_at=task.updated_at,
        assignments=visible,
        assigned_count=len(assignments),
        completed_count=sum(
            1 for a in assignments if a.status == AssignmentStatus.COMPLETED
        ),
        is_overdue=is_overdue(task.due_date, task.status),
    )


def to_my_task_item(db: Session, assignment: TaskAssignment) -> MyTaskItem:
    task = assignment.task
    assigner = db.get(User, assignment.assigned_by) if assignment.assigned_by else None
    return MyTaskItem(
        id=task.id,
        assignment_id=assignment.id,
        title=task.title,
        description=task.description,
        due_date=task.due_date,
        priority=TaskPriority(task.priority),
        task_status=TaskStatus(task.status),
        status=AssignmentStatus(assignment.status),
        assigned_at=assignment.assigned_at,
        assigned_by_name=display_name(assigner) if assigner else None,
        completed_at=assignment.completed_at,
        completion_notes=assignment.completion_notes,
        admin_feedback=assignment.admin_feedback,
        is_overdue=is_overdue(task.due_date, assignment.status),
    )

