"""Task status helpers shared by every view that shows a task."""

from datetime import datetime, timedelta
from typing import Iterable

from volunteer_hub.db.enums import AssignmentStatus, TaskStatus
from volunteer_hub.utils.dates import as_utc, parse_datetime, utc_now

COMPLETED = "completed"


def is_overdue(
    due_date: datetime | str | None,
    status: str | None,
    now: datetime | None = None,
) -> bool:
    """
    A task or assignment is overdue when it has a due date in the past
    and is not completed. Never persisted; always recomputed.
    """
    due = parse_datetime(due_date)
    if due is None:
        return False
    if status == COMPLETED:
        return False
    current = as_utc(now) if now else utc_now()
    return due < current


def is_due_soon(
    due_date: datetime | str | None,
    status: str | None,
    days: int,
    now: datetime | None = None,
) -> bool:
    """Due within the next `days` days and not completed (overdue excluded)."""
    due = parse_datetime(due_date)
    if due is None or status == COMPLETED:
        return False
    current = as_utc(now) if now else utc_now()
    return current <= due <= current + timedelta(days=days)


def rollup_task_status(assignment_statuses: Iterable[str]) -> TaskStatus:
    """
    Derive a task's status from its assignments.

    completed when every assignment is completed, in_progress when any
    work has started, pending otherwise (including no assignments).
    """
    statuses = list(assignment_statuses)
    if statuses and all(s == AssignmentStatus.COMPLETED.value for s in statuses):
        return TaskStatus.COMPLETED
    if any(
        s in (AssignmentStatus.IN_PROGRESS.value, AssignmentStatus.COMPLETED.value)
        for s in statuses
    ):
        return TaskStatus.IN_PROGRESS
    return TaskStatus.PENDING


def has_completed_work(task_status: str | None, assignment_statuses: Iterable[str]) -> bool:
    """Tasks with any completed work must not be deleted."""
    if task_status == COMPLETED:
        return True
    return any(s == AssignmentStatus.COMPLETED.value for s in assignment_statuses)
