"""Tasks router - task CRUD, assignment, and completion."""

import math
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from volunteer_hub.core.deps import can_manage_org, get_db, get_org_session, require_roles
from volunteer_hub.db.enums import (
    AssignmentStatus, Role, TaskPriority, TaskSortField, TaskStatus,
)
from volunteer_hub.schemas.auth import UserSession
from volunteer_hub.schemas.common import Pagination, SuccessResponse
from volunteer_hub.schemas.task import (
    MyTasksResponse, TaskAssign, TaskCompleteForUser, TaskCreate,
    TaskCreateResponse, TaskListResponse, TaskResponse, TaskStatusUpdate, TaskUpdate,
)
from volunteer_hub.services import task_service

router = APIRouter()

ADMIN_ROLES = [Role.NONPROFIT_ADMIN, Role.SUPER_ADMIN]


def _get_task_or_404(db: Session, task_id: UUID, org_id: UUID):
    task = task_service.get_task(db, task_id, org_id)
    if not task:
        raise HTTPException(status_code=404, detail="Task not found")
    return task


def _task_read(task, session: UserSession):
    """Volunteers only see their own assignment on a task."""
    viewer_id = None if can_manage_org(session) else session.user_id
    return task_service.to_task_read(task, viewer_id)


@router.get("", response_model=TaskListResponse)
def list_tasks(
    session: UserSession = Depends(get_org_session),
    db: Session = Depends(get_db),
    status: TaskStatus | None = None,
    priority: TaskPriority | None = None,
    assigned_to: UUID | None = Query(None, alias="assignedTo"),
    limit: int | None = Query(None, ge=1, le=500),
):
    """
    List tasks.

    Admins see every task in the organization; volunteers only tasks
    assigned to them.
    """
    if not can_manage_org(session):
        assigned_to = session.user_id
    tasks = task_service.list_tasks(
        db,
        session.org_id,
        status=status,
        priority=priority,
        assigned_to=assigned_to,
        limit=limit,
    )
    return TaskListResponse(
        tasks=[_task_read(t, session) for t in tasks],
        total=len(tasks),
    )


@router.get("/my", response_model=MyTasksResponse)
def my_tasks(
    session: UserSession = Depends(get_org_session),
    db: Session = Depends(get_db),
    status: AssignmentStatus | None = None,
    priority: TaskPriority | None = None,
    sort_by: TaskSortField = Query(TaskSortField.DUE_DATE, alias="sortBy"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
):
    """The caller's assignments, plus stats across all of them."""
    assignments = task_service.list_my_assignments(
        db,
        session.org_id,
        session.user_id,
        status=status,
        priority=priority,
        sort_by=sort_by,
    )
    total = len(assignments)
    start = (page - 1) * limit
    page_items = assignments[start:start + limit]
    return MyTasksResponse(
        tasks=[task_service.to_my_task_item(db, a) for a in page_items],
        stats=task_service.my_task_stats(db, session.org_id, session.user_id),
        pagination=Pagination(
            page=page,
            limit=limit,
            total=total,
            pages=math.ceil(total / limit) if total else 0,
        ),
    )


@router.post("", response_model=TaskCreateResponse, status_code=201)
def create_task(
    body: TaskCreate,
    session: UserSession = Depends(require_roles(ADMIN_ROLES, org_scoped=True)),
    db: Session = Depends(get_db),
):
    try:
        task, assigned = task_service.create_task(db, session.org_id, session.member_id, body)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return TaskCreateResponse(task=task_service.to_task_read(task), assigned_to=assigned)


@router.get("/{task_id}", response_model=TaskResponse)
def get_task(
    task_id: UUID,
    session: UserSession = Depends(get_org_session),
    db: Session = Depends(get_db),
):
    task = _get_task_or_404(db, task_id, session.org_id)
    if not can_manage_org(session) and not any(
        a.user_id == session.user_id for a in task.assignments
    ):
        raise HTTPException(status_code=404, detail="Task not found")
    return TaskResponse(task=_task_read(task, session))


@router.put("/{task_id}", response_model=TaskResponse)
def update_task(
    task_id: UUID,
    body: TaskUpdate,
    session: UserSession = Depends(require_roles(ADMIN_ROLES, org_scoped=True)),
    db: Session = Depends(get_db),
):
    task = _get_task_or_404(db, task_id, session.org_id)
    try:
        task = task_service.update_task(db, task, body)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return TaskResponse(message="Task updated successfully", task=task_service.to_task_read(task))


@router.delete("/{task_id}", response_model=SuccessResponse)
def delete_task(
    task_id: UUID,
    session: UserSession = Depends(require_roles(ADMIN_ROLES, org_scoped=True)),
    db: Session = Depends(get_db),
):
    task = _get_task_or_404(db, task_id, session.org_id)
    try:
        task_service.delete_task(db, task)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return SuccessResponse(message="Task deleted successfully")


@router.post("/{task_id}/assign", response_model=TaskResponse)
def assign_task(
    task_id: UUID,
    body: TaskAssign,
    session: UserSession = Depends(require_roles(ADMIN_ROLES, org_scoped=True)),
    db: Session = Depends(get_db),
):
    task = _get_task_or_404(db, task_id, session.org_id)
    try:
        task_service.assign_volunteer(db, task, body.volunteer_email, session.member_id)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    db.refresh(task)
    return TaskResponse(message="Volunteer assigned successfully", task=task_service.to_task_read(task))


@router.post("/{task_id}/complete", response_model=TaskResponse)
def complete_for_user(
    task_id: UUID,
    body: TaskCompleteForUser,
    session: UserSession = Depends(require_roles(ADMIN_ROLES, org_scoped=True)),
    db: Session = Depends(get_db),
):
    """Admin completes one volunteer's assignment."""
    task = _get_task_or_404(db, task_id, session.org_id)
    try:
        task_service.complete_for_user(
            db, task, body.user_id, body.completion_notes, body.admin_feedback
        )
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return TaskResponse(message="Task marked as completed", task=task_service.to_task_read(task))


@router.put("/{task_id}/status", response_model=TaskResponse)
def update_status(
    task_id: UUID,
    body: TaskStatusUpdate,
    session: UserSession = Depends(get_org_session),
    db: Session = Depends(get_db),
):
    """Assignee moves their own assignment between assigned/in_progress/completed."""
    task = _get_task_or_404(db, task_id, session.org_id)
    try:
        task_service.update_assignment_status(
            db, task, session.user_id, body.status, body.completion_notes
        )
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return TaskResponse(message="Task status updated", task=_task_read(task, session))
