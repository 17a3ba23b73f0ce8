"""Nonprofit admin router - task overview, volunteer management, CSV exports."""

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import Response
from sqlalchemy.orm import Session

from volunteer_hub.core.deps import get_db, require_roles
from volunteer_hub.db.enums import Role, TaskPriority, TaskStatus
from volunteer_hub.schemas.auth import UserSession
from volunteer_hub.schemas.common import SuccessResponse
from volunteer_hub.schemas.task import TaskListResponse
from volunteer_hub.schemas.user import (
    ManagedUserListResponse, ManagedUserResponse, VolunteerCreate,
    VolunteerStatsResponse, VolunteerUpdate,
)
from volunteer_hub.services import task_service, user_service
from volunteer_hub.utils.csv_export import (
    CSV_CONTENT_TYPE, export_filename, tasks_csv, volunteers_csv,
)

router = APIRouter(prefix="/admin", tags=["admin"])

require_admin = require_roles([Role.NONPROFIT_ADMIN, Role.SUPER_ADMIN], org_scoped=True)


def _csv_response(content: str, kind: str) -> Response:
    return Response(
        content=content,
        media_type=CSV_CONTENT_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{export_filename(kind)}"'},
    )


# =============================================================================
# Tasks
# =============================================================================

@router.get("/tasks", response_model=TaskListResponse)
def list_tasks(
    status: TaskStatus | None = None,
    priority: TaskPriority | None = None,
    session: UserSession = Depends(require_admin),
    db: Session = Depends(get_db),
):
    tasks = task_service.list_tasks(db, session.org_id, status=status, priority=priority)
    return TaskListResponse(
        tasks=[task_service.to_task_read(t) for t in tasks],
        total=len(tasks),
    )


@router.get("/tasks/export")
def export_tasks(
    session: UserSession = Depends(require_admin),
    db: Session = Depends(get_db),
):
    tasks = task_service.list_tasks(db, session.org_id)
    rows = [task_service.to_task_read(t).model_dump(mode="json") for t in tasks]
    return _csv_response(tasks_csv(rows), "tasks-report")


# =============================================================================
# Volunteers
# =============================================================================

@router.get("/volunteers", response_model=ManagedUserListResponse)
def list_volunteers(
    session: UserSession = Depends(require_admin),
    db: Session = Depends(get_db),
):
    return ManagedUserListResponse(users=user_service.list_volunteers(db, session.org_id))


@router.get("/volunteers/stats", response_model=VolunteerStatsResponse)
def volunteer_stats(
    session: UserSession = Depends(require_admin),
    db: Session = Depends(get_db),
):
    return VolunteerStatsResponse(stats=user_service.volunteer_stats(db, session.org_id))


@router.get("/volunteers/export")
def export_volunteers(
    session: UserSession = Depends(require_admin),
    db: Session = Depends(get_db),
):
    members = user_service.list_volunteers(db, session.org_id)
    rows = [m.model_dump(mode="json") for m in members]
    return _csv_response(volunteers_csv(rows), "volunteers-directory")


@router.post("/volunteers", response_model=ManagedUserResponse, status_code=201)
def add_volunteer(
    body: VolunteerCreate,
    session: UserSession = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """Whitelist a volunteer (or co-admin) for the organization and send a welcome e-mail."""
    try:
        member = user_service.add_volunteer(db, session.org_id, body, added_by=session.email)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return ManagedUserResponse(message="Volunteer added successfully", user=member)


@router.put("/volunteers/{email}", response_model=ManagedUserResponse)
def update_volunteer(
    email: str,
    body: VolunteerUpdate,
    session: UserSession = Depends(require_admin),
    db: Session = Depends(get_db),
):
    try:
        member = user_service.update_volunteer(db, session.org_id, email, body)
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return ManagedUserResponse(message="Volunteer updated successfully", user=member)


@router.delete("/volunteers/{email}", response_model=SuccessResponse)
def remove_volunteer(
    email: str,
    session: UserSession = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """Exact-email removal from this organization only."""
    try:
        user_service.remove_volunteer(db, session.org_id, email, actor_email=session.email)
    except LookupError:
        raise HTTPException(status_code=404, detail="Volunteer not found")
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return SuccessResponse(message="Volunteer removed successfully")
