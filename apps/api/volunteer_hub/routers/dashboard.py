"""Dashboard router - one aggregate per role."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from volunteer_hub.core.deps import (
    can_see_admin_content, get_current_user, get_db, get_org_session, require_roles,
)
from volunteer_hub.db.enums import Role
from volunteer_hub.db.models import User
from volunteer_hub.schemas.auth import UserSession
from volunteer_hub.services import dashboard_service

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.get("/volunteer")
def volunteer_dashboard(
    session: UserSession = Depends(get_org_session),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Own tasks, upcoming events, visible documents, and task stats."""
    data = dashboard_service.volunteer_dashboard(db, session, user)
    return {"success": True, **data}


@router.get("/admin")
def admin_dashboard(
    session: UserSession = Depends(
        require_roles([Role.NONPROFIT_ADMIN, Role.SUPER_ADMIN], org_scoped=True)
    ),
    db: Session = Depends(get_db),
):
    data = dashboard_service.admin_dashboard(db, session.org_id, session.user_id)
    return {"success": True, **data}


@router.get("/volunteers")
def volunteer_directory(
    session: UserSession = Depends(get_org_session),
    db: Session = Depends(get_db),
):
    """Organization directory; admin notes only for admins."""
    volunteers = dashboard_service.volunteer_directory(
        db, session.org_id, include_admin_notes=can_see_admin_content(session)
    )
    return {"success": True, "volunteers": volunteers, "total": len(volunteers)}
