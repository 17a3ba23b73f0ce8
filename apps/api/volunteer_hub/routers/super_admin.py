"""Super admin router - organizations and members across all tenants."""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from volunteer_hub.core.deps import get_db, require_roles
from volunteer_hub.db.enums import Role
from volunteer_hub.schemas.auth import UserSession
from volunteer_hub.schemas.common import SuccessResponse
from volunteer_hub.schemas.organization import (
    OrganizationCreate, OrganizationListResponse, OrganizationResponse,
    OrganizationStatusUpdate, OrganizationUpdate,
)
from volunteer_hub.schemas.user import (
    ManagedUserListResponse, ManagedUserResponse, ManagedUserUpdate, RoleUpdate,
    WhitelistUserCreate,
)
from volunteer_hub.services import org_service, user_service

router = APIRouter(
    prefix="/super-admin",
    tags=["super-admin"],
)

require_super_admin = require_roles([Role.SUPER_ADMIN])


def _get_org_or_404(db: Session, org_id: UUID):
    org = org_service.get_org_by_id(db, org_id)
    if not org:
        raise HTTPException(status_code=404, detail="Organization not found")
    return org


# =============================================================================
# Dashboard
# =============================================================================

@router.get("/dashboard")
def dashboard(
    session: UserSession = Depends(require_super_admin),
    db: Session = Depends(get_db),
):
    """Platform totals, analytics, and recent organizations."""
    return {"success": True, **org_service.platform_dashboard(db)}


# =============================================================================
# Organizations
# =============================================================================

@router.get("/organizations", response_model=OrganizationListResponse)
def list_organizations(
    session: UserSession = Depends(require_super_admin),
    db: Session = Depends(get_db),
):
    return OrganizationListResponse(organizations=org_service.list_organizations(db))


@router.post("/organizations", response_model=OrganizationResponse, status_code=201)
def create_organization(
    body: OrganizationCreate,
    session: UserSession = Depends(require_super_admin),
    db: Session = Depends(get_db),
):
    try:
        org = org_service.create_organization(db, body, added_by=session.email)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return OrganizationResponse(
        message="Organization created successfully",
        organization=org_service.to_organization_read(org),
    )


@router.put("/organizations/{org_id}", response_model=OrganizationResponse)
def update_organization(
    org_id: UUID,
    body: OrganizationUpdate,
    session: UserSession = Depends(require_super_admin),
    db: Session = Depends(get_db),
):
    org = _get_org_or_404(db, org_id)
    try:
        org = org_service.update_organization(db, org, body)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return OrganizationResponse(
        message="Organization updated successfully",
        organization=org_service.to_organization_read(org),
    )


@router.put("/organizations/{org_id}/status", response_model=OrganizationResponse)
def set_organization_status(
    org_id: UUID,
    body: OrganizationStatusUpdate,
    session: UserSession = Depends(require_super_admin),
    db: Session = Depends(get_db),
):
    org = _get_org_or_404(db, org_id)
    org = org_service.set_organization_status(db, org, body.is_active)
    state = "activated" if org.is_active else "deactivated"
    return OrganizationResponse(
        message=f"Organization {state} successfully",
        organization=org_service.to_organization_read(org),
    )


# =============================================================================
# Users
# =============================================================================

@router.get("/users", response_model=ManagedUserListResponse)
def list_users(
    organization_id: UUID | None = Query(None, alias="organizationId"),
    session: UserSession = Depends(require_super_admin),
    db: Session = Depends(get_db),
):
    return ManagedUserListResponse(
        users=user_service.list_managed_users(db, organization_id)
    )


@router.post("/users", response_model=ManagedUserResponse, status_code=201)
def add_user(
    body: WhitelistUserCreate,
    session: UserSession = Depends(require_super_admin),
    db: Session = Depends(get_db),
):
    try:
        member = user_service.add_whitelisted_user(db, body, added_by=session.email)
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return ManagedUserResponse(message="User added successfully", user=member)


@router.put("/users/{email}/role", response_model=ManagedUserResponse)
def update_user_role(
    email: str,
    body: RoleUpdate,
    session: UserSession = Depends(require_super_admin),
    db: Session = Depends(get_db),
):
    try:
        member = user_service.update_role(db, email, body)
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return ManagedUserResponse(message="User role updated successfully", user=member)


@router.put("/users/{email}", response_model=ManagedUserResponse)
def update_user(
    email: str,
    body: ManagedUserUpdate,
    session: UserSession = Depends(require_super_admin),
    db: Session = Depends(get_db),
):
    try:
        member = user_service.update_managed_user(db, email, body)
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return ManagedUserResponse(message="User updated successfully", user=member)


@router.delete("/users/{email}", response_model=SuccessResponse)
def remove_user(
    email: str,
    session: UserSession = Depends(require_super_admin),
    db: Session = Depends(get_db),
):
    """Hard delete by exact email: whitelist entries and the user record."""
    try:
        user_service.remove_user(db, email)
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return SuccessResponse(message="User removed successfully")
