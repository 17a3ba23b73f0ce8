"""Authentication router - login, token refresh, and account checks."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from volunteer_hub.core.deps import get_current_session, get_db, require_roles
from volunteer_hub.core.permissions import permissions_for
from volunteer_hub.core.rate_limit import AUTH_LIMIT, limiter
from volunteer_hub.db.enums import Role
from volunteer_hub.schemas.auth import (
    ChangeOrgPasswordRequest, CheckEmailResponse, LoginRequest, LoginResponse,
    MeResponse, OrganizationOption, OrganizationOptionsResponse, RefreshRequest,
    RefreshResponse, UserSession,
)
from volunteer_hub.schemas.common import SuccessResponse
from volunteer_hub.services import auth_service

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/login", response_model=LoginResponse)
@limiter.limit(AUTH_LIMIT)
def login(request: Request, body: LoginRequest, db: Session = Depends(get_db)):
    """
    Log in with email and password.

    Super admins use their own password; organization members use the
    organization's shared password and must be whitelisted.
    """
    try:
        result = auth_service.login(db, body.email, body.password)
    except auth_service.LoginError as e:
        raise HTTPException(status_code=401, detail={"message": str(e), "code": e.code})

    logger.info("Login succeeded user=%s type=%s", result.account.id, result.user_type.value)
    return LoginResponse(
        user=auth_service.to_user_read(result.account),
        user_type=result.user_type,
        tokens=result.tokens,
    )


@router.post("/refresh", response_model=RefreshResponse)
def refresh(body: RefreshRequest, db: Session = Depends(get_db)):
    try:
        tokens = auth_service.refresh_tokens(db, body.refresh_token)
    except ValueError as e:
        raise HTTPException(status_code=401, detail=str(e))
    return RefreshResponse(tokens=tokens)


@router.post("/logout", response_model=SuccessResponse)
def logout():
    """Tokens are stateless; the client drops them."""
    return SuccessResponse(message="Logged out successfully")


@router.get("/me", response_model=MeResponse)
def me(
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    account = auth_service.get_account(db, session)
    if not account:
        raise HTTPException(status_code=401, detail="User not found")
    return MeResponse(
        user=auth_service.to_user_read(account),
        user_type=session.role,
        organization_id=session.org_id,
        permissions=permissions_for(session.role).as_dict(),
    )


@router.get("/check-email/{email}", response_model=CheckEmailResponse)
def check_email(email: str, db: Session = Depends(get_db)):
    return auth_service.check_email(db, email)


@router.post("/change-org-password", response_model=SuccessResponse)
def change_org_password(
    body: ChangeOrgPasswordRequest,
    session: UserSession = Depends(require_roles([Role.NONPROFIT_ADMIN, Role.SUPER_ADMIN])),
    db: Session = Depends(get_db),
):
    try:
        org = auth_service.change_org_password(
            db,
            session,
            body.new_password,
            body.confirm_password,
            body.organization_id,
        )
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return SuccessResponse(message=f"Password updated for {org.name}")


@router.get("/organizations", response_model=OrganizationOptionsResponse)
def list_organizations(
    session: UserSession = Depends(require_roles([Role.SUPER_ADMIN])),
    db: Session = Depends(get_db),
):
    orgs = auth_service.list_active_organizations(db)
    return OrganizationOptionsResponse(
        organizations=[
            OrganizationOption(id=o.id, name=o.name, is_active=o.is_active) for o in orgs
        ]
    )
