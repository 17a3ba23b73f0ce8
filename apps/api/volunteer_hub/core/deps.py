"""FastAPI dependencies for authentication, authorization, and database access."""

from typing import Generator
from uuid import UUID

from fastapi import Depends, HTTPException, Request
from sqlalchemy.orm import Session

from volunteer_hub.core.security import ACCESS_TOKEN_TYPE, decode_token
from volunteer_hub.db.enums import ORG_ROLES, Role
from volunteer_hub.db.session import SessionLocal
from volunteer_hub.schemas.auth import UserSession

AUTH_HEADER = "Authorization"
BEARER_PREFIX = "bearer "
ORG_OVERRIDE_HEADER = "X-Organization-Id"


def get_db() -> Generator[Session, None, None]:
    """
    Database session dependency.

    Yields a database session and ensures it's closed after the request.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def _bearer_token(request: Request) -> str | None:
    header = request.headers.get(AUTH_HEADER, "")
    if not header.lower().startswith(BEARER_PREFIX):
        return None
    token = header[len(BEARER_PREFIX):].strip()
    return token or None


def get_current_session(
    request: Request,
    db: Session = Depends(get_db),
) -> UserSession:
    """
    Resolve the caller from the bearer access token.

    This is the PRIMARY auth dependency for most endpoints.

    Validates:
    - Authorization header carries a bearer token
    - JWT is a valid, unexpired access token
    - Account exists and is active (and its organization, for members)

    Raises:
        HTTPException 401: Authentication failed
    """
    # Import here to avoid circular imports
    from volunteer_hub.db.models import SuperAdmin, User

    token = _bearer_token(request)
    if not token:
        raise HTTPException(status_code=401, detail="Not authenticated")

    try:
        payload = decode_token(token, ACCESS_TOKEN_TYPE)
    except Exception:
        raise HTTPException(status_code=401, detail="Invalid session")

    user_type = payload.get("user_type")
    if not user_type or not Role.has_value(user_type):
        raise HTTPException(status_code=401, detail="Invalid session")

    try:
        subject = UUID(payload["sub"])
    except (KeyError, ValueError):
        raise HTTPException(status_code=401, detail="Invalid session")

    if user_type == Role.SUPER_ADMIN.value:
        admin = db.get(SuperAdmin, subject)
        if not admin:
            raise HTTPException(status_code=401, detail="User not found")
        if not admin.is_active:
            raise HTTPException(status_code=401, detail="Account disabled")
        return UserSession(user_id=admin.id, email=admin.email, role=Role.SUPER_ADMIN)

    user = db.get(User, subject)
    if not user:
        raise HTTPException(status_code=401, detail="User not found")
    if not user.is_active or not user.organization.is_active:
        raise HTTPException(status_code=401, detail="Account disabled")

    # Role comes from the database so demotions apply immediately
    if not Role.has_value(user.role) or Role(user.role) not in ORG_ROLES:
        raise HTTPException(status_code=401, detail="Invalid session")

    return UserSession(
        user_id=user.id,
        email=user.email,
        role=Role(user.role),
        org_id=user.organization_id,
        org_name=user.organization.name,
    )


def get_current_user(
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """
    Get the organization member behind the session.

    Raises:
        HTTPException 403: Caller is a super admin (no member record)
    """
    from volunteer_hub.db.models import User

    if session.role == Role.SUPER_ADMIN:
        raise HTTPException(status_code=403, detail="Not available for super admin accounts")
    user = db.get(User, session.user_id)
    if not user:
        raise HTTPException(status_code=401, detail="User not found")
    return user


def get_org_session(
    request: Request,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
) -> UserSession:
    """
    Session with a guaranteed organization scope.

    Every list/detail query MUST filter by session.org_id to ensure
    proper tenant isolation. Super admins act on an organization by
    sending its id in the X-Organization-Id header.
    """
    if session.org_id:
        return session

    from volunteer_hub.db.models import Organization

    raw_org_id = request.headers.get(ORG_OVERRIDE_HEADER)
    if not raw_org_id:
        raise HTTPException(status_code=403, detail="Organization context required")
    try:
        org_id = UUID(raw_org_id)
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid organization id")
    org = db.get(Organization, org_id)
    if not org:
        raise HTTPException(status_code=404, detail="Organization not found")
    return session.model_copy(update={"org_id": org.id, "org_name": org.name})


def require_roles(allowed_roles: list, org_scoped: bool = False):
    """
    Dependency factory for role-based authorization.

    Uses enum values (not strings) to prevent drift.

    Usage:
        @router.post("/admin", dependencies=[Depends(require_roles([Role.NONPROFIT_ADMIN]))])
    """
    def dependency(
        request: Request,
        session: UserSession = Depends(get_current_session),
        db: Session = Depends(get_db),
    ) -> UserSession:
        if session.role not in allowed_roles:
            raise HTTPException(
                status_code=403,
                detail=f"Role '{session.role.value}' not authorized for this action",
            )
        if org_scoped:
            return get_org_session(request, session, db)
        return session
    return dependency


# =============================================================================
# Permission Check Helpers (use enum sets from db.enums)
# =============================================================================

def can_manage_org(session: UserSession) -> bool:
    """Check if user can manage volunteers, tasks, events, and documents."""
    from volunteer_hub.db.enums import ROLES_CAN_MANAGE_ORG
    return session.role in ROLES_CAN_MANAGE_ORG


def can_see_admin_content(session: UserSession) -> bool:
    """Check if user can see admin-only documents and attendee lists."""
    from volunteer_hub.db.enums import ROLES_CAN_SEE_ADMIN_CONTENT
    return session.role in ROLES_CAN_SEE_ADMIN_CONTENT
