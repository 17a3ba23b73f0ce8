"""Auth service - login, token refresh, whitelist checks, and profile updates."""

import logging
from dataclasses import dataclass
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.orm import Session

from volunteer_hub.core.config import settings
from volunteer_hub.core.security import (
    REFRESH_TOKEN_TYPE, create_access_token, create_refresh_token, decode_token,
    hash_password, verify_password,
)
from volunteer_hub.db.enums import Role
from volunteer_hub.db.models import Organization, SuperAdmin, User, WhitelistedEmail
from volunteer_hub.schemas.auth import (
    CheckEmailResponse, TokenPair, UserProfile, UserRead, UserSession,
)
from volunteer_hub.utils.dates import utc_now
from volunteer_hub.utils.names import display_name, sync_legacy_notes
from volunteer_hub.utils.normalization import clean_optional, normalize_email

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid email or password"
EMAIL_NOT_WHITELISTED = "Email not whitelisted"


class LoginError(Exception):
    """Login rejected; `code` tells the client which failure it was."""

    def __init__(self, message: str, code: str):
        super().__init__(message)
        self.code = code


@dataclass
class LoginResult:
    account: User | SuperAdmin
    user_type: Role
    tokens: TokenPair


# =============================================================================
# Tokens
# =============================================================================

def issue_tokens(account: User | SuperAdmin) -> TokenPair:
    if isinstance(account, SuperAdmin):
        access = create_access_token(account.id, account.email, Role.SUPER_ADMIN.value)
        refresh = create_refresh_token(account.id, Role.SUPER_ADMIN.value)
    else:
        access = create_access_token(
            account.id,
            account.email,
            account.role,
            org_id=account.organization_id,
            org_name=account.organization.name,
        )
        refresh = create_refresh_token(account.id, account.role)
    return TokenPair(access_token=access, refresh_token=refresh)


def refresh_tokens(db: Session, refresh_token: str) -> TokenPair:
    """
    Exchange a refresh token for a new pair.

    Raises:
        ValueError: Token invalid, or the account/organization is no longer active
    """
    try:
        payload = decode_token(refresh_token, REFRESH_TOKEN_TYPE)
        subject = UUID(payload["sub"])
    except Exception:
        raise ValueError("Invalid refresh token")

    if payload.get("user_type") == Role.SUPER_ADMIN.value:
        admin = db.get(SuperAdmin, subject)
        if not admin or not admin.is_active:
            raise ValueError("Invalid refresh token")
        return issue_tokens(admin)

    user = db.get(User, subject)
    if not user or not user.is_active or not user.organization.is_active:
        raise ValueError("Invalid refresh token")
    return issue_tokens(user)


# =============================================================================
# Login
# =============================================================================

def _active_whitelist_entry(db: Session, email: str) -> WhitelistedEmail | None:
    return (
        db.query(WhitelistedEmail)
        .join(Organization, Organization.id == WhitelistedEmail.organization_id)
        .filter(
            WhitelistedEmail.email == email,
            WhitelistedEmail.is_active.is_(True),
            Organization.is_active.is_(True),
        )
        .order_by(WhitelistedEmail.created_at)
        .first()
    )


def get_super_admin_by_email(db: Session, email: str) -> SuperAdmin | None:
    return db.query(SuperAdmin).filter(SuperAdmin.email == email).first()


def _find_or_create_member(db: Session, entry: WhitelistedEmail) -> User:
    """User row for a whitelisted email, created on first login."""
    role = (
        Role.NONPROFIT_ADMIN.value
        if entry.role == Role.NONPROFIT_ADMIN.value
        else Role.VOLUNTEER.value
    )
    user = db.query(User).filter(User.email == entry.email).first()
    if not user:
        user = User(
            email=entry.email,
            organization_id=entry.organization_id,
            role=role,
            admin_notes=entry.admin_notes,
        )
        db.add(user)
        logger.info("Created user record on first login org=%s", entry.organization_id)
    else:
        user.organization_id = entry.organization_id
        user.role = role
    return user


def login(db: Session, email: str, password: str) -> LoginResult:
    """
    Authenticate a super admin (individual password) or an organization
    member (whitelisted email + organization shared password).

    Raises:
        LoginError: code "invalid_credentials" or "email_not_whitelisted"
    """
    normalized = normalize_email(email)
    if not normalized or not password:
        raise LoginError(INVALID_CREDENTIALS, "invalid_credentials")

    admin = get_super_admin_by_email(db, normalized)
    if admin and admin.is_active:
        if not verify_password(password, admin.password_hash):
            raise LoginError(INVALID_CREDENTIALS, "invalid_credentials")
        admin.last_login = utc_now()
        db.commit()
        db.refresh(admin)
        return LoginResult(admin, Role.SUPER_ADMIN, issue_tokens(admin))

    entry = _active_whitelist_entry(db, normalized)
    if not entry:
        raise LoginError(EMAIL_NOT_WHITELISTED, "email_not_whitelisted")

    if not verify_password(password, entry.organization.shared_password_hash):
        raise LoginError(INVALID_CREDENTIALS, "invalid_credentials")

    user = _find_or_create_member(db, entry)
    if not user.is_active:
        raise LoginError(INVALID_CREDENTIALS, "invalid_credentials")
    user.login_count = (user.login_count or 0) + 1
    user.last_login = utc_now()
    db.commit()
    db.refresh(user)

    return LoginResult(user, Role(user.role), issue_tokens(user))


# =============================================================================
# Lookups
# =============================================================================

def check_email(db: Session, email: str) -> CheckEmailResponse:
    """Whitelist lookup used by the login form before a password is entered."""
    normalized = normalize_email(email)
    if not normalized:
        return CheckEmailResponse(allowed=False, message="Email is required")

    admin = get_super_admin_by_email(db, normalized)
    if admin and admin.is_active:
        return CheckEmailResponse(
            allowed=True,
            role=Role.SUPER_ADMIN.value,
            user_type=Role.SUPER_ADMIN.value,
            message="Super admin account",
        )

    entry = _active_whitelist_entry(db, normalized)
    if not entry:
        return CheckEmailResponse(
            allowed=False,
            message="Email not authorized. Contact your organization administrator.",
        )
    user_type = (
        Role.NONPROFIT_ADMIN.value
        if entry.role == Role.NONPROFIT_ADMIN.value
        else Role.VOLUNTEER.value
    )
    return CheckEmailResponse(
        allowed=True,
        organization=entry.organization.name,
        role=entry.role,
        user_type=user_type,
        message=f"Email authorized for {entry.organization.name}",
    )


def to_user_read(account: User | SuperAdmin) -> UserRead:
    if isinstance(account, SuperAdmin):
        return UserRead(
            id=account.id,
            email=account.email,
            role=Role.SUPER_ADMIN,
            display_name=account.name or account.email,
            last_login=account.last_login,
        )
    return UserRead(
        id=account.id,
        email=account.email,
        role=Role(account.role),
        display_name=display_name(account),
        first_name=account.first_name,
        last_name=account.last_name,
        phone=account.phone,
        address=account.address,
        birthday=account.birthday,
        organization_id=account.organization_id,
        organization_name=account.organization.name,
        profile_completed=account.profile_completed,
        login_count=account.login_count,
        last_login=account.last_login,
    )


def get_account(db: Session, session: UserSession) -> User | SuperAdmin | None:
    if session.role == Role.SUPER_ADMIN:
        return db.get(SuperAdmin, session.user_id)
    return db.get(User, session.user_id)


def list_active_organizations(db: Session) -> list[Organization]:
    return (
        db.query(Organization)
        .filter(Organization.is_active.is_(True))
        .order_by(Organization.name)
        .all()
    )


# =============================================================================
# Mutations
# =============================================================================

def change_org_password(
    db: Session,
    session: UserSession,
    new_password: str,
    confirm_password: str,
    organization_id: UUID | None = None,
) -> Organization:
    """
    Rotate an organization's shared login password.

    Nonprofit admins change their own organization; super admins must name one.

    Raises:
        ValueError: Mismatch, too short, or missing organization
    """
    if new_password != confirm_password:
        raise ValueError("Passwords do not match")
    if len(new_password) < settings.ORG_PASSWORD_MIN_LENGTH:
        raise ValueError(
            f"Password must be at least {settings.ORG_PASSWORD_MIN_LENGTH} characters long"
        )

    if session.role == Role.SUPER_ADMIN:
        if not organization_id:
            raise ValueError("Organization ID is required")
        target_id = organization_id
    else:
        target_id = session.org_id

    org = db.get(Organization, target_id)
    if not org:
        raise LookupError("Organization not found")

    org.shared_password_hash = hash_password(new_password)
    db.commit()
    db.refresh(org)
    logger.info("Organization password changed org=%s by=%s", org.id, session.user_id)
    return org


def update_profile(db: Session, user: User, profile: UserProfile) -> User:
    """
    Write the canonical profile and mirror it into any legacy notes.

    Changing the email moves the user's whitelist entry with it so the
    next login still matches.

    Raises:
        ValueError: Email already used by another account
    """
    new_email = normalize_email(profile.email)
    if not new_email:
        raise ValueError("First name, last name, and email are required")

    if new_email != user.email:
        taken = db.query(User).filter(User.email == new_email, User.id != user.id).first()
        if taken or get_super_admin_by_email(db, new_email):
            raise ValueError("Email is already in use by another account")
        whitelisted = db.query(WhitelistedEmail).filter(
            func.lower(WhitelistedEmail.email) == new_email
        ).first()
        if whitelisted:
            raise ValueError("Email is already in use by another account")
        entry = db.query(WhitelistedEmail).filter(
            WhitelistedEmail.email == user.email,
            WhitelistedEmail.organization_id == user.organization_id,
        ).first()
        if entry:
            entry.email = new_email
        user.email = new_email

    user.first_name = profile.first_name.strip()
    user.last_name = profile.last_name.strip()
    user.phone = clean_optional(profile.phone)
    user.address = clean_optional(profile.address)
    user.birthday = profile.birthday
    sync_legacy_notes(user)
    user.profile_completed = True

    db.commit()
    db.refresh(user)
    return user
