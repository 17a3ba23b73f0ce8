"""User service - whitelist and member management.

Super admins manage members of any organization; nonprofit admins manage
volunteers of their own organization. Members are always addressed by
exact email.
"""

import json
import logging
from datetime import timedelta
from uuid import UUID

from sqlalchemy.orm import Session

from volunteer_hub.db.enums import ORG_ROLES, Role
from volunteer_hub.db.models import Organization, SuperAdmin, User, WhitelistedEmail
from volunteer_hub.schemas.user import (
    ManagedUserRead, ManagedUserUpdate, RoleUpdate, VolunteerCreate,
    VolunteerStats, VolunteerUpdate, WhitelistUserCreate,
)
from volunteer_hub.services import email_service
from volunteer_hub.utils.dates import as_utc, parse_datetime, utc_now
from volunteer_hub.utils.names import display_name, parse_notes, sync_legacy_notes
from volunteer_hub.utils.normalization import clean_optional, normalize_email, split_full_name

logger = logging.getLogger(__name__)

EMAIL_IN_USE = "User with this email already exists"
USER_NOT_FOUND = "User not found"


# =============================================================================
# Queries
# =============================================================================

def _check_org_role(role: Role) -> None:
    if role not in ORG_ROLES:
        raise ValueError(f"Invalid role: {role.value}")


def _users_by_email(db: Session, emails: set[str]) -> dict[str, User]:
    if not emails:
        return {}
    return {u.email: u for u in db.query(User).filter(User.email.in_(emails)).all()}


def _entry(db: Session, email: str, org_id: UUID | None = None) -> WhitelistedEmail | None:
    query = db.query(WhitelistedEmail).filter(WhitelistedEmail.email == email)
    if org_id:
        query = query.filter(WhitelistedEmail.organization_id == org_id)
    return query.order_by(WhitelistedEmail.created_at).first()


def email_in_use(db: Session, email: str) -> bool:
    """Emails are unique across super admins, whitelists, and users."""
    return bool(
        db.query(SuperAdmin.id).filter(SuperAdmin.email == email).first()
        or db.query(WhitelistedEmail.id).filter(WhitelistedEmail.email == email).first()
        or db.query(User.id).filter(User.email == email).first()
    )


def to_managed_user(entry: WhitelistedEmail, user: User | None) -> ManagedUserRead:
    return ManagedUserRead(
        email=entry.email,
        role=Role(user.role if user else entry.role),
        organization_id=entry.organization_id,
        organization_name=entry.organization.name if entry.organization else None,
        is_active=entry.is_active and (user.is_active if user else True),
        admin_notes=(user.admin_notes if user and user.admin_notes else entry.admin_notes),
        added_by=entry.added_by,
        added_at=entry.created_at,
        user_id=user.id if user else None,
        display_name=display_name(user or entry),
        first_name=user.first_name if user else None,
        last_name=user.last_name if user else None,
        phone=user.phone if user else None,
        address=user.address if user else None,
        birthday=user.birthday if user else None,
        login_count=user.login_count if user else 0,
        last_login=user.last_login if user else None,
    )


def list_managed_users(db: Session, org_id: UUID | None = None) -> list[ManagedUserRead]:
    """Whitelist entries (optionally for one organization) joined with users."""
    query = db.query(WhitelistedEmail)
    if org_id:
        query = query.filter(WhitelistedEmail.organization_id == org_id)
    entries = query.order_by(WhitelistedEmail.created_at.desc()).all()
    users = _users_by_email(db, {e.email for e in entries})
    result = []
    for entry in entries:
        user = users.get(entry.email)
        if user and user.organization_id != entry.organization_id:
            user = None
        result.append(to_managed_user(entry, user))
    return result


def get_managed_user(db: Session, email: str, org_id: UUID | None = None) -> ManagedUserRead:
    """
    Raises:
        LookupError: No whitelist entry for the email
    """
    normalized = normalize_email(email) or ""
    entry = _entry(db, normalized, org_id)
    if not entry:
        raise LookupError(USER_NOT_FOUND)
    user = _member(db, entry)
    return to_managed_user(entry, user)


def _member(db: Session, entry: WhitelistedEmail) -> User | None:
    return db.query(User).filter(
        User.email == entry.email,
        User.organization_id == entry.organization_id,
    ).first()


# =============================================================================
# Super admin mutations
# =============================================================================

def add_whitelisted_user(
    db: Session,
    data: WhitelistUserCreate,
    added_by: str | None = None,
) -> ManagedUserRead:
    """
    Whitelist an email for an active organization.

    Raises:
        ValueError: Invalid email/role, inactive organization, email in use
        LookupError: Organization not found
    """
    email = normalize_email(data.email)
    if not email or "@" not in email:
        raise ValueError("A valid email is required")
    _check_org_role(data.role)

    org = db.get(Organization, data.organization_id)
    if not org:
        raise LookupError("Organization not found")
    if not org.is_active:
        raise ValueError("Organization is not active")
    if email_in_use(db, email):
        raise ValueError(EMAIL_IN_USE)

    entry = WhitelistedEmail(
        email=email,
        organization_id=org.id,
        role=data.role.value,
        admin_notes=clean_optional(data.notes),
        added_by=added_by,
    )
    db.add(entry)
    db.commit()
    db.refresh(entry)
    logger.info("Whitelisted user org=%s role=%s", org.id, entry.role)
    return to_managed_user(entry, None)


def update_role(db: Session, email: str, data: RoleUpdate) -> ManagedUserRead:
    """
    Change a member's role in the given organization.

    Raises:
        ValueError: Role is not an organization role
        LookupError: Email not whitelisted in that organization
    """
    _check_org_role(data.role)
    entry = _entry(db, normalize_email(email) or "", data.organization_id)
    if not entry:
        raise LookupError("User not found in this organization")

    entry.role = data.role.value
    user = _member(db, entry)
    if user:
        user.role = data.role.value
    db.commit()
    db.refresh(entry)
    return to_managed_user(entry, user)


def update_managed_user(db: Session, email: str, data: ManagedUserUpdate) -> ManagedUserRead:
    """
    Comprehensive member edit.

    Moving to another organization moves the whitelist entry and the user
    record together. Profile fields are written to the canonical columns and mirrored
    into any legacy notes; a user record is created if the member has never logged in.

    Raises:
        ValueError: Empty update, invalid role, inactive target organization
        LookupError: Unknown email or target organization
    """
    update_data = data.model_dump(exclude_unset=True)
    if not update_data:
        raise ValueError("No fields to update")

    entry = _entry(db, normalize_email(email) or "")
    if not entry:
        raise LookupError(USER_NOT_FOUND)
    user = _member(db, entry)

    target_org_id = update_data.get("organization_id")
    if target_org_id and target_org_id != entry.organization_id:
        org = db.get(Organization, target_org_id)
        if not org:
            raise LookupError("Organization not found")
        if not org.is_active:
            raise ValueError("Organization is not active")
        entry.organization_id = org.id
        if user:
            user.organization_id = org.id

    role = update_data.get("role")
    if role:
        _check_org_role(role)
        entry.role = role.value
        if user:
            user.role = role.value

    if "notes" in update_data:
        entry.admin_notes = clean_optional(update_data["notes"])
        if user:
            user.admin_notes = entry.admin_notes

    profile_fields = {"first_name", "last_name", "phone"} & update_data.keys()
    if profile_fields:
        if not user:
            user = User(
                email=entry.email,
                organization_id=entry.organization_id,
                role=entry.role,
                admin_notes=entry.admin_notes,
            )
            db.add(user)
        for field in profile_fields:
            setattr(user, field, clean_optional(update_data[field]))
        sync_legacy_notes(user, profile_fields)

    db.commit()
    db.refresh(entry)
    return to_managed_user(entry, user)


def remove_user(db: Session, email: str, org_id: UUID | None = None) -> int:
    """
    Hard delete whitelist entries and the user record for an exact email.

    With org_id, only that organization's entry (and member) is removed.
    Returns the number of whitelist entries removed.

    Raises:
        LookupError: Nothing matched
    """
    normalized = normalize_email(email) or ""
    query = db.query(WhitelistedEmail).filter(WhitelistedEmail.email == normalized)
    if org_id:
        query = query.filter(WhitelistedEmail.organization_id == org_id)
    entries = query.all()

    user_query = db.query(User).filter(User.email == normalized)
    if org_id:
        user_query = user_query.filter(User.organization_id == org_id)
    user = user_query.first()

    if not entries and not user:
        raise LookupError(USER_NOT_FOUND)

    for entry in entries:
        db.delete(entry)
    if user:
        db.delete(user)
    db.commit()
    logger.info("Removed member entries=%s user=%s org=%s", len(entries), bool(user), org_id)
    return len(entries)


# =============================================================================
# Nonprofit admin volunteer management
# =============================================================================

def list_volunteers(db: Session, org_id: UUID) -> list[ManagedUserRead]:
    return list_managed_users(db, org_id)


def add_volunteer(
    db: Session,
    org_id: UUID,
    data: VolunteerCreate,
    added_by: str | None = None,
) -> ManagedUserRead:
    """
    Whitelist a volunteer for the admin's organization.

    The full name is split into first/last name. The user record is created
    (or re-attached when it exists without a whitelist entry) and a welcome
    e-mail is sent.

    Raises:
        ValueError: Invalid email/role or email already whitelisted
    """
    email = normalize_email(data.email)
    if not email or "@" not in email:
        raise ValueError("A valid email is required")
    _check_org_role(data.role)

    if db.query(WhitelistedEmail.id).filter(WhitelistedEmail.email == email).first():
        raise ValueError(EMAIL_IN_USE)
    if db.query(SuperAdmin.id).filter(SuperAdmin.email == email).first():
        raise ValueError(EMAIL_IN_USE)

    org = db.get(Organization, org_id)
    first_name, last_name = split_full_name(data.name)
    notes = clean_optional(data.notes)

    entry = WhitelistedEmail(
        email=email,
        organization_id=org_id,
        role=data.role.value,
        admin_notes=notes,
        added_by=added_by,
    )
    db.add(entry)

    user = db.query(User).filter(User.email == email).first()
    if user:
        user.organization_id = org_id
        user.role = data.role.value
        user.is_active = True
    else:
        user = User(email=email, organization_id=org_id, role=data.role.value)
        db.add(user)
    if first_name:
        user.first_name = first_name
        user.last_name = last_name
    if notes:
        user.admin_notes = notes

    db.commit()
    db.refresh(entry)
    db.refresh(user)
    logger.info("Volunteer added org=%s role=%s", org_id, entry.role)

    email_service.send_welcome(
        to_email=email,
        name=display_name(user),
        org_name=org.name if org else None,
        role=entry.role,
    )
    return to_managed_user(entry, user)


def update_volunteer(
    db: Session,
    org_id: UUID,
    email: str,
    data: VolunteerUpdate,
) -> ManagedUserRead:
    """
    Raises:
        ValueError: Empty update or invalid role
        LookupError: Email not whitelisted in this organization
    """
    update_data = data.model_dump(exclude_unset=True)
    if not update_data:
        raise ValueError("No fields to update")

    entry = _entry(db, normalize_email(email) or "", org_id)
    if not entry:
        raise LookupError("Volunteer not found")
    user = _member(db, entry)

    if update_data.get("role"):
        _check_org_role(data.role)
        entry.role = data.role.value
        if user:
            user.role = data.role.value
    if "notes" in update_data:
        entry.admin_notes = clean_optional(data.notes)
        if user:
            user.admin_notes = entry.admin_notes
    if update_data.get("is_active") is not None:
        entry.is_active = data.is_active
        if user:
            user.is_active = data.is_active
    if user:
        written = []
        if "name" in update_data:
            user.first_name, user.last_name = split_full_name(data.name)
            written += ["first_name", "last_name"]
        if "phone" in update_data:
            user.phone = clean_optional(data.phone)
            written.append("phone")
        sync_legacy_notes(user, written)

    db.commit()
    db.refresh(entry)
    return to_managed_user(entry, user)


def remove_volunteer(db: Session, org_id: UUID, email: str, actor_email: str | None = None) -> None:
    """
    Raises:
        ValueError: Admin removing their own account
        LookupError: Email not in this organization
    """
    normalized = normalize_email(email) or ""
    if actor_email and normalized == normalize_email(actor_email):
        raise ValueError("You cannot remove your own account")
    remove_user(db, normalized, org_id)


def volunteer_stats(db: Session, org_id: UUID) -> VolunteerStats:
    members = list_managed_users(db, org_id)
    now = utc_now()
    week_ago = now - timedelta(days=7)
    month_start = now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    return VolunteerStats(
        total=len(members),
        admins=sum(1 for m in members if m.role == Role.NONPROFIT_ADMIN),
        volunteers=sum(1 for m in members if m.role == Role.VOLUNTEER),
        active=sum(1 for m in members if m.is_active),
        never_logged_in=sum(1 for m in members if not m.last_login),
        active_this_week=sum(
            1 for m in members if m.last_login and as_utc(m.last_login) >= week_ago
        ),
        new_this_month=sum(1 for m in members if as_utc(m.added_at) >= month_start),
    )


# =============================================================================
# Legacy profile notes
# =============================================================================

_LEGACY_FIELDS = {
    "firstName": "first_name",
    "lastName": "last_name",
    "phone": "phone",
    "address": "address",
    "adminNotes": "admin_notes",
}


def migrate_legacy_notes(db: Session) -> int:
    """
    Lift legacy notes JSON into the profile columns.

    Columns that already hold a value win. Notes that are not JSON are kept
    as admin notes when none are set. Returns the number of users updated.
    """
    users = db.query(User).filter(User.legacy_notes.is_not(None)).all()
    migrated = 0
    for user in users:
        notes = parse_notes(user.legacy_notes)
        if notes is None:
            if not user.admin_notes and user.legacy_notes.strip():
                user.admin_notes = user.legacy_notes.strip()
        else:
            for key, column in _LEGACY_FIELDS.items():
                value = notes.get(key)
                if value and str(value).strip() != "Not set" and not getattr(user, column):
                    setattr(user, column, str(value).strip())
            if notes.get("volunteerName") and not user.first_name:
                user.first_name, user.last_name = split_full_name(str(notes["volunteerName"]))
            if notes.get("birthday") and not user.birthday:
                try:
                    user.birthday = parse_datetime(str(notes["birthday"])).date()
                except ValueError:
                    logger.warning("Skipping unparseable legacy birthday user=%s", user.id)
            if notes.get("profileCompleted"):
                user.profile_completed = True
        user.legacy_notes = None
        migrated += 1

    db.commit()
    logger.info("Migrated legacy profile notes users=%s", migrated)
    return migrated


def legacy_notes_json(first_name: str, last_name: str, admin_notes: str | None = None) -> str:
    """Notes JSON in the legacy shape (used by fixtures and seed data)."""
    return json.dumps({"firstName": first_name, "lastName": last_name, "adminNotes": admin_notes or ""})
