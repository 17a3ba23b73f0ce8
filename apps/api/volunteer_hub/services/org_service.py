"""Organization service - super admin operations across all tenants.

Do NOT reuse org-scoped services here; these functions read every tenant.
"""

import logging
from datetime import timedelta
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.orm import Session

from volunteer_hub.core.config import settings
from volunteer_hub.core.security import hash_password
from volunteer_hub.db.enums import Role, TaskStatus
from volunteer_hub.db.models import Document, Organization, Task, User, WhitelistedEmail
from volunteer_hub.schemas.organization import (
    OrganizationCreate, OrganizationRead, OrganizationUpdate,
)
from volunteer_hub.utils.dates import as_utc, utc_now
from volunteer_hub.utils.normalization import clean_optional, normalize_email

logger = logging.getLogger(__name__)

DEFAULT_ADMIN_NOTES = "Initial admin added during organization creation"
TOP_ORGANIZATIONS_LIMIT = 5
RECENT_ORGANIZATIONS_LIMIT = 5


def get_org_by_id(db: Session, org_id: UUID) -> Organization | None:
    return db.query(Organization).filter(Organization.id == org_id).first()


def get_org_by_name(db: Session, name: str) -> Organization | None:
    """Case-insensitive name lookup."""
    return (
        db.query(Organization)
        .filter(func.lower(Organization.name) == name.strip().lower())
        .first()
    )


# =============================================================================
# Counts
# =============================================================================

def _count_by_org(db: Session, column) -> dict[UUID, int]:
    rows = db.query(column, func.count()).group_by(column).all()
    return {org_id: count for org_id, count in rows}


def list_organizations(db: Session) -> list[OrganizationRead]:
    """All organizations, newest first, with member/task/document counts."""
    orgs = db.query(Organization).order_by(Organization.created_at.desc()).all()
    user_counts = _count_by_org(db, User.organization_id)
    task_counts = _count_by_org(db, Task.organization_id)
    document_counts = _count_by_org(db, Document.organization_id)
    return [
        to_organization_read(
            org,
            user_count=user_counts.get(org.id, 0),
            task_count=task_counts.get(org.id, 0),
            document_count=document_counts.get(org.id, 0),
        )
        for org in orgs
    ]


def to_organization_read(
    org: Organization,
    user_count: int = 0,
    task_count: int = 0,
    document_count: int = 0,
) -> OrganizationRead:
    return OrganizationRead(
        id=org.id,
        name=org.name,
        description=org.description,
        website=org.website,
        phone=org.phone,
        address=org.address,
        contact_email=org.contact_email,
        is_active=org.is_active,
        created_at=org.created_at,
        updated_at=org.updated_at,
        user_count=user_count,
        task_count=task_count,
        document_count=document_count,
    )


# =============================================================================
# Mutations
# =============================================================================

def create_organization(
    db: Session,
    data: OrganizationCreate,
    added_by: str | None = None,
) -> Organization:
    """
    Create an organization and, optionally, whitelist its first admin.

    Both rows are written in one transaction.

    Raises:
        ValueError: Missing/duplicate name, short password, or admin email
            already whitelisted in any organization
    """
    name = data.name.strip()
    if not name:
        raise ValueError("Organization name is required")
    if len(data.password or "") < settings.ORG_PASSWORD_MIN_LENGTH:
        raise ValueError(
            f"Password must be at least {settings.ORG_PASSWORD_MIN_LENGTH} characters long"
        )
    if get_org_by_name(db, name):
        raise ValueError("An organization with this name already exists")

    admin_email = normalize_email(data.nonprofit_admin_email)
    if admin_email:
        existing = db.query(WhitelistedEmail).filter(
            WhitelistedEmail.email == admin_email
        ).first()
        if existing:
            raise ValueError("This email is already whitelisted for an organization")

    org = Organization(
        name=name,
        description=clean_optional(data.description),
        website=clean_optional(data.website),
        phone=clean_optional(data.phone),
        address=clean_optional(data.address),
        contact_email=normalize_email(data.contact_email),
        shared_password_hash=hash_password(data.password),
    )
    db.add(org)
    db.flush()

    if admin_email:
        db.add(WhitelistedEmail(
            email=admin_email,
            organization_id=org.id,
            role=Role.NONPROFIT_ADMIN.value,
            admin_notes=clean_optional(data.nonprofit_admin_notes) or DEFAULT_ADMIN_NOTES,
            added_by=added_by,
        ))

    db.commit()
    db.refresh(org)
    logger.info("Organization created id=%s with_admin=%s", org.id, bool(admin_email))
    return org


def update_organization(
    db: Session,
    org: Organization,
    data: OrganizationUpdate,
) -> Organization:
    """
    Partial update of organization details.

    Raises:
        ValueError: Empty update or name taken by another organization
    """
    update_data = data.model_dump(exclude_unset=True)
    if not update_data:
        raise ValueError("No fields to update")

    if "name" in update_data:
        name = (update_data["name"] or "").strip()
        if not name:
            raise ValueError("Organization name is required")
        other = get_org_by_name(db, name)
        if other and other.id != org.id:
            raise ValueError("An organization with this name already exists")
        update_data["name"] = name
    if "contact_email" in update_data:
        update_data["contact_email"] = normalize_email(update_data["contact_email"])

    for field, value in update_data.items():
        setattr(org, field, value)

    db.commit()
    db.refresh(org)
    return org


def set_organization_status(db: Session, org: Organization, is_active: bool) -> Organization:
    """Activate or deactivate; organizations are never deleted."""
    org.is_active = is_active
    db.commit()
    db.refresh(org)
    logger.info("Organization %s id=%s", "activated" if is_active else "deactivated", org.id)
    return org


# =============================================================================
# Dashboard
# =============================================================================

def platform_dashboard(db: Session) -> dict:
    """Totals, activity analytics, and the most recent organizations."""
    now = utc_now()
    week_ago = now - timedelta(days=7)
    month_start = now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)

    users = db.query(User).all()
    active_this_week = sum(
        1 for u in users if u.last_login and as_utc(u.last_login) >= week_ago
    )
    new_this_month = sum(
        1 for u in users if u.created_at and as_utc(u.created_at) >= month_start
    )

    stats = {
        "total_organizations": db.query(func.count(Organization.id)).scalar() or 0,
        "active_organizations": (
            db.query(func.count(Organization.id))
            .filter(Organization.is_active.is_(True))
            .scalar()
            or 0
        ),
        "total_users": len(users),
        "total_tasks": db.query(func.count(Task.id)).scalar() or 0,
        "total_documents": db.query(func.count(Document.id)).scalar() or 0,
    }

    organizations = list_organizations(db)
    top = sorted(organizations, key=lambda o: o.user_count, reverse=True)
    analytics = {
        "active_this_week": active_this_week,
        "total_logins": sum(u.login_count or 0 for u in users),
        "completed_tasks": (
            db.query(func.count(Task.id))
            .filter(Task.status == TaskStatus.COMPLETED.value)
            .scalar()
            or 0
        ),
        "pending_tasks": (
            db.query(func.count(Task.id))
            .filter(Task.status != TaskStatus.COMPLETED.value)
            .scalar()
            or 0
        ),
        "new_users_this_month": new_this_month,
        "top_organizations": [
            {"id": str(o.id), "name": o.name, "user_count": o.user_count}
            for o in top[:TOP_ORGANIZATIONS_LIMIT]
        ],
    }

    return {
        "stats": stats,
        "analytics": analytics,
        "recent_organizations": organizations[:RECENT_ORGANIZATIONS_LIMIT],
    }
