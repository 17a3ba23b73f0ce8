"""Pydantic schemas for whitelisted users (super admin and nonprofit admin)."""

from datetime import date, datetime
from uuid import UUID

from pydantic import BaseModel, Field

from volunteer_hub.db.enums import Role


class ManagedUserRead(BaseModel):
    """Whitelist entry joined with the user record (if the user has logged in)."""
    email: str
    role: Role
    organization_id: UUID
    organization_name: str | None = None
    is_active: bool
    admin_notes: str | None = None
    added_by: str | None = None
    added_at: datetime
    user_id: UUID | None = None
    display_name: str
    first_name: str | None = None
    last_name: str | None = None
    phone: str | None = None
    address: str | None = None
    birthday: date | None = None
    login_count: int = 0
    last_login: datetime | None = None


class ManagedUserListResponse(BaseModel):
    success: bool = True
    users: list[ManagedUserRead]


class ManagedUserResponse(BaseModel):
    success: bool = True
    message: str | None = None
    user: ManagedUserRead


class WhitelistUserCreate(BaseModel):
    """Super admin adds an email to an organization."""
    email: str = Field(..., min_length=3, max_length=255)
    organization_id: UUID = Field(..., alias="organizationId")
    role: Role = Role.VOLUNTEER
    notes: str | None = None

    model_config = {"populate_by_name": True}


class RoleUpdate(BaseModel):
    role: Role
    organization_id: UUID = Field(..., alias="organizationId")

    model_config = {"populate_by_name": True}


class ManagedUserUpdate(BaseModel):
    """Comprehensive edit path; writes the canonical profile columns."""
    role: Role | None = None
    organization_id: UUID | None = Field(None, alias="organizationId")
    notes: str | None = None
    first_name: str | None = Field(None, alias="firstName", max_length=100)
    last_name: str | None = Field(None, alias="lastName", max_length=100)
    phone: str | None = Field(None, max_length=50)

    model_config = {"populate_by_name": True}


class VolunteerCreate(BaseModel):
    """Nonprofit admin adds a volunteer to their own organization."""
    name: str | None = Field(None, max_length=200)
    email: str = Field(..., min_length=3, max_length=255)
    role: Role = Role.VOLUNTEER
    notes: str | None = None


class VolunteerUpdate(BaseModel):
    name: str | None = Field(None, max_length=200)
    role: Role | None = None
    notes: str | None = None
    phone: str | None = Field(None, max_length=50)
    is_active: bool | None = None


class VolunteerStats(BaseModel):
    total: int = 0
    admins: int = 0
    volunteers: int = 0
    active: int = 0
    never_logged_in: int = 0
    active_this_week: int = 0
    new_this_month: int = 0


class VolunteerStatsResponse(BaseModel):
    success: bool = True
    stats: VolunteerStats
