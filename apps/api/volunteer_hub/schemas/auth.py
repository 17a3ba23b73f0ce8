"""Pydantic schemas for authentication and the caller's profile."""

from datetime import date, datetime
from uuid import UUID

from pydantic import BaseModel, Field

from volunteer_hub.db.enums import Role


class UserSession(BaseModel):
    """Authenticated caller context resolved from the access token."""
    user_id: UUID
    email: str
    role: Role
    org_id: UUID | None = None
    org_name: str | None = None

    @property
    def is_admin(self) -> bool:
        return self.role in (Role.NONPROFIT_ADMIN, Role.SUPER_ADMIN)

    @property
    def member_id(self) -> UUID | None:
        """User id for authorship columns; super admins are not members."""
        return None if self.role == Role.SUPER_ADMIN else self.user_id


class LoginRequest(BaseModel):
    email: str = Field(..., min_length=3, max_length=255)
    password: str = Field(..., min_length=1)


class RefreshRequest(BaseModel):
    refresh_token: str = Field(..., alias="refreshToken")

    model_config = {"populate_by_name": True}


class TokenPair(BaseModel):
    access_token: str = Field(..., alias="accessToken")
    refresh_token: str = Field(..., alias="refreshToken")

    model_config = {"populate_by_name": True}


class UserRead(BaseModel):
    """Caller profile as returned by login and /auth/me."""
    id: UUID
    email: str
    role: Role
    display_name: str
    first_name: str | None = None
    last_name: str | None = None
    phone: str | None = None
    address: str | None = None
    birthday: date | None = None
    organization_id: UUID | None = None
    organization_name: str | None = None
    profile_completed: bool = False
    login_count: int = 0
    last_login: datetime | None = None


class LoginResponse(BaseModel):
    success: bool = True
    message: str = "Login successful"
    user: UserRead
    user_type: Role = Field(..., alias="userType")
    tokens: TokenPair

    model_config = {"populate_by_name": True}


class RefreshResponse(BaseModel):
    success: bool = True
    tokens: TokenPair


class MeResponse(BaseModel):
    success: bool = True
    user: UserRead
    user_type: Role = Field(..., alias="userType")
    organization_id: UUID | None = Field(None, alias="organizationId")
    permissions: dict[str, bool] = Field(default_factory=dict)

    model_config = {"populate_by_name": True}


class CheckEmailResponse(BaseModel):
    """Pre-login whitelist lookup."""
    allowed: bool
    organization: str | None = None
    role: str | None = None
    user_type: str | None = Field(None, alias="userType")
    message: str

    model_config = {"populate_by_name": True}


class ChangeOrgPasswordRequest(BaseModel):
    new_password: str = Field(..., alias="newPassword")
    confirm_password: str = Field(..., alias="confirmPassword")
    organization_id: UUID | None = Field(None, alias="organizationId")

    model_config = {"populate_by_name": True}


class UserProfile(BaseModel):
    """
    Canonical profile write model.

    The only path that writes name/contact fields for a user.
    """
    first_name: str = Field(..., min_length=1, max_length=100, alias="firstName")
    last_name: str = Field(..., min_length=1, max_length=100, alias="lastName")
    email: str = Field(..., min_length=3, max_length=255)
    phone: str | None = Field(None, max_length=50)
    address: str | None = None
    birthday: date | None = None

    model_config = {"populate_by_name": True}


class ProfileResponse(BaseModel):
    success: bool = True
    message: str = "Profile updated successfully"
    user: UserRead


class OrganizationOption(BaseModel):
    id: UUID
    name: str
    is_active: bool


class OrganizationOptionsResponse(BaseModel):
    success: bool = True
    organizations: list[OrganizationOption]
