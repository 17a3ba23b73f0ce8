"""Pydantic schemas for organizations (super admin)."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field


class OrganizationCreate(BaseModel):
    """
    Create an organization, optionally provisioning its first admin.

    The admin's whitelist entry is created in the same transaction.
    """
    name: str = Field(..., min_length=1, max_length=255)
    password: str
    description: str | None = None
    website: str | None = Field(None, max_length=255)
    phone: str | None = Field(None, max_length=50)
    address: str | None = None
    contact_email: str | None = Field(None, alias="contactEmail", max_length=255)
    nonprofit_admin_email: str | None = Field(None, alias="nonprofitAdminEmail")
    nonprofit_admin_notes: str | None = Field(None, alias="nonprofitAdminNotes")

    model_config = {"populate_by_name": True}


class OrganizationUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=255)
    description: str | None = None
    website: str | None = Field(None, max_length=255)
    phone: str | None = Field(None, max_length=50)
    address: str | None = None
    contact_email: str | None = Field(None, alias="contactEmail", max_length=255)

    model_config = {"populate_by_name": True}


class OrganizationStatusUpdate(BaseModel):
    is_active: bool


class OrganizationRead(BaseModel):
    id: UUID
    name: str
    description: str | None = None
    website: str | None = None
    phone: str | None = None
    address: str | None = None
    contact_email: str | None = None
    is_active: bool
    created_at: datetime
    updated_at: datetime
    user_count: int = 0
    task_count: int = 0
    document_count: int = 0

    model_config = {"from_attributes": True}


class OrganizationListResponse(BaseModel):
    success: bool = True
    organizations: list[OrganizationRead]


class OrganizationResponse(BaseModel):
    success: bool = True
    message: str | None = None
    organization: OrganizationRead
