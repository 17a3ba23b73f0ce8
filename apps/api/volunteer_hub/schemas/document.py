"""Pydantic schemas for documents."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from volunteer_hub.db.enums import DocumentCategory, DocumentVisibility


class DocumentUpdate(BaseModel):
    """Metadata update (partial). Used for pin toggling."""
    title: str | None = Field(None, min_length=1, max_length=255)
    description: str | None = Field(None, max_length=5000)
    category: DocumentCategory | None = None
    visibility: DocumentVisibility | None = None
    is_pinned: bool | None = None


class DocumentRead(BaseModel):
    id: UUID
    title: str
    description: str | None
    category: DocumentCategory
    visibility: DocumentVisibility
    is_pinned: bool
    file_name: str
    mime_type: str
    file_size: int
    file_size_mb: float
    uploaded_by: UUID | None
    uploaded_by_name: str | None = None
    created_at: datetime
    updated_at: datetime


class DocumentListResponse(BaseModel):
    success: bool = True
    documents: list[DocumentRead]


class DocumentResponse(BaseModel):
    success: bool = True
    message: str | None = None
    document: DocumentRead
