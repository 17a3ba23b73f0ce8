"""Document endpoints for uploads, downloads, and metadata."""

from io import BytesIO
from typing import Annotated
from urllib.parse import quote
from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from fastapi.responses import Response
from sqlalchemy.orm import Session

from volunteer_hub.core.config import settings
from volunteer_hub.core.deps import can_see_admin_content, get_db, get_org_session, require_roles
from volunteer_hub.db.enums import (
    DEFAULT_DOCUMENT_CATEGORY, DEFAULT_DOCUMENT_VISIBILITY, DocumentCategory,
    DocumentVisibility, Role,
)
from volunteer_hub.schemas.auth import UserSession
from volunteer_hub.schemas.common import SuccessResponse
from volunteer_hub.schemas.document import (
    DocumentListResponse, DocumentResponse, DocumentUpdate,
)
from volunteer_hub.services import document_service

router = APIRouter(prefix="/documents", tags=["documents"])

ADMIN_ROLES = [Role.NONPROFIT_ADMIN, Role.SUPER_ADMIN]


def _get_document_or_404(db: Session, document_id: UUID, session: UserSession):
    document = document_service.get_document(
        db,
        session.org_id,
        document_id,
        include_admin_only=can_see_admin_content(session),
    )
    if not document:
        raise HTTPException(status_code=404, detail="Document not found")
    return document


def _content_disposition(filename: str) -> str:
    ascii_name = filename.encode("ascii", "replace").decode("ascii").replace('"', "")
    return f"attachment; filename=\"{ascii_name}\"; filename*=UTF-8''{quote(filename)}"


@router.get("", response_model=DocumentListResponse)
def list_documents(
    category: DocumentCategory | None = None,
    session: UserSession = Depends(get_org_session),
    db: Session = Depends(get_db),
):
    """Pinned first, then newest. Volunteers never see admin-only documents."""
    documents = document_service.list_documents(
        db,
        session.org_id,
        include_admin_only=can_see_admin_content(session),
        category=category,
    )
    return DocumentListResponse(
        documents=[document_service.to_document_read(d) for d in documents]
    )


@router.post("", response_model=DocumentResponse, status_code=201)
async def upload_document(
    file: Annotated[UploadFile, File()],
    title: Annotated[str, Form()],
    description: Annotated[str | None, Form()] = None,
    category: Annotated[DocumentCategory, Form()] = DEFAULT_DOCUMENT_CATEGORY,
    visibility: Annotated[DocumentVisibility, Form()] = DEFAULT_DOCUMENT_VISIBILITY,
    is_pinned: Annotated[bool, Form()] = False,
    session: UserSession = Depends(require_roles(ADMIN_ROLES, org_scoped=True)),
    db: Session = Depends(get_db),
):
    """
    Upload a document.

    Size and MIME type are re-validated here regardless of client checks.
    """
    # At most one byte past the limit is read into memory.
    max_bytes = settings.max_upload_size_bytes
    content = await file.read(max_bytes + 1)
    if len(content) > max_bytes:
        raise HTTPException(
            status_code=400,
            detail=f"File size exceeds {settings.MAX_UPLOAD_SIZE_MB} MB limit",
        )
    file_obj = BytesIO(content)

    try:
        document = document_service.upload_document(
            db=db,
            org_id=session.org_id,
            user_id=session.member_id,
            file=file_obj,
            filename=file.filename or "untitled",
            content_type=file.content_type or "application/octet-stream",
            file_size=len(content),
            title=title,
            description=description,
            category=category,
            visibility=visibility,
            is_pinned=is_pinned,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return DocumentResponse(
        message="Document uploaded successfully",
        document=document_service.to_document_read(document),
    )


@router.get("/{document_id}", response_model=DocumentResponse)
def get_document(
    document_id: UUID,
    session: UserSession = Depends(get_org_session),
    db: Session = Depends(get_db),
):
    document = _get_document_or_404(db, document_id, session)
    return DocumentResponse(document=document_service.to_document_read(document))


@router.get("/{document_id}/download")
def download_document(
    document_id: UUID,
    session: UserSession = Depends(get_org_session),
    db: Session = Depends(get_db),
):
    """Stream the stored bytes with the original filename."""
    document = _get_document_or_404(db, document_id, session)
    try:
        data = document_service.read_file(document.storage_key)
    except FileNotFoundError:
        raise HTTPException(status_code=404, detail="File not found in storage")
    return Response(
        content=data,
        media_type=document.mime_type,
        headers={"Content-Disposition": _content_disposition(document.file_name)},
    )


@router.put("/{document_id}", response_model=DocumentResponse)
def update_document(
    document_id: UUID,
    body: DocumentUpdate,
    session: UserSession = Depends(require_roles(ADMIN_ROLES, org_scoped=True)),
    db: Session = Depends(get_db),
):
    document = _get_document_or_404(db, document_id, session)
    try:
        document = document_service.update_document(db, document, body)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return DocumentResponse(
        message="Document updated successfully",
        document=document_service.to_document_read(document),
    )


@router.delete("/{document_id}", response_model=SuccessResponse)
def delete_document(
    document_id: UUID,
    session: UserSession = Depends(require_roles(ADMIN_ROLES, org_scoped=True)),
    db: Session = Depends(get_db),
):
    document = _get_document_or_404(db, document_id, session)
    document_service.delete_document(db, document)
    return SuccessResponse(message="Document deleted successfully")
