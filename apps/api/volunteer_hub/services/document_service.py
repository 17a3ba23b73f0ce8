"""Document service for organization file uploads and downloads."""

import hashlib
import logging
import os
import uuid
from typing import BinaryIO

import boto3
from botocore.exceptions import ClientError
from sqlalchemy.orm import Session

from volunteer_hub.core.config import settings
from volunteer_hub.db.enums import (
    DEFAULT_DOCUMENT_CATEGORY, DEFAULT_DOCUMENT_VISIBILITY, VOLUNTEER_VISIBILITIES,
    DocumentCategory, DocumentVisibility,
)
from volunteer_hub.db.models import Document
from volunteer_hub.schemas.document import DocumentRead, DocumentUpdate
from volunteer_hub.utils.names import display_name
from volunteer_hub.utils.uploads import MIME_EXTENSIONS, check_upload

logger = logging.getLogger(__name__)


# =============================================================================
# Storage Backend
# =============================================================================

def _get_s3_client():
    """Get boto3 S3 client."""
    return boto3.client(
        "s3",
        region_name=settings.S3_REGION,
        aws_access_key_id=settings.AWS_ACCESS_KEY_ID or None,
        aws_secret_access_key=settings.AWS_SECRET_ACCESS_KEY or None,
    )


def _get_storage_backend() -> str:
    """Get configured storage backend."""
    return settings.STORAGE_BACKEND


def _get_local_storage_path() -> str:
    """Get local storage directory path."""
    path = settings.LOCAL_STORAGE_PATH
    os.makedirs(path, exist_ok=True)
    return path


def _local_path(storage_key: str) -> str:
    root = os.path.abspath(_get_local_storage_path())
    path = os.path.abspath(os.path.join(root, storage_key))
    if not path.startswith(root + os.sep):
        raise ValueError("Invalid storage key")
    return path


# =============================================================================
# File Operations
# =============================================================================

def calculate_checksum(file: BinaryIO) -> str:
    """Calculate SHA-256 checksum of file."""
    sha256 = hashlib.sha256()
    file.seek(0)
    for chunk in iter(lambda: file.read(8192), b""):
        sha256.update(chunk)
    file.seek(0)
    return sha256.hexdigest()


def validate_file(content_type: str | None, file_size: int) -> tuple[bool, str | None]:
    """
    Validate file against the MIME allowlist and size limit.

    Returns (is_valid, error_message)
    """
    error = check_upload(content_type, file_size, settings.MAX_UPLOAD_SIZE_MB)
    return error is None, error


def build_storage_key(org_id: uuid.UUID, filename: str, content_type: str) -> str:
    """org_<id>/<uuid>.<ext>, extension taken from the MIME type."""
    ext = MIME_EXTENSIONS.get(content_type)
    if not ext:
        ext = filename.rsplit(".", 1)[-1].lower() if "." in filename else "bin"
    return f"org_{org_id}/{uuid.uuid4().hex}.{ext}"


def store_file(storage_key: str, file: BinaryIO, content_type: str) -> None:
    """Store file to configured backend."""
    backend = _get_storage_backend()
    file.seek(0)

    if backend == "s3":
        s3 = _get_s3_client()
        data = file.read()
        s3.put_object(
            Bucket=settings.S3_BUCKET,
            Key=storage_key,
            Body=data,
            ContentLength=len(data),
            ContentType=content_type,
        )
    else:
        path = _local_path(storage_key)
        os.makedirs(os.path.dirname(path), exist_ok=True)
        with open(path, "wb") as f:
            f.write(file.read())


def read_file(storage_key: str) -> bytes:
    """
    Read stored bytes.

    Raises:
        FileNotFoundError: Blob is missing from the backend
    """
    backend = _get_storage_backend()

    if backend == "s3":
        s3 = _get_s3_client()
        try:
            obj = s3.get_object(Bucket=settings.S3_BUCKET, Key=storage_key)
        except ClientError as e:
            code = e.response.get("Error", {}).get("Code")
            if code in ("NoSuchKey", "404"):
                raise FileNotFoundError(storage_key) from e
            raise
        return obj["Body"].read()

    path = _local_path(storage_key)
    if not os.path.exists(path):
        raise FileNotFoundError(storage_key)
    with open(path, "rb") as f:
        return f.read()


def delete_file(storage_key: str) -> None:
    """Delete file from storage."""
    backend = _get_storage_backend()

    if backend == "s3":
        s3 = _get_s3_client()
        s3.delete_object(Bucket=settings.S3_BUCKET, Key=storage_key)
    else:
        path = _local_path(storage_key)
        if os.path.exists(path):
            os.remove(path)


# =============================================================================
# Service Functions
# =============================================================================

def upload_document(
    db: Session,
    org_id: uuid.UUID,
    user_id: uuid.UUID | None,
    file: BinaryIO,
    filename: str,
    content_type: str,
    file_size: int,
    title: str,
    description: str | None = None,
    category: DocumentCategory = DEFAULT_DOCUMENT_CATEGORY,
    visibility: DocumentVisibility = DEFAULT_DOCUMENT_VISIBILITY,
    is_pinned: bool = False,
) -> Document:
    """
    Validate, store, and record an uploaded file.

    Raises:
        ValueError: Missing title or file rejected by validation
    """
    if not title or not title.strip():
        raise ValueError("Title is required")

    is_valid, error = validate_file(content_type, file_size)
    if not is_valid:
        raise ValueError(error)

    storage_key = build_storage_key(org_id, filename, content_type)
    checksum = calculate_checksum(file)
    store_file(storage_key, file, content_type)

    document = Document(
        organization_id=org_id,
        title=title.strip(),
        description=description,
        category=category.value,
        visibility=visibility.value,
        is_pinned=is_pinned,
        file_name=filename,
        storage_key=storage_key,
        mime_type=content_type,
        file_size=file_size,
        checksum=checksum,
        uploaded_by=user_id,
    )
    db.add(document)
    try:
        db.commit()
    except Exception:
        db.rollback()
        delete_file(storage_key)
        raise
    db.refresh(document)
    logger.info("Document uploaded id=%s org=%s size=%s", document.id, org_id, file_size)
    return document


def list_documents(
    db: Session,
    org_id: uuid.UUID,
    include_admin_only: bool,
    category: DocumentCategory | None = None,
    limit: int | None = None,
) -> list[Document]:
    """Pinned first, then newest. Volunteers never see admin_only documents."""
    query = db.query(Document).filter(Document.organization_id == org_id)
    if not include_admin_only:
        query = query.filter(
            Document.visibility.in_([v.value for v in VOLUNTEER_VISIBILITIES])
        )
    if category:
        query = query.filter(Document.category == category.value)
    query = query.order_by(Document.is_pinned.desc(), Document.created_at.desc())
    if limit:
        query = query.limit(limit)
    return query.all()


def get_document(
    db: Session,
    org_id: uuid.UUID,
    document_id: uuid.UUID,
    include_admin_only: bool = True,
) -> Document | None:
    document = db.query(Document).filter(
        Document.id == document_id,
        Document.organization_id == org_id,
    ).first()
    if document and not include_admin_only:
        if DocumentVisibility(document.visibility) not in VOLUNTEER_VISIBILITIES:
            return None
    return document


def update_document(db: Session, document: Document, data: DocumentUpdate) -> Document:
    """
    Update metadata fields.

    Uses exclude_unset=True so only explicitly provided fields are updated.
    """
    update_data = data.model_dump(exclude_unset=True)
    if not update_data:
        raise ValueError("No fields to update")

    for field, value in update_data.items():
        if value is None and field != "description":
            continue
        if field in ("category", "visibility"):
            value = value.value
        setattr(document, field, value)

    db.commit()
    db.refresh(document)
    return document


def delete_document(db: Session, document: Document) -> None:
    """Delete the row, then the blob (a missing blob is not an error)."""
    storage_key = document.storage_key
    db.delete(document)
    db.commit()
    try:
        delete_file(storage_key)
    except (OSError, ClientError) as exc:
        logger.warning("Failed to delete blob %s", storage_key, exc_info=exc)


def to_document_read(document: Document) -> DocumentRead:
    return DocumentRead(
        id=document.id,
        title=document.title,
        description=document.description,
        category=DocumentCategory(document.category),
        visibility=DocumentVisibility(document.visibility),
        is_pinned=document.is_pinned,
        file_name=document.file_name,
        mime_type=document.mime_type,
        file_size=document.file_size,
        file_size_mb=round(document.file_size / (1024 * 1024), 2),
        uploaded_by=document.uploaded_by,
        uploaded_by_name=display_name(document.uploader) if document.uploader else None,
        created_at=document.created_at,
        updated_at=document.updated_at,
    )

