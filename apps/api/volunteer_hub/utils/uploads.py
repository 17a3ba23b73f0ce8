"""Upload rules shared by the document endpoints and the client."""

import mimetypes

MAX_UPLOAD_SIZE_MB = 10

ALLOWED_MIME_TYPES = {
    "application/pdf",
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "application/vnd.ms-excel",
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    "text/plain",
    "image/jpeg",
    "image/png",
    "image/gif",
}
MIME_EXTENSIONS = {
    "application/pdf": "pdf",
    "application/msword": "doc",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document": "docx",
    "application/vnd.ms-excel": "xls",
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet": "xlsx",
    "text/plain": "txt",
    "image/jpeg": "jpg",
    "image/png": "png",
    "image/gif": "gif",
}
_EXTENSION_TYPES = {ext: mime for mime, ext in MIME_EXTENSIONS.items()}
_EXTENSION_TYPES["jpeg"] = "image/jpeg"

PREVIEW_PDF = "inline-pdf"
PREVIEW_IMAGE = "inline-image"
PREVIEW_DOWNLOAD = "download"


def guess_content_type(filename: str) -> str:
    """MIME type from the file extension; unknown types are octet-stream."""
    ext = filename.rsplit(".", 1)[-1].lower() if "." in filename else ""
    if ext in _EXTENSION_TYPES:
        return _EXTENSION_TYPES[ext]
    guessed, _ = mimetypes.guess_type(filename)
    return guessed or "application/octet-stream"


def check_upload(content_type: str | None, file_size: int, max_size_mb: int = MAX_UPLOAD_SIZE_MB) -> str | None:
    """Return the rejection message, or None when the file is acceptable."""
    if file_size <= 0:
        return "File is empty"
    if content_type not in ALLOWED_MIME_TYPES:
        return (
            f"Content type '{content_type}' not allowed. "
            "Allowed: PDF, Word, Excel, text, and image files"
        )
    if file_size > max_size_mb * 1024 * 1024:
        return f"File size exceeds {max_size_mb} MB limit"
    return None


def preview_mode(mime_type: str | None) -> str:
    """PDFs and images preview inline; everything else downloads."""
    if mime_type == "application/pdf":
        return PREVIEW_PDF
    if mime_type and mime_type.startswith("image/"):
        return PREVIEW_IMAGE
    return PREVIEW_DOWNLOAD
