"""Shared response envelopes."""

from pydantic import BaseModel


class SuccessResponse(BaseModel):
    """Generic `{success, message}` acknowledgement."""
    success: bool = True
    message: str | None = None


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    pages: int
