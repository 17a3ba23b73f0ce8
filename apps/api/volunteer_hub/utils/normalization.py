"""Input normalization helpers."""

from typing import Optional


def normalize_email(email: Optional[str]) -> Optional[str]:
    """
    Normalize email to lowercase.

    Args:
        email: Raw email input

    Returns:
        Lowercased email or None if empty
    """
    if not email:
        return None
    return email.strip().lower()


def split_full_name(name: Optional[str]) -> tuple[str | None, str | None]:
    """Split "First Middle Last" into ("First", "Middle Last")."""
    if not name or not name.strip():
        return None, None
    parts = name.strip().split()
    first = parts[0]
    last = " ".join(parts[1:]) or None
    return first, last


def clean_optional(value: Optional[str]) -> Optional[str]:
    """Strip whitespace; empty strings become None."""
    if value is None:
        return None
    value = value.strip()
    return value or None
