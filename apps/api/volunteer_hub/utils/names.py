"""Name resolution for users whose profile may still carry legacy notes JSON."""

from __future__ import annotations

import json
from collections.abc import Iterable
from typing import Any

NAME_NOT_PROVIDED = "Name not provided"
NOT_SET = "Not set"

_NOTES_KEYS = {"first_name": "firstName", "last_name": "lastName", "phone": "phone"}


def _field(user: Any, *keys: str) -> Any:
    """Read the first present key from a mapping or attribute from an object."""
    for key in keys:
        if isinstance(user, dict):
            value = user.get(key)
        else:
            value = getattr(user, key, None)
        if value not in (None, ""):
            return value
    return None


def parse_notes(notes: Any) -> dict[str, Any] | None:
    """
    Parse legacy notes JSON.

    Returns None for empty, malformed, or non-object notes.
    """
    if notes is None:
        return None
    if isinstance(notes, dict):
        return notes
    if not isinstance(notes, str) or not notes.strip():
        return None
    try:
        parsed = json.loads(notes)
    except ValueError:
        return None
    return parsed if isinstance(parsed, dict) else None


def _join(first: Any, last: Any) -> str | None:
    parts = [str(p).strip() for p in (first, last) if p]
    name = " ".join(p for p in parts if p and p != NOT_SET)
    return name or None


def display_name(user: Any) -> str:
    """
    Resolve a user's display name.

    Priority: notes firstName/lastName, then the first_name/last_name
    columns, then notes volunteerName, then email, then "Name not provided".
    Malformed notes never raise.
    """
    if user is None:
        return NAME_NOT_PROVIDED

    notes = parse_notes(_field(user, "notes", "legacy_notes"))
    if notes:
        name = _join(notes.get("firstName"), notes.get("lastName"))
        if name:
            return name

    name = _join(
        _field(user, "first_name", "firstName"),
        _field(user, "last_name", "lastName"),
    )
    if name:
        return name

    if notes and notes.get("volunteerName"):
        return str(notes["volunteerName"]).strip() or NAME_NOT_PROVIDED

    email = _field(user, "email")
    if email:
        return str(email)
    return NAME_NOT_PROVIDED


def admin_notes_text(user: Any) -> str:
    """Admin notes from the column, legacy notes JSON, or raw notes text."""
    column = _field(user, "admin_notes", "adminNotes")
    if column:
        return str(column)
    raw = _field(user, "notes", "legacy_notes")
    notes = parse_notes(raw)
    if notes:
        return str(notes.get("adminNotes") or "")
    return str(raw) if isinstance(raw, str) else ""


def sync_legacy_notes(user: Any, columns: Iterable[str] = ("first_name", "last_name", "phone")) -> None:
    """
    Mirror written profile columns into legacy notes JSON.

    Notes are read before the columns when resolving names, so a profile
    write must rewrite the matching keys. Non-JSON notes are left untouched.
    """
    notes = parse_notes(getattr(user, "legacy_notes", None))
    if notes is None:
        return
    for column in columns:
        key = _NOTES_KEYS.get(column)
        if key:
            notes[key] = getattr(user, column) or ""
    user.legacy_notes = json.dumps(notes)
