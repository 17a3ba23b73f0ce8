"""Timezone helpers shared by the API and the client."""

from datetime import date, datetime, time, timezone


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC (SQLite drops tzinfo on read)."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def parse_datetime(value: str | datetime | None) -> datetime | None:
    """Parse an ISO-8601 string (a trailing Z is accepted) into an aware datetime."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return as_utc(value)
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return as_utc(datetime.fromisoformat(text))


def combine_utc(day: date, at: time | None) -> datetime:
    """Combine a calendar date and optional time into a UTC datetime."""
    return datetime.combine(day, at or time(0, 0), tzinfo=timezone.utc)
