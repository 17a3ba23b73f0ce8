"""iCalendar (RFC 5545) export for calendar events."""

import re
from datetime import datetime, time, timedelta, timezone

from volunteer_hub.core.config import settings
from volunteer_hub.db.models import CalendarEvent
from volunteer_hub.utils.dates import combine_utc, utc_now
from volunteer_hub.utils.meeting import MeetingInfo, append_meeting_info

ICS_CONTENT_TYPE = "text/calendar; charset=utf-8"
CRLF = "\r\n"
MAX_LINE_OCTETS = 75
DEFAULT_DURATION = timedelta(hours=1)

_FILENAME_UNSAFE_RE = re.compile(r"[^a-zA-Z0-9]")


def escape_text(value: str | None) -> str:
    """Escape TEXT values: backslash, semicolon, comma, newline."""
    if not value:
        return ""
    return (
        value.replace("\\", "\\\\")
        .replace(";", "\\;")
        .replace(",", "\\,")
        .replace("\r\n", "\\n")
        .replace("\n", "\\n")
    )


def fold_line(line: str) -> str:
    """Fold a content line at 75 octets without splitting UTF-8 sequences."""
    encoded = line.encode("utf-8")
    if len(encoded) <= MAX_LINE_OCTETS:
        return line

    parts = []
    current = ""
    limit = MAX_LINE_OCTETS
    for ch in line:
        if len((current + ch).encode("utf-8")) > limit:
            parts.append(current)
            current = ch
            # Continuation lines start with a space
            limit = MAX_LINE_OCTETS - 1
        else:
            current += ch
    parts.append(current)
    return (CRLF + " ").join(parts)


def _format_utc(value: datetime) -> str:
    return value.astimezone(timezone.utc).strftime("%Y%m%dT%H%M%SZ")


def _event_bounds(event: CalendarEvent) -> tuple[str, str]:
    """DTSTART/DTEND property strings (name and value)."""
    end_day = event.end_date or event.start_date
    if event.is_all_day:
        start = f"DTSTART;VALUE=DATE:{event.start_date.strftime('%Y%m%d')}"
        # DTEND is exclusive for all-day events
        end = f"DTEND;VALUE=DATE:{(end_day + timedelta(days=1)).strftime('%Y%m%d')}"
        return start, end

    starts_at = combine_utc(event.start_date, event.start_time or time(0, 0))
    if event.end_time:
        ends_at = combine_utc(end_day, event.end_time)
    elif end_day != event.start_date:
        ends_at = combine_utc(end_day, event.start_time)
    else:
        ends_at = starts_at + DEFAULT_DURATION
    if ends_at <= starts_at:
        ends_at = starts_at + DEFAULT_DURATION
    return f"DTSTART:{_format_utc(starts_at)}", f"DTEND:{_format_utc(ends_at)}"


def build_ics(event: CalendarEvent, organization_name: str | None) -> str:
    """Render one event as a VCALENDAR document with CRLF line endings."""
    info = MeetingInfo(event.video_link, event.meeting_id, event.meeting_passcode)
    description = append_meeting_info(event.description, info)
    location = event.location or event.video_link
    dtstart, dtend = _event_bounds(event)

    lines = [
        "BEGIN:VCALENDAR",
        "VERSION:2.0",
        f"PRODID:{settings.ICS_PRODID}",
        "CALSCALE:GREGORIAN",
        "METHOD:PUBLISH",
        "BEGIN:VEVENT",
        f"UID:event-{event.id}@{settings.ICS_UID_DOMAIN}",
        f"DTSTAMP:{_format_utc(utc_now())}",
        dtstart,
        dtend,
        f"SUMMARY:{escape_text(event.title)}",
    ]
    if description:
        lines.append(f"DESCRIPTION:{escape_text(description)}")
    if location:
        lines.append(f"LOCATION:{escape_text(location)}")
    if organization_name:
        cn = organization_name.replace("\"", "")
        lines.append(f"ORGANIZER;CN=\"{cn}\":mailto:noreply@{settings.ICS_UID_DOMAIN}")
    if event.video_link:
        lines.append(f"URL:{event.video_link}")
    lines.extend([
        "STATUS:CONFIRMED",
        f"CATEGORIES:{escape_text(event.event_type)}",
        "END:VEVENT",
        "END:VCALENDAR",
    ])
    return CRLF.join(fold_line(line) for line in lines) + CRLF


def export_filename(title: str) -> str:
    """Title with every non-alphanumeric character replaced by an underscore."""
    return f"{_FILENAME_UNSAFE_RE.sub('_', title)}.ics"
