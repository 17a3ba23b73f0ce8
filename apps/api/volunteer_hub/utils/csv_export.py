"""CSV reports built from already-loaded task and volunteer lists."""

from __future__ import annotations

import csv
import io
from datetime import date
from typing import Any, Iterable, Sequence

from volunteer_hub.utils.dates import parse_datetime
from volunteer_hub.utils.names import admin_notes_text, display_name
from volunteer_hub.utils.tasks import is_overdue

CSV_CONTENT_TYPE = "text/csv;charset=utf-8"

TASK_HEADERS = [
    "Title", "Description", "Priority", "Status", "Due Date",
    "Assigned To", "Completed", "Overdue",
]
VOLUNTEER_HEADERS = [
    "Name", "Email", "Phone", "Address", "Birthday", "Role", "Last Login", "Admin Notes",
]

_ROW_END = "\r\n"


def _serialize_csv_value(value: Any) -> str:
    return "" if value is None else str(value)


def _write_csv_row(values: Sequence[Any]) -> str:
    # The default "\r\n" terminator makes the writer quote fields holding either character.
    output = io.StringIO()
    writer = csv.writer(output, lineterminator=_ROW_END)
    writer.writerow([_serialize_csv_value(value) for value in values])
    return output.getvalue()[: -len(_ROW_END)]


def escape_csv_field(value: Any) -> str:
    """Quote a field when it contains a comma, quote, or newline; double inner quotes."""
    text = _serialize_csv_value(value)
    return _write_csv_row([text]) if text else ""


def build_csv(headers: Sequence[str], rows: Iterable[Sequence[Any]]) -> str:
    """Header and rows, one line each, with no trailing newline."""
    lines = [_write_csv_row(headers)]
    lines.extend(_write_csv_row(row) for row in rows)
    return "\n".join(lines)


def export_filename(kind: str, today: date | None = None) -> str:
    """`tasks-report-2024-05-01.csv` / `volunteers-directory-2024-05-01.csv`."""
    day = (today or date.today()).isoformat()
    return f"{kind}-{day}.csv"


def _format_date(value: Any) -> str:
    parsed = parse_datetime(value) if value else None
    return parsed.date().isoformat() if parsed else ""


def tasks_csv(tasks: Iterable[dict[str, Any]]) -> str:
    rows = []
    for task in tasks:
        assignments = task.get("assignments") or []
        assignees = "; ".join(a.get("user_name") or a.get("user_email") or "" for a in assignments)
        completed = sum(1 for a in assignments if a.get("status") == "completed")
        rows.append([
            task.get("title"),
            task.get("description"),
            task.get("priority"),
            task.get("status"),
            _format_date(task.get("due_date")),
            assignees,
            f"{completed}/{len(assignments)}",
            "Yes" if is_overdue(task.get("due_date"), task.get("status")) else "No",
        ])
    return build_csv(TASK_HEADERS, rows)


def _format_last_login(value: Any) -> str:
    if not value:
        return "Never"
    parsed = parse_datetime(value)
    return parsed.strftime("%Y-%m-%d %H:%M") if parsed else str(value)


def volunteers_csv(volunteers: Iterable[dict[str, Any]]) -> str:
    rows = []
    for volunteer in volunteers:
        phone = volunteer.get("phone")
        rows.append([
            display_name(volunteer),
            volunteer.get("email"),
            "" if phone in (None, "Not provided") else phone,
            volunteer.get("address"),
            volunteer.get("birthday"),
            "Admin" if volunteer.get("role") == "nonprofit_admin" else "Volunteer",
            _format_last_login(volunteer.get("last_login")),
            admin_notes_text(volunteer),
        ])
    return build_csv(VOLUNTEER_HEADERS, rows)
