"""Unit tests for pure helpers shared by the API and the client."""

import csv
import io
import json
from datetime import date, datetime, timedelta, timezone
from types import SimpleNamespace

import pytest

from volunteer_hub.core.permissions import permissions_for
from volunteer_hub.db.enums import Role, TaskStatus
from volunteer_hub.utils.csv_export import (
    build_csv, escape_csv_field, export_filename, tasks_csv, volunteers_csv,
)
from volunteer_hub.utils.dates import as_utc, combine_utc, parse_datetime
from volunteer_hub.utils.meeting import (
    MeetingInfo, append_meeting_info, parse_meeting_info, strip_meeting_info,
)
from volunteer_hub.utils.names import admin_notes_text, display_name, parse_notes, sync_legacy_notes
from volunteer_hub.utils.normalization import clean_optional, normalize_email, split_full_name
from volunteer_hub.utils.tasks import (
    has_completed_work, is_due_soon, is_overdue, rollup_task_status,
)
from volunteer_hub.utils.uploads import check_upload, guess_content_type, preview_mode

NOW = datetime(2030, 6, 15, 12, 0, tzinfo=timezone.utc)


# =============================================================================
# Names
# =============================================================================

def test_display_name_prefers_legacy_notes():
    user = {
        "notes": json.dumps({"firstName": "Nina", "lastName": "Notes"}),
        "first_name": "Column",
        "last_name": "Name",
    }
    assert display_name(user) == "Nina Notes"


def test_display_name_fallback_chain():
    assert display_name({"first_name": "Ada", "last_name": None}) == "Ada"
    assert display_name({"firstName": "Ada", "lastName": "Lovelace"}) == "Ada Lovelace"
    assert display_name({"notes": '{"volunteerName": "Vee"}'}) == "Vee"
    assert display_name({"email": "x@y.org"}) == "x@y.org"
    assert display_name({}) == "Name not provided"
    assert display_name(None) == "Name not provided"


def test_display_name_ignores_not_set_and_bad_notes():
    user = {
        "notes": "{not json",
        "first_name": "Not set",
        "last_name": "Not set",
        "email": "fallback@y.org",
    }
    assert display_name(user) == "fallback@y.org"


def test_parse_notes():
    assert parse_notes('{"a": 1}') == {"a": 1}
    assert parse_notes("[1, 2]") is None
    assert parse_notes("   ") is None
    assert parse_notes(None) is None


def test_admin_notes_text():
    assert admin_notes_text({"admin_notes": "Column"}) == "Column"
    assert admin_notes_text({"notes": '{"adminNotes": "From JSON"}'}) == "From JSON"
    assert admin_notes_text({"notes": "plain text"}) == "plain text"
    assert admin_notes_text({}) == ""


def test_sync_legacy_notes_rewrites_written_columns():
    user = SimpleNamespace(
        legacy_notes=json.dumps({"firstName": "Old", "lastName": "Name", "adminNotes": "Kept"}),
        first_name="New",
        last_name=None,
        phone="555-0100",
    )
    sync_legacy_notes(user, ["first_name", "phone"])

    assert json.loads(user.legacy_notes) == {
        "firstName": "New", "lastName": "Name", "adminNotes": "Kept", "phone": "555-0100",
    }
    assert display_name(user) == "New Name"


def test_sync_legacy_notes_leaves_plain_text_notes():
    user = SimpleNamespace(legacy_notes="call after 5pm", first_name="Ann", last_name="Lee", phone=None)
    sync_legacy_notes(user)
    assert user.legacy_notes == "call after 5pm"


# =============================================================================
# Normalization
# =============================================================================

def test_normalize_email():
    assert normalize_email("  Mixed@Case.ORG ") == "mixed@case.org"
    assert normalize_email("") is None
    assert normalize_email(None) is None


def test_split_full_name():
    assert split_full_name("Mary Ann Smith") == ("Mary", "Ann Smith")
    assert split_full_name("Cher") == ("Cher", None)
    assert split_full_name("   ") == (None, None)


def test_clean_optional():
    assert clean_optional("  hi ") == "hi"
    assert clean_optional("   ") is None
    assert clean_optional(None) is None


# =============================================================================
# Dates
# =============================================================================

def test_parse_datetime_accepts_z_suffix():
    parsed = parse_datetime("2030-06-15T12:00:00Z")
    assert parsed == NOW
    assert parse_datetime("") is None
    assert parse_datetime(datetime(2030, 6, 15, 12, 0)) == NOW


def test_as_utc_converts_offsets():
    eastern = datetime(2030, 6, 15, 8, 0, tzinfo=timezone(timedelta(hours=-4)))
    assert as_utc(eastern) == NOW


def test_combine_utc_defaults_to_midnight():
    assert combine_utc(date(2030, 6, 15), None) == datetime(2030, 6, 15, tzinfo=timezone.utc)


# =============================================================================
# Task status
# =============================================================================

def test_is_overdue():
    past = NOW - timedelta(hours=1)
    assert is_overdue(past, "pending", NOW) is True
    assert is_overdue(past, "completed", NOW) is False
    assert is_overdue(None, "pending", NOW) is False
    assert is_overdue("2030-06-16T00:00:00Z", "pending", NOW) is False


def test_is_due_soon():
    assert is_due_soon(NOW + timedelta(days=2), "assigned", 3, NOW) is True
    assert is_due_soon(NOW + timedelta(days=5), "assigned", 3, NOW) is False
    assert is_due_soon(NOW - timedelta(days=1), "assigned", 3, NOW) is False
    assert is_due_soon(NOW + timedelta(days=1), "completed", 3, NOW) is False


@pytest.mark.parametrize(
    "statuses,expected",
    [
        ([], TaskStatus.PENDING),
        (["assigned", "assigned"], TaskStatus.PENDING),
        (["assigned", "in_progress"], TaskStatus.IN_PROGRESS),
        (["assigned", "completed"], TaskStatus.IN_PROGRESS),
        (["completed", "completed"], TaskStatus.COMPLETED),
    ],
)
def test_rollup_task_status(statuses, expected):
    assert rollup_task_status(statuses) == expected


def test_has_completed_work():
    assert has_completed_work("completed", []) is True
    assert has_completed_work("in_progress", ["assigned", "completed"]) is True
    assert has_completed_work("pending", ["assigned"]) is False


# =============================================================================
# CSV
# =============================================================================

def test_escape_csv_field():
    assert escape_csv_field(None) == ""
    assert escape_csv_field("plain") == "plain"
    assert escape_csv_field("a,b") == '"a,b"'
    assert escape_csv_field('say "hi"') == '"say ""hi"""'
    assert escape_csv_field("two\nlines") == '"two\nlines"'


def test_build_csv():
    assert build_csv(["A", "B"], [[1, None], ["x,y", 2]]) == 'A,B\n1,\n"x,y",2'


@pytest.mark.parametrize(
    "value",
    ["a,b", 'say "hi"', '"', "two\nlines", "carriage\rreturn", "crlf\r\nend", 'mixed, "quoted"\nline'],
)
def test_escape_csv_field_round_trips_through_csv_reader(value):
    parsed = list(csv.reader(io.StringIO(escape_csv_field(value), newline="")))
    assert parsed == [[value]]


def test_build_csv_round_trips_through_csv_reader():
    rows = [["Ann", 'She said "yes"'], ["Bo, Jr.", "line one\r\nline two"]]
    parsed = list(csv.reader(io.StringIO(build_csv(["Name", "Note"], rows), newline="")))
    assert parsed == [["Name", "Note"], *rows]


def test_export_filename():
    assert export_filename("tasks-report", date(2030, 1, 2)) == "tasks-report-2030-01-02.csv"


def test_tasks_csv_counts_completed_assignments():
    rows = tasks_csv([{
        "title": "Paint fence",
        "description": None,
        "priority": "low",
        "status": "in_progress",
        "due_date": "2000-01-01T00:00:00Z",
        "assignments": [
            {"user_name": "Ann", "status": "completed"},
            {"user_email": "bo@x.org", "status": "assigned"},
        ],
    }]).split("\n")
    assert rows[1] == "Paint fence,,low,in_progress,2000-01-01,Ann; bo@x.org,1/2,Yes"


def test_volunteers_csv_blanks_placeholder_phone():
    rows = volunteers_csv([{
        "first_name": "Ann",
        "last_name": "Lee",
        "email": "ann@x.org",
        "phone": "Not provided",
        "role": "nonprofit_admin",
        "last_login": "2030-06-15T12:00:00Z",
    }]).split("\n")
    assert rows[1] == "Ann Lee,ann@x.org,,,,Admin,2030-06-15 12:00,"


# =============================================================================
# Meeting markers
# =============================================================================

DESCRIPTION = (
    "Monthly sync\n\nJoin Meeting: https://meet.example.com/abc\n"
    "Meeting ID: 123-456\nPasscode: s3cret"
)


def test_parse_meeting_info():
    info = parse_meeting_info(DESCRIPTION)
    assert info == MeetingInfo("https://meet.example.com/abc", "123-456", "s3cret")
    assert not parse_meeting_info("No meeting here")
    assert not parse_meeting_info(None)


def test_strip_meeting_info():
    assert strip_meeting_info(DESCRIPTION) == "Monthly sync"
    assert strip_meeting_info(None) is None


def test_append_meeting_info():
    info = MeetingInfo("https://meet.example.com/abc", "123-456", None)
    assert append_meeting_info("Sync", info) == (
        "Sync\n\nJoin Meeting: https://meet.example.com/abc\nMeeting ID: 123-456"
    )
    assert append_meeting_info("Sync", MeetingInfo(meeting_id="1")) == "Sync"
    assert append_meeting_info(None, info).startswith("Join Meeting:")


# =============================================================================
# Uploads
# =============================================================================

def test_check_upload():
    assert check_upload("application/pdf", 100) is None
    assert check_upload("application/pdf", 0) == "File is empty"
    assert check_upload("application/x-sh", 10).startswith("Content type 'application/x-sh'")
    assert check_upload("text/plain", 3 * 1024 * 1024, max_size_mb=2) == "File size exceeds 2 MB limit"


def test_guess_content_type():
    assert guess_content_type("Report.DOCX") == (
        "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
    )
    assert guess_content_type("photo.jpeg") == "image/jpeg"
    assert guess_content_type("noext") == "application/octet-stream"


def test_preview_mode():
    assert preview_mode("application/pdf") == "inline-pdf"
    assert preview_mode("image/png") == "inline-image"
    assert preview_mode("text/plain") == "download"
    assert preview_mode(None) == "download"


# =============================================================================
# Permissions
# =============================================================================

def test_permissions_matrix():
    volunteer = permissions_for("volunteer")
    assert volunteer.is_volunteer
    assert not volunteer.can_assign_tasks
    assert volunteer.can_complete_own_tasks
    assert volunteer.can_update_profile

    admin = permissions_for(Role.NONPROFIT_ADMIN)
    assert admin.can_manage_users and admin.can_upload_documents and admin.can_create_events

    root = permissions_for(Role.SUPER_ADMIN)
    assert root.is_super_admin
    assert root.can_manage_organization
    assert root.can_update_profile is False

    unknown = permissions_for(None).as_dict()
    assert unknown["can_manage_users"] is False
    assert unknown["can_view_dashboard"] is True

