"""Tests for structured logging helpers."""

import uuid

from starlette.requests import Request

from volunteer_hub.core.structured_logging import build_log_context, request_log_context


def test_build_log_context_stringifies_ids():
    org_id = uuid.uuid4()
    context = build_log_context(user_id="user-1", org_id=org_id, route="/tasks", method="GET")

    assert context == {
        "user_id": "user-1",
        "org_id": str(org_id),
        "route": "/tasks",
        "method": "GET",
    }


def test_build_log_context_ignores_empty_fields():
    assert build_log_context(user_id="", org_id=None, status_code=500) == {"status_code": 500}


def test_request_log_context_reads_org_header():
    request = Request({
        "type": "http",
        "method": "DELETE",
        "path": "/documents/abc",
        "query_string": b"",
        "headers": [(b"x-organization-id", b"org-9")],
    })

    assert request_log_context(request, 503) == {
        "org_id": "org-9",
        "route": "/documents/abc",
        "method": "DELETE",
        "status_code": 503,
    }
