"""Tests for the client package: session store, gateway, managers, and route guard."""

import json
from pathlib import Path

import httpx
import pytest

from volunteer_hub.client.auth import AuthService, get_user_permissions
from volunteer_hub.client.dashboards import DashboardService, VolunteerDashboard
from volunteer_hub.client.errors import (
    AuthorizationFailure, EmailNotWhitelisted, InvalidCredentials, NetworkFailure,
    NotFound, ServerError, TaskHasCompletedWork, Unauthenticated, ValidationFailure,
    error_for_status,
)
from volunteer_hub.client.gateway import ApiClient
from volunteer_hub.client.guard import GuardState, RouteGuard, default_path
from volunteer_hub.client.managers.calendar import CalendarManager
from volunteer_hub.client.managers.documents import DocumentManager, validate_upload
from volunteer_hub.client.managers.organizations import OrganizationManager
from volunteer_hub.client.managers.tasks import TaskManager
from volunteer_hub.client.managers.users import UserManager, VolunteerManager
from volunteer_hub.client.session import InMemorySessionStore, SessionStore

TOKENS = {"accessToken": "access-1", "refreshToken": "refresh-1"}


def _logged_in_store() -> InMemorySessionStore:
    store = InMemorySessionStore()
    store.save(TOKENS, {"email": "vol@helping.org"}, "volunteer")
    return store


def _api(handler, store: SessionStore | None = None) -> ApiClient:
    """ApiClient whose transport is a plain function of the request."""
    http = httpx.Client(transport=httpx.MockTransport(handler), base_url="http://api")
    return ApiClient(store or _logged_in_store(), http=http)


# =============================================================================
# Session store
# =============================================================================

def test_session_store_persists_and_hydrates(tmp_path: Path):
    path = tmp_path / "nested" / "session.json"
    store = SessionStore(path)
    store.save(TOKENS, {"email": "a@b.org"}, "volunteer")

    assert json.loads(path.read_text())["access_token"] == "access-1"
    assert path.stat().st_mode & 0o777 == 0o600

    reloaded = SessionStore(path).hydrate()
    assert reloaded.access_token == "access-1"
    assert reloaded.user_type == "volunteer"
    assert reloaded.is_authenticated

    reloaded.invalidate()
    assert SessionStore(path).hydrate().access_token is None
    assert SessionStore(path).hydrate().refresh_token == "refresh-1"

    reloaded.clear()
    assert not path.exists()
    assert not reloaded.is_authenticated


def test_session_store_ignores_corrupt_file(tmp_path: Path):
    path = tmp_path / "session.json"
    path.write_text("{not json")
    assert SessionStore(path).hydrate().is_authenticated is False

    path.write_text("[1, 2, 3]")
    assert SessionStore(path).hydrate().user is None


# =============================================================================
# Gateway
# =============================================================================

def test_gateway_sends_bearer_and_org_header():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen.update(request.headers)
        return httpx.Response(200, json={"success": True})

    api = _api(handler)
    api.organization_id = "org-123"
    assert api.get("/tasks") == {"success": True}
    assert seen["authorization"] == "Bearer access-1"
    assert seen["x-organization-id"] == "org-123"


def test_gateway_drops_none_params():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["query"] = request.url.query
        return httpx.Response(200, json={})

    _api(handler).get("/tasks", params={"status": "pending", "priority": None})
    assert seen["query"] == b"status=pending"


def test_gateway_refreshes_once_and_replays():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append((request.url.path, request.headers.get("authorization")))
        if request.url.path == "/auth/refresh":
            assert json.loads(request.content) == {"refreshToken": "refresh-1"}
            return httpx.Response(
                200, json={"tokens": {"accessToken": "access-2", "refreshToken": "refresh-2"}}
            )
        if request.headers.get("authorization") == "Bearer access-1":
            return httpx.Response(401, json={"success": False, "message": "Invalid session"})
        return httpx.Response(200, json={"tasks": []})

    store = _logged_in_store()
    assert _api(handler, store).get("/tasks") == {"tasks": []}
    assert calls == [
        ("/tasks", "Bearer access-1"),
        ("/auth/refresh", None),
        ("/tasks", "Bearer access-2"),
    ]
    assert store.access_token == "access-2"
    assert store.refresh_token == "refresh-2"


def test_gateway_clears_session_when_refresh_rejected():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(401, json={"success": False, "message": "Invalid refresh token"})

    store = _logged_in_store()
    with pytest.raises(Unauthenticated):
        _api(handler, store).get("/tasks")
    assert store.is_authenticated is False


def test_gateway_invalidates_when_replay_still_unauthorized():
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/auth/refresh":
            return httpx.Response(200, json={"tokens": {"accessToken": "a2", "refreshToken": "r2"}})
        return httpx.Response(401, json={"message": "Account disabled"})

    store = _logged_in_store()
    with pytest.raises(Unauthenticated):
        _api(handler, store).get("/tasks")
    assert store.access_token is None
    assert store.refresh_token == "r2"


def test_gateway_does_not_refresh_unauthenticated_calls():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request.url.path)
        return httpx.Response(
            401,
            json={"success": False, "code": "invalid_credentials", "message": "Invalid email or password"},
        )

    with pytest.raises(InvalidCredentials) as exc_info:
        _api(handler).post("/auth/login", json={}, authenticated=False)
    assert exc_info.value.message == "Invalid email or password"
    assert calls == ["/auth/login"]


@pytest.mark.parametrize(
    "status,body,expected",
    [
        (400, {"message": "Title is required"}, ValidationFailure),
        (422, {"message": "Validation failed", "details": [{"loc": ["body"]}]}, ValidationFailure),
        (403, {"message": "Role 'volunteer' not authorized for this action"}, AuthorizationFailure),
        (404, {"message": "Task not found"}, NotFound),
        (503, {"error": "Service unavailable"}, ServerError),
    ],
)
def test_gateway_maps_error_envelopes(status, body, expected):
    api = _api(lambda request: httpx.Response(status, json=body))
    with pytest.raises(expected) as exc_info:
        api.get("/anything")
    assert exc_info.value.status_code == status
    assert exc_info.value.message == (body.get("message") or body.get("error"))


def test_gateway_non_json_error_uses_reason_phrase():
    api = _api(lambda request: httpx.Response(502, text="<html>bad gateway</html>"))
    with pytest.raises(ServerError) as exc_info:
        api.get("/anything")
    assert exc_info.value.message == "Bad Gateway"


def test_gateway_network_failure():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(NetworkFailure, match="Network error"):
        _api(handler).get("/tasks")


def test_error_for_status_login_codes():
    assert isinstance(error_for_status(401, "x", code="email_not_whitelisted"), EmailNotWhitelisted)
    assert type(error_for_status(401, "x")).__name__ == "AuthenticationFailure"
    assert type(error_for_status(409, "x")).__name__ == "VolunteerHubError"


# =============================================================================
# Auth service
# =============================================================================

def test_change_org_password_checked_locally():
    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError("no request expected")

    auth = AuthService(_api(handler))
    with pytest.raises(ValidationFailure, match="Passwords do not match"):
        auth.change_org_password("longenough", "different1")
    with pytest.raises(ValidationFailure, match="at least 8 characters"):
        auth.change_org_password("short", "short")


def test_logout_clears_session_even_when_server_fails():
    store = _logged_in_store()
    auth = AuthService(_api(lambda request: httpx.Response(500, json={"message": "boom"}), store))
    auth.logout()
    assert store.is_authenticated is False


def test_update_profile_merges_cached_fields():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"user": {**seen["body"], "email": "vol@helping.org"}})

    store = InMemorySessionStore()
    store.save(TOKENS, {
        "email": "vol@helping.org", "first_name": "Victor", "last_name": "Volunteer",
        "phone": "555", "address": None, "birthday": None,
    }, "volunteer")
    AuthService(_api(handler, store)).update_profile(phone="777")

    assert seen["body"] == {
        "firstName": "Victor", "lastName": "Volunteer", "email": "vol@helping.org",
        "phone": "777", "address": None, "birthday": None,
    }
    assert store.user["phone"] == "777"


def test_get_user_permissions_offline():
    assert get_user_permissions("nonprofit_admin")["can_assign_tasks"] is True
    assert get_user_permissions("volunteer")["can_assign_tasks"] is False


# =============================================================================
# Managers (local rules)
# =============================================================================

def test_managers_keep_builtin_list_in_annotations():
    """Managers define a `list` method, so later `list[...]` annotations must stay lazy."""
    assert CalendarManager.upcoming.__annotations__["return"] == "list[dict]"
    assert TaskManager.export_csv.__annotations__["tasks"] == "list[dict] | None"
    assert VolunteerManager.directory.__annotations__["return"] == "list[dict]"
    for manager in (CalendarManager, DocumentManager, OrganizationManager, TaskManager, UserManager):
        assert callable(manager.list)


def test_delete_task_with_completed_work_sends_nothing():
    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError("no request expected")

    tasks = TaskManager(_api(handler))
    task = {"id": "t1", "status": "in_progress", "assignments": [{"status": "completed"}]}
    assert tasks.can_delete(task) is False
    with pytest.raises(TaskHasCompletedWork, match="Cannot delete a task with completed work"):
        tasks.delete(task)


def test_validate_upload():
    assert validate_upload("guide.pdf", None, 10) == "application/pdf"
    with pytest.raises(ValidationFailure, match="File is empty"):
        validate_upload("guide.pdf", None, 0)
    with pytest.raises(ValidationFailure, match="not allowed"):
        validate_upload("run.exe", None, 10)
    with pytest.raises(ValidationFailure, match="exceeds 10 MB"):
        validate_upload("big.pdf", None, 11 * 1024 * 1024)


def test_upload_rejected_before_request(tmp_path: Path):
    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError("no request expected")

    empty = tmp_path / "empty.txt"
    empty.write_bytes(b"")
    with pytest.raises(ValidationFailure):
        DocumentManager(_api(handler)).upload(empty, "Empty")


def test_organization_create_checked_locally():
    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError("no request expected")

    orgs = OrganizationManager(_api(handler))
    with pytest.raises(ValidationFailure, match="Organization name is required"):
        orgs.create("  ", "longenough")
    with pytest.raises(ValidationFailure, match="at least 8"):
        orgs.create("Food Bank", "short")


def test_document_download_leaves_no_temp_files(tmp_path: Path):
    api = _api(lambda request: httpx.Response(200, content=b"%PDF-1.4"))
    docs = DocumentManager(api)

    path = docs.download({"id": "d1", "file_name": "../Guide.pdf"}, tmp_path)
    assert path == tmp_path / "Guide.pdf"
    assert path.read_bytes() == b"%PDF-1.4"
    assert [p.name for p in tmp_path.iterdir()] == ["Guide.pdf"]


def test_document_download_failure_cleans_temp(tmp_path: Path):
    docs = DocumentManager(_api(lambda request: httpx.Response(404, json={"message": "File not found in storage"})))
    with pytest.raises(NotFound):
        docs.download({"id": "d1", "file_name": "Guide.pdf"}, tmp_path)
    assert list(tmp_path.iterdir()) == []


def test_document_preview_is_temporary():
    docs = DocumentManager(_api(lambda request: httpx.Response(200, content=b"img")))
    with docs.preview({"id": "d1", "file_name": "photo.png"}) as path:
        assert path.read_bytes() == b"img"
    assert not path.exists()
    assert not path.parent.exists()


def test_calendar_can_signup():
    assert CalendarManager.can_signup({"max_volunteers": None})
    assert CalendarManager.can_signup({"max_volunteers": 2, "confirmed_signups": 1})
    assert not CalendarManager.can_signup({"max_volunteers": 2, "confirmed_signups": 2})


def test_user_manager_encodes_email_path():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["path"] = request.url.raw_path
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"user": {}})

    UserManager(_api(handler)).update_profile(
        " Mixed+Tag@Helping.org ", organization_id="abc", first_name="Ann"
    )
    assert seen["path"] == b"/super-admin/users/mixed%2Btag@helping.org"
    assert seen["body"] == {"organizationId": "abc", "firstName": "Ann"}


def test_volunteer_dashboard_recomputes_overdue():
    dashboard = VolunteerDashboard.from_payload({
        "user": {"first_name": "Victor", "last_name": "Volunteer"},
        "tasks": [
            {"title": "Old", "due_date": "2000-01-01T00:00:00Z", "status": "assigned", "is_overdue": False},
            {"title": "Done", "due_date": "2000-01-01T00:00:00Z", "status": "completed"},
        ],
    })
    assert dashboard.greeting_name == "Victor Volunteer"
    assert [t["title"] for t in dashboard.overdue_tasks] == ["Old"]


# =============================================================================
# Route guard
# =============================================================================

def test_guard_without_session_goes_to_login():
    auth = AuthService(_api(lambda request: httpx.Response(500), InMemorySessionStore()))
    guard = RouteGuard(auth)
    assert guard.resolve("/tasks") == "/login"
    assert guard.state is GuardState.UNAUTHENTICATED


def test_guard_redirects_to_role_root():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"user": {"email": "vol@helping.org"}, "userType": "volunteer"})

    guard = RouteGuard(AuthService(_api(handler)))
    assert guard.state is GuardState.LOADING
    assert guard.resolve("/") == "/dashboard"
    assert guard.resolve("/tasks/123") == "/tasks/123"
    assert guard.resolve("/super-admin") == "/dashboard"
    assert guard.resolve("/volunteers") == "/dashboard"


def test_guard_rejected_session_goes_to_login():
    store = _logged_in_store()
    guard = RouteGuard(AuthService(_api(lambda request: httpx.Response(401, json={}), store)))
    assert guard.check() is GuardState.UNAUTHENTICATED
    assert guard.resolve("/dashboard") == "/login"


def test_default_paths():
    assert default_path("super_admin") == "/super-admin"
    assert default_path("nonprofit_admin") == "/admin-dashboard"
    assert default_path(None) == "/login"


# =============================================================================
# End to end against the app
# =============================================================================

def test_client_login_and_dashboard_end_to_end(app_http, volunteer_user, tmp_path: Path):
    store = SessionStore(tmp_path / "session.json")
    api = ApiClient(store, http=app_http)
    auth = AuthService(api)

    body = auth.login("VOL@helping.org", "orgpass123")
    assert body["userType"] == "volunteer"
    assert SessionStore(tmp_path / "session.json").hydrate().access_token

    dashboard = DashboardService(api).for_role(store.user_type)
    assert isinstance(dashboard, VolunteerDashboard)
    assert dashboard.greeting_name == "Victor Volunteer"

    with pytest.raises(AuthorizationFailure):
        VolunteerManager(api).list()

    auth.logout()
    assert not store.is_authenticated


def test_client_login_errors_end_to_end(app_http, volunteer_user):
    auth = AuthService(ApiClient(InMemorySessionStore(), http=app_http))
    with pytest.raises(InvalidCredentials):
        auth.login("vol@helping.org", "wrong-password")
    with pytest.raises(EmailNotWhitelisted):
        auth.login("stranger@helping.org", "orgpass123")


def test_client_task_lifecycle_end_to_end(app_http, admin_user, volunteer_user, tmp_path: Path):
    admin_api = ApiClient(InMemorySessionStore(), http=app_http)
    AuthService(admin_api).login("admin@helping.org", "orgpass123")
    tasks = TaskManager(admin_api)

    created = tasks.create("Fold flyers", ["vol@helping.org"], priority="low")
    assert created["assignedTo"] == 1
    task_id = created["task"]["id"]

    completed = tasks.complete_for_user(task_id, volunteer_user.id, admin_feedback="Great")
    assert completed["status"] == "completed"

    with pytest.raises(TaskHasCompletedWork):
        tasks.delete(tasks.get(task_id))

    report = tasks.export_csv(tmp_path)
    assert report.name.startswith("tasks-report-")
    assert "Fold flyers" in report.read_text()
