"""Dashboard data services: one call per role, returned as view models."""

from dataclasses import dataclass, field
from typing import Any

from volunteer_hub.client.gateway import ApiClient
from volunteer_hub.db.enums import Role
from volunteer_hub.utils.names import display_name
from volunteer_hub.utils.tasks import is_overdue


def _with_overdue(tasks: list[dict]) -> list[dict]:
    """Recompute is_overdue locally; the clock may have moved since the payload."""
    return [
        {**task, "is_overdue": is_overdue(task.get("due_date"), task.get("status"))}
        for task in tasks
    ]


@dataclass
class VolunteerDashboard:
    user: dict[str, Any]
    tasks: list[dict] = field(default_factory=list)
    upcoming_events: list[dict] = field(default_factory=list)
    documents: list[dict] = field(default_factory=list)
    task_stats: dict[str, int] = field(default_factory=dict)

    @property
    def greeting_name(self) -> str:
        return display_name(self.user)

    @property
    def overdue_tasks(self) -> list[dict]:
        return [t for t in self.tasks if t["is_overdue"]]

    @classmethod
    def from_payload(cls, body: dict) -> "VolunteerDashboard":
        return cls(
            user=body.get("user") or {},
            tasks=_with_overdue(body.get("tasks") or []),
            upcoming_events=body.get("upcomingEvents") or [],
            documents=body.get("documents") or [],
            task_stats=body.get("taskStats") or {},
        )


@dataclass
class AdminDashboard:
    volunteer_stats: dict[str, int] = field(default_factory=dict)
    task_overview: dict[str, Any] = field(default_factory=dict)
    recent_activity: list[dict] = field(default_factory=list)
    upcoming_events: list[dict] = field(default_factory=list)
    recent_documents: list[dict] = field(default_factory=list)
    volunteers: list[dict] = field(default_factory=list)

    @classmethod
    def from_payload(cls, body: dict) -> "AdminDashboard":
        return cls(
            volunteer_stats=body.get("volunteerStats") or {},
            task_overview=body.get("taskOverview") or {},
            recent_activity=body.get("recentActivity") or [],
            upcoming_events=body.get("upcomingEvents") or [],
            recent_documents=body.get("recentDocuments") or [],
            volunteers=body.get("volunteers") or [],
        )


@dataclass
class PlatformDashboard:
    stats: dict[str, int] = field(default_factory=dict)
    analytics: dict[str, Any] = field(default_factory=dict)
    recent_organizations: list[dict] = field(default_factory=list)

    @classmethod
    def from_payload(cls, body: dict) -> "PlatformDashboard":
        return cls(
            stats=body.get("stats") or {},
            analytics=body.get("analytics") or {},
            recent_organizations=body.get("recent_organizations") or [],
        )


class DashboardService:
    def __init__(self, api: ApiClient):
        self.api = api

    def volunteer(self) -> VolunteerDashboard:
        return VolunteerDashboard.from_payload(self.api.get("/dashboard/volunteer"))

    def admin(self) -> AdminDashboard:
        return AdminDashboard.from_payload(self.api.get("/dashboard/admin"))

    def super_admin(self) -> PlatformDashboard:
        return PlatformDashboard.from_payload(self.api.get("/super-admin/dashboard"))

    def for_role(self, user_type: str | None):
        """Fetch the dashboard matching the user type."""
        if user_type == Role.SUPER_ADMIN.value:
            return self.super_admin()
        if user_type == Role.NONPROFIT_ADMIN.value:
            return self.admin()
        return self.volunteer()
