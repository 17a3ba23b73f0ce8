"""Task manager."""

from __future__ import annotations

from datetime import date, datetime
from pathlib import Path

from volunteer_hub.client.errors import TaskHasCompletedWork
from volunteer_hub.client.gateway import ApiClient
from volunteer_hub.utils.csv_export import export_filename, tasks_csv
from volunteer_hub.utils.tasks import has_completed_work, is_overdue

COMPLETED_WORK_MESSAGE = "Cannot delete a task with completed work"


def _iso(value):
    return value.isoformat() if isinstance(value, (date, datetime)) else value


class TaskManager:
    def __init__(self, api: ApiClient):
        self.api = api

    def list(self, status=None, priority=None, assigned_to=None) -> list[dict]:
        body = self.api.get(
            "/tasks",
            params={"status": status, "priority": priority, "assignedTo": assigned_to},
        )
        return body["tasks"]

    def my_tasks(self, status=None, priority=None, sort_by="due_date", page=1, limit=20) -> dict:
        """The caller's assignments, stats, and pagination."""
        return self.api.get(
            "/tasks/my",
            params={
                "status": status,
                "priority": priority,
                "sortBy": sort_by,
                "page": page,
                "limit": limit,
            },
        )

    def get(self, task_id) -> dict:
        return self.api.get(f"/tasks/{task_id}")["task"]

    def create(
        self,
        title: str,
        assign_to_emails: list[str],
        description: str | None = None,
        due_date=None,
        priority: str = "medium",
    ) -> dict:
        return self.api.post(
            "/tasks",
            json={
                "title": title,
                "description": description,
                "due_date": _iso(due_date),
                "priority": priority,
                "assign_to_emails": list(assign_to_emails),
            },
        )

    def update(self, task_id, **fields) -> dict:
        payload = {k: _iso(v) for k, v in fields.items()}
        return self.api.put(f"/tasks/{task_id}", json=payload)["task"]

    @staticmethod
    def can_delete(task: dict) -> bool:
        statuses = [a.get("status") for a in task.get("assignments") or []]
        return not has_completed_work(task.get("status"), statuses)

    def delete(self, task: dict) -> dict:
        """
        Raises:
            TaskHasCompletedWork: Loaded task already has completed work (no request sent)
        """
        if not self.can_delete(task):
            raise TaskHasCompletedWork(COMPLETED_WORK_MESSAGE)
        return self.api.delete(f"/tasks/{task['id']}")

    def assign(self, task_id, volunteer_email: str) -> dict:
        return self.api.post(
            f"/tasks/{task_id}/assign", json={"volunteer_email": volunteer_email}
        )["task"]

    def complete_for_user(self, task_id, user_id, completion_notes=None, admin_feedback=None) -> dict:
        payload = {"userId": str(user_id)}
        if completion_notes is not None:
            payload["completionNotes"] = completion_notes
        if admin_feedback is not None:
            payload["adminFeedback"] = admin_feedback
        return self.api.post(f"/tasks/{task_id}/complete", json=payload)["task"]

    def update_status(self, task_id, status: str, completion_notes=None) -> dict:
        payload = {"status": status}
        if completion_notes is not None:
            payload["completionNotes"] = completion_notes
        return self.api.put(f"/tasks/{task_id}/status", json=payload)["task"]

    @staticmethod
    def is_overdue(task: dict) -> bool:
        return is_overdue(task.get("due_date"), task.get("status"))

    def export_csv(self, directory: Path | str, tasks: list[dict] | None = None, today=None) -> Path:
        """Write the tasks report and return its path."""
        rows = tasks if tasks is not None else self.list()
        path = Path(directory) / export_filename("tasks-report", today)
        path.write_text(tasks_csv(rows), encoding="utf-8")
        return path
