"""User managers: super admin member management and admin volunteer management."""

from __future__ import annotations

from pathlib import Path
from urllib.parse import quote

from volunteer_hub.client.gateway import ApiClient
from volunteer_hub.utils.csv_export import export_filename, volunteers_csv

_ALIASES = {
    "organization_id": "organizationId",
    "first_name": "firstName",
    "last_name": "lastName",
}


def _email_path(email: str) -> str:
    return quote(email.strip().lower(), safe="@")


class UserManager:
    """Members across organizations (super admin)."""

    def __init__(self, api: ApiClient):
        self.api = api

    def list(self, organization_id=None) -> list[dict]:
        params = {"organizationId": str(organization_id) if organization_id else None}
        return self.api.get("/super-admin/users", params=params)["users"]

    def add_to_organization(self, email: str, organization_id, role: str = "volunteer", notes=None) -> dict:
        return self.api.post(
            "/super-admin/users",
            json={
                "email": email,
                "organizationId": str(organization_id),
                "role": role,
                "notes": notes,
            },
        )["user"]

    def update_role(self, email: str, role: str, organization_id) -> dict:
        return self.api.put(
            f"/super-admin/users/{_email_path(email)}/role",
            json={"role": role, "organizationId": str(organization_id)},
        )["user"]

    def update_profile(self, email: str, **fields) -> dict:
        payload = {
            _ALIASES.get(k, k): str(v) if k == "organization_id" else v
            for k, v in fields.items()
        }
        return self.api.put(f"/super-admin/users/{_email_path(email)}", json=payload)["user"]

    def remove_from_organization(self, email: str) -> dict:
        return self.api.delete(f"/super-admin/users/{_email_path(email)}")


class VolunteerManager:
    """Volunteers of the caller's own organization (nonprofit admin)."""

    def __init__(self, api: ApiClient):
        self.api = api

    def list(self) -> list[dict]:
        return self.api.get("/admin/volunteers")["users"]

    def stats(self) -> dict:
        return self.api.get("/admin/volunteers/stats")["stats"]

    def add(self, email: str, name: str | None = None, role: str = "volunteer", notes=None) -> dict:
        return self.api.post(
            "/admin/volunteers",
            json={"email": email, "name": name, "role": role, "notes": notes},
        )["user"]

    def update(self, email: str, **fields) -> dict:
        return self.api.put(f"/admin/volunteers/{_email_path(email)}", json=fields)["user"]

    def remove(self, email: str) -> dict:
        return self.api.delete(f"/admin/volunteers/{_email_path(email)}")

    def directory(self) -> list[dict]:
        return self.api.get("/dashboard/volunteers")["volunteers"]

    def export_csv(self, directory, volunteers: list[dict] | None = None, today=None) -> Path:
        rows = volunteers if volunteers is not None else self.list()
        path = Path(directory) / export_filename("volunteers-directory", today)
        path.write_text(volunteers_csv(rows), encoding="utf-8")
        return path
