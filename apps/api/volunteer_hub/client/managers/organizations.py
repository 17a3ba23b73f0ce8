"""Organization manager (super admin)."""

from __future__ import annotations

from volunteer_hub.client.errors import ValidationFailure
from volunteer_hub.client.gateway import ApiClient

MIN_PASSWORD_LENGTH = 8

# Python-side keyword -> request key
_ALIASES = {"contact_email": "contactEmail"}


def _payload(fields: dict) -> dict:
    return {_ALIASES.get(k, k): v for k, v in fields.items()}


class OrganizationManager:
    def __init__(self, api: ApiClient):
        self.api = api

    def list(self) -> list[dict]:
        return self.api.get("/super-admin/organizations")["organizations"]

    def create(
        self,
        name: str,
        password: str,
        admin_email: str | None = None,
        admin_notes: str | None = None,
        **fields,
    ) -> dict:
        """
        Raises:
            ValidationFailure: Missing name or short password (checked locally)
        """
        if not name or not name.strip():
            raise ValidationFailure("Organization name is required")
        if len(password or "") < MIN_PASSWORD_LENGTH:
            raise ValidationFailure(
                f"Password must be at least {MIN_PASSWORD_LENGTH} characters long"
            )
        payload = _payload({"name": name, "password": password, **fields})
        if admin_email:
            payload["nonprofitAdminEmail"] = admin_email
        if admin_notes:
            payload["nonprofitAdminNotes"] = admin_notes
        return self.api.post("/super-admin/organizations", json=payload)["organization"]

    def update(self, org_id, **fields) -> dict:
        return self.api.put(
            f"/super-admin/organizations/{org_id}", json=_payload(fields)
        )["organization"]

    def toggle_active(self, org_id, is_active: bool) -> dict:
        return self.api.put(
            f"/super-admin/organizations/{org_id}/status", json={"is_active": is_active}
        )["organization"]
