"""Client-side auth service."""

import logging
from urllib.parse import quote

from volunteer_hub.client.errors import Unauthenticated, ValidationFailure, VolunteerHubError
from volunteer_hub.client.gateway import ApiClient
from volunteer_hub.core.permissions import permissions_for

logger = logging.getLogger(__name__)

MIN_ORG_PASSWORD_LENGTH = 8

# Cached profile keys and the request keys PUT /users/profile expects
_PROFILE_FIELDS = {
    "first_name": "firstName",
    "last_name": "lastName",
    "email": "email",
    "phone": "phone",
    "address": "address",
    "birthday": "birthday",
}


def get_user_permissions(user_type: str | None) -> dict[str, bool]:
    """Capability table for a user type; no request needed."""
    return permissions_for(user_type).as_dict()


class AuthService:
    def __init__(self, api: ApiClient):
        self.api = api
        self.session = api.session

    def login(self, email: str, password: str) -> dict:
        """
        Log in and persist the session.

        Raises:
            InvalidCredentials, EmailNotWhitelisted
        """
        body = self.api.post(
            "/auth/login",
            json={"email": email, "password": password},
            authenticated=False,
        )
        self.session.save(body["tokens"], body["user"], body["userType"])
        return body

    def logout(self) -> None:
        """Always clears the local session, even when the server call fails."""
        try:
            if self.session.access_token:
                self.api.post("/auth/logout")
        except VolunteerHubError as exc:
            logger.info("Remote logout failed: %s", exc)
        finally:
            self.session.clear()

    def get_current_user(self) -> dict:
        """
        Refresh the cached profile from /auth/me.

        Raises:
            Unauthenticated: No session, or it could not be refreshed
        """
        if not self.session.is_authenticated:
            raise Unauthenticated("Not logged in", status_code=401)
        body = self.api.get("/auth/me")
        self.session.save(
            {"accessToken": self.session.access_token, "refreshToken": self.session.refresh_token},
            body["user"],
            body["userType"],
        )
        return body

    def check_email(self, email: str) -> dict:
        return self.api.get(f"/auth/check-email/{quote(email, safe='')}", authenticated=False)

    def update_profile(self, **changes) -> dict:
        """Merge the changes over the cached profile and write it back."""
        current = self.session.user or {}
        merged = {key: current.get(key) for key in _PROFILE_FIELDS}
        merged.update({k: v for k, v in changes.items() if k in _PROFILE_FIELDS})
        payload = {_PROFILE_FIELDS[k]: v for k, v in merged.items()}
        if payload.get("birthday") is not None:
            payload["birthday"] = str(payload["birthday"])
        body = self.api.put("/users/profile", json=payload)
        self.session.update_user(body["user"])
        return body["user"]

    def change_org_password(
        self,
        new_password: str,
        confirm_password: str,
        organization_id: str | None = None,
    ) -> dict:
        """
        Rotate the organization's shared password.

        Raises:
            ValidationFailure: Checked locally before any request
        """
        if new_password != confirm_password:
            raise ValidationFailure("Passwords do not match")
        if len(new_password) < MIN_ORG_PASSWORD_LENGTH:
            raise ValidationFailure(
                f"Password must be at least {MIN_ORG_PASSWORD_LENGTH} characters long"
            )
        payload = {"newPassword": new_password, "confirmPassword": confirm_password}
        if organization_id:
            payload["organizationId"] = str(organization_id)
        return self.api.post("/auth/change-org-password", json=payload)

    def permissions(self) -> dict[str, bool]:
        return get_user_permissions(self.session.user_type)
