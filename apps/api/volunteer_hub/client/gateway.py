"""Authenticated HTTP gateway.

Every call carries the bearer access token. A 401 triggers exactly one
token refresh and one replay of the original request; when the refresh
fails the session is cleared and Unauthenticated raised. Nothing else is
retried.
"""

import logging
from typing import Any

import httpx

from volunteer_hub.client.config import ClientSettings
from volunteer_hub.client.errors import (
    NetworkFailure, Unauthenticated, VolunteerHubError, error_for_status,
)
from volunteer_hub.client.session import SessionStore

logger = logging.getLogger(__name__)

REFRESH_PATH = "/auth/refresh"
ORG_HEADER = "X-Organization-Id"


class ApiClient:
    """Thin wrapper over httpx.Client that speaks the API's envelopes."""

    def __init__(
        self,
        session: SessionStore,
        settings: ClientSettings | None = None,
        http: httpx.Client | None = None,
    ):
        self.session = session
        self.settings = settings or ClientSettings()
        self.organization_id = self.settings.ORGANIZATION_ID or None
        self._http = http or httpx.Client(
            base_url=self.settings.API_URL,
            timeout=self.settings.TIMEOUT_SECONDS,
        )

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> "ApiClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Verbs
    # ------------------------------------------------------------------

    def get(self, path: str, **kwargs) -> Any:
        return self.request("GET", path, **kwargs)

    def post(self, path: str, **kwargs) -> Any:
        return self.request("POST", path, **kwargs)

    def put(self, path: str, **kwargs) -> Any:
        return self.request("PUT", path, **kwargs)

    def delete(self, path: str, **kwargs) -> Any:
        return self.request("DELETE", path, **kwargs)

    def download(self, path: str, **kwargs) -> httpx.Response:
        """Raw response for byte downloads (documents, .ics, CSV)."""
        return self.request("GET", path, raw=True, **kwargs)

    # ------------------------------------------------------------------
    # Core
    # ------------------------------------------------------------------

    def request(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        params: dict | None = None,
        data: dict | None = None,
        files: dict | None = None,
        authenticated: bool = True,
        raw: bool = False,
    ) -> Any:
        """
        Send a request and return the decoded JSON body (or the response if raw).

        Raises:
            VolunteerHubError subclass matching the failure
        """
        params = {k: v for k, v in (params or {}).items() if v is not None} or None
        response = self._send(method, path, json, params, data, files, authenticated)

        if response.status_code == 401 and authenticated and path != REFRESH_PATH:
            if not self._refresh():
                self.session.clear()
                raise Unauthenticated("Session expired. Please log in again.", status_code=401)
            response = self._send(method, path, json, params, data, files, authenticated)
            if response.status_code == 401:
                self.session.invalidate()
                raise Unauthenticated("Session expired. Please log in again.", status_code=401)

        if response.status_code >= 400:
            raise self._to_error(response)
        if raw:
            return response
        if not response.content:
            return {}
        return response.json()

    def _headers(self, authenticated: bool) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if authenticated and self.session.access_token:
            headers["Authorization"] = f"Bearer {self.session.access_token}"
        if self.organization_id:
            headers[ORG_HEADER] = str(self.organization_id)
        return headers

    def _send(self, method, path, json, params, data, files, authenticated) -> httpx.Response:
        try:
            return self._http.request(
                method,
                path,
                json=json,
                params=params,
                data=data,
                files=files,
                headers=self._headers(authenticated),
            )
        except httpx.RequestError as exc:
            logger.warning("Request failed %s %s: %s", method, path, exc)
            raise NetworkFailure(f"Network error: {exc}") from exc

    def _refresh(self) -> bool:
        """Exchange the refresh token once. Returns False when it was rejected."""
        refresh_token = self.session.refresh_token
        if not refresh_token:
            return False
        try:
            response = self._http.post(
                REFRESH_PATH,
                json={"refreshToken": refresh_token},
                headers={"Accept": "application/json"},
            )
        except httpx.RequestError as exc:
            raise NetworkFailure(f"Network error: {exc}") from exc
        if response.status_code != 200:
            logger.info("Token refresh rejected status=%s", response.status_code)
            return False
        self.session.update_tokens(response.json()["tokens"])
        return True

    @staticmethod
    def _to_error(response: httpx.Response) -> VolunteerHubError:
        try:
            body = response.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}
        message = (
            body.get("message")
            or body.get("error")
            or response.reason_phrase
            or f"HTTP {response.status_code}"
        )
        return error_for_status(
            response.status_code,
            str(message),
            code=body.get("code"),
            details=body.get("details"),
        )
