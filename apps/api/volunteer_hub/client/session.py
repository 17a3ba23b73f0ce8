"""Session/token store with an explicit lifecycle.

hydrate() on start, save() after login, update_tokens() after a refresh,
invalidate() after an unrecoverable 401, clear() on logout.
"""

import json
import logging
import os
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)


class SessionStore:
    """Tokens and the cached user profile, persisted to a JSON file."""

    def __init__(self, path: Path | str | None = None):
        self.path = Path(path) if path else None
        self._data: dict[str, Any] = {}

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def hydrate(self) -> "SessionStore":
        """Load the persisted session; a missing or corrupt file means logged out."""
        self._data = {}
        if self.path and self.path.exists():
            try:
                loaded = json.loads(self.path.read_text(encoding="utf-8"))
            except (OSError, ValueError) as exc:
                logger.warning("Ignoring unreadable session file %s: %s", self.path, exc)
            else:
                if isinstance(loaded, dict):
                    self._data = loaded
        return self

    def save(self, tokens: dict, user: dict | None, user_type: str | None) -> None:
        self._data = {
            "access_token": tokens.get("accessToken"),
            "refresh_token": tokens.get("refreshToken"),
            "user": user,
            "user_type": user_type,
        }
        self._persist()

    def update_tokens(self, tokens: dict) -> None:
        self._data["access_token"] = tokens.get("accessToken")
        self._data["refresh_token"] = tokens.get("refreshToken")
        self._persist()

    def update_user(self, user: dict) -> None:
        self._data["user"] = user
        self._persist()

    def invalidate(self) -> None:
        """Drop the access token; the refresh token may still recover the session."""
        self._data["access_token"] = None
        self._persist()

    def clear(self) -> None:
        self._data = {}
        if self.path and self.path.exists():
            self.path.unlink()

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def access_token(self) -> str | None:
        return self._data.get("access_token")

    @property
    def refresh_token(self) -> str | None:
        return self._data.get("refresh_token")

    @property
    def user(self) -> dict | None:
        return self._data.get("user")

    @property
    def user_type(self) -> str | None:
        return self._data.get("user_type")

    @property
    def is_authenticated(self) -> bool:
        return bool(self.access_token or self.refresh_token)

    def _persist(self) -> None:
        if not self.path:
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(".tmp")
        tmp_path.write_text(json.dumps(self._data), encoding="utf-8")
        os.chmod(tmp_path, 0o600)
        os.replace(tmp_path, self.path)


class InMemorySessionStore(SessionStore):
    """Same lifecycle, nothing written to disk."""

    def __init__(self):
        super().__init__(path=None)
