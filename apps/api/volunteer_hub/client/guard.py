"""Route guard: decides which screen a session may open."""

import logging
from enum import Enum

from volunteer_hub.client.errors import AuthenticationFailure
from volunteer_hub.db.enums import Role

logger = logging.getLogger(__name__)

LOGIN_PATH = "/login"

ROLE_ROOTS = {
    Role.SUPER_ADMIN.value: "/super-admin",
    Role.NONPROFIT_ADMIN.value: "/admin-dashboard",
    Role.VOLUNTEER.value: "/dashboard",
}

# Paths each role may open (prefix match)
ALLOWED_PREFIXES = {
    Role.SUPER_ADMIN.value: ("/super-admin", "/profile"),
    Role.NONPROFIT_ADMIN.value: (
        "/admin-dashboard", "/tasks", "/calendar", "/documents", "/volunteers", "/profile",
    ),
    Role.VOLUNTEER.value: ("/dashboard", "/tasks", "/calendar", "/documents", "/profile"),
}


class GuardState(str, Enum):
    LOADING = "loading"
    AUTHENTICATED = "authenticated"
    UNAUTHENTICATED = "unauthenticated"


def default_path(user_type: str | None) -> str:
    return ROLE_ROOTS.get(user_type or "", LOGIN_PATH)


def _path_allowed(path: str, user_type: str) -> bool:
    return any(
        path == prefix or path.startswith(prefix + "/")
        for prefix in ALLOWED_PREFIXES.get(user_type, ())
    )


class RouteGuard:
    """
    loading -> authenticated | unauthenticated.

    `check()` settles the state by asking the auth service for the current
    user; any authentication failure lands on unauthenticated.
    """

    def __init__(self, auth):
        self.auth = auth
        self.state = GuardState.LOADING
        self.user_type: str | None = None

    def check(self) -> GuardState:
        if not self.auth.session.is_authenticated:
            return self._unauthenticated()
        try:
            body = self.auth.get_current_user()
        except AuthenticationFailure as exc:
            logger.info("Session rejected: %s", exc)
            return self._unauthenticated()
        self.user_type = body.get("userType")
        self.state = GuardState.AUTHENTICATED
        return self.state

    def _unauthenticated(self) -> GuardState:
        self.user_type = None
        self.state = GuardState.UNAUTHENTICATED
        return self.state

    def resolve(self, path: str) -> str:
        """The path itself when allowed, the role's root otherwise, /login when signed out."""
        if self.state is GuardState.LOADING:
            self.check()
        if self.state is not GuardState.AUTHENTICATED:
            return LOGIN_PATH
        if path in ("", "/"):
            return default_path(self.user_type)
        if _path_allowed(path, self.user_type):
            return path
        return default_path(self.user_type)
