"""Client error taxonomy.

Every failure surfaced by the client is a VolunteerHubError; callers catch
the subclass that matches how they want to react.
"""


class VolunteerHubError(Exception):
    """Base error carrying the server message and HTTP status, when known."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        code: str | None = None,
        details: list | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.code = code
        self.details = details or []


class AuthenticationFailure(VolunteerHubError):
    """401: credentials rejected or session no longer valid."""


class InvalidCredentials(AuthenticationFailure):
    pass


class EmailNotWhitelisted(AuthenticationFailure):
    pass


class Unauthenticated(AuthenticationFailure):
    """No usable session; the caller must log in again."""


class AuthorizationFailure(VolunteerHubError):
    """403: authenticated but not allowed."""


class ValidationFailure(VolunteerHubError):
    """400/422, or rejected locally before any request was sent."""


class TaskHasCompletedWork(ValidationFailure):
    pass


class NotFound(VolunteerHubError):
    pass


class ServerError(VolunteerHubError):
    pass


class NetworkFailure(VolunteerHubError):
    """The request never produced a response."""


_LOGIN_CODES = {
    "invalid_credentials": InvalidCredentials,
    "email_not_whitelisted": EmailNotWhitelisted,
}


def error_for_status(
    status_code: int,
    message: str,
    code: str | None = None,
    details: list | None = None,
) -> VolunteerHubError:
    """Map an HTTP error response to the matching client error."""
    if status_code == 401:
        cls = _LOGIN_CODES.get(code or "", AuthenticationFailure)
    elif status_code == 403:
        cls = AuthorizationFailure
    elif status_code == 404:
        cls = NotFound
    elif status_code in (400, 422):
        cls = ValidationFailure
    elif status_code >= 500:
        cls = ServerError
    else:
        cls = VolunteerHubError
    return cls(message, status_code=status_code, code=code, details=details)
