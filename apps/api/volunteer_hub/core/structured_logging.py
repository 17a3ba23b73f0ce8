"""Log context for request-scoped lines. Ids only, never names or emails."""

from typing import Any

from starlette.requests import Request

ORG_HEADER = "X-Organization-Id"


def build_log_context(
    *,
    user_id: Any = None,
    org_id: Any = None,
    route: str | None = None,
    method: str | None = None,
    status_code: int | None = None,
) -> dict[str, Any]:
    """`extra=` dict for logger calls; ids are stringified, empty values dropped."""
    fields = {
        "user_id": str(user_id) if user_id else None,
        "org_id": str(org_id) if org_id else None,
        "route": route,
        "method": method,
        "status_code": status_code,
    }
    return {key: value for key, value in fields.items() if value not in (None, "")}


def request_log_context(request: Request, status_code: int | None = None) -> dict[str, Any]:
    """Context for a request that failed before (or without) a resolved session."""
    return build_log_context(
        org_id=request.headers.get(ORG_HEADER),
        route=request.url.path,
        method=request.method,
        status_code=status_code,
    )
