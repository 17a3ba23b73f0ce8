"""Rate limiting for the Volunteer Hub API (slowapi)."""

import logging
import os

from slowapi import Limiter
from slowapi.util import get_remote_address

from volunteer_hub.core.config import settings

logger = logging.getLogger(__name__)

MEMORY_STORAGE = "memory://"
AUTH_LIMIT = f"{settings.RATE_LIMIT_AUTH}/minute"


def is_testing() -> bool:
    return os.getenv("TESTING", "").lower() in ("1", "true", "yes")


def default_limits(per_minute: int, testing: bool) -> list[str]:
    """Blanket per-client limit; none under test or when disabled with 0."""
    if testing or per_minute <= 0:
        return []
    return [f"{per_minute}/minute"]


def storage_uri(redis_url: str) -> str:
    """
    Limiter storage: Redis when configured and reachable, memory otherwise.

    Workers only share counters through Redis, so an unreachable Redis is
    logged rather than raised and the limiter keeps working per process.
    """
    if not redis_url:
        return MEMORY_STORAGE
    try:
        import redis

        redis.from_url(redis_url, socket_connect_timeout=1).ping()
    except Exception as e:
        logger.warning("Redis unavailable for rate limiting, using in-memory: %s", e)
        return MEMORY_STORAGE
    return redis_url


def build_limiter(testing: bool | None = None) -> Limiter:
    testing = is_testing() if testing is None else testing
    return Limiter(
        key_func=get_remote_address,
        storage_uri=MEMORY_STORAGE if testing else storage_uri(settings.REDIS_URL),
        default_limits=default_limits(settings.RATE_LIMIT_API, testing),
        enabled=not testing,
    )


limiter = build_limiter()
