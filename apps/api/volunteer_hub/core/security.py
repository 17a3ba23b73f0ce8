"""Security utilities for JWT access/refresh tokens and password hashing."""

from datetime import datetime, timedelta, timezone
from uuid import UUID

import bcrypt
import jwt

from volunteer_hub.core.config import settings

ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"


# =============================================================================
# Passwords
# =============================================================================

def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, password_hash: str | None) -> bool:
    if not password or not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # Malformed stored hash
        return False


# =============================================================================
# Tokens
# =============================================================================

def create_access_token(
    user_id: UUID,
    email: str,
    user_type: str,
    org_id: UUID | None = None,
    org_name: str | None = None,
) -> str:
    """
    Create short-lived signed access JWT.

    Always signs with current secret (JWT_SECRET).
    Token carries identity and organization context for the request.
    """
    now = datetime.now(timezone.utc)
    payload = {
        "sub": str(user_id),
        "email": email,
        "user_type": user_type,
        "role": user_type,
        "org_id": str(org_id) if org_id else None,
        "org_name": org_name,
        "type": ACCESS_TOKEN_TYPE,
        "iat": now,
        "exp": now + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRES_MINUTES),
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm="HS256")


def create_refresh_token(user_id: UUID, user_type: str) -> str:
    """Create long-lived refresh JWT (identity only)."""
    now = datetime.now(timezone.utc)
    payload = {
        "sub": str(user_id),
        "user_type": user_type,
        "type": REFRESH_TOKEN_TYPE,
        "iat": now,
        "exp": now + timedelta(days=settings.REFRESH_TOKEN_EXPIRES_DAYS),
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm="HS256")


def decode_token(token: str, expected_type: str = ACCESS_TOKEN_TYPE) -> dict:
    """
    Decode and verify a JWT.

    Tries current secret first, then previous (for rotation support).

    Raises:
        jwt.InvalidTokenError: If token invalid with all secrets or of the wrong type
    """
    last_error = None
    for secret in settings.jwt_secrets:
        try:
            payload = jwt.decode(token, secret, algorithms=["HS256"])
        except jwt.InvalidTokenError as e:
            last_error = e
            continue
        if payload.get("type") != expected_type:
            raise jwt.InvalidTokenError(f"Expected {expected_type} token")
        return payload
    raise last_error  # type: ignore
