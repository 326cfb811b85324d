import time
from typing import Any

import jwt

from civic_market.core.config import settings


DEFAULT_TOKEN_TTL_SECONDS = 60 * 60 * 24


def create_access_token(user_id: str, role: str, ttl_seconds: int = DEFAULT_TOKEN_TTL_SECONDS) -> str:
    # Issuing tokens belongs to the auth service; this exists for tests and ops scripts.
    now = int(time.time())
    payload = {
        "sub": str(user_id),
        "role": role,
        "iat": now,
        "exp": now + ttl_seconds,
    }
    return jwt.encode(payload, settings.jwt_secret.get_secret_value(), algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> dict[str, Any]:
    """Raises jwt.InvalidTokenError on bad signature, expiry or malformed input."""
    return jwt.decode(
        token,
        settings.jwt_secret.get_secret_value(),
        algorithms=[settings.jwt_algorithm],
    )
