"""JWT token creation and verification.

Learn: JWT (JSON Web Token) provides stateless authentication. The token
carries the user id in "sub"; any service that shares the secret can
verify it without a database lookup.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt

from fitcoach.config import settings


class TokenError(Exception):
    """Raised when token creation/verification fails."""


def create_access_token(user_id: str, expires_minutes: Optional[int] = None) -> str:
    """Create a JWT access token for a user."""
    now = datetime.now(timezone.utc)
    payload = {
        "sub": user_id,
        "type": "access",
        "exp": now + timedelta(
            minutes=expires_minutes or settings.access_token_expire_minutes
        ),
        "iat": now,
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def verify_token(token: str) -> dict:
    """Verify and decode an access token.

    Returns the payload dict on success.
    Raises TokenError on failure.
    """
    try:
        payload = jwt.decode(
            token, settings.jwt_secret, algorithms=[settings.jwt_algorithm]
        )
    except jwt.ExpiredSignatureError:
        raise TokenError("Token has expired")
    except jwt.InvalidTokenError as e:
        raise TokenError(f"Invalid token: {e}")

    if payload.get("type") != "access" or not payload.get("sub"):
        raise TokenError("Invalid token: not an access token")
    return payload
