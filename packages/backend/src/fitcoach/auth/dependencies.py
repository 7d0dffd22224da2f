"""FastAPI auth dependencies.

Learn: These are used as Depends() in route handlers to extract
and validate the caller's identity from the Authorization header.
"""

from typing import Optional

from fastapi import Depends, HTTPException, Header

from fitcoach.auth.jwt import TokenError, verify_token


class CurrentIdentity:
    """The authenticated user making the request."""

    def __init__(self, user_id: str):
        self.user_id = user_id

    def __repr__(self) -> str:
        return f"CurrentIdentity(user_id={self.user_id!r})"


def get_current_user_optional(
    authorization: Optional[str] = Header(None),
) -> Optional[CurrentIdentity]:
    """Extract current identity (optional: returns None if no auth)."""
    if not authorization or not authorization.startswith("Bearer "):
        return None

    try:
        payload = verify_token(authorization[7:])
    except TokenError as e:
        raise HTTPException(
            status_code=401,
            detail=str(e),
            headers={"WWW-Authenticate": "Bearer"},
        )
    return CurrentIdentity(user_id=payload["sub"])


def get_current_user(
    identity: Optional[CurrentIdentity] = Depends(get_current_user_optional),
) -> CurrentIdentity:
    """Extract current identity (required: 401 if no auth)."""
    if not identity:
        raise HTTPException(
            status_code=401,
            detail="Authentication required",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return identity
