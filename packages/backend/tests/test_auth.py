"""JWT helper tests."""

import jwt as pyjwt
import pytest

from fitcoach.auth.jwt import TokenError, create_access_token, verify_token
from fitcoach.config import settings


def test_round_trip_subject():
    token = create_access_token("user-42")
    payload = verify_token(token)
    assert payload["sub"] == "user-42"
    assert payload["type"] == "access"


def test_expired_token():
    token = create_access_token("user-42", expires_minutes=-1)
    with pytest.raises(TokenError, match="expired"):
        verify_token(token)


def test_wrong_secret():
    token = pyjwt.encode({"sub": "user-42", "type": "access"}, "other-secret", algorithm="HS256")
    with pytest.raises(TokenError, match="Invalid token"):
        verify_token(token)


def test_non_access_token_rejected():
    token = pyjwt.encode(
        {"sub": "user-42", "type": "refresh"},
        settings.jwt_secret,
        algorithm=settings.jwt_algorithm,
    )
    with pytest.raises(TokenError):
        verify_token(token)
