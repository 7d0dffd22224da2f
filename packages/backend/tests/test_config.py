"""Settings tests."""

import pytest
from pydantic import ValidationError

from fitcoach.config import Settings


def test_defaults(monkeypatch):
    monkeypatch.delenv("FITCOACH_VERIFICATION_CODE_TTL_SECONDS", raising=False)
    monkeypatch.delenv("FITCOACH_ENVIRONMENT", raising=False)
    s = Settings()
    assert s.verification_code_ttl_seconds == 300
    assert s.environment == "development"


def test_env_prefix(monkeypatch):
    monkeypatch.setenv("FITCOACH_VERIFICATION_CODE_TTL_SECONDS", "60")
    monkeypatch.setenv("FITCOACH_EXPOSE_VERIFICATION_CODES", "true")
    s = Settings()
    assert s.verification_code_ttl_seconds == 60
    assert s.expose_verification_codes is True


def test_production_requires_real_secret(monkeypatch):
    monkeypatch.delenv("FITCOACH_JWT_SECRET", raising=False)
    with pytest.raises(ValidationError, match="FITCOACH_JWT_SECRET"):
        Settings(environment="production")


def test_production_with_secret(monkeypatch):
    monkeypatch.setenv("FITCOACH_JWT_SECRET", "s3cr3t-for-tests")
    s = Settings(environment="production")
    assert s.jwt_secret == "s3cr3t-for-tests"
