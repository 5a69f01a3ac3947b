"""Unit tests for core/config.py -- Settings validation.

Covers:
- defaults match the documented auth policy (1h tokens, 6-char passwords)
- DEBUG mode generates a 64-char hex secret when none is configured
- production mode without SECRET_KEY refuses to start
- short secrets are rejected in every mode
- env vars override defaults
"""

import pytest
from pydantic import ValidationError

from core.config import Settings

LONG_SECRET = "s" * 32


def test_defaults():
    s = Settings(_env_file=None, secret_key=LONG_SECRET, debug=False)
    assert s.token_expire_seconds == 3600
    assert s.min_password_length == 6
    assert s.allow_password_reset is True
    assert s.database_url.startswith("sqlite:///")


def test_debug_generates_secret():
    s = Settings(_env_file=None, secret_key="", debug=True)
    assert len(s.secret_key) == 64


def test_production_requires_secret():
    with pytest.raises(ValidationError, match="SECRET_KEY is required"):
        Settings(_env_file=None, secret_key="", debug=False)


@pytest.mark.parametrize("debug", [True, False])
def test_short_secret_rejected(debug):
    with pytest.raises(ValidationError, match="at least 32 characters"):
        Settings(_env_file=None, secret_key="too-short", debug=debug)


def test_env_overrides(monkeypatch):
    monkeypatch.setenv("SECRET_KEY", LONG_SECRET)
    monkeypatch.setenv("TOKEN_EXPIRE_SECONDS", "120")
    monkeypatch.setenv("ALLOW_PASSWORD_RESET", "false")
    monkeypatch.setenv("DATABASE_URL", "sqlite:///./elsewhere.db")
    s = Settings(_env_file=None)
    assert s.secret_key == LONG_SECRET
    assert s.token_expire_seconds == 120
    assert s.allow_password_reset is False
    assert s.database_url == "sqlite:///./elsewhere.db"


def test_min_password_length_must_be_positive():
    with pytest.raises(ValidationError):
        Settings(_env_file=None, secret_key=LONG_SECRET, min_password_length=0)
