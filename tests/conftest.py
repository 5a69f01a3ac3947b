"""
tests/conftest.py -- Shared test fixtures for the contributor accounts service.

This module provides:
  - service: an AuthService over a private in-memory UserStore, for
    unit tests of the account policy
  - _patch_lifespan(): wires a test AuthService into app.state, bypassing real startup
  - api_client: (TestClient, AuthService) for HTTP integration tests

Design: the API fixture uses a named shared-memory SQLite URI (not plain
:memory:) because TestClient runs sync route handlers in a thread pool. Plain
:memory: DBs are per-connection and would present a blank schema to each
worker thread. The named URI format (file:name?mode=memory&cache=shared&uri=true)
shares one in-memory instance across all connections in the same process.
Test stores are built with StaticPool: one connection for the whole store,
so SQLAlchemy never picks its SingletonThreadPool default for memory URLs.

Environment must be set before any api/ or core/ import:
  DEBUG=true            get_settings() auto-generates SECRET_KEY instead of raising
  BCRYPT_ROUNDS=4       the minimum bcrypt cost keeps the suite fast
  LOGIN_RATE_LIMIT      high enough that repeated logins never hit 429
"""

from __future__ import annotations

import os
from collections.abc import Generator
from contextlib import asynccontextmanager

os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("LOGIN_RATE_LIMIT", "1000/minute")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool

from api.main import app
from auth.service import AuthService
from auth.store import UserStore
from auth.tokens import PasswordHasher, TokenSigner

TEST_SECRET = "test-secret-key-with-at-least-32-characters"


def make_service(db_url: str = "sqlite:///:memory:") -> AuthService:
    return AuthService(
        store=UserStore(db_url=db_url, poolclass=StaticPool),
        hasher=PasswordHasher(rounds=4),
        signer=TokenSigner(TEST_SECRET, expire_seconds=3600),
        min_password_length=6,
    )


# ---------------------------------------------------------------------------
# Unit-level fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def service() -> Generator[AuthService, None, None]:
    svc = make_service()
    yield svc
    svc.store.close()


# ---------------------------------------------------------------------------
# API fixtures
# ---------------------------------------------------------------------------


def _patch_lifespan(service: AuthService):
    """Return an async context manager that replaces the real lifespan."""

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.auth_service = service
        yield

    return test_lifespan


@pytest.fixture(scope="module")
def api_client(request) -> Generator[tuple[TestClient, AuthService], None, None]:
    """Yield (client, service) for API integration tests.

    Each test module gets its own named in-memory database so usernames
    registered in one module never collide with another.
    """
    suffix = request.module.__name__.rsplit(".", 1)[-1]
    svc = make_service(f"sqlite:///file:test_accounts_{suffix}?mode=memory&cache=shared&uri=true")

    app.router.lifespan_context = _patch_lifespan(svc)

    with TestClient(app, raise_server_exceptions=True) as client:
        yield client, svc

    svc.store.close()
