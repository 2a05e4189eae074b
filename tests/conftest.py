"""
tests/conftest.py -- Shared test fixtures for the employee directory auth tests.

This module provides:
  - settings: a Settings instance with a fixed signing config and bcrypt's
    minimum cost factor (fast hashing)
  - services: fully wired AuthServices over a fresh file-backed SQLite DB
  - api_client: TestClient with an admin Bearer token for route tests

Design: every test DB is a real file under pytest's tmp_path rather than
":memory:". Route handlers run in a thread pool and the concurrency tests use
threads of their own; a file DB gives every connection the same schema and
real SQLite locking.

Environment variables are set before any project import so get_settings()
(used by the rate limiter at request time) resolves without a .env file.
"""

from __future__ import annotations

import os
from collections.abc import Generator
from contextlib import asynccontextmanager

# CRITICAL: set before any core/api import so get_settings() never raises.
os.environ.setdefault("SECRET_KEY", "test_secret_key_for_signing_tokens_0123456789")
os.environ.setdefault("JWT_ISSUER", "test-issuer")
os.environ.setdefault("JWT_AUDIENCE", "test-audience")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("LOGIN_RATE_LIMIT", "1000/minute")

import pytest
from fastapi.testclient import TestClient

from api.main import app
from auth.models import Role, User
from container import AuthServices, build_services
from core.config import Settings

TEST_SECRET = "test_secret_key_for_signing_tokens_0123456789"
TEST_ISSUER = "test-issuer"
TEST_AUDIENCE = "test-audience"

ROOT_EMAIL = "root@test.com"
ROOT_PASSWORD = "rootpass123"


def make_settings(**overrides) -> Settings:
    """Build Settings from explicit values only -- no .env file, fixed key."""
    values = {
        "secret_key": TEST_SECRET,
        "jwt_issuer": TEST_ISSUER,
        "jwt_audience": TEST_AUDIENCE,
        "bcrypt_rounds": 4,
        "token_expire_seconds": 900,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def services(tmp_path, settings) -> Generator[AuthServices, None, None]:
    """Wired stores and services over an empty, isolated database."""
    svc = build_services(settings, db_url=f"sqlite:///{tmp_path / 'auth.db'}")
    yield svc
    svc.close()


# ---------------------------------------------------------------------------
# API client
# ---------------------------------------------------------------------------


def _patch_lifespan(services: AuthServices):
    """Return a lifespan that installs pre-built test services on app.state."""

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.services = services
        yield

    return test_lifespan


@pytest.fixture(scope="module")
def api_client(tmp_path_factory) -> Generator[tuple[TestClient, str, AuthServices], None, None]:
    """Yield (client, admin_token, services) for route tests.

    One admin account (ROOT_EMAIL / ROOT_PASSWORD, password already changed)
    exists before the client starts; admin_token is a valid access token for it.
    """
    db_path = tmp_path_factory.mktemp("api") / "auth.db"
    svc = build_services(make_settings(), db_url=f"sqlite:///{db_path}")

    admin = svc.users.create(
        User(
            email=ROOT_EMAIL,
            password_hash=svc.hasher.hash(ROOT_PASSWORD),
            role=Role.ADMIN.value,
            must_change_password=False,
        )
    )
    token = svc.signer.issue_access_token(admin)

    app.router.lifespan_context = _patch_lifespan(svc)

    with TestClient(app, raise_server_exceptions=True) as client:
        yield client, token, svc

    svc.close()
