"""
tests/conftest.py -- Shared test fixtures for PlanIt.

This module provides:
  - hasher / codec / user_store / task_store: unit-level collaborators
  - _make_test_stores(): isolated named shared-memory DBs for the API tests
  - _patch_lifespan(): wires test collaborators into app.state
  - api_client: TestClient for integration tests
  - register_user: creates a fresh account through the API, returns its headers

Design: Named shared-memory SQLite URIs (not plain :memory:) are required for
the API tests because TestClient runs sync route handlers in a thread pool.
Plain :memory: DBs are per-connection and would present a blank schema to
each worker thread. Unit tests run on one thread, so :memory: is enough.

DEBUG must be set before any core/auth/api import so get_settings()
auto-generates SECRET_KEY instead of raising ValueError. BCRYPT_ROUNDS=4 is
bcrypt's minimum cost and keeps the suite fast.
"""

from __future__ import annotations

import os
import uuid
from collections.abc import Callable, Generator
from contextlib import asynccontextmanager

# CRITICAL: Set env before any core/auth/api import.
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("BCRYPT_ROUNDS", "4")

import pytest
from fastapi.testclient import TestClient

from api.main import app
from auth.passwords import PasswordHasher
from auth.store import UserStore
from auth.tokens import TokenCodec
from core.config import get_settings
from tasks.store import TaskStore

TEST_SECRET = "test-secret-key-with-at-least-32-characters"


# ---------------------------------------------------------------------------
# Unit-level fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(scope="session")
def hasher() -> PasswordHasher:
    return PasswordHasher(rounds=4)


@pytest.fixture
def codec() -> TokenCodec:
    return TokenCodec(TEST_SECRET, lifetime_seconds=3600)


@pytest.fixture
def user_store() -> Generator[UserStore, None, None]:
    store = UserStore("sqlite:///:memory:")
    yield store
    store.close()


@pytest.fixture
def task_store() -> Generator[TaskStore, None, None]:
    store = TaskStore("sqlite:///:memory:")
    yield store
    store.close()


# ---------------------------------------------------------------------------
# API fixtures
# ---------------------------------------------------------------------------


def _make_test_stores(db_suffix: str) -> tuple[UserStore, TaskStore]:
    """Create isolated named shared-memory SQLite stores.

    Args:
        db_suffix: Unique string appended to the DB name so separate test
                   modules don't share state.
    """
    url = f"sqlite:///file:test_planit_{db_suffix}?mode=memory&cache=shared&uri=true"
    return UserStore(url), TaskStore(url)


def _patch_lifespan(user_store: UserStore, task_store: TaskStore):
    """Return an async context manager that replaces the real lifespan."""

    @asynccontextmanager
    async def test_lifespan(app):
        settings = get_settings()
        app.state.settings = settings
        app.state.hasher = PasswordHasher(rounds=4)
        app.state.token_codec = TokenCodec(settings.secret_key, lifetime_seconds=settings.token_expire_seconds)
        app.state.user_store = user_store
        app.state.task_store = task_store
        yield

    return test_lifespan


@pytest.fixture(scope="module")
def api_client(request) -> Generator[TestClient, None, None]:
    """Yield a TestClient over the real app with isolated in-memory stores.

    One client (and one database) per test module. Tests that need a clean
    board register their own account through register_user.
    """
    user_store, task_store = _make_test_stores(request.module.__name__.rsplit(".", 1)[-1])
    app.router.lifespan_context = _patch_lifespan(user_store, task_store)

    with TestClient(app, raise_server_exceptions=True) as client:
        yield client

    task_store.close()
    user_store.close()


@pytest.fixture
def register_user(api_client: TestClient) -> Callable[..., dict]:
    """Return a factory that registers a new account and returns its session.

    The result is {"email", "password", "token", "user", "headers"} where
    headers is ready to pass to client.get(..., headers=...).
    """

    def _register(password: str = "correct horse battery", name: str | None = None) -> dict:
        email = f"user-{uuid.uuid4().hex[:12]}@example.com"
        resp = api_client.post("/api/auth/register", json={"email": email, "password": password, "name": name})
        assert resp.status_code == 201, resp.text
        data = resp.json()
        return {
            "email": email,
            "password": password,
            "token": data["token"],
            "user": data["user"],
            "headers": {"Authorization": f"Bearer {data['token']}"},
        }

    return _register
