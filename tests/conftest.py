"""
tests/conftest.py -- Shared test fixtures for TokenGate.

This module provides:
  - store: a fresh in-memory UserStore for unit tests
  - client: TestClient over the real FastAPI app, wired to an isolated store
  - register_and_login(): helper returning (user_id, token) through the HTTP API

Design: the API store uses a named shared-memory SQLite URI (not plain
:memory:) because TestClient runs sync route handlers in a thread pool. Plain
:memory: DBs are per-connection and would present a blank schema to each
worker thread. The named URI format (file:name?mode=memory&cache=shared&uri=true)
shares one in-memory instance across all connections in the same process.
Each client gets a uuid-suffixed name so tests never see each other's rows.

BCRYPT_ROUNDS must be set before any auth import: auth.tokens hashes its
timing dummy at import time with the configured work factor.
"""

from __future__ import annotations

import os
import uuid
from collections.abc import Generator
from contextlib import asynccontextmanager

# Set before any auth/core import so get_settings() sees the cheap work factor.
os.environ.setdefault("BCRYPT_ROUNDS", "4")

import pytest
from fastapi.testclient import TestClient

from api.main import app
from auth.store import UserStore

# ---------------------------------------------------------------------------
# Store helpers
# ---------------------------------------------------------------------------


def _make_test_store() -> UserStore:
    """Create an isolated named shared-memory SQLite store."""
    return UserStore(db_url=f"sqlite:///file:test_auth_{uuid.uuid4().hex}?mode=memory&cache=shared&uri=true")


def _patch_lifespan(user_store: UserStore):
    """Return an async context manager that replaces the real lifespan.

    Wires the test store into app.state so routes never open the on-disk
    database configured in Settings.
    """

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.user_store = user_store
        yield

    return test_lifespan


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def store() -> Generator[UserStore, None, None]:
    """A UserStore on a private in-memory database."""
    s = _make_test_store()
    yield s
    s.close()


@pytest.fixture
def client(store: UserStore) -> Generator[TestClient, None, None]:
    """TestClient against the real app, backed by the `store` fixture.

    Tests that need to inspect rows directly can request both `client` and
    `store` -- they are the same database.
    """
    app.router.lifespan_context = _patch_lifespan(store)
    with TestClient(app, raise_server_exceptions=True) as c:
        yield c


def register_and_login(
    client: TestClient,
    name: str = "Ann",
    email: str = "ann@x.com",
    password: str = "secret1",
) -> tuple[int, str]:
    """Register a user, log in once, and return (user_id, access_token)."""
    resp = client.post("/register", json={"name": name, "email": email, "password": password})
    assert resp.status_code == 201, resp.text
    user_id = resp.json()["user"]["id"]
    resp = client.post("/login", json={"email": email, "password": password})
    assert resp.status_code == 200, resp.text
    return user_id, resp.json()["access_token"]


def bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}
