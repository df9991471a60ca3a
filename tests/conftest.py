"""
tests/conftest.py -- Shared test fixtures for rolegate.

This module provides:
  - store:  a fresh UserStore on a private in-memory SQLite DB (unit tests)
  - client: (TestClient, UserStore) with the app lifespan swapped so routes
            use an isolated, initially EMPTY user store (integration tests)

Design: Named shared-memory SQLite URIs (not plain :memory:) are used for the
client fixture because TestClient runs sync route handlers in a thread pool.
Plain :memory: DBs are per-connection and would present a blank schema to
each worker thread. Each test gets its own DB name so bootstrap tests always
start from an empty system.

The DEBUG env var must be set before any auth module import so get_settings()
auto-generates SECRET_KEY in dev mode rather than raising ValueError.
"""

from __future__ import annotations

import os
import uuid
from collections.abc import Generator
from contextlib import asynccontextmanager

# Set DEBUG before any auth/core import so get_settings() can auto-generate
# SECRET_KEY in dev mode instead of raising ValueError.
os.environ.setdefault("DEBUG", "true")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool

from api.main import app
from auth.store import UserStore

# ---------------------------------------------------------------------------
# Store helpers
# ---------------------------------------------------------------------------


def _make_shared_store() -> UserStore:
    """Create a UserStore on a uniquely named shared-memory SQLite DB.

    StaticPool keeps one connection open for the store's lifetime; a
    shared-memory DB is discarded as soon as its last connection closes.
    """
    return UserStore(
        db_url=f"sqlite:///file:test_users_{uuid.uuid4().hex}?mode=memory&cache=shared&uri=true",
        poolclass=StaticPool,
    )


def _patch_lifespan(user_store: UserStore):
    """Return an async context manager that replaces the real lifespan.

    Wires the pre-created test store into app.state so TestClient routes see
    an isolated test DB rather than the on-disk default.
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
    """In-memory UserStore, empty, private to one test."""
    s = UserStore("sqlite:///:memory:")
    yield s
    s.close()


@pytest.fixture
def client() -> Generator[tuple[TestClient, UserStore], None, None]:
    """Yield (client, user_store) for API integration tests.

    The TestClient uses the real FastAPI app with a patched lifespan, so tests
    hit real route handlers and exception handlers. The cookie jar persists
    across requests made with the same client, like a browser.
    """
    user_store = _make_shared_store()
    app.router.lifespan_context = _patch_lifespan(user_store)

    with TestClient(app, raise_server_exceptions=True) as test_client:
        yield test_client, user_store

    user_store.close()
