"""Shared test fixtures for all test modules."""

from collections.abc import AsyncIterator
from pathlib import Path

import httpx
import pytest

from loglite.adapters.storage.sqlite_logs import SQLiteLogStore


@pytest.fixture
def log_db_path(tmp_path: Path) -> str:
    """Provide a temporary database path for log store tests."""
    return str(tmp_path / "logs.db")


@pytest.fixture
async def store(log_db_path: str) -> AsyncIterator[SQLiteLogStore]:
    """File-backed log store, closed after the test."""
    log_store = SQLiteLogStore(log_db_path)
    yield log_store
    await log_store.close()


@pytest.fixture
async def memory_store() -> AsyncIterator[SQLiteLogStore]:
    """In-memory log store with proper cleanup."""
    log_store = SQLiteLogStore(":memory:")
    yield log_store
    await log_store.close()


# === ASGI Test Fixtures ===


@pytest.fixture
def asgi_scope():
    """Factory fixture for creating ASGI http scope dicts."""
    from loglite.adapters.frameworks.asgi import Scope

    def _scope(method: str = "GET", path: str = "/") -> Scope:
        return {
            "type": "http",
            "method": method,
            "path": path,
            "query_string": b"",
            "headers": [],
        }

    return _scope


@pytest.fixture
def asgi_send_capture():
    """Fixture that returns a send callable and a responses list for capture.

    Returns a tuple of (send_func, responses_list) for recording ASGI messages.
    """

    responses: list[dict[str, object]] = []

    async def send(message: dict[str, object]) -> None:
        """Capture ASGI messages."""
        responses.append(message)

    return send, responses


@pytest.fixture
def asgi_receive():
    """Factory for a receive callable replaying the given messages in order."""

    def _receive(*messages: dict[str, object]):
        pending = list(messages)

        async def receive() -> dict[str, object]:
            return pending.pop(0)

        return receive

    return _receive


@pytest.fixture
def asgi_test_client():
    """Factory fixture that creates an httpx.AsyncClient for ASGI testing.

    Usage:
        async def test_something(asgi_test_client):
            app = create_asgi_app(store)
            async with asgi_test_client(app) as client:
                response = await client.get("/api/logs/stats")
    """

    def _get_client(app):
        """Return an AsyncClient context manager for the given app."""
        return httpx.AsyncClient(
            transport=httpx.ASGITransport(app=app), base_url="http://test"
        )

    return _get_client


@pytest.fixture
async def seeded_store(store: SQLiteLogStore) -> SQLiteLogStore:
    """Store holding the three-entry example scenario plus a debug entry."""
    await store.info("start", {}, timestamp="2024-01-01 10:00:00")
    await store.warn("mem", {"usage": "85%"}, timestamp="2024-01-01 10:00:01")
    await store.error(
        "db", {"code": "ECONNREFUSED"}, timestamp="2024-01-01 10:00:02"
    )
    await store.debug(
        "login",
        {"userId": "123", "username": "testuser"},
        session_id="run-1",
        timestamp="2024-01-01 10:00:03",
    )
    return store
