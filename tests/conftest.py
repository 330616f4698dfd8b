"""
Global pytest fixtures for the tinylink test suite.

Responsibilities:
    - Provide a fresh FastAPI TestClient via the app factory for integration tests
    - Provide an isolated in-memory Storage driven by a controllable clock
    - Provide a LinkManager fixture wired to that Storage and clock

Why an app factory?
    Using `create_app()` ensures each test gets fresh in-memory state,
    eliminating cross-test flakiness.
"""

from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from main import create_app
from tinylink.manager.link_manager import LinkManager
from tinylink.storage.storage import Storage


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: datetime = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def storage(clock: FakeClock) -> Storage:
    """Fresh in-memory Storage sharing the test clock."""
    return Storage(clock=clock)


@pytest.fixture
def manager(storage: Storage, clock: FakeClock) -> LinkManager:
    """LinkManager wired to the storage fixture and the same clock."""
    return LinkManager(storage=storage, clock=clock)


@pytest.fixture
def client(monkeypatch) -> TestClient:
    """
    Provide a fresh TestClient with a new app instance on in-memory storage.

    Notes:
        - CRON_SECRET is cleared so the sweep endpoint is open unless a test sets it.
        - Redirects are not followed so tests can assert on the 302 itself.
    """
    monkeypatch.setenv("TINYLINK_STORAGE_BACKEND", "memory")
    monkeypatch.delenv("CRON_SECRET", raising=False)
    return TestClient(create_app(), follow_redirects=False)
