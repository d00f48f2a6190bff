"""
Pytest fixtures for waitlist tests.
"""

import itertools
from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from main import create_app
from storage import InMemoryStorage, StorageWriteError
from waitlist import WaitlistStore


class FailingStorage(InMemoryStorage):
    """Storage whose writes can be switched off to simulate a full disk."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.fail_writes = False

    def set(self, key, value):
        if self.fail_writes:
            raise StorageWriteError("quota exceeded")
        super().set(key, value)


@pytest.fixture
def clock():
    """Clock that advances one second per call."""
    start = datetime(2026, 1, 1, tzinfo=timezone.utc)
    ticks = itertools.count()
    return lambda: start + timedelta(seconds=next(ticks))


@pytest.fixture
def storage():
    return FailingStorage()


@pytest.fixture
def store(storage, clock) -> WaitlistStore:
    """An empty, loaded store on in-memory storage."""
    waitlist = WaitlistStore(storage, clock=clock)
    waitlist.load()
    return waitlist


@pytest.fixture
def client(store):
    app = create_app(store=store, configure_logging=False)
    with TestClient(app) as test_client:
        yield test_client
