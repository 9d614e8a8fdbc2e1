"""Pytest configuration and fixtures. Everything runs on the in-memory store."""

from datetime import datetime, timedelta

import pytest

from daycounter.orchestrator import CounterService
from daycounter.services.storage import InMemoryDocumentStore


class FakeClock:
    """Clock the tests can move forward by whole days."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance_days(self, days: int = 1) -> None:
        self.now = self.now + timedelta(days=days)


@pytest.fixture
def clock():
    return FakeClock(datetime(2024, 6, 1, 9, 30))


@pytest.fixture
def store():
    return InMemoryDocumentStore()


@pytest.fixture
def service(store, clock):
    return CounterService(store, clock=clock)
