"""Pytest configuration and fixtures for objlock tests"""

from __future__ import annotations

import logging
from datetime import UTC, datetime, timedelta

import pytest

from objlock.core.locks.provider import ObjectStoreLockProvider
from objlock.stores.memory import MemoryObjectStore


class FakeClock:
    """Manually advanced clock returning aware UTC datetimes."""

    def __init__(self, start: datetime | None = None):
        self.now = start or datetime(2024, 1, 7, 16, 52, 3, 932000, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now = self.now + timedelta(seconds=seconds)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def memory_store():
    return MemoryObjectStore("test-bucket")


@pytest.fixture
def provider(memory_store, clock):
    return ObjectStoreLockProvider(memory_store, clock=clock, hostname="node-a")


@pytest.fixture
def restore_root_logging():
    """Undo handler changes made by setup_logging()."""
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    yield
    for handler in root.handlers[:]:
        if handler not in handlers:
            handler.close()
            root.removeHandler(handler)
    for handler in handlers:
        if handler not in root.handlers:
            root.addHandler(handler)
    root.setLevel(level)
