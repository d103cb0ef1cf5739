"""Tests for running tasks under a lock."""

from __future__ import annotations

import pytest

from objlock.core.config import LockConfiguration
from objlock.core.exceptions import LockReleaseError
from objlock.core.locks.tasks import TaskResult, locked, run_locked

CONFIG = LockConfiguration.of_seconds("nightly", at_most=60)


def test_run_locked_executes_and_releases(provider, memory_store) -> None:
    seen = []

    def task():
        seen.append(memory_store.get("nightly") is not None)
        return "done"

    result = run_locked(provider, CONFIG, task)

    assert result == TaskResult(executed=True, value="done")
    assert seen == [True]
    assert memory_store.get("nightly") is None
    assert memory_store.get("nightly.unlocked") is not None


def test_run_locked_skips_when_held(provider, clock) -> None:
    holder = provider.lock(CONFIG)
    calls = []

    result = run_locked(provider, CONFIG, lambda: calls.append(1))

    assert result.executed is False
    assert result.value is None
    assert calls == []
    holder.release()


def test_run_locked_releases_when_task_fails(provider, memory_store) -> None:
    def task():
        raise ValueError("task failed")

    with pytest.raises(ValueError, match="task failed"):
        run_locked(provider, CONFIG, task)

    assert memory_store.get("nightly") is None


def test_locked_yields_none_when_held(provider) -> None:
    holder = provider.lock(CONFIG)

    with locked(provider, CONFIG) as handle:
        assert handle is None

    holder.release()


def test_locked_surfaces_unlock_failure(provider, memory_store) -> None:
    with pytest.raises(LockReleaseError):
        with locked(provider, CONFIG) as handle:
            assert handle is not None
            memory_store.remove("nightly")
