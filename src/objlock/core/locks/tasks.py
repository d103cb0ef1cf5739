"""Run a task under a lock, skipping it when the lock is held elsewhere."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from objlock.core.config import LockConfiguration
from objlock.core.locks.provider import ObjectStoreLock, ObjectStoreLockProvider

T = TypeVar("T")

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TaskResult(Generic[T]):
    """Outcome of ``run_locked``.

    ``executed`` is False when the lock was held elsewhere and the task was
    skipped; ``value`` is then None.
    """

    executed: bool
    value: T | None = None


@contextmanager
def locked(provider: ObjectStoreLockProvider, configuration: LockConfiguration) -> Iterator[ObjectStoreLock | None]:
    """Hold the lock for the duration of the block.

    Yields the handle, or ``None`` if the lock is held elsewhere. The lock is
    released on exit even when the block raises; a release failure is raised
    after the block's own exception, chained to it.
    """
    handle = provider.lock(configuration)
    if handle is None:
        yield None
        return
    try:
        yield handle
    finally:
        handle.release()


def run_locked(
    provider: ObjectStoreLockProvider,
    configuration: LockConfiguration,
    task: Callable[[], T],
) -> TaskResult[T]:
    """Execute ``task`` only if the lock can be acquired right now."""
    with locked(provider, configuration) as handle:
        if handle is None:
            logger.info("Not executing '%s'. It's locked.", configuration.name)
            return TaskResult(executed=False)
        logger.debug("Locked '%s', executing task", configuration.name)
        value: Any = task()
        return TaskResult(executed=True, value=value)
