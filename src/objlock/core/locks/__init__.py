"""Locking subsystem backed by object storage.

A lock is an object at key = lock name. Acquisition is a conditional create
and release is a two-phase move to a released marker key.
"""

from objlock.core.locks.provider import (
    LockHandle,
    LockProvider,
    LockRecord,
    ObjectStoreLock,
    ObjectStoreLockProvider,
    to_iso_string,
)
from objlock.core.locks.relocate import move_object
from objlock.core.locks.tasks import TaskResult, locked, run_locked

__all__ = [
    "LockHandle",
    "LockProvider",
    "LockRecord",
    "ObjectStoreLock",
    "ObjectStoreLockProvider",
    "TaskResult",
    "locked",
    "move_object",
    "run_locked",
    "to_iso_string",
]
