"""
objlock - Distributed locks kept in an object storage bucket

Ensures a named, time-bounded task runs on at most one node at a time by
creating a lock object only if it does not already exist.
"""

from objlock.core.config import LockConfiguration, StoreConfig
from objlock.core.exceptions import LockReleaseError, ObjectStoreError, ObjLockError
from objlock.core.locks import ObjectStoreLock, ObjectStoreLockProvider, locked, run_locked
from objlock.core.version import __version__
from objlock.stores import create_object_store

__all__ = [
    "LockConfiguration",
    "LockReleaseError",
    "ObjLockError",
    "ObjectStoreError",
    "ObjectStoreLock",
    "ObjectStoreLockProvider",
    "StoreConfig",
    "__version__",
    "create_object_store",
    "locked",
    "run_locked",
]
