"""Distributed lock backed by an object store bucket.

The lock is an object at key = lock name holding a JSON record::

    {
        "id": "lock name",
        "lockUntil": "2017-01-07T16:52:04.071Z",
        "lockedAt": "2017-01-07T16:52:03.932Z",
        "lockedBy": "host name"
    }

Only the existence of the object means "locked"; the record fields are for
troubleshooting and are never read back by acquire or release.

1. Acquire attempts a conditional create of the lock object.
2. If the create succeeded we hold the lock. If the store rejected it
   because the object exists, somebody else holds the lock.
3. Release moves the object to ``<name>.unlocked`` (copy, then delete),
   leaving the record behind as an audit trail.
"""

from __future__ import annotations

import json
import logging
import socket
import threading
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from types import TracebackType
from typing import Any, Protocol

from objlock.core.config import LockConfiguration
from objlock.core.constants import (
    RECORD_ID,
    RECORD_LOCK_UNTIL,
    RECORD_LOCKED_AT,
    RECORD_LOCKED_BY,
    UNLOCK_SUFFIX,
)
from objlock.core.exceptions import LockConfigurationError, LockReleaseError, RelocationError
from objlock.core.locks.relocate import move_object
from objlock.core.logging import with_log_context
from objlock.stores.base import ObjectIdentity, ObjectStore

Clock = Callable[[], datetime]


def utcnow() -> datetime:
    return datetime.now(UTC)


def to_iso_string(instant: datetime) -> str:
    """Format an instant as UTC ISO-8601 with millisecond precision and ``Z``."""
    if instant.tzinfo is None:
        instant = instant.replace(tzinfo=UTC)
    return instant.astimezone(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass(frozen=True)
class LockRecord:
    """Diagnostic payload stored at the lock key."""

    id: str
    locked_at: str
    lock_until: str
    locked_by: str

    def to_dict(self) -> dict[str, str]:
        return {
            RECORD_ID: self.id,
            RECORD_LOCKED_AT: self.locked_at,
            RECORD_LOCK_UNTIL: self.lock_until,
            RECORD_LOCKED_BY: self.locked_by,
        }

    def to_bytes(self) -> bytes:
        return json.dumps(self.to_dict(), sort_keys=True).encode("utf-8")

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> LockRecord | None:
        try:
            return cls(
                id=str(data[RECORD_ID]),
                locked_at=str(data[RECORD_LOCKED_AT]),
                lock_until=str(data[RECORD_LOCK_UNTIL]),
                locked_by=str(data.get(RECORD_LOCKED_BY, "")),
            )
        except (KeyError, TypeError):
            return None

    @classmethod
    def from_bytes(cls, payload: bytes) -> LockRecord | None:
        try:
            data = json.loads(payload.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError):
            return None
        if not isinstance(data, dict):
            return None
        return cls.from_dict(data)


class LockHandle(Protocol):
    """Handle representing an acquired distributed lock."""

    name: str

    def release(self) -> None:
        """Release the lock. May only be called once."""


class LockProvider(Protocol):
    """Distributed lock interface.

    Implementations must guarantee:
    - Non-blocking acquisition: one attempt, no waiting
    - At most one live handle per lock name across all processes
    """

    def lock(self, configuration: LockConfiguration) -> LockHandle | None:
        """Return a handle if acquired, ``None`` if the lock is held elsewhere."""


class ObjectStoreLock:
    """Ownership of one lock object instance, released exactly once."""

    def __init__(
        self,
        store: ObjectStore,
        identity: ObjectIdentity,
        record: LockRecord,
        *,
        locked_at: datetime,
        lock_at_least_until: datetime | None = None,
        clock: Clock = utcnow,
        released_suffix: str = UNLOCK_SUFFIX,
        logger: logging.Logger | logging.LoggerAdapter | None = None,
    ):
        self.store = store
        self.identity = identity
        self.record = record
        self.locked_at = locked_at
        self.lock_at_least_until = lock_at_least_until
        self.released_suffix = released_suffix
        self._clock = clock
        self._logger = logger or logging.getLogger(__name__)
        self._state_lock = threading.Lock()
        self._released = False

    @property
    def name(self) -> str:
        return self.record.id

    @property
    def released_key(self) -> str:
        return f"{self.identity.key}{self.released_suffix}"

    @property
    def released(self) -> bool:
        with self._state_lock:
            return self._released

    def release(self) -> None:
        """Move the lock object to the released key, freeing the lock name.

        Raises:
            LockReleaseError: Already released, or the lock object was removed
                or replaced by someone else. The released copy is cleaned up.
            ObjectStoreError: Infrastructure failure. The handle stays usable
                so release can be retried; the same holds for any other
                error raised by the store.
        """
        with self._state_lock:
            if self._released:
                raise LockReleaseError(self.name, self.identity.key, "lock was already released")
            self._released = True

        self._warn_if_released_early()
        try:
            move_object(self.store, self.identity, self.released_key, logger=self._logger)
        except RelocationError as e:
            self._logger.error("Could not unlock %s: %s", self.identity, e.reason)
            raise LockReleaseError(self.name, self.identity.key, e.reason) from e
        except Exception:
            # The lock object is still in place, so the handle still owns it
            with self._state_lock:
                self._released = False
            raise

        self._logger.info("Released lock '%s' to '%s'", self.name, self.released_key)

    def _warn_if_released_early(self) -> None:
        if self.lock_at_least_until is None:
            return
        now = self._clock()
        if now < self.lock_at_least_until:
            self._logger.warning(
                "Releasing lock '%s' before its minimum hold time (%s)",
                self.name,
                to_iso_string(self.lock_at_least_until),
            )

    def __enter__(self) -> ObjectStoreLock:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.release()

    def __repr__(self) -> str:
        return f"ObjectStoreLock(name={self.name!r}, identity={self.identity}, released={self.released})"


class ObjectStoreLockProvider:
    """Lock provider that keeps lock objects in an object store bucket."""

    def __init__(
        self,
        store: ObjectStore,
        *,
        clock: Clock | None = None,
        hostname: str | None = None,
        released_suffix: str = UNLOCK_SUFFIX,
        logger: logging.Logger | None = None,
    ):
        self.store = store
        self.clock = clock or utcnow
        self.hostname = hostname or socket.gethostname()
        self.released_suffix = released_suffix
        self.logger = logger or logging.getLogger(__name__)

    def acquire(
        self,
        name: str,
        lock_at_most_until: datetime,
        *,
        lock_at_least_until: datetime | None = None,
    ) -> ObjectStoreLock | None:
        """Try to become the sole holder of ``name`` with a single conditional create.

        Returns ``None`` when the lock object already exists. Store failures
        raise ``ObjectStoreError``; an unusable name raises
        ``LockConfigurationError``.
        """
        self._check_name(name)
        log = with_log_context(self.logger, lock_name=name, bucket=self.store.bucket)
        now = self.clock()
        record = LockRecord(
            id=name,
            locked_at=to_iso_string(now),
            lock_until=to_iso_string(lock_at_most_until),
            locked_by=self.hostname,
        )

        identity = self.store.create_if_absent(name, record.to_bytes())
        if identity is None:
            log.debug("Lock '%s' is held by someone else", name)
            return None

        log.info("Acquired lock '%s' until %s", name, record.lock_until)
        return ObjectStoreLock(
            self.store,
            identity,
            record,
            locked_at=now,
            lock_at_least_until=lock_at_least_until,
            clock=self.clock,
            released_suffix=self.released_suffix,
            logger=log,
        )

    def _check_name(self, name: str) -> None:
        if not name or not name.strip():
            raise LockConfigurationError("Lock name can not be empty", field="name")
        # Released copies of other locks live at <name><suffix>
        if name.endswith(self.released_suffix):
            raise LockConfigurationError(
                "Lock name collides with released lock objects",
                field="name",
                details=f"'{name}' ends with '{self.released_suffix}'",
            )

    def lock(self, configuration: LockConfiguration) -> ObjectStoreLock | None:
        now = self.clock()
        return self.acquire(
            configuration.name,
            now + configuration.lock_at_most_for,
            lock_at_least_until=now + configuration.lock_at_least_for if configuration.lock_at_least_for else None,
        )

    def release(self, handle: ObjectStoreLock) -> None:
        handle.release()

    def read_record(self, name: str) -> LockRecord | None:
        """Read the live record for inspection; ``None`` when unlocked or unreadable."""
        payload = self.store.get(name)
        return LockRecord.from_bytes(payload) if payload is not None else None

    def read_released_record(self, name: str) -> LockRecord | None:
        payload = self.store.get(f"{name}{self.released_suffix}")
        return LockRecord.from_bytes(payload) if payload is not None else None

    def is_locked(self, name: str) -> bool:
        return self.store.get(name) is not None
