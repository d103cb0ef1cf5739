"""In-memory object store.

Used for tests and local experiments; state lives in one process only, so it
provides no exclusion across hosts.
"""

from __future__ import annotations

import itertools
import threading
from dataclasses import dataclass

from objlock.stores.base import ObjectIdentity


@dataclass
class _StoredObject:
    payload: bytes
    generation: str


class MemoryObjectStore:
    """Thread-safe dictionary-backed implementation of ``ObjectStore``."""

    name = "memory"

    def __init__(self, bucket: str = "memory"):
        self.bucket = bucket
        self._objects: dict[str, _StoredObject] = {}
        self._generations = itertools.count(1)
        self._lock = threading.Lock()

    def create_if_absent(self, key: str, payload: bytes) -> ObjectIdentity | None:
        with self._lock:
            if key in self._objects:
                return None
            return self._put(key, payload)

    def copy(self, source: ObjectIdentity, dest_key: str) -> ObjectIdentity | None:
        with self._lock:
            stored = self._matching(source)
            if stored is None:
                return None
            return self._put(dest_key, stored.payload)

    def delete(self, identity: ObjectIdentity) -> bool:
        with self._lock:
            if self._matching(identity) is None:
                return False
            del self._objects[identity.key]
            return True

    def get(self, key: str) -> bytes | None:
        with self._lock:
            stored = self._objects.get(key)
            return stored.payload if stored is not None else None

    def keys(self) -> list[str]:
        with self._lock:
            return sorted(self._objects)

    def remove(self, key: str) -> None:
        """Drop ``key`` regardless of generation, simulating out-of-band removal."""
        with self._lock:
            self._objects.pop(key, None)

    def _put(self, key: str, payload: bytes) -> ObjectIdentity:
        generation = str(next(self._generations))
        self._objects[key] = _StoredObject(payload=bytes(payload), generation=generation)
        return ObjectIdentity(bucket=self.bucket, key=key, generation=generation)

    def _matching(self, identity: ObjectIdentity) -> _StoredObject | None:
        stored = self._objects.get(identity.key)
        if stored is None:
            return None
        if identity.generation is not None and stored.generation != identity.generation:
            return None
        return stored
