"""Object store contract used by the lock coordinator.

Design principles:
- Conditional create is the only mutual-exclusion primitive; adapters must
  map the store's native "already exists" precondition to ``None``.
- Every object instance carries a generation token; copy and delete are
  conditioned on it so a handle never touches an object it did not create.
- Infrastructure failures raise ``ObjectStoreError`` and are never reported
  as contention.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, runtime_checkable


@dataclass(frozen=True)
class ObjectIdentity:
    """Store-assigned identity of one object instance."""

    bucket: str
    key: str
    generation: str | None = None

    def __str__(self) -> str:
        suffix = f"#{self.generation}" if self.generation else ""
        return f"{self.bucket}/{self.key}{suffix}"


@runtime_checkable
class ObjectStore(Protocol):
    """Capability surface of an object storage bucket."""

    name: str
    bucket: str

    def create_if_absent(self, key: str, payload: bytes) -> ObjectIdentity | None:
        """Create ``key`` only if no object exists there. ``None`` means it already existed."""

    def copy(self, source: ObjectIdentity, dest_key: str) -> ObjectIdentity | None:
        """Server-side copy of ``source`` to ``dest_key``.

        Returns ``None`` when the source is gone or its generation changed.
        """

    def delete(self, identity: ObjectIdentity) -> bool:
        """Delete exactly this object instance. ``False`` when nothing was removed."""

    def get(self, key: str) -> bytes | None:
        """Read an object payload, ``None`` when the key is absent."""
