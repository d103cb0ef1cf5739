"""Object store adapters.

Every adapter implements the ``ObjectStore`` protocol: conditional create,
generation-checked copy and delete, and plain reads.
"""

from objlock.stores.base import ObjectIdentity, ObjectStore
from objlock.stores.factory import create_object_store
from objlock.stores.file import FileObjectStore
from objlock.stores.memory import MemoryObjectStore

__all__ = [
    "FileObjectStore",
    "MemoryObjectStore",
    "ObjectIdentity",
    "ObjectStore",
    "create_object_store",
]
