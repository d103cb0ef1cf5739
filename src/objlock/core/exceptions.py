"""Custom exceptions for objlock.

Contention is never an exception: a lock that is held elsewhere is reported
by ``acquire`` returning ``None``. Everything below is either a configuration
mistake, an infrastructure fault from the object store, or a consistency
violation that must reach the caller.
"""


class ObjLockError(Exception):
    """Base exception for all objlock errors."""

    def __init__(self, message: str, details: str | None = None):
        self.message = message
        self.details = details
        super().__init__(self.message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message}: {self.details}"
        return self.message


class ConfigurationError(ObjLockError):
    """Exception raised for invalid settings.

    Examples:
        - Unknown store backend name
        - Non-numeric timeout in the environment
        - Missing bucket for a cloud backend
    """

    def __init__(self, message: str, field: str | None = None, details: str | None = None):
        self.field = field
        super().__init__(message, details)


class LockConfigurationError(ConfigurationError):
    """Raised when a lock configuration has an empty name or inconsistent durations."""


class ObjectStoreError(ObjLockError):
    """Exception raised for object store infrastructure failures.

    Wraps network, permission, quota and rate-limit errors from the storage
    SDK with the operation and key that failed.
    """

    def __init__(
        self,
        message: str,
        operation: str | None = None,
        key: str | None = None,
        details: str | None = None,
        original_error: Exception | None = None,
    ):
        self.operation = operation
        self.key = key
        self.original_error = original_error
        super().__init__(message, details)

    def __str__(self) -> str:
        parts = [self.message]
        if self.operation:
            parts.append(f"during {self.operation}")
        if self.key:
            parts.append(f"key '{self.key}'")
        if self.details:
            parts.append(self.details)
        return " - ".join(parts)


class RelocationError(ObjLockError):
    """Raised when a two-phase move cannot remove its source object.

    Attributes:
        source_key: Key of the object that should have been removed
        dest_key: Key of the copy created in phase one
    """

    def __init__(self, source_key: str, dest_key: str, reason: str):
        self.source_key = source_key
        self.dest_key = dest_key
        self.reason = reason
        super().__init__(f"Could not move '{source_key}' to '{dest_key}'", reason)


class LockReleaseError(ObjLockError):
    """Raised when releasing a lock would leave lock state inconsistent.

    Signals a double release or a lock object that was removed or replaced
    out-of-band. Never swallow it: a live object left behind starves every
    future acquirer of the same name.

    Attributes:
        lock_name: Name of the lock being released
        key: Object key that could not be cleared
    """

    def __init__(self, lock_name: str, key: str, reason: str | None = None):
        self.lock_name = lock_name
        self.key = key
        self.reason = reason
        super().__init__(f"Could not unlock lock file '{key}'", reason)
