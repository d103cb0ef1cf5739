"""Core module - Foundation components with no dependency on a storage SDK.

This module provides the basic building blocks used throughout the package:
- Version information
- Custom exceptions
- Configuration dataclasses
- Constants and defaults
"""

from objlock.core.config import LockConfiguration, StoreConfig
from objlock.core.constants import (
    DEFAULT_BACKEND,
    DEFAULT_BUCKET,
    ENV_VAR_MAPPING,
    EXIT_LOCK_HELD,
    SUPPORTED_BACKENDS,
    UNLOCK_SUFFIX,
)
from objlock.core.exceptions import (
    ConfigurationError,
    LockConfigurationError,
    LockReleaseError,
    ObjectStoreError,
    ObjLockError,
    RelocationError,
)
from objlock.core.version import __version__

__all__ = [
    # Version
    "__version__",
    # Exceptions
    "ObjLockError",
    "ConfigurationError",
    "LockConfigurationError",
    "ObjectStoreError",
    "RelocationError",
    "LockReleaseError",
    # Config dataclasses
    "LockConfiguration",
    "StoreConfig",
    # Constants
    "DEFAULT_BACKEND",
    "DEFAULT_BUCKET",
    "ENV_VAR_MAPPING",
    "EXIT_LOCK_HELD",
    "SUPPORTED_BACKENDS",
    "UNLOCK_SUFFIX",
]
