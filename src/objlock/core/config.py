"""Configuration dataclasses for objlock.

These dataclasses centralize the store settings and per-lock timing options.
They can be created from command-line arguments, from the environment, or
used directly in code.
"""

from __future__ import annotations

import argparse
import logging
import os
from dataclasses import dataclass, field
from datetime import timedelta

from dotenv import load_dotenv

from objlock.core.constants import (
    DEFAULT_BACKEND,
    DEFAULT_BUCKET,
    DEFAULT_FILE_ROOT,
    DEFAULT_TIMEOUT_SECONDS,
    ENV_VAR_MAPPING,
    SUPPORTED_BACKENDS,
    UNLOCK_SUFFIX,
)
from objlock.core.exceptions import ConfigurationError, LockConfigurationError


@dataclass(frozen=True)
class LockConfiguration:
    """Timing parameters for one named lock.

    Attributes:
        name: Lock name, used verbatim as the object key
        lock_at_most_for: How long the lock is considered held if never released
        lock_at_least_for: Minimum time the task expects to hold the lock (default: 0)
    """

    name: str
    lock_at_most_for: timedelta
    lock_at_least_for: timedelta = field(default_factory=timedelta)

    def __post_init__(self) -> None:
        if not self.name or not self.name.strip():
            raise LockConfigurationError("Lock name can not be empty", field="name")
        if self.lock_at_most_for <= timedelta(0):
            raise LockConfigurationError(
                "lock_at_most_for must be positive",
                field="lock_at_most_for",
                details=f"got {self.lock_at_most_for}",
            )
        if self.lock_at_least_for < timedelta(0):
            raise LockConfigurationError(
                "lock_at_least_for can not be negative",
                field="lock_at_least_for",
                details=f"got {self.lock_at_least_for}",
            )
        if self.lock_at_least_for > self.lock_at_most_for:
            raise LockConfigurationError(
                "lock_at_least_for is longer than lock_at_most_for",
                field="lock_at_least_for",
                details=f"{self.lock_at_least_for} > {self.lock_at_most_for} for lock '{self.name}'",
            )

    @classmethod
    def of_seconds(cls, name: str, at_most: float, at_least: float = 0) -> LockConfiguration:
        return cls(
            name=name,
            lock_at_most_for=timedelta(seconds=at_most),
            lock_at_least_for=timedelta(seconds=at_least),
        )


@dataclass
class StoreConfig:
    """Object store connection settings.

    Attributes:
        backend: Store backend name: memory, file, gcs or s3 (default: "memory")
        bucket: Bucket holding the lock objects (default: "objlock")
        root: Base directory for the file backend (default: ".objlock")
        endpoint_url: Custom endpoint for S3-compatible services or GCS emulators
        region: S3 region name
        timeout: Per-request timeout in seconds for cloud backends (default: 30)
        released_suffix: Suffix of the audit object left after release (default: ".unlocked")
    """

    backend: str = DEFAULT_BACKEND
    bucket: str = DEFAULT_BUCKET
    root: str = DEFAULT_FILE_ROOT
    endpoint_url: str | None = None
    region: str | None = None
    timeout: float = DEFAULT_TIMEOUT_SECONDS
    released_suffix: str = UNLOCK_SUFFIX

    def __post_init__(self) -> None:
        self.backend = self.backend.strip().lower()
        if self.backend not in SUPPORTED_BACKENDS:
            raise ConfigurationError(
                f"Unknown store backend '{self.backend}'",
                field="backend",
                details=f"expected one of: {', '.join(SUPPORTED_BACKENDS)}",
            )
        if not self.bucket:
            raise ConfigurationError("Bucket name can not be empty", field="bucket")
        if self.timeout <= 0:
            raise ConfigurationError("Timeout must be positive", field="timeout", details=f"got {self.timeout}")
        if not self.released_suffix:
            raise ConfigurationError(
                "Released suffix can not be empty",
                field="released_suffix",
                details="the released marker must not overwrite the live lock key",
            )

    @classmethod
    def from_env(cls, *, dotenv: bool = True, logger: logging.Logger | None = None) -> StoreConfig:
        """Create configuration from OBJLOCK_* environment variables.

        A ``.env`` file in the working directory is loaded first when present;
        variables already set in the environment win.
        """
        log = logger or logging.getLogger(__name__)
        if dotenv and load_dotenv():
            log.debug(".env file found and loaded")

        values: dict[str, str] = {}
        for config_key, env_var in ENV_VAR_MAPPING.items():
            value = os.environ.get(env_var)
            if value and value.strip():
                values[config_key] = value.strip()

        kwargs: dict[str, object] = dict(values)
        if "timeout" in values:
            kwargs["timeout"] = _parse_float("timeout", values["timeout"])
        return cls(**kwargs)

    @classmethod
    def from_args(cls, args: argparse.Namespace, base: StoreConfig | None = None) -> StoreConfig:
        """Overlay command-line arguments on top of a base configuration."""
        base = base or cls()
        return cls(
            backend=getattr(args, "backend", None) or base.backend,
            bucket=getattr(args, "bucket", None) or base.bucket,
            root=getattr(args, "root", None) or base.root,
            endpoint_url=getattr(args, "endpoint_url", None) or base.endpoint_url,
            region=base.region,
            timeout=base.timeout,
            released_suffix=base.released_suffix,
        )


def _parse_float(field_name: str, raw: str) -> float:
    try:
        return float(raw)
    except ValueError:
        raise ConfigurationError(
            f"Invalid value for {field_name}",
            field=field_name,
            details=f"expected a number, got '{raw}'",
        ) from None
