"""Constants and default values for objlock.

This module centralizes lock record field names, store defaults and the
environment variable mapping used by configuration loading.
"""

# ==================== LOCK RECORD ====================

# JSON field names of the record stored at key = lock name
RECORD_ID = "id"
RECORD_LOCKED_AT = "lockedAt"
RECORD_LOCK_UNTIL = "lockUntil"
RECORD_LOCKED_BY = "lockedBy"

# Suffix appended to the lock key when the record is relocated on release
UNLOCK_SUFFIX: str = ".unlocked"

RECORD_CONTENT_TYPE: str = "application/json"

# ==================== STORE DEFAULTS ====================

SUPPORTED_BACKENDS: tuple[str, ...] = ("memory", "file", "gcs", "s3")
DEFAULT_BACKEND: str = "memory"
DEFAULT_BUCKET: str = "objlock"
DEFAULT_FILE_ROOT: str = ".objlock"
DEFAULT_TIMEOUT_SECONDS: float = 30.0

# ==================== CLI ====================

# EX_TEMPFAIL from sysexits.h: the lock is held elsewhere, try again later
EXIT_LOCK_HELD: int = 75
# 128 + SIGINT, as shells report an interrupted command
EXIT_INTERRUPTED: int = 130

# ==================== ENVIRONMENT ====================

ENV_VAR_MAPPING: dict[str, str] = {
    "backend": "OBJLOCK_STORE_BACKEND",
    "bucket": "OBJLOCK_BUCKET",
    "root": "OBJLOCK_ROOT",
    "endpoint_url": "OBJLOCK_ENDPOINT_URL",
    "region": "OBJLOCK_REGION",
    "timeout": "OBJLOCK_TIMEOUT",
    "released_suffix": "OBJLOCK_UNLOCK_SUFFIX",
}

LOG_LEVEL_ENV: str = "LOG_LEVEL"
VALID_LOG_LEVELS: tuple[str, ...] = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
