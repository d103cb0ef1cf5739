"""Object store selection."""

from __future__ import annotations

import logging
from typing import Any

from objlock.core.config import StoreConfig
from objlock.core.exceptions import ConfigurationError
from objlock.stores.base import ObjectStore
from objlock.stores.file import FileObjectStore
from objlock.stores.memory import MemoryObjectStore


def create_object_store(
    config: StoreConfig | None = None,
    *,
    client: Any = None,
    logger: logging.Logger | None = None,
) -> ObjectStore:
    """Create the object store named by ``config.backend``.

    ``client`` overrides the SDK client built from the configuration
    (a ``google.cloud.storage.Client`` for gcs, a boto3 S3 client for s3).
    """
    log = logger or logging.getLogger(__name__)
    config = config or StoreConfig.from_env(logger=log)

    if config.backend == "memory":
        log.warning("Using in-memory object store; locks are not shared between processes")
        return MemoryObjectStore(config.bucket)

    if config.backend == "file":
        return FileObjectStore(config.root, config.bucket)

    if config.backend == "gcs":
        # SDK modules are imported on demand so the local backends start quickly
        from google.cloud import storage

        from objlock.stores.gcs import GCSObjectStore

        if client is None:
            options = {"api_endpoint": config.endpoint_url} if config.endpoint_url else None
            client = storage.Client(client_options=options)
        return GCSObjectStore(client, config.bucket, timeout=config.timeout, logger=log)

    if config.backend == "s3":
        from objlock.stores.s3 import S3ObjectStore, create_s3_client

        if client is None:
            client = create_s3_client(endpoint_url=config.endpoint_url, region=config.region, timeout=config.timeout)
        return S3ObjectStore(client, config.bucket, logger=log)

    raise ConfigurationError(f"Unknown store backend '{config.backend}'", field="backend")
