"""Google Cloud Storage object store.

Conditional create uses ``if_generation_match=0``, which GCS only accepts
when no live object exists at the key. Copy and delete are conditioned on
the generation captured at creation.
"""

from __future__ import annotations

import logging

from google.api_core import exceptions as google_exceptions
from google.auth import exceptions as auth_exceptions
from google.cloud import storage

from objlock.core.constants import DEFAULT_TIMEOUT_SECONDS, RECORD_CONTENT_TYPE
from objlock.core.exceptions import ObjectStoreError
from objlock.stores.base import ObjectIdentity

_MISSING_OR_CHANGED = (google_exceptions.NotFound, google_exceptions.PreconditionFailed)
# Expired or missing credentials surface from google-auth, outside GoogleAPIError
_REQUEST_FAILED = (google_exceptions.GoogleAPIError, auth_exceptions.GoogleAuthError)


def _generation(value: int | str | None) -> int | None:
    return int(value) if value is not None else None


class GCSObjectStore:
    """``ObjectStore`` backed by a GCS bucket."""

    name = "gcs"

    def __init__(
        self,
        client: storage.Client,
        bucket: str,
        *,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        logger: logging.Logger | None = None,
    ):
        self.client = client
        self.bucket = bucket
        self.timeout = timeout
        self.logger = logger or logging.getLogger(__name__)
        self._bucket = client.bucket(bucket)

    def create_if_absent(self, key: str, payload: bytes) -> ObjectIdentity | None:
        blob = self._bucket.blob(key)
        try:
            blob.upload_from_string(
                payload,
                content_type=RECORD_CONTENT_TYPE,
                if_generation_match=0,
                timeout=self.timeout,
            )
        except google_exceptions.PreconditionFailed:
            return None
        except _REQUEST_FAILED as e:
            raise self._error("create", key, e) from e
        return ObjectIdentity(bucket=self.bucket, key=key, generation=_as_token(blob.generation))

    def copy(self, source: ObjectIdentity, dest_key: str) -> ObjectIdentity | None:
        source_blob = self._bucket.blob(source.key)
        try:
            copied = self._bucket.copy_blob(
                source_blob,
                self._bucket,
                dest_key,
                if_source_generation_match=_generation(source.generation),
                timeout=self.timeout,
            )
        except _MISSING_OR_CHANGED:
            self.logger.debug("Copy source %s is missing or was replaced", source)
            return None
        except _REQUEST_FAILED as e:
            raise self._error("copy", source.key, e) from e
        return ObjectIdentity(bucket=self.bucket, key=dest_key, generation=_as_token(copied.generation))

    def delete(self, identity: ObjectIdentity) -> bool:
        try:
            self._bucket.delete_blob(
                identity.key,
                if_generation_match=_generation(identity.generation),
                timeout=self.timeout,
            )
        except _MISSING_OR_CHANGED:
            return False
        except _REQUEST_FAILED as e:
            raise self._error("delete", identity.key, e) from e
        return True

    def get(self, key: str) -> bytes | None:
        try:
            return self._bucket.blob(key).download_as_bytes(timeout=self.timeout)
        except google_exceptions.NotFound:
            return None
        except _REQUEST_FAILED as e:
            raise self._error("get", key, e) from e

    @staticmethod
    def _error(operation: str, key: str, error: Exception) -> ObjectStoreError:
        return ObjectStoreError(
            "GCS request failed",
            operation=operation,
            key=key,
            details=str(error),
            original_error=error,
        )


def _as_token(generation: int | None) -> str | None:
    return str(generation) if generation is not None else None
