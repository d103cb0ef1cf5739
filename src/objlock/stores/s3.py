"""S3-compatible object store.

Conditional create uses ``IfNoneMatch="*"`` on PutObject. S3 DeleteObject
succeeds even when the key is absent, so ``delete`` checks the ETag with a
HEAD request first and conditions the delete on the same ETag.
"""

from __future__ import annotations

import logging
from typing import Any

import boto3
from botocore.config import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError

from objlock.core.constants import DEFAULT_TIMEOUT_SECONDS, RECORD_CONTENT_TYPE
from objlock.core.exceptions import ObjectStoreError
from objlock.stores.base import ObjectIdentity

_NOT_FOUND_CODES = {"NoSuchKey", "404", "NotFound"}
# 409 ConditionalRequestConflict: another conditional write to the key is in flight
_PRECONDITION_CODES = {"PreconditionFailed", "412", "ConditionalRequestConflict", "409"}


def _error_code(err: ClientError) -> str:
    return str(err.response.get("Error", {}).get("Code", ""))


def create_s3_client(
    *,
    endpoint_url: str | None = None,
    region: str | None = None,
    timeout: float = DEFAULT_TIMEOUT_SECONDS,
) -> Any:
    """Build a boto3 S3 client with bounded timeouts and standard retries."""
    session = boto3.session.Session(region_name=region)
    return session.client(
        "s3",
        region_name=region,
        endpoint_url=endpoint_url,
        config=BotoConfig(
            connect_timeout=timeout,
            read_timeout=timeout,
            retries={"max_attempts": 5, "mode": "standard"},
        ),
    )


class S3ObjectStore:
    """``ObjectStore`` backed by an S3 bucket."""

    name = "s3"

    def __init__(self, client: Any, bucket: str, *, logger: logging.Logger | None = None):
        self.client = client
        self.bucket = bucket
        self.logger = logger or logging.getLogger(__name__)

    def create_if_absent(self, key: str, payload: bytes) -> ObjectIdentity | None:
        try:
            resp = self.client.put_object(
                Bucket=self.bucket,
                Key=key,
                Body=payload,
                ContentType=RECORD_CONTENT_TYPE,
                IfNoneMatch="*",
            )
        except ClientError as e:
            if _error_code(e) in _PRECONDITION_CODES:
                return None
            raise self._error("create", key, e) from e
        except BotoCoreError as e:
            raise self._error("create", key, e) from e
        return ObjectIdentity(bucket=self.bucket, key=key, generation=resp.get("ETag"))

    def copy(self, source: ObjectIdentity, dest_key: str) -> ObjectIdentity | None:
        kwargs: dict[str, Any] = {
            "Bucket": self.bucket,
            "Key": dest_key,
            "CopySource": {"Bucket": source.bucket, "Key": source.key},
        }
        if source.generation is not None:
            kwargs["CopySourceIfMatch"] = source.generation
        try:
            resp = self.client.copy_object(**kwargs)
        except ClientError as e:
            if _error_code(e) in _NOT_FOUND_CODES | _PRECONDITION_CODES:
                self.logger.debug("Copy source %s is missing or was replaced", source)
                return None
            raise self._error("copy", source.key, e) from e
        except BotoCoreError as e:
            raise self._error("copy", source.key, e) from e
        etag = resp.get("CopyObjectResult", {}).get("ETag")
        return ObjectIdentity(bucket=self.bucket, key=dest_key, generation=etag)

    def delete(self, identity: ObjectIdentity) -> bool:
        conditions: dict[str, Any] = {}
        if identity.generation is not None:
            conditions["IfMatch"] = identity.generation
        try:
            self.client.head_object(Bucket=self.bucket, Key=identity.key, **conditions)
            self.client.delete_object(Bucket=self.bucket, Key=identity.key, **conditions)
        except ClientError as e:
            if _error_code(e) in _NOT_FOUND_CODES | _PRECONDITION_CODES:
                return False
            raise self._error("delete", identity.key, e) from e
        except BotoCoreError as e:
            raise self._error("delete", identity.key, e) from e
        return True

    def get(self, key: str) -> bytes | None:
        try:
            resp = self.client.get_object(Bucket=self.bucket, Key=key)
            return resp["Body"].read()
        except ClientError as e:
            if _error_code(e) in _NOT_FOUND_CODES:
                return None
            raise self._error("get", key, e) from e
        except BotoCoreError as e:
            raise self._error("get", key, e) from e

    @staticmethod
    def _error(operation: str, key: str, error: Exception) -> ObjectStoreError:
        return ObjectStoreError(
            "S3 request failed",
            operation=operation,
            key=key,
            details=str(error),
            original_error=error,
        )
