"""Directory-backed object store.

Each bucket is a directory under ``root`` and each key a file below it.
Conditional create relies on ``O_CREAT | O_EXCL``, which is atomic on local
filesystems, so the store gives mutual exclusion between processes on one
host (or on a shared filesystem that honours exclusive create).
"""

from __future__ import annotations

import contextlib
import os
import tempfile
from pathlib import Path, PurePosixPath

from objlock.core.exceptions import ObjectStoreError
from objlock.stores.base import ObjectIdentity


def _write_all(fd: int, payload: bytes) -> None:
    """Write complete payload to fd, handling short writes."""
    total_written = 0
    while total_written < len(payload):
        written = os.write(fd, payload[total_written:])
        if written <= 0:
            raise OSError("short write while persisting object payload")
        total_written += written


def _generation_of(stat_result: os.stat_result) -> str:
    return f"{stat_result.st_ino}-{stat_result.st_mtime_ns}"


class FileObjectStore:
    """Filesystem implementation of ``ObjectStore``."""

    name = "file"

    def __init__(self, root: str | Path, bucket: str):
        self.root = Path(root)
        self.bucket = bucket
        self._bucket_dir = self.root / bucket

    def create_if_absent(self, key: str, payload: bytes) -> ObjectIdentity | None:
        path = self._path(key)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            fd = os.open(str(path), os.O_CREAT | os.O_EXCL | os.O_WRONLY, 0o600)
        except FileExistsError:
            return None
        except OSError as e:
            raise ObjectStoreError("Failed to create object", operation="create", key=key, original_error=e) from e

        try:
            _write_all(fd, payload)
            os.fsync(fd)
            generation = _generation_of(os.fstat(fd))
        except OSError as e:
            # A half-written object would look like a held lock forever.
            with contextlib.suppress(OSError):
                path.unlink()
            raise ObjectStoreError("Failed to write object", operation="create", key=key, original_error=e) from e
        finally:
            with contextlib.suppress(OSError):
                os.close(fd)

        return ObjectIdentity(bucket=self.bucket, key=key, generation=generation)

    def copy(self, source: ObjectIdentity, dest_key: str) -> ObjectIdentity | None:
        source_path = self._path(source.key)
        dest_path = self._path(dest_key)
        try:
            with open(source_path, "rb") as f:
                if not self._generation_matches(os.fstat(f.fileno()), source):
                    return None
                payload = f.read()
        except FileNotFoundError:
            return None
        except OSError as e:
            raise ObjectStoreError(
                "Failed to read copy source", operation="copy", key=source.key, original_error=e
            ) from e

        try:
            dest_path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=dest_path.parent, prefix=f".{dest_path.name}.")
            try:
                try:
                    _write_all(fd, payload)
                    os.fsync(fd)
                finally:
                    os.close(fd)
                os.replace(tmp_name, dest_path)
            except OSError:
                with contextlib.suppress(OSError):
                    os.unlink(tmp_name)
                raise
            generation = _generation_of(dest_path.stat())
        except OSError as e:
            raise ObjectStoreError("Failed to write copy", operation="copy", key=dest_key, original_error=e) from e

        return ObjectIdentity(bucket=self.bucket, key=dest_key, generation=generation)

    def delete(self, identity: ObjectIdentity) -> bool:
        path = self._path(identity.key)
        try:
            # stat and unlink are two calls; a concurrent replace in between is not detected
            if not self._generation_matches(path.stat(), identity):
                return False
            path.unlink()
            return True
        except FileNotFoundError:
            return False
        except OSError as e:
            raise ObjectStoreError("Failed to delete object", operation="delete", key=identity.key, original_error=e) from e

    def get(self, key: str) -> bytes | None:
        try:
            return self._path(key).read_bytes()
        except FileNotFoundError:
            return None
        except OSError as e:
            raise ObjectStoreError("Failed to read object", operation="get", key=key, original_error=e) from e

    def _path(self, key: str) -> Path:
        relative = PurePosixPath(key)
        if not key or relative.is_absolute() or ".." in relative.parts:
            raise ObjectStoreError("Invalid object key", operation="resolve", key=key)
        return self._bucket_dir.joinpath(*relative.parts)

    @staticmethod
    def _generation_matches(stat_result: os.stat_result, identity: ObjectIdentity) -> bool:
        return identity.generation is None or _generation_of(stat_result) == identity.generation
