"""Contract tests shared by the local object stores."""

from __future__ import annotations

import os
import threading
from concurrent.futures import ThreadPoolExecutor

import pytest

from objlock.core.exceptions import ObjectStoreError
from objlock.stores.base import ObjectIdentity, ObjectStore
from objlock.stores.file import FileObjectStore
from objlock.stores.memory import MemoryObjectStore


@pytest.fixture(params=["memory", "file"])
def store(request, tmp_path):
    if request.param == "memory":
        return MemoryObjectStore("bucket")
    return FileObjectStore(tmp_path, "bucket")


def test_store_satisfies_protocol(store) -> None:
    assert isinstance(store, ObjectStore)


def test_create_if_absent_only_once(store) -> None:
    first = store.create_if_absent("job", b"one")
    second = store.create_if_absent("job", b"two")

    assert first is not None
    assert first.bucket == "bucket"
    assert first.key == "job"
    assert first.generation
    assert second is None
    assert store.get("job") == b"one"


def test_get_missing_key(store) -> None:
    assert store.get("missing") is None


def test_copy_creates_independent_object(store) -> None:
    source = store.create_if_absent("job", b"payload")

    copied = store.copy(source, "job.unlocked")

    assert copied is not None
    assert copied.key == "job.unlocked"
    assert store.get("job.unlocked") == b"payload"
    assert store.get("job") == b"payload"


def test_copy_missing_source_returns_none(store) -> None:
    assert store.copy(ObjectIdentity("bucket", "missing", None), "dest") is None
    assert store.get("dest") is None


def test_delete_reports_whether_removed(store) -> None:
    identity = store.create_if_absent("job", b"payload")

    assert store.delete(identity) is True
    assert store.delete(identity) is False
    assert store.get("job") is None


def test_delete_checks_generation(store) -> None:
    identity = store.create_if_absent("job", b"payload")
    wrong = ObjectIdentity(identity.bucket, identity.key, "not-a-generation")

    assert store.delete(wrong) is False
    assert store.get("job") == b"payload"


def test_copy_checks_generation(store) -> None:
    identity = store.create_if_absent("job", b"payload")
    wrong = ObjectIdentity(identity.bucket, identity.key, "not-a-generation")

    assert store.copy(wrong, "dest") is None


def test_concurrent_create_single_winner(store) -> None:
    barrier = threading.Barrier(8)

    def contender(index: int):
        barrier.wait()
        return store.create_if_absent("job", f"node-{index}".encode())

    with ThreadPoolExecutor(max_workers=8) as executor:
        results = list(executor.map(contender, range(8)))

    assert len([r for r in results if r is not None]) == 1


# -------- file store specifics --------


def test_file_store_layout(tmp_path) -> None:
    store = FileObjectStore(tmp_path, "locks")

    store.create_if_absent("team/nightly", b"{}")

    assert (tmp_path / "locks" / "team" / "nightly").read_bytes() == b"{}"


@pytest.mark.parametrize("key", ["", "../escape", "/etc/passwd", "a/../../b"])
def test_file_store_rejects_unsafe_keys(tmp_path, key) -> None:
    store = FileObjectStore(tmp_path, "locks")

    with pytest.raises(ObjectStoreError, match="Invalid object key"):
        store.create_if_absent(key, b"{}")


def test_file_store_shared_between_instances(tmp_path) -> None:
    node_a = FileObjectStore(tmp_path, "locks")
    node_b = FileObjectStore(tmp_path, "locks")

    identity = node_a.create_if_absent("job", b"a")

    assert node_b.create_if_absent("job", b"b") is None
    assert node_b.delete(identity) is True
    assert node_b.create_if_absent("job", b"b") is not None


def test_file_store_copy_leaves_no_temp_files(tmp_path) -> None:
    store = FileObjectStore(tmp_path, "locks")
    identity = store.create_if_absent("job", b"payload")

    store.copy(identity, "job.unlocked")

    assert sorted(os.listdir(tmp_path / "locks")) == ["job", "job.unlocked"]


def test_file_store_wraps_os_errors(tmp_path, monkeypatch) -> None:
    store = FileObjectStore(tmp_path, "locks")

    def _denied(*args, **kwargs):
        raise PermissionError("denied")

    monkeypatch.setattr(os, "open", _denied)

    with pytest.raises(ObjectStoreError) as excinfo:
        store.create_if_absent("job", b"payload")
    assert excinfo.value.operation == "create"
    assert isinstance(excinfo.value.original_error, PermissionError)
