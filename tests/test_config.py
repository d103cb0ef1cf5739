"""Tests for configuration dataclasses and store selection."""

from __future__ import annotations

import argparse
from datetime import timedelta
from unittest.mock import MagicMock, Mock

import pytest
from dotenv import load_dotenv

from objlock.core.config import LockConfiguration, StoreConfig
from objlock.core.constants import ENV_VAR_MAPPING
from objlock.core.exceptions import ConfigurationError, LockConfigurationError
from objlock.stores.factory import create_object_store
from objlock.stores.file import FileObjectStore
from objlock.stores.gcs import GCSObjectStore
from objlock.stores.memory import MemoryObjectStore
from objlock.stores.s3 import S3ObjectStore


@pytest.fixture
def clean_env(monkeypatch):
    for env_var in ENV_VAR_MAPPING.values():
        # setenv first so monkeypatch restores values a .env file may load
        monkeypatch.setenv(env_var, "")
        monkeypatch.delenv(env_var)
    return monkeypatch


class TestLockConfiguration:
    def test_of_seconds(self):
        configuration = LockConfiguration.of_seconds("job", at_most=60, at_least=5)

        assert configuration.lock_at_most_for == timedelta(seconds=60)
        assert configuration.lock_at_least_for == timedelta(seconds=5)

    def test_defaults_to_no_minimum_hold(self):
        configuration = LockConfiguration("job", timedelta(minutes=1))

        assert configuration.lock_at_least_for == timedelta(0)

    @pytest.mark.parametrize("name", ["", "   "])
    def test_rejects_empty_name(self, name):
        with pytest.raises(LockConfigurationError) as excinfo:
            LockConfiguration.of_seconds(name, at_most=60)
        assert excinfo.value.field == "name"

    @pytest.mark.parametrize("at_most", [0, -1])
    def test_rejects_non_positive_lock_at_most_for(self, at_most):
        with pytest.raises(LockConfigurationError, match="lock_at_most_for must be positive"):
            LockConfiguration.of_seconds("job", at_most=at_most)

    def test_rejects_negative_lock_at_least_for(self):
        with pytest.raises(LockConfigurationError, match="can not be negative"):
            LockConfiguration.of_seconds("job", at_most=60, at_least=-1)

    def test_rejects_lock_at_least_longer_than_at_most(self):
        with pytest.raises(LockConfigurationError, match="longer than lock_at_most_for"):
            LockConfiguration.of_seconds("job", at_most=60, at_least=61)

    def test_is_a_configuration_error(self):
        with pytest.raises(ConfigurationError):
            LockConfiguration.of_seconds("", at_most=60)


class TestStoreConfig:
    def test_defaults(self):
        config = StoreConfig()

        assert config.backend == "memory"
        assert config.bucket == "objlock"
        assert config.released_suffix == ".unlocked"

    def test_backend_is_normalized(self):
        assert StoreConfig(backend=" GCS ").backend == "gcs"

    def test_unknown_backend(self):
        with pytest.raises(ConfigurationError) as excinfo:
            StoreConfig(backend="redis")
        assert excinfo.value.field == "backend"
        assert "memory, file, gcs, s3" in str(excinfo.value)

    def test_rejects_empty_suffix(self):
        with pytest.raises(ConfigurationError, match="Released suffix"):
            StoreConfig(released_suffix="")

    def test_rejects_non_positive_timeout(self):
        with pytest.raises(ConfigurationError, match="Timeout"):
            StoreConfig(timeout=0)

    def test_from_env(self, clean_env):
        clean_env.setenv("OBJLOCK_STORE_BACKEND", "s3")
        clean_env.setenv("OBJLOCK_BUCKET", "  team-locks ")
        clean_env.setenv("OBJLOCK_ENDPOINT_URL", "http://localhost:9000")
        clean_env.setenv("OBJLOCK_TIMEOUT", "2.5")
        clean_env.setenv("OBJLOCK_UNLOCK_SUFFIX", ".released")

        config = StoreConfig.from_env(dotenv=False)

        assert config.backend == "s3"
        assert config.bucket == "team-locks"
        assert config.endpoint_url == "http://localhost:9000"
        assert config.timeout == 2.5
        assert config.released_suffix == ".released"

    def test_from_env_ignores_blank_values(self, clean_env):
        clean_env.setenv("OBJLOCK_BUCKET", "   ")

        assert StoreConfig.from_env(dotenv=False).bucket == "objlock"

    def test_from_env_invalid_timeout(self, clean_env):
        clean_env.setenv("OBJLOCK_TIMEOUT", "soon")

        with pytest.raises(ConfigurationError) as excinfo:
            StoreConfig.from_env(dotenv=False)
        assert excinfo.value.field == "timeout"

    def test_from_env_reads_dotenv_file(self, clean_env, tmp_path):
        (tmp_path / ".env").write_text("OBJLOCK_STORE_BACKEND=file\nOBJLOCK_ROOT=/srv/locks\n", encoding="utf-8")
        clean_env.chdir(tmp_path)
        clean_env.setattr("objlock.core.config.load_dotenv", lambda: load_dotenv(tmp_path / ".env"))

        config = StoreConfig.from_env()

        assert config.backend == "file"
        assert config.root == "/srv/locks"

    def test_from_args_overrides_base(self):
        base = StoreConfig(backend="s3", bucket="env-bucket", region="eu-west-1")
        args = argparse.Namespace(backend=None, bucket="cli-bucket", root=None, endpoint_url=None)

        config = StoreConfig.from_args(args, base)

        assert config.backend == "s3"
        assert config.bucket == "cli-bucket"
        assert config.region == "eu-west-1"


class TestCreateObjectStore:
    def test_memory(self):
        store = create_object_store(StoreConfig(backend="memory", bucket="b"))

        assert isinstance(store, MemoryObjectStore)
        assert store.bucket == "b"

    def test_file(self, tmp_path):
        store = create_object_store(StoreConfig(backend="file", bucket="b", root=str(tmp_path)))

        assert isinstance(store, FileObjectStore)
        assert store.root == tmp_path

    def test_gcs_with_injected_client(self):
        client = MagicMock()

        store = create_object_store(StoreConfig(backend="gcs", bucket="b", timeout=3), client=client)

        assert isinstance(store, GCSObjectStore)
        assert store.timeout == 3
        client.bucket.assert_called_once_with("b")

    def test_s3_with_injected_client(self):
        client = Mock()

        store = create_object_store(StoreConfig(backend="s3", bucket="b"), client=client)

        assert isinstance(store, S3ObjectStore)
        assert store.client is client
