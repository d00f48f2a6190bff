"""
Unit tests for local key-value storage.
"""

import os

import pytest

from config import waitlist_config
from storage import InMemoryStorage, LocalFileStorage, StorageWriteError
from waitlist import WaitlistStore


class TestLocalFileStorage:
    """Test filesystem-backed storage."""

    def test_missing_key_returns_none(self, tmp_path):
        storage = LocalFileStorage(str(tmp_path))

        assert storage.get("waitlist_v1") is None

    def test_set_then_get(self, tmp_path):
        storage = LocalFileStorage(str(tmp_path / "nested"))

        storage.set("waitlist_v1", "[]")

        assert storage.get("waitlist_v1") == "[]"
        assert (tmp_path / "nested" / "waitlist_v1.json").exists()

    def test_set_overwrites(self, tmp_path):
        storage = LocalFileStorage(str(tmp_path))

        storage.set("waitlist_v1", "first")
        storage.set("waitlist_v1", "second")

        assert storage.get("waitlist_v1") == "second"
        assert sorted(os.listdir(tmp_path)) == ["waitlist_v1.json"]

    @pytest.mark.parametrize("key", ["", "../escape", "a/b", ".."])
    def test_rejects_unsafe_keys(self, tmp_path, key):
        storage = LocalFileStorage(str(tmp_path))

        with pytest.raises(ValueError):
            storage.get(key)

    def test_unwritable_directory_raises_write_error(self, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory")
        storage = LocalFileStorage(str(blocker / "data"))

        with pytest.raises(StorageWriteError):
            storage.set("waitlist_v1", "[]")

    def test_store_survives_restart(self, tmp_path):
        store = WaitlistStore(LocalFileStorage(str(tmp_path)))
        store.load()
        entry = store.add({"name": "Asha", "email": "asha@x.com"})

        restarted = WaitlistStore(LocalFileStorage(str(tmp_path)))

        assert restarted.load() == [entry]

    @pytest.mark.parametrize("raw", [b"{truncated", b"[\xff\xfe garbage", b"[" * 200000],
                             ids=["truncated", "invalid-utf8", "deeply-nested"])
    def test_corrupt_file_loads_empty(self, tmp_path, raw):
        (tmp_path / "waitlist_v1.json").write_bytes(raw)
        store = WaitlistStore(LocalFileStorage(str(tmp_path)))

        assert store.load() == []


class TestInMemoryStorage:
    """Test in-memory storage."""

    def test_initial_values_are_copied(self):
        initial = {"k": "v"}
        storage = InMemoryStorage(initial)

        storage.set("k", "changed")

        assert initial == {"k": "v"}
        assert storage.get("k") == "changed"


class TestDataDirConfig:
    """Test where the local store lives by default."""

    def test_default_data_dir_is_relative_to_working_directory(self, monkeypatch):
        monkeypatch.delenv("WAITLIST_DATA_DIR", raising=False)

        assert waitlist_config()["data_dir"] == "./data"

    def test_data_dir_from_environment(self, monkeypatch, tmp_path):
        monkeypatch.setenv("WAITLIST_DATA_DIR", str(tmp_path))

        assert waitlist_config()["data_dir"] == str(tmp_path)
