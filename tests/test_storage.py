"""
Tests for the Storage Engine

These tests verify key validation and both storage backends:
- put(): Create or fully replace an entry
- get(): Read at most 767 bytes, None when absent
- delete(): Always succeeds

Run with: python -m pytest tests/test_storage.py -v
"""

import os

import pytest
from filekv.storage.engine import (
    FileStorage,
    InvalidKeyError,
    MemoryStorage,
    StorageError,
    create_storage,
    validate_key,
)


class TestValidateKey:
    """Test validate_key()."""

    @pytest.mark.parametrize("key", [
        "key",
        "user:1",
        "key-dash",
        "key_under",
        "key.dot",
        ".hidden",
        "a..b",
        "k" * 255,
    ])
    def test_valid_keys(self, key):
        """Test that ordinary keys pass validation unchanged."""
        assert validate_key(key) == key

    @pytest.mark.parametrize("key", [
        "",
        ".",
        "..",
        "../escape",
        "a/b",
        "/etc/passwd",
        "a\\b",
        "has space",
        "tab\there",
        "new\nline",
        "nul\x00byte",
        "bell\x07",
        "caf\xe9",
        "k" * 256,
    ])
    def test_invalid_keys(self, key):
        """Test that unsafe keys are rejected."""
        with pytest.raises(InvalidKeyError):
            validate_key(key)

    def test_invalid_key_is_value_error(self):
        """Test InvalidKeyError can be caught as ValueError."""
        with pytest.raises(ValueError):
            validate_key("..")


class TestFileStorage:
    """Test FileStorage operations."""

    def test_root_created(self, data_dir):
        """Test the namespace directory is created on construction."""
        assert not data_dir.exists()
        FileStorage(str(data_dir))
        assert data_dir.is_dir()

    def test_put_creates_file(self, storage, data_dir):
        """Test an entry is persisted as one file named after the key."""
        storage.put("greeting", b"hello")
        assert (data_dir / "greeting").read_bytes() == b"hello"

    def test_get_existing(self, storage):
        """Test reading back a stored value."""
        storage.put("key", b"value")
        assert storage.get("key") == b"value"

    def test_get_missing(self, storage):
        """Test a missing key reads as None."""
        assert storage.get("missing") is None

    def test_put_empty_value(self, storage):
        """Test empty values are stored and distinguishable from absence."""
        storage.put("empty", b"")
        assert storage.get("empty") == b""

    def test_put_binary_value(self, storage):
        """Test values are opaque bytes."""
        value = bytes(range(256))
        storage.put("blob", value)
        assert storage.get("blob") == value

    def test_overwrite_replaces_fully(self, storage):
        """Test a shorter value fully replaces a longer one."""
        storage.put("key", b"a much longer original value")
        storage.put("key", b"short")
        assert storage.get("key") == b"short"

    def test_get_truncates_long_content(self, storage, data_dir):
        """Test content beyond 767 bytes is not returned."""
        (data_dir / "big").write_bytes(b"x" * 1000)
        assert storage.get("big") == b"x" * 767

    def test_get_exactly_max_length(self, storage):
        """Test a value of exactly 767 bytes is returned whole."""
        storage.put("edge", b"y" * 767)
        assert storage.get("edge") == b"y" * 767

    def test_delete_existing(self, storage, data_dir):
        """Test deleting an entry removes its file."""
        storage.put("key", b"value")
        assert storage.delete("key") is True
        assert not (data_dir / "key").exists()
        assert storage.get("key") is None

    def test_delete_missing_succeeds(self, storage):
        """Test deleting a missing key still reports success."""
        assert storage.delete("never-stored") is True

    def test_delete_twice(self, storage):
        """Test delete is idempotent."""
        storage.put("key", b"value")
        assert storage.delete("key") is True
        assert storage.delete("key") is True

    def test_get_directory_is_storage_error(self, storage, data_dir):
        """Test an I/O fault on read is distinct from absence."""
        (data_dir / "subdir").mkdir()
        with pytest.raises(StorageError):
            storage.get("subdir")

    def test_put_directory_is_storage_error(self, storage, data_dir):
        """Test an I/O fault on write raises StorageError."""
        (data_dir / "subdir").mkdir()
        with pytest.raises(StorageError):
            storage.put("subdir", b"value")

    def test_delete_directory_reports_success(self, storage, data_dir):
        """Test a failed removal is logged but still reported as success."""
        (data_dir / "subdir").mkdir()
        assert storage.delete("subdir") is True
        assert (data_dir / "subdir").is_dir()

    def test_storage_error_chains_os_error(self, storage, data_dir):
        """Test StorageError keeps the underlying OSError."""
        (data_dir / "subdir").mkdir()
        with pytest.raises(StorageError) as exc_info:
            storage.get("subdir")
        assert isinstance(exc_info.value.__cause__, OSError)

    @pytest.mark.parametrize("key", ["../escape", "..", "a/b", "/tmp/abs"])
    def test_escaping_keys_rejected(self, storage, data_dir, key):
        """Test keys that would leave the namespace never touch the filesystem."""
        with pytest.raises(InvalidKeyError):
            storage.put(key, b"value")
        with pytest.raises(InvalidKeyError):
            storage.get(key)
        with pytest.raises(InvalidKeyError):
            storage.delete(key)
        assert not (data_dir.parent / "escape").exists()

    def test_entries_persist_across_instances(self, data_dir):
        """Test a new storage over the same root sees earlier entries."""
        FileStorage(str(data_dir)).put("key", b"value")
        assert FileStorage(str(data_dir)).get("key") == b"value"

    def test_root_is_absolute(self, tmp_path, monkeypatch):
        """Test a relative root is resolved against the working directory."""
        monkeypatch.chdir(tmp_path)
        store = FileStorage("relative")
        assert os.path.isabs(store.root)
        assert os.path.realpath(store.root) == os.path.realpath(tmp_path / "relative")


class TestMemoryStorage:
    """Test MemoryStorage operations."""

    def test_round_trip(self, memory_storage):
        """Test put followed by get."""
        memory_storage.put("key", b"value")
        assert memory_storage.get("key") == b"value"

    def test_get_missing(self, memory_storage):
        """Test a missing key reads as None."""
        assert memory_storage.get("missing") is None

    def test_overwrite(self, memory_storage):
        """Test overwrite replaces the value."""
        memory_storage.put("key", b"first")
        memory_storage.put("key", b"second")
        assert memory_storage.get("key") == b"second"
        assert len(memory_storage) == 1

    def test_get_truncates(self, memory_storage):
        """Test the same read cap as file storage applies."""
        memory_storage.put("big", b"z" * 800)
        assert memory_storage.get("big") == b"z" * 767

    def test_delete_idempotent(self, memory_storage):
        """Test delete always succeeds."""
        memory_storage.put("key", b"value")
        assert memory_storage.delete("key") is True
        assert memory_storage.delete("key") is True
        assert memory_storage.get("key") is None

    def test_invalid_key(self, memory_storage):
        """Test key validation applies to the memory backend."""
        with pytest.raises(InvalidKeyError):
            memory_storage.put("a/b", b"value")


class TestCreateStorage:
    """Test create_storage()."""

    def test_file_backend(self, data_dir):
        """Test the file backend is built over the given directory."""
        store = create_storage("file", str(data_dir))
        assert isinstance(store, FileStorage)
        assert store.root == str(data_dir)

    def test_memory_backend(self):
        """Test the memory backend."""
        assert isinstance(create_storage("memory"), MemoryStorage)

    def test_unknown_backend(self):
        """Test an unknown backend name is rejected."""
        with pytest.raises(ValueError):
            create_storage("redis")
