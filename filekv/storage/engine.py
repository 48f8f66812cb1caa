"""
Storage Engine Module

Maps validated keys to byte values. Two backends share one interface:

- FileStorage: one file per key inside a single flat data directory.
- MemoryStorage: a plain dict, for tests and throwaway servers.

Keys are validated before any backend work so that a key can never name
a location outside the namespace root.
"""

import logging
import os
from abc import ABCMeta, abstractmethod
from typing import Dict, Optional

from ..config.settings import MAX_KEY_LENGTH, MAX_VALUE_LENGTH, settings

logger = logging.getLogger(__name__)


class StorageError(Exception):
    """An I/O fault while reading or writing an entry."""


class InvalidKeyError(ValueError):
    """The key cannot be used to address an entry."""


def validate_key(key: str) -> str:
    """
    Check that a key is safe to use as an entry name.

    A valid key is 1 to MAX_KEY_LENGTH printable ASCII characters with no
    whitespace, no path separator, and is not "." or "..".

    Args:
        key: The key to check

    Returns:
        The key, unchanged

    Raises:
        InvalidKeyError: If the key breaks any of the rules above
    """
    if not key:
        raise InvalidKeyError("empty key")
    if len(key) > MAX_KEY_LENGTH:
        raise InvalidKeyError(f"key longer than {MAX_KEY_LENGTH} bytes")
    if any(not ("\x21" <= ch <= "\x7e") for ch in key):
        raise InvalidKeyError("key contains whitespace or non-printable characters")
    if "/" in key or "\\" in key:
        raise InvalidKeyError("key contains a path separator")
    if key in (".", ".."):
        raise InvalidKeyError("key names a directory")
    return key


class StorageEngine(metaclass=ABCMeta):
    """Interface every storage backend implements."""

    @abstractmethod
    def put(self, key: str, value: bytes) -> None:
        """Create the entry or fully replace its value."""

    @abstractmethod
    def get(self, key: str) -> Optional[bytes]:
        """Return at most MAX_VALUE_LENGTH bytes of the value, or None if absent."""

    @abstractmethod
    def delete(self, key: str) -> bool:
        """Remove the entry. Always reports success."""


class FileStorage(StorageEngine):
    """
    Filesystem-backed storage.

    Every entry is a regular file named after its key, directly inside
    ``root``. There is no index: existence is whatever the filesystem says.

    Writes truncate and rewrite the file in place, so a failed write can
    leave a partially written entry behind.

    Attributes:
        root: Absolute path of the namespace directory
    """

    def __init__(self, root: str = None):
        """
        Initialize the storage and create the root directory if needed.

        Args:
            root: Namespace directory (default from settings.DATA_DIR)
        """
        self.root = os.path.abspath(root if root is not None else settings.DATA_DIR)
        os.makedirs(self.root, exist_ok=True)

    def _path(self, key: str) -> str:
        validate_key(key)
        path = os.path.abspath(os.path.join(self.root, key))
        if os.path.dirname(path) != self.root:
            raise InvalidKeyError("key resolves outside the data directory")
        return path

    def put(self, key: str, value: bytes) -> None:
        """
        Store a value under a key.

        Args:
            key: The key to store
            value: The bytes to write

        Raises:
            InvalidKeyError: If the key fails validation
            StorageError: If the file cannot be opened or written
        """
        path = self._path(key)
        try:
            with open(path, "wb") as fh:
                fh.write(value)
        except OSError as exc:
            raise StorageError(f"cannot write {key!r}: {exc}") from exc

    def get(self, key: str) -> Optional[bytes]:
        """
        Read the value stored under a key.

        Content beyond MAX_VALUE_LENGTH bytes is not returned.

        Args:
            key: The key to look up

        Returns:
            The value bytes, or None if no entry exists

        Raises:
            InvalidKeyError: If the key fails validation
            StorageError: On any I/O fault other than absence
        """
        path = self._path(key)
        try:
            with open(path, "rb") as fh:
                return fh.read(MAX_VALUE_LENGTH)
        except FileNotFoundError:
            return None
        except OSError as exc:
            raise StorageError(f"cannot read {key!r}: {exc}") from exc

    def delete(self, key: str) -> bool:
        """
        Delete the entry for a key.

        Deleting a missing key succeeds. Other removal faults are logged
        and still reported as success.

        Raises:
            InvalidKeyError: If the key fails validation
        """
        path = self._path(key)
        try:
            os.remove(path)
        except FileNotFoundError:
            pass
        except OSError as exc:
            logger.warning(f"Could not remove {key!r}: {exc}")
        return True


class MemoryStorage(StorageEngine):
    """In-memory storage with the same key rules and read cap as FileStorage."""

    def __init__(self):
        self._entries: Dict[str, bytes] = {}

    def put(self, key: str, value: bytes) -> None:
        self._entries[validate_key(key)] = bytes(value)

    def get(self, key: str) -> Optional[bytes]:
        value = self._entries.get(validate_key(key))
        if value is None:
            return None
        return value[:MAX_VALUE_LENGTH]

    def delete(self, key: str) -> bool:
        self._entries.pop(validate_key(key), None)
        return True

    def __len__(self) -> int:
        return len(self._entries)


def create_storage(backend: str = None, data_dir: str = None) -> StorageEngine:
    """
    Build the storage backend named in the settings.

    Args:
        backend: "file" or "memory" (default from settings.STORAGE_BACKEND)
        data_dir: Root directory for the file backend

    Raises:
        ValueError: If the backend name is not recognised
    """
    backend = backend if backend is not None else settings.STORAGE_BACKEND
    if backend == "file":
        return FileStorage(data_dir)
    if backend == "memory":
        return MemoryStorage()
    raise ValueError(f"unknown storage backend: {backend!r}")
