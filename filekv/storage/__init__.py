"""Storage module for filekv."""

from .engine import (
    FileStorage,
    InvalidKeyError,
    MemoryStorage,
    StorageEngine,
    StorageError,
    create_storage,
    validate_key,
)

__all__ = [
    "StorageEngine",
    "FileStorage",
    "MemoryStorage",
    "StorageError",
    "InvalidKeyError",
    "create_storage",
    "validate_key",
]
