"""Storage backends for rod."""

from .base import MAX_KEY_SIZE, Bucket, StorageBackend, Transaction
from .memory import MemoryBackend
from .sqlite import SQLiteBackend

__all__ = [
    "MAX_KEY_SIZE",
    "Bucket",
    "StorageBackend",
    "Transaction",
    "MemoryBackend",
    "SQLiteBackend",
]
