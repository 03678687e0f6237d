"""Abstract base classes for nested-bucket storage backends."""

from abc import ABC, abstractmethod
import logging
from typing import Iterator, List, Optional, Tuple

from ..exceptions import (
    EmptyKeyError,
    InvalidSegmentError,
    KeyTooLargeError,
    TransactionClosedError,
    TransactionNotWritableError,
)

logger = logging.getLogger(__name__)

# Largest encoded key a bucket accepts.
MAX_KEY_SIZE = 32768


def encode_name(name: str) -> bytes:
    """Encode a bucket name, rejecting blank names."""
    if not name:
        raise InvalidSegmentError(name)
    return name.encode("utf-8")


def encode_key(key: str) -> bytes:
    """Encode a key, rejecting blank or oversized keys."""
    if not key:
        raise EmptyKeyError()
    raw = key.encode("utf-8")
    if len(raw) > MAX_KEY_SIZE:
        raise KeyTooLargeError(len(raw), MAX_KEY_SIZE)
    return raw


def check_value(value) -> bytes:
    """Coerce a bytes-like value to bytes."""
    if not isinstance(value, (bytes, bytearray, memoryview)):
        raise TypeError(
            f"value must be bytes-like, got {type(value).__name__}"
        )
    return bytes(value)


class Bucket(ABC):
    """A named namespace holding key/value entries and nested buckets.

    Keys and nested bucket names share one namespace: a name is either a
    key or a bucket, never both.
    """

    @abstractmethod
    def bucket(self, name: str) -> Optional["Bucket"]:
        """Return the nested bucket called name, or None if it doesn't exist."""
        pass

    @abstractmethod
    def create_bucket(self, name: str) -> "Bucket":
        """Create a nested bucket.

        Raises:
            BucketExistsError: If the bucket already exists
            IncompatibleValueError: If name is already used by a key
        """
        pass

    @abstractmethod
    def create_bucket_if_not_exists(self, name: str) -> "Bucket":
        """Return the nested bucket called name, creating it if needed."""
        pass

    @abstractmethod
    def delete_bucket(self, name: str) -> None:
        """Delete a nested bucket and everything under it.

        Raises:
            BucketNotFoundError: If the bucket doesn't exist
        """
        pass

    @abstractmethod
    def bucket_names(self) -> List[str]:
        """Names of the nested buckets, in key order."""
        pass

    @abstractmethod
    def get(self, key: str) -> Optional[bytes]:
        """Return the value for key, or None if it isn't set."""
        pass

    @abstractmethod
    def put(self, key: str, value: bytes) -> None:
        """Set key to value, overwriting any existing value."""
        pass

    @abstractmethod
    def delete(self, key: str) -> None:
        """Remove key. Removing a missing key does nothing."""
        pass

    @abstractmethod
    def items(self) -> Iterator[Tuple[str, bytes]]:
        """Iterate (key, value) pairs in key order.

        Nested buckets are not included.
        """
        pass

    def keys(self) -> Iterator[str]:
        """Iterate keys in key order."""
        for key, _ in self.items():
            yield key


class Transaction(ABC):
    """A read-only or writable transaction against a backend.

    The transaction itself acts as the root of the bucket hierarchy: it
    holds top-level buckets but no key/value entries.
    """

    def __init__(self, writable: bool):
        self.writable = writable
        self.closed = False

    def _ensure_open(self) -> None:
        if self.closed:
            raise TransactionClosedError()

    def _ensure_writable(self) -> None:
        self._ensure_open()
        if not self.writable:
            raise TransactionNotWritableError()

    @abstractmethod
    def bucket(self, name: str) -> Optional[Bucket]:
        """Return the top-level bucket called name, or None."""
        pass

    @abstractmethod
    def create_bucket(self, name: str) -> Bucket:
        """Create a top-level bucket."""
        pass

    @abstractmethod
    def create_bucket_if_not_exists(self, name: str) -> Bucket:
        """Return the top-level bucket called name, creating it if needed."""
        pass

    @abstractmethod
    def delete_bucket(self, name: str) -> None:
        """Delete a top-level bucket and everything under it."""
        pass

    @abstractmethod
    def bucket_names(self) -> List[str]:
        """Names of the top-level buckets, in key order."""
        pass

    def commit(self) -> None:
        """Commit the transaction.

        Committing a read-only transaction raises TransactionNotWritableError;
        roll it back instead.
        """
        self._ensure_writable()
        try:
            self._commit()
        finally:
            self.closed = True
            self._release()
        logger.debug("committed transaction %x", id(self))

    def rollback(self) -> None:
        """Discard the transaction's changes. Rolling back twice does nothing."""
        if self.closed:
            return
        try:
            self._rollback()
        finally:
            self.closed = True
            self._release()
        logger.debug("rolled back transaction %x", id(self))

    @abstractmethod
    def _commit(self) -> None:
        pass

    @abstractmethod
    def _rollback(self) -> None:
        pass

    def _release(self) -> None:
        """Release backend resources held by the transaction."""
        pass


class StorageBackend(ABC):
    """Abstract base class for storage backends.

    Backends implement the actual storage mechanism (memory, SQLite, ...)
    while rod.core handles locations, keys, and JSON values.
    """

    @abstractmethod
    def connect(self, **kwargs) -> None:
        """Establish connection to storage.

        Args:
            **kwargs: Backend-specific connection parameters
        """
        pass

    @abstractmethod
    def close(self) -> None:
        """Close connection and release resources."""
        pass

    @abstractmethod
    def begin(self, writable: bool = False) -> Transaction:
        """Start a transaction.

        Args:
            writable: Whether the transaction may modify the store

        Returns:
            The open Transaction
        """
        pass

    @property
    def read_only(self) -> bool:
        """Whether the backend refuses writable transactions."""
        return False
