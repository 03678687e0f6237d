"""Exceptions for the rod package."""

from enum import Enum


class ErrorKind(Enum):
    """Closed set of failure kinds raised by rod.

    Every exception carries one of these as ``kind`` so callers can branch
    on the kind of failure without matching exception identity.
    """

    EMPTY_LOCATION = "empty_location"
    INVALID_SEGMENT = "invalid_segment"
    EMPTY_KEY = "empty_key"
    STORAGE = "storage"
    SERIALIZATION = "serialization"


class RodError(Exception):
    """Base exception for all rod errors."""

    kind: ErrorKind = ErrorKind.STORAGE


class EmptyLocationError(RodError, ValueError):
    """Location has no buckets in it, ie. it is empty."""

    kind = ErrorKind.EMPTY_LOCATION

    def __init__(self):
        super().__init__("location must specify at least one bucket")


class InvalidSegmentError(RodError, ValueError):
    """A bucket name in the location is blank, eg. "users..chilts"."""

    kind = ErrorKind.INVALID_SEGMENT

    def __init__(self, location: str):
        self.location = location
        super().__init__(f"invalid location bucket in: {location!r}")


class EmptyKeyError(RodError, ValueError):
    """Key was not specified, ie. it is empty."""

    kind = ErrorKind.EMPTY_KEY

    def __init__(self):
        super().__init__("key must be specified")


class StorageError(RodError):
    """Failure reported by the underlying storage backend."""

    kind = ErrorKind.STORAGE


class ConnectionError(StorageError):
    """Failed to connect to storage backend."""

    pass


class DatabaseReadOnlyError(StorageError):
    """A writable transaction was requested on a read-only database."""

    def __init__(self):
        super().__init__("database is in read-only mode")


class TransactionError(StorageError):
    """Transaction-related error."""

    pass


class TransactionClosedError(TransactionError):
    """Transaction has already been committed or rolled back."""

    def __init__(self):
        super().__init__("transaction closed")


class TransactionNotWritableError(TransactionError):
    """A write was attempted inside a read-only transaction."""

    def __init__(self):
        super().__init__("transaction not writable")


class BucketExistsError(StorageError):
    """Bucket already exists."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"bucket already exists: {name!r}")


class BucketNotFoundError(StorageError, KeyError):
    """Bucket does not exist."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"bucket not found: {name!r}")


class IncompatibleValueError(StorageError):
    """A name is already used by a key where a bucket is wanted, or vice versa."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"incompatible value: {name!r}")


class KeyTooLargeError(StorageError):
    """Encoded key is larger than the store accepts."""

    def __init__(self, size: int, limit: int):
        self.size = size
        self.limit = limit
        super().__init__(f"key too large: {size} bytes (limit {limit})")


class SerializationError(RodError):
    """Failed to serialize or deserialize a value."""

    kind = ErrorKind.SERIALIZATION
