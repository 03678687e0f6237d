"""Rod - a rod straight to the value you want.

Put and get values in an embedded transactional store using dotted bucket
locations like "users.chilts.posts". Buckets are created as needed when
writing and never created when reading.

Quick Start:
    from dataclasses import dataclass
    import rod

    @dataclass
    class Animal:
        type: str
        name: str

    db = rod.connect("sqlite:///app.db")

    with db.transaction() as tx:
        rod.put(tx, "users.chilts", "email", b"andychilton@gmail.com")
        rod.put_json(tx, "animal", "dog", Animal("dog", "rover"))

    with db.transaction(writable=False) as tx:
        email = rod.get(tx, "users.chilts", "email")
        dog = rod.get_json(tx, "animal", "dog", Animal)
        animals = rod.get_all(tx, "animal", Animal)

Supported backends:
    - memory://           In-memory storage (testing)
    - sqlite:///path.db   SQLite file storage
    - sqlite:///:memory:  SQLite in-memory

Soft misses:
    - get() and get_json() return None for a missing bucket or key
    - all_keys() and get_all() return [] for a missing bucket
    - delete() of a missing bucket or key does nothing
"""

from .core import (
    put,
    get,
    put_json,
    get_json,
    get_bucket,
    all_keys,
    get_all,
    sel_all,
    delete,
)
from .db import DB, connect
from .backends import Bucket, Transaction, StorageBackend, MemoryBackend, SQLiteBackend
from .serialization import Serializer
from .exceptions import (
    ErrorKind,
    RodError,
    EmptyLocationError,
    InvalidSegmentError,
    EmptyKeyError,
    StorageError,
    DatabaseReadOnlyError,
    TransactionError,
    TransactionClosedError,
    TransactionNotWritableError,
    BucketExistsError,
    BucketNotFoundError,
    IncompatibleValueError,
    KeyTooLargeError,
    SerializationError,
)

__all__ = [
    # Main API
    "put",
    "get",
    "put_json",
    "get_json",
    "get_bucket",
    "all_keys",
    "get_all",
    "sel_all",
    "delete",
    "DB",
    "connect",
    # Backends
    "Bucket",
    "Transaction",
    "StorageBackend",
    "MemoryBackend",
    "SQLiteBackend",
    # Serialization
    "Serializer",
    # Exceptions
    "ErrorKind",
    "RodError",
    "EmptyLocationError",
    "InvalidSegmentError",
    "EmptyKeyError",
    "StorageError",
    "DatabaseReadOnlyError",
    "TransactionError",
    "TransactionClosedError",
    "TransactionNotWritableError",
    "BucketExistsError",
    "BucketNotFoundError",
    "IncompatibleValueError",
    "KeyTooLargeError",
    "SerializationError",
]

__version__ = "0.1.0"
