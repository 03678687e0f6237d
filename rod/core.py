"""Put and get values at dotted bucket locations.

Every function takes an open transaction from the caller and never commits
or rolls it back. Locations are a hierarchy of bucket names such as
"users", "users.chilts", or "users.chilts.posts", split on the period.

Missing buckets and missing keys are not errors when reading: get() returns
None, get_all()/all_keys() return empty lists, and delete() does nothing.
"""

from typing import Any, Callable, List, Optional, Type, TypeVar

from .backends.base import Bucket, Transaction
from .exceptions import EmptyKeyError, EmptyLocationError
from .resolver import resolve_for_read, resolve_for_write
from .serialization import decode, encode

T = TypeVar("T")


def put(tx: Transaction, location: str, key: str, value: bytes) -> None:
    """Put value into key in the bucket at location.

    Every bucket in the location is created if it doesn't exist. The
    transaction must be writable.

    Example:
        rod.put(tx, "social", "twitter-123456", b"chilts")
        rod.put(tx, "users.chilts", "email", b"andychilton@gmail.com")
        rod.put(tx, "users.chilts.posts", "hello-world", b"Hello, World!")

    Raises:
        EmptyLocationError: If location is empty
        EmptyKeyError: If key is empty
        InvalidSegmentError: If any bucket name in location is blank
        StorageError: If the store refuses the write
    """
    if not location:
        raise EmptyLocationError()
    if not key:
        raise EmptyKeyError()

    bucket = resolve_for_write(tx, location)
    bucket.put(key, value)


def get(tx: Transaction, location: str, key: str) -> Optional[bytes]:
    """Get the raw value of key in the bucket at location.

    Returns None if any bucket in the location doesn't exist, or if the key
    doesn't exist.

    Raises:
        EmptyLocationError: If location is empty
        InvalidSegmentError: If any bucket name in location is blank
        EmptyKeyError: If key is empty and the bucket exists
    """
    bucket = resolve_for_read(tx, location)
    if bucket is None:
        return None

    # key is only checked once the bucket is known to exist
    if not key:
        raise EmptyKeyError()

    return bucket.get(key)


def put_json(tx: Transaction, location: str, key: str, value: Any) -> None:
    """Serialise value to JSON and put() the result.

    Raises:
        SerializationError: If value can't be encoded; nothing is written
    """
    raw = encode(value)
    put(tx, location, key, raw)


def get_json(tx: Transaction, location: str, key: str, target: Any = None) -> Any:
    """get() the value of key and decode it from JSON.

    target may be a class to build (eg. a dataclass), an instance to fill
    in, or None for plain JSON values. If the bucket or key doesn't exist, or
    the stored value is empty, None is returned and target is left untouched.

    Example:
        dog = rod.get_json(tx, "animal", "dog", Animal)

    Raises:
        SerializationError: If the stored value can't be decoded into target
    """
    raw = get(tx, location, key)
    if not raw:
        # missing (or empty) value
        return None
    return decode(raw, target)


def get_bucket(tx: Transaction, location: str) -> Optional[Bucket]:
    """Return the bucket at location, or None if it doesn't exist.

    Nothing is created.
    """
    return resolve_for_read(tx, location)


def all_keys(tx: Transaction, location: str) -> List[str]:
    """Return every key in the bucket at location, in key order.

    Nested buckets are not included. A missing bucket gives an empty list.
    """
    bucket = resolve_for_read(tx, location)
    if bucket is None:
        return []
    return list(bucket.keys())


def get_all(tx: Transaction, location: str, cls: Optional[Type[T]] = None) -> List[T]:
    """Decode every value in the bucket at location, in key order.

    Each value is decoded from JSON into a new cls, as get_json() does.
    Nested buckets are skipped. A missing bucket gives an empty list.

    Example:
        animals = rod.get_all(tx, "animal", Animal)
    """
    bucket = resolve_for_read(tx, location)
    if bucket is None:
        return []
    return [decode(raw, cls) for _, raw in bucket.items()]


def sel_all(
    tx: Transaction,
    location: str,
    factory: Callable[[], Any],
    sink: Callable[[Any], None],
) -> None:
    """Decode every value in the bucket at location through callbacks.

    For each entry, factory() provides a blank object which is filled in
    from the JSON value and handed to sink(). Prefer get_all().
    """
    bucket = resolve_for_read(tx, location)
    if bucket is None:
        return
    for _, raw in bucket.items():
        sink(decode(raw, factory()))


def delete(tx: Transaction, location: str, key: str) -> None:
    """Delete key from the bucket at location.

    Deleting from a missing bucket, or deleting a missing key, does nothing.

    Raises:
        EmptyLocationError: If location is empty
        InvalidSegmentError: If any bucket name in location is blank
        EmptyKeyError: If key is empty and the bucket exists
        TransactionNotWritableError: If the bucket exists and tx is read-only
    """
    bucket = resolve_for_read(tx, location)
    if bucket is None:
        return
    if not key:
        raise EmptyKeyError()
    bucket.delete(key)
