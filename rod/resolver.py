"""Resolve dotted locations to nested buckets.

A location such as "users.chilts.posts" names a chain of buckets, root
first. Writers walk the chain creating any bucket that is missing; readers
only look buckets up and get None as soon as one is missing, so a read
never changes the shape of the store.
"""

from typing import Optional

from .backends.base import Bucket, Transaction
from .exceptions import EmptyLocationError, InvalidSegmentError

SEPARATOR = "."


def resolve_for_write(tx: Transaction, location: str) -> Bucket:
    """Return the bucket at location, creating every missing bucket on the way.

    Storage errors (eg. a read-only transaction) propagate unchanged.

    Raises:
        EmptyLocationError: If location is empty
        InvalidSegmentError: If any bucket name in location is blank
    """
    if not location:
        raise EmptyLocationError()

    names = location.split(SEPARATOR)
    if names[0] == "":
        raise InvalidSegmentError(location)

    bucket = tx.create_bucket_if_not_exists(names[0])
    for name in names[1:]:
        if name == "":
            raise InvalidSegmentError(location)
        bucket = bucket.create_bucket_if_not_exists(name)

    return bucket


def resolve_for_read(tx: Transaction, location: str) -> Optional[Bucket]:
    """Return the bucket at location, or None if any bucket on the way is missing.

    Raises:
        EmptyLocationError: If location is empty
        InvalidSegmentError: If any bucket name in location is blank, even when
            an earlier bucket is missing
    """
    if not location:
        raise EmptyLocationError()

    names = location.split(SEPARATOR)
    if "" in names:
        raise InvalidSegmentError(location)

    bucket = tx.bucket(names[0])
    if bucket is None:
        return None

    for name in names[1:]:
        bucket = bucket.bucket(name)
        if bucket is None:
            return None

    return bucket
