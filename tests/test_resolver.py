"""Tests for location resolution."""

import pytest

from rod import (
    EmptyLocationError,
    InvalidSegmentError,
    TransactionNotWritableError,
    connect,
)
from rod.resolver import resolve_for_read, resolve_for_write


@pytest.fixture(params=["memory://", "sqlite:///:memory:"])
def db(request):
    """Create a store on each backend."""
    store = connect(request.param)
    yield store
    store.close()


class TestResolveForWrite:
    """Tests for resolve_for_write()."""

    def test_creates_chain(self, db):
        """Every bucket in the location is created."""
        with db.transaction() as tx:
            bucket = resolve_for_write(tx, "users.chilts.posts")
            bucket.put("hello", b"world")

            users = tx.bucket("users")
            assert users is not None
            assert users.bucket_names() == ["chilts"]
            assert users.bucket("chilts").bucket_names() == ["posts"]
            assert users.bucket("chilts").bucket("posts").get("hello") == b"world"

    def test_reuses_existing(self, db):
        """Resolving twice reaches the same bucket."""
        with db.transaction() as tx:
            resolve_for_write(tx, "a.b").put("k", b"1")
            assert resolve_for_write(tx, "a.b").get("k") == b"1"
            assert tx.bucket_names() == ["a"]

    def test_single_bucket(self, db):
        """A location with no dots is a top-level bucket."""
        with db.transaction() as tx:
            resolve_for_write(tx, "social")
            assert tx.bucket_names() == ["social"]

    def test_empty_location(self, db):
        with db.transaction() as tx:
            with pytest.raises(EmptyLocationError):
                resolve_for_write(tx, "")

    def test_leading_dot(self, db):
        """Blank first bucket fails before anything is created."""
        with db.transaction() as tx:
            with pytest.raises(InvalidSegmentError):
                resolve_for_write(tx, ".a")
            assert tx.bucket_names() == []

    @pytest.mark.parametrize("location", ["a..b", "a.", "a.b."])
    def test_blank_later_bucket(self, db, location):
        with db.transaction() as tx:
            with pytest.raises(InvalidSegmentError) as exc_info:
                resolve_for_write(tx, location)
        assert exc_info.value.location == location

    def test_read_only_transaction(self, db):
        """Storage errors propagate unchanged."""
        with db.transaction(writable=False) as tx:
            with pytest.raises(TransactionNotWritableError):
                resolve_for_write(tx, "a.b")


class TestResolveForRead:
    """Tests for resolve_for_read()."""

    def test_finds_chain(self, db):
        with db.transaction() as tx:
            resolve_for_write(tx, "users.chilts").put("email", b"x")

        with db.transaction(writable=False) as tx:
            bucket = resolve_for_read(tx, "users.chilts")
            assert bucket is not None
            assert bucket.get("email") == b"x"

    def test_missing_root(self, db):
        with db.transaction(writable=False) as tx:
            assert resolve_for_read(tx, "users") is None

    def test_missing_nested(self, db):
        """Missing bucket part way down gives None."""
        with db.transaction() as tx:
            resolve_for_write(tx, "users")
            assert resolve_for_read(tx, "users.chilts.posts") is None

    def test_never_creates(self, db):
        """Lookups in a writable transaction create nothing."""
        with db.transaction() as tx:
            resolve_for_write(tx, "users")
            resolve_for_read(tx, "users.chilts.posts")
            assert tx.bucket("users").bucket_names() == []

    def test_key_is_not_a_bucket(self, db):
        """A key with the same name as a wanted bucket is a miss."""
        with db.transaction() as tx:
            resolve_for_write(tx, "users").put("chilts", b"x")
            assert resolve_for_read(tx, "users.chilts") is None

    def test_empty_location(self, db):
        with db.transaction(writable=False) as tx:
            with pytest.raises(EmptyLocationError):
                resolve_for_read(tx, "")

    @pytest.mark.parametrize("location", ["a..b", ".a", "a.", "missing..b"])
    def test_blank_bucket(self, db, location):
        """Blank bucket names fail whether or not the chain exists."""
        with db.transaction() as tx:
            resolve_for_write(tx, "a")
            with pytest.raises(InvalidSegmentError):
                resolve_for_read(tx, location)
