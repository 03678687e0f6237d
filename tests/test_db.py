"""Tests for DB and connect()."""

import os
import tempfile

import pytest

import rod
from rod import DB, DatabaseReadOnlyError, MemoryBackend, SQLiteBackend, connect


class TestTransactionContext:
    """Tests for DB.transaction(), update() and view()."""

    @pytest.fixture(params=["memory://", "sqlite:///:memory:"])
    def db(self, request):
        store = connect(request.param)
        yield store
        store.close()

    def test_transaction_commit(self, db):
        """Transaction commits on success."""
        with db.transaction() as tx:
            rod.put(tx, "Test", "A", b"1")
            rod.put(tx, "Test", "B", b"2")

        with db.transaction(writable=False) as tx:
            assert rod.all_keys(tx, "Test") == ["A", "B"]

    def test_transaction_rollback(self, db):
        """Transaction rolls back on exception."""
        with db.transaction() as tx:
            rod.put(tx, "Test", "Existing", b"1")

        with pytest.raises(ValueError):
            with db.transaction() as tx:
                rod.put(tx, "Test", "New", b"2")
                rod.put(tx, "Other", "New", b"3")
                raise ValueError("Simulated error")

        with db.transaction(writable=False) as tx:
            assert rod.all_keys(tx, "Test") == ["Existing"]
            assert rod.get_bucket(tx, "Other") is None

    def test_transaction_closed_on_exit(self, db):
        with db.transaction(writable=False) as tx:
            pass
        assert tx.closed is True

    def test_read_transaction_not_committed(self, db):
        """Read-only transactions are rolled back, never committed."""
        with db.transaction(writable=False) as tx:
            assert tx.writable is False
        # A new writable transaction can start straight away
        with db.transaction() as tx:
            assert tx.writable is True

    def test_update_and_view(self, db):
        """update() and view() return the function's result."""
        db.update(lambda tx: rod.put(tx, "users.chilts", "email", b"a@example.com"))
        assert db.view(lambda tx: rod.get(tx, "users.chilts", "email")) == b"a@example.com"

    def test_update_rolls_back_on_error(self, db):
        def fail(tx):
            rod.put(tx, "users", "chilts", b"x")
            raise RuntimeError("boom")

        with pytest.raises(RuntimeError):
            db.update(fail)

        assert db.view(lambda tx: rod.get(tx, "users", "chilts")) is None

    def test_begin(self, db):
        """begin() leaves the lifecycle to the caller."""
        tx = db.begin(writable=True)
        rod.put(tx, "a", "k", b"v")
        tx.commit()

        tx = db.begin()
        assert rod.get(tx, "a", "k") == b"v"
        tx.rollback()

    def test_context_manager(self):
        """DB works as context manager."""
        with connect("memory://") as db:
            db.update(lambda tx: rod.put(tx, "Test", "A", b"1"))
            assert db.view(lambda tx: rod.get(tx, "Test", "A")) == b"1"


class TestConnect:
    """Tests for connect() function."""

    def test_memory_url(self):
        """Can connect with memory:// URL."""
        db = connect("memory://")
        assert isinstance(db, DB)
        assert isinstance(db.backend, MemoryBackend)
        db.close()

    def test_sqlite_url(self):
        """Can connect with sqlite:// URL."""
        db = connect("sqlite:///:memory:")
        assert isinstance(db.backend, SQLiteBackend)
        db.close()

    def test_unknown_scheme(self):
        """Unknown scheme raises ValueError."""
        with pytest.raises(ValueError):
            connect("unknown://localhost")

    def test_unknown_option(self):
        with pytest.raises(ValueError):
            connect("memory://?colour=blue")

    def test_bad_timeout(self):
        with pytest.raises(ValueError):
            connect("memory://?timeout=soon")

    def test_read_only_option(self):
        """read_only from the query string or keywords."""
        with connect("memory://?read_only=true") as db:
            assert db.read_only is True
            with pytest.raises(DatabaseReadOnlyError):
                db.begin(writable=True)

        with connect("memory://?read_only=true", read_only=False) as db:
            assert db.read_only is False

    def test_sqlite_persistence(self):
        """Values persist across connections."""
        with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as f:
            db_path = f.name

        try:
            # Write
            with connect(f"sqlite:///{db_path}") as db:
                with db.transaction() as tx:
                    rod.put(tx, "users.chilts", "email", b"a@example.com")

            # Read in new connection
            with connect(f"sqlite:///{db_path}?read_only=1&timeout=1") as db:
                assert db.read_only is True
                with db.transaction(writable=False) as tx:
                    assert rod.get(tx, "users.chilts", "email") == b"a@example.com"
        finally:
            os.unlink(db_path)
