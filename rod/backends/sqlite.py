"""SQLite storage backend."""

from contextlib import contextmanager
import logging
import sqlite3
from typing import Iterator, List, Optional, Tuple

from ..exceptions import (
    BucketExistsError,
    BucketNotFoundError,
    ConnectionError,
    DatabaseReadOnlyError,
    IncompatibleValueError,
    StorageError,
    TransactionError,
)
from .base import (
    Bucket,
    StorageBackend,
    Transaction,
    check_value,
    encode_key,
    encode_name,
)

logger = logging.getLogger(__name__)

# parent_id of top-level buckets.
ROOT_ID = 0


@contextmanager
def _sqlite_errors():
    """Re-raise sqlite3 errors as StorageError."""
    try:
        yield
    except sqlite3.Error as e:
        raise StorageError(f"sqlite: {e}") from e


class _SQLiteContainer:
    """Bucket operations shared by the root transaction and nested buckets."""

    _tx: "SQLiteTransaction"
    _id: int

    def _child_id(self, raw: bytes) -> Optional[int]:
        row = self._tx._conn.execute(
            "SELECT id FROM buckets WHERE parent_id = ? AND name = ?",
            (self._id, raw),
        ).fetchone()
        return None if row is None else row[0]

    def _has_entry(self, raw: bytes) -> bool:
        row = self._tx._conn.execute(
            "SELECT 1 FROM entries WHERE bucket_id = ? AND key = ?",
            (self._id, raw),
        ).fetchone()
        return row is not None

    def bucket(self, name: str) -> Optional["SQLiteBucket"]:
        self._tx._ensure_open()
        with _sqlite_errors():
            child_id = self._child_id(encode_name(name))
        if child_id is None:
            return None
        return SQLiteBucket(self._tx, child_id)

    def create_bucket(self, name: str) -> "SQLiteBucket":
        self._tx._ensure_writable()
        raw = encode_name(name)
        with _sqlite_errors():
            if self._child_id(raw) is not None:
                raise BucketExistsError(name)
            if self._has_entry(raw):
                raise IncompatibleValueError(name)
            cursor = self._tx._conn.execute(
                "INSERT INTO buckets (parent_id, name) VALUES (?, ?)",
                (self._id, raw),
            )
        return SQLiteBucket(self._tx, cursor.lastrowid)

    def create_bucket_if_not_exists(self, name: str) -> "SQLiteBucket":
        self._tx._ensure_writable()
        with _sqlite_errors():
            child_id = self._child_id(encode_name(name))
        if child_id is not None:
            return SQLiteBucket(self._tx, child_id)
        return self.create_bucket(name)

    def delete_bucket(self, name: str) -> None:
        self._tx._ensure_writable()
        conn = self._tx._conn
        with _sqlite_errors():
            child_id = self._child_id(encode_name(name))
            if child_id is None:
                raise BucketNotFoundError(name)

            # Collect the bucket and all of its descendants
            rows = conn.execute(
                """
                WITH RECURSIVE tree(id) AS (
                    SELECT ?
                    UNION ALL
                    SELECT buckets.id FROM buckets JOIN tree ON buckets.parent_id = tree.id
                )
                SELECT id FROM tree
                """,
                (child_id,),
            ).fetchall()
            ids = [(row[0],) for row in rows]
            conn.executemany("DELETE FROM entries WHERE bucket_id = ?", ids)
            conn.executemany("DELETE FROM buckets WHERE id = ?", ids)

    def bucket_names(self) -> List[str]:
        self._tx._ensure_open()
        with _sqlite_errors():
            rows = self._tx._conn.execute(
                "SELECT name FROM buckets WHERE parent_id = ? ORDER BY name",
                (self._id,),
            ).fetchall()
        return [bytes(row[0]).decode("utf-8") for row in rows]


class SQLiteBucket(_SQLiteContainer, Bucket):
    """A bucket inside a SQLiteTransaction."""

    def __init__(self, tx: "SQLiteTransaction", bucket_id: int):
        self._tx = tx
        self._id = bucket_id

    def get(self, key: str) -> Optional[bytes]:
        self._tx._ensure_open()
        with _sqlite_errors():
            row = self._tx._conn.execute(
                "SELECT value FROM entries WHERE bucket_id = ? AND key = ?",
                (self._id, encode_key(key)),
            ).fetchone()
        return None if row is None else bytes(row[0])

    def put(self, key: str, value: bytes) -> None:
        self._tx._ensure_writable()
        raw = encode_key(key)
        value = check_value(value)
        with _sqlite_errors():
            if self._child_id(raw) is not None:
                raise IncompatibleValueError(key)
            self._tx._conn.execute(
                "INSERT OR REPLACE INTO entries (bucket_id, key, value) VALUES (?, ?, ?)",
                (self._id, raw, value),
            )

    def delete(self, key: str) -> None:
        self._tx._ensure_writable()
        raw = encode_key(key)
        with _sqlite_errors():
            if self._child_id(raw) is not None:
                raise IncompatibleValueError(key)
            self._tx._conn.execute(
                "DELETE FROM entries WHERE bucket_id = ? AND key = ?",
                (self._id, raw),
            )

    def items(self) -> Iterator[Tuple[str, bytes]]:
        self._tx._ensure_open()
        # BLOBs compare with memcmp(), giving byte order
        with _sqlite_errors():
            rows = self._tx._conn.execute(
                "SELECT key, value FROM entries WHERE bucket_id = ? ORDER BY key",
                (self._id,),
            ).fetchall()
        for key, value in rows:
            yield bytes(key).decode("utf-8"), bytes(value)


class SQLiteTransaction(_SQLiteContainer, Transaction):
    """Transaction over a SQLiteBackend connection."""

    def __init__(self, backend: "SQLiteBackend", writable: bool):
        super().__init__(writable)
        self._backend = backend
        self._conn = backend._conn
        self._id = ROOT_ID
        self._tx = self
        with _sqlite_errors():
            self._conn.execute("BEGIN IMMEDIATE" if writable else "BEGIN")

    def _commit(self) -> None:
        try:
            with _sqlite_errors():
                self._conn.execute("COMMIT")
        except StorageError:
            self._rollback()
            raise

    def _rollback(self) -> None:
        if self._conn.in_transaction:
            with _sqlite_errors():
                self._conn.execute("ROLLBACK")

    def _release(self) -> None:
        self._backend._active = None


class SQLiteBackend(StorageBackend):
    """SQLite storage backend.

    Stores the bucket tree in a SQLite database file. Zero configuration
    required. One transaction may be open per connection at a time;
    writers in other connections wait up to ``timeout`` seconds for
    SQLite's lock.

    Example:
        backend = SQLiteBackend()
        backend.connect(path="app.db")

        # Or in-memory
        backend.connect(path=":memory:")
    """

    def __init__(self):
        self._conn: Optional[sqlite3.Connection] = None
        self._path: Optional[str] = None
        self._read_only = False
        self._active: Optional[SQLiteTransaction] = None

    def connect(
        self,
        path: str = ":memory:",
        read_only: bool = False,
        timeout: float = 5.0,
        **kwargs,
    ) -> None:
        """Connect to SQLite database.

        Args:
            path: Database file path, or ":memory:" for in-memory database
            read_only: Open the file read-only and refuse writable transactions
            timeout: Seconds to wait on a locked database
        """
        self._path = path
        self._read_only = read_only
        try:
            if read_only and path != ":memory:":
                self._conn = sqlite3.connect(
                    f"file:{path}?mode=ro",
                    uri=True,
                    timeout=timeout,
                    isolation_level=None,
                    check_same_thread=False,
                )
            else:
                self._conn = sqlite3.connect(
                    path,
                    timeout=timeout,
                    isolation_level=None,
                    check_same_thread=False,
                )
                self._create_tables()
        except sqlite3.Error as e:
            raise ConnectionError(f"cannot open {path}: {e}") from e
        logger.info("opened sqlite store at %s", path)

    def _create_tables(self) -> None:
        """Create the buckets and entries tables if they don't exist."""
        self._conn.execute(
            """
            CREATE TABLE IF NOT EXISTS buckets (
                id INTEGER PRIMARY KEY,
                parent_id INTEGER NOT NULL,
                name BLOB NOT NULL,
                UNIQUE (parent_id, name)
            )
            """
        )
        self._conn.execute(
            """
            CREATE TABLE IF NOT EXISTS entries (
                bucket_id INTEGER NOT NULL,
                key BLOB NOT NULL,
                value BLOB NOT NULL,
                PRIMARY KEY (bucket_id, key)
            )
            """
        )

    def close(self) -> None:
        """Close the database connection, rolling back any open transaction."""
        if self._active is not None:
            self._active.rollback()
        if self._conn:
            self._conn.close()
            self._conn = None
            logger.info("closed sqlite store at %s", self._path)

    def begin(self, writable: bool = False) -> SQLiteTransaction:
        """Start a transaction on this connection."""
        if self._conn is None:
            raise TransactionError("database not open")
        if writable and self._read_only:
            raise DatabaseReadOnlyError()
        if self._active is not None:
            raise TransactionError("a transaction is already open on this connection")
        tx = SQLiteTransaction(self, writable)
        self._active = tx
        logger.debug("began %s transaction %x", "writable" if writable else "read-only", id(tx))
        return tx

    @property
    def read_only(self) -> bool:
        return self._read_only
