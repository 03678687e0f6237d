"""Database handle and URL-based connection."""

from contextlib import contextmanager
from typing import Any, Callable, Dict, Iterator, TypeVar
from urllib.parse import parse_qsl, urlparse

from .backends.base import StorageBackend, Transaction
from .backends.memory import MemoryBackend

T = TypeVar("T")


class DB:
    """An open store and its transactions.

    The rod functions work inside a transaction; DB hands them out and
    owns their lifetime.

    Example:
        from rod import connect
        import rod

        db = connect("sqlite:///app.db")

        with db.transaction() as tx:
            rod.put(tx, "users.chilts", "email", b"andychilton@gmail.com")

        email = db.view(lambda tx: rod.get(tx, "users.chilts", "email"))
    """

    def __init__(self, backend: StorageBackend):
        """Create a DB over a connected backend.

        Use connect() for convenient URL-based connection.

        Args:
            backend: Storage backend instance, already connected
        """
        self._backend = backend

    @property
    def backend(self) -> StorageBackend:
        return self._backend

    @property
    def read_only(self) -> bool:
        return self._backend.read_only

    def begin(self, writable: bool = False) -> Transaction:
        """Start a transaction. The caller must commit or roll it back."""
        return self._backend.begin(writable)

    @contextmanager
    def transaction(self, writable: bool = True) -> Iterator[Transaction]:
        """Context manager for a transaction.

        A writable transaction is committed on successful exit and rolled
        back on exception. A read-only transaction is always rolled back.

        Example:
            with db.transaction() as tx:
                rod.put_json(tx, "animal", "dog", dog)
                rod.put_json(tx, "animal", "cat", cat)
                # Both committed atomically
        """
        tx = self._backend.begin(writable)
        try:
            yield tx
        except BaseException:
            tx.rollback()
            raise
        if writable:
            tx.commit()
        else:
            tx.rollback()

    def update(self, fn: Callable[[Transaction], T]) -> T:
        """Run fn in a writable transaction, committing unless it raises."""
        with self.transaction(writable=True) as tx:
            return fn(tx)

    def view(self, fn: Callable[[Transaction], T]) -> T:
        """Run fn in a read-only transaction."""
        with self.transaction(writable=False) as tx:
            return fn(tx)

    # Lifecycle

    def close(self) -> None:
        """Close the store and release resources."""
        self._backend.close()

    def __enter__(self) -> "DB":
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Context manager exit."""
        self.close()


_TRUE = {"1", "true", "yes", "on"}


def _parse_options(query: str) -> Dict[str, Any]:
    """Read read_only and timeout from a URL query string."""
    options: Dict[str, Any] = {}
    for name, value in parse_qsl(query):
        if name == "read_only":
            options["read_only"] = value.lower() in _TRUE
        elif name == "timeout":
            try:
                options["timeout"] = float(value)
            except ValueError:
                raise ValueError(f"Invalid timeout in URL: {value!r}") from None
        else:
            raise ValueError(f"Unknown connection option: {name}")
    return options


def connect(url: str, **options) -> DB:
    """Connect to a store using a URL.

    Supported URL schemes:
        - memory://          In-memory storage (testing)
        - sqlite:///path.db  SQLite file storage
        - sqlite:///:memory: SQLite in-memory

    Options may be given in the query string or as keywords (keywords
    win): read_only refuses writable transactions, timeout is the number
    of seconds to wait for a writer lock.

    Args:
        url: Connection URL
        **options: Backend options

    Returns:
        Connected DB instance

    Example:
        db = connect("sqlite:///app.db")
        db = connect("sqlite:///app.db?read_only=1")
        db = connect("memory://", timeout=1.0)
    """
    parsed = urlparse(url)
    scheme = parsed.scheme
    merged = _parse_options(parsed.query)
    merged.update(options)

    if scheme == "memory":
        backend = MemoryBackend()
        backend.connect(**merged)
        return DB(backend)

    elif scheme == "sqlite":
        from .backends.sqlite import SQLiteBackend

        # Handle sqlite:///path and sqlite:///:memory:
        path = parsed.path
        if path.startswith("/"):
            path = path[1:]  # Remove leading slash from file path

        backend = SQLiteBackend()
        backend.connect(path=path if path else ":memory:", **merged)
        return DB(backend)

    else:
        raise ValueError(f"Unknown storage scheme: {scheme}")
