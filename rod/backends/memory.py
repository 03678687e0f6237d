"""In-memory storage backend for testing."""

import copy
import logging
import threading
from typing import Dict, Iterator, List, Optional, Tuple

from ..exceptions import (
    BucketExistsError,
    BucketNotFoundError,
    DatabaseReadOnlyError,
    IncompatibleValueError,
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


class _Node:
    """One level of the bucket tree."""

    __slots__ = ("entries", "children")

    def __init__(self):
        self.entries: Dict[bytes, bytes] = {}
        self.children: Dict[bytes, "_Node"] = {}


class _NodeOps:
    """Bucket operations shared by the root transaction and nested buckets."""

    _tx: "MemoryTransaction"
    _node: _Node

    def bucket(self, name: str) -> Optional["MemoryBucket"]:
        self._tx._ensure_open()
        child = self._node.children.get(encode_name(name))
        if child is None:
            return None
        return MemoryBucket(self._tx, child)

    def create_bucket(self, name: str) -> "MemoryBucket":
        self._tx._ensure_writable()
        raw = encode_name(name)
        if raw in self._node.children:
            raise BucketExistsError(name)
        if raw in self._node.entries:
            raise IncompatibleValueError(name)
        child = self._node.children[raw] = _Node()
        return MemoryBucket(self._tx, child)

    def create_bucket_if_not_exists(self, name: str) -> "MemoryBucket":
        self._tx._ensure_writable()
        child = self._node.children.get(encode_name(name))
        if child is not None:
            return MemoryBucket(self._tx, child)
        return self.create_bucket(name)

    def delete_bucket(self, name: str) -> None:
        self._tx._ensure_writable()
        raw = encode_name(name)
        if raw not in self._node.children:
            raise BucketNotFoundError(name)
        del self._node.children[raw]

    def bucket_names(self) -> List[str]:
        self._tx._ensure_open()
        return [raw.decode("utf-8") for raw in sorted(self._node.children)]


class MemoryBucket(_NodeOps, Bucket):
    """A bucket inside a MemoryTransaction."""

    def __init__(self, tx: "MemoryTransaction", node: _Node):
        self._tx = tx
        self._node = node

    def get(self, key: str) -> Optional[bytes]:
        self._tx._ensure_open()
        return self._node.entries.get(encode_key(key))

    def put(self, key: str, value: bytes) -> None:
        self._tx._ensure_writable()
        raw = encode_key(key)
        value = check_value(value)
        if raw in self._node.children:
            raise IncompatibleValueError(key)
        self._node.entries[raw] = value

    def delete(self, key: str) -> None:
        self._tx._ensure_writable()
        raw = encode_key(key)
        if raw in self._node.children:
            raise IncompatibleValueError(key)
        self._node.entries.pop(raw, None)

    def items(self) -> Iterator[Tuple[str, bytes]]:
        self._tx._ensure_open()
        for raw, value in sorted(self._node.entries.items()):
            yield raw.decode("utf-8"), value


class MemoryTransaction(_NodeOps, Transaction):
    """Transaction over a MemoryBackend.

    Writable transactions work on a private deep copy of the tree which
    replaces the backend's tree on commit. Read-only transactions see the
    tree as it was when they began.
    """

    def __init__(self, backend: "MemoryBackend", writable: bool):
        super().__init__(writable)
        self._backend = backend
        if writable:
            self._node = copy.deepcopy(backend._root)
        else:
            self._node = backend._root
        self._tx = self

    def _commit(self) -> None:
        self._backend._root = self._node

    def _rollback(self) -> None:
        pass

    def _release(self) -> None:
        if self.writable:
            self._backend._writer.release()


class MemoryBackend(StorageBackend):
    """In-memory storage backend.

    Useful for testing and temporary storage. Data is lost when the
    backend is closed or the process ends. Only one writable transaction
    may be open at a time; others wait up to ``timeout`` seconds.

    Example:
        backend = MemoryBackend()
        backend.connect()

        tx = backend.begin(writable=True)
        tx.create_bucket_if_not_exists("users").put("chilts", b"Andy")
        tx.commit()
    """

    def __init__(self):
        self._root = _Node()
        self._writer = threading.Lock()
        self._timeout = 5.0
        self._read_only = False

    def connect(self, read_only: bool = False, timeout: float = 5.0, **kwargs) -> None:
        """Initialize the in-memory store.

        Args:
            read_only: Refuse writable transactions
            timeout: Seconds to wait for the writer lock
        """
        self._root = _Node()
        self._read_only = read_only
        self._timeout = timeout
        logger.info("opened in-memory store")

    def close(self) -> None:
        """Clear the in-memory store."""
        self._root = _Node()
        logger.info("closed in-memory store")

    def begin(self, writable: bool = False) -> MemoryTransaction:
        """Start a transaction, waiting for the writer lock if writable."""
        if writable:
            if self._read_only:
                raise DatabaseReadOnlyError()
            if not self._writer.acquire(timeout=self._timeout):
                raise TransactionError(
                    f"timed out after {self._timeout}s waiting for writable transaction"
                )
        tx = MemoryTransaction(self, writable)
        logger.debug("began %s transaction %x", "writable" if writable else "read-only", id(tx))
        return tx

    @property
    def read_only(self) -> bool:
        return self._read_only
