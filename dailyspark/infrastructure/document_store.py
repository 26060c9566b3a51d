"""Document store backed by SQLite

Users and curricula are stored as JSON documents, one table per container,
addressed by ``(partition_key, id)``. This mirrors a partitioned document
database closely enough for the rest of the code to stay store-agnostic:

- point lookups by id (optionally scoped to a partition)
- filtered scans inside one partition, in insertion order
- unscoped id-only scans
- create / replace with existence checks
- atomic counters

Connections are opened per call. SQLITE_BUSY is retried with exponential
backoff; every other sqlite error surfaces as ``StoreError`` after being
logged with the operation and identifiers.

``AsyncDocumentStore`` runs each call on a worker thread so the aggregation
pipeline can await store I/O.
"""

from __future__ import annotations

import asyncio
import json
import random
import re
import sqlite3
import time
from collections.abc import Callable, Generator, Mapping
from contextlib import contextmanager
from functools import wraps
from pathlib import Path
from threading import Lock
from typing import Any, TypeVar

from dailyspark.config import (
    DB_CONNECT_TIMEOUT,
    DB_RETRY_BASE_DELAY,
    DB_RETRY_JITTER,
    DB_RETRY_MAX,
    DB_RETRY_MAX_DELAY,
)
from dailyspark.errors import AlreadyExistsError, NotFoundError, StoreError
from dailyspark.observability.logging import get_logger
from dailyspark.observability.telemetry import counter

F = TypeVar("F", bound=Callable[..., Any])

Document = dict[str, Any]
Predicate = Callable[[Document], bool]

logger = get_logger(__name__)

_CONTAINER_NAME = re.compile(r"^[A-Za-z_][A-Za-z0-9_]{0,62}$")
_FIELD_NAME = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


class DocumentExistsError(AlreadyExistsError):
    """create() was called with an id already present in the partition."""


class DocumentNotFoundError(NotFoundError):
    """replace() was called for a document that does not exist."""


def retry_on_db_lock(
    max_retries: int = DB_RETRY_MAX,
    base_delay: float = DB_RETRY_BASE_DELAY,
    max_delay: float = DB_RETRY_MAX_DELAY,
) -> Callable[[F], F]:
    """
    Decorator to retry store operations on SQLITE_BUSY errors

    Concurrent aggregations write the counters container and read the others
    from several threads; SQLite answers lock contention with "database is
    locked". Retries use exponential backoff with jitter.

    Side Effects:
        - Sleeps between retries
        - Logs a warning per retry and an error when retries are exhausted
    """

    def decorator(func: F) -> F:
        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            for attempt in range(max_retries + 1):
                try:
                    return func(*args, **kwargs)

                except sqlite3.OperationalError as e:
                    message = str(e).lower()
                    if "locked" not in message and "busy" not in message:
                        raise

                    if attempt >= max_retries:
                        logger.error(
                            "Database lock retry exhausted after %d attempts: %s",
                            max_retries,
                            e,
                        )
                        raise

                    delay = min(base_delay * (2**attempt), max_delay)
                    sleep_time = delay + random.uniform(0, delay * DB_RETRY_JITTER)
                    logger.warning(
                        "Database locked (attempt %d/%d), retrying in %.2fs: %s",
                        attempt + 1,
                        max_retries,
                        sleep_time,
                        e,
                    )
                    time.sleep(sleep_time)

            raise AssertionError("unreachable")

        return wrapper  # type: ignore[return-value]

    return decorator


def _validate_container(name: str) -> str:
    if not _CONTAINER_NAME.match(name):
        raise ValueError(f"Invalid container name: {name!r}")
    return name


class SQLiteDocumentStore:
    """Synchronous document store. Safe to share between threads."""

    def __init__(self, db_path: str | Path, containers: tuple[str, ...] = ()):
        self.db_path = Path(db_path)
        self._known: set[str] = set()
        self._schema_lock = Lock()
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        for name in containers:
            self.ensure_container(name)

    @contextmanager
    def _connection(self) -> Generator[sqlite3.Connection, None, None]:
        conn = sqlite3.connect(str(self.db_path), timeout=DB_CONNECT_TIMEOUT)
        conn.row_factory = sqlite3.Row
        try:
            conn.execute("PRAGMA journal_mode=WAL")
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def _run(self, operation: str, func: Callable[[], Any], **identifiers: Any) -> Any:
        """Execute ``func`` translating sqlite failures into StoreError."""
        try:
            return retry_on_db_lock()(func)()
        except sqlite3.Error as e:
            logger.error("Store %s failed %s: %s", operation, identifiers, e)
            counter("store.errors")
            raise StoreError(operation, str(e), **identifiers) from e

    def ensure_container(self, container: str) -> None:
        """Create the backing table for ``container`` if needed."""
        _validate_container(container)
        if container in self._known:
            return

        def create() -> None:
            with self._connection() as conn:
                conn.execute(
                    f"""
                    CREATE TABLE IF NOT EXISTS {container} (
                        seq INTEGER PRIMARY KEY AUTOINCREMENT,
                        id TEXT NOT NULL,
                        partition_key TEXT NOT NULL,
                        body TEXT NOT NULL,
                        UNIQUE (partition_key, id)
                    )
                    """
                )
                conn.execute(
                    f"CREATE INDEX IF NOT EXISTS idx_{container}_id ON {container} (id)"
                )

        with self._schema_lock:
            if container not in self._known:
                self._run("ensure_container", create, container=container)
                self._known.add(container)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_by_id(
        self, container: str, doc_id: str, partition_key: str | None = None
    ) -> Document | None:
        """Point lookup. Returns None when absent."""
        self.ensure_container(container)

        def read() -> Document | None:
            with self._connection() as conn:
                if partition_key is None:
                    row = conn.execute(
                        f"SELECT body FROM {container} WHERE id = ? ORDER BY seq LIMIT 1",
                        (doc_id,),
                    ).fetchone()
                else:
                    row = conn.execute(
                        f"SELECT body FROM {container} WHERE partition_key = ? AND id = ?",
                        (partition_key, doc_id),
                    ).fetchone()
            return json.loads(row["body"]) if row else None

        return self._run(
            "get_by_id", read, container=container, id=doc_id, partition_key=partition_key
        )

    def query(
        self,
        container: str,
        partition_key: str,
        filters: Mapping[str, Any] | None = None,
        predicate: Predicate | None = None,
    ) -> list[Document]:
        """
        Scan one partition in insertion order.

        ``filters`` is an equality match on top-level fields, evaluated by
        SQLite; ``predicate`` runs afterwards on each decoded document.
        """
        self.ensure_container(container)
        filters = dict(filters or {})
        for field in filters:
            if not _FIELD_NAME.match(field):
                raise ValueError(f"Invalid filter field: {field!r}")

        def read() -> list[Document]:
            clauses = ["partition_key = ?"]
            params: list[Any] = [partition_key]
            for field, value in filters.items():
                clauses.append(f"json_extract(body, '$.{field}') = ?")
                params.append(value)
            sql = f"SELECT body FROM {container} WHERE {' AND '.join(clauses)} ORDER BY seq"
            with self._connection() as conn:
                rows = conn.execute(sql, params).fetchall()
            docs = [json.loads(row["body"]) for row in rows]
            if predicate is not None:
                docs = [doc for doc in docs if predicate(doc)]
            return docs

        return self._run("query", read, container=container, partition_key=partition_key)

    def scan_ids(self, container: str) -> list[str]:
        """Every document id in the container, across all partitions."""
        self.ensure_container(container)

        def read() -> list[str]:
            with self._connection() as conn:
                rows = conn.execute(f"SELECT id FROM {container} ORDER BY seq").fetchall()
            return [row["id"] for row in rows]

        return self._run("scan_ids", read, container=container)

    def exists(self, container: str, doc_id: str) -> bool:
        self.ensure_container(container)

        def read() -> bool:
            with self._connection() as conn:
                row = conn.execute(
                    f"SELECT COUNT(1) AS n FROM {container} WHERE id = ?", (doc_id,)
                ).fetchone()
            return row["n"] > 0

        return self._run("exists", read, container=container, id=doc_id)

    def count(self, container: str) -> int:
        self.ensure_container(container)

        def read() -> int:
            with self._connection() as conn:
                return conn.execute(f"SELECT COUNT(1) AS n FROM {container}").fetchone()["n"]

        return self._run("count", read, container=container)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create(self, container: str, doc: Document, partition_key: str) -> Document:
        """
        Insert a new document.

        Raises:
            DocumentExistsError: the id already exists in the partition
        """
        self.ensure_container(container)
        doc_id = doc["id"]

        def write() -> bool:
            with self._connection() as conn:
                try:
                    conn.execute(
                        f"INSERT INTO {container} (id, partition_key, body) VALUES (?, ?, ?)",
                        (doc_id, partition_key, json.dumps(doc)),
                    )
                except sqlite3.IntegrityError:
                    return False
            return True

        if not self._run("create", write, container=container, id=doc_id):
            raise DocumentExistsError(f"Document '{doc_id}' already exists in {container}")
        return doc

    def replace(self, container: str, doc: Document, partition_key: str) -> Document:
        """
        Overwrite an existing document.

        Raises:
            DocumentNotFoundError: nothing to replace
        """
        self.ensure_container(container)
        doc_id = doc["id"]

        def write() -> int:
            with self._connection() as conn:
                cursor = conn.execute(
                    f"UPDATE {container} SET body = ? WHERE partition_key = ? AND id = ?",
                    (json.dumps(doc), partition_key, doc_id),
                )
                return cursor.rowcount

        updated = self._run(
            "replace", write, container=container, id=doc_id, partition_key=partition_key
        )
        if updated == 0:
            raise DocumentNotFoundError(f"Document '{doc_id}' not found in {container}")
        return doc

    def increment(self, container: str, doc_id: str, field: str = "count", by: int = 1) -> int:
        """Atomically add ``by`` to a numeric field, creating the document at 0."""
        self.ensure_container(container)
        if not _FIELD_NAME.match(field):
            raise ValueError(f"Invalid counter field: {field!r}")

        def write() -> int:
            with self._connection() as conn:
                conn.execute("BEGIN IMMEDIATE")
                row = conn.execute(
                    f"SELECT body FROM {container} WHERE partition_key = ? AND id = ?",
                    (doc_id, doc_id),
                ).fetchone()
                doc = json.loads(row["body"]) if row else {"id": doc_id, field: 0}
                doc[field] = int(doc.get(field, 0)) + by
                if row:
                    conn.execute(
                        f"UPDATE {container} SET body = ? WHERE partition_key = ? AND id = ?",
                        (json.dumps(doc), doc_id, doc_id),
                    )
                else:
                    conn.execute(
                        f"INSERT INTO {container} (id, partition_key, body) VALUES (?, ?, ?)",
                        (doc_id, doc_id, json.dumps(doc)),
                    )
                return doc[field]

        return self._run("increment", write, container=container, id=doc_id)


class AsyncDocumentStore:
    """Awaitable facade over SQLiteDocumentStore; each call runs in a thread."""

    def __init__(self, store: SQLiteDocumentStore):
        self.sync = store

    async def get_by_id(
        self, container: str, doc_id: str, partition_key: str | None = None
    ) -> Document | None:
        return await asyncio.to_thread(self.sync.get_by_id, container, doc_id, partition_key)

    async def query(
        self,
        container: str,
        partition_key: str,
        filters: Mapping[str, Any] | None = None,
        predicate: Predicate | None = None,
    ) -> list[Document]:
        return await asyncio.to_thread(
            self.sync.query, container, partition_key, filters, predicate
        )

    async def scan_ids(self, container: str) -> list[str]:
        return await asyncio.to_thread(self.sync.scan_ids, container)

    async def exists(self, container: str, doc_id: str) -> bool:
        return await asyncio.to_thread(self.sync.exists, container, doc_id)

    async def count(self, container: str) -> int:
        return await asyncio.to_thread(self.sync.count, container)

    async def create(self, container: str, doc: Document, partition_key: str) -> Document:
        return await asyncio.to_thread(self.sync.create, container, doc, partition_key)

    async def replace(self, container: str, doc: Document, partition_key: str) -> Document:
        return await asyncio.to_thread(self.sync.replace, container, doc, partition_key)

    async def increment(
        self, container: str, doc_id: str, field: str = "count", by: int = 1
    ) -> int:
        return await asyncio.to_thread(self.sync.increment, container, doc_id, field, by)


def open_document_store(db_path: str | Path, containers: tuple[str, ...] = ()) -> AsyncDocumentStore:
    """Open (creating if needed) the store at ``db_path``."""
    logger.info("Opening document store at %s", db_path)
    return AsyncDocumentStore(SQLiteDocumentStore(db_path, containers))
