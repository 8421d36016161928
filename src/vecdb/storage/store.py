"""Async key-value store capability over SQLite.

Mirrors the shape of a browser object store: a ``Database`` hands out
``Transaction`` objects scoped to named stores, and each store supports
``put``/``delete``/``clear`` plus a forward ``Cursor``. Blocking sqlite calls
run in worker threads via :func:`asyncio.to_thread`.
"""

from __future__ import annotations

import asyncio
import logging
import sqlite3
import threading
from collections import deque
from typing import Callable, Deque, Iterable, List, Literal, Optional, Tuple

from vecdb.errors import CursorError, OpenError, TransactionError
from vecdb.types import VectorRecord

from . import db as _db

logger = logging.getLogger(__name__)

Mode = Literal["readonly", "readwrite"]
Upgrade = Callable[[sqlite3.Connection], None]


class Database:
    """An open database handle shared by every transaction on it."""

    def __init__(self, conn: sqlite3.Connection, path: str, *, batch_size: int = 256):
        self.conn = conn
        self.path = path
        self.batch_size = max(1, int(batch_size))
        # sqlite3 connections are not safe for interleaved use across threads.
        self._lock = threading.Lock()
        self.closed = False

    def transaction(self, store_names: Iterable[str], mode: Mode = "readonly") -> "Transaction":
        if mode not in ("readonly", "readwrite"):
            raise ValueError(f"Unknown transaction mode: {mode!r}")
        return Transaction(self, list(store_names), mode)

    def run(self, fn: Callable[[sqlite3.Connection], object]):
        with self._lock:
            return fn(self.conn)

    async def close(self) -> None:
        if self.closed:
            return

        def _run() -> None:
            try:
                if self.path != _db.MEMORY_PATH:
                    _db.wal_checkpoint_truncate(self.conn)
            finally:
                self.conn.close()

        await asyncio.to_thread(self.run, lambda _conn: _run())
        self.closed = True
        logger.info("Closed vector database %s", self.path)


class Transaction:
    """
    A unit of work against one or more stores.

    Writes are queued by :class:`ObjectStore` and applied together by
    :meth:`commit` inside ``BEGIN IMMEDIATE ... COMMIT``; either every queued
    write lands or none does.
    """

    def __init__(self, database: Database, store_names: List[str], mode: Mode):
        self.database = database
        self.store_names = store_names
        self.mode = mode
        self._ops: List[Tuple[str, str, tuple]] = []
        self._finished = False

    def object_store(self, name: str) -> "ObjectStore":
        if name not in self.store_names:
            raise ValueError(f"Store {name!r} is not part of this transaction")
        return ObjectStore(self, name)

    def _queue(self, op: str, store: str, params: tuple) -> None:
        if self.mode != "readwrite":
            raise TransactionError(f"Cannot {op} in a readonly transaction")
        if self._finished:
            raise TransactionError("Transaction has already finished")
        self._ops.append((op, store, params))

    async def commit(self) -> None:
        """Apply all queued writes atomically."""
        if self._finished:
            raise TransactionError("Transaction has already finished")
        self._finished = True
        ops = list(self._ops)
        if not ops:
            return

        def _apply(conn: sqlite3.Connection) -> None:
            with _db.atomic(conn):
                for op, store, params in ops:
                    table = _db.quote_ident(store)
                    if op == "put":
                        conn.execute(
                            f"INSERT INTO {table} (id, vector) VALUES (?, ?)"
                            " ON CONFLICT(id) DO UPDATE SET vector=excluded.vector",
                            params,
                        )
                    elif op == "delete":
                        conn.execute(f"DELETE FROM {table} WHERE id=?", params)
                    else:
                        conn.execute(f"DELETE FROM {table}")

        try:
            await asyncio.to_thread(self.database.run, _apply)
        except sqlite3.Error as exc:
            logger.warning("Transaction on %s aborted (err=%s)", self.store_names, exc)
            raise TransactionError(str(exc)) from exc


class ObjectStore:
    """One collection table viewed through a transaction."""

    def __init__(self, transaction: Transaction, name: str):
        self.transaction = transaction
        self.name = name

    def put(self, record: VectorRecord) -> None:
        try:
            blob = _db.encode_vector(record.vector)
        except (ValueError, TypeError) as exc:
            logger.warning("Rejected vector for %r in %s (err=%s)", record.id, self.name, exc)
            raise TransactionError(f"Invalid vector for {record.id!r}: {exc}") from exc
        self.transaction._queue("put", self.name, (record.id, blob))

    def delete(self, key: str) -> None:
        self.transaction._queue("delete", self.name, (key,))

    def clear(self) -> None:
        self.transaction._queue("clear", self.name, ())

    def open_cursor(self) -> "Cursor":
        return Cursor(self.transaction.database, self.name)

    async def count(self) -> int:
        sql = f"SELECT COUNT(*) FROM {_db.quote_ident(self.name)}"

        def _run(conn: sqlite3.Connection) -> int:
            return int(conn.execute(sql).fetchone()[0])

        try:
            return await asyncio.to_thread(self.transaction.database.run, _run)
        except sqlite3.Error as exc:
            logger.warning("Count on %s failed (err=%s)", self.name, exc)
            raise CursorError(str(exc)) from exc


class Cursor:
    """
    Forward iterator over every record of a store, in ascending key order.

    Rows are pulled in keyset-paginated batches so no statement stays open
    between steps; each batch is one worker-thread call.
    """

    def __init__(self, database: Database, name: str):
        self.database = database
        self.name = name
        table = _db.quote_ident(name)
        self._first_sql = f"SELECT id, vector FROM {table} ORDER BY id LIMIT ?"
        self._next_sql = f"SELECT id, vector FROM {table} WHERE id > ? ORDER BY id LIMIT ?"
        self._buffer: Deque[Tuple[str, bytes]] = deque()
        self._last_key: Optional[str] = None
        self._exhausted = False

    def __aiter__(self) -> "Cursor":
        return self

    async def __anext__(self) -> VectorRecord:
        if not self._buffer:
            if self._exhausted:
                raise StopAsyncIteration
            rows = await self._fetch()
            if len(rows) < self.database.batch_size:
                self._exhausted = True
            if not rows:
                raise StopAsyncIteration
            self._buffer.extend(rows)
            self._last_key = rows[-1][0]

        key, blob = self._buffer.popleft()
        return VectorRecord(id=key, vector=_db.decode_vector(blob))

    async def _fetch(self) -> List[Tuple[str, bytes]]:
        if self._last_key is None:
            sql, params = self._first_sql, (self.database.batch_size,)
        else:
            sql, params = self._next_sql, (self._last_key, self.database.batch_size)

        def _run(conn: sqlite3.Connection) -> List[Tuple[str, bytes]]:
            return [(row[0], row[1]) for row in conn.execute(sql, params).fetchall()]

        try:
            return await asyncio.to_thread(self.database.run, _run)
        except sqlite3.Error as exc:
            logger.warning("Cursor over %s failed (err=%s)", self.name, exc)
            raise CursorError(str(exc)) from exc


async def open_database(
    path: str,
    upgrade: Optional[Upgrade] = None,
    *,
    busy_timeout_ms: int = 3000,
    batch_size: int = 256,
) -> Database:
    """
    Open (or create) the database at ``path``.

    :param upgrade: Schema hook run once, inside a transaction, right after
        the file is opened. Used to create missing collection tables.
    :raises OpenError: When the file cannot be opened or the hook fails.
    """

    def _run() -> sqlite3.Connection:
        conn = _db.connect(path, busy_timeout_ms)
        try:
            if upgrade is not None:
                with _db.atomic(conn):
                    upgrade(conn)
        except BaseException:
            conn.close()
            raise
        return conn

    try:
        conn = await asyncio.to_thread(_run)
    except (sqlite3.Error, OSError) as exc:
        logger.warning("Failed to open vector database %s (err=%s)", path, exc)
        raise OpenError(f"Cannot open {path}: {exc}") from exc

    logger.info("Opened vector database %s", path)
    return Database(conn, path, batch_size=batch_size)


__all__ = ["Database", "Transaction", "ObjectStore", "Cursor", "open_database"]
