"""
SQLite bootstrap and connection helpers
=======================================

- One database file holds every collection; one table per collection.
- WAL + pragmatic PRAGMAs so a long scan does not block writers.
- Vectors are stored as little-endian float64 blobs.
"""

from __future__ import annotations
from contextlib import contextmanager
import pathlib
import sqlite3
from typing import Iterator, List, Sequence

import numpy as np

MEMORY_PATH = ":memory:"

_VECTOR_DTYPE = np.dtype("<f8")


def store_name(collection_name: str, dimension: int) -> str:
    """Name of the table backing ``(collection_name, dimension)``."""
    return f"{collection_name}_dim{dimension}"


def quote_ident(name: str) -> str:
    return '"' + name.replace('"', '""') + '"'


def connect(path: str, busy_timeout_ms: int = 3000) -> sqlite3.Connection:
    # Autocommit; transactions are opened explicitly with `atomic()`.
    if path != MEMORY_PATH:
        pathlib.Path(path).parent.mkdir(parents=True, exist_ok=True)

    conn = sqlite3.connect(
        path,
        isolation_level=None,
        check_same_thread=False,
    )

    # Pragmas: set WAL first, then tuning.
    conn.execute("PRAGMA journal_mode=WAL;")
    conn.execute("PRAGMA synchronous=NORMAL;")
    conn.execute("PRAGMA temp_store=MEMORY;")
    # Reduce SQLITE_BUSY errors under contention
    conn.execute(f"PRAGMA busy_timeout={int(busy_timeout_ms)};")

    return conn


@contextmanager
def atomic(conn: sqlite3.Connection) -> Iterator[sqlite3.Connection]:
    """Run the block as one transaction; roll back on any failure."""
    conn.execute("BEGIN IMMEDIATE")
    try:
        yield conn
    except BaseException:
        conn.execute("ROLLBACK")
        raise
    try:
        conn.execute("COMMIT")
    except sqlite3.Error:
        # A failed COMMIT (e.g. SQLITE_BUSY) leaves the transaction open.
        if conn.in_transaction:
            conn.execute("ROLLBACK")
        raise


def ensure_collection(conn: sqlite3.Connection, name: str) -> None:
    """Create the collection table if absent (idempotent).

    ``id`` has TEXT affinity: an int key is stored as its string form.
    """
    conn.execute(
        f"CREATE TABLE IF NOT EXISTS {quote_ident(name)} ("
        " id TEXT PRIMARY KEY,"
        " vector BLOB NOT NULL"
        ")"
    )


def encode_vector(vector: Sequence[float]) -> bytes:
    return np.asarray(vector, dtype=_VECTOR_DTYPE).tobytes()


def decode_vector(blob: bytes) -> List[float]:
    return np.frombuffer(blob, dtype=_VECTOR_DTYPE).tolist()


def wal_checkpoint_truncate(conn: sqlite3.Connection) -> None:
    """Run a WAL checkpoint + truncate to keep WAL from growing unbounded."""
    conn.execute("PRAGMA wal_checkpoint(TRUNCATE);")
