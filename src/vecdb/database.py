"""
Public vector database
======================

Async CRUD and exact top-k cosine search over one ``(name, dimension)``
collection::

    db = VectorDatabase("notes", 384)
    await db.add_vectors([{"id": "a", "vector": emb}])
    hits = await db.search(query_emb, k=5)

Every call opens its own transaction on a shared, lazily opened handle.
Wrap a call in :func:`asyncio.create_task` to get a cancellable handle.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, List, Mapping, Optional, Sequence, Tuple

from .connection import ConnectionManager
from .normalize import normalize_vector
from .similarity import CancelSignal, top_k
from .storage import ObjectStore, Transaction, store_name
from .storage.store import Mode
from .types import SearchResult, VectorRecord

logger = logging.getLogger(__name__)

RecordLike = VectorRecord | Mapping[str, Any]


class VectorDatabase:
    """Fixed-dimension vector collection backed by a local SQLite file."""

    def __init__(self, collection_name: str, dimension: int, *, path: Optional[str] = None):
        if dimension < 1:
            raise ValueError(f"dimension must be a positive integer, got {dimension}")
        self.collection_name = collection_name
        self.dimension = int(dimension)
        self.store_name = store_name(collection_name, self.dimension)
        self._connection = ConnectionManager(collection_name, self.dimension, path=path)

    @property
    def path(self) -> str:
        return self._connection.path

    def normalize(self, vector: Sequence[float]) -> List[float]:
        """Pad or truncate ``vector`` to this collection's dimension."""
        return normalize_vector(vector, self.dimension)

    async def _object_store(self, mode: Mode) -> Tuple[Transaction, ObjectStore]:
        db = await self._connection.get()
        tx = db.transaction([self.store_name], mode)
        return tx, tx.object_store(self.store_name)

    async def add_vectors(self, records: Iterable[RecordLike]) -> None:
        """
        Upsert ``records`` in one transaction.

        Each vector is normalized first; an existing id is overwritten.

        :raises TransactionError: When the engine rejects the batch. Nothing
            from this call is written in that case.
        """
        tx, store = await self._object_store("readwrite")
        n = 0
        for item in records:
            record = VectorRecord.coerce(item)
            store.put(VectorRecord(id=record.id, vector=self.normalize(record.vector)))
            n += 1
        await tx.commit()
        logger.debug("Upserted %d vectors into %s", n, self.store_name)

    async def update_vectors(self, records: Iterable[RecordLike]) -> None:
        """Same as :meth:`add_vectors`; unknown ids are created."""
        await self.add_vectors(records)

    async def remove_vectors(self, ids: Iterable[str]) -> None:
        """Delete ``ids`` in one transaction; missing ids are ignored."""
        tx, store = await self._object_store("readwrite")
        n = 0
        for key in ids:
            store.delete(key)
            n += 1
        await tx.commit()
        logger.debug("Removed %d ids from %s", n, self.store_name)

    async def clear(self) -> None:
        """Delete every record in the collection."""
        tx, store = await self._object_store("readwrite")
        store.clear()
        await tx.commit()
        logger.info("Cleared collection %s", self.store_name)

    async def search(
        self,
        query: Sequence[float],
        k: int,
        *,
        cancel: Optional[CancelSignal] = None,
    ) -> List[SearchResult]:
        """
        Exact top-``k`` search by cosine similarity over the whole collection.

        :param query: Query vector; normalized to the collection dimension.
        :param k: Maximum number of results.
        :param cancel: Optional event checked before each cursor step. When
            set, the scan stops and the results gathered so far are returned.
        :returns: ``min(k, count)`` results in scan order, not ranked.
        :raises CursorError: When reading the collection fails; no partial
            results are returned.
        """
        normalized = self.normalize(query)
        _tx, store = await self._object_store("readonly")
        return await top_k(store.open_cursor(), normalized, k, cancel=cancel)

    async def count(self) -> int:
        """Return the number of stored records."""
        _tx, store = await self._object_store("readonly")
        return await store.count()

    async def close(self) -> None:
        """Close the shared handle; the next call reopens it."""
        await self._connection.reset()


__all__ = ["VectorDatabase", "RecordLike"]
