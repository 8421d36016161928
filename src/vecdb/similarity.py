"""Cosine similarity and the bounded top-k scan."""

from __future__ import annotations

import logging
from typing import AsyncIterator, List, Optional, Protocol, Sequence

import numpy as np

from .types import SearchResult, VectorRecord

logger = logging.getLogger(__name__)


class CancelSignal(Protocol):
    def is_set(self) -> bool: ...


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Return ``dot(a, b) / (|a| * |b|)``; NaN when either magnitude is zero."""

    va = np.asarray(a, dtype=np.float64)
    vb = np.asarray(b, dtype=np.float64)
    with np.errstate(divide="ignore", invalid="ignore"):
        return float(np.dot(va, vb) / (np.linalg.norm(va) * np.linalg.norm(vb)))


class TopK:
    """
    Fixed-capacity buffer of the best candidates seen so far.

    The first ``k`` candidates are taken as they come. After that a candidate
    only gets in when its similarity is strictly greater than the buffer
    minimum, and it overwrites the first entry holding that minimum. The
    minimum is rescanned after every replacement. A NaN minimum (any NaN in
    a full buffer) blocks all further replacements.

    ``results`` keeps insertion/replacement order; it is never sorted.
    """

    def __init__(self, k: int):
        self.k = k
        self.results: List[SearchResult] = []
        self.min_similarity = 0.0

    def offer(self, record: VectorRecord, similarity: float) -> bool:
        """Consider one candidate; return True if it entered the buffer."""

        if self.k <= 0:
            return False

        entry = SearchResult(id=record.id, vector=record.vector, similarity=similarity)
        if len(self.results) < self.k:
            self.results.append(entry)
            if len(self.results) == self.k:
                self.min_similarity = self._minimum()
            return True

        # NaN on either side compares False.
        if similarity > self.min_similarity:
            idx = next(
                i for i, r in enumerate(self.results) if r.similarity == self.min_similarity
            )
            self.results[idx] = entry
            self.min_similarity = self._minimum()
            return True
        return False

    def _minimum(self) -> float:
        return float(np.min([r.similarity for r in self.results]))


async def top_k(
    cursor: AsyncIterator[VectorRecord],
    query: Sequence[float],
    k: int,
    *,
    cancel: Optional[CancelSignal] = None,
) -> List[SearchResult]:
    """
    Drain ``cursor`` and keep the ``k`` records most similar to ``query``.

    :param cursor: Async iterator over every record in the collection.
    :param query: Query vector, already normalized to the collection dimension.
    :param k: Result capacity.
    :param cancel: Checked before every cursor step; once set, the scan stops
        and the partial buffer is returned.
    :returns: At most ``k`` results in buffer order (not ranked).
    """

    best = TopK(k)
    scanned = 0
    while True:
        if cancel is not None and cancel.is_set():
            logger.debug("Scan cancelled after %d records", scanned)
            break
        record = await anext(cursor, None)
        if record is None:
            break
        scanned += 1
        best.offer(record, cosine_similarity(query, record.vector))

    logger.debug("Scanned %d records, kept %d", scanned, len(best.results))
    return best.results


__all__ = ["CancelSignal", "TopK", "cosine_similarity", "top_k"]
