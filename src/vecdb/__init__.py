"""
vecdb - local vector store with exact cosine top-k search.

Vectors live in a single SQLite file, one table per ``(name, dimension)``
collection. Every operation is a coroutine::

    from vecdb import VectorDatabase

    db = VectorDatabase("docs", 4)
    await db.add_vectors([{"id": "v1", "vector": [1, 0, 0, 0]}])
    await db.search([1, 0, 0, 0], k=1)
"""

__version__ = "0.1.0"

from .database import VectorDatabase
from .errors import CursorError, OpenError, TransactionError, VectorDBError
from .normalize import normalize_vector
from .similarity import cosine_similarity
from .types import SearchResult, VectorRecord

__all__ = [
    "VectorDatabase",
    "VectorRecord",
    "SearchResult",
    "normalize_vector",
    "cosine_similarity",
    "VectorDBError",
    "OpenError",
    "TransactionError",
    "CursorError",
]
