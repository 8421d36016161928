"""Record types shared by the store and the search engine."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List, Mapping


@dataclass
class VectorRecord:
    id: str
    vector: List[float]

    @classmethod
    def coerce(cls, value: "VectorRecord | Mapping[str, Any]") -> "VectorRecord":
        """Accept either a record or a ``{"id": ..., "vector": ...}`` mapping."""
        if isinstance(value, cls):
            return value
        return cls(id=value["id"], vector=value["vector"])


@dataclass
class SearchResult:
    id: str
    vector: List[float]
    similarity: float

    def to_dict(self) -> dict:
        return {"id": self.id, "vector": list(self.vector), "similarity": self.similarity}


__all__ = ["VectorRecord", "SearchResult"]
