"""In-memory vector store."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Protocol, Sequence

import numpy as np

from notefinder.errors import DimensionMismatchError, MissingIdError, VectorNotFoundError
from notefinder.utils.vector_math import cosine_scores

MetadataFilter = Callable[[Dict[str, Any]], bool]


@dataclass(slots=True)
class VectorEntry:
    """A vector plus its metadata.

    ``metadata["id"]`` is mandatory and equals the chunk id. The usual keys are
    ``document_path``, ``title``, ``last_modified``, ``content_hash``,
    ``chunk_index``, ``start_line``, ``end_line``, ``raw_content`` and
    ``total_chunks``; any other key is kept as-is.
    """

    vector: List[float]
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def id(self) -> str | None:
        return self.metadata.get("id")

    def to_dict(self) -> Dict[str, Any]:
        return {"vector": [float(value) for value in self.vector], "metadata": dict(self.metadata)}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "VectorEntry":
        return cls(vector=[float(value) for value in data["vector"]], metadata=dict(data["metadata"]))


@dataclass(slots=True)
class VectorHit:
    entry: VectorEntry
    score: float


class VectorStore(Protocol):
    """Operations shared by every vector store."""

    def add(self, entry: VectorEntry) -> None: ...

    def add_batch(self, entries: Iterable[VectorEntry]) -> None: ...

    def update(self, vector_id: str, entry: VectorEntry) -> None: ...

    def remove(self, vector_id: str) -> None: ...

    def remove_batch(self, ids: Iterable[str]) -> None: ...

    def get(self, vector_id: str) -> VectorEntry | None: ...

    def has(self, vector_id: str) -> bool: ...

    def size(self) -> int: ...

    def clear(self) -> None: ...

    def all_entries(self) -> List[VectorEntry]: ...

    def all_ids(self) -> List[str]: ...

    def search(
        self,
        query_vector: Sequence[float],
        *,
        top_k: int,
        min_score: float | None = None,
        filter: MetadataFilter | None = None,
    ) -> List[VectorHit]: ...


class MemoryVectorStore:
    """Dict-backed vector store with brute-force cosine search.

    Entries keep insertion order; updating an entry keeps its position. Equal
    scores are returned in that order.
    """

    def __init__(self) -> None:
        self._entries: Dict[str, VectorEntry] = {}

    def add(self, entry: VectorEntry) -> None:
        if not entry.id:
            raise MissingIdError("Vector entry must have an id")
        self._entries[entry.id] = entry

    def add_batch(self, entries: Iterable[VectorEntry]) -> None:
        for entry in entries:
            self.add(entry)

    def update(self, vector_id: str, entry: VectorEntry) -> None:
        if vector_id not in self._entries:
            raise VectorNotFoundError(vector_id)
        self._entries[vector_id] = entry

    def remove(self, vector_id: str) -> None:
        if self._entries.pop(vector_id, None) is None:
            raise VectorNotFoundError(vector_id)

    def remove_batch(self, ids: Iterable[str]) -> None:
        # Not transactional: ids removed before a missing one stay removed.
        for vector_id in ids:
            self.remove(vector_id)

    def get(self, vector_id: str) -> VectorEntry | None:
        return self._entries.get(vector_id)

    def has(self, vector_id: str) -> bool:
        return vector_id in self._entries

    def size(self) -> int:
        return len(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def clear(self) -> None:
        self._entries.clear()

    def all_entries(self) -> List[VectorEntry]:
        return list(self._entries.values())

    def all_ids(self) -> List[str]:
        return list(self._entries.keys())

    def search(
        self,
        query_vector: Sequence[float],
        *,
        top_k: int,
        min_score: float | None = None,
        filter: MetadataFilter | None = None,
    ) -> List[VectorHit]:
        """Score every entry by cosine similarity and return the best ``top_k``."""
        entries = self.all_entries()
        if not entries or top_k <= 0:
            return []

        dimension = len(query_vector)
        for entry in entries:
            if len(entry.vector) != dimension:
                raise DimensionMismatchError(dimension, len(entry.vector))

        matrix = np.vstack([np.asarray(entry.vector, dtype="float64") for entry in entries])
        scores = cosine_scores(query_vector, matrix)

        hits: List[VectorHit] = []
        for entry, score in zip(entries, scores):
            if filter is not None and not filter(entry.metadata):
                continue
            if min_score is not None and score < min_score:
                continue
            hits.append(VectorHit(entry=entry, score=float(score)))

        hits.sort(key=lambda hit: hit.score, reverse=True)
        return hits[:top_k]
