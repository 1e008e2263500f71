"""Embedding provider contract and the helpers every provider shares."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator, List, Protocol, Sequence, TypeVar, runtime_checkable

from notefinder.utils.text import truncate_text
from notefinder.utils.vector_math import normalize

T = TypeVar("T")


@dataclass(slots=True)
class EmbeddingResult:
    vector: List[float]
    token_count: int


@dataclass(slots=True)
class BatchEmbeddingResult:
    vectors: List[List[float]] = field(default_factory=list)
    total_tokens: int = 0


@runtime_checkable
class EmbeddingProvider(Protocol):
    """Converts text into fixed-dimension unit vectors."""

    @property
    def dimension(self) -> int: ...

    @property
    def max_text_length(self) -> int: ...

    async def embed(self, text: str) -> EmbeddingResult:
        """Embed a single text."""

    async def embed_batch(self, texts: Sequence[str]) -> BatchEmbeddingResult:
        """Embed ``texts`` in provider-sized groups, preserving order."""

    async def is_ready(self) -> bool:
        """Probe the provider; never raises."""

    async def dispose(self) -> None:
        """Release provider resources. Safe to call more than once."""


def unit_vector(values: Sequence[float]) -> List[float]:
    """Normalize ``values`` into a plain list; a zero vector stays zero."""
    return normalize(values).tolist()


def prepare_texts(texts: Sequence[str], max_length: int) -> List[str]:
    return [truncate_text(text, max_length) for text in texts]


def iter_batches(items: Sequence[T], batch_size: int) -> Iterator[Sequence[T]]:
    size = max(batch_size, 1)
    for start in range(0, len(items), size):
        yield items[start : start + size]
