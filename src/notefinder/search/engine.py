"""Search engine interface and shared result helpers."""

from __future__ import annotations

from typing import Iterable, List, Protocol, Sequence, runtime_checkable

from notefinder.models import Document, SearchResult

DEFAULT_LIMIT = 10
MAX_MATCHES_PER_DOCUMENT = 5


@runtime_checkable
class SearchEngine(Protocol):
    """Ingestion and query operations shared by every engine.

    Engines are not internally synchronised: callers must not run mutations
    (``index``, ``update``, ``remove``) concurrently on the same instance.
    """

    async def index(self, documents: Sequence[Document]) -> None:
        """Ingest ``documents``."""

    async def search(self, query: str, *, limit: int = DEFAULT_LIMIT) -> List[SearchResult]:
        """Return up to ``limit`` results, best first."""

    async def update(self, document: Document) -> None:
        """Insert or replace a single document."""

    async def remove(self, path: str) -> None:
        """Forget the document stored under ``path``."""

    async def dispose(self) -> None:
        """Release resources held by the engine."""


def rank_results(results: Iterable[SearchResult], limit: int) -> List[SearchResult]:
    """Sort by score, best first (ties keep input order), and apply ``limit``."""
    ordered = sorted(results, key=lambda result: result.score, reverse=True)
    return ordered[: max(limit, 0)]
