"""Weighted fusion of keyword and semantic results."""

from __future__ import annotations

import asyncio
import logging
from typing import Dict, List, Sequence

from notefinder.config import AppConfig
from notefinder.models import Document, MatchContext, SearchResult
from notefinder.search.engine import DEFAULT_LIMIT, MAX_MATCHES_PER_DOCUMENT, rank_results
from notefinder.search.keyword import KeywordSearchEngine
from notefinder.search.semantic import SemanticSearchEngine

LOGGER = logging.getLogger(__name__)


def merge_matches(semantic: Sequence[MatchContext], keyword: Sequence[MatchContext]) -> List[MatchContext]:
    """Semantic matches first, then keyword matches with a new snippet; at most five."""
    merged = list(semantic)
    seen = {match.snippet for match in merged}
    for match in keyword:
        if match.snippet not in seen:
            merged.append(match)
            seen.add(match.snippet)
    return merged[:MAX_MATCHES_PER_DOCUMENT]


class HybridSearchEngine:
    def __init__(
        self,
        config: AppConfig,
        *,
        keyword_engine: KeywordSearchEngine | None = None,
        semantic_engine: SemanticSearchEngine | None = None,
    ) -> None:
        self.keyword_weight, self.semantic_weight = config.hybrid.normalized()
        self.keyword_engine = keyword_engine or KeywordSearchEngine()
        self.semantic_engine = semantic_engine or SemanticSearchEngine(config)
        self._documents: Dict[str, Document] = {}

    @property
    def documents(self) -> List[Document]:
        return list(self._documents.values())

    async def index(self, documents: Sequence[Document]) -> None:
        await asyncio.gather(
            self.keyword_engine.index(documents),
            self.semantic_engine.index(documents),
        )
        self._documents = {document.path: document for document in documents}

    async def search(self, query: str, *, limit: int = DEFAULT_LIMIT) -> List[SearchResult]:
        """Combine both engines' scores per document with the configured weights.

        A document missing from one engine's results scores 0 for that engine.
        """
        if not query:
            return []

        keyword_results, semantic_results = await asyncio.gather(
            self.keyword_engine.search(query, limit=limit),
            self.semantic_engine.search(query, limit=limit),
        )

        keyword_by_path = {result.document.path: result for result in keyword_results}
        semantic_by_path = {result.document.path: result for result in semantic_results}

        merged: List[SearchResult] = []
        for path in dict.fromkeys([*semantic_by_path, *keyword_by_path]):
            keyword_hit = keyword_by_path.get(path)
            semantic_hit = semantic_by_path.get(path)
            keyword_score = keyword_hit.score if keyword_hit else 0.0
            semantic_score = semantic_hit.score if semantic_hit else 0.0
            document = (keyword_hit or semantic_hit).document
            merged.append(
                SearchResult(
                    document=document,
                    score=keyword_score * self.keyword_weight + semantic_score * self.semantic_weight,
                    matches=merge_matches(
                        semantic_hit.matches if semantic_hit else [],
                        keyword_hit.matches if keyword_hit else [],
                    ),
                )
            )

        LOGGER.debug(
            "Hybrid merge: %d keyword, %d semantic, %d combined",
            len(keyword_results),
            len(semantic_results),
            len(merged),
        )
        return rank_results(merged, limit)

    async def update(self, document: Document) -> None:
        await asyncio.gather(
            self.keyword_engine.update(document),
            self.semantic_engine.update(document),
        )
        self._documents[document.path] = document

    async def remove(self, path: str) -> None:
        await asyncio.gather(
            self.keyword_engine.remove(path),
            self.semantic_engine.remove(path),
        )
        self._documents.pop(path, None)

    async def dispose(self) -> None:
        await self.semantic_engine.dispose()
