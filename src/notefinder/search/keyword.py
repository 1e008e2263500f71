"""Lexical search over raw document text."""

from __future__ import annotations

import logging
from typing import Dict, List, Sequence

from notefinder.models import Document, MatchContext, SearchResult
from notefinder.search.engine import DEFAULT_LIMIT, MAX_MATCHES_PER_DOCUMENT, rank_results

LOGGER = logging.getLogger(__name__)

CONTEXT_CHARS = 50
FREQUENCY_WEIGHT = 0.7
DENSITY_WEIGHT = 0.3


def find_matches(content: str, query: str, *, max_matches: int = MAX_MATCHES_PER_DOCUMENT) -> List[MatchContext]:
    """Case-insensitive occurrences of ``query``, line by line.

    Each match carries up to 50 characters of context on either side, clipped
    to the line; offsets are relative to the snippet.
    """
    if not query:
        return []

    lowered_query = query.lower()
    matches: List[MatchContext] = []
    for line_number, line in enumerate(content.split("\n"), start=1):
        lowered_line = line.lower()
        position = lowered_line.find(lowered_query)
        while position != -1:
            start = max(0, position - CONTEXT_CHARS)
            end = min(len(line), position + len(query) + CONTEXT_CHARS)
            matches.append(
                MatchContext(
                    line_number=line_number,
                    snippet=line[start:end],
                    match_start=position - start,
                    match_end=position - start + len(query),
                )
            )
            if len(matches) >= max_matches:
                return matches
            position = lowered_line.find(lowered_query, position + len(query))
    return matches


def count_occurrences(content: str, query: str) -> int:
    """Non-overlapping, case-insensitive occurrences of ``query`` per line."""
    if not query:
        return 0
    lowered_query = query.lower()
    return sum(line.lower().count(lowered_query) for line in content.split("\n"))


def keyword_score(match_count: int, query_length: int, content_length: int) -> float:
    """Blend a capped frequency term with a match density term (70/30)."""
    if content_length <= 0:
        return 0.0
    frequency = min(match_count / 10, 1.0)
    density = (match_count * query_length) / content_length
    return frequency * FREQUENCY_WEIGHT + density * DENSITY_WEIGHT


class KeywordSearchEngine:
    """Substring search over the full text of every indexed document."""

    def __init__(self) -> None:
        self._documents: Dict[str, Document] = {}

    @property
    def documents(self) -> List[Document]:
        return list(self._documents.values())

    async def index(self, documents: Sequence[Document]) -> None:
        """Replace the whole document set."""
        self._documents = {document.path: document for document in documents}
        LOGGER.debug("Keyword index rebuilt with %d documents", len(self._documents))

    async def search(self, query: str, *, limit: int = DEFAULT_LIMIT) -> List[SearchResult]:
        if not query:
            return []

        lowered_query = query.lower()
        results: List[SearchResult] = []
        for document in self._documents.values():
            content = document.text_content
            if not content:
                continue
            if lowered_query not in document.title.lower() and lowered_query not in content.lower():
                continue

            occurrences = count_occurrences(content, query)
            results.append(
                SearchResult(
                    document=document,
                    score=keyword_score(occurrences, len(query), len(content)),
                    matches=find_matches(content, query),
                )
            )
        return rank_results(results, limit)

    async def update(self, document: Document) -> None:
        self._documents[document.path] = document

    async def remove(self, path: str) -> None:
        self._documents.pop(path, None)

    async def dispose(self) -> None:
        return None
