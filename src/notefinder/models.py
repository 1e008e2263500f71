"""Core NoteFinder data models."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List


class SearchMode(str, Enum):
    """How a query is answered."""

    KEYWORD = "keyword"
    SEMANTIC = "semantic"
    HYBRID = "hybrid"


@dataclass(slots=True)
class Document:
    """A corpus document, keyed by ``path``.

    ``text_content`` is ``None`` until the document body has been loaded.
    """

    path: str
    title: str
    size: int = 0
    last_modified: float = 0.0
    text_content: str | None = None
    relative_path: str | None = None


@dataclass(slots=True, frozen=True)
class DocumentChunk:
    """A contiguous slice of a document sized for embedding.

    ``start_line`` and ``end_line`` are 1-based and inclusive.
    """

    id: str
    content: str
    start_line: int
    end_line: int
    chunk_index: int
    parent_title: str
    parent_path: str
    total_chunks: int = 0


@dataclass(slots=True)
class MatchContext:
    line_number: int
    snippet: str
    match_start: int
    match_end: int


@dataclass(slots=True)
class SearchResult:
    document: Document
    score: float
    matches: List[MatchContext] = field(default_factory=list)
