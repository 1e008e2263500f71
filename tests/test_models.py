"""Tests for data models."""

from __future__ import annotations

import dataclasses

import pytest

from notefinder.models import Document, DocumentChunk, MatchContext, SearchMode, SearchResult


class TestDocument:
    """Test Document dataclass."""

    def test_defaults(self) -> None:
        """Should default to unloaded content."""
        document = Document(path="/notes/a.md", title="A")

        assert document.size == 0
        assert document.last_modified == 0.0
        assert document.text_content is None
        assert document.relative_path is None

    def test_slots(self) -> None:
        document = Document(path="/notes/a.md", title="A")
        with pytest.raises(AttributeError):
            document.extra = "nope"  # type: ignore[attr-defined]


class TestDocumentChunk:
    def test_frozen(self) -> None:
        """Chunks are immutable once built."""
        chunk = DocumentChunk(
            id="abc_0",
            content="text",
            start_line=1,
            end_line=2,
            chunk_index=0,
            parent_title="A",
            parent_path="/notes/a.md",
        )
        assert chunk.total_chunks == 0
        with pytest.raises(dataclasses.FrozenInstanceError):
            chunk.content = "other"  # type: ignore[misc]


class TestSearchResult:
    def test_matches_default_independent(self) -> None:
        """Each result gets its own match list."""
        document = Document(path="/notes/a.md", title="A")
        first = SearchResult(document=document, score=0.5)
        second = SearchResult(document=document, score=0.4)

        first.matches.append(MatchContext(line_number=1, snippet="x", match_start=0, match_end=1))

        assert second.matches == []


class TestSearchMode:
    @pytest.mark.parametrize("value", ["keyword", "semantic", "hybrid"])
    def test_values(self, value: str) -> None:
        assert SearchMode(value).value == value

    def test_is_string(self) -> None:
        assert SearchMode.HYBRID == "hybrid"
