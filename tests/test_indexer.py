"""Tests for the indexing pipeline."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from notefinder.index.indexer import Indexer, IndexStats
from notefinder.search.keyword import KeywordSearchEngine


class TestIndexStats:
    """Test IndexStats dataclass."""

    def test_default_stats(self) -> None:
        stats = IndexStats()
        assert (stats.loaded, stats.skipped, stats.failed) == (0, 0, 0)
        assert stats.processed_files == []

    def test_increment(self) -> None:
        """Should count each status and record the path."""
        stats = IndexStats()
        stats.increment("loaded", Path("/a.md"))
        stats.increment("skipped", Path("/b.md"))
        stats.increment("error", Path("/c.md"))

        assert (stats.loaded, stats.skipped, stats.failed) == (1, 1, 1)
        assert stats.processed_files == [Path("/a.md"), Path("/b.md"), Path("/c.md")]


class TestIndexer:
    """Test Indexer class."""

    @pytest.mark.asyncio
    async def test_index_folder(self, notes_dir: Path) -> None:
        """Should load every non-ignored note and index them in one call."""
        engine = KeywordSearchEngine()
        indexer = Indexer(engine)

        stats = await indexer.index([notes_dir])

        assert stats.loaded == 2
        assert {document.title for document in engine.documents} == {"Python Tips", "Garden Plan"}
        relative = {document.relative_path for document in indexer.documents}
        assert relative == {"python.md", "projects/garden.md"}

        results = await engine.search("basil")
        assert [result.document.title for result in results] == ["Garden Plan"]

    @pytest.mark.asyncio
    async def test_engine_called_once(self, notes_dir: Path) -> None:
        engine = MagicMock()
        engine.index = AsyncMock()

        await Indexer(engine).index([notes_dir, notes_dir / "python.md"])

        engine.index.assert_awaited_once()
        (documents,) = engine.index.call_args.args
        assert len(documents) == 2

    @pytest.mark.asyncio
    async def test_oversized_files_skipped(self, tmp_path: Path) -> None:
        (tmp_path / "big.md").write_text("x" * 4096)
        (tmp_path / "small.md").write_text("small")
        engine = KeywordSearchEngine()

        stats = await Indexer(engine, max_file_size_mb=0.001).index([tmp_path])

        assert (stats.loaded, stats.skipped) == (1, 1)

    @pytest.mark.asyncio
    async def test_unreadable_file_counted_as_failed(self, tmp_path: Path) -> None:
        """Load errors are logged and counted, the rest still index."""
        (tmp_path / "ok.md").write_text("fine")
        (tmp_path / "bad.md").write_bytes(b"\xff\xfe\xfa")
        engine = KeywordSearchEngine()

        stats = await Indexer(engine).index([tmp_path])

        assert (stats.loaded, stats.failed) == (1, 1)
        assert len(engine.documents) == 1

    @pytest.mark.asyncio
    async def test_no_files(self, tmp_path: Path) -> None:
        engine = KeywordSearchEngine()
        stats = await Indexer(engine).index([tmp_path])
        assert stats.loaded == 0
        assert engine.documents == []


class TestRefresh:
    """Test single-file refresh."""

    @pytest.mark.asyncio
    async def test_refresh_changed_file(self, notes_dir: Path) -> None:
        engine = KeywordSearchEngine()
        indexer = Indexer(engine)
        await indexer.index([notes_dir])

        note = notes_dir / "python.md"
        note.write_text("# Python Tips\n\nNow about asyncio.\n")

        assert await indexer.refresh(note) == "updated"
        assert [result.document.path for result in await engine.search("asyncio")] == [str(note.resolve())]

    @pytest.mark.asyncio
    async def test_refresh_deleted_file(self, notes_dir: Path) -> None:
        engine = KeywordSearchEngine()
        indexer = Indexer(engine)
        await indexer.index([notes_dir])

        note = notes_dir / "python.md"
        note.unlink()

        assert await indexer.refresh(note) == "removed"
        assert await engine.search("virtual") == []
        assert len(indexer.documents) == 1

    @pytest.mark.asyncio
    async def test_refresh_uses_engine_update(self, notes_dir: Path) -> None:
        engine = MagicMock()
        engine.update = AsyncMock()
        engine.remove = AsyncMock()

        with patch("notefinder.index.indexer.load_document", return_value=None):
            status = await Indexer(engine).refresh(notes_dir / "python.md")

        assert status == "removed"
        engine.remove.assert_awaited_once_with(str((notes_dir / "python.md").resolve()))
        engine.update.assert_not_awaited()
