"""Tests for CLI commands."""

from __future__ import annotations

import logging
from pathlib import Path
from unittest.mock import patch

import pytest
from typer.testing import CliRunner

from conftest import FakeEmbeddingProvider
from notefinder.cli import _setup_logging, app
from notefinder.index.persistent import FileVectorStore
from notefinder.index.storage import VectorEntry

runner = CliRunner()


def write_config(tmp_path: Path, body: str = "") -> Path:
    path = tmp_path / "notefinder.yaml"
    path.write_text(f"cache_dir: {tmp_path / 'cache'}\n{body}")
    return path


@pytest.fixture
def fake_embeddings(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(
        "notefinder.search.semantic.create_embedding_provider", lambda semantic: FakeEmbeddingProvider()
    )


class TestSetupLogging:
    """Tests for _setup_logging helper."""

    def test_setup_logging_verbose(self) -> None:
        """Verbose mode sets DEBUG level."""
        with patch("notefinder.cli.logging.basicConfig") as mock_config:
            _setup_logging(verbose=True)
            mock_config.assert_called_once()
            assert mock_config.call_args[1]["level"] == logging.DEBUG

    def test_setup_logging_normal(self) -> None:
        """Normal mode sets INFO level."""
        with patch("notefinder.cli.logging.basicConfig") as mock_config:
            _setup_logging(verbose=False)
            assert mock_config.call_args[1]["level"] == logging.INFO


class TestIndexCommand:
    """Tests for the index command."""

    def test_index_keyword(self, notes_dir: Path) -> None:
        result = runner.invoke(app, ["index", str(notes_dir)])

        assert result.exit_code == 0
        assert "Loaded: 2, skipped: 0, failed: 0" in result.output

    def test_index_no_locations(self, tmp_path: Path) -> None:
        """Shows a warning when no configured folder exists."""
        config = write_config(tmp_path, f"knowledge_paths: ['{tmp_path / 'missing'}']\n")

        result = runner.invoke(app, ["index", "--config", str(config)])

        assert result.exit_code == 0
        assert "No folders to index" in result.output

    def test_index_semantic_writes_snapshot(self, notes_dir: Path, tmp_path: Path, fake_embeddings: None) -> None:
        """Semantic indexing stores vectors in the cache dir."""
        config = write_config(tmp_path, "semantic:\n  enabled: true\n")

        result = runner.invoke(app, ["index", str(notes_dir), "--mode", "semantic", "--config", str(config)])

        assert result.exit_code == 0, result.output
        store = FileVectorStore(tmp_path / "cache" / "vectors.json")
        store.load()
        assert store.size() == 2

    def test_semantic_disabled(self, notes_dir: Path) -> None:
        result = runner.invoke(app, ["index", str(notes_dir), "--mode", "semantic"])
        assert result.exit_code != 0

    def test_invalid_config(self, notes_dir: Path, tmp_path: Path) -> None:
        config = write_config(tmp_path, "colour: blue\n")
        result = runner.invoke(app, ["index", str(notes_dir), "--config", str(config)])
        assert result.exit_code != 0


class TestSearchCommand:
    """Tests for the search command."""

    def test_search_keyword(self, notes_dir: Path) -> None:
        result = runner.invoke(app, ["search", "basil", str(notes_dir)])

        assert result.exit_code == 0, result.output
        assert "garden.md" in result.output

    def test_search_no_matches(self, notes_dir: Path) -> None:
        result = runner.invoke(app, ["search", "zeppelin", str(notes_dir)])

        assert result.exit_code == 0
        assert "No matches found" in result.output

    def test_search_unknown_mode(self, notes_dir: Path) -> None:
        result = runner.invoke(app, ["search", "basil", str(notes_dir), "--mode", "fuzzy"])
        assert result.exit_code != 0

    def test_search_hybrid(self, notes_dir: Path, tmp_path: Path, fake_embeddings: None) -> None:
        config = write_config(tmp_path, "semantic:\n  enabled: true\n")

        result = runner.invoke(
            app, ["search", "python", str(notes_dir), "--mode", "hybrid", "--limit", "1", "--config", str(config)]
        )

        assert result.exit_code == 0, result.output
        assert "python.md" in result.output


class TestBackupRestore:
    """Tests for the backup and restore commands."""

    def test_backup_without_snapshot(self, tmp_path: Path) -> None:
        config = write_config(tmp_path)

        result = runner.invoke(app, ["backup", "--config", str(config)])

        assert result.exit_code == 1
        assert "No vector store snapshot" in result.output

    def test_backup_and_restore(self, tmp_path: Path) -> None:
        config = write_config(tmp_path)
        store = FileVectorStore(tmp_path / "cache" / "vectors.json")
        store.add(VectorEntry(vector=[1.0, 0.0], metadata={"id": "a"}))
        backup_path = tmp_path / "backup.json"

        result = runner.invoke(app, ["backup", "--config", str(config), "--output", str(backup_path)])
        assert result.exit_code == 0, result.output
        assert backup_path.exists()

        store.clear()
        result = runner.invoke(app, ["restore", str(backup_path), "--config", str(config)])

        assert result.exit_code == 0, result.output
        assert "Restored 1 vectors" in result.output


class TestWebCommand:
    def test_web_starts_uvicorn(self, tmp_path: Path) -> None:
        """Should hand the app to uvicorn with the requested host and port."""
        with patch("uvicorn.run") as mock_run:
            result = runner.invoke(app, ["web", "--host", "0.0.0.0", "--port", "9000"])

        assert result.exit_code == 0, result.output
        mock_run.assert_called_once()
        assert mock_run.call_args.kwargs["host"] == "0.0.0.0"
        assert mock_run.call_args.kwargs["port"] == 9000
