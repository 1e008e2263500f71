"""Corpus indexing pipeline."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Sequence

from notefinder.ingestion.markdown_loader import load_document
from notefinder.models import Document
from notefinder.search.engine import SearchEngine
from notefinder.utils.files import DEFAULT_IGNORE_PATTERNS, iter_markdown_paths

LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class IndexStats:
    loaded: int = 0
    skipped: int = 0
    failed: int = 0
    processed_files: list[Path] = field(default_factory=list)

    def increment(self, status: str, path: Path) -> None:
        if status == "loaded":
            self.loaded += 1
        elif status == "skipped":
            self.skipped += 1
        else:
            self.failed += 1
        self.processed_files.append(path)


class Indexer:
    """Scans folders for Markdown notes and feeds them to a search engine."""

    def __init__(
        self,
        engine: SearchEngine,
        *,
        ignore_patterns: Sequence[str] = DEFAULT_IGNORE_PATTERNS,
        max_file_size_mb: float = 10,
    ) -> None:
        self.engine = engine
        self.ignore_patterns = list(ignore_patterns)
        self.max_file_size_mb = max_file_size_mb
        self._documents: Dict[str, Document] = {}

    @property
    def documents(self) -> List[Document]:
        return list(self._documents.values())

    async def index(self, paths: Sequence[Path]) -> IndexStats:
        """Load every Markdown file under ``paths`` and index them in one call."""
        stats = IndexStats()
        documents: Dict[str, Document] = {}

        for root in paths:
            root = Path(root)
            base_dir = root if root.is_dir() else root.parent
            for path in iter_markdown_paths([root], self.ignore_patterns):
                try:
                    LOGGER.debug("Loading %s", path)
                    document = load_document(path, base_dir=base_dir, max_file_size_mb=self.max_file_size_mb)
                except (OSError, UnicodeDecodeError) as exc:
                    LOGGER.error("Failed to load %s: %s", path, exc)
                    stats.increment("failed", path)
                    continue

                if document is None:
                    stats.increment("skipped", path)
                    continue
                documents[document.path] = document
                stats.increment("loaded", path)

        if not documents:
            LOGGER.warning("No Markdown files found")

        await self.engine.index(list(documents.values()))
        self._documents = documents
        LOGGER.info(
            "Indexed %d documents (%d skipped, %d failed)", stats.loaded, stats.skipped, stats.failed
        )
        return stats

    async def refresh(self, path: Path) -> str:
        """Re-read one file: ``"updated"`` when it was re-indexed, else ``"removed"``."""
        path = Path(path)
        key = str(path.resolve())

        document = None
        if path.is_file():
            document = load_document(path, base_dir=path.parent, max_file_size_mb=self.max_file_size_mb)

        if document is None:
            await self.engine.remove(key)
            self._documents.pop(key, None)
            return "removed"

        await self.engine.update(document)
        self._documents[document.path] = document
        return "updated"
