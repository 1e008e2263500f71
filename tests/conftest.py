"""Shared fixtures for the NoteFinder test suite."""

from __future__ import annotations

import hashlib
import re
from pathlib import Path
from typing import List, Sequence

import pytest

from notefinder.config import AppConfig, SemanticConfig
from notefinder.embedding.base import BatchEmbeddingResult, EmbeddingResult, unit_vector
from notefinder.errors import EmbeddingProviderError
from notefinder.models import Document

_WORD = re.compile(r"\w+")


class FakeEmbeddingProvider:
    """Deterministic hashed bag-of-words embeddings; no model, no network."""

    def __init__(self, dimension: int = 64) -> None:
        self._dimension = dimension
        self.ready = True
        self.fail = False
        self.disposed = False
        self.embed_calls: List[str] = []
        self.batch_calls: List[List[str]] = []

    @property
    def dimension(self) -> int:
        return self._dimension

    @property
    def max_text_length(self) -> int:
        return 10_000

    def vector_for(self, text: str) -> List[float]:
        values = [0.0] * self._dimension
        for word in _WORD.findall(text.lower()):
            bucket = int(hashlib.sha1(word.encode("utf-8")).hexdigest()[:8], 16) % self._dimension
            values[bucket] += 1.0
        return unit_vector(values)

    async def embed(self, text: str) -> EmbeddingResult:
        if self.fail:
            raise EmbeddingProviderError("fake embedding failed")
        self.embed_calls.append(text)
        return EmbeddingResult(vector=self.vector_for(text), token_count=len(text) // 4)

    async def embed_batch(self, texts: Sequence[str]) -> BatchEmbeddingResult:
        if self.fail:
            raise EmbeddingProviderError("fake batch embedding failed")
        self.batch_calls.append(list(texts))
        return BatchEmbeddingResult(
            vectors=[self.vector_for(text) for text in texts],
            total_tokens=sum(len(text) // 4 for text in texts),
        )

    async def is_ready(self) -> bool:
        return self.ready

    async def dispose(self) -> None:
        self.disposed = True


def make_document(path: str, content: str | None, *, title: str | None = None, modified: float = 1.0) -> Document:
    return Document(
        path=path,
        title=title or Path(path).stem,
        size=len(content or ""),
        last_modified=modified,
        text_content=content,
        relative_path=Path(path).name,
    )


@pytest.fixture
def fake_provider() -> FakeEmbeddingProvider:
    return FakeEmbeddingProvider()


@pytest.fixture
def semantic_config(tmp_path: Path) -> AppConfig:
    """Semantic search enabled, snapshot under ``tmp_path``."""
    return AppConfig(
        knowledge_paths=[tmp_path],
        cache_dir=tmp_path / "cache",
        semantic=SemanticConfig(enabled=True),
    )


@pytest.fixture
def notes_dir(tmp_path: Path) -> Path:
    """A small folder of Markdown notes."""
    root = tmp_path / "notes"
    (root / "projects").mkdir(parents=True)
    (root / ".obsidian").mkdir()

    (root / "python.md").write_text(
        "# Python Tips\n\nUse virtual environments for every project.\n"
        "Python packaging uses pyproject files.\n",
        encoding="utf-8",
    )
    (root / "projects" / "garden.md").write_text(
        "---\ntitle: Garden Plan\ntags: [home]\n---\nTomatoes need full sun.\nWater the basil daily.\n",
        encoding="utf-8",
    )
    (root / ".obsidian" / "workspace.md").write_text("internal python state", encoding="utf-8")
    (root / "draft.tmp.md").write_text("python draft", encoding="utf-8")
    return root
