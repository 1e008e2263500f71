"""Embedding-based search over document chunks."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Any, Dict, List, Sequence

from notefinder.config import AppConfig
from notefinder.embedding.base import EmbeddingProvider, iter_batches
from notefinder.embedding.factory import create_embedding_provider
from notefinder.errors import ConfigurationError, EmbeddingProviderError
from notefinder.index.persistent import FileVectorStore
from notefinder.index.storage import MemoryVectorStore, VectorEntry, VectorHit, VectorStore
from notefinder.ingestion.chunker import ChunkOptions, DocumentChunker
from notefinder.models import Document, DocumentChunk, MatchContext, SearchResult
from notefinder.search.engine import DEFAULT_LIMIT, MAX_MATCHES_PER_DOCUMENT, rank_results
from notefinder.utils.files import content_hash
from notefinder.utils.text import best_matching_sentence

LOGGER = logging.getLogger(__name__)

WRITE_BATCH_SIZE = 100


class SemanticSearchEngine:
    """Chunk, embed and retrieve documents by vector similarity.

    The vector store is loaded lazily on first use. Bookkeeping (which chunk
    ids belong to which path, and the modification time they were built from)
    is rebuilt from stored metadata, so documents that did not change since the
    last run are not embedded again.
    """

    def __init__(
        self,
        config: AppConfig,
        *,
        provider: EmbeddingProvider | None = None,
        vector_store: VectorStore | None = None,
        chunker: DocumentChunker | None = None,
        base_dir: Path | None = None,
    ) -> None:
        if not config.semantic.enabled:
            raise ConfigurationError("Semantic search is not enabled in configuration")

        self.config = config
        self.provider = provider if provider is not None else create_embedding_provider(config.semantic)
        if vector_store is None:
            if config.semantic.cache_embeddings:
                # Persisted once at the end of each engine operation.
                vector_store = FileVectorStore(
                    config.resolve_cache_path(base_dir or Path.cwd()), auto_save=False
                )
            else:
                vector_store = MemoryVectorStore()
        self.vector_store = vector_store
        self.chunker = chunker or DocumentChunker(
            ChunkOptions(max_chunk_size=config.chunk_size, overlap_size=config.chunk_overlap)
        )
        self.over_fetch_factor = 2

        self._documents: Dict[str, Document] = {}
        self._chunk_ids: Dict[str, List[str]] = {}
        self._last_modified: Dict[str, float] = {}
        self._initialized = False

    @property
    def documents(self) -> List[Document]:
        return list(self._documents.values())

    async def _initialize(self) -> None:
        if self._initialized:
            return

        if isinstance(self.vector_store, FileVectorStore):
            await asyncio.to_thread(self.vector_store.load)
        self._rebuild_bookkeeping()

        if not await self.provider.is_ready():
            raise EmbeddingProviderError("Embedding provider is not ready")
        self._initialized = True
        LOGGER.info("Semantic engine ready with %d stored vectors", self.vector_store.size())

    def _rebuild_bookkeeping(self) -> None:
        self._chunk_ids.clear()
        self._last_modified.clear()
        for entry in self.vector_store.all_entries():
            path = entry.metadata.get("document_path")
            if not path:
                continue
            self._chunk_ids.setdefault(path, []).append(entry.id)
            if "last_modified" in entry.metadata:
                self._last_modified[path] = entry.metadata["last_modified"]

    def _is_unchanged(self, document: Document) -> bool:
        return (
            document.path in self._chunk_ids
            and self._last_modified.get(document.path) == document.last_modified
        )

    async def index(self, documents: Sequence[Document]) -> None:
        """Replace the indexed set with ``documents``.

        Documents with content are embedded unless unchanged; failures are
        logged per document. Stored vectors of any other path, including paths
        restored from the snapshot and documents whose content is now empty,
        are dropped.
        """
        await self._initialize()

        self._documents = {
            document.path: document for document in documents if document.text_content
        }
        embedded = 0
        try:
            stale = [path for path in self._chunk_ids if path not in self._documents]
            for path in stale:
                await self._remove_vectors(path)
            if stale:
                LOGGER.info("Dropped vectors of %d documents no longer indexed", len(stale))

            for document in self._documents.values():
                if self._is_unchanged(document):
                    LOGGER.debug("Skipping unchanged %s", document.path)
                    continue
                try:
                    await self._embed_document(document)
                    embedded += 1
                except Exception as exc:
                    LOGGER.error("Failed to index %s: %s", document.path, exc)
        finally:
            await self._persist()

        LOGGER.info("Embedded %d of %d documents", embedded, len(documents))

    async def _embed_document(self, document: Document) -> None:
        chunks = self.chunker.chunk_document(document.text_content or "", document.path, document.title)
        if not chunks:
            await self._remove_vectors(document.path)
            return

        batch = await self.provider.embed_batch([chunk.content for chunk in chunks])
        if len(batch.vectors) != len(chunks):
            raise EmbeddingProviderError(
                f"Expected {len(chunks)} embeddings for {document.path}, got {len(batch.vectors)}"
            )

        digest = content_hash(document.text_content or "")
        entries = [
            VectorEntry(vector=list(vector), metadata=self._chunk_metadata(document, chunk, digest))
            for chunk, vector in zip(chunks, batch.vectors)
        ]

        await self._remove_vectors(document.path)
        for group in iter_batches(entries, WRITE_BATCH_SIZE):
            await asyncio.to_thread(self.vector_store.add_batch, group)

        self._chunk_ids[document.path] = [chunk.id for chunk in chunks]
        self._last_modified[document.path] = document.last_modified
        LOGGER.debug("Stored %d chunks for %s", len(chunks), document.path)

    @staticmethod
    def _chunk_metadata(document: Document, chunk: DocumentChunk, digest: str) -> Dict[str, Any]:
        return {
            "id": chunk.id,
            "document_path": document.path,
            "title": document.title,
            "last_modified": document.last_modified,
            "content_hash": digest,
            "chunk_index": chunk.chunk_index,
            "start_line": chunk.start_line,
            "end_line": chunk.end_line,
            "raw_content": chunk.content,
            "total_chunks": chunk.total_chunks,
        }

    async def _remove_vectors(self, path: str) -> None:
        ids = self._chunk_ids.pop(path, [])
        self._last_modified.pop(path, None)
        stored = [vector_id for vector_id in ids if self.vector_store.has(vector_id)]
        if stored:
            await asyncio.to_thread(self.vector_store.remove_batch, stored)

    async def search(self, query: str, *, limit: int = DEFAULT_LIMIT) -> List[SearchResult]:
        """Return documents ranked by their best chunk; errors yield ``[]``."""
        if not query or limit <= 0:
            return []

        try:
            await self._initialize()
            embedding = await self.provider.embed(query)
            hits = await self._nearest(embedding.vector, limit)
            return self._group_hits(hits, query, limit)
        except Exception:
            LOGGER.exception("Semantic search failed for %r", query)
            return []

    async def _nearest(self, vector: Sequence[float], limit: int) -> List[VectorHit]:
        """Fetch enough hits to cover ``limit`` distinct documents when possible."""
        top_k = max(limit * self.over_fetch_factor, 1)
        while True:
            hits = await asyncio.to_thread(self.vector_store.search, vector, top_k=top_k)
            paths = {
                hit.entry.metadata.get("document_path")
                for hit in hits
                if hit.entry.metadata.get("document_path") in self._documents
            }
            if len(paths) >= limit or top_k >= self.vector_store.size():
                return hits
            top_k *= 2

    def _group_hits(self, hits: Sequence[VectorHit], query: str, limit: int) -> List[SearchResult]:
        grouped: Dict[str, SearchResult] = {}
        for hit in hits:
            metadata = hit.entry.metadata
            document = self._documents.get(metadata.get("document_path"))
            if document is None:
                continue
            path = document.path

            snippet = best_matching_sentence(metadata.get("raw_content", ""), query)
            match = MatchContext(
                line_number=int(metadata.get("start_line", 1)),
                snippet=snippet,
                match_start=0,
                match_end=len(snippet),
            )

            result = grouped.get(path)
            if result is None:
                grouped[path] = SearchResult(
                    document=document,
                    score=hit.score,
                    matches=[match],
                )
                continue
            result.score = max(result.score, hit.score)
            if len(result.matches) < MAX_MATCHES_PER_DOCUMENT:
                result.matches.append(match)

        return rank_results(grouped.values(), limit)

    async def update(self, document: Document) -> None:
        """Re-embed a single document, or drop its vectors if it has no content."""
        await self._initialize()
        try:
            if not document.text_content:
                self._documents.pop(document.path, None)
                await self._remove_vectors(document.path)
                return
            self._documents[document.path] = document
            await self._embed_document(document)
        finally:
            await self._persist()

    async def remove(self, path: str) -> None:
        await self._initialize()
        self._documents.pop(path, None)
        try:
            await self._remove_vectors(path)
        finally:
            await self._persist()

    async def _persist(self) -> None:
        if isinstance(self.vector_store, FileVectorStore) and not self.vector_store.auto_save:
            await asyncio.to_thread(self.vector_store.persist)

    async def dispose(self) -> None:
        """Persist the vector snapshot (if loaded) and release the provider."""
        if self._initialized and isinstance(self.vector_store, FileVectorStore):
            await asyncio.to_thread(self.vector_store.persist)
        await self.provider.dispose()
