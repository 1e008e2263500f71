"""Local embedding provider backed by sentence-transformers."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import List, Literal, Sequence

import numpy as np
from sentence_transformers import SentenceTransformer

from notefinder.embedding.base import (
    BatchEmbeddingResult,
    EmbeddingResult,
    iter_batches,
    prepare_texts,
    unit_vector,
)
from notefinder.errors import LocalEmbeddingError
from notefinder.utils.text import estimate_tokens

DEFAULT_MODEL = "sentence-transformers/all-MiniLM-L6-v2"

logger = logging.getLogger(__name__)

# Dimensions of common sentence-transformer models, used before the model is loaded.
KNOWN_DIMENSIONS = {
    "sentence-transformers/all-MiniLM-L6-v2": 384,
    "sentence-transformers/all-MiniLM-L12-v2": 384,
    "sentence-transformers/all-mpnet-base-v2": 768,
    "sentence-transformers/paraphrase-multilingual-MiniLM-L12-v2": 384,
    "sentence-transformers/distiluse-base-multilingual-cased-v2": 512,
    "shibing624/text2vec-base-chinese": 768,
}


@dataclass(slots=True)
class EmbeddingConfig:
    model_name: str = DEFAULT_MODEL
    batch_size: int = 32
    max_text_length: int = 512
    backend: Literal["torch", "onnx", "openvino"] | None = None
    device: str | None = None
    cache_dir: str | None = None


class LocalEmbeddingProvider:
    """Thin async wrapper around `SentenceTransformer`.

    The model is loaded on first use; encoding runs in a worker thread so the
    event loop stays responsive during inference.
    """

    def __init__(self, config: EmbeddingConfig | None = None) -> None:
        self.config = config or EmbeddingConfig()
        self._model: SentenceTransformer | None = None
        self._load_lock = asyncio.Lock()

    @property
    def dimension(self) -> int:
        if self._model is not None:
            return int(self._model.get_sentence_embedding_dimension())
        return KNOWN_DIMENSIONS.get(self.config.model_name, 384)

    @property
    def max_text_length(self) -> int:
        return self.config.max_text_length

    def _load_model(self) -> SentenceTransformer:
        kwargs = {}
        if self.config.backend is not None:
            kwargs["backend"] = self.config.backend
        return SentenceTransformer(
            self.config.model_name,
            device=self.config.device,
            cache_folder=self.config.cache_dir,
            **kwargs,
        )

    async def _ensure_model(self) -> SentenceTransformer:
        async with self._load_lock:
            if self._model is None:
                try:
                    self._model = await asyncio.to_thread(self._load_model)
                except Exception as exc:
                    raise LocalEmbeddingError(
                        f"Failed to load local embedding model {self.config.model_name}: {exc}"
                    ) from exc
                logger.info(f"Loaded local embedding model {self.config.model_name}")
            return self._model

    async def _encode(self, texts: List[str]) -> np.ndarray:
        model = await self._ensure_model()
        return await asyncio.to_thread(
            model.encode,
            texts,
            batch_size=self.config.batch_size,
            show_progress_bar=False,
            convert_to_numpy=True,
            normalize_embeddings=True,
        )

    async def embed(self, text: str) -> EmbeddingResult:
        truncated = prepare_texts([text], self.max_text_length)
        try:
            embeddings = await self._encode(truncated)
        except LocalEmbeddingError:
            raise
        except Exception as exc:
            raise LocalEmbeddingError(f"Failed to generate embedding: {exc}") from exc

        return EmbeddingResult(
            vector=unit_vector(embeddings[0]),
            token_count=estimate_tokens(truncated[0]),
        )

    async def embed_batch(self, texts: Sequence[str]) -> BatchEmbeddingResult:
        result = BatchEmbeddingResult()
        for batch in iter_batches(texts, self.config.batch_size):
            truncated = prepare_texts(batch, self.max_text_length)
            try:
                embeddings = await self._encode(truncated)
            except LocalEmbeddingError:
                raise
            except Exception as exc:
                raise LocalEmbeddingError(f"Failed to generate batch embeddings: {exc}") from exc

            result.vectors.extend(unit_vector(row) for row in embeddings)
            result.total_tokens += sum(estimate_tokens(text) for text in truncated)
        return result

    async def is_ready(self) -> bool:
        try:
            await self._ensure_model()
        except Exception as exc:
            logger.debug(f"Local embedding provider not ready: {exc}")
            return False
        return True

    async def dispose(self) -> None:
        self._model = None
