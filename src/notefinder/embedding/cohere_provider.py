"""Cohere embedding provider."""

from __future__ import annotations

import logging
from typing import Any, List, Literal, Sequence

import cohere

from notefinder.embedding.base import (
    BatchEmbeddingResult,
    EmbeddingResult,
    iter_batches,
    prepare_texts,
    unit_vector,
)
from notefinder.errors import CohereEmbeddingError, ConfigurationError
from notefinder.utils.text import estimate_tokens

DEFAULT_MODEL = "embed-english-v3.0"
DEFAULT_BATCH_SIZE = 96
MAX_TEXT_LENGTH = 512

MODEL_DIMENSIONS = {
    "embed-english-v3.0": 1024,
    "embed-multilingual-v3.0": 1024,
    "embed-english-light-v3.0": 384,
    "embed-multilingual-light-v3.0": 384,
}

InputType = Literal["search_document", "search_query", "classification", "clustering"]

logger = logging.getLogger(__name__)


class CohereEmbeddingProvider:
    """Generate embeddings with the Cohere embed endpoint.

    Cohere does not report token usage for embeddings, so counts are estimated.
    """

    def __init__(
        self,
        *,
        api_key: str | None,
        model: str | None = None,
        batch_size: int | None = None,
        input_type: InputType = "search_document",
        client: Any | None = None,
    ) -> None:
        self.model = model or DEFAULT_MODEL
        self.batch_size = batch_size or DEFAULT_BATCH_SIZE
        self.input_type: InputType = input_type
        self._disposed = False

        if client is not None:
            self._client = client
        else:
            if not api_key:
                raise ConfigurationError("Cohere API key is required for semantic search")
            self._client = cohere.AsyncClientV2(api_key=api_key)

    @property
    def dimension(self) -> int:
        return MODEL_DIMENSIONS.get(self.model, 1024)

    @property
    def max_text_length(self) -> int:
        return MAX_TEXT_LENGTH

    async def _request(self, texts: List[str]) -> List[List[float]]:
        response = await self._client.embed(
            texts=texts,
            model=self.model,
            input_type=self.input_type,
            embedding_types=["float"],
        )
        vectors = response.embeddings.float_
        if not vectors:
            raise ValueError("No embedding returned from Cohere API")
        return vectors

    async def embed(self, text: str) -> EmbeddingResult:
        truncated = prepare_texts([text], self.max_text_length)
        try:
            vectors = await self._request(truncated)
        except Exception as exc:
            raise CohereEmbeddingError(f"Cohere embedding failed: {exc}") from exc

        return EmbeddingResult(
            vector=unit_vector(vectors[0]),
            token_count=estimate_tokens(truncated[0]),
        )

    async def embed_batch(self, texts: Sequence[str]) -> BatchEmbeddingResult:
        result = BatchEmbeddingResult()
        for batch in iter_batches(texts, self.batch_size):
            truncated = prepare_texts(batch, self.max_text_length)
            try:
                vectors = await self._request(truncated)
            except Exception as exc:
                raise CohereEmbeddingError(f"Cohere batch embedding failed: {exc}") from exc

            result.vectors.extend(unit_vector(vector) for vector in vectors)
            result.total_tokens += sum(estimate_tokens(text) for text in truncated)
        return result

    async def is_ready(self) -> bool:
        try:
            await self._request(["test"])
        except Exception as exc:
            logger.debug("Cohere provider not ready: %s", exc)
            return False
        return True

    async def dispose(self) -> None:
        self._disposed = True
