"""OpenAI embedding provider."""

from __future__ import annotations

import logging
from typing import Any, Sequence

from openai import AsyncOpenAI

from notefinder.embedding.base import (
    BatchEmbeddingResult,
    EmbeddingResult,
    iter_batches,
    prepare_texts,
    unit_vector,
)
from notefinder.errors import ConfigurationError, OpenAIEmbeddingError

DEFAULT_MODEL = "text-embedding-3-small"
DEFAULT_BATCH_SIZE = 100
MAX_TEXT_LENGTH = 8191

MODEL_DIMENSIONS = {
    "text-embedding-3-small": 1536,
    "text-embedding-3-large": 3072,
    "text-embedding-ada-002": 1536,
}

logger = logging.getLogger(__name__)


class OpenAIEmbeddingProvider:
    """Generate embeddings with the OpenAI embeddings API."""

    def __init__(
        self,
        *,
        api_key: str | None,
        model: str | None = None,
        batch_size: int | None = None,
        base_url: str | None = None,
        organization: str | None = None,
        client: Any | None = None,
    ) -> None:
        self.model = model or DEFAULT_MODEL
        self.batch_size = batch_size or DEFAULT_BATCH_SIZE
        self._closed = False

        if client is not None:
            self._client = client
        else:
            if not api_key:
                raise ConfigurationError("OpenAI API key is required for semantic search")
            self._client = AsyncOpenAI(
                api_key=api_key, base_url=base_url, organization=organization
            )

    @property
    def dimension(self) -> int:
        return MODEL_DIMENSIONS.get(self.model, 1536)

    @property
    def max_text_length(self) -> int:
        return MAX_TEXT_LENGTH

    async def embed(self, text: str) -> EmbeddingResult:
        truncated = prepare_texts([text], self.max_text_length)[0]
        try:
            response = await self._client.embeddings.create(
                model=self.model,
                input=truncated,
                encoding_format="float",
            )
            if not response.data:
                raise ValueError("No embedding returned from OpenAI API")
        except Exception as exc:
            raise OpenAIEmbeddingError(f"OpenAI embedding failed: {exc}") from exc

        usage = getattr(response, "usage", None)
        return EmbeddingResult(
            vector=unit_vector(response.data[0].embedding),
            token_count=getattr(usage, "total_tokens", 0) or 0,
        )

    async def embed_batch(self, texts: Sequence[str]) -> BatchEmbeddingResult:
        result = BatchEmbeddingResult()
        for batch in iter_batches(texts, self.batch_size):
            try:
                response = await self._client.embeddings.create(
                    model=self.model,
                    input=prepare_texts(batch, self.max_text_length),
                    encoding_format="float",
                )
            except Exception as exc:
                raise OpenAIEmbeddingError(f"OpenAI batch embedding failed: {exc}") from exc

            ordered = sorted(response.data, key=lambda item: item.index)
            result.vectors.extend(unit_vector(item.embedding) for item in ordered)
            usage = getattr(response, "usage", None)
            result.total_tokens += getattr(usage, "total_tokens", 0) or 0
        return result

    async def is_ready(self) -> bool:
        try:
            await self._client.models.retrieve(self.model)
        except Exception as exc:
            logger.debug("OpenAI provider not ready: %s", exc)
            return False
        return True

    async def dispose(self) -> None:
        if self._closed:
            return
        self._closed = True
        close = getattr(self._client, "close", None)
        if close is not None:
            await close()
