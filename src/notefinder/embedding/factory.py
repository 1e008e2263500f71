"""Select an embedding provider from configuration."""

from __future__ import annotations

from notefinder.config import API_KEY_ENV, ProviderName, SemanticConfig
from notefinder.embedding.base import EmbeddingProvider
from notefinder.errors import ConfigurationError


def _require_key(semantic: SemanticConfig) -> str:
    api_key = semantic.resolve_api_key()
    if not api_key:
        raise ConfigurationError(
            f"{semantic.provider.value} API key is required for semantic search. "
            f"Set it in the configuration or via {API_KEY_ENV[semantic.provider]}."
        )
    return api_key


def create_embedding_provider(semantic: SemanticConfig) -> EmbeddingProvider:
    """Build the provider named by ``semantic.provider``.

    Cloud providers fail here, at construction time, when no API key is available.
    """
    if not semantic.enabled:
        raise ConfigurationError("Semantic search is not enabled in configuration")

    match semantic.provider:
        case ProviderName.LOCAL:
            from notefinder.embedding.encoder import DEFAULT_MODEL, EmbeddingConfig, LocalEmbeddingProvider

            config = EmbeddingConfig(model_name=semantic.model or DEFAULT_MODEL)
            if semantic.batch_size:
                config.batch_size = semantic.batch_size
            return LocalEmbeddingProvider(config)
        case ProviderName.OPENAI:
            from notefinder.embedding.openai_provider import OpenAIEmbeddingProvider

            return OpenAIEmbeddingProvider(
                api_key=_require_key(semantic),
                model=semantic.model,
                batch_size=semantic.batch_size,
            )
        case ProviderName.COHERE:
            from notefinder.embedding.cohere_provider import CohereEmbeddingProvider

            return CohereEmbeddingProvider(
                api_key=_require_key(semantic),
                model=semantic.model,
                batch_size=semantic.batch_size,
            )
        case _:
            raise ConfigurationError(f"Unknown embedding provider: {semantic.provider!r}")
