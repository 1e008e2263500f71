"""Error types raised by NoteFinder."""

from __future__ import annotations


class NoteFinderError(Exception):
    """Base class for all NoteFinder errors."""


class ValidationError(NoteFinderError, ValueError):
    """Input is structurally invalid and must be fixed by the caller."""


class DimensionMismatchError(ValidationError):
    """Two vectors that must share a dimension do not."""

    def __init__(self, left: int, right: int) -> None:
        super().__init__(f"Vectors must have the same dimension ({left} != {right})")
        self.left = left
        self.right = right


class MissingIdError(ValidationError):
    """A vector entry was supplied without ``metadata["id"]``."""


class VectorNotFoundError(NoteFinderError, LookupError):
    """No vector is stored under the requested id."""

    def __init__(self, vector_id: str) -> None:
        super().__init__(f"Vector with id {vector_id} not found")
        self.vector_id = vector_id


class ConfigurationError(NoteFinderError, ValueError):
    """The configuration cannot produce a working component."""


class EmbeddingProviderError(NoteFinderError, RuntimeError):
    """An embedding provider failed; the message keeps the original cause."""

    provider = "embedding"


class LocalEmbeddingError(EmbeddingProviderError):
    provider = "local"


class OpenAIEmbeddingError(EmbeddingProviderError):
    provider = "openai"


class CohereEmbeddingError(EmbeddingProviderError):
    provider = "cohere"


class SnapshotError(NoteFinderError):
    """Base class for vector store snapshot problems."""


class CorruptSnapshotError(SnapshotError, ValueError):
    """The snapshot file exists but cannot be parsed."""


class SnapshotNotFoundError(SnapshotError, FileNotFoundError):
    """There is no snapshot file to back up."""
