from __future__ import annotations

from typing import Optional


class VectorStoreError(Exception):
    """
    Base class for every error raised by the vector store.
    """


class ConfigurationError(VectorStoreError):
    """
    Missing or invalid configuration (e.g. no API key at construction).
    """


class EmbeddingGenerationError(VectorStoreError):
    """
    The embedding provider failed to produce a vector.
    The provider's exception is kept as __cause__.
    """

    def __init__(self, message: str, doc_id: Optional[str] = None, index: Optional[int] = None) -> None:
        super().__init__(message)
        self.doc_id = doc_id
        self.index = index


class DimensionMismatchError(VectorStoreError):
    def __init__(self, message: str, expected: Optional[int] = None, actual: Optional[int] = None) -> None:
        super().__init__(message)
        self.expected = expected
        self.actual = actual


class MissingEmbeddingError(VectorStoreError):
    def __init__(self, doc_id: str) -> None:
        super().__init__(f"Document {doc_id} must have an embedding for import")
        self.doc_id = doc_id
