"""
Shared fixtures: a deterministic, offline embedding provider.
"""
from typing import Dict, Iterable, List, Optional

import pytest

from memory_vector_store.store import MemoryVectorStore


class FakeEmbeddingProvider:
    """
    Deterministic stand-in for the OpenAI embeddings client.

    Vectors are derived from the character codes of the text, so equal
    texts always embed equally. `vectors` pins exact vectors for given
    texts and `fail_on` makes the provider raise for given texts.
    """

    def __init__(
        self,
        dimension: int = 1536,
        vectors: Optional[Dict[str, List[float]]] = None,
        fail_on: Iterable[str] = (),
    ) -> None:
        self.dimension = dimension
        self.vectors = dict(vectors or {})
        self.fail_on = set(fail_on)
        self.calls: List[str] = []

    def embed_text(self, text: str) -> List[float]:
        self.calls.append(text)

        if text in self.fail_on:
            raise RuntimeError(f"quota exceeded for {text!r}")

        if text in self.vectors:
            return list(self.vectors[text])

        source = text or " "
        return [
            (ord(source[i % len(source)]) / 255 + i / self.dimension) / 2
            for i in range(self.dimension)
        ]


@pytest.fixture
def provider() -> FakeEmbeddingProvider:
    return FakeEmbeddingProvider()


@pytest.fixture
def store(provider: FakeEmbeddingProvider) -> MemoryVectorStore:
    return MemoryVectorStore(provider)


@pytest.fixture
def plane_provider() -> FakeEmbeddingProvider:
    """2-d provider with hand-picked vectors for exact ranking checks."""
    return FakeEmbeddingProvider(
        dimension=2,
        vectors={
            "east": [1.0, 0.0],
            "north": [0.0, 1.0],
            "north-east": [0.7071, 0.7071],
            "west": [-1.0, 0.0],
            "origin": [0.0, 0.0],
        },
    )


@pytest.fixture
def plane_store(plane_provider: FakeEmbeddingProvider) -> MemoryVectorStore:
    return MemoryVectorStore(plane_provider, embedding_model="toy-2d", dimension=2)
