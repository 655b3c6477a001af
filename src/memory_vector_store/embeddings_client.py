from __future__ import annotations

import logging
from typing import Dict, List, Optional, Protocol

from openai import APIConnectionError, InternalServerError, OpenAI, RateLimitError
from tenacity import Retrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from memory_vector_store.errors import ConfigurationError

log = logging.getLogger("memory_vector_store.embeddings")

DEFAULT_EMBEDDING_MODEL = "text-embedding-3-small"

NATIVE_DIMENSIONS: Dict[str, int] = {
    "text-embedding-3-small": 1536,
    "text-embedding-3-large": 3072,
    "text-embedding-ada-002": 1536,
}

# Models that accept the `dimensions` request parameter
_SHORTENABLE_PREFIX = "text-embedding-3-"

# Network blips, 429s and 5xx. Auth and bad-request errors are never retried.
_TRANSIENT_ERRORS = (APIConnectionError, RateLimitError, InternalServerError)


def resolve_dimension(model: str, dimension: Optional[int] = None) -> int:
    """
    Return the explicit dimension if given, else the model's native one.

    A known model that cannot shorten its vectors only accepts its native dimension.
    """
    if dimension is not None:
        if isinstance(dimension, bool) or not isinstance(dimension, int) or dimension <= 0:
            raise ConfigurationError(f"Embedding dimension must be a positive integer, got {dimension!r}")

        native = NATIVE_DIMENSIONS.get(model)
        if native is not None and dimension != native and not model.startswith(_SHORTENABLE_PREFIX):
            raise ConfigurationError(
                f"Model {model!r} only produces {native}-dimensional embeddings, got dimension={dimension}"
            )
        return dimension

    try:
        return NATIVE_DIMENSIONS[model]
    except KeyError:
        raise ConfigurationError(
            f"Unknown embedding model {model!r}: pass an explicit dimension"
        ) from None


class EmbeddingProvider(Protocol):
    """
    Anything that turns text into a fixed-length vector.
    """

    def embed_text(self, text: str) -> List[float]:
        ...


class OpenAIEmbeddingsClient:
    """
    Thin wrapper around the OpenAI embeddings endpoint.

    Makes a single attempt by default. With max_attempts > 1, only
    transient errors (connection, rate limit, server) are retried.
    """

    def __init__(
        self,
        api_key: str,
        model: str = DEFAULT_EMBEDDING_MODEL,
        dimensions: Optional[int] = None,
        max_attempts: int = 1,
    ) -> None:
        if not api_key:
            raise ConfigurationError(
                "OpenAI API key is required. Provide it explicitly or via OPENAI_API_KEY."
            )

        if dimensions is not None:
            resolve_dimension(model, dimensions)

        self._client = OpenAI(api_key=api_key)
        self._model = model
        self._max_attempts = max_attempts

        # Only ask the API to shorten vectors when it differs from the native size
        self._dimensions: Optional[int] = None
        if (
            dimensions is not None
            and model.startswith(_SHORTENABLE_PREFIX)
            and dimensions != NATIVE_DIMENSIONS.get(model)
        ):
            self._dimensions = dimensions

    @property
    def model(self) -> str:
        return self._model

    def _create(self, text: str) -> List[float]:
        kwargs = {"model": self._model, "input": text}
        if self._dimensions is not None:
            kwargs["dimensions"] = self._dimensions

        resp = self._client.embeddings.create(**kwargs)

        try:
            return list(resp.data[0].embedding)
        except (AttributeError, IndexError, TypeError) as e:
            raise RuntimeError("Invalid embedding response") from e

    def embed_text(self, text: str) -> List[float]:
        """
        Generate a single embedding vector for the given text.
        """
        log.debug("Embedding text (%d chars) with %s", len(text), self._model)

        retrying = Retrying(
            retry=retry_if_exception_type(_TRANSIENT_ERRORS),
            wait=wait_exponential(multiplier=1, min=1, max=10),
            stop=stop_after_attempt(self._max_attempts),
            reraise=True,
        )
        return retrying(self._create, text)
