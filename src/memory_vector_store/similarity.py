from __future__ import annotations

from math import sqrt
from typing import Sequence

from memory_vector_store.errors import DimensionMismatchError


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """
    Cosine similarity of two equal-length vectors, in [-1, 1] up to float rounding.

    A zero-magnitude vector has no direction, so its similarity to anything is 0.0.
    Raises DimensionMismatchError if the lengths differ.
    """
    if len(a) != len(b):
        raise DimensionMismatchError(
            f"Vectors must have the same length (got {len(a)} and {len(b)})",
            expected=len(a),
            actual=len(b),
        )

    dot = 0.0
    norm_a = 0.0
    norm_b = 0.0
    for x, y in zip(a, b):
        dot += x * y
        norm_a += x * x
        norm_b += y * y

    if norm_a == 0 or norm_b == 0:
        return 0.0

    return dot / (sqrt(norm_a) * sqrt(norm_b))
