from __future__ import annotations

from typing import Any

from memory_vector_store.models import Document, DocumentFilter


def metadata_filter(**expected: Any) -> DocumentFilter:
    """
    Build a predicate accepting documents whose metadata has every given
    key with an equal value. Documents without metadata never match
    (unless no keys are given).
    """

    def _matches(doc: Document) -> bool:
        meta = doc.metadata or {}
        return all(key in meta and meta[key] == value for key, value in expected.items())

    return _matches
