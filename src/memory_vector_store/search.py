from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Optional

from memory_vector_store.filters import metadata_filter
from memory_vector_store.store import MemoryVectorStore

log = logging.getLogger("memory_vector_store.search")


def parse_where(clauses: Optional[List[str]]) -> Dict[str, Any]:
    """
    Parse "key=value" clauses into a dict. Values are read as JSON
    (so chunk=1 matches the integer 1) and fall back to plain strings.
    """
    where: Dict[str, Any] = {}
    for clause in clauses or []:
        key, sep, value = clause.partition("=")
        if not sep or not key.strip():
            raise ValueError(f"Invalid filter clause {clause!r}, expected key=value")
        value = value.strip()
        try:
            where[key.strip()] = json.loads(value)
        except ValueError:
            where[key.strip()] = value
    return where


def semantic_search(
    store: MemoryVectorStore,
    query: str,
    top_k: int = 5,
    threshold: float = 0.0,
    where: Optional[Dict[str, Any]] = None,
) -> List[Dict[str, Any]]:
    """
    Perform semantic search over the store.
    Returns top-k hits with rank, score, id, content and metadata.
    """
    if not query or not query.strip():
        raise ValueError("Query must not be empty")

    results = store.search(
        query,
        top_k=top_k,
        threshold=threshold,
        filter=metadata_filter(**where) if where else None,
    )

    hits: List[Dict[str, Any]] = []

    for rank, result in enumerate(results, start=1):
        hits.append({
            "rank": rank,
            "score": result.score,
            "id": result.document.id,
            "document": result.document.content,
            "metadata": result.document.metadata or {},
        })

    log.info("Search returned %d results", len(hits))
    return hits
