from __future__ import annotations

from typing import Any, Callable, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, PositiveInt


class DocumentInput(BaseModel):
    """
    Raw document submitted by a caller, before an embedding exists.
    """

    id: str = Field(..., description="Unique key within a store")
    content: str = Field(..., description="Text that gets embedded")
    metadata: Optional[Dict[str, Any]] = Field(
        default=None,
        description="Opaque caller data, only ever passed to filter predicates",
    )


class Document(DocumentInput):
    """
    Document as held by the store. `embedding` is absent only in
    malformed import input; resident documents always carry one.
    """

    embedding: Optional[List[float]] = None


class SearchResult(BaseModel):
    document: Document
    score: float = Field(..., description="Cosine similarity, higher is more similar")


DocumentFilter = Callable[[Document], bool]


class SearchOptions(BaseModel):
    """
    Options shared by both search entry points.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    top_k: PositiveInt = 5
    # Inclusive. The default drops anti-correlated (negative score) documents.
    threshold: float = 0.0
    filter: Optional[DocumentFilter] = None
