from __future__ import annotations

import logging
import os
from copy import deepcopy
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Union

from memory_vector_store.embeddings_client import (
    DEFAULT_EMBEDDING_MODEL,
    EmbeddingProvider,
    OpenAIEmbeddingsClient,
    resolve_dimension,
)
from memory_vector_store.errors import (
    DimensionMismatchError,
    EmbeddingGenerationError,
    MissingEmbeddingError,
)
from memory_vector_store.models import (
    Document,
    DocumentFilter,
    DocumentInput,
    SearchOptions,
    SearchResult,
)
from memory_vector_store.similarity import cosine_similarity
from memory_vector_store.snapshot import read_snapshot, write_snapshot

log = logging.getLogger("memory_vector_store.store")

DocumentLike = Union[DocumentInput, Mapping[str, Any]]


def _as_input(doc: DocumentLike) -> DocumentInput:
    if isinstance(doc, DocumentInput):
        return DocumentInput(id=doc.id, content=doc.content, metadata=deepcopy(doc.metadata))
    return DocumentInput.model_validate(deepcopy(dict(doc)))


class MemoryVectorStore:
    """
    In-memory document store with cosine similarity search.

    Every resident document carries an embedding of exactly `dimension`
    floats. Documents iterate in insertion order; replacing an id keeps
    its original position.

    Not thread-safe. Callers sharing a store across threads should lock
    around mutating calls; the provider round trip in `upsert` happens
    before the store is touched, so the lock only needs to cover the insert.
    """

    def __init__(
        self,
        embedding_provider: Optional[EmbeddingProvider] = None,
        *,
        embedding_model: str = DEFAULT_EMBEDDING_MODEL,
        dimension: Optional[int] = None,
        api_key: Optional[str] = None,
    ) -> None:
        self._embedding_model = embedding_model
        self._dimension = resolve_dimension(embedding_model, dimension)

        if embedding_provider is None:
            embedding_provider = OpenAIEmbeddingsClient(
                api_key=api_key or os.getenv("OPENAI_API_KEY", ""),
                model=embedding_model,
                dimensions=self._dimension,
                # The store itself never retries
                max_attempts=1,
            )

        self._provider = embedding_provider
        self._documents: Dict[str, Document] = {}

    @property
    def embedding_model(self) -> str:
        return self._embedding_model

    @property
    def dimension(self) -> int:
        return self._dimension

    # -------------------------------------------------
    # EMBEDDING
    # -------------------------------------------------

    def _embed(self, text: str, doc_id: Optional[str] = None) -> List[float]:
        try:
            vector = self._provider.embed_text(text)
        except EmbeddingGenerationError:
            raise
        except Exception as e:
            raise EmbeddingGenerationError(f"Failed to generate embedding: {e}", doc_id=doc_id) from e

        vector = [float(x) for x in vector]
        if len(vector) != self._dimension:
            target = f" for document {doc_id}" if doc_id is not None else ""
            raise DimensionMismatchError(
                f"Embedding dimension mismatch{target}: expected {self._dimension}, got {len(vector)}",
                expected=self._dimension,
                actual=len(vector),
            )
        return vector

    # -------------------------------------------------
    # CRUD
    # -------------------------------------------------

    def upsert(self, doc: DocumentLike) -> Document:
        """
        Embed `doc.content` and insert the document, replacing any document
        with the same id wholesale. An embedding the caller passes in is
        ignored and regenerated.

        Raises EmbeddingGenerationError if the provider fails (never retried)
        and DimensionMismatchError if it returns a vector of the wrong length.
        Nothing is stored on failure.
        """
        raw = _as_input(doc)
        embedding = self._embed(raw.content, doc_id=raw.id)

        stored = Document(
            id=raw.id,
            content=raw.content,
            metadata=raw.metadata,
            embedding=embedding,
        )
        replaced = raw.id in self._documents
        self._documents[raw.id] = stored

        log.debug("%s document %s", "Replaced" if replaced else "Added", raw.id)
        return stored.model_copy(deep=True)

    def upsert_batch(self, docs: Iterable[DocumentLike]) -> List[Document]:
        """
        Upsert documents one at a time, in order.

        Best-effort and not atomic: the first failure aborts the batch and
        documents processed before it stay in the store. An embedding failure
        is re-raised with the `index` and `doc_id` of the failing item.
        """
        results: List[Document] = []

        for index, doc in enumerate(docs):
            raw = _as_input(doc)
            try:
                results.append(self.upsert(raw))
            except EmbeddingGenerationError as e:
                log.error("Batch upsert aborted at item %d (id=%s), %d committed", index, raw.id, len(results))
                raise EmbeddingGenerationError(
                    f"Batch upsert failed at item {index} (id={raw.id}): {e}",
                    doc_id=raw.id,
                    index=index,
                ) from e
            except DimensionMismatchError:
                log.error("Batch upsert aborted at item %d (id=%s), %d committed", index, raw.id, len(results))
                raise

        return results

    def get(self, doc_id: str) -> Optional[Document]:
        doc = self._documents.get(doc_id)
        return doc.model_copy(deep=True) if doc is not None else None

    def get_all(self) -> List[Document]:
        """
        Snapshot of all documents in insertion order. Mutating the returned
        documents does not affect the store.
        """
        return [doc.model_copy(deep=True) for doc in self._documents.values()]

    def delete(self, doc_id: str) -> bool:
        return self._documents.pop(doc_id, None) is not None

    def clear(self) -> None:
        self._documents.clear()

    def size(self) -> int:
        return len(self._documents)

    def __len__(self) -> int:
        return len(self._documents)

    def __contains__(self, doc_id: object) -> bool:
        return doc_id in self._documents

    # -------------------------------------------------
    # SEARCH
    # -------------------------------------------------

    def search(
        self,
        query: str,
        *,
        top_k: int = 5,
        threshold: float = 0.0,
        filter: Optional[DocumentFilter] = None,
    ) -> List[SearchResult]:
        """
        Embed `query` and rank resident documents against it.

        An empty store returns [] without calling the embedding provider.
        """
        options = SearchOptions(top_k=top_k, threshold=threshold, filter=filter)

        if not self._documents:
            return []

        query_embedding = self._embed(query)
        return self._rank(query_embedding, options)

    def search_by_vector(
        self,
        embedding: Sequence[float],
        *,
        top_k: int = 5,
        threshold: float = 0.0,
        filter: Optional[DocumentFilter] = None,
    ) -> List[SearchResult]:
        """
        Rank resident documents against a precomputed query vector.

        The vector length is checked before anything else, even on an empty store.
        """
        if len(embedding) != self._dimension:
            raise DimensionMismatchError(
                f"Embedding dimension mismatch: expected {self._dimension}, got {len(embedding)}",
                expected=self._dimension,
                actual=len(embedding),
            )

        options = SearchOptions(top_k=top_k, threshold=threshold, filter=filter)
        return self._rank(embedding, options)

    def _rank(self, query_embedding: Sequence[float], options: SearchOptions) -> List[SearchResult]:
        scored: List[tuple] = []

        for doc in self._documents.values():
            # Filter first so rejected documents cost no similarity computation
            if options.filter is not None and not options.filter(doc):
                continue

            if not doc.embedding:
                log.warning("Document %s has no embedding, skipping", doc.id)
                continue

            score = cosine_similarity(query_embedding, doc.embedding)
            if score >= options.threshold:
                scored.append((doc, score))

        # sort() is stable: equal scores keep insertion order
        scored.sort(key=lambda pair: pair[1], reverse=True)

        return [
            SearchResult(document=doc.model_copy(deep=True), score=score)
            for doc, score in scored[: options.top_k]
        ]

    # -------------------------------------------------
    # EXPORT / IMPORT
    # -------------------------------------------------

    def export(self) -> List[Document]:
        """
        Full snapshot including embeddings. The only persistence mechanism.
        """
        return self.get_all()

    def import_documents(self, docs: Iterable[Union[Document, Mapping[str, Any]]]) -> int:
        """
        Insert pre-embedded documents, in order, replacing existing ids.

        Raises MissingEmbeddingError for an entry without an embedding and
        DimensionMismatchError for one whose length is not `dimension`.
        Entries before the failing one stay imported. Returns the count imported.
        """
        imported = 0

        for raw in docs:
            if isinstance(raw, Document):
                doc = raw.model_copy(deep=True)
            else:
                doc = Document.model_validate(deepcopy(dict(raw)))

            if doc.embedding is None:
                raise MissingEmbeddingError(doc.id)

            if len(doc.embedding) != self._dimension:
                raise DimensionMismatchError(
                    f"Document {doc.id} has embedding dimension {len(doc.embedding)}, "
                    f"expected {self._dimension}",
                    expected=self._dimension,
                    actual=len(doc.embedding),
                )

            self._documents[doc.id] = doc
            imported += 1

        log.debug("Imported %d documents", imported)
        return imported

    def save(self, path: Path) -> int:
        """
        Write `export()` to a JSONL snapshot. Returns the number of documents written.
        """
        return write_snapshot(path, self.export())

    def load(self, path: Path) -> int:
        """
        Import a JSONL snapshot written by `save`. Returns the number of documents imported.
        """
        return self.import_documents(read_snapshot(path))
