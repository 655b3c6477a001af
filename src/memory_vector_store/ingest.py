from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, Iterable, Iterator, List

from memory_vector_store.errors import VectorStoreError
from memory_vector_store.models import DocumentInput
from memory_vector_store.snapshot import read_snapshot
from memory_vector_store.store import MemoryVectorStore

log = logging.getLogger("memory_vector_store.ingest")

DEFAULT_CHUNK_CHARS = 2000


def split_paragraphs(text: str, chunk_chars: int = DEFAULT_CHUNK_CHARS) -> List[str]:
    """
    Split text on blank lines and pack paragraphs into chunks of at most
    `chunk_chars` characters. A single paragraph longer than that is cut hard.
    """
    paragraphs = [p.strip() for p in text.split("\n\n") if p.strip()]

    chunks: List[str] = []
    current = ""

    for para in paragraphs:
        while len(para) > chunk_chars:
            if current:
                chunks.append(current)
                current = ""
            chunks.append(para[:chunk_chars])
            para = para[chunk_chars:]

        if not para:
            continue

        candidate = f"{current}\n\n{para}" if current else para
        if len(candidate) <= chunk_chars:
            current = candidate
        else:
            chunks.append(current)
            current = para

    if current:
        chunks.append(current)

    return chunks


def iter_input_documents(path: Path, chunk_chars: int = DEFAULT_CHUNK_CHARS) -> Iterator[DocumentInput]:
    """
    Yield documents from one input file:
    - .jsonl: one {"id", "content", "metadata"} record per line
    - anything else: UTF-8 text split into paragraph chunks with ids "<stem>#<n>"
    """
    if not path.exists():
        raise FileNotFoundError(f"Input file not found: {path}")

    if path.suffix == ".jsonl":
        for obj in read_snapshot(path):
            yield DocumentInput.model_validate(obj)
        return

    text = path.read_text(encoding="utf-8")
    for n, chunk in enumerate(split_paragraphs(text, chunk_chars), start=1):
        yield DocumentInput(
            id=f"{path.stem}#{n}",
            content=chunk,
            metadata={"source": str(path), "chunk": n},
        )


def ingest_paths(
    store: MemoryVectorStore,
    paths: Iterable[Path],
    chunk_chars: int = DEFAULT_CHUNK_CHARS,
) -> Dict[str, int]:
    """
    Upsert every document found in `paths` into `store`.
    A failing file is logged and counted; the remaining files still run.
    Documents upserted before the failure stay in the store and count as added.
    """
    added = 0
    failed = 0
    files = 0

    for path in paths:
        files += 1
        try:
            count = 0
            for doc in iter_input_documents(path, chunk_chars):
                store.upsert(doc)
                count += 1
                added += 1
            log.info("Ingested %d documents from %s", count, path)

        except (VectorStoreError, OSError, ValueError) as e:
            failed += 1
            log.exception("Failed to ingest %s: %s", path, e)

    summary = {
        "added": added,
        "failed": failed,
        "files": files,
        "total": store.size(),
    }
    log.info("Ingest finished: %s", summary)
    return summary
