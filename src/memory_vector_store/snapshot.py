from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, TYPE_CHECKING

if TYPE_CHECKING:
    from memory_vector_store.models import Document


def write_snapshot(path: Path, docs: Iterable["Document"]) -> int:
    """
    Write documents as JSONL, one Document per line, replacing `path`.
    The file is written next to the target first and then swapped in,
    so a crash never leaves a half-written snapshot.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_name(path.name + ".tmp")

    written = 0
    with tmp.open("w", encoding="utf-8") as f:
        for doc in docs:
            f.write(json.dumps(doc.model_dump(mode="json"), ensure_ascii=False) + "\n")
            written += 1
        f.flush()

    tmp.replace(path)
    return written


def read_snapshot(path: Path) -> Iterator[Dict[str, Any]]:
    """
    Iterate a JSONL snapshot as dictionaries.
    Skips empty lines. Records are not validated here; import does that.
    """
    if not path.exists():
        raise FileNotFoundError(f"Snapshot file not found: {path}")

    with path.open("r", encoding="utf-8") as f:
        for line in f:
            line = line.strip()
            if not line:
                continue
            yield json.loads(line)
