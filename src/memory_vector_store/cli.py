from __future__ import annotations

import logging
from pathlib import Path
from typing import List, NoReturn, Optional

import typer

from memory_vector_store.config import Settings, get_settings
from memory_vector_store.embeddings_client import (
    EmbeddingProvider,
    OpenAIEmbeddingsClient,
    resolve_dimension,
)
from memory_vector_store.errors import VectorStoreError
from memory_vector_store.ingest import DEFAULT_CHUNK_CHARS, ingest_paths
from memory_vector_store.logging_utils import setup_logging
from memory_vector_store.search import parse_where, semantic_search
from memory_vector_store.store import MemoryVectorStore

__version__ = "0.1.0"

app = typer.Typer(add_completion=False, help="In-memory semantic document store CLI")

log = logging.getLogger("memory_vector_store.cli")


def build_provider(settings: Settings) -> EmbeddingProvider:
    return OpenAIEmbeddingsClient(
        api_key=settings.openai_api_key,
        model=settings.openai_embedding_model,
        dimensions=resolve_dimension(settings.openai_embedding_model, settings.embedding_dimension),
        max_attempts=settings.embedding_max_attempts,
    )


def open_store(settings: Settings, snapshot: Path) -> MemoryVectorStore:
    """
    Build a store from settings and load `snapshot` into it if it exists.
    """
    store = MemoryVectorStore(
        build_provider(settings),
        embedding_model=settings.openai_embedding_model,
        dimension=settings.embedding_dimension,
    )
    if snapshot.exists():
        try:
            count = store.load(snapshot)
        except ValueError as e:
            # Bad JSON or a record that fails Document validation
            raise VectorStoreError(f"Corrupt snapshot {snapshot}: {e}") from e
        log.info("Loaded %d documents from %s", count, snapshot)
    return store


def _fail(e: Exception) -> NoReturn:
    typer.secho(f"ERROR: {type(e).__name__}: {e}", fg=typer.colors.RED, err=True)
    raise typer.Exit(code=1)


def _load_settings() -> Settings:
    # Configuration errors are fatal at startup
    try:
        return get_settings()
    except VectorStoreError as e:
        _fail(e)


@app.command()
def health() -> None:
    """Health check to verify config + logging works."""
    settings = _load_settings()
    setup_logging(settings.log_level)
    log = logging.getLogger("memory_vector_store.health")

    try:
        dimension = resolve_dimension(settings.openai_embedding_model, settings.embedding_dimension)
    except VectorStoreError as e:
        _fail(e)

    log.info("Health check OK.")
    log.info("Embedding model: %s", settings.openai_embedding_model)
    log.info("Dimension: %d", dimension)
    log.info("Snapshot: %s", settings.snapshot_path)

    typer.echo("OK")


@app.command()
def version() -> None:
    """Print version and exit."""
    typer.echo(f"memory-vector-store {__version__}")


@app.command()
def ingest(
    paths: List[Path] = typer.Argument(..., help="Text or .jsonl files to ingest"),
    snapshot: Optional[Path] = typer.Option(None, "--snapshot", help="Snapshot file (default: SNAPSHOT_PATH)"),
    chunk_chars: int = typer.Option(DEFAULT_CHUNK_CHARS, "--chunk-chars", min=1, help="Max characters per text chunk"),
) -> None:
    """
    Embed documents from files and add them to the snapshot.
    """
    settings = _load_settings()
    setup_logging(settings.log_level)
    snapshot = snapshot or settings.snapshot_path

    try:
        store = open_store(settings, snapshot)
        summary = ingest_paths(store, paths, chunk_chars=chunk_chars)
        store.save(snapshot)
    except VectorStoreError as e:
        _fail(e)

    typer.echo(summary)
    if summary["failed"]:
        raise typer.Exit(code=1)


@app.command()
def search(
    query: str = typer.Argument(..., help="Search query (natural language)"),
    top_k: int = typer.Option(5, "--top-k", min=1, help="Number of results to return"),
    threshold: float = typer.Option(0.0, "--threshold", help="Minimum cosine similarity (inclusive)"),
    where: Optional[List[str]] = typer.Option(None, "--where", help="Metadata filter key=value (repeatable)"),
    snapshot: Optional[Path] = typer.Option(None, "--snapshot", help="Snapshot file (default: SNAPSHOT_PATH)"),
) -> None:
    """
    Semantic search over the documents in the snapshot.
    """
    settings = _load_settings()
    setup_logging(settings.log_level)
    snapshot = snapshot or settings.snapshot_path

    try:
        conditions = parse_where(where)
    except ValueError as e:
        raise typer.BadParameter(str(e), param_hint="--where")

    try:
        store = open_store(settings, snapshot)
        results = semantic_search(store, query=query, top_k=top_k, threshold=threshold, where=conditions)
    except VectorStoreError as e:
        _fail(e)

    if not results:
        typer.echo("No results found.")
        return

    for r in results:
        typer.echo("=" * 80)
        typer.echo(f"Rank: {r['rank']} | Score: {r['score']:.4f} | ID: {r['id']}")
        if r["metadata"]:
            typer.echo(f"Metadata: {r['metadata']}")
        typer.echo()
        typer.echo(r["document"][:500] + ("..." if len(r["document"]) > 500 else ""))


@app.command()
def stats(
    snapshot: Optional[Path] = typer.Option(None, "--snapshot", help="Snapshot file (default: SNAPSHOT_PATH)"),
) -> None:
    """
    Show document count and store configuration.
    """
    settings = _load_settings()
    setup_logging(settings.log_level)
    snapshot = snapshot or settings.snapshot_path

    try:
        store = open_store(settings, snapshot)
    except VectorStoreError as e:
        _fail(e)

    typer.echo(f"Documents: {store.size()}")
    typer.echo(f"Model:     {store.embedding_model}")
    typer.echo(f"Dimension: {store.dimension}")
    typer.echo(f"Snapshot:  {snapshot}")


@app.command()
def delete(
    doc_id: str = typer.Argument(..., help="ID of the document to delete"),
    snapshot: Optional[Path] = typer.Option(None, "--snapshot", help="Snapshot file (default: SNAPSHOT_PATH)"),
) -> None:
    """
    Delete one document from the snapshot.
    """
    settings = _load_settings()
    setup_logging(settings.log_level)
    snapshot = snapshot or settings.snapshot_path

    try:
        store = open_store(settings, snapshot)
    except VectorStoreError as e:
        _fail(e)

    if not store.delete(doc_id):
        typer.secho(f"NOT FOUND: {doc_id}", fg=typer.colors.YELLOW)
        raise typer.Exit(code=1)

    store.save(snapshot)
    typer.secho(f"Deleted {doc_id}", fg=typer.colors.GREEN)
