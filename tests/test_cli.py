"""
Tests for the typer CLI, with settings and the embedding provider stubbed.
"""
import json
import logging

import pytest
from typer.testing import CliRunner

from conftest import FakeEmbeddingProvider
from memory_vector_store import cli
from memory_vector_store.config import Settings
from memory_vector_store.errors import ConfigurationError

runner = CliRunner()


@pytest.fixture
def snapshot(tmp_path):
    return tmp_path / "data" / "store.jsonl"


@pytest.fixture(autouse=True)
def restore_logging():
    # setup_logging replaces root handlers with one bound to the runner's stdout
    handlers = logging.root.handlers[:]
    level = logging.root.level
    yield
    logging.root.handlers[:] = handlers
    logging.root.setLevel(level)


@pytest.fixture(autouse=True)
def stub_environment(monkeypatch, snapshot):
    settings = Settings(openai_api_key="sk-test-1234567890", snapshot_path=snapshot, log_level="WARNING")
    monkeypatch.setattr(cli, "get_settings", lambda: settings)
    monkeypatch.setattr(cli, "build_provider", lambda s: FakeEmbeddingProvider(dimension=1536))
    return settings


@pytest.fixture
def notes(tmp_path):
    path = tmp_path / "notes.txt"
    path.write_text("Cats are small furry animals.\n\nPython is a programming language.", encoding="utf-8")
    return path


class TestCli:
    """End-to-end CLI commands against a temporary snapshot."""

    def test_version(self):
        result = runner.invoke(cli.app, ["version"])

        assert result.exit_code == 0
        assert "memory-vector-store 0.1.0" in result.output

    def test_health(self):
        result = runner.invoke(cli.app, ["health"])

        assert result.exit_code == 0
        assert "OK" in result.output

    def test_configuration_error_is_fatal(self, monkeypatch):
        def broken():
            raise ConfigurationError("Required: OPENAI_API_KEY")

        monkeypatch.setattr(cli, "get_settings", broken)

        result = runner.invoke(cli.app, ["stats"])

        assert result.exit_code == 1

    def test_health_unknown_model(self, monkeypatch, snapshot):
        """An unresolvable model dimension is reported, not a traceback."""
        settings = Settings(
            openai_api_key="sk-test-1234567890",
            openai_embedding_model="mystery-model",
            snapshot_path=snapshot,
            log_level="WARNING",
        )
        monkeypatch.setattr(cli, "get_settings", lambda: settings)

        result = runner.invoke(cli.app, ["health"])

        assert result.exit_code == 1
        assert "Unknown embedding model" in result.output
        assert not isinstance(result.exception, ConfigurationError)

    def test_corrupt_snapshot(self, snapshot):
        """A snapshot that is not valid JSONL fails cleanly."""
        snapshot.parent.mkdir(parents=True)
        snapshot.write_text("not json\n", encoding="utf-8")

        result = runner.invoke(cli.app, ["stats"])

        assert result.exit_code == 1
        assert "Corrupt snapshot" in result.output
        assert isinstance(result.exception, SystemExit)

    def test_ingest_writes_snapshot(self, notes, snapshot):
        result = runner.invoke(cli.app, ["ingest", str(notes), "--chunk-chars", "40"])

        assert result.exit_code == 0, result.output
        records = [json.loads(line) for line in snapshot.read_text(encoding="utf-8").splitlines()]
        assert [r["id"] for r in records] == ["notes#1", "notes#2"]
        assert all(len(r["embedding"]) == 1536 for r in records)

    def test_ingest_missing_file_fails(self, tmp_path):
        result = runner.invoke(cli.app, ["ingest", str(tmp_path / "missing.txt")])

        assert result.exit_code == 1

    def test_ingest_is_cumulative(self, notes, snapshot, tmp_path):
        other = tmp_path / "other.jsonl"
        other.write_text('{"id": "x", "content": "extra", "metadata": {"kind": "extra"}}\n', encoding="utf-8")

        runner.invoke(cli.app, ["ingest", str(notes), "--chunk-chars", "40"])
        runner.invoke(cli.app, ["ingest", str(other)])

        result = runner.invoke(cli.app, ["stats"])
        assert result.exit_code == 0
        assert "Documents: 3" in result.output
        assert "Dimension: 1536" in result.output

    def test_search(self, notes):
        runner.invoke(cli.app, ["ingest", str(notes), "--chunk-chars", "40"])

        result = runner.invoke(cli.app, ["search", "Python is a programming language.", "--top-k", "1"])

        assert result.exit_code == 0, result.output
        assert "Rank: 1" in result.output
        assert "ID: notes#2" in result.output
        assert "Rank: 2" not in result.output

    def test_search_with_where(self, notes):
        runner.invoke(cli.app, ["ingest", str(notes), "--chunk-chars", "40"])

        result = runner.invoke(cli.app, ["search", "anything", "--top-k", "5", "--where", "chunk=1"])
        assert result.exit_code == 0, result.output
        assert "ID: notes#1" in result.output
        assert "ID: notes#2" not in result.output

        result = runner.invoke(cli.app, ["search", "anything", "--where", "source=elsewhere"])
        assert "No results found." in result.output

    def test_search_bad_where(self):
        result = runner.invoke(cli.app, ["search", "anything", "--where", "novalue"])

        assert result.exit_code == 2

    def test_search_empty_snapshot(self):
        result = runner.invoke(cli.app, ["search", "anything"])

        assert result.exit_code == 0
        assert "No results found." in result.output

    def test_delete(self, notes):
        runner.invoke(cli.app, ["ingest", str(notes), "--chunk-chars", "40"])

        result = runner.invoke(cli.app, ["delete", "notes#1"])
        assert result.exit_code == 0
        assert "Deleted notes#1" in result.output

        result = runner.invoke(cli.app, ["delete", "notes#1"])
        assert result.exit_code == 1

        result = runner.invoke(cli.app, ["stats"])
        assert "Documents: 1" in result.output
