"""Tests for semindex index CLI command."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import patch

import pytest
from typer.testing import CliRunner

from semindex.cli.main import app
from semindex.db.connection import Database
from semindex.db.repository import Repository

runner = CliRunner()


# ------------------------------------------------------------------
# Fixtures
# ------------------------------------------------------------------


@pytest.fixture
def workdir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Run each command from an empty directory (no semindex.yaml)."""
    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture
def docs(workdir: Path) -> Path:
    root = workdir / "docs"
    root.mkdir()
    (root / "a.md").write_text("alpha " * 200, encoding="utf-8")
    (root / "b.txt").write_text("bravo " * 10, encoding="utf-8")
    return root


@pytest.fixture
def embedder(make_embedder):
    """Patch the CLI's EmbeddingClient with a deterministic fake."""
    instances = []

    def factory(**kwargs):
        fake = make_embedder(model=kwargs["model"], fail_on="POISON")
        instances.append(fake)
        return fake

    with patch("semindex.cli.common.EmbeddingClient", side_effect=factory):
        yield instances


def _stats(db_path: Path) -> dict[str, int]:
    with Database(db_path) as conn:
        return Repository(conn).get_stats()


# ------------------------------------------------------------------
# Input validation
# ------------------------------------------------------------------


def test_index_missing_directory_exits_1(workdir, embedder):
    result = runner.invoke(app, ["index", str(workdir / "nope"), "--db", str(workdir / "i.db")])
    assert result.exit_code == 1
    assert "does not exist" in result.output


def test_index_invalid_chunk_size_exits_1(docs, workdir, embedder):
    result = runner.invoke(
        app, ["index", str(docs), "--db", str(workdir / "i.db"), "--chunk-size", "0"]
    )
    assert result.exit_code == 1
    assert "Invalid configuration" in result.output


def test_index_missing_api_key_exits_1(docs, workdir, embedder, monkeypatch):
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    monkeypatch.setenv("SEMINDEX_EMBEDDING_MODEL", "openai/text-embedding-3-small")
    result = runner.invoke(app, ["index", str(docs), "--db", str(workdir / "i.db")])
    assert result.exit_code == 1
    assert "OPENAI_API_KEY" in result.output


# ------------------------------------------------------------------
# Indexing
# ------------------------------------------------------------------


def test_index_creates_db_and_reports(docs, workdir, embedder):
    db_path = workdir / "i.db"
    assert not db_path.exists()

    result = runner.invoke(app, ["index", str(docs), "--db", str(db_path)])

    assert result.exit_code == 0, result.output
    assert db_path.exists()
    assert "indexed: 2" in result.output
    assert "failed: 0" in result.output
    stats = _stats(db_path)
    assert stats["documents"] == 2
    assert stats["chunks"] == stats["embeddings"] > 0


def test_index_uses_default_db_from_config(docs, workdir, embedder):
    result = runner.invoke(app, ["index", str(docs)])
    assert result.exit_code == 0, result.output
    assert (workdir / "semindex.db").exists()


def test_index_second_run_unchanged(docs, workdir, embedder):
    db_path = workdir / "i.db"
    runner.invoke(app, ["index", str(docs), "--db", str(db_path)])
    result = runner.invoke(app, ["index", str(docs), "--db", str(db_path)])
    assert result.exit_code == 0
    assert "unchanged: 2" in result.output
    assert "indexed: 0" in result.output


def test_index_chunk_size_flag(docs, workdir, embedder):
    small = workdir / "small.db"
    large = workdir / "large.db"
    runner.invoke(app, ["index", str(docs), "--db", str(small), "--chunk-size", "50", "--overlap", "5"])
    runner.invoke(app, ["index", str(docs), "--db", str(large), "--chunk-size", "5000"])
    assert _stats(small)["chunks"] > _stats(large)["chunks"] == 2


def test_index_ignore_flag(docs, workdir, embedder):
    db_path = workdir / "i.db"
    result = runner.invoke(app, ["index", str(docs), "--db", str(db_path), "--ignore", "*.txt"])
    assert result.exit_code == 0
    assert _stats(db_path)["documents"] == 1


def test_index_reports_failed_files_and_continues(docs, workdir, embedder):
    (docs / "bad.md").write_text("POISON", encoding="utf-8")
    db_path = workdir / "i.db"

    result = runner.invoke(app, ["index", str(docs), "--db", str(db_path)])

    assert result.exit_code == 0
    assert "failed: 1" in result.output
    assert "POISON" in result.output
    assert _stats(db_path)["documents"] == 2


def test_index_reads_project_config(docs, workdir, embedder):
    (workdir / "semindex.yaml").write_text(
        "embedding:\n  model: ollama/custom-embed\nchunking:\n  chunk_size: 64\n",
        encoding="utf-8",
    )
    result = runner.invoke(app, ["index", str(docs), "--db", str(workdir / "i.db")])
    assert result.exit_code == 0, result.output
    assert embedder[0].model == "ollama/custom-embed"
