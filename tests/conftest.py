"""Shared pytest fixtures."""

from __future__ import annotations

import pytest

from semindex.db.connection import Database
from semindex.db.schema import initialize


@pytest.fixture
def tmp_db(tmp_path):
    """File-based DB in tmp_path with schema initialized, closed after test."""
    db = Database(tmp_path / "semindex.db")
    conn = db.connect()
    initialize(conn)
    yield conn
    conn.close()


@pytest.fixture(autouse=True)
def isolated_config(tmp_path_factory, monkeypatch):
    """Keep the user's ~/.semindex/config.yaml and SEMINDEX_* env vars out of tests."""
    missing = tmp_path_factory.mktemp("home") / ".semindex" / "config.yaml"
    monkeypatch.setattr("semindex.config._GLOBAL_CONFIG_PATH", missing)
    for var in ("SEMINDEX_EMBEDDING_MODEL", "SEMINDEX_EMBEDDING_URL", "SEMINDEX_DB"):
        monkeypatch.delenv(var, raising=False)


class FakeEmbedder:
    """Deterministic stand-in for EmbeddingClient.

    Vectors come from *table* (exact text match) or, by default, from a
    small character-frequency histogram so similar texts score close.
    """

    def __init__(self, table=None, model="test/fake-embed", fail_on=None):
        self.model = model
        self.table = dict(table or {})
        self.fail_on = fail_on
        self.calls: list[str] = []

    def embed(self, text):
        from semindex.errors import EmbeddingServiceError

        self.calls.append(text)
        if self.fail_on is not None and self.fail_on in text:
            raise EmbeddingServiceError(f"refused: {self.fail_on}")
        if text in self.table:
            return list(self.table[text])
        vec = [0.0] * 8
        for ch in text:
            vec[ord(ch) % 8] += 1.0
        return vec

    def embed_many(self, texts):
        return [self.embed(t) for t in texts]


@pytest.fixture
def fake_embedder():
    return FakeEmbedder()


@pytest.fixture
def make_embedder():
    """Factory for FakeEmbedder instances with custom tables or failures."""
    return FakeEmbedder
