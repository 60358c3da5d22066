"""Tests for semindex config loader."""

from __future__ import annotations

import warnings
from pathlib import Path

import pytest
import yaml

from semindex.config import SemindexConfig, load_config
from semindex.errors import ConfigurationError


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _write_yaml(path: Path, data: dict) -> None:
    path.write_text(yaml.dump(data), encoding="utf-8")


def _load(tmp_path: Path, global_cfg: Path | None = None) -> SemindexConfig:
    missing_global = tmp_path / "nonexistent" / "config.yaml"
    return load_config(project_dir=tmp_path, global_config_path=global_cfg or missing_global)


# ---------------------------------------------------------------------------
# Defaults with no config files present
# ---------------------------------------------------------------------------


def test_load_config_defaults_no_files(tmp_path: Path) -> None:
    """No config files → all hardcoded defaults."""
    cfg = _load(tmp_path)

    assert cfg.embedding.model == "ollama/nomic-embed-text"
    assert cfg.embedding.base_url == "http://localhost:11434"
    assert cfg.embedding.max_concurrency == 8
    assert cfg.chunking.chunk_size == 512
    assert cfg.chunking.overlap == 50
    assert cfg.chunking.streaming_threshold == 1024 * 1024
    assert cfg.scanner.use_gitignore is True
    assert ".md" in cfg.scanner.extensions
    assert cfg.storage.path == "semindex.db"
    assert cfg.search.top_k == 10
    assert cfg.search.min_similarity is None


# ---------------------------------------------------------------------------
# Layering
# ---------------------------------------------------------------------------


def test_load_config_global_overrides_defaults(tmp_path: Path) -> None:
    global_cfg = tmp_path / "config.yaml"
    _write_yaml(global_cfg, {"embedding": {"model": "ollama/mxbai-embed-large"}})

    cfg = _load(tmp_path, global_cfg)
    assert cfg.embedding.model == "ollama/mxbai-embed-large"
    assert cfg.chunking.chunk_size == 512


def test_load_config_global_empty_file(tmp_path: Path) -> None:
    global_cfg = tmp_path / "config.yaml"
    global_cfg.write_text("# nothing here\n", encoding="utf-8")
    assert _load(tmp_path, global_cfg).embedding.model == "ollama/nomic-embed-text"


def test_load_config_project_overrides_global(tmp_path: Path) -> None:
    global_cfg = tmp_path / "global.yaml"
    _write_yaml(global_cfg, {"chunking": {"chunk_size": 256, "overlap": 20}})
    _write_yaml(tmp_path / "semindex.yaml", {"chunking": {"chunk_size": 128}})

    cfg = _load(tmp_path, global_cfg)
    assert cfg.chunking.chunk_size == 128
    assert cfg.chunking.overlap == 20


def test_load_config_all_sections(tmp_path: Path) -> None:
    _write_yaml(
        tmp_path / "semindex.yaml",
        {
            "embedding": {"base_url": "http://gpu-box:11434", "timeout": 5, "max_concurrency": 2},
            "scanner": {"ignore": ["*.log"], "extensions": ["MD", ".txt"], "use_gitignore": False},
            "storage": {"path": "/var/tmp/idx.db"},
            "search": {"top_k": 3, "min_similarity": 0.25},
        },
    )
    cfg = _load(tmp_path)
    assert cfg.embedding.base_url == "http://gpu-box:11434"
    assert cfg.embedding.timeout == 5.0
    assert cfg.embedding.max_concurrency == 2
    assert cfg.scanner.ignore == ["*.log"]
    assert cfg.scanner.extensions == [".md", ".txt"]
    assert cfg.scanner.use_gitignore is False
    assert cfg.storage.path == "/var/tmp/idx.db"
    assert cfg.search.top_k == 3
    assert cfg.search.min_similarity == 0.25


# ---------------------------------------------------------------------------
# Environment overrides
# ---------------------------------------------------------------------------


def test_env_vars_override_files(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    _write_yaml(tmp_path / "semindex.yaml", {"embedding": {"model": "ollama/a"}})
    monkeypatch.setenv("SEMINDEX_EMBEDDING_MODEL", "ollama/b")
    monkeypatch.setenv("SEMINDEX_EMBEDDING_URL", "http://other:1234")
    monkeypatch.setenv("SEMINDEX_DB", "/data/idx.db")

    cfg = _load(tmp_path)
    assert cfg.embedding.model == "ollama/b"
    assert cfg.embedding.base_url == "http://other:1234"
    assert cfg.storage.path == "/data/idx.db"


def test_env_var_absent_does_not_override(tmp_path: Path) -> None:
    _write_yaml(tmp_path / "semindex.yaml", {"embedding": {"model": "ollama/a"}})
    assert _load(tmp_path).embedding.model == "ollama/a"


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


@pytest.mark.parametrize("bad_key", ["api_key", "openai_api_key", "token", "password"])
def test_global_config_rejects_api_key_fields(tmp_path: Path, bad_key: str) -> None:
    global_cfg = tmp_path / "config.yaml"
    _write_yaml(global_cfg, {"embedding": {bad_key: "sk-xxx"}})
    with pytest.raises(ConfigurationError, match="forbidden key"):
        _load(tmp_path, global_cfg)


def test_unparseable_yaml_raises(tmp_path: Path) -> None:
    (tmp_path / "semindex.yaml").write_text("chunking: [unclosed\n", encoding="utf-8")
    with pytest.raises(ConfigurationError, match="Cannot parse"):
        _load(tmp_path)


def test_non_mapping_yaml_raises(tmp_path: Path) -> None:
    (tmp_path / "semindex.yaml").write_text("- a\n- b\n", encoding="utf-8")
    with pytest.raises(ConfigurationError, match="mapping"):
        _load(tmp_path)


def test_non_numeric_value_raises(tmp_path: Path) -> None:
    _write_yaml(tmp_path / "semindex.yaml", {"chunking": {"chunk_size": "big"}})
    with pytest.raises(ConfigurationError, match="Invalid configuration value"):
        _load(tmp_path)


@pytest.mark.parametrize(
    "data",
    [
        {"chunking": {"chunk_size": 0}},
        {"chunking": {"overlap": -1}},
        {"chunking": {"streaming_threshold": -5}},
        {"embedding": {"max_concurrency": 0}},
        {"embedding": {"base_url": "localhost:11434"}},
        {"search": {"top_k": 0}},
        {"search": {"min_similarity": 1.5}},
    ],
)
def test_out_of_range_values_raise(tmp_path: Path, data: dict) -> None:
    _write_yaml(tmp_path / "semindex.yaml", data)
    with pytest.raises(ConfigurationError):
        _load(tmp_path)


def test_overlap_larger_than_chunk_size_allowed(tmp_path: Path) -> None:
    _write_yaml(tmp_path / "semindex.yaml", {"chunking": {"chunk_size": 10, "overlap": 20}})
    assert _load(tmp_path).chunking.overlap == 20


# ---------------------------------------------------------------------------
# Unknown key warnings
# ---------------------------------------------------------------------------


def test_unknown_top_level_key_warns(tmp_path: Path) -> None:
    _write_yaml(tmp_path / "semindex.yaml", {"retrieval": {"top_k": 3}})
    with warnings.catch_warnings(record=True) as caught:
        warnings.simplefilter("always")
        _load(tmp_path)
    assert any("retrieval" in str(w.message) for w in caught)
