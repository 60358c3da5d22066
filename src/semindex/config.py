"""Semindex configuration loader.

Priority (high → low):
  1. CLI flags              (handled at call site — not in this module)
  2. Environment variables  (SEMINDEX_EMBEDDING_MODEL, SEMINDEX_EMBEDDING_URL, SEMINDEX_DB)
  3. Per-project semindex.yaml
  4. Global ~/.semindex/config.yaml  (no API keys)
  5. Hardcoded defaults

Global config must never contain API keys; use environment variables instead.
All YAML reads use yaml.safe_load() — never yaml.load().
"""

from __future__ import annotations

import os
import re
import warnings
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from semindex.errors import ConfigurationError
from semindex.ingest.embedding_client import DEFAULT_BASE_URL, DEFAULT_MODEL
from semindex.ingest.indexer import DEFAULT_STREAMING_THRESHOLD
from semindex.ingest.scanner import DEFAULT_EXTENSIONS, DEFAULT_MAX_FILE_SIZE

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

_GLOBAL_CONFIG_DIR: Path = Path.home() / ".semindex"
_GLOBAL_CONFIG_PATH: Path = _GLOBAL_CONFIG_DIR / "config.yaml"
_PROJECT_CONFIG_NAME: str = "semindex.yaml"

# Fields that suggest a credential, forbidden in global config.
_API_KEY_RE: re.Pattern[str] = re.compile(
    r"api[_\-]?(?:key|secret)"
    r"|_token$"
    r"|^token$"
    r"|_secret$"
    r"|^secret$"
    r"|passw(?:ord|d)"
    r"|credential",
    re.IGNORECASE,
)

_KNOWN_SECTIONS: frozenset[str] = frozenset(
    ["embedding", "chunking", "scanner", "storage", "search"]
)


# ---------------------------------------------------------------------------
# Data model
# ---------------------------------------------------------------------------


@dataclass
class EmbeddingCfg:
    """Embedding service configuration (semindex.yaml: embedding:)."""

    model: str = DEFAULT_MODEL
    base_url: str = DEFAULT_BASE_URL
    timeout: float = 60.0
    num_retries: int = 3
    max_concurrency: int = 8


@dataclass
class ChunkingCfg:
    """Chunk window configuration in characters (semindex.yaml: chunking:).

    Attributes:
        chunk_size: Window length.
        overlap: Characters shared by consecutive windows.
        streaming_threshold: Files above this many bytes use the streaming
            chunker; 0 streams every file.
    """

    chunk_size: int = 512
    overlap: int = 50
    streaming_threshold: int = DEFAULT_STREAMING_THRESHOLD


@dataclass
class ScannerCfg:
    """File scanner configuration (semindex.yaml: scanner:)."""

    ignore: list[str] = field(default_factory=list)
    use_gitignore: bool = True
    max_file_size: int = DEFAULT_MAX_FILE_SIZE
    extensions: list[str] = field(default_factory=lambda: sorted(DEFAULT_EXTENSIONS))


@dataclass
class StorageCfg:
    """Storage location (semindex.yaml: storage:)."""

    path: str = "semindex.db"


@dataclass
class SearchCfg:
    """Search defaults (semindex.yaml: search:)."""

    top_k: int = 10
    min_similarity: float | None = None


@dataclass
class SemindexConfig:
    """Root configuration object, built by load_config() from merged YAML layers."""

    embedding: EmbeddingCfg = field(default_factory=EmbeddingCfg)
    chunking: ChunkingCfg = field(default_factory=ChunkingCfg)
    scanner: ScannerCfg = field(default_factory=ScannerCfg)
    storage: StorageCfg = field(default_factory=StorageCfg)
    search: SearchCfg = field(default_factory=SearchCfg)

    def validate(self) -> None:
        """Raise ConfigurationError for any value the pipeline cannot run with.

        ``overlap >= chunk_size`` is allowed; the chunker warns and advances
        one character at a time.
        """
        c = self.chunking
        if c.chunk_size < 1:
            raise ConfigurationError(f"chunking.chunk_size must be >= 1, got {c.chunk_size}")
        if c.overlap < 0:
            raise ConfigurationError(f"chunking.overlap must be >= 0, got {c.overlap}")
        if c.streaming_threshold < 0:
            raise ConfigurationError(
                f"chunking.streaming_threshold must be >= 0, got {c.streaming_threshold}"
            )
        if self.scanner.max_file_size < 1:
            raise ConfigurationError(
                f"scanner.max_file_size must be >= 1, got {self.scanner.max_file_size}"
            )
        e = self.embedding
        if e.max_concurrency < 1:
            raise ConfigurationError(
                f"embedding.max_concurrency must be >= 1, got {e.max_concurrency}"
            )
        if e.timeout <= 0:
            raise ConfigurationError(f"embedding.timeout must be > 0, got {e.timeout}")
        if not e.base_url.startswith(("http://", "https://")):
            raise ConfigurationError(
                f"embedding.base_url must be an http(s) URL, got '{e.base_url}'"
            )
        if self.search.top_k < 1:
            raise ConfigurationError(f"search.top_k must be >= 1, got {self.search.top_k}")
        ms = self.search.min_similarity
        if ms is not None and not -1.0 <= ms <= 1.0:
            raise ConfigurationError(f"search.min_similarity must be in [-1, 1], got {ms}")


# ---------------------------------------------------------------------------
# Validation helpers
# ---------------------------------------------------------------------------


def _check_no_api_keys(data: dict[str, Any], source: Path) -> None:
    """Raise ConfigurationError if *data* contains any API-key-like key names."""

    def _scan(obj: Any, path: str) -> None:
        if isinstance(obj, dict):
            for k, v in obj.items():
                full = f"{path}.{k}" if path else k
                if _API_KEY_RE.search(str(k)):
                    raise ConfigurationError(
                        f"Global config '{source}' contains a forbidden key '{full}'.\n"
                        f"  API keys must be set via environment variables, not config files.\n"
                        f"  Remove '{full}' from {source.name} and use:\n"
                        f"    export {str(k).upper().replace('-', '_')}=<value>"
                    )
                _scan(v, full)

    _scan(data, "")


def _warn_unknown_keys(data: dict[str, Any], source: Path) -> None:
    """Emit a UserWarning for unrecognised top-level keys."""
    for key in data:
        if key not in _KNOWN_SECTIONS:
            warnings.warn(
                f"Unknown config key '{key}' in '{source}' — ignored.",
                UserWarning,
                stacklevel=4,
            )


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"Cannot parse '{path}': {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigurationError(f"'{path}' must contain a mapping at the top level")
    return data


# ---------------------------------------------------------------------------
# Merge + build
# ---------------------------------------------------------------------------


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Return a new dict that is *base* deep-merged with *override*."""
    result = dict(base)
    for k, v in override.items():
        if k in result and isinstance(result[k], dict) and isinstance(v, dict):
            result[k] = _deep_merge(result[k], v)
        else:
            result[k] = v
    return result


def _cfg_from_dict(data: dict[str, Any]) -> SemindexConfig:
    """Build a *SemindexConfig* from a merged raw YAML dict."""
    cfg = SemindexConfig()

    try:
        if "embedding" in data:
            e = data["embedding"] or {}
            cfg.embedding = EmbeddingCfg(
                model=str(e.get("model", cfg.embedding.model)),
                base_url=str(e.get("base_url", cfg.embedding.base_url)),
                timeout=float(e.get("timeout", cfg.embedding.timeout)),
                num_retries=int(e.get("num_retries", cfg.embedding.num_retries)),
                max_concurrency=int(e.get("max_concurrency", cfg.embedding.max_concurrency)),
            )

        if "chunking" in data:
            c = data["chunking"] or {}
            cfg.chunking = ChunkingCfg(
                chunk_size=int(c.get("chunk_size", cfg.chunking.chunk_size)),
                overlap=int(c.get("overlap", cfg.chunking.overlap)),
                streaming_threshold=int(
                    c.get("streaming_threshold", cfg.chunking.streaming_threshold)
                ),
            )

        if "scanner" in data:
            s = data["scanner"] or {}
            cfg.scanner = ScannerCfg(
                ignore=[str(p) for p in s.get("ignore", cfg.scanner.ignore)],
                use_gitignore=bool(s.get("use_gitignore", cfg.scanner.use_gitignore)),
                max_file_size=int(s.get("max_file_size", cfg.scanner.max_file_size)),
                extensions=[
                    str(x).lower() if str(x).startswith(".") else f".{str(x).lower()}"
                    for x in s.get("extensions", cfg.scanner.extensions)
                ],
            )

        if "storage" in data:
            st = data["storage"] or {}
            cfg.storage = StorageCfg(path=str(st.get("path", cfg.storage.path)))

        if "search" in data:
            sr = data["search"] or {}
            min_sim = sr.get("min_similarity", cfg.search.min_similarity)
            cfg.search = SearchCfg(
                top_k=int(sr.get("top_k", cfg.search.top_k)),
                min_similarity=float(min_sim) if min_sim is not None else None,
            )
    except (TypeError, ValueError, AttributeError) as exc:
        raise ConfigurationError(f"Invalid configuration value: {exc}") from exc

    return cfg


def _apply_env_overrides(cfg: SemindexConfig) -> SemindexConfig:
    """Apply SEMINDEX_* environment variable overrides."""
    if model := os.environ.get("SEMINDEX_EMBEDDING_MODEL"):
        cfg.embedding.model = model
    if url := os.environ.get("SEMINDEX_EMBEDDING_URL"):
        cfg.embedding.base_url = url
    if db := os.environ.get("SEMINDEX_DB"):
        cfg.storage.path = db
    return cfg


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_config(
    project_dir: Path | None = None,
    *,
    global_config_path: Path | None = None,
) -> SemindexConfig:
    """Load, validate and return a merged *SemindexConfig*.

    Applies layers in order: global → per-project → env vars.
    CLI flag overrides must be applied by the caller (then call
    ``cfg.validate()`` again).

    Args:
        project_dir: Directory to search for *semindex.yaml*. Defaults to CWD.
        global_config_path: Override the global config path (for testing).

    Raises:
        ConfigurationError: If a file cannot be parsed, the global config
            contains API-key-like fields, or a value is out of range.
    """
    global_path = global_config_path if global_config_path is not None else _GLOBAL_CONFIG_PATH
    search_dir = project_dir if project_dir is not None else Path.cwd()

    merged: dict[str, Any] = {}

    # Layer 1: global config
    if global_path.exists():
        raw_global = _read_yaml(global_path)
        _check_no_api_keys(raw_global, global_path)
        _warn_unknown_keys(raw_global, global_path)
        merged = _deep_merge(merged, raw_global)

    # Layer 2: per-project config
    project_cfg_path = search_dir / _PROJECT_CONFIG_NAME
    if project_cfg_path.exists():
        raw_project = _read_yaml(project_cfg_path)
        _warn_unknown_keys(raw_project, project_cfg_path)
        merged = _deep_merge(merged, raw_project)

    cfg = _cfg_from_dict(merged)

    # Layer 3: env var overrides
    cfg = _apply_env_overrides(cfg)

    cfg.validate()
    return cfg
