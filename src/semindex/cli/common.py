"""Helpers shared by the semindex CLI commands."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

import typer
from rich.console import Console
from rich.logging import RichHandler

from semindex.cli.errors import err_config
from semindex.config import SemindexConfig, load_config
from semindex.db.connection import Database
from semindex.db.repository import Repository
from semindex.db.schema import initialize
from semindex.errors import ConfigurationError
from semindex.ingest.embedding_client import EmbeddingClient

console = Console()


def setup_logging(verbose: bool) -> None:
    """Route the ``semindex`` logger through rich (DEBUG with --verbose, else WARNING)."""
    logger = logging.getLogger("semindex")
    logger.handlers.clear()
    handler = RichHandler(console=Console(stderr=True), show_path=False, markup=False)
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)
    logger.propagate = False


def load_settings(config_dir: Path | None) -> SemindexConfig:
    """Load config or exit 1 with an actionable message."""
    try:
        return load_config(project_dir=config_dir)
    except ConfigurationError as exc:
        console.print(err_config(str(exc)))
        raise typer.Exit(1) from exc


def resolve_db(db: Path | None, cfg: SemindexConfig) -> Path:
    return db if db is not None else Path(cfg.storage.path)


def make_embedder(cfg: SemindexConfig) -> EmbeddingClient:
    e = cfg.embedding
    return EmbeddingClient(
        model=e.model,
        base_url=e.base_url,
        timeout=e.timeout,
        num_retries=e.num_retries,
        max_concurrency=e.max_concurrency,
    )


@contextmanager
def open_repo(db_path: Path) -> Iterator[Repository]:
    """Open (or create) the index database, run migrations, close on exit."""
    with Database(db_path) as conn:
        initialize(conn)
        yield Repository(conn)
