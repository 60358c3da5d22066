"""semindex search — rank indexed chunks against a query."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
from rich.markup import escape
from rich.panel import Panel
from rich.text import Text

from semindex.cli.common import console, load_settings, make_embedder, open_repo, resolve_db
from semindex.cli.errors import (
    err_dimension_mismatch,
    err_embedding_service,
    err_no_db,
    err_storage,
    warn_no_embeddings,
)
from semindex.errors import EmbeddingServiceError, StorageError
from semindex.search.engine import SemanticSearch

_PREVIEW_CHARS = 600


def search_cmd(
    query: Annotated[str, typer.Argument(help="Search query.")],
    top_k: Annotated[
        int | None, typer.Option("--top-k", "-k", min=1, help="Number of results.")
    ] = None,
    min_similarity: Annotated[
        float | None,
        typer.Option("--min-similarity", min=-1.0, max=1.0, help="Drop results below this score."),
    ] = None,
    db: Annotated[
        Path | None,
        typer.Option("--db", help="Index database (default: storage.path from config)."),
    ] = None,
    config_dir: Annotated[
        Path | None,
        typer.Option("--config-dir", help="Directory containing semindex.yaml."),
    ] = None,
) -> None:
    """Search the index for chunks semantically closest to QUERY."""
    cfg = load_settings(config_dir)
    db_path = resolve_db(db, cfg)
    if not db_path.exists():
        console.print(err_no_db(str(db_path)))
        raise typer.Exit(1)

    if not query.strip():
        console.print("[red]Error:[/] Query must not be empty.")
        raise typer.Exit(1)

    k = top_k if top_k is not None else cfg.search.top_k
    floor = min_similarity if min_similarity is not None else cfg.search.min_similarity

    try:
        with open_repo(db_path) as repo:
            models = {model for model, _, _ in repo.list_embedding_models()}
            if cfg.embedding.model not in models:
                console.print(warn_no_embeddings(cfg.embedding.model))
                raise typer.Exit(0)
            results = SemanticSearch(repo, make_embedder(cfg)).search(
                query, top_k=k, min_similarity=floor
            )
    except EmbeddingServiceError as exc:
        console.print(err_embedding_service(str(exc), cfg.embedding.base_url))
        raise typer.Exit(1) from exc
    except StorageError as exc:
        console.print(err_storage(str(exc)))
        raise typer.Exit(1) from exc
    except ValueError as exc:
        console.print(err_dimension_mismatch(str(exc), cfg.embedding.model))
        raise typer.Exit(1) from exc

    console.print(f'Searching for: [bold]"{escape(query)}"[/]\n')
    if not results:
        console.print("[dim]No results found.[/]")
        return

    for rank, result in enumerate(results, start=1):
        text = result.content
        if len(text) > _PREVIEW_CHARS:
            text = text[:_PREVIEW_CHARS] + "…"
        console.print(
            Panel(
                Text(text),
                title=(
                    f"[bold]#{rank}[/] {escape(result.document.file_path)} "
                    f"[dim](chunk {result.chunk.chunk_index}, "
                    f"chars {result.chunk.start_char}–{result.chunk.end_char})[/]"
                ),
                subtitle=f"similarity {result.similarity:.4f}",
                expand=True,
            )
        )
