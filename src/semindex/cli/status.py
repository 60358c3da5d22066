"""semindex stats / semindex list — index overview."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Annotated

import typer
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from semindex.cli.common import console, load_settings, open_repo, resolve_db
from semindex.cli.errors import err_no_db, err_storage
from semindex.errors import StorageError


def stats_cmd(
    db: Annotated[
        Path | None,
        typer.Option("--db", help="Index database (default: storage.path from config)."),
    ] = None,
    config_dir: Annotated[
        Path | None,
        typer.Option("--config-dir", help="Directory containing semindex.yaml."),
    ] = None,
) -> None:
    """Show document, chunk and embedding counts."""
    cfg = load_settings(config_dir)
    db_path = resolve_db(db, cfg)
    if not db_path.exists():
        console.print(err_no_db(str(db_path)))
        raise typer.Exit(1)

    try:
        with open_repo(db_path) as repo:
            stats = repo.get_stats()
            models = repo.list_embedding_models()
    except StorageError as exc:
        console.print(err_storage(str(exc)))
        raise typer.Exit(1) from exc

    size_mb = db_path.stat().st_size / (1024 * 1024)
    lines = [
        f"Database:    {escape(str(db_path))} ({size_mb:.1f} MB)",
        f"Documents:   [bold]{stats['documents']:,}[/]",
        f"Chunks:      [bold]{stats['chunks']:,}[/]",
        f"Embeddings:  [bold]{stats['embeddings']:,}[/]",
    ]
    for model, dimension, count in models:
        lines.append(f"  [dim]{escape(model)}[/] ({dimension} dims, {count:,} vectors)")
    console.print(Panel("\n".join(lines), title="[bold]Index Statistics[/]", expand=False))


def list_cmd(
    db: Annotated[
        Path | None,
        typer.Option("--db", help="Index database (default: storage.path from config)."),
    ] = None,
    config_dir: Annotated[
        Path | None,
        typer.Option("--config-dir", help="Directory containing semindex.yaml."),
    ] = None,
) -> None:
    """List indexed documents."""
    cfg = load_settings(config_dir)
    db_path = resolve_db(db, cfg)
    if not db_path.exists():
        console.print(err_no_db(str(db_path)))
        raise typer.Exit(1)

    try:
        with open_repo(db_path) as repo:
            rows = [
                (doc, repo.count_chunks_by_document(doc.id))
                for doc in repo.list_documents()
                if doc.id is not None
            ]
    except StorageError as exc:
        console.print(err_storage(str(exc)))
        raise typer.Exit(1) from exc

    if not rows:
        console.print("[dim]No documents indexed yet.[/]")
        return

    table = Table(show_header=True, header_style="bold")
    table.add_column("Path")
    table.add_column("Type", style="dim")
    table.add_column("Size", justify="right")
    table.add_column("Chunks", justify="right")
    table.add_column("Indexed", style="dim")
    for doc, chunk_count in rows:
        table.add_row(
            escape(doc.file_path),
            doc.file_type or "-",
            f"{doc.file_size:,}",
            str(chunk_count),
            _format_ts(doc.indexed_at),
        )
    console.print(table)


def _format_ts(epoch_seconds: int) -> str:
    return datetime.fromtimestamp(epoch_seconds, tz=timezone.utc).strftime("%Y-%m-%d %H:%M")
