"""semindex remove / semindex clear — document lifecycle management.

Removing a document deletes its chunks and their embeddings in the same
transaction.

Usage:
  semindex remove docs/guide.md
  semindex remove docs/guide.md --yes
  semindex clear --yes
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
from rich.markup import escape

from semindex.cli.common import console, load_settings, open_repo, resolve_db
from semindex.cli.errors import err_document_not_found, err_no_db, err_storage
from semindex.errors import StorageError


def remove_cmd(
    path: Annotated[str, typer.Argument(help="Path of the document to remove.")],
    db: Annotated[
        Path | None,
        typer.Option("--db", help="Index database (default: storage.path from config)."),
    ] = None,
    config_dir: Annotated[
        Path | None,
        typer.Option("--config-dir", help="Directory containing semindex.yaml."),
    ] = None,
    yes: Annotated[
        bool,
        typer.Option("--yes", "-y", help="Skip confirmation prompt."),
    ] = False,
) -> None:
    """Remove a document and all its chunks and embeddings from the index."""
    cfg = load_settings(config_dir)
    db_path = resolve_db(db, cfg)
    if not db_path.exists():
        console.print(err_no_db(str(db_path)))
        raise typer.Exit(1)

    try:
        with open_repo(db_path) as repo:
            existing = repo.find_document_by_path(path)
            if existing is None:
                # Documents are stored under resolved absolute paths.
                existing = repo.find_document_by_path(str(Path(path).resolve()))
            if existing is None or existing.id is None:
                console.print(err_document_not_found(path))
                raise typer.Exit(0)

            chunk_count = repo.count_chunks_by_document(existing.id)
            console.print(f"\nRemove document: [bold]{escape(existing.file_path)}[/]")
            console.print(f"  Chunks: {chunk_count} (and their embeddings)")

            if not yes and not typer.confirm("Confirm removal?", default=False):
                console.print("[dim]Cancelled.[/]")
                raise typer.Exit(0)

            repo.delete_document(existing.id)
    except StorageError as exc:
        console.print(err_storage(str(exc)))
        raise typer.Exit(1) from exc

    console.print(f"\n[green]✓[/] Removed: {escape(existing.file_path)}")


def clear_cmd(
    db: Annotated[
        Path | None,
        typer.Option("--db", help="Index database (default: storage.path from config)."),
    ] = None,
    config_dir: Annotated[
        Path | None,
        typer.Option("--config-dir", help="Directory containing semindex.yaml."),
    ] = None,
    yes: Annotated[
        bool,
        typer.Option("--yes", "-y", help="Skip confirmation prompt."),
    ] = False,
) -> None:
    """Delete every document, chunk and embedding from the index."""
    cfg = load_settings(config_dir)
    db_path = resolve_db(db, cfg)
    if not db_path.exists():
        console.print(err_no_db(str(db_path)))
        raise typer.Exit(1)

    try:
        with open_repo(db_path) as repo:
            stats = repo.get_stats()
            if not yes and not typer.confirm(
                f"Delete {stats['documents']} documents and {stats['chunks']} chunks?",
                default=False,
            ):
                console.print("[dim]Cancelled.[/]")
                raise typer.Exit(0)
            repo.clear_all()
    except StorageError as exc:
        console.print(err_storage(str(exc)))
        raise typer.Exit(1) from exc

    console.print("[green]✓[/] Index cleared.")
