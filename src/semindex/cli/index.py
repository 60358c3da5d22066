"""semindex index — incrementally index a directory tree.

Unchanged files (same content hash and mtime) are skipped. Changed files
have their chunks and embeddings replaced. A file that fails to index is
reported and the run continues.
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
from rich.progress import BarColumn, MofNCompleteColumn, Progress, SpinnerColumn, TextColumn

from semindex.cli.common import console, load_settings, make_embedder, open_repo, resolve_db
from semindex.cli.errors import err_config, err_not_a_directory, err_storage
from semindex.errors import ConfigurationError, StorageError
from semindex.ingest.embedding_client import validate_api_key
from semindex.ingest.indexer import DocumentIndexer
from semindex.ingest.scanner import FileScanner


def index_cmd(
    path: Annotated[Path, typer.Argument(help="Directory to index.")],
    db: Annotated[
        Path | None,
        typer.Option("--db", help="Index database (default: storage.path from config)."),
    ] = None,
    config_dir: Annotated[
        Path | None,
        typer.Option("--config-dir", help="Directory containing semindex.yaml."),
    ] = None,
    chunk_size: Annotated[
        int | None, typer.Option("--chunk-size", help="Chunk size in characters.")
    ] = None,
    overlap: Annotated[
        int | None, typer.Option("--overlap", help="Overlap between chunks in characters.")
    ] = None,
    ignore: Annotated[
        list[str] | None,
        typer.Option("--ignore", help="Glob pattern to exclude (repeatable)."),
    ] = None,
    stream_threshold: Annotated[
        int | None,
        typer.Option("--stream-threshold", help="Stream files above this size in bytes (0 = always)."),
    ] = None,
) -> None:
    """Index (or re-index) all supported files under PATH."""
    cfg = load_settings(config_dir)
    if chunk_size is not None:
        cfg.chunking.chunk_size = chunk_size
    if overlap is not None:
        cfg.chunking.overlap = overlap
    if stream_threshold is not None:
        cfg.chunking.streaming_threshold = stream_threshold
    if ignore:
        cfg.scanner.ignore = [*cfg.scanner.ignore, *ignore]

    try:
        cfg.validate()
        validate_api_key(cfg.embedding.model)
    except ConfigurationError as exc:
        console.print(err_config(str(exc)))
        raise typer.Exit(1) from exc

    if not path.is_dir():
        console.print(err_not_a_directory(str(path)))
        raise typer.Exit(1)

    scanner = FileScanner(
        ignore=cfg.scanner.ignore,
        extensions=set(cfg.scanner.extensions),
        max_file_size=cfg.scanner.max_file_size,
        use_gitignore=cfg.scanner.use_gitignore,
    )

    console.print(f"[bold]→ Indexing[/] {path}")
    try:
        with open_repo(resolve_db(db, cfg)) as repo:
            indexer = DocumentIndexer(
                repo,
                make_embedder(cfg),
                chunk_size=cfg.chunking.chunk_size,
                overlap=cfg.chunking.overlap,
                streaming_threshold=cfg.chunking.streaming_threshold,
                scanner=scanner,
            )
            with Progress(
                SpinnerColumn(),
                TextColumn("[progress.description]{task.description}"),
                BarColumn(),
                MofNCompleteColumn(),
                transient=True,
                console=console,
            ) as prog:
                task = prog.add_task("Indexing files…", total=None)

                def _on_progress(processed: int, total: int) -> None:
                    prog.update(task, completed=processed, total=total)

                report = indexer.index_directory(path, on_progress=_on_progress)
            stats = repo.get_stats()
    except ConfigurationError as exc:
        console.print(err_config(str(exc)))
        raise typer.Exit(1) from exc
    except StorageError as exc:
        console.print(err_storage(str(exc)))
        raise typer.Exit(1) from exc

    console.print(
        f"  [green]✓[/] {report.processed}/{report.total} files processed  |  "
        f"indexed: {report.indexed}  |  unchanged: {report.unchanged}  |  "
        f"failed: {len(report.failures)}"
    )
    for failure in report.failures:
        console.print(f"  [red]✗[/] {failure.path}: {failure.error}")
    console.print(
        f"  [dim]Index now holds {stats['documents']} documents, "
        f"{stats['chunks']} chunks, {stats['embeddings']} embeddings[/]"
    )
