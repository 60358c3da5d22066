"""Semindex CLI entry point."""

from __future__ import annotations

import importlib.metadata
from typing import Annotated

import typer

from semindex.cli.common import setup_logging
from semindex.cli.index import index_cmd
from semindex.cli.remove import clear_cmd, remove_cmd
from semindex.cli.search import search_cmd
from semindex.cli.status import list_cmd, stats_cmd


def _installed_version() -> str:
    try:
        return importlib.metadata.version("semindex")
    except importlib.metadata.PackageNotFoundError:
        return "dev"


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"semindex {_installed_version()}")
        raise typer.Exit()


app = typer.Typer(
    name="semindex",
    help=(
        "Semindex — incremental semantic search over local documents.\n\n"
        "  semindex index PATH    Index (or re-index) a directory.\n"
        "  semindex search QUERY  Find the chunks closest to a query."
    ),
    add_completion=False,
)


@app.callback()
def main_callback(
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            callback=_version_callback,
            is_eager=True,
            help="Show version and exit.",
        ),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Log per-file progress and skips."),
    ] = False,
) -> None:
    """Semindex — incremental semantic search over local documents."""
    setup_logging(verbose)


app.command("index")(index_cmd)
app.command("search")(search_cmd)
app.command("stats")(stats_cmd)
app.command("list")(list_cmd)
app.command("remove")(remove_cmd)
app.command("clear")(clear_cmd)


@app.command("version")
def version_cmd() -> None:
    """Show the installed semindex version."""
    typer.echo(f"semindex {_installed_version()}")


if __name__ == "__main__":
    app()
