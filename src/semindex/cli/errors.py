"""Rich error messages — what went wrong plus the action that fixes it.

Usage:
    from semindex.cli.errors import err_no_db
    console.print(err_no_db("semindex.db"))
    raise typer.Exit(1)
"""

from __future__ import annotations


def err_config(detail: str) -> str:
    """Configuration is invalid."""
    return (
        f"[red]Error:[/] Invalid configuration.\n"
        f"  {detail}\n"
        "  Fix semindex.yaml (or ~/.semindex/config.yaml) and retry."
    )


def err_no_db(db_path: str = "semindex.db") -> str:
    """No index database at *db_path*."""
    return (
        f"[red]Error:[/] No index found at '{db_path}'.\n"
        "  Run:  semindex index <directory>"
    )


def err_not_a_directory(path: str) -> str:
    """Index root is missing or not a directory."""
    return (
        f"[red]Error:[/] Directory does not exist: '{path}'\n"
        "  Pass an existing directory:  semindex index <directory>"
    )


def err_embedding_service(detail: str, base_url: str) -> str:
    """The embedding service could not produce a vector."""
    return (
        f"[red]Error:[/] Embedding service failed: {detail}\n"
        f"  Check that the service at {base_url} is running and the model is available.\n"
        "  For Ollama:  ollama pull nomic-embed-text"
    )


def err_storage(detail: str) -> str:
    """The index database could not be read or written."""
    return (
        f"[red]Error:[/] Index database error: {detail}\n"
        "  If the file is corrupt, delete it and re-run:  semindex index <directory>"
    )


def err_document_not_found(path: str) -> str:
    """Document path not present in the index."""
    return (
        f"[yellow]Not indexed:[/] '{path}' is not in the index.\n"
        "  Run:  semindex list  to see all indexed documents."
    )


def warn_no_embeddings(model: str) -> str:
    """Index holds no vectors for the configured model."""
    return (
        f"[yellow]No embeddings for model '{model}'.[/]\n"
        "  Index a directory first, or set embedding.model to the model used at index time."
    )


def err_dimension_mismatch(detail: str, model: str) -> str:
    """Query vector and stored vectors have different dimensions."""
    return (
        f"[red]Error:[/] Query and index vectors do not match: {detail}\n"
        f"  The model behind '{model}' now returns vectors of a different size.\n"
        "  Rebuild the index:  semindex clear --yes && semindex index <directory>"
    )
