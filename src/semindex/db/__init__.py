"""Semindex storage layer."""

from semindex.db.connection import Database
from semindex.db.migrations import MIGRATIONS, run_migrations
from semindex.db.repository import Repository
from semindex.db.schema import initialize
from semindex.db.vectors import decode_vector, encode_vector

__all__ = [
    "Database",
    "Repository",
    "initialize",
    "run_migrations",
    "MIGRATIONS",
    "encode_vector",
    "decode_vector",
]
