"""SQLite connection layer.

Every connection loads sqlite-vec. Vectors are stored in its float32 blob
format, and the schema relies on its SQL functions: an insert trigger checks
``vec_length(vector)`` against the declared ``dimension``. A connection
without the extension cannot write embeddings.
"""

from __future__ import annotations

import logging
import sqlite3
from pathlib import Path

import sqlite_vec

logger = logging.getLogger(__name__)

_PRAGMAS = (
    "PRAGMA foreign_keys = ON",
    "PRAGMA journal_mode = WAL",
    "PRAGMA busy_timeout = 5000",
)


def _load_vec(conn: sqlite3.Connection) -> str:
    conn.enable_load_extension(True)
    try:
        sqlite_vec.load(conn)
    finally:
        conn.enable_load_extension(False)
    return conn.execute("SELECT vec_version()").fetchone()[0]


class Database:
    """An index database file, opened with sqlite-vec and foreign keys enabled.

    Args:
        db_path: Path to the SQLite file. The file and its parent
            directories are created on first connect.
    """

    def __init__(self, db_path: Path | str) -> None:
        self.db_path = Path(db_path)
        self._conn: sqlite3.Connection | None = None

    def connect(self) -> sqlite3.Connection:
        """Open and configure a new connection. The caller owns closing it."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        version = _load_vec(conn)
        for pragma in _PRAGMAS:
            conn.execute(pragma)
        logger.debug("Opened %s (sqlite-vec %s)", self.db_path, version)
        return conn

    def __enter__(self) -> sqlite3.Connection:
        self._conn = self.connect()
        return self._conn

    def __exit__(self, *args: object) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None
