"""Repository pattern for all semindex database operations.

Single interface for documents, chunks and embeddings. Mutations run inside
``Repository.transaction()`` so a file's (document, chunks, embeddings) set is
either fully present or fully absent.
"""

from __future__ import annotations

import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager

from semindex.db.models import Chunk, Document, Embedding
from semindex.db.vectors import decode_vector, encode_vector
from semindex.errors import StorageError

_DOCUMENT_COLUMNS = (
    "id, file_path, file_name, file_size, last_modified, content_hash, indexed_at, file_type"
)
_CHUNK_COLUMNS = (
    "id, document_id, chunk_index, content, start_char, end_char, token_count, created_at"
)


class Repository:
    """Data access layer for documents, chunks and embeddings.

    Wraps an open sqlite3.Connection. The connection is owned by the caller
    and must be closed after use.
    """

    def __init__(self, conn: sqlite3.Connection) -> None:
        """Initialise with an open database connection.

        Args:
            conn: An open sqlite3.Connection with the schema initialised
                (see semindex.db.schema.initialize).
        """
        self._conn = conn
        self._depth = 0

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------

    @contextmanager
    def transaction(self) -> Iterator[Repository]:
        """Group mutations into one atomic unit.

        The outermost block commits on success and rolls back on any
        exception. Nested blocks join the enclosing transaction.

        Raises:
            StorageError: If SQLite reports an error inside the block.
        """
        self._depth += 1
        try:
            yield self
        except BaseException as exc:
            if self._depth == 1:
                self._conn.rollback()
            if isinstance(exc, sqlite3.Error):
                raise StorageError(f"storage operation failed: {exc}") from exc
            raise
        else:
            if self._depth == 1:
                try:
                    self._conn.commit()
                except sqlite3.Error as exc:
                    self._conn.rollback()
                    raise StorageError(f"commit failed: {exc}") from exc
        finally:
            self._depth -= 1

    @contextmanager
    def _reading(self) -> Iterator[None]:
        try:
            yield
        except sqlite3.Error as exc:
            raise StorageError(f"storage read failed: {exc}") from exc

    # ------------------------------------------------------------------
    # Documents
    # ------------------------------------------------------------------

    def save_document(self, document: Document) -> int:
        """Insert a new document row and return its id.

        The caller deletes any previous document for the same path first;
        a duplicate path violates the unique constraint.

        Raises:
            StorageError: On constraint violation or connection failure.
        """
        with self.transaction():
            cur = self._conn.execute(
                """
                INSERT INTO documents
                    (file_path, file_name, file_size, last_modified,
                     content_hash, indexed_at, file_type)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    document.file_path,
                    document.file_name,
                    document.file_size,
                    document.last_modified,
                    document.content_hash,
                    document.indexed_at,
                    document.file_type,
                ),
            )
        document.id = cur.lastrowid
        return cur.lastrowid

    def get_document(self, document_id: int) -> Document | None:
        """Return a document by id, or None if not found."""
        with self._reading():
            row = self._conn.execute(
                f"SELECT {_DOCUMENT_COLUMNS} FROM documents WHERE id = ?",
                (document_id,),
            ).fetchone()
        return _row_to_document(row) if row else None

    def find_document_by_path(self, path: str) -> Document | None:
        """Return the document indexed under *path*, or None if not found."""
        with self._reading():
            row = self._conn.execute(
                f"SELECT {_DOCUMENT_COLUMNS} FROM documents WHERE file_path = ?",
                (path,),
            ).fetchone()
        return _row_to_document(row) if row else None

    def list_documents(self) -> list[Document]:
        """Return all documents ordered by path."""
        with self._reading():
            rows = self._conn.execute(
                f"SELECT {_DOCUMENT_COLUMNS} FROM documents ORDER BY file_path"
            ).fetchall()
        return [_row_to_document(r) for r in rows]

    def delete_document(self, document_id: int) -> bool:
        """Delete a document together with its chunks and their embeddings.

        Dependents are removed explicitly (embeddings, then chunks, then the
        document) in one transaction, so the result does not depend on the
        connection having foreign keys enabled.

        Returns:
            True if a document row was deleted.
        """
        with self.transaction():
            self._conn.execute(
                """
                DELETE FROM embeddings
                WHERE chunk_id IN (SELECT id FROM chunks WHERE document_id = ?)
                """,
                (document_id,),
            )
            self._conn.execute("DELETE FROM chunks WHERE document_id = ?", (document_id,))
            cur = self._conn.execute("DELETE FROM documents WHERE id = ?", (document_id,))
        return cur.rowcount > 0

    def delete_document_by_path(self, path: str) -> bool:
        """Delete the document indexed under *path*. Returns False if absent."""
        with self.transaction():
            existing = self.find_document_by_path(path)
            if existing is None or existing.id is None:
                return False
            return self.delete_document(existing.id)

    # ------------------------------------------------------------------
    # Chunks
    # ------------------------------------------------------------------

    def save_chunks(self, chunks: list[Chunk]) -> list[int]:
        """Insert *chunks* in one batch. Returns the new ids in input order."""
        ids: list[int] = []
        with self.transaction():
            for chunk in chunks:
                cur = self._conn.execute(
                    """
                    INSERT INTO chunks
                        (document_id, chunk_index, content, start_char, end_char,
                         token_count, created_at)
                    VALUES (?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        chunk.document_id,
                        chunk.chunk_index,
                        chunk.content,
                        chunk.start_char,
                        chunk.end_char,
                        chunk.token_count,
                        chunk.created_at,
                    ),
                )
                ids.append(cur.lastrowid)
        for chunk, chunk_id in zip(chunks, ids):
            chunk.id = chunk_id
        return ids

    def get_chunk(self, chunk_id: int) -> Chunk | None:
        """Return a chunk by id, or None if not found."""
        with self._reading():
            row = self._conn.execute(
                f"SELECT {_CHUNK_COLUMNS} FROM chunks WHERE id = ?", (chunk_id,)
            ).fetchone()
        return _row_to_chunk(row) if row else None

    def list_chunks_by_document(self, document_id: int) -> list[Chunk]:
        """Return the chunks of *document_id* ordered by chunk_index."""
        with self._reading():
            rows = self._conn.execute(
                f"SELECT {_CHUNK_COLUMNS} FROM chunks WHERE document_id = ? ORDER BY chunk_index",
                (document_id,),
            ).fetchall()
        return [_row_to_chunk(r) for r in rows]

    def count_chunks_by_document(self, document_id: int) -> int:
        """Return the number of chunks belonging to *document_id*."""
        with self._reading():
            return self._conn.execute(
                "SELECT COUNT(*) FROM chunks WHERE document_id = ?", (document_id,)
            ).fetchone()[0]

    def get_chunk_with_document(self, chunk_id: int) -> tuple[Chunk, Document] | None:
        """Return the chunk and its owning document, or None if either is missing."""
        with self._reading():
            row = self._conn.execute(
                """
                SELECT c.id AS c_id, c.document_id, c.chunk_index, c.content,
                       c.start_char, c.end_char, c.token_count, c.created_at,
                       d.id, d.file_path, d.file_name, d.file_size, d.last_modified,
                       d.content_hash, d.indexed_at, d.file_type
                FROM chunks c JOIN documents d ON d.id = c.document_id
                WHERE c.id = ?
                """,
                (chunk_id,),
            ).fetchone()
        if row is None:
            return None
        chunk = Chunk(
            id=row["c_id"],
            document_id=row["document_id"],
            chunk_index=row["chunk_index"],
            content=row["content"],
            start_char=row["start_char"],
            end_char=row["end_char"],
            token_count=row["token_count"],
            created_at=row["created_at"],
        )
        return chunk, _row_to_document(row)

    # ------------------------------------------------------------------
    # Embeddings
    # ------------------------------------------------------------------

    def save_embeddings(self, embeddings: list[Embedding]) -> None:
        """Insert *embeddings* in one batch."""
        with self.transaction():
            self._conn.executemany(
                """
                INSERT INTO embeddings (chunk_id, vector, model, dimension, created_at)
                VALUES (?, ?, ?, ?, ?)
                """,
                [
                    (e.chunk_id, encode_vector(e.vector), e.model, e.dimension, e.created_at)
                    for e in embeddings
                ],
            )

    def find_all_embeddings(self, model: str | None = None) -> dict[int, list[float]]:
        """Return ``{chunk_id: vector}`` for every stored embedding.

        Args:
            model: Restrict to embeddings produced by this model identifier.
                None returns all models.
        """
        sql = "SELECT chunk_id, vector FROM embeddings"
        params: tuple = ()
        if model is not None:
            sql += " WHERE model = ?"
            params = (model,)
        sql += " ORDER BY chunk_id"
        with self._reading():
            rows = self._conn.execute(sql, params).fetchall()
        return {r["chunk_id"]: decode_vector(r["vector"]) for r in rows}

    def list_embedding_models(self) -> list[tuple[str, int, int]]:
        """Return ``[(model, dimension, count), ...]`` ordered by model."""
        with self._reading():
            rows = self._conn.execute(
                """
                SELECT model, dimension, COUNT(*) AS n FROM embeddings
                GROUP BY model, dimension ORDER BY model
                """
            ).fetchall()
        return [(r["model"], r["dimension"], r["n"]) for r in rows]

    # ------------------------------------------------------------------
    # Aggregates
    # ------------------------------------------------------------------

    def get_stats(self) -> dict[str, int]:
        """Return row counts per entity kind."""
        with self._reading():
            row = self._conn.execute(
                """
                SELECT (SELECT COUNT(*) FROM documents)  AS documents,
                       (SELECT COUNT(*) FROM chunks)     AS chunks,
                       (SELECT COUNT(*) FROM embeddings) AS embeddings
                """
            ).fetchone()
        return {
            "documents": row["documents"],
            "chunks": row["chunks"],
            "embeddings": row["embeddings"],
        }

    def clear_all(self) -> None:
        """Delete every document, chunk and embedding."""
        with self.transaction():
            self._conn.execute("DELETE FROM embeddings")
            self._conn.execute("DELETE FROM chunks")
            self._conn.execute("DELETE FROM documents")


# ------------------------------------------------------------------
# Row → model helpers
# ------------------------------------------------------------------

def _row_to_document(row: sqlite3.Row) -> Document:
    return Document(
        id=row["id"],
        file_path=row["file_path"],
        file_name=row["file_name"],
        file_size=row["file_size"],
        last_modified=row["last_modified"],
        content_hash=row["content_hash"],
        indexed_at=row["indexed_at"],
        file_type=row["file_type"],
    )


def _row_to_chunk(row: sqlite3.Row) -> Chunk:
    return Chunk(
        id=row["id"],
        document_id=row["document_id"],
        chunk_index=row["chunk_index"],
        content=row["content"],
        start_char=row["start_char"],
        end_char=row["end_char"],
        token_count=row["token_count"],
        created_at=row["created_at"],
    )
