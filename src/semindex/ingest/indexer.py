"""Incremental directory indexer.

Per file: hash + mtime → change check → chunk → embed (concurrent, ordered)
→ persist. The old document (if any) is deleted and the new document, its
chunks and its embeddings are inserted in a single transaction, so a file
is never observable half-written. All reading and embedding happens before
that transaction: a failure leaves the previous state for the file intact.

A failure on one file is logged, recorded in the returned ``IndexReport``,
and the scan continues with the next file.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

from semindex.db.models import Chunk, Document, Embedding
from semindex.db.repository import Repository
from semindex.errors import EmbeddingServiceError, StorageError
from semindex.ingest.chunker import ChunkInfo, StreamingTextChunker, TextChunker
from semindex.ingest.embedding_client import EmbeddingClient
from semindex.ingest.hasher import compute_hash
from semindex.ingest.scanner import FileInfo, FileScanner

logger = logging.getLogger(__name__)

DEFAULT_STREAMING_THRESHOLD = 1024 * 1024

ProgressCallback = Callable[[int, int], None]


@dataclass
class IndexFailure:
    path: str
    error: str


@dataclass
class IndexReport:
    """Outcome of one ``index_directory`` run."""

    total: int = 0
    indexed: int = 0
    unchanged: int = 0
    failures: list[IndexFailure] = field(default_factory=list)
    cancelled: bool = False

    @property
    def processed(self) -> int:
        return self.indexed + self.unchanged + len(self.failures)


def needs_reindex(existing: Document | None, content_hash: str, mtime: int) -> bool:
    """True if the file is new, its content changed, or its mtime changed.

    An mtime change with an identical hash still triggers a full reindex.
    """
    if existing is None:
        return True
    return existing.content_hash != content_hash or existing.last_modified != mtime


class DocumentIndexer:
    """Index a directory tree into a Repository.

    Args:
        repo: Open Repository (the indexer does not close it).
        embedder: Embedding client; ``embedder.model`` is stored with each vector.
        chunk_size: Window length in characters.
        overlap: Characters shared by consecutive windows.
        streaming_threshold: Files larger than this many bytes are chunked
            with the streaming chunker. ``0`` streams every file.
        scanner: File scanner; defaults to ``FileScanner()``.
    """

    def __init__(
        self,
        repo: Repository,
        embedder: EmbeddingClient,
        chunk_size: int = 512,
        overlap: int = 50,
        streaming_threshold: int = DEFAULT_STREAMING_THRESHOLD,
        scanner: FileScanner | None = None,
    ) -> None:
        self._repo = repo
        self._embedder = embedder
        self._chunker = TextChunker(chunk_size=chunk_size, overlap=overlap)
        self._streaming_chunker = StreamingTextChunker(chunk_size=chunk_size, overlap=overlap)
        self.streaming_threshold = streaming_threshold
        self._scanner = scanner or FileScanner()

    # ------------------------------------------------------------------
    # Directory loop
    # ------------------------------------------------------------------

    def index_directory(
        self,
        root: Path | str,
        on_progress: ProgressCallback | None = None,
        cancel_event: threading.Event | None = None,
    ) -> IndexReport:
        """Index every candidate file under *root*, one file at a time.

        ``on_progress(processed, total)`` is called after every file,
        including skipped and failed ones. ``cancel_event`` is checked
        between files only.

        Raises:
            ConfigurationError: If *root* is missing or not a directory.
        """
        files = self._scanner.scan(root)
        report = IndexReport(total=len(files))
        logger.debug("Indexing %d files under %s", len(files), root)

        for info in files:
            if cancel_event is not None and cancel_event.is_set():
                report.cancelled = True
                logger.info("Indexing cancelled after %d/%d files", report.processed, report.total)
                break
            try:
                changed = self.index_file(info)
            except (OSError, EmbeddingServiceError, StorageError) as exc:
                logger.warning("Failed to index %s: %s", info.path, exc)
                report.failures.append(IndexFailure(path=info.path, error=str(exc)))
            else:
                if changed:
                    report.indexed += 1
                else:
                    report.unchanged += 1
            if on_progress is not None:
                on_progress(report.processed, report.total)

        return report

    # ------------------------------------------------------------------
    # Single file
    # ------------------------------------------------------------------

    def index_file(self, info: FileInfo) -> bool:
        """(Re)index one file. Returns False if it was unchanged.

        Raises:
            OSError: If the file cannot be read.
            EmbeddingServiceError: If any chunk cannot be embedded.
            StorageError: If persisting fails (nothing is written).
        """
        content_hash = compute_hash(info.path)
        existing = self._repo.find_document_by_path(info.path)
        if not needs_reindex(existing, content_hash, info.mtime):
            logger.debug("Unchanged: %s", info.path)
            return False

        pieces = self._chunk_file(Path(info.path), info.size)
        vectors = self._embedder.embed_many([p.content for p in pieces])
        _check_vectors(vectors, len(pieces), info.path)

        now = int(time.time())
        document = Document(
            file_path=info.path,
            file_name=info.name,
            file_size=info.size,
            last_modified=info.mtime,
            content_hash=content_hash,
            indexed_at=now,
            file_type=info.extension,
        )

        with self._repo.transaction():
            if existing is not None and existing.id is not None:
                self._repo.delete_document(existing.id)
            document_id = self._repo.save_document(document)
            chunk_ids = self._repo.save_chunks(
                [
                    Chunk(
                        document_id=document_id,
                        chunk_index=p.chunk_index,
                        content=p.content,
                        start_char=p.start_char,
                        end_char=p.end_char,
                        token_count=TextChunker.count_tokens(p.content),
                        created_at=now,
                    )
                    for p in pieces
                ]
            )
            self._repo.save_embeddings(
                [
                    Embedding(
                        chunk_id=chunk_id,
                        vector=vector,
                        model=self._embedder.model,
                        created_at=now,
                    )
                    for chunk_id, vector in zip(chunk_ids, vectors)
                ]
            )

        logger.debug(
            "%s %s (%d chunks)",
            "Reindexed" if existing else "Indexed",
            info.path,
            len(pieces),
        )
        return True

    def _chunk_file(self, path: Path, size: int) -> list[ChunkInfo]:
        if self.streaming_threshold == 0 or size > self.streaming_threshold:
            with path.open("r", encoding="utf-8", errors="replace") as fh:
                return list(self._streaming_chunker.chunk_stream(fh))
        content = path.read_text(encoding="utf-8", errors="replace")
        return self._chunker.chunk(content)


def _check_vectors(vectors: list[list[float]], expected: int, path: str) -> None:
    if len(vectors) != expected:
        raise EmbeddingServiceError(
            f"expected {expected} embeddings for {path}, got {len(vectors)}"
        )
    dims = {len(v) for v in vectors}
    if len(dims) > 1:
        raise EmbeddingServiceError(f"inconsistent embedding dimensions for {path}: {sorted(dims)}")
