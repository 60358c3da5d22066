"""Semindex ingest pipeline — scanner, hasher, chunkers, embedding client, indexer."""

from semindex.ingest.chunker import ChunkInfo, StreamingTextChunker, TextChunker
from semindex.ingest.embedding_client import EmbeddingClient
from semindex.ingest.hasher import compute_hash
from semindex.ingest.ignore import IgnorePattern
from semindex.ingest.indexer import DocumentIndexer, IndexFailure, IndexReport
from semindex.ingest.scanner import FileInfo, FileScanner

__all__ = [
    "ChunkInfo",
    "DocumentIndexer",
    "EmbeddingClient",
    "FileInfo",
    "FileScanner",
    "IgnorePattern",
    "IndexFailure",
    "IndexReport",
    "StreamingTextChunker",
    "TextChunker",
    "compute_hash",
]
