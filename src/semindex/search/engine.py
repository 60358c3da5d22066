"""Brute-force semantic search over every stored embedding.

The query is embedded with the same model used at index time, compared
against each stored vector of that model, and the best ``top_k`` are joined
back to their chunk and document. Cost is O(corpus size × dimension) per
query; there is no index structure.
"""

from __future__ import annotations

import heapq
import logging
from dataclasses import dataclass

from semindex.db.models import Chunk, Document
from semindex.db.repository import Repository
from semindex.ingest.embedding_client import EmbeddingClient
from semindex.search.similarity import cosine_similarity

logger = logging.getLogger(__name__)


@dataclass
class SearchResult:
    """A ranked chunk with its owning document.

    Attributes:
        chunk: The matching Chunk.
        document: The Document the chunk belongs to.
        similarity: Cosine similarity to the query (higher = closer).
        content: The chunk text (same as ``chunk.content``).
    """

    chunk: Chunk
    document: Document
    similarity: float
    content: str


class SemanticSearch:
    """Rank stored chunks by cosine similarity to a query."""

    def __init__(self, repo: Repository, embedder: EmbeddingClient) -> None:
        self._repo = repo
        self._embedder = embedder

    def search(
        self,
        query: str,
        top_k: int = 10,
        min_similarity: float | None = None,
    ) -> list[SearchResult]:
        """Return up to *top_k* results, most similar first.

        Ties are broken by ascending chunk id.

        Args:
            query: Free-text query.
            top_k: Maximum number of results.
            min_similarity: Drop results scoring below this value.

        Raises:
            ValueError: If *query* is blank, *top_k* < 1, or the query vector
                and the stored vectors differ in dimension.
            EmbeddingServiceError: If the query cannot be embedded.
            StorageError: If the repository cannot be read.
        """
        if not query.strip():
            raise ValueError("query must not be empty")
        if top_k < 1:
            raise ValueError("top_k must be >= 1")

        query_vector = self._embedder.embed(query)
        stored = self._repo.find_all_embeddings(model=self._embedder.model)
        if not stored:
            logger.debug("No embeddings stored for model %s", self._embedder.model)
            return []

        scored = (
            (cosine_similarity(query_vector, vector), chunk_id)
            for chunk_id, vector in stored.items()
        )
        best = heapq.nsmallest(top_k, scored, key=lambda s: (-s[0], s[1]))

        results: list[SearchResult] = []
        for similarity, chunk_id in best:
            if min_similarity is not None and similarity < min_similarity:
                break
            joined = self._repo.get_chunk_with_document(chunk_id)
            if joined is None:
                continue
            chunk, document = joined
            results.append(
                SearchResult(
                    chunk=chunk,
                    document=document,
                    similarity=similarity,
                    content=chunk.content,
                )
            )
        return results
