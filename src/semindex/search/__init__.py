"""Semindex retrieval — cosine similarity and brute-force semantic search."""

from semindex.search.engine import SearchResult, SemanticSearch
from semindex.search.similarity import cosine_similarity

__all__ = ["SearchResult", "SemanticSearch", "cosine_similarity"]
