"""Error kinds raised by the semindex core.

File read failures are plain ``OSError`` and are not wrapped.
"""

from __future__ import annotations


class SemindexError(Exception):
    """Base class for all semindex errors."""


class ConfigurationError(SemindexError, ValueError):
    """Raised when configuration is invalid or the index root is unusable."""


class EmbeddingServiceError(SemindexError):
    """Raised when the embedding service fails or returns a malformed vector."""


class StorageError(SemindexError):
    """Raised when a repository operation fails; the transaction is rolled back."""
