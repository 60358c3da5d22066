"""Domain models for the semindex storage layer."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class Document:
    file_path: str
    file_name: str
    file_size: int
    last_modified: int
    content_hash: str
    indexed_at: int
    file_type: str = ""
    id: int | None = None  # set after insert


@dataclass
class Chunk:
    document_id: int
    chunk_index: int
    content: str
    start_char: int
    end_char: int
    created_at: int
    token_count: int | None = None
    id: int | None = None  # set after insert


@dataclass
class Embedding:
    """A vector for one chunk under one model.

    ``dimension`` defaults to ``len(vector)``; an explicit value must match it.
    """

    chunk_id: int
    vector: list[float]
    model: str
    created_at: int
    dimension: int = field(default=0)

    def __post_init__(self) -> None:
        if not self.vector:
            raise ValueError("embedding vector must not be empty")
        if self.dimension == 0:
            self.dimension = len(self.vector)
        elif self.dimension != len(self.vector):
            raise ValueError(
                f"dimension {self.dimension} does not match vector length {len(self.vector)}"
            )
