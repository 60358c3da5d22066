"""Float32 vector blobs in the format sqlite-vec reads."""

from __future__ import annotations

from array import array
from collections.abc import Sequence

import sqlite_vec


def encode_vector(vector: Sequence[float]) -> bytes:
    """Serialize *vector* to a compact float32 blob.

    The blob is accepted as-is by sqlite-vec SQL functions such as
    ``vec_length()`` and ``vec_distance_cosine()``.

    Raises:
        ValueError: If *vector* is empty.
    """
    if len(vector) == 0:
        raise ValueError("cannot encode an empty vector")
    return sqlite_vec.serialize_float32(list(vector))


def decode_vector(blob: bytes) -> list[float]:
    """Inverse of encode_vector()."""
    if len(blob) % 4:
        raise ValueError(f"vector blob length {len(blob)} is not a multiple of 4")
    values = array("f")
    values.frombytes(blob)
    return values.tolist()
