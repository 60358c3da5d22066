"""Tests for float32 vector blobs."""

from __future__ import annotations

import pytest

from semindex.db.vectors import decode_vector, encode_vector


def test_encode_is_four_bytes_per_dimension():
    assert len(encode_vector([0.1, 0.2, 0.3])) == 12


def test_decode_inverts_encode_for_exact_floats():
    values = [1.0, -2.5, 0.125, 0.0]
    assert decode_vector(encode_vector(values)) == values


def test_encode_empty_raises():
    with pytest.raises(ValueError, match="empty"):
        encode_vector([])


def test_decode_rejects_truncated_blob():
    with pytest.raises(ValueError, match="multiple of 4"):
        decode_vector(b"\x00\x00\x80")


def test_blob_readable_by_sqlite_vec(tmp_db):
    blob = encode_vector([1.0, 2.0, 3.0, 4.0])
    length = tmp_db.execute("SELECT vec_length(?)", (blob,)).fetchone()[0]
    assert length == 4
