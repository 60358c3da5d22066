"""Content hashing (change-detection fingerprint)."""

from __future__ import annotations

import hashlib
from pathlib import Path

BUFFER_SIZE = 65536


def compute_hash(path: Path | str, buffer_size: int = BUFFER_SIZE) -> str:
    """Return the lowercase SHA-256 hex digest of the file at *path*.

    The file is read in *buffer_size* blocks, so memory use does not depend
    on file size. I/O errors propagate to the caller.
    """
    h = hashlib.sha256()
    with Path(path).open("rb") as fh:
        for block in iter(lambda: fh.read(buffer_size), b""):
            h.update(block)
    return h.hexdigest()
