"""Fixed-window character chunkers with overlap.

Two variants cut identical windows:

- ``TextChunker`` works on an in-memory string.
- ``StreamingTextChunker`` reads a text stream incrementally and keeps only a
  sliding buffer, so memory use is bounded by the window size.

Windows are ``chunk_size`` characters long; each next window starts
``overlap`` characters before the previous one ended. The last window ends
exactly at the end of the text and may be shorter.
"""

from __future__ import annotations

import warnings
from collections.abc import Iterator
from dataclasses import dataclass
from typing import TextIO

from semindex.errors import ConfigurationError


@dataclass(frozen=True)
class ChunkInfo:
    content: str
    start_char: int
    end_char: int
    chunk_index: int


class _WindowChunker:
    """Shared window arithmetic and validation for both chunker variants."""

    def __init__(self, chunk_size: int = 512, overlap: int = 50) -> None:
        if chunk_size < 1:
            raise ConfigurationError("chunk_size must be >= 1")
        if overlap < 0:
            raise ConfigurationError("overlap must be >= 0")
        if overlap >= chunk_size:
            warnings.warn(
                f"overlap ({overlap}) >= chunk_size ({chunk_size}); "
                "windows will advance by one character.",
                UserWarning,
                stacklevel=3,
            )
        self.chunk_size = chunk_size
        self.overlap = overlap

    def _next_start(self, start: int, end: int) -> int:
        """Start of the window after ``[start, end)``.

        Always strictly greater than *start*, which guarantees termination
        when ``overlap >= chunk_size``.
        """
        return max(end - self.overlap, start + 1)

    @staticmethod
    def count_tokens(text: str) -> int:
        """Approximate token count: 4 characters ≈ 1 token."""
        return max(1, len(text) // 4)


class TextChunker(_WindowChunker):
    """Split an in-memory string into overlapping windows."""

    def chunk(self, text: str) -> list[ChunkInfo]:
        """Return the ordered windows of *text* (empty list for empty text)."""
        chunks: list[ChunkInfo] = []
        length = len(text)
        start = 0
        index = 0
        while start < length:
            end = min(start + self.chunk_size, length)
            chunks.append(ChunkInfo(text[start:end], start, end, index))
            if end >= length:
                break
            start = self._next_start(start, end)
            index += 1
        return chunks


class StreamingTextChunker(_WindowChunker):
    """Split a text stream into the same windows as ``TextChunker``.

    Args:
        chunk_size: Window length in characters.
        overlap: Characters shared by consecutive windows.
        read_size: Characters requested from the stream per read. Defaults
            to ``chunk_size``.
    """

    def __init__(
        self, chunk_size: int = 512, overlap: int = 50, read_size: int | None = None
    ) -> None:
        super().__init__(chunk_size=chunk_size, overlap=overlap)
        self.read_size = read_size or chunk_size
        if self.read_size < 1:
            raise ConfigurationError("read_size must be >= 1")

    def chunk_stream(self, stream: TextIO) -> Iterator[ChunkInfo]:
        """Yield windows from *stream* as soon as they are complete.

        The stream is not closed. The buffer never holds text before the
        current window start, plus at most one read beyond the window end.
        """
        buf = ""
        buf_start = 0  # absolute offset of buf[0]
        eof = False
        start = 0
        index = 0

        while True:
            # One character past the window end tells whether this is the last window.
            while not eof and buf_start + len(buf) <= start + self.chunk_size:
                data = stream.read(self.read_size)
                if not data:
                    eof = True
                else:
                    buf += data

            available = buf_start + len(buf)
            if start >= available:
                return

            end = min(start + self.chunk_size, available)
            yield ChunkInfo(buf[start - buf_start : end - buf_start], start, end, index)
            if eof and end >= available:
                return

            start = self._next_start(start, end)
            index += 1
            buf = buf[start - buf_start :]
            buf_start = start
