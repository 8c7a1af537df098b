"""Fixed-size character chunking with overlapping windows.

Splits extracted document text into windows sized for embedding.  Windows
start at offset 0 and each is ``chunk_size`` characters long; the next
window starts ``chunk_size - overlap`` characters later, so consecutive
windows share ``overlap`` characters.  Iteration stops as soon as a window
reaches the end of the text, which means the last window may be shorter.

Overlap keeps a sentence that straddles a boundary intact in at least one
window, so it stays retrievable.
"""

from __future__ import annotations

import structlog

from studyrag.utils.errors import ConfigurationError

logger = structlog.get_logger(logger_name=__name__)


class TextChunker:
    """Splits text into overlapping fixed-size character windows.

    Parameters
    ----------
    chunk_size:
        Maximum characters per window (default 1500).
    overlap:
        Characters shared by consecutive windows (default 200).  Must be
        non-negative and smaller than *chunk_size*.
    """

    def __init__(self, chunk_size: int = 1500, overlap: int = 200) -> None:
        if chunk_size <= 0:
            raise ConfigurationError(message=f"chunk_size must be positive, got {chunk_size}")
        if overlap < 0:
            raise ConfigurationError(message=f"overlap must not be negative, got {overlap}")
        if overlap >= chunk_size:
            raise ConfigurationError(
                message=f"overlap ({overlap}) must be smaller than chunk_size ({chunk_size})"
            )
        self._chunk_size = chunk_size
        self._overlap = overlap

    @property
    def chunk_size(self) -> int:
        return self._chunk_size

    @property
    def overlap(self) -> int:
        return self._overlap

    def chunk(self, text: str) -> list[str]:
        """Split *text* into ordered windows.

        Whitespace-only windows are dropped; surviving windows keep their
        text exactly as it appears in the input (no stripping).  Empty
        input returns an empty list.
        """
        if not text:
            return []

        step = self._chunk_size - self._overlap
        windows: list[str] = []
        start = 0
        while True:
            end = start + self._chunk_size
            window = text[start:end]
            if window.strip():
                windows.append(window)
            if end >= len(text):
                break
            start += step

        logger.debug(
            "chunking_complete",
            num_chunks=len(windows),
            text_length=len(text),
            chunk_size=self._chunk_size,
            overlap=self._overlap,
        )
        return windows
