"""Unit tests for the TextChunker: fixed-size overlapping character windows."""

from __future__ import annotations

import pytest

from studyrag.services.ingestion.chunker import TextChunker
from studyrag.utils.errors import ConfigurationError

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _make_chunker(chunk_size: int = 1500, overlap: int = 200) -> TextChunker:
    """Build a TextChunker with a predictable configuration."""
    return TextChunker(chunk_size=chunk_size, overlap=overlap)


def _numbered_text(length: int) -> str:
    """Text whose every position is distinguishable: '0123456789' repeated."""
    return ("0123456789" * (length // 10 + 1))[:length]


# ---------------------------------------------------------------------------
# Tests
# ---------------------------------------------------------------------------


class TestWindowing:
    def test_4500_chars_give_four_chunks(self) -> None:
        chunks = _make_chunker().chunk(_numbered_text(4500))
        assert len(chunks) == 4
        assert [len(c) for c in chunks] == [1500, 1500, 1500, 600]

    def test_windows_start_at_step_offsets(self) -> None:
        text = _numbered_text(4500)
        chunks = _make_chunker().chunk(text)
        for i, chunk in enumerate(chunks):
            start = i * 1300
            assert chunk == text[start : start + 1500]

    def test_consecutive_chunks_share_overlap(self) -> None:
        chunks = _make_chunker().chunk(_numbered_text(4500))
        for prev, nxt in zip(chunks, chunks[1:]):
            assert prev[-200:] == nxt[:200]

    def test_no_chunk_exceeds_chunk_size(self) -> None:
        chunks = _make_chunker(chunk_size=100, overlap=30).chunk(_numbered_text(1234))
        assert all(len(c) <= 100 for c in chunks)

    def test_short_text_is_single_chunk(self) -> None:
        assert _make_chunker().chunk("short note") == ["short note"]

    def test_exact_chunk_size_is_single_chunk(self) -> None:
        text = _numbered_text(1500)
        assert _make_chunker().chunk(text) == [text]

    def test_full_text_is_covered(self) -> None:
        text = _numbered_text(3333)
        chunks = _make_chunker(chunk_size=500, overlap=100).chunk(text)
        rebuilt = chunks[0] + "".join(c[100:] for c in chunks[1:])
        assert rebuilt == text


class TestEdgeCases:
    def test_empty_text_returns_empty_list(self) -> None:
        assert _make_chunker().chunk("") == []

    def test_whitespace_only_text_returns_empty_list(self) -> None:
        assert _make_chunker().chunk("   \n\t  ") == []

    def test_whitespace_only_window_is_dropped(self) -> None:
        text = "a" * 10 + " " * 30
        chunks = _make_chunker(chunk_size=10, overlap=0).chunk(text)
        assert chunks == ["a" * 10]

    def test_windows_are_not_stripped(self) -> None:
        chunks = _make_chunker(chunk_size=8, overlap=2).chunk("  hello world  ")
        assert chunks[0] == "  hello "

    def test_deterministic(self) -> None:
        text = _numbered_text(5000)
        assert _make_chunker().chunk(text) == _make_chunker().chunk(text)


class TestConfiguration:
    @pytest.mark.parametrize(
        ("chunk_size", "overlap"),
        [(200, 200), (100, 300), (0, 0), (-5, 0), (100, -1)],
    )
    def test_invalid_configuration_raises(self, chunk_size: int, overlap: int) -> None:
        with pytest.raises(ConfigurationError):
            TextChunker(chunk_size=chunk_size, overlap=overlap)

    def test_zero_overlap_allowed(self) -> None:
        chunks = _make_chunker(chunk_size=10, overlap=0).chunk(_numbered_text(25))
        assert [len(c) for c in chunks] == [10, 10, 5]

    def test_properties(self) -> None:
        chunker = _make_chunker(chunk_size=800, overlap=50)
        assert chunker.chunk_size == 800
        assert chunker.overlap == 50
