"""Shared pytest fixtures for the studyrag test suite."""

from __future__ import annotations

import asyncio
import hashlib
import re
from pathlib import Path

import pytest
import pytest_asyncio
import structlog

from studyrag.config.settings import Settings
from studyrag.interfaces.embedding_provider import IEmbeddingProvider
from studyrag.providers.chunk_store.sqlite_chunk_store import SQLiteChunkStore
from studyrag.providers.usage_log.sqlite_usage_log_provider import SQLiteUsageLogProvider
from studyrag.utils.errors import EmbeddingProviderError

_TOKEN_RE = re.compile(r"[a-z0-9]+")


def bag_of_words_vector(text: str, dimension: int) -> list[float]:
    """Hash each word of *text* into one of *dimension* buckets and count."""
    vector = [0.0] * dimension
    for token in _TOKEN_RE.findall(text.lower()):
        bucket = int(hashlib.md5(token.encode()).hexdigest(), 16) % dimension
        vector[bucket] += 1.0
    return vector


class FakeEmbeddingProvider(IEmbeddingProvider):
    """Deterministic in-memory embedding provider.

    Texts that share words get similar vectors, which is enough to check
    ranking.  Tracks call counts and peak concurrency, and can be told to
    fail from a given call onward.
    """

    def __init__(
        self,
        name: str = "fake/bag-of-words",
        dimension: int = 256,
        batch_size: int = 2,
        max_chars: int = 4096,
        fail_from_call: int | None = None,
        delay: float = 0.0,
        available: bool = True,
    ) -> None:
        self._name = name
        self._dimension = dimension
        self._batch_size = batch_size
        self._max_chars = max_chars
        self._fail_from_call = fail_from_call
        self._delay = delay
        self._available = available
        self.calls = 0
        self.in_flight = 0
        self.max_in_flight = 0
        self.embedded_texts: list[str] = []

    async def embed(self, texts: list[str]) -> list[list[float]]:
        self.calls += 1
        call_number = self.calls
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self._delay:
                await asyncio.sleep(self._delay)
            if self._fail_from_call is not None and call_number >= self._fail_from_call:
                raise EmbeddingProviderError(
                    message=f"simulated failure on call {call_number}",
                    provider_name=self._name,
                )
            truncated = [t[: self._max_chars] for t in texts]
            self.embedded_texts.extend(truncated)
            return [bag_of_words_vector(t, self._dimension) for t in truncated]
        finally:
            self.in_flight -= 1

    async def embed_single(self, text: str) -> list[float]:
        return (await self.embed([text]))[0]

    def get_batch_size(self) -> int:
        return self._batch_size

    def get_max_input_chars(self) -> int:
        return self._max_chars

    def get_dimension(self) -> int:
        return self._dimension

    def get_provider_name(self) -> str:
        return self._name

    def is_available(self) -> bool:
        return self._available


def make_page(words: list[str], length: int = 1500) -> str:
    """Repeat *words* until exactly *length* characters."""
    unit = " ".join(words) + " "
    return (unit * (length // len(unit) + 1))[:length]


# Three pages with disjoint vocabularies.
PAGE_WORDS: list[list[str]] = [
    ["mitochondria", "respiration", "glucose", "enzyme", "membrane", "cell"],
    ["photosynthesis", "chlorophyll", "sunlight", "stomata", "leaf", "carbon"],
    ["tectonic", "magma", "volcano", "earthquake", "crust", "mantle"],
]


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _uncached_loggers() -> None:
    """Build loggers per call so they write to whatever stdout pytest has swapped in."""
    structlog.configure(
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=False,
    )


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """Settings pointing both databases at a temp directory."""
    return Settings(
        openai_api_key="",
        documents_db_path=str(tmp_path / "documents.db"),
        usage_db_path=str(tmp_path / "rag_usage.db"),
        default_embedding_provider="fake",
    )


@pytest.fixture
def fake_provider_cls() -> type[FakeEmbeddingProvider]:
    """The fake provider class, for tests that need custom instances."""
    return FakeEmbeddingProvider


@pytest.fixture
def fake_provider() -> FakeEmbeddingProvider:
    return FakeEmbeddingProvider()


@pytest.fixture
def three_pages() -> list[str]:
    """Three 1500-character pages, each about a different topic."""
    return [make_page(words) for words in PAGE_WORDS]


@pytest.fixture
def page_words() -> list[list[str]]:
    return PAGE_WORDS


@pytest_asyncio.fixture
async def chunk_store(tmp_path: Path) -> SQLiteChunkStore:
    """An initialized chunk store backed by a temp DB."""
    store = SQLiteChunkStore(db_path=tmp_path / "documents.db")
    await store.initialize()
    return store


@pytest_asyncio.fixture
async def usage_log(tmp_path: Path) -> SQLiteUsageLogProvider:
    """An initialized usage log backed by a temp DB."""
    log = SQLiteUsageLogProvider(db_path=tmp_path / "rag_usage.db")
    await log.initialize()
    return log
