"""Unit tests for RetrievalService: threshold, fallback, top-k and space checks."""

from __future__ import annotations

import pytest

from studyrag.interfaces.embedding_provider import IEmbeddingProvider
from studyrag.models.rag import NewChunk
from studyrag.providers.chunk_store.sqlite_chunk_store import SQLiteChunkStore
from studyrag.services.retrieval_service import RetrievalService, build_context
from studyrag.utils.errors import ConfigurationError, EmbeddingSpaceMismatchError


class _StaticProvider(IEmbeddingProvider):
    """Returns the same query vector for every text."""

    def __init__(self, vector: list[float], name: str = "static/v1") -> None:
        self._vector = vector
        self._name = name
        self.calls = 0

    async def embed(self, texts: list[str]) -> list[list[float]]:
        self.calls += 1
        return [list(self._vector) for _ in texts]

    async def embed_single(self, text: str) -> list[float]:
        return (await self.embed([text]))[0]

    def get_batch_size(self) -> int:
        return 4

    def get_max_input_chars(self) -> int:
        return 512

    def get_dimension(self) -> int:
        return len(self._vector)

    def get_provider_name(self) -> str:
        return self._name

    def is_available(self) -> bool:
        return True


async def _seed(store: SQLiteChunkStore, vectors: list[list[float]], provider: str = "static/v1") -> int:
    doc_id = await store.create_document("doc", "doc.txt")
    await store.append_chunks(
        doc_id,
        [
            NewChunk(chunk_index=i, text=f"text {i}", embedding=v, embedding_provider=provider)
            for i, v in enumerate(vectors)
        ],
    )
    return doc_id


# Similarity to the query [1, 0]: 1.0, ~0.894, ~0.707, 0.0, -1.0
_VECTORS = [[1.0, 0.0], [2.0, 1.0], [1.0, 1.0], [0.0, 1.0], [-1.0, 0.0]]


class TestRetrieve:
    @pytest.mark.asyncio
    async def test_empty_store_returns_empty(self, chunk_store: SQLiteChunkStore) -> None:
        provider = _StaticProvider([1.0, 0.0])
        result = await RetrievalService(chunk_store).retrieve("anything", provider)

        assert result.chunks == []
        assert result.context == ""
        assert result.used_fallback is False
        assert provider.calls == 0

    @pytest.mark.asyncio
    async def test_threshold_filters_and_sorts(self, chunk_store: SQLiteChunkStore) -> None:
        await _seed(chunk_store, _VECTORS)
        result = await RetrievalService(chunk_store).retrieve(
            "q", _StaticProvider([1.0, 0.0]), similarity_threshold=0.7
        )

        assert [sc.chunk.chunk_index for sc in result.chunks] == [0, 1, 2]
        sims = [sc.similarity for sc in result.chunks]
        assert sims == sorted(sims, reverse=True)
        assert sims[0] == pytest.approx(1.0)
        assert result.used_fallback is False

    @pytest.mark.asyncio
    async def test_max_chunks_caps_results(self, chunk_store: SQLiteChunkStore) -> None:
        await _seed(chunk_store, _VECTORS)
        result = await RetrievalService(chunk_store).retrieve(
            "q", _StaticProvider([1.0, 0.0]), max_chunks=2, similarity_threshold=-1.0
        )
        assert [sc.chunk.chunk_index for sc in result.chunks] == [0, 1]

    @pytest.mark.asyncio
    async def test_fallback_when_nothing_meets_threshold(self, chunk_store: SQLiteChunkStore) -> None:
        await _seed(chunk_store, _VECTORS)
        result = await RetrievalService(chunk_store).retrieve(
            "q", _StaticProvider([0.0, -1.0]), similarity_threshold=0.99
        )

        assert result.used_fallback is True
        assert len(result.chunks) == 3
        assert result.chunks[0].similarity >= result.chunks[-1].similarity

    @pytest.mark.asyncio
    async def test_fallback_capped_by_max_chunks(self, chunk_store: SQLiteChunkStore) -> None:
        await _seed(chunk_store, _VECTORS)
        result = await RetrievalService(chunk_store).retrieve(
            "q", _StaticProvider([0.0, -1.0]), max_chunks=2, similarity_threshold=1.0
        )
        assert result.used_fallback is True
        assert len(result.chunks) == 2

    @pytest.mark.asyncio
    async def test_context_numbers_sources(self, chunk_store: SQLiteChunkStore) -> None:
        await _seed(chunk_store, _VECTORS)
        result = await RetrievalService(chunk_store).retrieve(
            "q", _StaticProvider([1.0, 0.0]), max_chunks=2, similarity_threshold=0.0
        )
        assert result.context == "[Source 1] text 0\n\n[Source 2] text 1"

    @pytest.mark.asyncio
    async def test_service_defaults_used(self, chunk_store: SQLiteChunkStore) -> None:
        await _seed(chunk_store, _VECTORS)
        service = RetrievalService(chunk_store, max_chunks=1, similarity_threshold=0.5)
        result = await service.retrieve("q", _StaticProvider([1.0, 0.0]))
        assert len(result.chunks) == 1

    @pytest.mark.asyncio
    async def test_zero_magnitude_query_scores_zero(self, chunk_store: SQLiteChunkStore) -> None:
        await _seed(chunk_store, _VECTORS)
        result = await RetrievalService(chunk_store).retrieve("q", _StaticProvider([0.0, 0.0]))
        assert result.used_fallback is True
        assert all(sc.similarity == 0.0 for sc in result.chunks)


class TestEmbeddingSpace:
    @pytest.mark.asyncio
    async def test_other_provider_chunks_ignored(self, chunk_store: SQLiteChunkStore) -> None:
        await _seed(chunk_store, [[1.0, 0.0]], provider="static/v1")
        await _seed(chunk_store, [[1.0, 0.0]], provider="other/v2")
        result = await RetrievalService(chunk_store).retrieve(
            "q", _StaticProvider([1.0, 0.0], name="other/v2")
        )
        assert len(result.chunks) == 1
        assert result.chunks[0].chunk.embedding_provider == "other/v2"

    @pytest.mark.asyncio
    async def test_mismatched_provider_raises(self, chunk_store: SQLiteChunkStore) -> None:
        await _seed(chunk_store, _VECTORS, provider="openai/text-embedding-3-small")
        provider = _StaticProvider([1.0, 0.0], name="ollama/zylonai/multilingual-e5-large")

        with pytest.raises(EmbeddingSpaceMismatchError):
            await RetrievalService(chunk_store).retrieve("q", provider)
        assert provider.calls == 0

    @pytest.mark.asyncio
    async def test_mismatched_dimension_raises(self, chunk_store: SQLiteChunkStore) -> None:
        await _seed(chunk_store, _VECTORS)
        with pytest.raises(EmbeddingSpaceMismatchError):
            await RetrievalService(chunk_store).retrieve("q", _StaticProvider([1.0, 0.0, 0.0]))


class TestValidation:
    @pytest.mark.asyncio
    async def test_blank_query(self, chunk_store: SQLiteChunkStore) -> None:
        with pytest.raises(ConfigurationError):
            await RetrievalService(chunk_store).retrieve("   ", _StaticProvider([1.0]))

    @pytest.mark.asyncio
    async def test_max_chunks_below_one(self, chunk_store: SQLiteChunkStore) -> None:
        with pytest.raises(ConfigurationError):
            await RetrievalService(chunk_store).retrieve("q", _StaticProvider([1.0]), max_chunks=0)

    def test_build_context_empty(self) -> None:
        assert build_context([]) == ""
