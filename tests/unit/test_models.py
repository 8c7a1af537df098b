"""Unit tests for studyrag Pydantic models, errors and the error status map."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from studyrag.api.middleware import status_code_for
from studyrag.api.schemas import QueryRequest, UploadStatusResponse
from studyrag.models.job import JobState, UploadJob
from studyrag.models.rag import Document, NewChunk, ScoredChunk, StoredChunk, UsedChunk
from studyrag.utils.errors import (
    ChunkIndexConflictError,
    ChunkStoreError,
    ConfigurationError,
    EmbeddingProviderError,
    EmbeddingSpaceMismatchError,
    ExtractionError,
    StudyRagError,
    UnknownDocumentError,
)


def _stored(index: int = 0) -> StoredChunk:
    return StoredChunk(
        id=1,
        document_id=1,
        chunk_index=index,
        text="cell membrane",
        embedding=[0.1, 0.2],
        embedding_provider="openai/text-embedding-3-small",
    )


class TestRagModels:
    def test_document_defaults_before_finalize(self) -> None:
        doc = Document(
            id=1, title="lecture", original_name="lecture.pdf", created_at=datetime.now(timezone.utc)
        )
        assert doc.full_text == ""
        assert doc.document_embedding == []
        assert doc.embedding_provider == ""

    def test_records_are_frozen(self) -> None:
        chunk = _stored()
        with pytest.raises(ValidationError):
            chunk.text = "changed"  # type: ignore[misc]

    def test_negative_chunk_index_rejected(self) -> None:
        with pytest.raises(ValidationError):
            NewChunk(chunk_index=-1, text="x", embedding=[1.0], embedding_provider="p")

    def test_similarity_range(self) -> None:
        assert ScoredChunk(chunk=_stored(), similarity=1.0).similarity == 1.0
        with pytest.raises(ValidationError):
            ScoredChunk(chunk=_stored(), similarity=1.5)

    def test_used_chunk(self) -> None:
        used = UsedChunk(chunk_index=2, chunk_text="magma")
        assert used.model_dump() == {"chunk_index": 2, "chunk_text": "magma"}


class TestJobModels:
    def test_terminal_states(self) -> None:
        assert UploadJob(upload_id="a", state=JobState.COMPLETED, progress=100).is_terminal
        assert UploadJob(upload_id="b", state=JobState.FAILED, error="x").is_terminal
        assert not UploadJob(upload_id="c", state=JobState.RUNNING).is_terminal

    def test_progress_bounds(self) -> None:
        with pytest.raises(ValidationError):
            UploadJob(upload_id="a", progress=101)

    def test_status_response_from_job(self) -> None:
        job = UploadJob(upload_id="u1", state=JobState.RUNNING, progress=30, chunks_total=4)
        resp = UploadStatusResponse.from_job(job)
        assert resp.upload_id == "u1"
        assert resp.state == JobState.RUNNING
        assert resp.progress == 30
        assert resp.chunks_total == 4


class TestQueryRequest:
    def test_optional_fields(self) -> None:
        req = QueryRequest(text="what is a cell")
        assert req.max_chunks is None
        assert req.similarity_threshold is None
        assert req.embedding_provider is None

    @pytest.mark.parametrize(
        "payload",
        [{"text": ""}, {"text": "q", "max_chunks": 0}, {"text": "q", "similarity_threshold": 1.2}],
    )
    def test_invalid(self, payload: dict) -> None:
        with pytest.raises(ValidationError):
            QueryRequest(**payload)


class TestErrors:
    def test_str_includes_provider(self) -> None:
        exc = EmbeddingProviderError(message="HTTP 500", provider_name="ollama/e5")
        assert str(exc) == "[ollama/e5] HTTP 500"
        assert exc.message == "HTTP 500"
        assert exc.provider_name == "ollama/e5"

    def test_str_without_provider(self) -> None:
        assert str(ConfigurationError(message="bad")) == "bad"

    def test_hierarchy(self) -> None:
        assert issubclass(UnknownDocumentError, ChunkStoreError)
        assert issubclass(ChunkIndexConflictError, ChunkStoreError)
        assert issubclass(ExtractionError, StudyRagError)

    @pytest.mark.parametrize(
        ("exc", "status"),
        [
            (UnknownDocumentError(message="x"), 404),
            (ChunkIndexConflictError(message="x"), 409),
            (ChunkStoreError(message="x"), 500),
            (ExtractionError(message="x"), 422),
            (EmbeddingProviderError(message="x"), 502),
            (EmbeddingSpaceMismatchError(message="x"), 409),
            (ConfigurationError(message="x"), 400),
            (StudyRagError(message="x"), 500),
        ],
    )
    def test_status_codes(self, exc: StudyRagError, status: int) -> None:
        assert status_code_for(exc) == status
