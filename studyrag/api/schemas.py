"""Pydantic request/response schemas for the studyrag API.

Defines the public contract for all REST endpoints: upload, upload status,
document listing and deletion, usage log, query and health.

Convention: request schemas end with "Request", response schemas end with
"Response".  Stored records (:class:`DocumentSummary`,
:class:`UsageLogEntry`) are returned as-is inside the response wrappers.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from studyrag.models.job import JobState, UploadJob
from studyrag.models.rag import DocumentSummary, UsageLogEntry, UsedChunk


# ---------------------------------------------------------------------------
# Documents
# ---------------------------------------------------------------------------


class UploadAcceptedResponse(BaseModel):
    """Returned with HTTP 202 once an upload has been accepted."""

    upload_id: str
    document_id: int
    title: str
    original_name: str
    embedding_provider: str


class UploadStatusResponse(BaseModel):
    """Progress snapshot of one upload."""

    upload_id: str
    state: JobState
    status: str = Field(description="Human-readable phase message.")
    progress: int = Field(ge=0, le=100)
    error: str | None = None
    document_id: int | None = None
    chunks_processed: int = 0
    chunks_total: int | None = None
    created_at: datetime
    finished_at: datetime | None = None

    @classmethod
    def from_job(cls, job: UploadJob) -> UploadStatusResponse:
        return cls(
            upload_id=job.upload_id,
            state=job.state,
            status=job.status,
            progress=job.progress,
            error=job.error,
            document_id=job.document_id,
            chunks_processed=job.chunks_processed,
            chunks_total=job.chunks_total,
            created_at=job.created_at,
            finished_at=job.finished_at,
        )


class DocumentListResponse(BaseModel):
    """All stored documents, newest first."""

    documents: list[DocumentSummary] = Field(default_factory=list)
    total: int = 0


class DeleteDocumentResponse(BaseModel):
    document_id: int
    deleted: bool = True


# ---------------------------------------------------------------------------
# Usage log
# ---------------------------------------------------------------------------


class RecordUsageRequest(BaseModel):
    """Chunks that grounded a generated response, reported by the caller."""

    chunks: list[UsedChunk] = Field(default_factory=list)
    response: str = Field(..., min_length=1)


class UsageListResponse(BaseModel):
    document_id: int
    entries: list[UsageLogEntry] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Query
# ---------------------------------------------------------------------------


class QueryRequest(BaseModel):
    """A retrieval query.  Omitted fields fall back to server settings."""

    text: str = Field(..., min_length=1, max_length=4000)
    max_chunks: int | None = Field(default=None, ge=1, le=50)
    similarity_threshold: float | None = Field(default=None, ge=-1.0, le=1.0)
    embedding_provider: str | None = None


class CitedChunk(BaseModel):
    """A retrieved chunk with its score and owning document."""

    chunk_id: int
    document_id: int
    chunk_index: int
    text: str
    similarity: float
    document_title: str | None = None
    original_name: str | None = None


class QueryResponse(BaseModel):
    context: str
    cited_chunks: list[CitedChunk] = Field(default_factory=list)
    used_fallback: bool = False
    embedding_provider: str


# ---------------------------------------------------------------------------
# System
# ---------------------------------------------------------------------------


class HealthResponse(BaseModel):
    """Application health check response."""

    status: str
    version: str
    default_provider: str
    providers: dict[str, bool]


class ErrorResponse(BaseModel):
    """Standard error response body."""

    error: str
    detail: str | None = None
