"""Upload job models -- the ephemeral progress record of one ingestion run."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, Field


class JobState(str, Enum):
    """Lifecycle state of an upload job."""

    PENDING = "PENDING"
    RUNNING = "RUNNING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


class UploadJob(BaseModel):
    """Progress and state of one ingestion run.

    Mutable: owned and updated by :class:`~studyrag.pipeline.job_tracker.JobTracker`,
    which only ever hands out copies.  Terminal once ``state`` is
    ``COMPLETED`` (``progress == 100``) or ``FAILED`` (``error`` set).
    """

    upload_id: str
    status: str = Field(default="Queued", description="Human-readable phase message.")
    progress: int = Field(default=0, ge=0, le=100)
    state: JobState = JobState.PENDING
    error: str | None = None
    document_id: int | None = None
    chunks_processed: int = Field(default=0, ge=0)
    chunks_total: int | None = Field(default=None, ge=0)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    finished_at: datetime | None = None

    @property
    def is_terminal(self) -> bool:
        return self.state in (JobState.COMPLETED, JobState.FAILED)


class IngestionTicket(BaseModel):
    """Returned as soon as an upload has been accepted."""

    upload_id: str
    document_id: int
    title: str
    original_name: str
