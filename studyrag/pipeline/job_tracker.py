"""Upload job tracking for background ingestion runs.

Holds one :class:`~studyrag.models.job.UploadJob` per accepted upload and
applies the progress updates reported by the ingestion pipeline.  Jobs are
ephemeral: they live in memory only, and finished jobs are evicted once
they are older than the retention window, after which their status can no
longer be queried.

Progress scale:

    0        queued
    5        extracting text
    10       chunks known, embedding started
    10..90   10 + floor(80 * processed / total), one step per finished batch
    95       finalizing the document
    100      completed

Progress never decreases, and ``chunks_processed`` is accumulated across
batches that may finish in any order.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import structlog

from studyrag.models.job import JobState, UploadJob
from studyrag.utils.logging import get_logger

_EMBED_START = 10
_EMBED_SPAN = 80


class JobTracker:
    """In-memory registry of upload jobs keyed by ``upload_id``.

    All methods are synchronous and are only called from the event loop
    thread, so no locking is needed.  :meth:`get_status` hands out copies;
    the tracker is the only writer.
    """

    def __init__(self, retention_seconds: float = 3600.0) -> None:
        self._jobs: dict[str, UploadJob] = {}
        self._retention = timedelta(seconds=retention_seconds)
        self._logger: structlog.BoundLogger = get_logger(__name__)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def create(self, upload_id: str, document_id: int | None = None) -> UploadJob:
        """Register a new PENDING job and return a copy of it."""
        self.evict_finished()
        job = UploadJob(upload_id=upload_id, document_id=document_id)
        self._jobs[upload_id] = job
        self._logger.info("upload_job_created", upload_id=upload_id, document_id=document_id)
        return job.model_copy()

    def start(self, upload_id: str) -> None:
        job = self._require(upload_id)
        job.state = JobState.RUNNING
        self._advance(job, 5, "Extracting text")

    def set_total(self, upload_id: str, total: int) -> None:
        """Record how many chunks the document was split into."""
        job = self._require(upload_id)
        job.chunks_total = total
        self._advance(job, _EMBED_START, f"Embedding {total} chunks")

    def record_batch(self, upload_id: str, processed: int) -> None:
        """Add *processed* chunks to the running total and recompute progress."""
        job = self._require(upload_id)
        job.chunks_processed += processed
        total = job.chunks_total or 0
        if total > 0:
            done = min(job.chunks_processed, total)
            progress = _EMBED_START + (_EMBED_SPAN * done) // total
        else:
            progress = _EMBED_START + _EMBED_SPAN
        self._advance(job, progress, f"Embedded {job.chunks_processed}/{total} chunks")
        self._logger.debug(
            "upload_job_progress",
            upload_id=upload_id,
            processed=job.chunks_processed,
            total=total,
            progress=job.progress,
        )

    def finalizing(self, upload_id: str) -> None:
        job = self._require(upload_id)
        self._advance(job, 95, "Finalizing document")

    def complete(self, upload_id: str) -> None:
        job = self._require(upload_id)
        job.state = JobState.COMPLETED
        job.finished_at = datetime.now(timezone.utc)
        self._advance(job, 100, "Completed")
        self._logger.info(
            "upload_job_completed",
            upload_id=upload_id,
            document_id=job.document_id,
            chunks=job.chunks_processed,
        )

    def fail(self, upload_id: str, error: str) -> None:
        """Mark the job FAILED with a human-readable *error*."""
        job = self._require(upload_id)
        job.state = JobState.FAILED
        job.error = error
        job.status = f"Failed: {error}"
        job.finished_at = datetime.now(timezone.utc)
        self._logger.warning("upload_job_failed", upload_id=upload_id, error=error)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_status(self, upload_id: str) -> UploadJob | None:
        """Return a copy of the job, or ``None`` if unknown or evicted."""
        self.evict_finished()
        job = self._jobs.get(upload_id)
        return job.model_copy() if job is not None else None

    def evict_finished(self, now: datetime | None = None) -> int:
        """Drop terminal jobs that finished more than the retention window ago.

        Returns the number of jobs removed.
        """
        cutoff = (now or datetime.now(timezone.utc)) - self._retention
        stale = [
            upload_id
            for upload_id, job in self._jobs.items()
            if job.is_terminal and job.finished_at is not None and job.finished_at <= cutoff
        ]
        for upload_id in stale:
            del self._jobs[upload_id]
        if stale:
            self._logger.debug("upload_jobs_evicted", count=len(stale))
        return len(stale)

    def __len__(self) -> int:
        return len(self._jobs)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _require(self, upload_id: str) -> UploadJob:
        job = self._jobs.get(upload_id)
        if job is None:
            raise KeyError(f"Unknown upload job: {upload_id}")
        return job

    @staticmethod
    def _advance(job: UploadJob, progress: int, status: str) -> None:
        job.progress = max(job.progress, min(100, progress))
        job.status = status
