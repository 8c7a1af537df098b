"""studyrag domain models -- re-exports all public model classes.

    - job.py -- ephemeral upload-job progress records
    - rag.py -- documents, chunks, retrieval results and usage-log entries
"""

from __future__ import annotations

from studyrag.models.job import IngestionTicket, JobState, UploadJob
from studyrag.models.rag import (
    ChunkOwner,
    Document,
    DocumentSummary,
    DocumentText,
    NewChunk,
    RetrievalResult,
    ScoredChunk,
    StoredChunk,
    UsageLogEntry,
    UsedChunk,
)

__all__ = [
    "ChunkOwner",
    "Document",
    "DocumentSummary",
    "DocumentText",
    "IngestionTicket",
    "JobState",
    "NewChunk",
    "RetrievalResult",
    "ScoredChunk",
    "StoredChunk",
    "UploadJob",
    "UsageLogEntry",
    "UsedChunk",
]
