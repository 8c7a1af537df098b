"""Utility modules for studyrag.

- **concurrency** -- semaphore throttling and the fixed-size worker pool
  that bounds in-flight embedding batches during ingestion.
- **errors** -- Domain exception hierarchy rooted at StudyRagError.
- **logging** -- structlog setup with a dual console/JSON renderer.
- **similarity** -- numpy cosine similarity used by retrieval.
"""

from studyrag.utils.concurrency import run_worker_pool, throttled_gather
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
from studyrag.utils.logging import configure_logging, get_logger
from studyrag.utils.similarity import cosine_similarities, cosine_similarity

__all__ = [
    "ChunkIndexConflictError",
    "ChunkStoreError",
    "ConfigurationError",
    "EmbeddingProviderError",
    "EmbeddingSpaceMismatchError",
    "ExtractionError",
    "StudyRagError",
    "UnknownDocumentError",
    "configure_logging",
    "cosine_similarities",
    "cosine_similarity",
    "get_logger",
    "run_worker_pool",
    "throttled_gather",
]
