"""Abstract base class for the RAG usage log.

The usage log is an append-only audit trail of which chunks grounded which
generated response.  It exposes no update or delete operations.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime

from studyrag.models.rag import UsageLogEntry, UsedChunk


class IUsageLogProvider(ABC):
    """Contract for usage-log persistence."""

    @abstractmethod
    async def initialize(self) -> None:
        """Create tables/indices if they don't exist.  Called at startup."""

    @abstractmethod
    async def record(
        self,
        document_id: int,
        chunks: list[UsedChunk],
        response: str,
        timestamp: datetime | None = None,
    ) -> UsageLogEntry:
        """Append one entry.

        Parameters
        ----------
        document_id:
            Document whose chunks were used.
        chunks:
            The ``(chunk_index, chunk_text)`` pairs supplied as context.
        response:
            The generated response text.
        timestamp:
            When the response was produced; defaults to now (UTC).
        """

    @abstractmethod
    async def query(self, document_id: int) -> list[UsageLogEntry]:
        """Return all entries for *document_id* in the order they were recorded."""

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier for this provider."""
