"""Abstract base class for document and chunk persistence.

The chunk store exclusively owns Document and Chunk records.  A chunk can
never outlive its document (deletes cascade) and no two chunks of one
document share a ``chunk_index``.  Every operation is its own unit of
work, so concurrent ``append_chunks`` calls for the same document from
different ingestion batches are safe.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from studyrag.models.rag import (
    ChunkOwner,
    Document,
    DocumentSummary,
    DocumentText,
    NewChunk,
    StoredChunk,
)


class IChunkStore(ABC):
    """Contract for persistent document/chunk storage.

    All operations are async to support network-backed stores.
    """

    @abstractmethod
    async def initialize(self) -> None:
        """Create tables/indices if they don't exist.  Called at startup."""

    @abstractmethod
    async def create_document(self, title: str, original_name: str) -> int:
        """Insert a placeholder document with empty text and embedding.

        Returns
        -------
        int
            The new document's id.
        """

    @abstractmethod
    async def append_chunks(self, document_id: int, chunks: list[NewChunk]) -> None:
        """Insert *chunks* for an existing document in one transaction.

        Raises
        ------
        studyrag.utils.errors.UnknownDocumentError
            If *document_id* does not exist.
        studyrag.utils.errors.ChunkIndexConflictError
            If any ``chunk_index`` is already stored for the document.
        """

    @abstractmethod
    async def finalize_document(
        self,
        document_id: int,
        embedding: list[float],
        text: str,
        embedding_provider: str,
    ) -> None:
        """Set a document's aggregate text and embedding.  Last write wins.

        Raises
        ------
        studyrag.utils.errors.UnknownDocumentError
            If *document_id* does not exist.
        """

    @abstractmethod
    async def list_documents(self) -> list[DocumentSummary]:
        """Return all documents, newest first, without text or embedding."""

    @abstractmethod
    async def get_document(self, document_id: int) -> Document | None:
        """Return the full document record, or ``None`` if not found."""

    @abstractmethod
    async def get_document_text(self, document_id: int) -> DocumentText | None:
        """Return the document's aggregate embedding and text, or ``None``."""

    @abstractmethod
    async def list_all_chunks(self) -> list[StoredChunk]:
        """Return every chunk ordered by ``(document_id, chunk_index)``."""

    @abstractmethod
    async def get_chunk_owner(self, chunk_id: int) -> ChunkOwner | None:
        """Return title and original name of the document owning *chunk_id*."""

    @abstractmethod
    async def delete_document(self, document_id: int) -> None:
        """Delete a document and, by cascade, all of its chunks.

        Raises
        ------
        studyrag.utils.errors.UnknownDocumentError
            If *document_id* does not exist.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier for this store."""
