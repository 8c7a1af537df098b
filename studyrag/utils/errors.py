"""Custom exception hierarchy for studyrag.

All application exceptions inherit from :class:`StudyRagError`, which
carries an optional ``provider_name`` so error handlers can identify which
backend (e.g. "openai/text-embedding-3-small", "sqlite_chunk_store")
caused the failure.

The hierarchy is organized by pipeline stage:

    StudyRagError  (base -- catch-all for any studyrag error)
    +-- ExtractionError              (file -> text)
    +-- EmbeddingProviderError       (text -> vector)
    +-- EmbeddingSpaceMismatchError  (query vs. stored vectors)
    +-- ChunkStoreError              (persistence)
    |   +-- UnknownDocumentError
    |   +-- ChunkIndexConflictError
    +-- ConfigurationError           (startup / invalid parameters)

Nothing in the subsystem retries on these errors; they propagate to the
caller, which decides whether to abort, surface or retry.
"""


class StudyRagError(Exception):
    """Base exception for all studyrag errors.

    Every subclass carries a human-readable ``message`` and an optional
    ``provider_name`` identifying which backend triggered the error.  The
    ``__str__`` method prefixes the provider name in brackets for log
    output, e.g. ``[ollama/zylonai/multilingual-e5-large] HTTP 500``.
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        provider_name: str | None = None,
    ) -> None:
        self._message = message
        self._provider_name = provider_name
        super().__init__(self._message)

    @property
    def message(self) -> str:
        return self._message

    @property
    def provider_name(self) -> str | None:
        return self._provider_name

    def __str__(self) -> str:
        if self._provider_name:
            return f"[{self._provider_name}] {self._message}"
        return self._message


# ---------------------------------------------------------------------------
# Ingestion errors
# ---------------------------------------------------------------------------

class ExtractionError(StudyRagError):
    """Raised when an uploaded file cannot be parsed into text."""

    def __init__(
        self,
        message: str = "Text extraction failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class EmbeddingProviderError(StudyRagError):
    """Raised when an embedding call fails.

    Covers network failures, non-2xx responses and malformed payloads.  A
    single failing item fails the whole batch it was part of.
    """

    def __init__(
        self,
        message: str = "Embedding provider call failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class EmbeddingSpaceMismatchError(StudyRagError):
    """Raised when a query provider cannot be compared with stored chunks.

    Vectors from different embedding models (or of different dimensions)
    produce meaningless cosine scores, so retrieval refuses to mix them.
    """

    def __init__(
        self,
        message: str = "Stored chunks were embedded with a different provider",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Persistence errors
# ---------------------------------------------------------------------------

class ChunkStoreError(StudyRagError):
    """Raised when a chunk-store operation fails."""

    def __init__(
        self,
        message: str = "Chunk store operation failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class UnknownDocumentError(ChunkStoreError):
    """Raised when a store operation references a nonexistent document id."""

    def __init__(
        self,
        message: str = "Unknown document",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class ChunkIndexConflictError(ChunkStoreError):
    """Raised when a chunk index is already taken within its document."""

    def __init__(
        self,
        message: str = "Chunk index already exists for this document",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Configuration errors
# ---------------------------------------------------------------------------

class ConfigurationError(StudyRagError):
    """Raised when configuration or call parameters are invalid."""

    def __init__(
        self,
        message: str = "Invalid or missing configuration",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)
