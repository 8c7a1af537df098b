"""RAG data models for the studyrag document store.

Defines Pydantic v2 models for documents, chunks, retrieval results and
usage-log entries.  Records read back from storage are frozen.

Lifecycle of the data:

    1. INGESTION: an uploaded file becomes a placeholder :class:`Document`
       and a list of overlapping text windows.
    2. EMBEDDING: each window is embedded and persisted as a
       :class:`NewChunk` (read back as :class:`StoredChunk`).
    3. RETRIEVAL: a query is scored against every stored chunk, producing
       :class:`ScoredChunk` objects wrapped in a :class:`RetrievalResult`.
    4. AUDIT: the chunks that grounded an answer are appended to the usage
       log as a :class:`UsageLogEntry`.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


# ---------------------------------------------------------------------------
# Documents
# ---------------------------------------------------------------------------
class Document(BaseModel):
    """A source file's identity and aggregate representation.

    The row exists from the moment ingestion starts; ``full_text`` and
    ``document_embedding`` stay empty until the document is finalized.
    """

    model_config = ConfigDict(frozen=True)

    id: int = Field(description="Store-assigned document identifier.")
    title: str = Field(description="File name with its extension stripped.")
    original_name: str = Field(description="File name as uploaded.")
    full_text: str = Field(default="", description="Complete extracted text.")
    document_embedding: list[float] = Field(
        default_factory=list,
        description="Embedding of the (possibly truncated) full text.",
    )
    embedding_provider: str = Field(
        default="",
        description="Embedding space of document_embedding; empty until finalized.",
    )
    created_at: datetime


class DocumentSummary(BaseModel):
    """A listing row: a document without its text or embedding."""

    model_config = ConfigDict(frozen=True)

    id: int
    title: str
    original_name: str
    created_at: datetime
    chunk_count: int = Field(default=0, ge=0, description="Chunks currently stored.")


class DocumentText(BaseModel):
    """The aggregate embedding and text of one document."""

    model_config = ConfigDict(frozen=True)

    embedding: list[float] = Field(default_factory=list)
    text: str = ""


class ChunkOwner(BaseModel):
    """Display metadata of the document that owns a chunk."""

    model_config = ConfigDict(frozen=True)

    title: str
    original_name: str


# ---------------------------------------------------------------------------
# Chunks
# ---------------------------------------------------------------------------
class NewChunk(BaseModel):
    """An embedded text window ready to be appended to a document.

    ``chunk_index`` is assigned when the text is split, before any
    embedding work is dispatched, so ordering survives out-of-order batch
    completion.
    """

    model_config = ConfigDict(frozen=True)

    chunk_index: int = Field(ge=0, description="0-based position within the document.")
    text: str = Field(description="The window's textual content.")
    embedding: list[float] = Field(description="Embedding vector of the text.")
    embedding_provider: str = Field(
        description='Embedding space tag, e.g. "openai/text-embedding-3-small".'
    )


class StoredChunk(NewChunk):
    """A chunk as read back from the store."""

    id: int = Field(description="Store-assigned chunk identifier.")
    document_id: int = Field(description="Owning document.")


# ---------------------------------------------------------------------------
# Retrieval
# ---------------------------------------------------------------------------
class ScoredChunk(BaseModel):
    """A stored chunk with its cosine similarity to a query."""

    model_config = ConfigDict(frozen=True)

    chunk: StoredChunk
    similarity: float = Field(ge=-1.0, le=1.0)


class RetrievalResult(BaseModel):
    """Ranked chunks plus the context string assembled from them.

    ``chunks`` are ordered by descending similarity and ``context`` numbers
    them ``[Source 1]``, ``[Source 2]``, ... in that same order.
    """

    model_config = ConfigDict(frozen=True)

    context: str = ""
    chunks: list[ScoredChunk] = Field(default_factory=list)
    used_fallback: bool = Field(
        default=False,
        description="True when no chunk met the threshold and the top-N fallback was used.",
    )


# ---------------------------------------------------------------------------
# Usage log
# ---------------------------------------------------------------------------
class UsedChunk(BaseModel):
    """One chunk that grounded a generated response."""

    model_config = ConfigDict(frozen=True)

    chunk_index: int = Field(ge=0)
    chunk_text: str


class UsageLogEntry(BaseModel):
    """Append-only record of which chunks answered a query."""

    model_config = ConfigDict(frozen=True)

    id: int
    document_id: int
    chunks: list[UsedChunk] = Field(default_factory=list)
    response: str
    timestamp: datetime
