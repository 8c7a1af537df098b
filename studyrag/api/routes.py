"""FastAPI route definitions for the studyrag REST API.

All endpoints live under ``/api/v1`` on a single ``APIRouter``.  Service
dependencies are resolved from ``app.state`` via FastAPI's ``Depends``
using the ``Annotated`` pattern; ``main.py`` populates ``app.state`` in
the lifespan handler.

Application errors (``StudyRagError``) are not caught here: the
``ErrorHandlingMiddleware`` maps them to status codes.  Routes only raise
``HTTPException`` for HTTP-level conditions such as an oversized upload
or an unknown upload id.
"""

from __future__ import annotations

import asyncio
from typing import Annotated, Any

import structlog
from fastapi import APIRouter, Depends, Form, HTTPException, Request, UploadFile

from studyrag import __version__
from studyrag.api.schemas import (
    CitedChunk,
    DeleteDocumentResponse,
    DocumentListResponse,
    ErrorResponse,
    HealthResponse,
    QueryRequest,
    QueryResponse,
    RecordUsageRequest,
    UploadAcceptedResponse,
    UploadStatusResponse,
    UsageListResponse,
)
from studyrag.config.settings import Settings
from studyrag.interfaces.chunk_store import IChunkStore
from studyrag.interfaces.embedding_provider import IEmbeddingProvider
from studyrag.interfaces.usage_log_provider import IUsageLogProvider
from studyrag.models.rag import UsageLogEntry
from studyrag.providers.embedding.registry import resolve_provider
from studyrag.services.ingestion.ingestion_service import IngestionService
from studyrag.services.retrieval_service import RetrievalService
from studyrag.utils.errors import UnknownDocumentError
from studyrag.utils.logging import get_logger

_logger: structlog.BoundLogger = get_logger(__name__)

router = APIRouter(prefix="/api/v1")

_UPLOAD_CHUNK_SIZE = 64 * 1024


# ---------------------------------------------------------------------------
# Dependency helpers
# ---------------------------------------------------------------------------


def _get_settings(request: Request) -> Settings:
    return request.app.state.settings


def _get_chunk_store(request: Request) -> IChunkStore:
    return request.app.state.chunk_store


def _get_usage_log(request: Request) -> IUsageLogProvider:
    return request.app.state.usage_log


def _get_ingestion_service(request: Request) -> IngestionService:
    return request.app.state.ingestion_service


def _get_retrieval_service(request: Request) -> RetrievalService:
    return request.app.state.retrieval_service


def _get_embedding_providers(request: Request) -> dict[str, IEmbeddingProvider]:
    return request.app.state.embedding_providers


SettingsDep = Annotated[Settings, Depends(_get_settings)]
ChunkStoreDep = Annotated[IChunkStore, Depends(_get_chunk_store)]
UsageLogDep = Annotated[IUsageLogProvider, Depends(_get_usage_log)]
IngestionDep = Annotated[IngestionService, Depends(_get_ingestion_service)]
RetrievalDep = Annotated[RetrievalService, Depends(_get_retrieval_service)]
ProvidersDep = Annotated[dict[str, IEmbeddingProvider], Depends(_get_embedding_providers)]


# ---------------------------------------------------------------------------
# Document endpoints
# ---------------------------------------------------------------------------


@router.post(
    "/documents/upload",
    status_code=202,
    response_model=UploadAcceptedResponse,
    responses={
        400: {"model": ErrorResponse},
        413: {"model": ErrorResponse},
        422: {"model": ErrorResponse},
    },
    summary="Upload a PDF, text or Markdown file for background ingestion",
)
async def upload_document(
    file: UploadFile,
    ingestion: IngestionDep,
    providers: ProvidersDep,
    app_settings: SettingsDep,
    embedding_provider: Annotated[str | None, Form()] = None,
) -> UploadAcceptedResponse:
    """Accept a file and return its upload id immediately.

    Poll ``/documents/upload-status/{upload_id}`` for progress.
    """
    provider = resolve_provider(
        providers, embedding_provider, app_settings.default_embedding_provider
    )

    # Read in 64 KB pieces so an oversized upload is rejected early.
    parts: list[bytes] = []
    total_size = 0
    while True:
        part = await file.read(_UPLOAD_CHUNK_SIZE)
        if not part:
            break
        total_size += len(part)
        if total_size > app_settings.max_upload_bytes:
            raise HTTPException(
                status_code=413,
                detail=f"File too large. Maximum: {app_settings.max_upload_bytes} bytes.",
            )
        parts.append(part)
    file_bytes = b"".join(parts)

    ticket = await ingestion.ingest(file_bytes, file.filename or "", provider)
    return UploadAcceptedResponse(
        upload_id=ticket.upload_id,
        document_id=ticket.document_id,
        title=ticket.title,
        original_name=ticket.original_name,
        embedding_provider=provider.get_provider_name(),
    )


@router.get(
    "/documents/upload-status/{upload_id}",
    response_model=UploadStatusResponse,
    responses={404: {"model": ErrorResponse}},
    summary="Get the progress of an upload",
)
async def upload_status(upload_id: str, ingestion: IngestionDep) -> UploadStatusResponse:
    job = ingestion.get_status(upload_id)
    if job is None:
        raise HTTPException(status_code=404, detail=f"Unknown upload: {upload_id}")
    return UploadStatusResponse.from_job(job)


@router.get(
    "/documents",
    response_model=DocumentListResponse,
    summary="List stored documents, newest first",
)
async def list_documents(chunk_store: ChunkStoreDep) -> DocumentListResponse:
    documents = await chunk_store.list_documents()
    return DocumentListResponse(documents=documents, total=len(documents))


@router.delete(
    "/documents/{document_id}",
    response_model=DeleteDocumentResponse,
    responses={404: {"model": ErrorResponse}},
    summary="Delete a document and all of its chunks",
)
async def delete_document(document_id: int, chunk_store: ChunkStoreDep) -> DeleteDocumentResponse:
    await chunk_store.delete_document(document_id)
    return DeleteDocumentResponse(document_id=document_id)


# ---------------------------------------------------------------------------
# Usage log endpoints
# ---------------------------------------------------------------------------


@router.get(
    "/documents/{document_id}/usage",
    response_model=UsageListResponse,
    summary="List the usage log entries of a document, oldest first",
)
async def get_usage(document_id: int, usage_log: UsageLogDep) -> UsageListResponse:
    entries = await usage_log.query(document_id)
    return UsageListResponse(document_id=document_id, entries=entries)


@router.post(
    "/documents/{document_id}/usage",
    status_code=201,
    response_model=UsageLogEntry,
    responses={404: {"model": ErrorResponse}},
    summary="Record which chunks grounded a generated response",
)
async def record_usage(
    document_id: int,
    body: RecordUsageRequest,
    chunk_store: ChunkStoreDep,
    usage_log: UsageLogDep,
) -> UsageLogEntry:
    if await chunk_store.get_document(document_id) is None:
        raise UnknownDocumentError(
            message=f"Document {document_id} does not exist",
            provider_name=chunk_store.get_provider_name(),
        )
    return await usage_log.record(document_id, body.chunks, body.response)


# ---------------------------------------------------------------------------
# Query endpoint
# ---------------------------------------------------------------------------


@router.post(
    "/query",
    response_model=QueryResponse,
    responses={
        400: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
        502: {"model": ErrorResponse},
    },
    summary="Retrieve the stored chunks most relevant to a query",
)
async def query(
    body: QueryRequest,
    retrieval: RetrievalDep,
    chunk_store: ChunkStoreDep,
    providers: ProvidersDep,
    app_settings: SettingsDep,
) -> QueryResponse:
    provider = resolve_provider(
        providers, body.embedding_provider, app_settings.default_embedding_provider
    )
    result = await retrieval.retrieve(
        body.text,
        provider,
        max_chunks=body.max_chunks,
        similarity_threshold=body.similarity_threshold,
    )

    cited: list[CitedChunk] = []
    for scored in result.chunks:
        owner = await chunk_store.get_chunk_owner(scored.chunk.id)
        cited.append(
            CitedChunk(
                chunk_id=scored.chunk.id,
                document_id=scored.chunk.document_id,
                chunk_index=scored.chunk.chunk_index,
                text=scored.chunk.text,
                similarity=scored.similarity,
                document_title=owner.title if owner else None,
                original_name=owner.original_name if owner else None,
            )
        )

    return QueryResponse(
        context=result.context,
        cited_chunks=cited,
        used_fallback=result.used_fallback,
        embedding_provider=provider.get_provider_name(),
    )


# ---------------------------------------------------------------------------
# System endpoints
# ---------------------------------------------------------------------------


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Application health check",
)
async def health_check(providers: ProvidersDep, app_settings: SettingsDep) -> HealthResponse:
    """Return application health, version, and embedding provider availability."""
    availability: dict[str, bool] = {}
    for name, provider in providers.items():
        # Availability checks may block on network I/O.
        availability[name] = await asyncio.to_thread(provider.is_available)

    default = app_settings.default_embedding_provider
    if availability.get(default, False):
        status = "healthy"
    elif any(availability.values()):
        status = "degraded"
    else:
        status = "unhealthy"

    details: dict[str, Any] = {"status": status, **availability}
    _logger.debug("health_check", **details)
    return HealthResponse(
        status=status,
        version=__version__,
        default_provider=default,
        providers=availability,
    )
