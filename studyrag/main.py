"""studyrag FastAPI application entry point.

Wires together all providers, services, and routes via dependency
injection.  Loads configuration from the environment and ``.env`` and
configures structured logging.  :func:`build_components` is also used by
the CLI to assemble the same object graph without a web server.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any

import structlog
import uvicorn
from fastapi import FastAPI

from studyrag import __version__
from studyrag.api.middleware import (
    ErrorHandlingMiddleware,
    RequestLoggingMiddleware,
    configure_cors,
)
from studyrag.api.routes import router as api_router
from studyrag.config.settings import Settings
from studyrag.interfaces.embedding_provider import IEmbeddingProvider
from studyrag.pipeline.job_tracker import JobTracker
from studyrag.providers.chunk_store.sqlite_chunk_store import SQLiteChunkStore
from studyrag.providers.embedding.registry import build_embedding_providers
from studyrag.providers.usage_log.sqlite_usage_log_provider import SQLiteUsageLogProvider
from studyrag.services.ingestion.chunker import TextChunker
from studyrag.services.ingestion.ingestion_service import IngestionService
from studyrag.services.retrieval_service import RetrievalService
from studyrag.utils.logging import configure_logging, get_logger

# ---------------------------------------------------------------------------
# Module-level settings & logging
# ---------------------------------------------------------------------------

settings = Settings()

configure_logging(
    log_level=settings.log_level,
    json_output=(settings.app_env == "production"),
)
_logger: structlog.BoundLogger = get_logger(__name__)


# ---------------------------------------------------------------------------
# Full DI assembly
# ---------------------------------------------------------------------------


def build_components(
    app_settings: Settings,
    embedding_providers: dict[str, IEmbeddingProvider] | None = None,
) -> dict[str, Any]:
    """Construct every provider and service instance for the application.

    Returns a flat dict of named components to be stored on ``app.state``.
    Pass *embedding_providers* to replace the registry built from
    settings.
    """
    providers = embedding_providers or build_embedding_providers(app_settings)

    chunk_store = SQLiteChunkStore(db_path=app_settings.documents_db_path)
    usage_log = SQLiteUsageLogProvider(db_path=app_settings.usage_db_path)
    job_tracker = JobTracker(retention_seconds=app_settings.job_retention_seconds)

    chunker = TextChunker(
        chunk_size=app_settings.chunk_size,
        overlap=app_settings.chunk_overlap,
    )
    ingestion_service = IngestionService(
        chunker=chunker,
        chunk_store=chunk_store,
        job_tracker=job_tracker,
        concurrency=app_settings.ingestion_concurrency,
        failure_policy=app_settings.ingestion_failure_policy,
        max_upload_bytes=app_settings.max_upload_bytes,
    )
    retrieval_service = RetrievalService(
        chunk_store=chunk_store,
        max_chunks=app_settings.retrieval_max_chunks,
        similarity_threshold=app_settings.retrieval_similarity_threshold,
        fallback_chunks=app_settings.retrieval_fallback_chunks,
    )

    return {
        "settings": app_settings,
        "embedding_providers": providers,
        "chunk_store": chunk_store,
        "usage_log": usage_log,
        "job_tracker": job_tracker,
        "ingestion_service": ingestion_service,
        "retrieval_service": retrieval_service,
    }


async def initialize_components(components: dict[str, Any]) -> None:
    """Create database tables for the stores in *components*."""
    await components["chunk_store"].initialize()
    await components["usage_log"].initialize()


async def close_components(components: dict[str, Any]) -> None:
    """Cancel in-flight ingestion runs and close provider HTTP clients."""
    await components["ingestion_service"].aclose()
    for provider in components["embedding_providers"].values():
        aclose = getattr(provider, "aclose", None)
        if aclose is not None:
            await aclose()


# ---------------------------------------------------------------------------
# FastAPI application factory
# ---------------------------------------------------------------------------


def create_app(
    app_settings: Settings | None = None,
    embedding_providers: dict[str, IEmbeddingProvider] | None = None,
) -> FastAPI:
    """Build and configure the FastAPI application."""
    app_settings = app_settings or settings

    @asynccontextmanager
    async def _lifespan(application: FastAPI):  # noqa: ANN202
        """Initialise all providers and services on startup, clean up on shutdown."""
        components = build_components(app_settings, embedding_providers)
        await initialize_components(components)

        for key, value in components.items():
            setattr(application.state, key, value)

        _logger.info(
            "app_startup",
            version=__version__,
            environment=app_settings.app_env,
            default_provider=app_settings.default_embedding_provider,
            providers=sorted(components["embedding_providers"]),
        )

        yield

        await close_components(components)
        _logger.info("app_shutdown")

    application = FastAPI(
        title="studyrag API",
        version=__version__,
        description=(
            "Upload study documents, split them into overlapping chunks, embed "
            "them, and retrieve the most relevant chunks for a question."
        ),
        lifespan=_lifespan,
    )

    # -- Middleware (order matters: last added = first executed) --
    application.add_middleware(ErrorHandlingMiddleware)
    application.add_middleware(RequestLoggingMiddleware)
    configure_cors(application, allowed_origins=app_settings.cors_origins)

    application.include_router(api_router)
    return application


app = create_app()

# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    uvicorn.run(
        "studyrag.main:app",
        host=settings.app_host,
        port=settings.app_port,
        reload=(settings.app_env == "development"),
    )
