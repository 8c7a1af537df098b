"""Orchestrator for background document ingestion.

Pipeline stages: **extract -> chunk -> embed -> store -> finalize**.

:meth:`IngestionService.ingest` validates an upload, creates the
placeholder document and its upload job, schedules the run on the event
loop and returns at once.  The run then:

    1. Source processor -- reads the file's pages in a worker thread
    2. TextChunker -- splits the joined pages into overlapping windows
    3. Worker pool -- embeds batches of windows (at most
       ``concurrency`` batches in flight) and appends each finished
       batch to the chunk store straight away
    4. Finalize -- embeds the truncated full text once and stores the
       document's aggregate text and embedding

Progress is reported to the :class:`JobTracker` after every batch.  The
first failure stops new batches from being scheduled and ends the job in
``FAILED``; chunks already stored stay, unless the failure policy is
``"delete"``, in which case the partial document is removed.  A run that
fails before storing any chunk (an unreadable file, for one) or is
cancelled under ``"delete"`` always removes its placeholder document.

All dependencies are injected via the constructor; the embedding provider
is passed per upload so callers can choose it by name.
"""

from __future__ import annotations

import asyncio
import time
import uuid
from pathlib import Path
from typing import TYPE_CHECKING, Literal

import structlog

from studyrag.models.job import IngestionTicket, UploadJob
from studyrag.models.rag import NewChunk
from studyrag.services.ingestion.chunker import TextChunker
from studyrag.services.ingestion.source_processors import get_processor
from studyrag.utils.concurrency import run_worker_pool
from studyrag.utils.errors import (
    ChunkStoreError,
    EmbeddingProviderError,
    ExtractionError,
    StudyRagError,
)

if TYPE_CHECKING:
    from studyrag.interfaces.chunk_store import IChunkStore
    from studyrag.interfaces.embedding_provider import IEmbeddingProvider
    from studyrag.pipeline.job_tracker import JobTracker

logger = structlog.get_logger(logger_name=__name__)

FailurePolicy = Literal["keep", "delete"]

_DEFAULT_MAX_UPLOAD_BYTES = 25 * 1024 * 1024


class IngestionService:
    """Coordinates extraction, chunking, embedding and storage of uploads.

    Parameters
    ----------
    chunker:
        Splits extracted text into overlapping windows.
    chunk_store:
        Persists the document and its chunks.
    job_tracker:
        Holds the progress record of every upload.
    concurrency:
        Maximum number of embedding batches in flight per upload.
    failure_policy:
        ``"keep"`` leaves chunks stored before a failure in place;
        ``"delete"`` removes the partial document.  A failed run that
        stored nothing is removed under either policy.
    max_upload_bytes:
        Uploads larger than this are rejected before any work starts.
    """

    def __init__(
        self,
        chunker: TextChunker,
        chunk_store: IChunkStore,
        job_tracker: JobTracker,
        concurrency: int = 3,
        failure_policy: FailurePolicy = "keep",
        max_upload_bytes: int = _DEFAULT_MAX_UPLOAD_BYTES,
    ) -> None:
        if concurrency < 1:
            raise ValueError(f"concurrency must be >= 1, got {concurrency}")
        self._chunker = chunker
        self._chunk_store = chunk_store
        self._job_tracker = job_tracker
        self._concurrency = concurrency
        self._failure_policy = failure_policy
        self._max_upload_bytes = max_upload_bytes
        self._tasks: dict[str, asyncio.Task[None]] = {}

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def ingest(
        self,
        file_bytes: bytes,
        filename: str,
        provider: IEmbeddingProvider,
    ) -> IngestionTicket:
        """Accept an upload and start ingesting it in the background.

        Returns
        -------
        IngestionTicket
            The upload id to poll with :meth:`get_status` and the id of
            the document being built.

        Raises
        ------
        ExtractionError
            If the upload is empty, too large or of an unsupported type.
        """
        original_name = Path(filename).name
        if not file_bytes:
            raise ExtractionError(message=f"{original_name or 'upload'} is empty")
        if len(file_bytes) > self._max_upload_bytes:
            raise ExtractionError(
                message=(
                    f"{original_name} is {len(file_bytes)} bytes; "
                    f"the limit is {self._max_upload_bytes}"
                )
            )
        get_processor(original_name)

        title = Path(original_name).stem or original_name
        document_id = await self._chunk_store.create_document(title, original_name)
        upload_id = uuid.uuid4().hex
        self._job_tracker.create(upload_id, document_id=document_id)

        task = asyncio.create_task(
            self._run(upload_id, document_id, file_bytes, original_name, provider),
            name=f"ingest-{upload_id}",
        )
        self._tasks[upload_id] = task
        task.add_done_callback(lambda _t: self._tasks.pop(upload_id, None))

        logger.info(
            "ingestion_accepted",
            upload_id=upload_id,
            document_id=document_id,
            filename=original_name,
            size=len(file_bytes),
            provider=provider.get_provider_name(),
        )
        return IngestionTicket(
            upload_id=upload_id,
            document_id=document_id,
            title=title,
            original_name=original_name,
        )

    def get_status(self, upload_id: str) -> UploadJob | None:
        """Return a snapshot of the upload's job, or ``None`` if unknown."""
        return self._job_tracker.get_status(upload_id)

    async def wait(self, upload_id: str) -> UploadJob | None:
        """Wait for a background run to finish and return its final job."""
        task = self._tasks.get(upload_id)
        if task is not None:
            await asyncio.wait({task})
        return self._job_tracker.get_status(upload_id)

    async def aclose(self) -> None:
        """Cancel runs that are still in progress.

        Every cancelled job ends ``FAILED``.  A run cancelled before it
        started never stored a chunk, so its placeholder document is removed.
        """
        pending = dict(self._tasks)
        for task in pending.values():
            task.cancel()
        if not pending:
            return
        await asyncio.gather(*pending.values(), return_exceptions=True)

        for upload_id in pending:
            job = self._job_tracker.get_status(upload_id)
            if job is None or job.is_terminal:
                continue
            self._job_tracker.fail(upload_id, "Ingestion cancelled")
            if job.document_id is not None:
                await self._discard_partial(
                    job.document_id, logger.bind(upload_id=upload_id, document_id=job.document_id)
                )

    # ------------------------------------------------------------------
    # Background run
    # ------------------------------------------------------------------

    async def _run(
        self,
        upload_id: str,
        document_id: int,
        file_bytes: bytes,
        filename: str,
        provider: IEmbeddingProvider,
    ) -> None:
        start = time.monotonic()
        log = logger.bind(upload_id=upload_id, document_id=document_id)
        self._job_tracker.start(upload_id)

        try:
            text = await self._extract(file_bytes, filename)
            windows = self._chunker.chunk(text)
            if not windows:
                raise ExtractionError(message=f"No extractable text in {filename}")
            self._job_tracker.set_total(upload_id, len(windows))
            log.info("ingestion_chunked", chunks=len(windows), chars=len(text))

            await self._embed_and_store(upload_id, document_id, windows, provider)

            self._job_tracker.finalizing(upload_id)
            doc_embedding = await provider.embed_single(text[: provider.get_max_input_chars()])
            await self._chunk_store.finalize_document(
                document_id,
                embedding=doc_embedding,
                text=text,
                embedding_provider=provider.get_provider_name(),
            )
        except asyncio.CancelledError:
            self._job_tracker.fail(upload_id, "Ingestion cancelled")
            log.warning("ingestion_cancelled", policy=self._failure_policy)
            if self._should_discard(upload_id, None):
                await asyncio.shield(self._discard_partial(document_id, log))
            raise
        except Exception as exc:
            message = str(exc) if isinstance(exc, StudyRagError) else f"{type(exc).__name__}: {exc}"
            self._job_tracker.fail(upload_id, message)
            log.error("ingestion_failed", error=message, policy=self._failure_policy)
            if self._should_discard(upload_id, exc):
                await self._discard_partial(document_id, log)
            return

        self._job_tracker.complete(upload_id)
        log.info(
            "ingestion_complete",
            chunks=len(windows),
            elapsed_s=round(time.monotonic() - start, 2),
        )

    async def _extract(self, file_bytes: bytes, filename: str) -> str:
        processor = get_processor(filename)
        pages = await asyncio.to_thread(processor.extract_pages, file_bytes, filename)
        if not pages:
            raise ExtractionError(message=f"No extractable text in {filename}")
        return "\n".join(pages)

    async def _embed_and_store(
        self,
        upload_id: str,
        document_id: int,
        windows: list[str],
        provider: IEmbeddingProvider,
    ) -> None:
        batch_size = provider.get_batch_size()
        provider_name = provider.get_provider_name()
        batches = [
            (offset, windows[offset : offset + batch_size])
            for offset in range(0, len(windows), batch_size)
        ]

        async def _process(batch: tuple[int, list[str]]) -> int:
            offset, texts = batch
            vectors = await provider.embed(texts)
            if len(vectors) != len(texts):
                raise EmbeddingProviderError(
                    message=f"Expected {len(texts)} vectors, got {len(vectors)}",
                    provider_name=provider_name,
                )
            chunks = [
                NewChunk(
                    chunk_index=offset + i,
                    text=chunk_text,
                    embedding=vector,
                    embedding_provider=provider_name,
                )
                for i, (chunk_text, vector) in enumerate(zip(texts, vectors))
            ]
            await self._chunk_store.append_chunks(document_id, chunks)
            self._job_tracker.record_batch(upload_id, len(chunks))
            return len(chunks)

        await run_worker_pool(
            batches,
            _process,
            concurrency=self._concurrency,
            logger=logger.bind(upload_id=upload_id),
        )

    def _should_discard(self, upload_id: str, exc: BaseException | None) -> bool:
        """Whether a failed run's document should be removed.

        Unreadable files and runs that stored no chunk leave nothing worth
        keeping, so their placeholder goes whatever the policy.
        """
        if self._failure_policy == "delete" or isinstance(exc, ExtractionError):
            return True
        job = self._job_tracker.get_status(upload_id)
        return job is None or job.chunks_processed == 0

    async def _discard_partial(self, document_id: int, log: structlog.BoundLogger) -> None:
        try:
            await self._chunk_store.delete_document(document_id)
        except ChunkStoreError as exc:
            log.warning("partial_document_delete_failed", error=str(exc))
            return
        log.info("partial_document_deleted")
