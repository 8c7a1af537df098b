"""SQLite-backed chunk store.

Persists documents and their embedded chunks to a local SQLite database at
``data/documents.db``.  Uses ``aiosqlite`` for async I/O.  Embeddings are
stored as JSON arrays.  Foreign keys are enabled on every connection so
deleting a document cascades to its chunks.
"""

from __future__ import annotations

import json
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import AsyncIterator

import aiosqlite
import structlog

from studyrag.interfaces.chunk_store import IChunkStore
from studyrag.models.rag import (
    ChunkOwner,
    Document,
    DocumentSummary,
    DocumentText,
    NewChunk,
    StoredChunk,
)
from studyrag.utils.errors import (
    ChunkIndexConflictError,
    ChunkStoreError,
    UnknownDocumentError,
)

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_DB_PATH = Path("data/documents.db")
_PROVIDER_NAME = "sqlite_chunk_store"

_CREATE_DOCUMENTS_SQL = """\
CREATE TABLE IF NOT EXISTS documents (
    id                  INTEGER PRIMARY KEY AUTOINCREMENT,
    title               TEXT    NOT NULL,
    original_name       TEXT    NOT NULL,
    full_text           TEXT    NOT NULL DEFAULT '',
    document_embedding  TEXT    NOT NULL DEFAULT '[]',
    embedding_provider  TEXT    NOT NULL DEFAULT '',
    created_at          TEXT    NOT NULL
);
"""

_CREATE_CHUNKS_SQL = """\
CREATE TABLE IF NOT EXISTS document_chunks (
    id                  INTEGER PRIMARY KEY AUTOINCREMENT,
    document_id         INTEGER NOT NULL REFERENCES documents(id) ON DELETE CASCADE,
    chunk_index         INTEGER NOT NULL,
    text                TEXT    NOT NULL,
    embedding           TEXT    NOT NULL,
    embedding_provider  TEXT    NOT NULL,
    UNIQUE(document_id, chunk_index)
);
"""

_CREATE_INDICES_SQL = [
    "CREATE INDEX IF NOT EXISTS idx_chunks_document ON document_chunks(document_id);",
    "CREATE INDEX IF NOT EXISTS idx_documents_created ON documents(created_at);",
]

_INSERT_DOCUMENT_SQL = """\
INSERT INTO documents (title, original_name, created_at)
VALUES (?, ?, ?);
"""

_INSERT_CHUNK_SQL = """\
INSERT INTO document_chunks (document_id, chunk_index, text, embedding, embedding_provider)
VALUES (?, ?, ?, ?, ?);
"""

_FINALIZE_SQL = """\
UPDATE documents
SET document_embedding = ?, full_text = ?, embedding_provider = ?
WHERE id = ?;
"""

_LIST_DOCUMENTS_SQL = """\
SELECT d.id, d.title, d.original_name, d.created_at, COUNT(c.id) AS chunk_count
FROM documents d
LEFT JOIN document_chunks c ON c.document_id = d.id
GROUP BY d.id
ORDER BY d.created_at DESC, d.id DESC;
"""

_SELECT_ALL_CHUNKS_SQL = """\
SELECT id, document_id, chunk_index, text, embedding, embedding_provider
FROM document_chunks
ORDER BY document_id, chunk_index;
"""

_SELECT_CHUNK_OWNER_SQL = """\
SELECT d.title, d.original_name
FROM document_chunks c
JOIN documents d ON d.id = c.document_id
WHERE c.id = ?;
"""


def _now_iso() -> str:
    return datetime.now(tz=timezone.utc).isoformat(timespec="milliseconds")


class SQLiteChunkStore(IChunkStore):
    """SQLite-backed document and chunk persistence.

    Each public method opens its own connection and commits (or rolls
    back) before returning, so calls from concurrent ingestion batches
    never share a transaction.
    """

    def __init__(self, db_path: str | Path = _DEFAULT_DB_PATH) -> None:
        self._db_path = Path(db_path)

    @asynccontextmanager
    async def _connect(self) -> AsyncIterator[aiosqlite.Connection]:
        async with aiosqlite.connect(str(self._db_path), timeout=30.0) as db:
            db.row_factory = aiosqlite.Row
            await db.execute("PRAGMA foreign_keys = ON;")
            yield db

    async def initialize(self) -> None:
        """Create the documents/chunks tables and indices if they don't exist."""
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        async with self._connect() as db:
            await db.execute("PRAGMA journal_mode = WAL;")
            await db.execute(_CREATE_DOCUMENTS_SQL)
            await db.execute(_CREATE_CHUNKS_SQL)
            for idx_sql in _CREATE_INDICES_SQL:
                await db.execute(idx_sql)
            await db.commit()
        logger.info("chunk_store_initialized", path=str(self._db_path))

    async def create_document(self, title: str, original_name: str) -> int:
        async with self._connect() as db:
            cursor = await db.execute(_INSERT_DOCUMENT_SQL, (title, original_name, _now_iso()))
            await db.commit()
            document_id = cursor.lastrowid

        logger.info("document_created", document_id=document_id, title=title)
        return int(document_id)

    async def append_chunks(self, document_id: int, chunks: list[NewChunk]) -> None:
        """Insert *chunks* atomically; either all rows land or none do."""
        rows = [
            (
                document_id,
                chunk.chunk_index,
                chunk.text,
                json.dumps(chunk.embedding),
                chunk.embedding_provider,
            )
            for chunk in chunks
        ]

        async with self._connect() as db:
            if not await self._document_exists(db, document_id):
                raise UnknownDocumentError(
                    message=f"Document {document_id} does not exist",
                    provider_name=_PROVIDER_NAME,
                )
            if not rows:
                return
            try:
                await db.executemany(_INSERT_CHUNK_SQL, rows)
                await db.commit()
            except aiosqlite.IntegrityError as exc:
                await db.rollback()
                raise self._map_integrity_error(exc, document_id) from exc

        logger.debug(
            "chunks_appended",
            document_id=document_id,
            count=len(rows),
            first_index=chunks[0].chunk_index,
        )

    async def finalize_document(
        self,
        document_id: int,
        embedding: list[float],
        text: str,
        embedding_provider: str,
    ) -> None:
        async with self._connect() as db:
            cursor = await db.execute(
                _FINALIZE_SQL,
                (json.dumps(embedding), text, embedding_provider, document_id),
            )
            await db.commit()
            updated = cursor.rowcount

        if updated == 0:
            raise UnknownDocumentError(
                message=f"Document {document_id} does not exist",
                provider_name=_PROVIDER_NAME,
            )
        logger.info("document_finalized", document_id=document_id, chars=len(text))

    async def list_documents(self) -> list[DocumentSummary]:
        async with self._connect() as db:
            cursor = await db.execute(_LIST_DOCUMENTS_SQL)
            rows = await cursor.fetchall()

        return [
            DocumentSummary(
                id=row["id"],
                title=row["title"],
                original_name=row["original_name"],
                created_at=datetime.fromisoformat(row["created_at"]),
                chunk_count=row["chunk_count"],
            )
            for row in rows
        ]

    async def get_document(self, document_id: int) -> Document | None:
        async with self._connect() as db:
            cursor = await db.execute(
                "SELECT id, title, original_name, full_text, document_embedding, "
                "embedding_provider, created_at FROM documents WHERE id = ?",
                (document_id,),
            )
            row = await cursor.fetchone()

        if row is None:
            return None
        return Document(
            id=row["id"],
            title=row["title"],
            original_name=row["original_name"],
            full_text=row["full_text"],
            document_embedding=json.loads(row["document_embedding"]),
            embedding_provider=row["embedding_provider"],
            created_at=datetime.fromisoformat(row["created_at"]),
        )

    async def get_document_text(self, document_id: int) -> DocumentText | None:
        async with self._connect() as db:
            cursor = await db.execute(
                "SELECT document_embedding, full_text FROM documents WHERE id = ?",
                (document_id,),
            )
            row = await cursor.fetchone()

        if row is None:
            return None
        return DocumentText(
            embedding=json.loads(row["document_embedding"]),
            text=row["full_text"],
        )

    async def list_all_chunks(self) -> list[StoredChunk]:
        async with self._connect() as db:
            cursor = await db.execute(_SELECT_ALL_CHUNKS_SQL)
            rows = await cursor.fetchall()

        return [
            StoredChunk(
                id=row["id"],
                document_id=row["document_id"],
                chunk_index=row["chunk_index"],
                text=row["text"],
                embedding=json.loads(row["embedding"]),
                embedding_provider=row["embedding_provider"],
            )
            for row in rows
        ]

    async def get_chunk_owner(self, chunk_id: int) -> ChunkOwner | None:
        async with self._connect() as db:
            cursor = await db.execute(_SELECT_CHUNK_OWNER_SQL, (chunk_id,))
            row = await cursor.fetchone()

        if row is None:
            return None
        return ChunkOwner(title=row["title"], original_name=row["original_name"])

    async def delete_document(self, document_id: int) -> None:
        async with self._connect() as db:
            cursor = await db.execute("DELETE FROM documents WHERE id = ?", (document_id,))
            await db.commit()
            deleted = cursor.rowcount

        if deleted == 0:
            raise UnknownDocumentError(
                message=f"Document {document_id} does not exist",
                provider_name=_PROVIDER_NAME,
            )
        logger.info("document_deleted", document_id=document_id)

    def get_provider_name(self) -> str:
        """Return a human-readable identifier for this provider."""
        return _PROVIDER_NAME

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    @staticmethod
    async def _document_exists(db: aiosqlite.Connection, document_id: int) -> bool:
        cursor = await db.execute("SELECT 1 FROM documents WHERE id = ?", (document_id,))
        return await cursor.fetchone() is not None

    @staticmethod
    def _map_integrity_error(exc: aiosqlite.IntegrityError, document_id: int) -> ChunkStoreError:
        detail = str(exc).upper()
        if "FOREIGN KEY" in detail:
            return UnknownDocumentError(
                message=f"Document {document_id} does not exist",
                provider_name=_PROVIDER_NAME,
            )
        if "UNIQUE" in detail:
            return ChunkIndexConflictError(
                message=f"Chunk index already stored for document {document_id}",
                provider_name=_PROVIDER_NAME,
            )
        return ChunkStoreError(message=str(exc), provider_name=_PROVIDER_NAME)
