"""SQLite-backed RAG usage log.

Persists the append-only record of which chunks grounded which response
to a local SQLite database at ``data/rag_usage.db``, separate from the
document store.  Uses ``aiosqlite`` for async I/O.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path

import aiosqlite
import structlog

from studyrag.interfaces.usage_log_provider import IUsageLogProvider
from studyrag.models.rag import UsageLogEntry, UsedChunk

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_DB_PATH = Path("data/rag_usage.db")

_CREATE_TABLE_SQL = """\
CREATE TABLE IF NOT EXISTS rag_usage (
    id           INTEGER PRIMARY KEY AUTOINCREMENT,
    document_id  INTEGER NOT NULL,
    chunks       TEXT    NOT NULL,
    response     TEXT    NOT NULL,
    timestamp    TEXT    NOT NULL
);
"""

_CREATE_INDICES_SQL = [
    "CREATE INDEX IF NOT EXISTS idx_rag_usage_document ON rag_usage(document_id);",
]

_INSERT_SQL = """\
INSERT INTO rag_usage (document_id, chunks, response, timestamp)
VALUES (?, ?, ?, ?);
"""

_SELECT_BY_DOCUMENT_SQL = """\
SELECT id, document_id, chunks, response, timestamp
FROM rag_usage
WHERE document_id = ?
ORDER BY id ASC;
"""


class SQLiteUsageLogProvider(IUsageLogProvider):
    """SQLite-backed usage log persistence."""

    def __init__(self, db_path: str | Path = _DEFAULT_DB_PATH) -> None:
        self._db_path = Path(db_path)

    async def initialize(self) -> None:
        """Create the rag_usage table and indices if they don't exist."""
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        async with aiosqlite.connect(str(self._db_path)) as db:
            await db.execute(_CREATE_TABLE_SQL)
            for idx_sql in _CREATE_INDICES_SQL:
                await db.execute(idx_sql)
            await db.commit()
        logger.info("usage_db_initialized", path=str(self._db_path))

    async def record(
        self,
        document_id: int,
        chunks: list[UsedChunk],
        response: str,
        timestamp: datetime | None = None,
    ) -> UsageLogEntry:
        """Append one entry and return it with its assigned id."""
        when = timestamp or datetime.now(tz=timezone.utc)
        payload = json.dumps([c.model_dump() for c in chunks])

        async with aiosqlite.connect(str(self._db_path)) as db:
            cursor = await db.execute(
                _INSERT_SQL,
                (document_id, payload, response, when.isoformat()),
            )
            await db.commit()
            entry_id = cursor.lastrowid

        logger.info(
            "usage_recorded",
            document_id=document_id,
            chunk_count=len(chunks),
            entry_id=entry_id,
        )
        return UsageLogEntry(
            id=int(entry_id),
            document_id=document_id,
            chunks=list(chunks),
            response=response,
            timestamp=when,
        )

    async def query(self, document_id: int) -> list[UsageLogEntry]:
        """Return every entry for *document_id*, oldest first."""
        async with aiosqlite.connect(str(self._db_path)) as db:
            db.row_factory = aiosqlite.Row
            cursor = await db.execute(_SELECT_BY_DOCUMENT_SQL, (document_id,))
            rows = await cursor.fetchall()

        return [
            UsageLogEntry(
                id=row["id"],
                document_id=row["document_id"],
                chunks=[UsedChunk(**c) for c in json.loads(row["chunks"])],
                response=row["response"],
                timestamp=datetime.fromisoformat(row["timestamp"]),
            )
            for row in rows
        ]

    def get_provider_name(self) -> str:
        """Return a human-readable identifier for this provider."""
        return "sqlite_usage_log"
