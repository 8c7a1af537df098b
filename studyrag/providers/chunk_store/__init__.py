"""Chunk store implementations."""

from studyrag.providers.chunk_store.sqlite_chunk_store import SQLiteChunkStore

__all__ = ["SQLiteChunkStore"]
