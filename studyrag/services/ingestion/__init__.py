"""Document ingestion pipeline for the studyrag document store.

Orchestrates the pipeline: **extract -> chunk -> embed -> store**.

1. **Extract** (source_processors/) -- Format-specific readers turn PDF,
   plain-text and Markdown uploads into page texts.

2. **Chunk** (chunker.py / TextChunker) -- Splits the joined pages into
   fixed-size overlapping character windows.

3. **Embed** (via IEmbeddingProvider) -- Batches of windows are embedded
   by a bounded worker pool.

4. **Store** (via IChunkStore) -- Each finished batch is appended to the
   document straight away, then the document is finalized.
"""

from studyrag.services.ingestion.chunker import TextChunker
from studyrag.services.ingestion.ingestion_service import IngestionService

__all__ = [
    "IngestionService",
    "TextChunker",
]
