"""Public interface definitions for studyrag's pluggable backends.

Business logic talks only to these abstract base classes; concrete
adapters live in ``studyrag/providers/`` and are wired up in
``studyrag/main.py``.

    Interface            ->  Concrete implementations
    ----------------------------------------------------------
    IEmbeddingProvider   ->  OpenAIEmbeddingProvider, OllamaEmbeddingProvider
    IChunkStore          ->  SQLiteChunkStore
    IUsageLogProvider    ->  SQLiteUsageLogProvider
"""

from studyrag.interfaces.chunk_store import IChunkStore
from studyrag.interfaces.embedding_provider import IEmbeddingProvider
from studyrag.interfaces.usage_log_provider import IUsageLogProvider

__all__ = ["IChunkStore", "IEmbeddingProvider", "IUsageLogProvider"]
