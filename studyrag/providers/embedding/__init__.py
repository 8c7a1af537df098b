"""Embedding provider implementations.

    OpenAIEmbeddingProvider -- remote; a batch of texts per API call
                               (default 16, text-embedding-3-small).
    OllamaEmbeddingProvider -- local; one request per text, fanned out
                               concurrently (default 4 in flight).

``build_embedding_providers`` constructs both at start-up and
``resolve_provider`` picks one by name.
"""

from studyrag.providers.embedding.ollama_embedding_provider import OllamaEmbeddingProvider
from studyrag.providers.embedding.openai_embedding_provider import OpenAIEmbeddingProvider
from studyrag.providers.embedding.registry import build_embedding_providers, resolve_provider

__all__ = [
    "OllamaEmbeddingProvider",
    "OpenAIEmbeddingProvider",
    "build_embedding_providers",
    "resolve_provider",
]
