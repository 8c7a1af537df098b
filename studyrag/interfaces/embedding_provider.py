"""Abstract base class for text-embedding service providers.

Defines the contract for generating embedding vectors from text.  Two
implementations exist, chosen once at start-up and looked up by name:

    OpenAIEmbeddingProvider  -- remote, one API call per batch of texts
    OllamaEmbeddingProvider  -- local, one request per text issued concurrently

Located in: studyrag/providers/embedding/
"""

from __future__ import annotations

from abc import ABC, abstractmethod


class IEmbeddingProvider(ABC):
    """Contract for text-embedding services used by the RAG pipeline.

    Vectors produced by one provider are only comparable with vectors from
    the same provider and model; :meth:`get_provider_name` returns the tag
    that identifies that embedding space and is stored alongside every
    chunk.
    """

    @abstractmethod
    async def embed(self, texts: list[str]) -> list[list[float]]:
        """Generate embedding vectors for a batch of texts.

        Each text is truncated to :meth:`get_max_input_chars` characters
        before it is sent.

        Parameters
        ----------
        texts:
            One or more text strings to embed.

        Returns
        -------
        list[list[float]]
            Embedding vectors corresponding positionally to *texts*.

        Raises
        ------
        studyrag.utils.errors.EmbeddingProviderError
            If any call for the batch fails; the whole batch fails.
        """

    @abstractmethod
    async def embed_single(self, text: str) -> list[float]:
        """Generate an embedding vector for a single text string."""

    @abstractmethod
    def get_batch_size(self) -> int:
        """Return how many texts the ingestion pipeline should send per batch."""

    @abstractmethod
    def get_max_input_chars(self) -> int:
        """Return the character limit applied to every input text."""

    @abstractmethod
    def get_dimension(self) -> int:
        """Return the expected dimensionality of the embedding vectors."""

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return the embedding-space identifier, ``"<backend>/<model>"``.

        Example return values: ``"openai/text-embedding-3-small"``,
        ``"ollama/zylonai/multilingual-e5-large"``.
        """

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if the provider is configured and reachable."""
