"""OpenAI-compatible embedding provider adapter (remote, batch-capable).

Wraps the ``openai`` async client to implement :class:`IEmbeddingProvider`.
Supports both real OpenAI and OpenAI-compatible providers (TogetherAI,
Fireworks) via a custom ``base_url`` and model name.  A whole batch of
texts goes out in a single ``embeddings.create`` call.
"""

from __future__ import annotations

import openai
import structlog

from studyrag.config.settings import Settings
from studyrag.interfaces.embedding_provider import IEmbeddingProvider
from studyrag.utils.errors import EmbeddingProviderError

logger = structlog.get_logger(logger_name=__name__)

# Known embedding model dimensions.
_MODEL_DIMENSIONS: dict[str, int] = {
    "text-embedding-3-small": 1536,
    "text-embedding-3-large": 3072,
    "text-embedding-ada-002": 1536,
    "BAAI/bge-base-en-v1.5": 768,
    "BAAI/bge-large-en-v1.5": 1024,
}


class OpenAIEmbeddingProvider(IEmbeddingProvider):
    """Embedding provider backed by an OpenAI-compatible embeddings API.

    Uses ``text-embedding-3-small`` (1536 dims) by default.  Inputs longer
    than the batch size are split into several calls; every text is cut to
    ``max_embedding_chars`` characters before it is sent.
    """

    def __init__(self, settings: Settings) -> None:
        self._api_key = settings.openai_api_key

        client_kwargs: dict = {"api_key": self._api_key}
        if settings.openai_base_url:
            client_kwargs["base_url"] = settings.openai_base_url

        self._client = openai.AsyncOpenAI(**client_kwargs)
        self._model = settings.openai_embedding_model or "text-embedding-3-small"
        self._dimension = _MODEL_DIMENSIONS.get(self._model, 1536)
        self._batch_size = settings.openai_embedding_batch_size
        self._max_chars = settings.max_embedding_chars

    # ------------------------------------------------------------------
    # IEmbeddingProvider implementation
    # ------------------------------------------------------------------

    async def embed(self, texts: list[str]) -> list[list[float]]:
        """Generate embedding vectors for a batch of texts.

        The API may return items out of order; they are re-sorted by their
        ``index`` so the output lines up with *texts*.
        """
        if not texts:
            return []

        texts = [t[: self._max_chars] for t in texts]

        try:
            all_embeddings: list[list[float]] = []
            for start in range(0, len(texts), self._batch_size):
                batch = texts[start : start + self._batch_size]
                response = await self._client.embeddings.create(
                    input=batch,
                    model=self._model,
                )
                items = sorted(response.data, key=lambda item: item.index)
                if len(items) != len(batch) or any(not item.embedding for item in items):
                    raise EmbeddingProviderError(
                        message=(
                            f"Malformed embeddings response: expected {len(batch)} "
                            f"vectors, got {len(items)}"
                        ),
                        provider_name=self.get_provider_name(),
                    )
                all_embeddings.extend(list(item.embedding) for item in items)
                logger.info(
                    "openai_embedding_batch",
                    model=self._model,
                    batch_size=len(batch),
                    tokens=response.usage.total_tokens if response.usage else None,
                )
            return all_embeddings
        except openai.APIError as exc:
            raise EmbeddingProviderError(
                message=f"OpenAI embeddings API error: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

    async def embed_single(self, text: str) -> list[float]:
        """Generate an embedding vector for a single text string."""
        result = await self.embed([text])
        return result[0]

    def get_batch_size(self) -> int:
        return self._batch_size

    def get_max_input_chars(self) -> int:
        return self._max_chars

    def get_dimension(self) -> int:
        return self._dimension

    def get_provider_name(self) -> str:
        return f"openai/{self._model}"

    def is_available(self) -> bool:
        """Return ``True`` if an API key is configured."""
        return bool(self._api_key)
