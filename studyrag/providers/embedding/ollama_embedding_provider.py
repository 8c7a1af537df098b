"""Ollama embedding provider adapter (local, one request per text).

Calls Ollama's native ``POST /api/embeddings`` endpoint, which accepts a
single ``prompt`` per request.  :meth:`OllamaEmbeddingProvider.embed`
therefore fans out one request per text, concurrently, with at most
``ollama_embedding_batch_size`` requests in flight, and collects the
vectors back in input order.
"""

from __future__ import annotations

import asyncio

import httpx
import structlog

from studyrag.config.settings import Settings
from studyrag.interfaces.embedding_provider import IEmbeddingProvider
from studyrag.utils.concurrency import throttled_gather
from studyrag.utils.errors import EmbeddingProviderError

logger = structlog.get_logger(logger_name=__name__)

_MODEL_DIMENSIONS: dict[str, int] = {
    "zylonai/multilingual-e5-large": 1024,
    "nomic-embed-text": 768,
    "mxbai-embed-large": 1024,
    "all-minilm": 384,
}


class OllamaEmbeddingProvider(IEmbeddingProvider):
    """Embedding provider backed by a local Ollama server.

    Free and local; no API key.  Defaults to
    ``zylonai/multilingual-e5-large`` (1024 dims).
    """

    def __init__(
        self,
        settings: Settings,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._base_url = settings.ollama_base_url.rstrip("/")
        self._model = settings.ollama_embedding_model
        self._dimension = _MODEL_DIMENSIONS.get(self._model, 1024)
        self._batch_size = settings.ollama_embedding_batch_size
        self._max_chars = settings.max_embedding_chars
        self._client = http_client or httpx.AsyncClient(timeout=settings.ollama_timeout)

    # ------------------------------------------------------------------
    # IEmbeddingProvider implementation
    # ------------------------------------------------------------------

    async def embed(self, texts: list[str]) -> list[list[float]]:
        """Embed each text with its own request; any failure fails the batch."""
        if not texts:
            return []

        semaphore = asyncio.Semaphore(self._batch_size)
        results = await throttled_gather(
            [self._embed_one(t[: self._max_chars]) for t in texts],
            semaphore=semaphore,
            return_exceptions=True,
        )

        for result in results:
            if isinstance(result, EmbeddingProviderError):
                raise result
            if isinstance(result, BaseException):
                raise EmbeddingProviderError(
                    message=f"Ollama embedding failed: {result}",
                    provider_name=self.get_provider_name(),
                ) from result

        logger.info("ollama_embedding_batch", model=self._model, batch_size=len(texts))
        return results  # type: ignore[return-value]

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
        return f"ollama/{self._model}"

    def is_available(self) -> bool:
        """Return ``True`` if the Ollama server is reachable."""
        if not self._base_url:
            return False
        try:
            response = httpx.get(f"{self._base_url}/api/tags", timeout=3.0)
            return response.status_code == 200
        except (httpx.ConnectError, httpx.TimeoutException):
            return False

    async def aclose(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _embed_one(self, text: str) -> list[float]:
        try:
            response = await self._client.post(
                f"{self._base_url}/api/embeddings",
                json={"model": self._model, "prompt": text},
            )
        except httpx.HTTPError as exc:
            raise EmbeddingProviderError(
                message=f"Ollama request failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        if not response.is_success:
            raise EmbeddingProviderError(
                message=f"Ollama returned HTTP {response.status_code}: {response.text[:200]}",
                provider_name=self.get_provider_name(),
            )

        try:
            payload = response.json()
        except ValueError as exc:
            raise EmbeddingProviderError(
                message="Ollama returned a non-JSON body",
                provider_name=self.get_provider_name(),
            ) from exc

        embedding = payload.get("embedding") if isinstance(payload, dict) else None
        if not isinstance(embedding, list) or not embedding:
            raise EmbeddingProviderError(
                message="No embedding in Ollama response",
                provider_name=self.get_provider_name(),
            )
        return [float(x) for x in embedding]
