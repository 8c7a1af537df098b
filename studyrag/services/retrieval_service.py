"""Similarity-threshold retrieval over stored chunks.

Embeds a query, scores it against every stored chunk in the querying
provider's embedding space, and assembles the best matches into a numbered
context string ready for a prompt:

    [Source 1] <best chunk>

    [Source 2] <second-best chunk>

Retrieval is a linear scan with no index or cache, and it never writes.

When no chunk reaches the similarity threshold the engine does not return
nothing: it falls back to the top few chunks regardless of score and flags
the result with ``used_fallback``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from studyrag.models.rag import RetrievalResult, ScoredChunk
from studyrag.utils.errors import ConfigurationError, EmbeddingSpaceMismatchError
from studyrag.utils.similarity import cosine_similarities

if TYPE_CHECKING:
    from studyrag.interfaces.chunk_store import IChunkStore
    from studyrag.interfaces.embedding_provider import IEmbeddingProvider

logger = structlog.get_logger(logger_name=__name__)


def build_context(chunks: list[ScoredChunk]) -> str:
    """Join chunk texts as ``[Source i]`` blocks separated by blank lines."""
    return "\n\n".join(
        f"[Source {i}] {scored.chunk.text}" for i, scored in enumerate(chunks, start=1)
    )


class RetrievalService:
    """Finds the chunks most similar to a query.

    Parameters
    ----------
    chunk_store:
        Source of the stored chunks.
    max_chunks:
        Default upper bound on returned chunks.
    similarity_threshold:
        Default minimum cosine similarity for a chunk to count as relevant.
    fallback_chunks:
        How many top chunks to return when none reaches the threshold
        (capped at ``max_chunks``).
    """

    def __init__(
        self,
        chunk_store: IChunkStore,
        max_chunks: int = 5,
        similarity_threshold: float = 0.7,
        fallback_chunks: int = 3,
    ) -> None:
        self._chunk_store = chunk_store
        self._max_chunks = max_chunks
        self._similarity_threshold = similarity_threshold
        self._fallback_chunks = fallback_chunks

    async def retrieve(
        self,
        query: str,
        provider: IEmbeddingProvider,
        max_chunks: int | None = None,
        similarity_threshold: float | None = None,
    ) -> RetrievalResult:
        """Return the chunks most relevant to *query*.

        Parameters
        ----------
        query:
            Natural-language query text.
        provider:
            Embedding provider for the query.  Only chunks embedded in the
            same space (provider tag and dimension) are considered.
        max_chunks:
            Upper bound on returned chunks; defaults to the service setting.
        similarity_threshold:
            Minimum similarity; defaults to the service setting.

        Returns
        -------
        RetrievalResult
            Chunks in descending similarity order plus their context
            string.  Empty when the store holds no chunks.

        Raises
        ------
        ConfigurationError
            If *query* is blank or *max_chunks* is below 1.
        EmbeddingSpaceMismatchError
            If chunks exist but none were embedded in *provider*'s space.
        EmbeddingProviderError
            If embedding the query fails.
        """
        if not query or not query.strip():
            raise ConfigurationError(message="Query text must not be empty")
        limit = self._max_chunks if max_chunks is None else max_chunks
        threshold = (
            self._similarity_threshold if similarity_threshold is None else similarity_threshold
        )
        if limit < 1:
            raise ConfigurationError(message=f"max_chunks must be >= 1, got {limit}")

        stored = await self._chunk_store.list_all_chunks()
        if not stored:
            logger.info("retrieval_empty_store")
            return RetrievalResult()

        space = provider.get_provider_name()
        candidates = [c for c in stored if c.embedding_provider == space]
        if not candidates:
            raise EmbeddingSpaceMismatchError(
                message=(
                    f"No stored chunks were embedded with {space}; "
                    f"found {', '.join(sorted({c.embedding_provider for c in stored}))}"
                ),
                provider_name=space,
            )

        query_vector = await provider.embed_single(query)
        candidates = [c for c in candidates if len(c.embedding) == len(query_vector)]
        if not candidates:
            raise EmbeddingSpaceMismatchError(
                message=f"No stored chunks match the {len(query_vector)}-dim query vector",
                provider_name=space,
            )

        scores = cosine_similarities(query_vector, [c.embedding for c in candidates])
        # sorted() is stable, so equal scores keep (document_id, chunk_index) order.
        ranked = sorted(
            (ScoredChunk(chunk=c, similarity=s) for c, s in zip(candidates, scores)),
            key=lambda sc: sc.similarity,
            reverse=True,
        )

        relevant = [sc for sc in ranked if sc.similarity >= threshold]
        used_fallback = not relevant
        if used_fallback:
            selected = ranked[: min(self._fallback_chunks, limit)]
        else:
            selected = relevant[:limit]

        logger.info(
            "retrieval_complete",
            provider=space,
            candidates=len(candidates),
            above_threshold=len(relevant),
            returned=len(selected),
            used_fallback=used_fallback,
            top_similarity=round(selected[0].similarity, 4) if selected else None,
        )
        return RetrievalResult(
            context=build_context(selected),
            chunks=selected,
            used_fallback=used_fallback,
        )
