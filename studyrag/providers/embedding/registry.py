"""Start-up construction and by-name lookup of embedding providers.

Both providers are built once, whether or not they are reachable; callers
pick one per request by name (``"openai"`` or ``"ollama"``).
"""

from __future__ import annotations

from studyrag.config.settings import Settings
from studyrag.interfaces.embedding_provider import IEmbeddingProvider
from studyrag.providers.embedding.ollama_embedding_provider import OllamaEmbeddingProvider
from studyrag.providers.embedding.openai_embedding_provider import OpenAIEmbeddingProvider
from studyrag.utils.errors import ConfigurationError


def build_embedding_providers(app_settings: Settings) -> dict[str, IEmbeddingProvider]:
    """Construct every embedding provider keyed by its registry name."""
    return {
        "openai": OpenAIEmbeddingProvider(settings=app_settings),
        "ollama": OllamaEmbeddingProvider(settings=app_settings),
    }


def resolve_provider(
    registry: dict[str, IEmbeddingProvider],
    name: str | None,
    default: str,
) -> IEmbeddingProvider:
    """Return the provider registered as *name* (or *default* when unset).

    Raises
    ------
    ConfigurationError
        If no provider is registered under the requested name.
    """
    key = (name or default).strip().lower()
    provider = registry.get(key)
    if provider is None:
        raise ConfigurationError(
            message=(
                f"Unknown embedding provider {key!r}; "
                f"expected one of {', '.join(sorted(registry))}"
            )
        )
    return provider
