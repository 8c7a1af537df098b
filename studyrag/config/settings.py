"""Application settings loaded from environment variables via pydantic-settings.

Values are read, in priority order, from environment variables and then
from a ``.env`` file in the working directory; field ``openai_api_key``
maps to env var ``OPENAI_API_KEY``.  Defaults below are used when neither
source sets a value.
"""

from typing import Literal

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """studyrag application settings.

    Environment variables override defaults. Loaded from .env file when present.
    """

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    # === Embedding Providers ===
    # Empty key = "not configured"; the OpenAI provider then reports unavailable.
    openai_api_key: str = ""
    openai_base_url: str = ""  # OpenAI-compatible endpoint (TogetherAI, etc.)
    openai_embedding_model: str = "text-embedding-3-small"
    openai_embedding_batch_size: int = Field(default=16, ge=1)
    ollama_base_url: str = "http://localhost:11434"
    ollama_embedding_model: str = "zylonai/multilingual-e5-large"
    ollama_embedding_batch_size: int = Field(default=4, ge=1)
    ollama_timeout: float = Field(default=60.0, gt=0)
    default_embedding_provider: str = "openai"
    # Every text sent for embedding is cut to this many characters.
    max_embedding_chars: int = Field(default=512, ge=1)

    # === Storage ===
    documents_db_path: str = "data/documents.db"
    usage_db_path: str = "data/rag_usage.db"

    # === Ingestion ===
    chunk_size: int = Field(default=1500, ge=1)
    chunk_overlap: int = Field(default=200, ge=0)
    ingestion_concurrency: int = Field(default=3, ge=1)
    # "keep" leaves chunks written before a failure; "delete" removes the
    # partial document and its chunks.
    ingestion_failure_policy: Literal["keep", "delete"] = "keep"
    max_upload_bytes: int = Field(default=25 * 1024 * 1024, ge=1)
    # Finished upload jobs are evicted from memory after this many seconds.
    job_retention_seconds: float = Field(default=3600.0, ge=0)

    # === Retrieval ===
    retrieval_similarity_threshold: float = Field(default=0.7, ge=-1.0, le=1.0)
    retrieval_max_chunks: int = Field(default=5, ge=1)
    retrieval_fallback_chunks: int = Field(default=3, ge=1)

    # === App Config ===
    app_host: str = "0.0.0.0"
    app_port: int = 8000
    app_env: str = "development"
    log_level: str = "INFO"
    cors_origins: list[str] = Field(default_factory=lambda: ["*"])

    @model_validator(mode="after")
    def _check_chunk_window(self) -> "Settings":
        if self.chunk_overlap >= self.chunk_size:
            msg = (
                f"chunk_overlap ({self.chunk_overlap}) must be smaller than "
                f"chunk_size ({self.chunk_size})"
            )
            raise ValueError(msg)
        return self
