"""Unit tests for studyrag.config.settings."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from studyrag.config.settings import Settings


class TestSettings:
    def test_defaults(self) -> None:
        s = Settings(_env_file=None)
        assert s.chunk_size == 1500
        assert s.chunk_overlap == 200
        assert s.ingestion_failure_policy == "keep"
        assert s.default_embedding_provider == "openai"

    def test_env_overrides(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("CHUNK_SIZE", "800")
        monkeypatch.setenv("INGESTION_FAILURE_POLICY", "delete")
        s = Settings(_env_file=None)
        assert s.chunk_size == 800
        assert s.ingestion_failure_policy == "delete"

    def test_overlap_must_be_smaller_than_window(self) -> None:
        with pytest.raises(ValidationError, match="chunk_overlap"):
            Settings(_env_file=None, chunk_size=200, chunk_overlap=200)

    def test_unknown_failure_policy_rejected(self) -> None:
        with pytest.raises(ValidationError):
            Settings(_env_file=None, ingestion_failure_policy="retry")
