"""Unit tests for studyrag.utils.logging."""

from __future__ import annotations

import json
import logging

import pytest
import structlog

from studyrag.utils.logging import configure_logging, get_logger


@pytest.fixture(autouse=True)
def _restore_logging():
    """Put structlog and the root logger back the way the test found them."""
    saved_config = structlog.get_config()
    root = logging.getLogger()
    saved_handlers = list(root.handlers)
    saved_level = root.level
    saved_client_levels = {name: logging.getLogger(name).level for name in ("httpx", "aiosqlite")}
    yield
    structlog.configure(**saved_config)
    root.handlers[:] = saved_handlers
    root.setLevel(saved_level)
    for name, level in saved_client_levels.items():
        logging.getLogger(name).setLevel(level)


class TestConfigureLogging:
    def test_json_output_tags_service(self, capsys: pytest.CaptureFixture[str]) -> None:
        configure_logging(log_level="INFO", json_output=True)
        get_logger("studyrag.tests").info("document_indexed", document_id=4)

        line = capsys.readouterr().out.strip().splitlines()[-1]
        event = json.loads(line)
        assert event["event"] == "document_indexed"
        assert event["document_id"] == 4
        assert event["service"] == "studyrag"
        assert event["level"] == "info"
        assert "timestamp" in event

    def test_level_filters_structlog_events(self, capsys: pytest.CaptureFixture[str]) -> None:
        configure_logging(log_level="warning", json_output=True)
        log = get_logger("studyrag.tests")
        log.info("hidden")
        log.warning("shown")

        out = capsys.readouterr().out
        assert "hidden" not in out
        assert "shown" in out

    def test_stdlib_records_use_same_format(self, capsys: pytest.CaptureFixture[str]) -> None:
        configure_logging(log_level="INFO", json_output=True)
        logging.getLogger("uvicorn.error").info("server started")

        event = json.loads(capsys.readouterr().out.strip().splitlines()[-1])
        assert event["event"] == "server started"
        assert event["service"] == "studyrag"

    def test_client_loggers_capped_below_debug(self) -> None:
        configure_logging(log_level="INFO")
        assert logging.getLogger("httpx").level == logging.WARNING
        assert logging.getLogger("aiosqlite").level == logging.WARNING

    def test_client_loggers_open_at_debug(self) -> None:
        configure_logging(log_level="DEBUG")
        assert logging.getLogger("httpx").level == logging.DEBUG

    def test_unknown_level_rejected(self) -> None:
        with pytest.raises(ValueError, match="Unknown log level"):
            configure_logging(log_level="LOUD")
