"""Logging for the API server, the CLI and the ingestion pipeline.

Every studyrag event is a structlog event tagged ``service="studyrag"``.
Records from libraries that use standard ``logging`` (uvicorn, httpx,
aiosqlite) are routed through the same processors, so a single stream
carries both and reads the same way.

Output is JSON when ``APP_ENV=production`` or the caller asks for it, and
coloured key/value lines otherwise.  HTTP and database client chatter is
capped at WARNING unless the level is DEBUG.
"""

import logging
import os
import sys

import structlog
from structlog.types import EventDict, Processor

SERVICE_NAME = "studyrag"

# These log one INFO line per request or query.
_CLIENT_LOGGERS = ("httpx", "httpcore", "openai", "aiosqlite", "multipart")


def _tag_service(_logger: object, _method: str, event_dict: EventDict) -> EventDict:
    event_dict.setdefault("service", SERVICE_NAME)
    return event_dict


def _shared_processors() -> list[Processor]:
    """Processors applied to structlog and stdlib records alike."""
    return [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        _tag_service,
    ]


def _wants_json(json_output: bool) -> bool:
    return json_output or os.environ.get("APP_ENV", "development") == "production"


def _renderer(use_json: bool) -> Processor:
    if use_json:
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())


def _route_stdlib(level: int, processors: list[Processor], renderer: Processor) -> None:
    """Replace the root logger's handlers with one structlog-formatted handler."""
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=processors,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                renderer,
            ],
        )
    )
    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)


def _cap_client_loggers(level: int) -> None:
    client_level = level if level <= logging.DEBUG else max(level, logging.WARNING)
    for name in _CLIENT_LOGGERS:
        logging.getLogger(name).setLevel(client_level)


def configure_logging(log_level: str = "INFO", json_output: bool = False) -> structlog.BoundLogger:
    """Set up structlog and the stdlib root logger.

    Args:
        log_level: DEBUG, INFO, WARNING or ERROR (case-insensitive).
        json_output: Render JSON even outside production.

    Returns:
        The root structlog logger.

    Raises:
        ValueError: If *log_level* is not a known level name.
    """
    level = logging.getLevelName(log_level.upper())
    if not isinstance(level, int):
        raise ValueError(f"Unknown log level: {log_level!r}")

    processors = _shared_processors()
    renderer = _renderer(_wants_json(json_output))

    structlog.configure(
        processors=[*processors, renderer],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )
    _route_stdlib(level, processors, renderer)
    _cap_client_loggers(level)

    return structlog.get_logger()


def get_logger(name: str) -> structlog.BoundLogger:
    """Return a logger bound to *name*, configuring defaults on first use."""
    if not structlog.is_configured():
        configure_logging()
    return structlog.get_logger(logger_name=name)
