"""Structured logging configuration."""

import logging
import sys

import structlog

DEFAULT_LOGGER_NAME = "reqlog"


def configure_logging(log_level: str, json_logs: bool = True) -> None:
    """Configure structlog + stdlib logging output in JSON or console format."""
    timestamper = structlog.processors.TimeStamper(fmt="iso", utc=True)

    shared_processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        timestamper,
    ]
    renderer = (
        structlog.processors.JSONRenderer()
        if json_logs
        else structlog.dev.ConsoleRenderer(colors=False)
    )

    structlog.configure(
        processors=[
            *shared_processors,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, log_level.upper(), logging.INFO)
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stdout),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        level=getattr(logging, log_level.upper(), logging.INFO),
        format="%(message)s",
        stream=sys.stdout,
    )


def get_default_logger() -> structlog.typing.FilteringBoundLogger:
    """Return the process-wide default request logger."""
    return structlog.get_logger(DEFAULT_LOGGER_NAME)
