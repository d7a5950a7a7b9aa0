"""HTTP middleware for request/response logging."""

from __future__ import annotations

import time
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any

from reqlog.core.context import Handler, RequestContext
from reqlog.core.exceptions import ConfigurationError
from reqlog.core.formatting import (
    DEFAULT_TIME_FORMAT,
    format_duration,
    format_timestamp,
    resolve_hostname,
    status_text,
    validate_tag,
)
from reqlog.logging.setup import get_default_logger

if TYPE_CHECKING:
    from reqlog.config.settings import Settings

DEFAULT_NAME = "web"
REQUEST_ID_HEADER = "X-Request-Id"

STABILIZATION_LAYOUT = (
    " - index:server_api,game_id:,member_no:-1,method:{method},uri:{uri},"
    "return_code:{status},elapsed_time:{elapsed_ms},timestamp:{timestamp_ms},"
    "request_body:{body} "
)

LogEntry = dict[str, Any]


class LogVariant(str, Enum):
    """Supported log record styles."""

    structured = "structured"
    single_entry = "single_entry"
    stabilization = "stabilization"


@dataclass(frozen=True, slots=True)
class RequestLoggerConfig:
    """Settings captured once when the middleware is built."""

    name: str = DEFAULT_NAME
    logger: Any = None
    time_format: str = DEFAULT_TIME_FORMAT
    variant: LogVariant = LogVariant.structured
    hostname: str = ""

    def __post_init__(self) -> None:
        validate_tag(self.name)
        try:
            variant = LogVariant(self.variant)
        except ValueError as exc:
            raise ConfigurationError(f"unknown log variant: {self.variant!r}") from exc
        object.__setattr__(self, "variant", variant)


@dataclass(slots=True)
class _Outcome:
    latency_ns: int
    started_at_ns: int
    failed: bool


def _request_id(ctx: RequestContext) -> str | None:
    return ctx.headers.get(REQUEST_ID_HEADER) or None


def _structured_entry(ctx: RequestContext, name: str, outcome: _Outcome) -> LogEntry:
    entry: LogEntry = {
        "request": ctx.uri,
        "method": ctx.method,
        "remote": ctx.remote_addr,
    }
    request_id = _request_id(ctx)
    if request_id is not None:
        entry["request_id"] = request_id

    status = ctx.response.status
    entry.update(
        {
            "status": status,
            "text_status": status_text(status),
            "took": format_duration(outcome.latency_ns),
            f"measure#{name}.latency": outcome.latency_ns,
        }
    )
    return entry


def _single_entry(
    ctx: RequestContext, config: RequestLoggerConfig, outcome: _Outcome
) -> LogEntry:
    entry: LogEntry = {
        "server": config.hostname,
        "path": ctx.uri,
        "method": ctx.method,
        "ip": ctx.remote_addr,
        "status": ctx.response.status,
        "latency": format_duration(outcome.latency_ns),
        "time": format_timestamp(config.time_format),
    }
    request_id = _request_id(ctx)
    if request_id is not None:
        entry["request_id"] = request_id
    return entry


async def _read_body(ctx: RequestContext) -> bytes:
    try:
        return await ctx.read_body()
    except Exception:  # noqa: BLE001
        # Best effort: an unreadable body is logged as empty.
        return b""


async def _emit(
    logger: Any,
    ctx: RequestContext,
    config: RequestLoggerConfig,
    outcome: _Outcome,
) -> None:
    if config.variant is LogVariant.structured:
        logger.info("http_request", **_structured_entry(ctx, config.name, outcome))
    elif config.variant is LogVariant.single_entry:
        entry = _single_entry(ctx, config, outcome)
        if outcome.failed:
            logger.error("error by handling request", **entry)
        else:
            logger.info("completed handling request", **entry)
    else:
        body = await _read_body(ctx)
        logger.info(
            STABILIZATION_LAYOUT.format(
                method=ctx.method,
                uri=ctx.uri,
                status=ctx.response.status,
                elapsed_ms=outcome.latency_ns // 1_000_000,
                timestamp_ms=outcome.started_at_ns // 1_000_000,
                body=body.decode("utf-8", errors="backslashreplace"),
            )
        )


class RequestLogger:
    """Middleware that logs exactly one entry per request.

    The wrapped handler never raises a handler failure: it is forwarded to
    ``ctx.error`` so the host still writes an error response, and the log
    entry is emitted afterwards.
    """

    def __init__(self, config: RequestLoggerConfig) -> None:
        self.config = config
        self._logger = config.logger if config.logger is not None else get_default_logger()

    @property
    def reads_body(self) -> bool:
        """Whether the request body must be kept for the log entry."""
        return self.config.variant is LogVariant.stabilization

    def __call__(self, next_handler: Handler) -> Handler:
        async def handler(ctx: RequestContext) -> None:
            started = time.perf_counter_ns()
            started_at_ns = time.time_ns()
            failed = False

            try:
                await next_handler(ctx)
            except Exception as exc:  # noqa: BLE001
                failed = True
                await ctx.error(exc)

            outcome = _Outcome(
                latency_ns=time.perf_counter_ns() - started,
                started_at_ns=started_at_ns,
                failed=failed,
            )
            await _emit(self._logger, ctx, self.config, outcome)

        return handler


def request_logger(config: RequestLoggerConfig) -> RequestLogger:
    """Build the middleware described by ``config``."""
    return RequestLogger(config)


def default() -> RequestLogger:
    """Structured logging with the ``web`` tag and the default logger."""
    return with_name(DEFAULT_NAME)


def with_name(name: str) -> RequestLogger:
    """Structured logging with a custom tag and the default logger."""
    return with_logger(name, None)


def with_logger(name: str, logger: Any) -> RequestLogger:
    """Structured logging with a custom tag and logger."""
    return request_logger(
        RequestLoggerConfig(name=name, logger=logger, variant=LogVariant.structured)
    )


def with_time_format(time_format: str) -> RequestLogger:
    """Single-entry logging with a formatted timestamp and the default logger."""
    return with_logger_and_time_format(None, time_format)


def with_logger_and_time_format(logger: Any, time_format: str) -> RequestLogger:
    """Single-entry logging with a formatted timestamp and error/info level selection."""
    return request_logger(
        RequestLoggerConfig(
            logger=logger,
            time_format=time_format,
            variant=LogVariant.single_entry,
            hostname=resolve_hostname(),
        )
    )


def stabilization_logger(logger: Any) -> RequestLogger:
    """Audit logging of method, uri, status, latency and the full request body."""
    return request_logger(RequestLoggerConfig(logger=logger, variant=LogVariant.stabilization))


def from_settings(settings: Settings, logger: Any = None) -> RequestLogger:
    """Build the middleware selected by application settings."""
    return request_logger(
        RequestLoggerConfig(
            name=settings.request_logger_name,
            logger=logger,
            time_format=settings.request_logger_time_format,
            variant=settings.request_logger_variant,
            hostname=resolve_hostname(),
        )
    )
