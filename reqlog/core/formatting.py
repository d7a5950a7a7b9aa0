"""Rendering helpers for request log fields."""

from __future__ import annotations

import re
import socket
from datetime import datetime
from http import HTTPStatus

from reqlog.core.exceptions import ConfigurationError

DEFAULT_TIME_FORMAT = "%Y-%m-%dT%H:%M:%S%z"

_NS_PER_SECOND = 1_000_000_000
_NS_PER_MINUTE = 60 * _NS_PER_SECOND
_NS_PER_HOUR = 60 * _NS_PER_MINUTE

# Characters that break key=value style field keys.
_INVALID_TAG_CHARS = re.compile(r'[\s="]')


def status_text(status_code: int) -> str:
    """Return the standard reason phrase, or an empty string for unknown codes."""
    try:
        return HTTPStatus(status_code).phrase
    except ValueError:
        return ""


def _decimal(value: int, digits: int) -> str:
    whole, fraction = divmod(value, 10**digits)
    fraction_text = f"{fraction:0{digits}d}".rstrip("0")
    return f"{whole}.{fraction_text}" if fraction_text else str(whole)


def format_duration(nanoseconds: int) -> str:
    """Render a duration the way Go's time.Duration prints, e.g. ``1.5ms`` or ``2m3.1s``."""
    if nanoseconds == 0:
        return "0s"
    sign = "-" if nanoseconds < 0 else ""
    value = abs(nanoseconds)

    if value < 1_000:
        return f"{sign}{value}ns"
    if value < 1_000_000:
        return f"{sign}{_decimal(value, 3)}µs"
    if value < _NS_PER_SECOND:
        return f"{sign}{_decimal(value, 6)}ms"

    hours, rest = divmod(value, _NS_PER_HOUR)
    minutes, rest = divmod(rest, _NS_PER_MINUTE)
    text = sign
    if hours:
        text += f"{hours}h"
    if hours or minutes:
        text += f"{minutes}m"
    return f"{text}{_decimal(rest, 9)}s"


def format_timestamp(time_format: str, now: datetime | None = None) -> str:
    """Format ``now`` (local, timezone-aware) with a strftime pattern."""
    moment = now if now is not None else datetime.now().astimezone()
    return moment.strftime(time_format)


def resolve_hostname() -> str:
    """Return the process hostname, or an empty string if it cannot be resolved."""
    try:
        return socket.gethostname()
    except OSError:
        return ""


def validate_tag(name: str) -> str:
    """Check that a tag can be embedded into a measurement field key."""
    if not name:
        raise ConfigurationError("request logger name must not be empty")
    if _INVALID_TAG_CHARS.search(name):
        raise ConfigurationError(
            f"request logger name {name!r} must not contain whitespace, '=' or '\"'"
        )
    return name
