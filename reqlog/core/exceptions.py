"""Custom exception hierarchy for the request logger."""

from __future__ import annotations

from http import HTTPStatus


class RequestLoggerError(Exception):
    """Base request logger error."""


class ConfigurationError(RequestLoggerError):
    """Raised when middleware configuration is invalid."""


class HTTPError(RequestLoggerError):
    """Raised by handlers to report a failure with a specific HTTP status."""

    def __init__(self, status_code: int, message: str | None = None) -> None:
        if message is None:
            try:
                message = HTTPStatus(status_code).phrase
            except ValueError:
                message = "Unknown Error"
        super().__init__(message)
        self.status_code = status_code
        self.message = message
