"""FastAPI demo application wired with the request logger."""

from __future__ import annotations

from typing import Any

import structlog
from fastapi import FastAPI

from reqlog.api.asgi import RequestLoggerMiddleware, forward_http_exceptions
from reqlog.api.middleware import from_settings
from reqlog.config.settings import Settings, get_settings
from reqlog.logging.setup import configure_logging

logger = structlog.get_logger(__name__)


def create_app(settings: Settings | None = None, request_logger_backend: Any = None) -> FastAPI:
    """Build the application; ``request_logger_backend`` overrides the default logger."""
    settings = settings or get_settings()
    app = FastAPI(title=settings.app_name, version="1.0.0")
    app.add_middleware(
        RequestLoggerMiddleware,
        request_logger=from_settings(settings, logger=request_logger_backend),
    )
    forward_http_exceptions(app)

    @app.on_event("startup")
    async def on_startup() -> None:
        """Configure logging for the running process."""
        configure_logging(settings.log_level, json_logs=settings.log_json)
        logger.info(
            "startup_completed",
            environment=settings.environment,
            request_logger_variant=settings.request_logger_variant.value,
        )

    @app.get("/health")
    async def healthcheck() -> dict[str, str]:
        """Liveness endpoint."""
        return {"status": "ok"}

    return app


app = create_app()
