"""Tests for environment-driven settings."""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from pydantic import ValidationError

from reqlog.api.asgi import RequestLoggerMiddleware
from reqlog.api.middleware import LogVariant, from_settings
from reqlog.config.settings import Settings, get_settings
from reqlog.main import create_app


class RecordingLogger:
    """Collects logger calls."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, str, dict]] = []

    def info(self, event: str, **fields) -> None:
        self.calls.append(("info", event, fields))

    def error(self, event: str, **fields) -> None:
        self.calls.append(("error", event, fields))


def test_defaults() -> None:
    settings = Settings()

    assert settings.request_logger_variant is LogVariant.structured
    assert settings.request_logger_name == "web"
    assert settings.log_level == "INFO"


def test_environment_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("REQUEST_LOGGER_VARIANT", "single_entry")
    monkeypatch.setenv("REQUEST_LOGGER_TIME_FORMAT", "%H:%M:%S")
    monkeypatch.setenv("LOG_JSON", "false")

    settings = get_settings()

    assert settings.request_logger_variant is LogVariant.single_entry
    assert settings.request_logger_time_format == "%H:%M:%S"
    assert settings.log_json is False


def test_invalid_name_is_rejected() -> None:
    with pytest.raises(ValidationError):
        Settings(request_logger_name="has space")


def test_from_settings_builds_selected_variant() -> None:
    logger = RecordingLogger()
    settings = Settings(
        request_logger_variant=LogVariant.single_entry,
        request_logger_time_format="%Y",
    )
    app = create_app(settings, request_logger_backend=logger)

    TestClient(app).get("/health", headers={"X-Request-Id": "abc123"})

    level, event, fields = logger.calls[0]
    assert level == "info"
    assert event == "completed handling request"
    assert fields["path"] == "/health"
    assert fields["request_id"] == "abc123"
    assert fields["time"].isdigit()


def test_from_settings_selects_stabilization_variant() -> None:
    logger = RecordingLogger()
    settings = Settings(request_logger_variant=LogVariant.stabilization)
    app = FastAPI()
    app.add_middleware(RequestLoggerMiddleware, request_logger=from_settings(settings, logger))

    @app.put("/ledger")
    async def ledger() -> dict[str, str]:
        return {"status": "stored"}

    TestClient(app).put("/ledger", content=b"entry=1")

    assert len(logger.calls) == 1
    assert "method:PUT,uri:/ledger,return_code:200," in logger.calls[0][1]
    assert logger.calls[0][1].endswith("request_body:entry=1 ")
