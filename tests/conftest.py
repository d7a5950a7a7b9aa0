"""Shared pytest fixtures."""

from collections.abc import Iterator

import pytest
import structlog

from reqlog.config.settings import get_settings


@pytest.fixture(autouse=True)
def reset_logging_state() -> Iterator[None]:
    """Keep structlog configuration and cached settings isolated per test."""
    structlog.reset_defaults()
    get_settings.cache_clear()
    yield
    structlog.reset_defaults()
    get_settings.cache_clear()
