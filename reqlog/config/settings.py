"""Application settings loaded from environment variables."""

from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from reqlog.api.middleware import DEFAULT_NAME, LogVariant
from reqlog.core.exceptions import ConfigurationError
from reqlog.core.formatting import DEFAULT_TIME_FORMAT, validate_tag


class Settings(BaseSettings):
    """Runtime settings for logging and the request logger middleware."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    app_name: str = "reqlog"
    environment: str = "dev"
    log_level: str = "INFO"
    log_json: bool = True

    request_logger_variant: LogVariant = LogVariant.structured
    request_logger_name: str = DEFAULT_NAME
    request_logger_time_format: str = DEFAULT_TIME_FORMAT

    @field_validator("request_logger_name")
    @classmethod
    def check_request_logger_name(cls, value: str) -> str:
        """Reject tags that cannot be embedded into a field key."""
        try:
            return validate_tag(value)
        except ConfigurationError as exc:
            raise ValueError(str(exc)) from exc


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return singleton settings instance."""
    return Settings()
