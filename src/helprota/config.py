"""Configuration management for Helprota."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class HelprotaSettings(BaseSettings):
    """Runtime configuration sourced from environment variables and optional .env file."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    data_dir: Path = Field(default=Path("./data"), validation_alias="HELPROTA_DATA_DIR")
    host: str = Field(default="0.0.0.0", validation_alias="HELPROTA_HOST")
    port: int = Field(default=3471, validation_alias="HELPROTA_PORT")
    default_pin: str = Field(default="0000", validation_alias="HELPROTA_DEFAULT_PIN")
    default_category: str = Field(default="📦 기타", validation_alias="HELPROTA_DEFAULT_CATEGORY")
    log_level: str = Field(default="INFO", validation_alias="HELPROTA_LOG_LEVEL")
    max_subscribers: int = Field(default=100, validation_alias="HELPROTA_MAX_SUBSCRIBERS")
    subscriber_queue_size: int = Field(
        default=64, validation_alias="HELPROTA_SUBSCRIBER_QUEUE_SIZE"
    )
    static_dir: Path | None = Field(default=None, validation_alias="HELPROTA_STATIC_DIR")
    mcp_enabled: bool = Field(default=True, validation_alias="HELPROTA_MCP_ENABLED")

    @field_validator("log_level")
    @classmethod
    def _normalize_log_level(cls, value: str) -> str:
        normalized = value.strip().upper()
        if normalized not in {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}:
            raise ValueError(
                "HELPROTA_LOG_LEVEL must be one of CRITICAL, ERROR, WARNING, INFO, DEBUG"
            )
        return normalized

    @field_validator("default_pin")
    @classmethod
    def _validate_default_pin(cls, value: str) -> str:
        if not value:
            raise ValueError("HELPROTA_DEFAULT_PIN must not be empty")
        return value

    @field_validator("max_subscribers", "subscriber_queue_size")
    @classmethod
    def _validate_positive(cls, value: int) -> int:
        if value < 1:
            raise ValueError("Subscriber limits must be >= 1")
        return value


@lru_cache(maxsize=1)
def get_settings() -> HelprotaSettings:
    """Return cached settings instance."""

    settings = HelprotaSettings()
    settings.data_dir = settings.data_dir.expanduser().resolve()
    if settings.static_dir is not None:
        settings.static_dir = settings.static_dir.expanduser().resolve()
    return settings


__all__ = ["HelprotaSettings", "get_settings"]
