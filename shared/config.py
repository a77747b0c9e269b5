"""
Shared configuration management for the Game Explorer services.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


FREETOGAME_GAMES_URL = "https://www.freetogame.com/api/games"


class BaseConfig(BaseSettings):
    """Base configuration class with common settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # Environment
    env: str = Field(default="local", validation_alias="EXPLORER_ENV")
    log_level: str = Field(default="info", validation_alias="EXPLORER_LOG_LEVEL")

    # Upstream catalog
    catalog_url: str = Field(default=FREETOGAME_GAMES_URL, validation_alias="EXPLORER_CATALOG_URL")
    catalog_timeout_seconds: float = Field(default=30.0, validation_alias="EXPLORER_CATALOG_TIMEOUT")
    catalog_fetch_attempts: int = Field(default=3, validation_alias="EXPLORER_CATALOG_FETCH_ATTEMPTS")
    refresh_interval_seconds: float = Field(default=3600.0, validation_alias="EXPLORER_REFRESH_INTERVAL")

    # Streaming
    stream_interval_seconds: float = Field(default=3.0, validation_alias="EXPLORER_STREAM_INTERVAL")
    max_sse_connections: int = Field(default=1000, validation_alias="EXPLORER_MAX_SSE_CONNECTIONS")


class ServiceConfig(BaseConfig):
    """Service-specific configuration."""

    service_name: str = "explorer"
    host: str = Field(default="0.0.0.0", validation_alias="EXPLORER_HOST")
    port: int = Field(default=8080, validation_alias="PORT")


def get_config(service_name: str, **overrides) -> ServiceConfig:
    """Get configuration for a specific service."""
    return ServiceConfig(service_name=service_name, **overrides)
