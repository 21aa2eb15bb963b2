"""Configuration settings for the job tracker."""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Annotated

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_MS = 5000


@dataclass(frozen=True)
class StorageConfig:
    """Routing configuration handed to the storage coordinator.

    Attributes:
        remote_enabled: Whether operations should try the remote API first.
        base_url: Base URL of the CRUD API (for example ``http://host/api``).
        timeout_ms: Bound applied to the health probe and to each remote call.
    """

    remote_enabled: bool = False
    base_url: str = ""
    timeout_ms: int = DEFAULT_TIMEOUT_MS

    @property
    def timeout_seconds(self) -> float:
        return self.timeout_ms / 1000


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    All settings have sensible defaults and can be overridden via
    environment variables or a .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Remote storage
    remote_enabled: bool = Field(
        default=False,
        description="Use the remote applications API, falling back to the local cache",
    )
    api_url: str | None = Field(
        default=None,
        description="Base URL of the applications API, e.g. http://localhost:5001/api",
    )
    remote_timeout_ms: Annotated[int, Field(gt=0)] = Field(
        default=DEFAULT_TIMEOUT_MS,
        description="Timeout in milliseconds for the health probe and each API call",
    )

    # Local cache
    cache_db_path: Path = Field(
        default=Path("./data/cache.db"),
        description="Path to the SQLite file backing the local cache",
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level: DEBUG, INFO, WARNING, ERROR",
    )

    @field_validator("api_url", mode="before")
    @classmethod
    def normalize_api_url(cls, v: str | None) -> str | None:
        """Strip whitespace and trailing slashes; blank means unset."""
        if v is None:
            return None
        value = str(v).strip().rstrip("/")
        return value or None

    @field_validator("log_level", mode="before")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is a known level."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in valid_levels:
            raise ValueError(f"Invalid log level: {v}. Must be one of {valid_levels}")
        return v.upper()

    def storage_config(self) -> StorageConfig:
        """Build the coordinator configuration.

        Remote storage is only enabled when the flag is set and an API URL
        is configured.
        """
        enabled = self.remote_enabled
        if enabled and not self.api_url:
            logger.warning("REMOTE_ENABLED is set but API_URL is missing; using local cache only")
            enabled = False

        return StorageConfig(
            remote_enabled=enabled,
            base_url=self.api_url or "",
            timeout_ms=self.remote_timeout_ms,
        )


# Singleton instance for easy import
_settings: Settings | None = None


def get_settings() -> Settings:
    """Get the application settings singleton."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Reset the settings singleton (useful for testing)."""
    global _settings
    _settings = None
