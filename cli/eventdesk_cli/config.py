"""Configuration management for EventDesk CLI."""

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Client settings with environment variable support."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="EVENTDESK_",
        case_sensitive=False,
        extra="ignore",
    )

    # ==========================================================================
    # Server Configuration
    # ==========================================================================
    api_base_url: str = Field(
        default="http://localhost:8000",
        description="Base URL of the EventDesk server",
    )
    venue_search_path: str = Field(
        default="/venues/search",
        description="Venue search endpoint path",
    )
    events_path: str = Field(
        default="/events",
        description="Events resource path",
    )
    request_timeout: float = Field(
        default=10.0,
        gt=0,
        description="HTTP request timeout in seconds",
    )

    # ==========================================================================
    # Venue Picker Configuration
    # ==========================================================================
    search_limit: int = Field(
        default=20,
        ge=1,
        le=100,
        description="Maximum venues requested per search",
    )
    debounce_ms: int = Field(
        default=300,
        ge=0,
        le=5000,
        description="Quiet period after typing before a search fires",
    )

    # ==========================================================================
    # Logging Configuration
    # ==========================================================================
    log_level: str = Field(default="INFO", description="Logging level")
    log_file: Optional[Path] = Field(
        default=None,
        description="Write logs to this file instead of the terminal",
    )

    @property
    def debounce_seconds(self) -> float:
        return self.debounce_ms / 1000

    @field_validator("log_level", mode="after")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v = v.upper()
        if v not in valid_levels:
            raise ValueError(f"Invalid log level. Must be one of: {valid_levels}")
        return v

    @field_validator("api_base_url", mode="after")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


def reload_settings() -> Settings:
    """Reload settings (useful after env changes)."""
    get_settings.cache_clear()
    return get_settings()
