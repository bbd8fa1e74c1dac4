"""
Application settings - pydantic-settings configuration.

This module defines application configuration using pydantic-settings
for environment variable loading with validation and defaults.
"""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Backend API
    api_base_url: str = "http://localhost:5206/api"
    request_timeout_seconds: float = 30.0
    use_mock_backend: bool = False  # Serve wizards from the in-memory backend

    # Wizard behaviour
    debounce_seconds: float = 0.8  # Quiet interval before an availability check
    enforce_declared_steps: bool = False  # Gate location/profile on their declared fields
    session_ttl_seconds: float = 1800.0  # Idle time before an abandoned wizard is discarded

    # Mock backend
    bcrypt_cost: int = 10  # bcrypt work factor for stored demo accounts


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
