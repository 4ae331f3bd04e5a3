"""
Application settings - pydantic-settings configuration.

This module defines application configuration using pydantic-settings
for environment variable loading with validation and defaults.

The three Matrix values are required and map to the MATRIX_TOKEN,
MATRIX_SERVER and MATRIX_SHARED_SECRET environment variables.
"""

from functools import lru_cache

from pydantic import SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Homeserver configuration
    matrix_token: str  # User-facing token gating the form
    matrix_server: str  # Synapse base URL
    matrix_shared_secret: SecretStr  # registration_shared_secret from homeserver.yaml
    http_timeout_seconds: float = 10.0

    # Registration settings
    password_min_length: int = 3

    # Abuse tracking
    abuse_max_failures: int = 5  # Counted failures before an actor is blocked
    abuse_block_seconds: int = 6 * 60 * 60
    abuse_failure_window_seconds: int = 24 * 60 * 60
    abuse_max_actors: int = 10_000
    abuse_sweep_interval_seconds: int = 60 * 60
    count_user_exists_as_failure: bool = False

    # Actor identification
    trust_forwarded_for: bool = False  # Let uvicorn rewrite the peer from proxy headers
    forwarded_allow_ips: str = "127.0.0.1"  # Proxies whose X-Forwarded-For is honoured
    fingerprint_header: str = ""  # Optional header refining the actor; empty disables

    # Server
    host: str = "0.0.0.0"
    port: int = 8080
    log_level: str = "INFO"

    @field_validator("matrix_server")
    @classmethod
    def strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
