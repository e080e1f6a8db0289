"""
Core configuration module for Chat Bridge.

This module provides centralized configuration management using Pydantic Settings.
Configuration is loaded from environment variables with the CHAT_BRIDGE_ prefix,
plus an optional .env file in the working directory.

The shared secret is the exception to the prefix rule: it is read from
API_KEYS (CHAT_BRIDGE_API_KEYS is accepted as well).
"""

from functools import lru_cache
from typing import Literal

from pydantic import AliasChoices, Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All fields except api_keys use the CHAT_BRIDGE_ prefix.
    Example: CHAT_BRIDGE_PORT=8080

    Settings are read once at startup; handlers receive the values they need
    through the Gateway rather than reading this object per request.
    """

    # =========================================================================
    # Service Configuration
    # =========================================================================
    service_name: str = Field(
        default="chat-bridge",
        description="Name of the service for logging and identification",
    )
    host: str = Field(
        default="0.0.0.0",
        description="Interface the service binds to",
    )
    port: int = Field(
        default=927,
        ge=1,
        le=65535,
        description="Port the service listens on",
    )
    environment: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Deployment environment",
    )
    log_level: str = Field(
        default="INFO",
        description="Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )

    # =========================================================================
    # Shared Secret
    # Pattern: SecretStr masks values in logs/repr, use .get_secret_value()
    # =========================================================================
    api_keys: SecretStr = Field(
        default=SecretStr(""),
        validation_alias=AliasChoices("API_KEYS", "CHAT_BRIDGE_API_KEYS"),
        description="Shared secret expected verbatim in the Authorization header",
    )

    # =========================================================================
    # Downstream Chat Service
    # =========================================================================
    downstream_url: str = Field(
        default="http://localhost:11434",
        description="Base URL of the local chat-completion service",
    )
    downstream_chat_path: str = Field(
        default="/api/chat",
        description="Path of the chat endpoint on the downstream service",
    )
    downstream_timeout_seconds: float = Field(
        default=120.0,
        gt=0.0,
        le=3600.0,
        description="Timeout in seconds for each downstream call phase",
    )
    downstream_max_connections: int = Field(
        default=100,
        ge=1,
        le=1000,
        description="Size of the downstream connection pool",
    )

    # =========================================================================
    # Observability
    # =========================================================================
    metrics_enabled: bool = Field(
        default=True,
        description="Expose Prometheus metrics on /metrics",
    )

    model_config = SettingsConfigDict(
        env_prefix="CHAT_BRIDGE_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # =========================================================================
    # Field Validators
    # =========================================================================
    @field_validator("downstream_url")
    @classmethod
    def validate_downstream_url(cls, v: str) -> str:
        """Validate downstream URL scheme and drop any trailing slash."""
        if not v.startswith(("http://", "https://")):
            raise ValueError("Downstream URL must start with http:// or https://")
        return v.rstrip("/")

    @field_validator("downstream_chat_path")
    @classmethod
    def validate_chat_path(cls, v: str) -> str:
        """Ensure the chat path is absolute."""
        if not v.startswith("/"):
            return f"/{v}"
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Normalize and validate the log level name."""
        level = v.upper()
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if level not in valid_levels:
            raise ValueError(f"Log level must be one of: {sorted(valid_levels)}")
        return level

    @property
    def downstream_chat_url(self) -> str:
        """Full URL of the downstream chat endpoint."""
        return f"{self.downstream_url}{self.downstream_chat_path}"


# =============================================================================
# Settings Singleton
# =============================================================================


@lru_cache
def get_settings() -> Settings:
    """
    Get the application settings singleton.

    Uses functools.lru_cache to ensure only one Settings instance is created
    per process. Tests build their own Settings and pass them to create_app().

    Returns:
        Settings: The application settings instance.
    """
    return Settings()
