"""
Client configuration models and helpers.

Centralizes settings so the gateway, the job tracker and the durable storage
layer share a consistent configuration surface.
"""

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class GatewaySettings(BaseSettings):
    """Configuration for outbound calls to the remote service."""

    model_config = SettingsConfigDict(
        env_prefix="GATEWAY_", env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    base_url: str = Field(
        "http://localhost:3000/v1",
        description="API root every request path is resolved against.",
    )
    timeout_seconds: float = Field(10.0, description="Timeout for a single attempt.")
    max_attempts: int = Field(3, description="Total attempts for transient failures.")
    backoff_seconds: float = Field(0.5, description="Delay before the first retry.")
    backoff_multiplier: float = Field(2.0, description="Growth factor between retries.")
    login_path: str = Field(
        "/login",
        description="Where the UI is sent once the session can no longer be refreshed.",
    )

    @field_validator("timeout_seconds", "backoff_seconds")
    @classmethod
    def _positive(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("must be positive")
        return value

    @field_validator("max_attempts")
    @classmethod
    def _at_least_one(cls, value: int) -> int:
        if value < 1:
            raise ValueError("at least one attempt is required")
        return value

    @field_validator("backoff_multiplier")
    @classmethod
    def _increasing(cls, value: float) -> float:
        if value <= 1:
            raise ValueError("backoff multiplier must be greater than 1")
        return value


class JobSettings(BaseSettings):
    """Polling behaviour for long-running server-side jobs."""

    model_config = SettingsConfigDict(
        env_prefix="JOB_", env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    poll_interval_seconds: float = Field(2.0)
    completion_delay_seconds: float = Field(
        1.5,
        description="Pause between a terminal poll and notifying subscribers.",
    )
    resource: str = Field("blogs", description="Path segment of the status endpoint.")

    @field_validator("poll_interval_seconds")
    @classmethod
    def _positive_interval(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("poll interval must be positive")
        return value

    @field_validator("completion_delay_seconds")
    @classmethod
    def _non_negative_delay(cls, value: float) -> float:
        if value < 0:
            raise ValueError("completion delay cannot be negative")
        return value


class StorageSettings(BaseSettings):
    """Location of the durable key-value store."""

    model_config = SettingsConfigDict(
        env_prefix="STORAGE_", env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    db_path: str = Field("./data/client_storage.db")


class AppSettings(BaseSettings):
    """Root settings object for the client runtime."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    environment: str = Field("development", validation_alias="APP_ENV")
    log_level: str = Field("INFO", validation_alias="APP_LOG_LEVEL")
    gateway: GatewaySettings = Field(default_factory=GatewaySettings)
    jobs: JobSettings = Field(default_factory=JobSettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)


@lru_cache()
def get_settings() -> AppSettings:
    """Return a cached settings object."""
    return AppSettings()


__all__ = [
    "AppSettings",
    "GatewaySettings",
    "JobSettings",
    "StorageSettings",
    "get_settings",
]
