"""
Shared configuration management for the Access Cache layer.
"""

from typing import Literal, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class BaseConfig(BaseSettings):
    """Base configuration class with common settings."""

    model_config = SettingsConfigDict(
        env_prefix="ACCESS_CACHE_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore"
    )

    # Environment
    env: str = Field(default="local")
    log_level: str = Field(default="info")

    # External services
    redis_url: str = Field(default="redis://localhost:6379/0")
    redis_socket_timeout: float = Field(default=5.0)

    # Observability
    metrics_enabled: bool = Field(default=True)


class CacheConfig(BaseConfig):
    """Cache-aside engine configuration."""

    service_name: str = Field(default="cache")

    # Entry lifetime applied when callers do not pass a ttl
    default_ttl_seconds: float = Field(default=900.0)

    # How long a populator waits for the population lock
    lock_timeout_seconds: float = Field(default=60.0)

    # Server-side lease on a distributed lock, released early on completion
    lock_lease_seconds: float = Field(default=120.0)

    lock_granularity: Literal["key", "scope"] = Field(default="key")
    key_separator: str = Field(default="-")
    key_prefix: str = Field(default="")

    # Port for the Prometheus scrape endpoint; unset leaves exposition to the host
    metrics_port: Optional[int] = Field(default=None)

    @field_validator(
        "default_ttl_seconds",
        "lock_timeout_seconds",
        "lock_lease_seconds",
        "redis_socket_timeout",
    )
    @classmethod
    def _positive_duration(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("duration must be positive")
        return value

    @field_validator("key_separator")
    @classmethod
    def _non_empty_separator(cls, value: str) -> str:
        if not value:
            raise ValueError("key separator must not be empty")
        if "." in value:
            raise ValueError("key separator must not contain '.', which appears in type scopes")
        return value


def get_config(**overrides) -> CacheConfig:
    """Get cache configuration from the environment, with explicit overrides."""
    return CacheConfig(**overrides)
