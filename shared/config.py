"""
Shared configuration management for the resource data store.
"""

from typing import Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class BaseConfig(BaseSettings):
    """Base configuration class with common settings."""

    model_config = SettingsConfigDict(
        env_prefix="DATASTORE_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore"
    )

    # Environment
    env: str = Field(default="local")
    log_level: str = Field(default="info")


class DataStoreConfig(BaseConfig):
    """Data store configuration (read from ``DATASTORE_*`` variables)."""

    # Credentials
    api_key_id: Optional[str] = Field(default=None)
    api_key_secret: Optional[str] = Field(default=None)

    # Remote API; None means the store default
    base_url: Optional[str] = Field(default=None)

    # Cache
    cache_backend: Literal["memory", "redis", "none"] = Field(default="memory")
    redis_url: str = Field(default="redis://localhost:6379/0")
    cache_prefix: str = Field(default="datastore", min_length=1)
    cache_ttl_seconds: Optional[int] = Field(default=300, ge=0)

    # HTTP
    http_timeout_seconds: float = Field(default=10.0, gt=0)
    http_max_attempts: int = Field(default=3, ge=1, le=10)
    user_agent: str = Field(default="datastore-client/0.1.0", min_length=1)


def get_config(**overrides) -> DataStoreConfig:
    """Get data store configuration."""
    return DataStoreConfig(**overrides)
