"""
Configuration management for the Credo cache adapter.
Handles environment variables for the Redis connection, reconnect policy and logging.
"""

from typing import Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings

from credo_cache.domain.models.cache_config import CacheConfig, RedisConnectionConfig
from credo_cache.domain.models.retry_policy import (
    MAX_RETRY_INTERVAL,
    MAX_RETRY_TIME,
    RETRY_INTERVAL_STEP,
    RetryPolicy,
)


class Settings(BaseSettings):
    """Adapter settings loaded from environment variables."""

    # Application
    ENVIRONMENT: str = "development"

    # Cache
    CACHE_NAME: str = "cache"

    # Redis
    REDIS_HOST: str = "localhost"
    REDIS_PORT: int = 6379
    REDIS_PASSWORD: str = ""
    REDIS_PREFIX: Optional[str] = None
    REDIS_DB: int = 0

    # Reconnect policy (milliseconds)
    RETRY_MAX_TIME_MS: int = MAX_RETRY_TIME
    RETRY_INTERVAL_STEP_MS: int = RETRY_INTERVAL_STEP
    RETRY_MAX_INTERVAL_MS: int = MAX_RETRY_INTERVAL

    # Logging
    LOG_LEVEL: str = "INFO"

    @field_validator("ENVIRONMENT")
    @classmethod
    def validate_environment(cls, v):
        """Validate environment setting."""
        allowed_envs = ["development", "staging", "production"]
        if v not in allowed_envs:
            raise ValueError(f"Environment must be one of {allowed_envs}")
        return v

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v):
        """Validate log level setting."""
        allowed_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in allowed_levels:
            raise ValueError(f"Log level must be one of {allowed_levels}")
        return v.upper()

    @field_validator("REDIS_PREFIX", mode="before")
    @classmethod
    def empty_prefix_to_none(cls, v):
        """Treat an empty prefix as no prefix."""
        if isinstance(v, str) and not v.strip():
            return None
        return v

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True
        extra = "ignore"


# Create global settings instance
settings = Settings()


def get_cache_config() -> CacheConfig:
    """
    Build the cache configuration from environment settings.

    Returns:
        CacheConfig: Cache configuration
    """
    return CacheConfig(
        name=settings.CACHE_NAME,
        redis=RedisConnectionConfig(
            host=settings.REDIS_HOST,
            port=settings.REDIS_PORT,
            password=settings.REDIS_PASSWORD,
            prefix=settings.REDIS_PREFIX,
            db=settings.REDIS_DB,
        ),
    )


def get_retry_policy() -> RetryPolicy:
    """Build the default reconnect policy from environment settings."""
    return RetryPolicy(
        max_retry_time=settings.RETRY_MAX_TIME_MS,
        retry_interval_step=settings.RETRY_INTERVAL_STEP_MS,
        max_retry_interval=settings.RETRY_MAX_INTERVAL_MS,
    )


def is_production() -> bool:
    """Check if running in production environment."""
    return settings.ENVIRONMENT == "production"


def is_development() -> bool:
    """Check if running in development environment."""
    return settings.ENVIRONMENT == "development"
