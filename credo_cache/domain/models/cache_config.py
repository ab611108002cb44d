"""
Configuration models for the cache adapter.
"""

from typing import Callable, Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from credo_cache.domain.models.retry_policy import ConnectionRetryOptions

RetryStrategy = Callable[[ConnectionRetryOptions], Union[int, BaseException]]


class RedisConnectionConfig(BaseModel):
    """Redis connection settings."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    host: str = Field(..., description="Redis host")
    port: int = Field(..., gt=0, lt=65536, description="Redis port")
    password: Optional[str] = Field("", description="Redis password, empty for none")
    prefix: Optional[str] = Field(None, description="Prefix prepended to every key")
    db: int = Field(0, ge=0, description="Redis database index")
    retry_strategy: Optional[RetryStrategy] = Field(
        None,
        description="Maps reconnect state to a delay in milliseconds or a terminal error",
    )


class CacheConfig(BaseModel):
    """Cache adapter settings."""

    model_config = ConfigDict(populate_by_name=True)

    name: str = Field("cache", description="Cache name used in log events")
    redis: RedisConnectionConfig = Field(
        ...,
        validation_alias=AliasChoices("redis", "connection"),
        description="Redis connection settings",
    )

    @field_validator("name", mode="before")
    @classmethod
    def default_name(cls, v):
        """Fall back to the default name when none is given."""
        return v or "cache"
