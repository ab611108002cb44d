"""
Credo cache: a Redis connection exposed as a simple JSON cache.
"""

from credo_cache.core.exceptions import (
    CacheConfigurationError,
    CacheDeserializationError,
    CacheError,
    CacheSerializationError,
    CredoCacheException,
    ReconnectAbortedError,
    ValidationError,
)
from credo_cache.domain.models.cache_config import CacheConfig, RedisConnectionConfig
from credo_cache.domain.models.retry_policy import ConnectionRetryOptions, RetryPolicy
from credo_cache.infrastructure.cache import Cache, connect, connect_from_settings

__version__ = "1.0.0"

__all__ = [
    "Cache",
    "connect",
    "connect_from_settings",
    "CacheConfig",
    "RedisConnectionConfig",
    "RetryPolicy",
    "ConnectionRetryOptions",
    "CredoCacheException",
    "CacheConfigurationError",
    "ValidationError",
    "CacheError",
    "CacheSerializationError",
    "CacheDeserializationError",
    "ReconnectAbortedError",
]
