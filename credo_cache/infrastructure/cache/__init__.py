"""
Cache infrastructure module.
Provides a Redis-backed JSON cache with an error channel for fire-and-forget writes.
"""

from .cache_service import Cache, connect, connect_from_settings
from .error_channel import ErrorChannel
from .redis_client import create_redis_client
from .retry import PolicyRetry

__all__ = [
    "Cache",
    "connect",
    "connect_from_settings",
    "ErrorChannel",
    "create_redis_client",
    "PolicyRetry"
]
