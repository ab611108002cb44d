"""
Redis client for caching operations.
Creates the store connection with the reconnect policy installed.
"""

import redis.asyncio as redis
from redis.exceptions import ConnectionError, TimeoutError

from credo_cache.core.logging import get_logger
from credo_cache.domain.models.cache_config import RedisConnectionConfig
from credo_cache.infrastructure.cache.retry import PolicyRetry

logger = get_logger(__name__)


def create_redis_client(connection: RedisConnectionConfig, retry: PolicyRetry) -> redis.Redis:
    """
    Create a Redis client for the given connection settings.

    The connection is opened lazily by the first command.

    Args:
        connection (RedisConnectionConfig): Redis connection settings
        retry (PolicyRetry): Retry object driving reconnects

    Returns:
        redis.Redis: Redis client instance
    """
    client = redis.Redis(
        host=connection.host,
        port=connection.port,
        db=connection.db,
        password=connection.password or None,
        # values stay bytes so codec.decode owns UTF-8 errors per entry
        decode_responses=False,
        retry=retry,
        retry_on_error=[ConnectionError, TimeoutError],
    )
    logger.debug(
        "Created Redis client",
        host=connection.host,
        port=connection.port,
        db=connection.db,
    )
    return client
