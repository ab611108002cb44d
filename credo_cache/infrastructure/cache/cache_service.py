"""
Cache service exposing a Redis connection as a simple JSON cache.

get() and execute() return awaitables that resolve with the decoded value
or raise CacheError. set() and clear() are fire-and-forget: they schedule
the write on the running event loop and report failures only through the
error channel (see Cache.on_error).
"""

import asyncio
import time
from datetime import timedelta
from functools import partial
from typing import Any, Awaitable, Callable, List, Mapping, Optional, Sequence, Set, Union

from pydantic import ValidationError as PydanticValidationError

from credo_cache.core.config import get_cache_config, get_retry_policy
from credo_cache.core.exceptions import (
    CacheConfigurationError,
    CacheDeserializationError,
    CacheError,
    ValidationError,
)
from credo_cache.core.logging import get_logger, log_cache_operation, setup_logging
from credo_cache.domain.models.cache_config import CacheConfig
from credo_cache.domain.models.retry_policy import RetryPolicy
from credo_cache.infrastructure.cache import codec
from credo_cache.infrastructure.cache.error_channel import ErrorChannel, ErrorListener
from credo_cache.infrastructure.cache.redis_client import create_redis_client
from credo_cache.infrastructure.cache.retry import PolicyRetry

Keys = Union[str, Sequence[str]]


def _since(start: float) -> float:
    """Milliseconds elapsed since a perf_counter() reading."""
    return (time.perf_counter() - start) * 1000


def _load_config(config: Union[CacheConfig, Mapping[str, Any], None]) -> CacheConfig:
    if config is None:
        raise CacheConfigurationError("Cannot create Cache: config is undefined")
    if isinstance(config, CacheConfig):
        return config
    if not isinstance(config, Mapping):
        raise CacheConfigurationError(
            f"Cannot create Cache: unsupported config type {type(config).__name__}"
        )
    if not (config.get("redis") or config.get("connection")):
        raise CacheConfigurationError("Cannot create Cache: redis settings are undefined")

    try:
        return CacheConfig.model_validate(dict(config))
    except PydanticValidationError as e:
        raise CacheConfigurationError(
            "Cannot create Cache: invalid configuration",
            details={"errors": e.errors()},
        ) from e


class Cache:
    """
    JSON cache over a single Redis client.

    The adapter keeps no local state besides the client and the queue of
    outstanding writes. Writes reach the store in the order they were
    issued, and reads wait for the writes issued before them.
    """

    def __init__(
        self,
        config: Union[CacheConfig, Mapping[str, Any]],
        logger: Optional[Any] = None,
        retry_policy: Optional[RetryPolicy] = None,
    ):
        """
        Create the cache.

        Args:
            config: Cache configuration (model or mapping with a ``redis``
                or ``connection`` section)
            logger: Logger for diagnostics, defaults to the module logger
            retry_policy: Default reconnect policy, used when the connection
                settings carry no ``retry_strategy``

        Raises:
            CacheConfigurationError: If the configuration or the redis settings are missing
        """
        config = _load_config(config)

        self.config = config
        self.name = config.name
        self.prefix = config.redis.prefix or ""
        self.logger = logger if logger is not None else get_logger(__name__)
        self.errors = ErrorChannel(self.name)

        self.retry = PolicyRetry(
            name=self.name,
            strategy=config.redis.retry_strategy,
            policy=retry_policy,
            logger=self.logger,
            on_error=self._on_connection_error,
        )
        self.client = create_redis_client(config.redis, self.retry)

        self._pending: Set[asyncio.Task] = set()
        self._last_write: Optional[asyncio.Task] = None

    # Error channel

    def on_error(self, listener: ErrorListener) -> Callable[[], None]:
        """
        Subscribe to cache errors.

        Args:
            listener (ErrorListener): Called with each CacheError

        Returns:
            Callable[[], None]: Unsubscribe function
        """
        return self.errors.subscribe(listener)

    def off_error(self, listener: ErrorListener) -> None:
        """Unsubscribe a listener registered with on_error()."""
        self.errors.unsubscribe(listener)

    def _on_connection_error(self, error: BaseException) -> None:
        self.errors.emit(CacheError(error, "Cache error"))

    # Operations

    def get(self, keys: Keys) -> Awaitable[Any]:
        """
        Get one value, or several values in one round trip.

        Args:
            keys (Keys): A key, or a sequence of keys

        Returns:
            Awaitable[Any]: The decoded value (None when missing or malformed),
            or a list of them aligned with ``keys``

        Raises:
            ValidationError: If no key is given
        """
        if not keys:
            raise ValidationError("Cannot get values from cache: keys are undefined")
        if isinstance(keys, str):
            return self._get_one(keys)
        return self._get_all(list(keys))

    def set(self, key: str, value: Any, expires: Optional[Union[int, timedelta]] = None) -> None:
        """
        Store a value as JSON, optionally expiring after ``expires`` seconds.

        Failures are emitted on the error channel.

        Raises:
            ValidationError: If no key is given
            CacheSerializationError: If the value cannot be encoded as JSON
        """
        if not key:
            raise ValidationError("Cannot set cache key: key is undefined")
        self.logger.debug(f"Setting value for key ({key}) in the cache", source=self.name)

        serialized = codec.encode(value)
        if expires:
            command = partial(self.client.setex, self._key(key), expires, serialized)
        else:
            command = partial(self.client.set, self._key(key), serialized)

        self._schedule("set", command, "Failed to set cache item")

    def clear(self, keys: Keys) -> None:
        """
        Delete one or more keys. Failures are emitted on the error channel.

        Raises:
            ValidationError: If no key is given
        """
        if not keys:
            raise ValidationError("Cannot clear cache keys: keys are undefined")
        keys = [keys] if isinstance(keys, str) else list(keys)
        self.logger.debug(f"Clearing values for ({len(keys)}) keys from cache", source=self.name)

        command = partial(self.client.delete, *[self._key(key) for key in keys])
        self._schedule("clear", command, "Failed to clear cache items")

    def execute(
        self,
        script: str,
        keys: Optional[Sequence[str]] = None,
        parameters: Optional[Sequence[Any]] = None,
    ) -> Awaitable[Any]:
        """
        Run a Lua script with EVAL.

        Args:
            script (str): Script body
            keys (Optional[Sequence[str]]): Key arguments (KEYS)
            parameters (Optional[Sequence[Any]]): Extra arguments (ARGV)

        Returns:
            Awaitable[Any]: The script result, JSON-decoded when it is a string

        Raises:
            ValidationError: If the script is empty
        """
        if not script:
            raise ValidationError("Cannot execute cache script: script is undefined")
        return self._execute(script, list(keys or []), list(parameters or []))

    async def drain(self) -> None:
        """Wait until every scheduled set/clear has completed."""
        if self._pending:
            await asyncio.wait(list(self._pending))

    async def disconnect(self) -> None:
        """Flush outstanding writes and close the Redis connection."""
        await self.drain()
        await self.client.aclose()
        self.logger.info("Disconnected from Redis", source=self.name)

    async def __aenter__(self) -> "Cache":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.disconnect()

    # Internals

    def _key(self, key: str) -> str:
        return f"{self.prefix}{key}"

    def _deserialize(self, raw: Any) -> Any:
        try:
            return codec.decode(raw)
        except CacheDeserializationError as e:
            self.logger.warning(e.message, source=self.name)
            return None

    async def _wait_for_writes(self) -> None:
        # writes are chained, so the last one finishing means all have
        if self._last_write is not None and not self._last_write.done():
            await asyncio.wait([self._last_write])

    async def _get_one(self, key: str) -> Any:
        self.logger.debug(f"Retrieving value for key ({key}) from the cache", source=self.name)
        await self._wait_for_writes()

        start = time.perf_counter()
        try:
            result = await self.client.get(self._key(key))
        except Exception as e:
            log_cache_operation(self.name, "get", _since(start), False, logger=self.logger)
            raise CacheError(e, "Failed to retrieve a value from cache") from e
        log_cache_operation(self.name, "get", _since(start), logger=self.logger)

        return self._deserialize(result)

    async def _get_all(self, keys: List[str]) -> List[Any]:
        self.logger.debug(f"Retrieving values for ({len(keys)}) keys from the cache", source=self.name)
        await self._wait_for_writes()

        start = time.perf_counter()
        try:
            results = await self.client.mget([self._key(key) for key in keys])
        except Exception as e:
            log_cache_operation(self.name, "get", _since(start), False, logger=self.logger)
            raise CacheError(e, "Failed to retrieve values from cache") from e
        log_cache_operation(self.name, "get", _since(start), logger=self.logger)

        return [self._deserialize(result) for result in results]

    async def _execute(self, script: str, keys: List[str], parameters: List[Any]) -> Any:
        self.logger.debug("Executing cache script", source=self.name)
        await self._wait_for_writes()

        start = time.perf_counter()
        try:
            result = await self.client.eval(
                script, len(keys), *[self._key(key) for key in keys], *parameters
            )
        except Exception as e:
            log_cache_operation(self.name, "execute", _since(start), False, logger=self.logger)
            raise CacheError(e, "Failed to execute cache script") from e
        log_cache_operation(self.name, "execute", _since(start), logger=self.logger)

        if isinstance(result, (str, bytes)):
            return self._deserialize(result)
        return result

    def _schedule(self, operation: str, command: Callable[[], Awaitable[Any]], failure_message: str) -> None:
        previous = self._last_write
        task = asyncio.get_running_loop().create_task(
            self._write(operation, command, failure_message, previous)
        )
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        self._last_write = task

    async def _write(
        self,
        operation: str,
        command: Callable[[], Awaitable[Any]],
        failure_message: str,
        previous: Optional[asyncio.Task],
    ) -> None:
        if previous is not None and not previous.done():
            await asyncio.wait([previous])

        start = time.perf_counter()
        try:
            await command()
        except Exception as e:
            log_cache_operation(self.name, operation, _since(start), False, logger=self.logger)
            self.errors.emit(CacheError(e, failure_message))
            return
        log_cache_operation(self.name, operation, _since(start), logger=self.logger)


async def connect(
    config: Union[CacheConfig, Mapping[str, Any]],
    logger: Optional[Any] = None,
    retry_policy: Optional[RetryPolicy] = None,
) -> Cache:
    """
    Create a cache and make sure Redis answers.

    Raises:
        CacheConfigurationError: If the configuration is missing or invalid
        CacheError: If Redis cannot be reached
    """
    cache = Cache(config, logger=logger, retry_policy=retry_policy)
    try:
        await cache.client.ping()
    except Exception as e:
        await cache.client.aclose()
        raise CacheError(e, "Failed to connect to cache") from e

    redis_config = cache.config.redis
    cache.logger.info(
        f"Connected to Redis at {redis_config.host}:{redis_config.port}",
        source=cache.name,
    )
    return cache


async def connect_from_settings(logger: Optional[Any] = None) -> Cache:
    """
    Configure logging, then create a cache from environment settings and
    make sure Redis answers.
    """
    setup_logging()
    return await connect(get_cache_config(), logger=logger, retry_policy=get_retry_policy())
