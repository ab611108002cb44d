"""
Bridges the reconnect policy into redis-py's retry mechanism.
"""

import asyncio
import inspect
import time
from typing import Any, Awaitable, Callable, Optional, TypeVar

from redis.asyncio.retry import Retry
from redis.backoff import NoBackoff
from redis.exceptions import AuthenticationError, ConnectionError, TimeoutError

from credo_cache.core.exceptions import ReconnectAbortedError
from credo_cache.domain.models.cache_config import RetryStrategy
from credo_cache.domain.models.retry_policy import ConnectionRetryOptions, RetryPolicy

T = TypeVar("T")


def _aborted_by(error: BaseException) -> Optional[ReconnectAbortedError]:
    """Find a ReconnectAbortedError that redis-py wrapped in its own ConnectionError."""
    seen = set()
    while error is not None and id(error) not in seen:
        seen.add(id(error))
        if isinstance(error, ReconnectAbortedError):
            return error
        error = error.__cause__ or error.__context__
    return None


class PolicyRetry(Retry):
    """
    redis-py Retry driven by a reconnect policy instead of a backoff.

    Every transport failure is reported through ``on_error`` and then handed
    to the retry strategy, which returns either the delay before the next
    attempt (milliseconds) or the error to give up with.
    """

    def __init__(
        self,
        name: str = "cache",
        strategy: Optional[RetryStrategy] = None,
        policy: Optional[RetryPolicy] = None,
        logger: Optional[Any] = None,
        on_error: Optional[Callable[[BaseException], None]] = None,
    ):
        # OSError covers socket failures raised while (re)connecting
        super().__init__(NoBackoff(), -1, supported_errors=(ConnectionError, TimeoutError, OSError))
        self.name = name
        self.strategy = strategy
        self.policy = policy or RetryPolicy()
        self.logger = logger
        self.on_error = on_error
        self.times_connected = 0

    def __deepcopy__(self, memo):
        # redis-py deep-copies the retry object into every pooled connection;
        # they all have to share this instance and its counters.
        return self

    def next_delay(self, options: ConnectionRetryOptions):
        """Ask the configured strategy, or the default policy, what to do next."""
        if self.strategy is not None:
            return self.strategy(options)
        return self.policy.evaluate(options, self.name, self.logger)

    def is_transient(self, error: BaseException, failures: int) -> bool:
        """Auth failures while reconnecting are expected noise, not real errors."""
        reconnecting = failures > 1 or self.times_connected > 0
        return isinstance(error, AuthenticationError) and reconnecting

    async def call_with_retry(
        self,
        do: Callable[[], Awaitable[T]],
        fail: Callable[..., Any],
        is_retryable: Optional[Callable[[Exception], bool]] = None,
        with_failure_count: bool = False,
    ) -> T:
        """
        Run ``do`` until it succeeds or the strategy gives up.

        Args:
            do: Operation to run, takes no arguments
            fail: Failure handler, called with the error (and the failure
                count when ``with_failure_count`` is set) before retrying
            is_retryable: Optional filter; errors it rejects are raised as is
            with_failure_count: Pass the failure count to ``fail``

        Returns:
            The result of ``do``

        Raises:
            ReconnectAbortedError: Or whatever error the strategy returned
        """
        failures = 0
        started = None

        while True:
            try:
                result = await do()
            except self._supported_errors as error:
                if is_retryable and not is_retryable(error):
                    raise
                aborted = _aborted_by(error)
                if aborted is not None:
                    # a nested connect loop already gave up
                    raise aborted

                failures += 1
                if started is None:
                    started = time.monotonic()

                self._report(error, failures)

                if with_failure_count:
                    outcome = fail(error, failures)
                else:
                    outcome = fail(error)
                if inspect.isawaitable(outcome):
                    await outcome

                options = ConnectionRetryOptions(
                    error=error,
                    attempt=failures,
                    total_retry_time=int((time.monotonic() - started) * 1000),
                    times_connected=self.times_connected,
                )
                delay = self.next_delay(options)
                if isinstance(delay, BaseException):
                    raise delay from error
                if delay and delay > 0:
                    await asyncio.sleep(delay / 1000)
            else:
                if failures or not self.times_connected:
                    self.times_connected += 1
                return result

    def _report(self, error: BaseException, failures: int) -> None:
        if self.is_transient(error, failures):
            if self.logger:
                self.logger.warning(
                    "Authentication failed while reconnecting",
                    source=self.name,
                    attempt=failures,
                    error=str(error),
                )
            return
        if self.on_error:
            self.on_error(error)
