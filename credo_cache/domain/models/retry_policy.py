"""
Reconnect policy models for the store connection.
"""

import errno
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from credo_cache.core.exceptions import ReconnectAbortedError

MAX_RETRY_TIME = 60000       # 1 minute
MAX_RETRY_INTERVAL = 3000    # 3 seconds
RETRY_INTERVAL_STEP = 200    # 200 milliseconds

_REFUSED_MARKERS = (
    "connection refused",
    f"[errno {errno.ECONNREFUSED}]",
    f"error {errno.ECONNREFUSED} connecting",
)


class ConnectionRetryOptions(BaseModel):
    """State of the reconnect loop handed to a retry strategy."""

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    error: Optional[BaseException] = Field(None, description="Last transport error")
    attempt: int = Field(..., ge=1, description="Reconnect attempt number, starting at 1")
    total_retry_time: int = Field(0, ge=0, description="Time spent reconnecting so far (ms)")
    times_connected: int = Field(0, ge=0, description="Successful reconnections so far")


def is_connection_refused(error: Optional[BaseException]) -> bool:
    """
    Check whether a transport error means the server actively refused the connection.

    redis-py re-raises socket errors as its own ConnectionError, so the whole
    cause/context chain is inspected. When a host name resolves to several
    addresses asyncio folds the per-address failures into one plain OSError
    ("Multiple exceptions: [Errno 111] ..."), which only the text reveals.
    """
    seen = set()
    while error is not None and id(error) not in seen:
        seen.add(id(error))
        if isinstance(error, ConnectionRefusedError):
            return True
        if getattr(error, "errno", None) == errno.ECONNREFUSED:
            return True
        if any(marker in str(error).lower() for marker in _REFUSED_MARKERS):
            return True
        error = error.__cause__ or error.__context__
    return False


class RetryPolicy(BaseModel):
    """Default reconnect policy: linear backoff, capped, with an overall time ceiling."""

    model_config = ConfigDict(frozen=True)

    max_retry_time: int = Field(MAX_RETRY_TIME, gt=0, description="Give up after this long (ms)")
    retry_interval_step: int = Field(RETRY_INTERVAL_STEP, gt=0, description="Delay added per attempt (ms)")
    max_retry_interval: int = Field(MAX_RETRY_INTERVAL, gt=0, description="Upper bound for one delay (ms)")

    def evaluate(
        self,
        options: ConnectionRetryOptions,
        name: str,
        logger: Optional[Any] = None
    ) -> Union[int, ReconnectAbortedError]:
        """
        Decide what to do after a lost connection.

        Args:
            options: Current reconnect state
            name: Cache name, used as log source
            logger: Logger for the reconnect warning

        Returns:
            Union[int, ReconnectAbortedError]: Delay in milliseconds before the
            next attempt, or the error to fail with
        """
        if is_connection_refused(options.error):
            return ReconnectAbortedError(
                "The server refused the connection",
                details={"source": name, "attempt": options.attempt},
            )
        if options.total_retry_time > self.max_retry_time:
            return ReconnectAbortedError(
                "Retry time exhausted",
                details={"source": name, "total_retry_time": options.total_retry_time},
            )

        if logger:
            logger.warning(
                "Redis connection lost. Trying to reconnect",
                source=name,
                attempt=options.attempt,
            )
        return min(options.attempt * self.retry_interval_step, self.max_retry_interval)
