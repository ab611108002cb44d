"""
Error channel for fire-and-forget cache operations.
Failures of set/clear and of the store connection are reported only here.
"""

from typing import Any, Callable, List

from credo_cache.core.exceptions import CacheError
from credo_cache.core.logging import LoggerMixin, log_error

ErrorListener = Callable[[CacheError], Any]


class ErrorChannel(LoggerMixin):
    """Ordered list of error listeners."""

    def __init__(self, source: str = "cache"):
        self.source = source
        self._listeners: List[ErrorListener] = []

    def subscribe(self, listener: ErrorListener) -> Callable[[], None]:
        """
        Register a listener.

        Args:
            listener (ErrorListener): Called with every emitted CacheError

        Returns:
            Callable[[], None]: Function that removes the listener again
        """
        if not callable(listener):
            raise TypeError("Error listener must be callable")
        self._listeners.append(listener)
        return lambda: self.unsubscribe(listener)

    def unsubscribe(self, listener: ErrorListener) -> None:
        """Remove a listener; unknown listeners are ignored."""
        try:
            self._listeners.remove(listener)
        except ValueError:
            pass

    def emit(self, error: CacheError) -> None:
        """Deliver an error to every listener, in registration order."""
        if not self._listeners:
            log_error(error, {"source": self.source, "listeners": 0})
            return

        for listener in list(self._listeners):
            try:
                listener(error)
            except Exception as e:
                self.logger.error(
                    "Cache error listener failed",
                    source=self.source,
                    error=str(e),
                    exc_info=True,
                )

    def __len__(self) -> int:
        return len(self._listeners)
