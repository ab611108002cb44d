"""
Custom exceptions for the Credo cache adapter.
Provides structured error handling for cache configuration, arguments and store failures.
"""

from typing import Any, Dict, Optional


class CredoCacheException(Exception):
    """Base exception for the cache adapter."""

    def __init__(
        self,
        message: str,
        error_code: str = "CREDO_CACHE_ERROR",
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)


# Construction & Arguments
class CacheConfigurationError(CredoCacheException):
    """Raised when the cache cannot be created from the supplied configuration."""

    def __init__(self, message: str = "Invalid cache configuration", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, "CONFIG_ERROR", details)


class ValidationError(CredoCacheException):
    """Raised when a cache operation is called with missing arguments."""

    def __init__(self, message: str = "Validation failed", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, "VALIDATION_ERROR", details)


# Store Operations
class CacheError(CredoCacheException):
    """
    Raised (or emitted) when the underlying store fails.

    Wraps the original transport or command error, which is available
    as ``cause`` and is chained as ``__cause__``.
    """

    def __init__(
        self,
        cause: Optional[BaseException],
        message: str = "Cache operation failed",
        details: Optional[Dict[str, Any]] = None
    ):
        self.cause = cause
        details = dict(details or {})
        if cause is not None:
            details.setdefault("cause", str(cause))
            details.setdefault("cause_type", type(cause).__name__)
        super().__init__(message, "CACHE_ERROR", details)
        self.__cause__ = cause


class ReconnectAbortedError(CredoCacheException):
    """Raised when the reconnect policy gives up on the store connection."""

    def __init__(self, message: str = "Reconnect aborted", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, "RECONNECT_ABORTED", details)


# Serialization
class CacheSerializationError(CredoCacheException):
    """Raised when a value cannot be encoded as JSON."""

    def __init__(self, message: str = "Failed to serialize cache value", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, "SERIALIZATION_ERROR", details)


class CacheDeserializationError(CredoCacheException):
    """Raised when a stored value is not valid JSON."""

    def __init__(self, raw_value: Any, details: Optional[Dict[str, Any]] = None):
        message = f"Failed to deserialize cache value {raw_value}"
        self.raw_value = raw_value
        super().__init__(message, "DESERIALIZATION_ERROR", details)
