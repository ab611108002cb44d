"""
JSON encoding of cache values.
"""

import json
from typing import Any, Optional, Union

from credo_cache.core.exceptions import CacheDeserializationError, CacheSerializationError


def encode(value: Any) -> str:
    """
    Serialize a value to its JSON text form.

    Args:
        value (Any): JSON-serializable value

    Returns:
        str: JSON text

    Raises:
        CacheSerializationError: If the value has no JSON representation
    """
    try:
        return json.dumps(value, allow_nan=False)
    except (TypeError, ValueError) as e:
        raise CacheSerializationError(
            f"Failed to serialize cache value of type {type(value).__name__}",
            details={"error": str(e)},
        ) from e


def decode(raw: Optional[Union[str, bytes]]) -> Any:
    """
    Deserialize a stored JSON value.

    Args:
        raw (Optional[Union[str, bytes]]): Raw value returned by the store

    Returns:
        Any: Parsed value, or None when nothing was stored

    Raises:
        CacheDeserializationError: If the stored value is not UTF-8 JSON text
    """
    if not raw:
        return None

    try:
        text = raw.decode("utf-8") if isinstance(raw, bytes) else raw
        return json.loads(text)
    except ValueError as e:  # UnicodeDecodeError included
        raise CacheDeserializationError(raw, details={"error": str(e)}) from e
