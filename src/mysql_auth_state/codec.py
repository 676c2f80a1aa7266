"""Binary-safe JSON codec for auth state values.

Key material is raw bytes, but the value column stores JSON. Byte
sequences are therefore written as a marker object::

    {"type": "Buffer", "data": "<base64>"}

and revived into ``bytes`` on the way back. The marker layout is the one
JavaScript clients of the same protocol write, so tables can be shared
between implementations.
"""

from __future__ import annotations

import base64
import json
from typing import Any

from pydantic import BaseModel

BUFFER_TYPE = "Buffer"


def _encode_default(value: Any) -> Any:
    """Fallback for values the json module cannot serialize itself."""
    if isinstance(value, (bytes, bytearray, memoryview)):
        return {
            "type": BUFFER_TYPE,
            "data": base64.b64encode(bytes(value)).decode("ascii"),
        }
    if isinstance(value, BaseModel):
        return value.model_dump(by_alias=True, exclude_none=True)
    msg = f"Object of type {type(value).__name__} is not JSON serializable"
    raise TypeError(msg)


def _is_buffer_marker(obj: dict[str, Any]) -> bool:
    return obj.get("type") == BUFFER_TYPE or obj.get("buffer") is True


def _revive(obj: dict[str, Any]) -> Any:
    """Turn buffer markers back into bytes (json ``object_hook``)."""
    if not _is_buffer_marker(obj):
        return obj

    data = obj.get("data") or obj.get("value")
    if isinstance(data, str):
        return base64.b64decode(data)
    return bytes(data or [])


def serialize(value: Any) -> str:
    """Serialize a value to JSON text, tagging byte sequences."""
    return json.dumps(value, default=_encode_default, separators=(",", ":"))


def deserialize(text: str | bytes) -> Any:
    """Parse JSON text, reviving every buffer marker into ``bytes``."""
    return json.loads(text, object_hook=_revive)


def load_stored(value: Any) -> Any:
    """Decode a value that the driver already parsed from a JSON column.

    The value is rendered back to text and parsed again so that marker
    reconstruction always runs through :func:`deserialize`.
    """
    return deserialize(serialize(value))


def is_absent(value: Any) -> bool:
    """Whether a value counts as "no value" for storage purposes.

    None and empty scalars (empty string, False, zero) are absent.
    Byte sequences and containers are always present, even when empty.
    """
    if value is None:
        return True
    if isinstance(value, (str, bool, int, float)):
        return not value
    return False
