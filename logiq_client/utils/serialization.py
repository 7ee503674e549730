"""
JSON serialization/deserialization tools

Provides the JSON value type used for RPC params, results and error data,
together with helpers for converting between wire text and Python values.
"""

import json
import math
from typing import Any, Dict, List, Union

# Any legally JSON-representable value
JsonValue = Union[None, bool, int, float, str, List["JsonValue"], Dict[str, "JsonValue"]]

# Clipped output always carries a "... (N more)" suffix of about this size
_CLIP_SUFFIX_ALLOWANCE = 13


def is_json_value(value: Any) -> bool:
    """Check whether a value can be represented as JSON

    Tuples are accepted as sequences. Floats must be finite.

    Args:
        value: Value to check

    Returns:
        bool: True if the value is a JSON value
    """
    if value is None or isinstance(value, (bool, str, int)):
        return True
    if isinstance(value, float):
        return math.isfinite(value)
    if isinstance(value, (list, tuple)):
        return all(is_json_value(item) for item in value)
    if isinstance(value, dict):
        return all(isinstance(key, str) and is_json_value(item) for key, item in value.items())
    return False


def to_json(value: JsonValue) -> str:
    """Convert a JSON value to compact JSON text

    Args:
        value: JSON value

    Returns:
        str: JSON string without insignificant whitespace
    """
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False, allow_nan=False)


def from_json(text: Union[str, bytes]) -> JsonValue:
    """Convert JSON text to a Python value

    Args:
        text: JSON string (bytes are decoded as UTF-8)

    Returns:
        JsonValue: Decoded value

    Raises:
        ValueError: Text is not valid JSON
    """
    if isinstance(text, (bytes, bytearray)):
        text = text.decode("utf-8")
    return json.loads(text)


def clip(text: str, length: int) -> str:
    """Return a clipped version of a string, stating how much was cut

    Strings shorter than ``length`` plus the room taken by the suffix are
    returned unchanged.

    Args:
        text: String to clip
        length: Approximate length of the returned string

    Returns:
        str: Clipped string
    """
    if length < 0:
        raise ValueError(f"Invalid length: {length}")

    if len(text) < length + _CLIP_SUFFIX_ALLOWANCE:
        return text

    n_missing = len(text) - length
    return f"{text[:length]}... ({n_missing} more)"
