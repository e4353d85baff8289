"""
Value Model
============
JSON-like data as decoded by :mod:`json`: ``None``, ``bool``, ``int``,
``float``, ``str``, ``list`` and ``dict``. The same representation is used for
schema documents and for the instances validated against them.

The helpers here give those native values the JSON data model semantics the
validator needs: booleans are never numbers, ``1`` equals ``1.0``, and object
equality ignores key order.
"""

from __future__ import annotations

import json
import math
from enum import Enum
from typing import Any, Union

JsonValue = Union[None, bool, int, float, str, list[Any], dict[str, Any]]


class ValueKind(str, Enum):
    """Runtime kind of a JSON value."""
    NULL = "null"
    BOOLEAN = "boolean"
    INTEGER = "integer"
    NUMBER = "number"
    STRING = "string"
    ARRAY = "array"
    OBJECT = "object"


def kind_of(value: Any) -> ValueKind:
    """Classify a decoded JSON value. ``bool`` is checked before ``int``."""
    if value is None:
        return ValueKind.NULL
    if isinstance(value, bool):
        return ValueKind.BOOLEAN
    if isinstance(value, int):
        return ValueKind.INTEGER
    if isinstance(value, float):
        return ValueKind.NUMBER
    if isinstance(value, str):
        return ValueKind.STRING
    if isinstance(value, (list, tuple)):
        return ValueKind.ARRAY
    if isinstance(value, dict):
        return ValueKind.OBJECT
    raise TypeError(f"{type(value).__name__} is not a JSON value")


def is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def is_integral(value: Any) -> bool:
    """True for ints and for finite floats without a fractional part."""
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return True
    return isinstance(value, float) and math.isfinite(value) and value.is_integer()


def json_equal(a: Any, b: Any) -> bool:
    """Structural equality under the JSON data model."""
    if is_number(a) and is_number(b):
        return a == b
    if isinstance(a, bool) or isinstance(b, bool):
        return isinstance(a, bool) and isinstance(b, bool) and a is b
    if isinstance(a, (list, tuple)) and isinstance(b, (list, tuple)):
        return len(a) == len(b) and all(json_equal(x, y) for x, y in zip(a, b))
    if isinstance(a, dict) and isinstance(b, dict):
        if a.keys() != b.keys():
            return False
        return all(json_equal(a[key], b[key]) for key in a)
    if a is None or b is None:
        return a is None and b is None
    if type(a) is not type(b):
        return False
    return a == b


def json_contains(needle: Any, haystack: list[Any] | tuple[Any, ...]) -> bool:
    return any(json_equal(needle, element) for element in haystack)


def has_duplicates(items: list[Any] | tuple[Any, ...]) -> bool:
    """Pairwise structural comparison, as required by ``uniqueItems``."""
    for i, item in enumerate(items):
        for other in items[i + 1:]:
            if json_equal(item, other):
                return True
    return False


def describe(value: Any, limit: int = 60) -> str:
    """Compact JSON rendering of a value for messages."""
    try:
        text = json.dumps(value, ensure_ascii=False, default=str)
    except (TypeError, ValueError):
        text = repr(value)
    if len(text) > limit:
        text = text[: limit - 3] + "..."
    return text
