"""Canonical JSON value semantics used by assertions.

Python's own coercion rules differ from JSON's (``True == 1``,
``"4" != 4`` but ``bool([]) is False``), so assertion checks go through
an explicit classification of values into JSON types.
"""

from __future__ import annotations

import math
from enum import Enum
from typing import Any, Mapping, Sequence

from chainprobe.execution.types import MISSING


class JsonType(str, Enum):
    """Canonical type names reported by the `type` assertion."""
    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    OBJECT = "object"
    ARRAY = "array"
    NULL = "null"
    UNDEFINED = "undefined"


def json_type(value: Any) -> JsonType:
    """Classify a Python value as a JSON type."""
    if value is MISSING:
        return JsonType.UNDEFINED
    if value is None:
        return JsonType.NULL
    # bool before int: bool is an int subclass
    if isinstance(value, bool):
        return JsonType.BOOLEAN
    if isinstance(value, (int, float)):
        return JsonType.NUMBER
    if isinstance(value, str):
        return JsonType.STRING
    if isinstance(value, Mapping):
        return JsonType.OBJECT
    if isinstance(value, Sequence) and not isinstance(value, (bytes, bytearray)):
        return JsonType.ARRAY
    return JsonType.OBJECT


def is_truthy(value: Any) -> bool:
    """JSON truthiness.

    Falsy: absent, null, false, 0, NaN and the empty string. Everything
    else, including empty arrays and objects, is truthy.
    """
    kind = json_type(value)
    if kind in (JsonType.UNDEFINED, JsonType.NULL):
        return False
    if kind == JsonType.BOOLEAN:
        return value
    if kind == JsonType.NUMBER:
        # ints are never NaN
        return not (value == 0 or (isinstance(value, float) and math.isnan(value)))
    if kind == JsonType.STRING:
        return value != ""
    return True


def strict_equals(actual: Any, expected: Any) -> bool:
    """Value-and-type equality; containers compare structurally."""
    kind = json_type(actual)
    if kind != json_type(expected):
        return False
    if kind == JsonType.OBJECT:
        if not isinstance(actual, Mapping) or not isinstance(expected, Mapping):
            return actual is expected
        if set(actual.keys()) != set(expected.keys()):
            return False
        return all(strict_equals(actual[k], expected[k]) for k in actual)
    if kind == JsonType.ARRAY:
        if len(actual) != len(expected):
            return False
        return all(strict_equals(a, e) for a, e in zip(actual, expected))
    return actual == expected


def matches_type(value: Any, expected: Any) -> bool:
    """Compare a value's canonical type name to an expected name.

    ``"object"`` also accepts arrays, keeping definitions written against
    the untyped-array convention working.
    """
    if not isinstance(expected, str):
        return False
    kind = json_type(value)
    if expected == JsonType.OBJECT.value and kind == JsonType.ARRAY:
        return True
    return kind.value == expected
