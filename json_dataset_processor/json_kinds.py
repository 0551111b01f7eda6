from __future__ import annotations

from enum import Enum
from typing import Any


class JsonKind(Enum):
    """The six shapes a parsed JSON value can take.

    Values double as the type tags reported by schema inference.
    """

    NULL = "null"
    BOOLEAN = "boolean"
    NUMBER = "number"
    STRING = "string"
    ARRAY = "array"
    OBJECT = "object"

    @property
    def is_container(self) -> bool:
        return self in (JsonKind.ARRAY, JsonKind.OBJECT)


def kind_of(value: Any) -> JsonKind:
    """Classify a value produced by `json.loads` (or built from one)."""
    if value is None:
        return JsonKind.NULL
    # bool is a subclass of int, so it has to be checked first.
    if isinstance(value, bool):
        return JsonKind.BOOLEAN
    if isinstance(value, (int, float)):
        return JsonKind.NUMBER
    if isinstance(value, str):
        return JsonKind.STRING
    if isinstance(value, (list, tuple)):
        return JsonKind.ARRAY
    if isinstance(value, dict):
        return JsonKind.OBJECT
    raise TypeError(f"Not a JSON value: {type(value).__name__}")
