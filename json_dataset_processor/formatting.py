from __future__ import annotations

from typing import Any, Optional

from .json_kinds import JsonKind, kind_of
from .options import ProcessingOptions

TRUNCATION_MARKER = '...'


def truncate_string(value: str, max_length: int) -> str:
    if len(value) <= max_length:
        return value
    return value[:max_length] + TRUNCATION_MARKER


def format_structure(value: Any, options: Optional[ProcessingOptions] = None) -> Any:
    """Canonicalize a parsed JSON value.

    Object keys are emitted in sorted order and, when `trim_long_values` is
    on, long strings are cut to `max_value_length` plus '...'. Returns new
    containers; the input is left untouched. Applying it twice gives the
    same result as applying it once.
    """
    options = options or ProcessingOptions()
    kind = kind_of(value)

    if kind is JsonKind.OBJECT:
        return {key: format_structure(value[key], options) for key in sorted(value)}
    if kind is JsonKind.ARRAY:
        return [format_structure(item, options) for item in value]
    if kind is JsonKind.STRING and options.trim_long_values:
        return truncate_string(value, options.max_value_length)
    return value
