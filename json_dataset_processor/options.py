"""Processing options shared by the formatter, field extractor and flattener."""
from __future__ import annotations

import dataclasses
import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Union

logger = logging.getLogger(__name__)

# Option names as the browser app stored them.
_CAMEL_CASE_ALIASES = {
    'autoFormat': 'auto_format',
    'detectSchemas': 'detect_schemas',
    'flattenNested': 'flatten_nested',
    'maxDepth': 'max_depth',
    'trimLongValues': 'trim_long_values',
    'maxValueLength': 'max_value_length',
    'preserveArrays': 'preserve_arrays',
}


@dataclass(frozen=True)
class ProcessingOptions:
    auto_format: bool = True
    detect_schemas: bool = True
    flatten_nested: bool = True
    max_depth: int = 3
    trim_long_values: bool = True
    max_value_length: int = 1000
    preserve_arrays: bool = True

    def __post_init__(self):
        if isinstance(self.max_depth, bool) or not isinstance(self.max_depth, int):
            raise ValueError(f"max_depth must be an integer, got {self.max_depth!r}")
        if self.max_depth < 0:
            raise ValueError("max_depth must be >= 0.")
        if isinstance(self.max_value_length, bool) or not isinstance(self.max_value_length, int):
            raise ValueError(f"max_value_length must be an integer, got {self.max_value_length!r}")
        if self.max_value_length < 1:
            raise ValueError("max_value_length must be >= 1.")

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'ProcessingOptions':
        """Build options from a mapping, accepting snake_case or camelCase keys."""
        known = {f.name for f in dataclasses.fields(cls)}
        kwargs: Dict[str, Any] = {}
        for key, value in (data or {}).items():
            name = _CAMEL_CASE_ALIASES.get(key, key)
            if name not in known:
                logger.warning("Ignoring unknown processing option %r", key)
                continue
            kwargs[name] = value
        return cls(**kwargs)

    def to_dict(self) -> Dict[str, Any]:
        return dataclasses.asdict(self)

    def replace(self, **changes: Any) -> 'ProcessingOptions':
        return dataclasses.replace(self, **changes)


def load_options(path: Union[str, Path]) -> ProcessingOptions:
    """Read processing options from a JSON file."""
    with open(path, 'r', encoding='utf-8') as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError(f"Options file {path} must contain a JSON object.")
    return ProcessingOptions.from_dict(data)
