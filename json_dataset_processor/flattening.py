from __future__ import annotations

import json
from typing import Any, Dict, Optional

from .errors import FlattenKeyCollision
from .json_kinds import JsonKind, kind_of
from .options import ProcessingOptions
from .paths import child_prefix, escape_path_segment, strip_prefix

FlatRecord = Dict[str, Any]


def _store(record: FlatRecord, key: str, value: Any) -> None:
    if key in record:
        raise FlattenKeyCollision(key)
    record[key] = value


def _flatten_into(record: FlatRecord, value: Any, prefix: str, depth: int, options: ProcessingOptions) -> None:
    if depth > options.max_depth:
        _store(record, strip_prefix(prefix), json.dumps(value, ensure_ascii=False, separators=(',', ':')))
        return

    kind = kind_of(value)

    if kind is JsonKind.ARRAY:
        # Only arrays of objects are expanded into indexed fields.
        if options.preserve_arrays or not value or not kind_of(value[0]).is_container:
            _store(record, strip_prefix(prefix), value)
            return
        for index, item in enumerate(value):
            _flatten_into(record, item, child_prefix(prefix, index), depth + 1, options)
        return

    if kind is JsonKind.OBJECT:
        for key, child in value.items():
            if options.flatten_nested and kind_of(child).is_container:
                _flatten_into(record, child, child_prefix(prefix, key), depth + 1, options)
            else:
                _store(record, prefix + escape_path_segment(key), child)
        return

    _store(record, strip_prefix(prefix), value)


def flatten_value(value: Any, options: Optional[ProcessingOptions] = None, prefix: str = '') -> FlatRecord:
    """Flatten a nested JSON value into one record keyed by dot paths.

    e.g. {"a": 1, "b": {"c": 2}} -> {"a": 1, "b.c": 2}

    Values nested deeper than `max_depth` are stored as JSON strings. Each
    key segment is escaped, so every path is produced at most once.
    """
    options = options or ProcessingOptions()
    record: FlatRecord = {}
    _flatten_into(record, value, prefix, 0, options)
    return record
