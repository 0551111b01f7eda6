from __future__ import annotations

from typing import Any, Dict, Iterable, List, Mapping, Optional, Set

from .json_kinds import JsonKind, kind_of
from .options import ProcessingOptions
from .paths import child_prefix, escape_path_segment, split_path, strip_prefix

# Only the first few elements of an expanded array are inspected for fields.
ARRAY_SAMPLE_SIZE = 3


def _ordered_unique(paths: Iterable[str]) -> List[str]:
    return list(dict.fromkeys(paths))


def _collect_paths(value: Any, prefix: str, depth: int, max_depth: int, preserve_arrays: bool) -> List[str]:
    if depth > max_depth:
        return [strip_prefix(prefix)]

    kind = kind_of(value)
    if kind is JsonKind.NULL:
        return []

    if kind is JsonKind.ARRAY:
        # A top-level array is a list of records, so its elements are always sampled.
        if (preserve_arrays and prefix) or not value:
            return [strip_prefix(prefix)]
        found: List[str] = []
        for item in value[:ARRAY_SAMPLE_SIZE]:
            if kind_of(item).is_container:
                found.extend(_collect_paths(item, prefix, depth + 1, max_depth, preserve_arrays))
            else:
                found.append(strip_prefix(prefix))
        return _ordered_unique(found)

    if kind is JsonKind.OBJECT:
        fields: List[str] = []
        for key, child in value.items():
            if kind_of(child).is_container:
                fields.extend(_collect_paths(child, child_prefix(prefix, key), depth + 1, max_depth, preserve_arrays))
            else:
                fields.append(prefix + escape_path_segment(key))
        return fields

    return [strip_prefix(prefix)]


def extract_field_paths(value: Any, options: Optional[ProcessingOptions] = None, max_depth: Optional[int] = None) -> List[str]:
    """List the leaf field paths of a parsed JSON value, in discovery order.

    Nested arrays are a single leaf unless `preserve_arrays` is off, in
    which case the fields of their first few elements are merged (a
    top-level array is always sampled that way). Anything nested
    deeper than `max_depth` (default: `options.max_depth`) is one leaf.
    """
    options = options or ProcessingOptions()
    limit = options.max_depth if max_depth is None else max_depth
    paths = _collect_paths(value, '', 0, limit, options.preserve_arrays)
    # The root itself has no name; a bare scalar document has no fields.
    return [p for p in _ordered_unique(paths) if p]


def type_tag(value: Any) -> str:
    return kind_of(value).value


def resolve_type(types: Set[str]) -> str:
    """Pick one declared type from the set of observed ones.

    A single type wins outright. Otherwise 'string' beats 'number', and
    any other combination is 'mixed'.
    """
    if not types:
        return 'unknown'
    if len(types) == 1:
        return next(iter(types))
    if JsonKind.STRING.value in types:
        return JsonKind.STRING.value
    if JsonKind.NUMBER.value in types:
        return JsonKind.NUMBER.value
    return 'mixed'


def infer_schema(records: Iterable[Mapping[str, Any]]) -> Dict[str, str]:
    """Map every field seen in `records` to its declared type tag."""
    observed: Dict[str, Set[str]] = {}
    for record in records:
        for key, value in record.items():
            observed.setdefault(key, set()).add(type_tag(value))
    return {key: resolve_type(types) for key, types in observed.items()}


def nesting_depth(value: Any) -> int:
    """Container nesting depth (scalars are 0); walks with an explicit stack."""
    deepest = 0
    stack = [(value, 0)]
    while stack:
        current, depth = stack.pop()
        if isinstance(current, dict):
            children = current.values()
        elif isinstance(current, list):
            children = current
        else:
            deepest = max(deepest, depth)
            continue
        deepest = max(deepest, depth + 1)
        stack.extend((child, depth + 1) for child in children)
    return deepest


def describe_structure(value: Any, options: Optional[ProcessingOptions] = None) -> Dict[str, Any]:
    """Deterministic structural summary of a document, used as its analysis."""
    kind = kind_of(value)
    fields = extract_field_paths(value, options)
    if kind is JsonKind.ARRAY:
        record_count = len(value)
    elif kind is JsonKind.OBJECT:
        record_count = 1
    else:
        record_count = 0
    return {
        'kind': kind.value,
        'record_count': record_count,
        'field_count': len(fields),
        'fields': fields,
        'nesting_depth': nesting_depth(value),
    }


def build_tree_from_keys(keys: List[str]) -> Dict[str, Any]:
    """Convert dot-notation keys into a nested dictionary tree for display.

    Leaf nodes are strings (the full path).
    Branch nodes are dictionaries.
    If a node is both a leaf and a branch (e.g. 'a' and 'a.b'),
    the value for 'a' is stored in the dictionary under '__self__'.
    """
    tree: Dict[str, Any] = {}
    for key in keys:
        parts = split_path(key)
        if not parts:
            continue
        current = tree
        for part in parts[:-1]:
            node = current.setdefault(part, {})
            if isinstance(node, str):
                node = current[part] = {'__self__': node}
            current = node

        last_part = parts[-1]
        existing = current.get(last_part)
        if isinstance(existing, dict):
            existing['__self__'] = key
        elif existing is None:
            current[last_part] = key
    return tree
