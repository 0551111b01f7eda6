"""Dot-path field names.

Nested keys are joined with '.'; a literal '.' or '\\' inside a key is
backslash-escaped so 'gpt-3.5' stays one segment and no two different
key chains can produce the same path.
"""
from __future__ import annotations

import re
from typing import List

# One segment: escaped pairs, plain characters, or a dangling trailing backslash.
_SEGMENT = re.compile(r'(?:\\.|[^.\\]|\\$)+', re.DOTALL)
_ESCAPED = re.compile(r'\\(.)', re.DOTALL)


def escape_path_segment(segment) -> str:
    """Escape one key (or array index) for use inside a dot path."""
    return str(segment).replace('\\', '\\\\').replace('.', '\\.')


def child_prefix(prefix: str, segment) -> str:
    """Prefix for the children of `segment`, e.g. ('a.', 'b') -> 'a.b.'."""
    return f"{prefix}{escape_path_segment(segment)}."


def strip_prefix(prefix: str) -> str:
    """Turn a traversal prefix ('a.b.') back into a field path ('a.b')."""
    return prefix[:-1] if prefix.endswith('.') else prefix


def split_path(path: str) -> List[str]:
    """Split a dot path into its unescaped key segments, skipping empty ones."""
    if path is None:
        return []
    return [_ESCAPED.sub(r'\1', segment) for segment in _SEGMENT.findall(str(path))]
