"""Staged repair of text that is supposed to be JSON.

Stages run in order and stop at the first one whose output parses:

1. the text as-is;
2. a fixed sequence of regex rewrites for the usual hand-written mistakes;
3. a relaxed JSON5 parse, re-serialized as strict JSON.

If nothing parses, the original text is returned with an error message.
`repair_json_text` never raises.
"""
from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from typing import Any, Callable, List, Optional, Tuple

import json5

logger = logging.getLogger(__name__)

AGGRESSIVE_REPAIR_NOTE = "Used aggressive correction. Verify the result!"


@dataclass(frozen=True)
class RepairResult:
    corrected_text: str
    used_aggressive_repair: bool = False
    error: Optional[str] = None
    note: Optional[str] = None


def _reject_constant(name: str):
    raise ValueError(f"Invalid JSON constant: {name}")


def strict_loads(text: str) -> Any:
    """`json.loads` without the NaN/Infinity extensions Python allows."""
    return json.loads(text, parse_constant=_reject_constant)


def _quote_unquoted_keys(text: str) -> str:
    return re.sub(r'([{,]\s*)([A-Za-z0-9_]+)(\s*:)', r'\1"\2"\3', text)


def _normalize_quotes(text: str) -> str:
    return text.replace("'", '"')


def _separate_adjacent_objects(text: str) -> str:
    return re.sub(r'}\s*{', '}, {', text)


def _drop_trailing_commas(text: str) -> str:
    text = re.sub(r',\s*}', '}', text)
    return re.sub(r',\s*\]', ']', text)


def _escape_stray_backslashes(text: str) -> str:
    return re.sub(r'([^\\])\\([^"\\/bfnrtu])', r'\1\\\\\2', text)


# Order matters: keys must be quoted before quotes are normalized, and
# commas inserted between objects before trailing ones are dropped.
REWRITES: List[Tuple[str, Callable[[str], str]]] = [
    ('quoted keys', _quote_unquoted_keys),
    ('double quotes', _normalize_quotes),
    ('missing commas between objects', _separate_adjacent_objects),
    ('trailing commas removed', _drop_trailing_commas),
    ('backslashes escaped', _escape_stray_backslashes),
]


def apply_rewrites(text: str) -> Tuple[str, List[str]]:
    """Run every rewrite over `text`; return the result and the rewrites that changed it."""
    applied: List[str] = []
    for label, rewrite in REWRITES:
        rewritten = rewrite(text)
        if rewritten != text:
            applied.append(label)
        text = rewritten
    return text, applied


def relaxed_loads(text: str) -> str:
    """Parse `text` as JSON5 and return it re-serialized as compact strict JSON."""
    value = json5.loads(text)
    return json.dumps(value, ensure_ascii=False, allow_nan=False, separators=(',', ':'))


def repair_json_text(text: str) -> RepairResult:
    try:
        strict_loads(text)
        return RepairResult(corrected_text=text)
    except (ValueError, RecursionError) as e:
        original_error = str(e)

    corrected, applied = apply_rewrites(text)
    try:
        strict_loads(corrected)
        logger.debug("Repaired JSON with regex rewrites: %s", ", ".join(applied))
        return RepairResult(
            corrected_text=corrected,
            note=f"Applied syntax fixes: {', '.join(applied) or 'none'}.",
        )
    except (ValueError, RecursionError):
        pass

    try:
        relaxed = relaxed_loads(text)
    except (ValueError, TypeError, RecursionError) as e:
        logger.debug("Relaxed parse failed: %s", e)
    else:
        logger.info("Repaired JSON with relaxed parser; output should be verified")
        return RepairResult(
            corrected_text=relaxed,
            used_aggressive_repair=True,
            error=AGGRESSIVE_REPAIR_NOTE,
            note=AGGRESSIVE_REPAIR_NOTE,
        )

    return RepairResult(
        corrected_text=text,
        error=f"Could not fix JSON. Original error: {original_error}",
    )
