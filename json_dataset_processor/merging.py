from __future__ import annotations

import copy
import json
import logging
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from .assist import DEFAULT_RETRIES, DEFAULT_TIMEOUT, Assistant, assisted_merge
from .errors import FlattenKeyCollision, MergeInputEmpty, MergeRecordEmpty, ParseFailure
from .flattening import FlatRecord, flatten_value
from .json_kinds import JsonKind, kind_of
from .models import Entry, MergedDataset, new_id, utc_timestamp
from .options import ProcessingOptions
from .repair import strict_loads
from .schema_utils import infer_schema

logger = logging.getLogger(__name__)

SOURCE_KEY = '_source'
TIMESTAMP_KEY = '_timestamp'
RESERVED_KEYS = (SOURCE_KEY, TIMESTAMP_KEY)
ASSISTANT_SOURCE = 'assistant-merge'


def entry_value(entry: Entry) -> Any:
    """A private copy of the entry's parsed value, re-parsed from text if it was not kept."""
    if entry.canonical_value is not None:
        return copy.deepcopy(entry.canonical_value)
    try:
        return strict_loads(entry.repaired_text)
    except (ValueError, RecursionError) as exc:
        raise ParseFailure(f"Entry {entry.id} does not contain valid JSON: {exc}") from exc


def to_record(item: Dict[str, Any], options: ProcessingOptions) -> FlatRecord:
    if options.flatten_nested:
        return flatten_value(item, options)
    return dict(item)


def stamp(record: FlatRecord, source: str, timestamp: str) -> FlatRecord:
    # Same-named user fields are overwritten.
    record[SOURCE_KEY] = source
    record[TIMESTAMP_KEY] = timestamp
    return record


def collect_records(entries: Iterable[Entry], options: Optional[ProcessingOptions] = None) -> Tuple[List[FlatRecord], List[str]]:
    """Turn entries into stamped records.

    Returns the records plus one message per problem; a bad entry or
    element is skipped without affecting the others.
    """
    options = options or ProcessingOptions()
    records: List[FlatRecord] = []
    errors: List[str] = []

    def skip(entry: Entry, message: str) -> None:
        logger.warning("Skipping part of entry %s (%s): %s", entry.id, entry.source_name, message)
        errors.append(f"{entry.source_name}: {message}")

    for entry in entries:
        try:
            value = entry_value(entry)
        except ParseFailure as exc:
            skip(entry, str(exc))
            continue

        kind = kind_of(value)
        if kind is JsonKind.ARRAY:
            items = value
        elif kind is JsonKind.OBJECT:
            items = [value]
        else:
            skip(entry, f"top-level value is {kind.value}, expected an object or array")
            continue

        for index, item in enumerate(items):
            if not isinstance(item, dict):
                skip(entry, f"element {index} is {kind_of(item).value}, expected an object")
                continue
            try:
                record = to_record(item, options)
            except FlattenKeyCollision as exc:
                skip(entry, f"element {index}: {exc}")
                continue
            records.append(stamp(record, entry.source_name, entry.created_at))

    return records, errors


def _assistant_records(assistant: Assistant, entries: Sequence[Entry], options: ProcessingOptions,
                       timeout: float, retries: int) -> Optional[List[FlatRecord]]:
    texts = []
    for entry in entries:
        if entry.canonical_value is not None:
            texts.append(json.dumps(entry.canonical_value, ensure_ascii=False))
        else:
            texts.append(entry.repaired_text)

    merged = assisted_merge(assistant, texts, timeout=timeout, retries=retries)
    if merged is None:
        return None

    timestamp = utc_timestamp()
    try:
        return [stamp(to_record(item, options), ASSISTANT_SOURCE, timestamp) for item in merged]
    except FlattenKeyCollision as exc:
        logger.warning("Assistant merge output could not be flattened (%s); falling back", exc)
        return None


def merge_entries(entries: Sequence[Entry], options: Optional[ProcessingOptions] = None, name: Optional[str] = None,
                  assistant: Optional[Assistant] = None, timeout: float = DEFAULT_TIMEOUT,
                  retries: int = DEFAULT_RETRIES) -> MergedDataset:
    """Merge the non-failed entries into one dataset.

    Raises MergeInputEmpty when no usable entry was given and
    MergeRecordEmpty when none of them produced a record.
    """
    options = options or ProcessingOptions()
    usable = [entry for entry in entries if not entry.failed]
    if not usable:
        raise MergeInputEmpty()

    records = None
    if assistant is not None:
        records = _assistant_records(assistant, usable, options, timeout, retries)
    if records is None:
        records, errors = collect_records(usable, options)
        if errors:
            logger.warning("Merge skipped %d problem(s) across %d entries", len(errors), len(usable))

    if not records:
        raise MergeRecordEmpty()

    fields = list(dict.fromkeys(key for record in records for key in record))
    schema = infer_schema(records) if options.detect_schemas else {}
    dataset = MergedDataset(
        id=new_id('dataset'),
        name=name or f"Dataset from {len(usable)} files",
        created_at=utc_timestamp(),
        records=records,
        fields=fields,
        schema=schema,
    )
    logger.info("Merged %d entries into %s (%d records, %d fields)", len(usable), dataset.id, len(records), len(fields))
    return dataset
