from __future__ import annotations

import dataclasses
import logging
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional

from .assist import DEFAULT_MAX_LENGTH, DEFAULT_RETRIES, DEFAULT_TIMEOUT, Assistant, assisted_repair
from .errors import ParseFailure, RepairFailure
from .formatting import format_structure
from .models import Entry, EntryStatus, new_id, utc_timestamp
from .options import ProcessingOptions
from .repair import RepairResult, repair_json_text, strict_loads
from .schema_utils import extract_field_paths, nesting_depth

logger = logging.getLogger(__name__)

ASSISTANT_REPAIR_NOTE = "Repaired by assistant. Verify the result!"
# Deeper documents parse but can overflow the recursive formatter, copier and encoder.
MAX_NESTING_DEPTH = 200
TOO_DEEP_NOTE = f"Document is nested more than {MAX_NESTING_DEPTH} levels deep and cannot be processed."


def _is_valid_json(text: str) -> bool:
    try:
        strict_loads(text)
    except (ValueError, RecursionError):
        return False
    return True


def repair_with_fallback(text: str, assistant: Optional[Assistant] = None, max_length: int = DEFAULT_MAX_LENGTH,
                         timeout: float = DEFAULT_TIMEOUT, retries: int = DEFAULT_RETRIES) -> RepairResult:
    """Repair `text`, asking the assistant first when one is configured and the text is invalid."""
    if assistant is not None and not _is_valid_json(text):
        candidate = assisted_repair(assistant, text, max_length, timeout=timeout, retries=retries)
        if candidate is not None:
            return RepairResult(corrected_text=candidate, used_aggressive_repair=True, note=ASSISTANT_REPAIR_NOTE)
    return repair_json_text(text)


def parse_repaired(result: RepairResult):
    try:
        return strict_loads(result.corrected_text)
    except (ValueError, RecursionError) as exc:
        if result.error:
            raise RepairFailure(result.error) from exc
        raise ParseFailure(f"Failed to parse JSON: {exc}") from exc


def process_text(text: str, source_name: str = 'unnamed.json', options: Optional[ProcessingOptions] = None,
                 assistant: Optional[Assistant] = None, entry_id: Optional[str] = None,
                 timeout: float = DEFAULT_TIMEOUT, retries: int = DEFAULT_RETRIES) -> Entry:
    """Repair, parse, canonicalize and extract fields from one document.

    Never raises for bad input: a document that cannot be repaired comes
    back as a FAILED entry carrying the reason in `repair_note`.
    """
    options = options or ProcessingOptions()
    entry_id = entry_id or new_id('json')
    created_at = utc_timestamp()

    def failed(reason: str) -> Entry:
        logger.warning("Could not process %s: %s", source_name, reason)
        return Entry(
            id=entry_id,
            source_name=source_name,
            raw_text=text,
            repaired_text=text,
            canonical_value=None,
            field_paths=[],
            status=EntryStatus.FAILED,
            created_at=created_at,
            repair_note=reason,
        )

    result = repair_with_fallback(text, assistant, timeout=timeout, retries=retries)
    try:
        value = parse_repaired(result)
    except (RepairFailure, ParseFailure) as exc:
        return failed(str(exc))

    if nesting_depth(value) > MAX_NESTING_DEPTH:
        return failed(TOO_DEEP_NOTE)
    try:
        canonical = format_structure(value, options) if options.auto_format else value
        field_paths = extract_field_paths(canonical, options)
    except RecursionError:
        return failed(TOO_DEEP_NOTE)

    warned = result.used_aggressive_repair or bool(result.error)
    entry = Entry(
        id=entry_id,
        source_name=source_name,
        raw_text=text,
        repaired_text=result.corrected_text,
        canonical_value=canonical,
        field_paths=field_paths,
        status=EntryStatus.REPAIRED_WITH_WARNING if warned else EntryStatus.REPAIRED,
        created_at=created_at,
        repair_note=result.note or result.error,
    )
    logger.info("Processed %s (%s, %d fields)", source_name, entry.status.value, len(entry.field_paths))
    return entry


class QueueStatus(Enum):
    QUEUED = "queued"
    PROCESSING = "processing"
    COMPLETED = "completed"
    ERROR = "error"


@dataclass
class QueueItem:
    id: str
    content: str
    source_name: str
    status: QueueStatus = QueueStatus.QUEUED
    error_message: Optional[str] = None


class ProcessingQueue:
    """FIFO of documents waiting to be processed.

    Only `drain()` moves items forward, and only one drain runs at a time,
    so at most one item is ever PROCESSING.
    """

    def __init__(self):
        self._items: List[QueueItem] = []
        self._lock = threading.Lock()
        self._drain_lock = threading.Lock()

    def enqueue(self, content: str, source_name: str) -> Optional[str]:
        """Queue a document; blank content is ignored and returns None."""
        if not content or not content.strip():
            return None
        item = QueueItem(id=new_id('queue'), content=content, source_name=source_name)
        with self._lock:
            self._items.append(item)
        return item.id

    def clear(self) -> int:
        """Drop every item except the one in flight, which still finishes."""
        with self._lock:
            kept = [item for item in self._items if item.status is QueueStatus.PROCESSING]
            dropped = len(self._items) - len(kept)
            self._items = kept
        return dropped

    def snapshot(self) -> List[QueueItem]:
        with self._lock:
            return [dataclasses.replace(item) for item in self._items]

    @property
    def pending_count(self) -> int:
        with self._lock:
            return sum(1 for item in self._items if item.status is QueueStatus.QUEUED)

    @property
    def is_draining(self) -> bool:
        return self._drain_lock.locked()

    def _claim_next(self) -> Optional[QueueItem]:
        with self._lock:
            for item in self._items:
                if item.status is QueueStatus.QUEUED:
                    item.status = QueueStatus.PROCESSING
                    return item
        return None

    def _finish(self, item: QueueItem, status: QueueStatus, error_message: Optional[str] = None) -> None:
        with self._lock:
            item.status = status
            item.error_message = error_message

    def drain(self, processor: Callable[[QueueItem], Entry],
              on_result: Optional[Callable[[Entry], None]] = None) -> List[Entry]:
        """Process queued items one by one until none are left.

        Returns the entries produced by this call; returns [] straight away
        if another drain is already running.
        """
        if not self._drain_lock.acquire(blocking=False):
            logger.debug("Queue is already being drained")
            return []
        try:
            entries: List[Entry] = []
            while True:
                item = self._claim_next()
                if item is None:
                    break
                try:
                    entry = processor(item)
                except Exception as exc:
                    logger.exception("Queue item %s (%s) failed", item.id, item.source_name)
                    self._finish(item, QueueStatus.ERROR, str(exc))
                    continue
                if entry.failed:
                    self._finish(item, QueueStatus.ERROR, entry.repair_note)
                else:
                    self._finish(item, QueueStatus.COMPLETED)
                entries.append(entry)
                if on_result is not None:
                    on_result(entry)
            return entries
        finally:
            self._drain_lock.release()
