from __future__ import annotations

import logging
import threading
from typing import Any, Dict, Iterable, List, Optional

from .assist import DEFAULT_RETRIES, DEFAULT_TIMEOUT, Assistant, assisted_analysis
from .errors import MergeInputEmpty, ParseFailure
from .exporting import ExportResult, export_dataset
from .merging import entry_value, merge_entries
from .models import Entry, MergedDataset
from .options import ProcessingOptions
from .pipeline import ProcessingQueue, QueueItem, process_text
from .schema_utils import describe_structure
from .storage import EntryStore, MemoryStorage

logger = logging.getLogger(__name__)


class Workspace:
    """Owns the entries, datasets and processing queue of one session.

    Entries and datasets are kept newest first and written to storage
    after every change.
    """

    def __init__(self, storage: Optional[EntryStore] = None, options: Optional[ProcessingOptions] = None,
                 assistant: Optional[Assistant] = None, assistant_timeout: float = DEFAULT_TIMEOUT,
                 assistant_retries: int = DEFAULT_RETRIES):
        self.storage = storage if storage is not None else MemoryStorage()
        self.options = options or ProcessingOptions()
        self.assistant = assistant
        self.assistant_timeout = assistant_timeout
        self.assistant_retries = assistant_retries
        self.queue = ProcessingQueue()
        self._lock = threading.RLock()
        self._entries: List[Entry] = self.storage.load_entries()
        self._datasets: List[MergedDataset] = self.storage.load_datasets()
        logger.info("Workspace loaded %d entries and %d datasets", len(self._entries), len(self._datasets))

    @property
    def entries(self) -> List[Entry]:
        with self._lock:
            return list(self._entries)

    @property
    def datasets(self) -> List[MergedDataset]:
        with self._lock:
            return list(self._datasets)

    def get_entry(self, entry_id: str) -> Entry:
        with self._lock:
            for entry in self._entries:
                if entry.id == entry_id:
                    return entry
        raise KeyError(f"Unknown entry: {entry_id}")

    def get_dataset(self, dataset_id: str) -> MergedDataset:
        with self._lock:
            for dataset in self._datasets:
                if dataset.id == dataset_id:
                    return dataset
        raise KeyError(f"Unknown dataset: {dataset_id}")

    def set_options(self, options: ProcessingOptions) -> None:
        self.options = options

    # --- Entries ---

    def _add_entry(self, entry: Entry) -> None:
        with self._lock:
            self._entries.insert(0, entry)
            self.storage.save_entries(self._entries)

    def _process(self, text: str, source_name: str, entry_id: Optional[str] = None) -> Entry:
        return process_text(
            text,
            source_name,
            self.options,
            assistant=self.assistant,
            entry_id=entry_id,
            timeout=self.assistant_timeout,
            retries=self.assistant_retries,
        )

    def submit_text(self, text: str, source_name: str = 'unnamed.json') -> Entry:
        """Process one document immediately and store the resulting entry."""
        entry = self._process(text, source_name)
        self._add_entry(entry)
        return entry

    def enqueue(self, text: str, source_name: str) -> Optional[str]:
        return self.queue.enqueue(text, source_name)

    def _process_item(self, item: QueueItem) -> Entry:
        return self._process(item.content, item.source_name, entry_id=item.id)

    def drain_queue(self) -> List[Entry]:
        return self.queue.drain(self._process_item, on_result=self._add_entry)

    def clear_queue(self) -> int:
        return self.queue.clear()

    def delete_entries(self, entry_ids: Iterable[str]) -> int:
        doomed = set(entry_ids)
        with self._lock:
            before = len(self._entries)
            self._entries = [entry for entry in self._entries if entry.id not in doomed]
            removed = before - len(self._entries)
            if removed:
                self.storage.save_entries(self._entries)
        return removed

    def analyze_entry(self, entry_id: str) -> Dict[str, Any]:
        """Attach a structural analysis to an entry, from the assistant when it answers."""
        entry = self.get_entry(entry_id)
        if entry.failed:
            raise ParseFailure(f"Entry {entry.source_name} failed processing and cannot be analyzed.")
        value = entry_value(entry)
        analysis = assisted_analysis(self.assistant, value, timeout=self.assistant_timeout, retries=self.assistant_retries)
        if analysis is None:
            analysis = describe_structure(value, self.options)
        with self._lock:
            entry.enrichment['analysis'] = analysis
            self.storage.save_entries(self._entries)
        return analysis

    # --- Datasets ---

    def merge(self, entry_ids: Iterable[str], name: Optional[str] = None) -> MergedDataset:
        """Merge the given entries, in the given order, into a new dataset."""
        selected: List[Entry] = []
        for entry_id in dict.fromkeys(entry_ids):
            try:
                selected.append(self.get_entry(entry_id))
            except KeyError:
                logger.warning("Ignoring unknown entry %s in merge selection", entry_id)
        if not selected:
            raise MergeInputEmpty("Please select entries to merge.")

        dataset = merge_entries(
            selected,
            self.options,
            name=name,
            assistant=self.assistant,
            timeout=self.assistant_timeout,
            retries=self.assistant_retries,
        )
        with self._lock:
            self._datasets.insert(0, dataset)
            self.storage.save_datasets(self._datasets)
        return dataset

    def delete_dataset(self, dataset_id: str) -> bool:
        with self._lock:
            before = len(self._datasets)
            self._datasets = [ds for ds in self._datasets if ds.id != dataset_id]
            removed = len(self._datasets) != before
            if removed:
                self.storage.save_datasets(self._datasets)
        return removed

    def export(self, dataset_id: str, fmt: str) -> ExportResult:
        return export_dataset(self.get_dataset(dataset_id), fmt)

    def reset(self) -> None:
        """Delete every entry, dataset and queued document."""
        self.queue.clear()
        with self._lock:
            self._entries = []
            self._datasets = []
            self.storage.clear()
        logger.info("Workspace reset")
