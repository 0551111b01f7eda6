"""Persistence for entries and datasets.

Reading is forgiving: a missing or corrupt file is logged and treated as
empty so the application always starts.
"""
from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any, Callable, List, Protocol, TypeVar, Union

from .errors import StorageReadFailure
from .models import Entry, MergedDataset

logger = logging.getLogger(__name__)

T = TypeVar('T')

ENTRIES_FILE = 'entries.json'
DATASETS_FILE = 'datasets.json'


class EntryStore(Protocol):
    def load_entries(self) -> List[Entry]:
        ...

    def save_entries(self, entries: List[Entry]) -> None:
        ...

    def load_datasets(self) -> List[MergedDataset]:
        ...

    def save_datasets(self, datasets: List[MergedDataset]) -> None:
        ...

    def clear(self) -> None:
        ...


class JsonFileStorage:
    """Stores entries and datasets as two JSON files in one directory."""

    def __init__(self, directory: Union[str, Path]):
        self.directory = Path(directory)

    def _read(self, filename: str, build: Callable[[Any], T]) -> List[T]:
        path = self.directory / filename
        if not path.exists():
            return []
        try:
            with open(path, 'r', encoding='utf-8') as f:
                raw = json.load(f)
            if not isinstance(raw, list):
                raise StorageReadFailure(f"{path} does not contain a list")
            return [build(item) for item in raw]
        except (OSError, ValueError, KeyError, TypeError, StorageReadFailure) as exc:
            logger.warning("Failed to load %s, starting empty: %s", path, exc)
            return []

    def _write(self, filename: str, items: List[Any]) -> None:
        path = self.directory / filename
        tmp_path = path.with_suffix(path.suffix + '.tmp')
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            # ASCII escapes keep lone surrogates (valid in JSON text) writable.
            with open(tmp_path, 'w', encoding='utf-8') as f:
                json.dump([item.to_dict() for item in items], f, indent=2)
            os.replace(tmp_path, path)
        except (OSError, TypeError, ValueError) as exc:
            logger.error("Failed to save %s: %s", path, exc)
            if tmp_path.exists():
                tmp_path.unlink()

    def load_entries(self) -> List[Entry]:
        return self._read(ENTRIES_FILE, Entry.from_dict)

    def save_entries(self, entries: List[Entry]) -> None:
        self._write(ENTRIES_FILE, entries)

    def load_datasets(self) -> List[MergedDataset]:
        return self._read(DATASETS_FILE, MergedDataset.from_dict)

    def save_datasets(self, datasets: List[MergedDataset]) -> None:
        self._write(DATASETS_FILE, datasets)

    def clear(self) -> None:
        for filename in (ENTRIES_FILE, DATASETS_FILE):
            path = self.directory / filename
            try:
                path.unlink()
            except FileNotFoundError:
                continue
            except OSError as exc:
                logger.error("Failed to remove %s: %s", path, exc)


class MemoryStorage:
    """Keeps everything in process; used when no storage directory is configured."""

    def __init__(self):
        self._entries: List[Entry] = []
        self._datasets: List[MergedDataset] = []

    def load_entries(self) -> List[Entry]:
        return list(self._entries)

    def save_entries(self, entries: List[Entry]) -> None:
        self._entries = list(entries)

    def load_datasets(self) -> List[MergedDataset]:
        return list(self._datasets)

    def save_datasets(self, datasets: List[MergedDataset]) -> None:
        self._datasets = list(datasets)

    def clear(self) -> None:
        self._entries = []
        self._datasets = []
