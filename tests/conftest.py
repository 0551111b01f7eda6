"""Pytest configuration and shared fixtures."""

import time
from typing import List, Optional

import pytest

from json_dataset_processor.assist import AssistResult
from json_dataset_processor.models import MergedDataset
from json_dataset_processor.options import ProcessingOptions
from json_dataset_processor.pipeline import process_text
from json_dataset_processor.storage import JsonFileStorage
from json_dataset_processor.workspace import Workspace


class FakeAssistant:
    """Assistant double returning canned answers (None means 'failed')."""

    def __init__(self, repair: Optional[str] = None, merge: Optional[str] = None,
                 analysis: Optional[str] = None, delay: float = 0.0, error: Optional[Exception] = None):
        self.repair = repair
        self.merge = merge
        self.analysis = analysis
        self.delay = delay
        self.error = error
        self.calls: List[str] = []

    def _answer(self, name: str, text: Optional[str]) -> AssistResult:
        self.calls.append(name)
        if self.delay:
            time.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return AssistResult(text=text or "", succeeded=text is not None)

    def repair_text(self, text, max_length):
        return self._answer("repair_text", self.repair)

    def merge_documents(self, texts):
        return self._answer("merge_documents", self.merge)

    def analyze_structure(self, text):
        return self._answer("analyze_structure", self.analysis)


@pytest.fixture
def fake_assistant():
    """Factory for assistant doubles, e.g. fake_assistant(repair='{}')."""
    return FakeAssistant


@pytest.fixture
def options() -> ProcessingOptions:
    return ProcessingOptions()


@pytest.fixture
def make_entry(options):
    """Build an entry the same way the pipeline does."""
    def _make(text: str, source_name: str = "doc.json", opts: Optional[ProcessingOptions] = None):
        return process_text(text, source_name, opts or options)
    return _make


@pytest.fixture
def sample_dataset() -> MergedDataset:
    return MergedDataset(
        id="dataset-1",
        name="Dataset from 2 files",
        created_at="2024-01-01T00:00:00.000Z",
        records=[
            {"a": 1, "b.c": 2, "_source": "one.json", "_timestamp": "t1"},
            {"a": 3, "b.c": 4, "_source": "two.json", "_timestamp": "t2"},
        ],
        fields=["a", "b.c", "_source", "_timestamp"],
        schema={"a": "number", "b.c": "number", "_source": "string", "_timestamp": "string"},
    )


@pytest.fixture
def workspace(tmp_path) -> Workspace:
    return Workspace(storage=JsonFileStorage(tmp_path / "store"))
