"""Unit tests for the workspace coordinator."""

import json

import pytest

from json_dataset_processor.errors import MergeInputEmpty, ParseFailure, UnsupportedExportFormat
from json_dataset_processor.models import EntryStatus
from json_dataset_processor.options import ProcessingOptions
from json_dataset_processor.storage import JsonFileStorage
from json_dataset_processor.workspace import Workspace


class TestEntries:
    def test_entries_are_newest_first(self, workspace):
        first = workspace.submit_text('{"a": 1}', "1.json")
        second = workspace.submit_text('{"a": 2}', "2.json")

        assert [entry.id for entry in workspace.entries] == [second.id, first.id]

    def test_state_is_persisted(self, tmp_path):
        storage = JsonFileStorage(tmp_path)
        workspace = Workspace(storage=storage)
        entry = workspace.submit_text('{"a": 1}', "1.json")
        dataset = workspace.merge([entry.id])

        reopened = Workspace(storage=JsonFileStorage(tmp_path))

        assert reopened.entries == [entry]
        assert reopened.datasets == [dataset]

    def test_queued_documents_become_entries(self, workspace):
        queue_id = workspace.enqueue('{"a": 1}', "q.json")
        workspace.enqueue("", "blank.json")

        entries = workspace.drain_queue()

        assert [entry.id for entry in entries] == [queue_id]
        assert workspace.get_entry(queue_id).source_name == "q.json"

    def test_clear_queue(self, workspace):
        workspace.enqueue('{"a": 1}', "q.json")

        assert workspace.clear_queue() == 1
        assert workspace.drain_queue() == []

    def test_delete_entries(self, workspace):
        keep = workspace.submit_text('{"a": 1}', "keep.json")
        drop = workspace.submit_text('{"a": 2}', "drop.json")

        assert workspace.delete_entries([drop.id, "missing"]) == 1
        assert workspace.entries == [keep]

    def test_unknown_entry(self, workspace):
        with pytest.raises(KeyError):
            workspace.get_entry("nope")

    def test_options_apply_to_new_entries(self, workspace):
        workspace.set_options(ProcessingOptions(auto_format=False))

        entry = workspace.submit_text('{"b": 1, "a": 2}')

        assert list(entry.canonical_value) == ["b", "a"]


class TestAnalysis:
    def test_deterministic_analysis_is_attached(self, workspace):
        entry = workspace.submit_text('[{"a": 1}, {"a": 2}]', "list.json")

        analysis = workspace.analyze_entry(entry.id)

        assert analysis["record_count"] == 2
        assert workspace.get_entry(entry.id).enrichment["analysis"] == analysis
        assert workspace.get_entry(entry.id).canonical_value == [{"a": 1}, {"a": 2}]

    def test_assistant_analysis_is_preferred(self, fake_assistant):
        assistant = fake_assistant(analysis='{"summary": "two records"}')
        workspace = Workspace(assistant=assistant, assistant_timeout=5)
        entry = workspace.submit_text('[{"a": 1}, {"a": 2}]')

        assert workspace.analyze_entry(entry.id) == {"summary": "two records"}

    def test_assistant_non_object_answer_falls_back(self, fake_assistant):
        workspace = Workspace(assistant=fake_assistant(analysis="[1]"), assistant_timeout=5)
        entry = workspace.submit_text('{"a": 1}')

        assert workspace.analyze_entry(entry.id)["kind"] == "object"

    def test_failed_entry_cannot_be_analyzed(self, workspace):
        entry = workspace.submit_text('{"a": [1, 2}')

        with pytest.raises(ParseFailure):
            workspace.analyze_entry(entry.id)


class TestDatasets:
    def test_merge_uses_given_order(self, workspace):
        one = workspace.submit_text('{"n": 1}', "1.json")
        two = workspace.submit_text('{"n": 2}', "2.json")

        dataset = workspace.merge([one.id, two.id, one.id])

        assert [record["n"] for record in dataset.records] == [1, 2]
        assert workspace.datasets == [dataset]
        assert workspace.get_dataset(dataset.id) is dataset

    def test_merge_without_selection(self, workspace):
        with pytest.raises(MergeInputEmpty):
            workspace.merge(["missing"])

    def test_merge_of_failed_entries_only(self, workspace):
        bad = workspace.submit_text('{"a": [1, 2}')
        assert bad.status is EntryStatus.FAILED

        with pytest.raises(MergeInputEmpty):
            workspace.merge([bad.id])

    def test_export(self, workspace):
        entry = workspace.submit_text('{"a": 1}', "1.json")
        dataset = workspace.merge([entry.id], name="Out")

        result = workspace.export(dataset.id, "json")

        assert json.loads(result.content)[0]["a"] == 1
        assert result.suggested_filename == "Out.json"
        with pytest.raises(UnsupportedExportFormat):
            workspace.export(dataset.id, "xml")

    def test_delete_dataset(self, workspace):
        entry = workspace.submit_text('{"a": 1}')
        dataset = workspace.merge([entry.id])

        assert workspace.delete_dataset(dataset.id) is True
        assert workspace.delete_dataset(dataset.id) is False
        assert workspace.datasets == []

    def test_reset(self, tmp_path):
        workspace = Workspace(storage=JsonFileStorage(tmp_path))
        entry = workspace.submit_text('{"a": 1}')
        workspace.merge([entry.id])
        workspace.enqueue('{"b": 1}', "later.json")

        workspace.reset()

        assert workspace.entries == []
        assert workspace.datasets == []
        assert workspace.queue.snapshot() == []
        assert Workspace(storage=JsonFileStorage(tmp_path)).entries == []
