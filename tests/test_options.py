"""Unit tests for processing options."""

import json
import logging

import pytest

from json_dataset_processor.options import ProcessingOptions, load_options


class TestProcessingOptions:
    def test_defaults(self):
        options = ProcessingOptions()

        assert options.to_dict() == {
            "auto_format": True,
            "detect_schemas": True,
            "flatten_nested": True,
            "max_depth": 3,
            "trim_long_values": True,
            "max_value_length": 1000,
            "preserve_arrays": True,
        }

    def test_from_dict_accepts_camel_case(self):
        options = ProcessingOptions.from_dict({"maxDepth": 5, "preserveArrays": False, "auto_format": False})

        assert options.max_depth == 5
        assert options.preserve_arrays is False
        assert options.auto_format is False

    def test_unknown_keys_are_ignored_with_a_warning(self, caplog):
        with caplog.at_level(logging.WARNING):
            options = ProcessingOptions.from_dict({"colour": "blue"})

        assert options == ProcessingOptions()
        assert "colour" in caplog.text

    @pytest.mark.parametrize("changes", [
        {"max_depth": -1},
        {"max_depth": "3"},
        {"max_depth": True},
        {"max_value_length": 0},
        {"max_value_length": 2.5},
    ])
    def test_invalid_values(self, changes):
        with pytest.raises(ValueError):
            ProcessingOptions(**changes)

    def test_replace_returns_new_options(self):
        options = ProcessingOptions()

        changed = options.replace(max_depth=0)

        assert changed.max_depth == 0
        assert options.max_depth == 3


class TestLoadOptions:
    def test_reads_json_file(self, tmp_path):
        path = tmp_path / "options.json"
        path.write_text(json.dumps({"maxValueLength": 50, "detectSchemas": False}), encoding="utf-8")

        options = load_options(path)

        assert options.max_value_length == 50
        assert options.detect_schemas is False

    def test_non_object_is_rejected(self, tmp_path):
        path = tmp_path / "options.json"
        path.write_text("[1, 2]", encoding="utf-8")

        with pytest.raises(ValueError):
            load_options(path)
