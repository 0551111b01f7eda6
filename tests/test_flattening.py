"""Unit tests for record flattening."""

import json

from json_dataset_processor.flattening import flatten_value
from json_dataset_processor.options import ProcessingOptions

EXPANDED = ProcessingOptions(preserve_arrays=False)


class TestFlattenValue:
    def test_nested_objects_become_dotted_keys(self):
        assert flatten_value({"a": 1, "b": {"c": 2}}) == {"a": 1, "b.c": 2}

    def test_nesting_kept_when_flattening_disabled(self):
        options = ProcessingOptions(flatten_nested=False)

        assert flatten_value({"a": 1, "b": {"c": 2}}, options) == {"a": 1, "b": {"c": 2}}

    def test_preserved_arrays_are_stored_whole(self):
        value = {"tags": [1, 2], "items": [{"x": 1}]}

        assert flatten_value(value) == {"tags": [1, 2], "items": [{"x": 1}]}

    def test_arrays_of_objects_are_indexed_when_expanded(self):
        value = {"items": [{"x": 1}, {"x": 2, "y": True}], "tags": ["a"]}

        assert flatten_value(value, EXPANDED) == {
            "items.0.x": 1,
            "items.1.x": 2,
            "items.1.y": True,
            "tags": ["a"],
        }

    def test_empty_array_is_stored(self):
        assert flatten_value({"e": []}, EXPANDED) == {"e": []}

    def test_null_is_stored(self):
        assert flatten_value({"a": None}) == {"a": None}

    def test_values_past_max_depth_become_json_strings(self):
        options = ProcessingOptions(max_depth=1)
        record = flatten_value({"a": {"b": {"c": 1}}, "d": 2}, options)

        assert record == {"a.b": '{"c":1}', "d": 2}
        assert json.loads(record["a.b"]) == {"c": 1}

    def test_dotted_keys_do_not_collide_with_nesting(self):
        record = flatten_value({"a.b": 1, "a": {"b": 2}})

        assert record == {"a\\.b": 1, "a.b": 2}

    def test_prefix_is_applied(self):
        assert flatten_value({"a": 1}, prefix="root.") == {"root.a": 1}

    def test_deterministic(self):
        value = {"z": {"y": [{"x": 1}, {"w": 2}]}, "a": "s"}

        assert flatten_value(value, EXPANDED) == flatten_value(value, EXPANDED)
        assert list(flatten_value(value, EXPANDED)) == list(flatten_value(value, EXPANDED))
