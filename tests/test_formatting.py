"""Unit tests for structure canonicalization."""

import copy

import pytest

from json_dataset_processor.formatting import format_structure
from json_dataset_processor.options import ProcessingOptions

SHORT = ProcessingOptions(max_value_length=5)


class TestFormatStructure:
    def test_keys_are_sorted_recursively(self):
        formatted = format_structure({"b": 1, "a": {"d": 1, "c": 2}})

        assert list(formatted) == ["a", "b"]
        assert list(formatted["a"]) == ["c", "d"]

    def test_arrays_keep_order_and_length(self):
        formatted = format_structure([{"b": 1, "a": 2}, 3, "x"])

        assert formatted == [{"a": 2, "b": 1}, 3, "x"]
        assert list(formatted[0]) == ["a", "b"]

    def test_long_strings_are_truncated(self):
        formatted = format_structure({"s": "abcdefgh", "t": "abc", "l": ["abcdefgh"]}, SHORT)

        assert formatted == {"l": ["abcde..."], "s": "abcde...", "t": "abc"}

    def test_top_level_string_is_truncated(self):
        assert format_structure("abcdefgh", SHORT) == "abcde..."

    def test_truncation_can_be_disabled(self):
        options = ProcessingOptions(trim_long_values=False, max_value_length=5)

        assert format_structure({"s": "abcdefgh"}, options) == {"s": "abcdefgh"}

    @pytest.mark.parametrize("value", [
        None,
        True,
        3.5,
        "abcdefghij",
        [],
        {},
        {"z": [{"y": "abcdefghij", "x": None}], "a": {"c": [1, 2], "b": "long string value"}},
    ])
    def test_idempotent(self, value):
        once = format_structure(value, SHORT)

        assert format_structure(once, SHORT) == once

    def test_input_is_not_mutated(self):
        value = {"b": {"d": "abcdefgh", "c": 1}, "a": [1]}
        original = copy.deepcopy(value)

        format_structure(value, SHORT)

        assert value == original
        assert list(value) == ["b", "a"]
