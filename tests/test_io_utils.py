"""Unit tests for reading uploaded files."""

import io
import json

import pytest

from json_dataset_processor.io_utils import csv_to_json_text, read_text_content


class TestReadTextContent:
    def test_reads_path(self, tmp_path):
        path = tmp_path / "doc.json"
        path.write_text('{"a": 1}', encoding="utf-8")

        assert read_text_content(str(path)) == ('{"a": 1}', "doc.json")

    def test_strips_byte_order_mark(self, tmp_path):
        path = tmp_path / "bom.json"
        path.write_bytes(b'\xef\xbb\xbf{"a": 1}')

        text, _ = read_text_content(str(path))

        assert text == '{"a": 1}'

    def test_nameless_stream(self):
        text, source_name = read_text_content(io.StringIO("{a: 1}"))

        assert text == "{a: 1}"
        assert source_name == "unnamed.json"

    def test_bytes_stream_is_decoded(self):
        stream = io.BytesIO('{"name": "café"}'.encode("utf-8"))
        stream.name = "/uploads/cafe.json"

        assert read_text_content(stream) == ('{"name": "café"}', "cafe.json")

    def test_csv_is_converted(self, tmp_path):
        path = tmp_path / "rows.CSV"
        path.write_text("name,age\nBob,30\nAda,36\n", encoding="utf-8")

        text, source_name = read_text_content(str(path))

        assert source_name == "rows.CSV"
        assert json.loads(text) == [{"name": "Bob", "age": "30"}, {"name": "Ada", "age": "36"}]

    def test_none_is_rejected(self):
        with pytest.raises(ValueError):
            read_text_content(None)

    def test_missing_file(self, tmp_path):
        with pytest.raises(OSError):
            read_text_content(str(tmp_path / "missing.json"))


class TestCsvToJson:
    def test_header_only(self):
        assert json.loads(csv_to_json_text("a,b\n")) == []
