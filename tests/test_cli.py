"""Tests for the command line interface."""

import csv
import io
import json
import logging

import pytest

from json_dataset_processor import cli


@pytest.fixture(autouse=True)
def no_log_handlers(monkeypatch):
    monkeypatch.setattr(cli, "setup_logging", lambda *args, **kwargs: None)


class TestFormats:
    def test_lists_builtin_formats(self, capsys):
        assert cli.main(["formats"]) == 0

        assert capsys.readouterr().out.split()[:5] == ["json", "jsonl", "csv", "huggingface", "rag"]


class TestRepair:
    def test_prints_repaired_json(self, tmp_path, capsys):
        path = tmp_path / "loose.json"
        path.write_text("{name: 'Bob',}", encoding="utf-8")

        assert cli.main(["repair", str(path)]) == 0

        captured = capsys.readouterr()
        assert json.loads(captured.out) == {"name": "Bob"}
        assert "Applied syntax fixes" in captured.err

    def test_unrepairable_file_exits_nonzero(self, tmp_path, capsys):
        path = tmp_path / "broken.json"
        path.write_text('{"a": [1, 2}', encoding="utf-8")

        assert cli.main(["repair", str(path)]) == 1
        assert "Could not fix JSON" in capsys.readouterr().err

    def test_missing_file(self, tmp_path):
        assert cli.main(["repair", str(tmp_path / "missing.json")]) == 1


class TestBuild:
    def test_writes_csv(self, tmp_path):
        one = tmp_path / "one.json"
        one.write_text('{"id": 1, "user": {"name": "Ada"}}', encoding="utf-8")
        two = tmp_path / "two.json"
        two.write_text("[{id: 2, user: {name: 'Bob'}}]", encoding="utf-8")
        output = tmp_path / "out.csv"

        code = cli.main(["build", str(one), str(two), "--format", "csv", "--output", str(output), "--name", "People"])

        assert code == 0
        rows = list(csv.DictReader(io.StringIO(output.read_text(encoding="utf-8"))))
        assert [row["user.name"] for row in rows] == ["Ada", "Bob"]
        assert [row["_source"] for row in rows] == ["one.json", "two.json"]

    def test_stdout_and_option_flags(self, tmp_path, capsys):
        doc = tmp_path / "doc.json"
        doc.write_text('{"user": {"name": "Ada"}}', encoding="utf-8")

        assert cli.main(["build", str(doc), "--format", "json", "--no-flatten"]) == 0

        records = json.loads(capsys.readouterr().out)
        assert records[0]["user"] == {"name": "Ada"}

    def test_nothing_usable_exits_nonzero(self, tmp_path):
        doc = tmp_path / "broken.json"
        doc.write_text('{"a": [1, 2}', encoding="utf-8")

        assert cli.main(["build", str(doc)]) == 1

    def test_unwritable_output_exits_nonzero(self, tmp_path, caplog):
        doc = tmp_path / "surrogate.json"
        doc.write_text('{"a": "\\ud800"}', encoding="utf-8")

        with caplog.at_level(logging.ERROR):
            code = cli.main(["build", str(doc), "--format", "jsonl", "--output", str(tmp_path / "out.jsonl")])

        assert code == 1
        assert "Could not write" in caplog.text

    def test_persists_to_storage(self, tmp_path):
        doc = tmp_path / "doc.json"
        doc.write_text('{"a": 1}', encoding="utf-8")
        store = tmp_path / "store"

        assert cli.main(["build", str(doc), "--output", str(tmp_path / "out.json"), "--storage", str(store)]) == 0

        assert len(json.loads((store / "datasets.json").read_text(encoding="utf-8"))) == 1

    def test_unknown_format_is_rejected_by_argparse(self, tmp_path):
        with pytest.raises(SystemExit):
            cli.main(["build", str(tmp_path / "x.json"), "--format", "xml"])
