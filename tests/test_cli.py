"""
Tests for the command-line interface.
"""

import io
import json
import logging

import pytest

import querytree.config.settings as settings_mod
from querytree.cli.main import create_parser, format_tree, main
from querytree.core.conditions import default_catalog
from querytree.core.serializer import deserialize


NESTED_QUERY = {"and": [{"or": [{"gene": 1}, {"disease": 2}]}, {"type": "SNV"}]}


@pytest.fixture(autouse=True)
def isolated_environment(tmp_path, monkeypatch):
    """Keep settings and logging of CLI runs away from the user's profile."""
    monkeypatch.setattr(settings_mod, "get_log_file_path", lambda: tmp_path / "log.txt")
    monkeypatch.setattr(
        settings_mod, "_settings_manager", settings_mod.SettingsManager(tmp_path / "settings.json")
    )

    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def write_query(tmp_path):
    def _write(query, name="query.json"):
        path = tmp_path / name
        path.write_text(json.dumps(query), encoding="utf-8")
        return str(path)
    return _write


class TestParser:
    """Tests for argument parsing."""

    def test_compile_arguments(self):
        args = create_parser().parse_args(["compile", "q.json", "--indent", "2"])

        assert args.command == "compile"
        assert args.query == "q.json"
        assert args.indent == 2

    def test_version(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            main(["--version"])

        assert exc_info.value.code == 0
        assert "querytree" in capsys.readouterr().out

    def test_no_command_prints_help(self, capsys):
        assert main([]) == 0
        assert "usage: querytree" in capsys.readouterr().out


class TestCompile:
    """Tests for the compile command."""

    def test_compile_normalizes_query(self, write_query, capsys):
        path = write_query({"and": [{"or": [{"gene": 1}]}, {"disease": 2}]})

        assert main(["compile", path]) == 0
        assert json.loads(capsys.readouterr().out) == {"and": [{"gene": 1}, {"disease": 2}]}

    def test_compile_from_stdin(self, monkeypatch, capsys):
        monkeypatch.setattr("sys.stdin", io.StringIO(json.dumps(NESTED_QUERY)))

        assert main(["compile", "-", "--indent", "2"]) == 0
        out = capsys.readouterr().out
        assert json.loads(out) == NESTED_QUERY
        assert out.startswith("{\n  ")

    def test_invalid_query(self, write_query):
        assert main(["compile", write_query({"gene": 1, "disease": 2})]) == 1

    def test_missing_file(self, tmp_path):
        assert main(["compile", str(tmp_path / "missing.json")]) == 1

    def test_not_json(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{gene", encoding="utf-8")

        assert main(["compile", str(path)]) == 1


class TestShow:
    """Tests for the show command and the tree outline."""

    def test_format_tree(self):
        editor = deserialize(NESTED_QUERY)

        assert format_tree(editor.root, default_catalog()) == [
            "ROOT AND (2)",
            "  GROUP OR (2)",
            "    Gene symbol: 1",
            "    Disease: 2",
            '  Variant type: "SNV"',
        ]

    def test_format_tree_without_catalog(self):
        editor = deserialize({"gene": 1})

        assert format_tree(editor.root, indent="\t") == ["ROOT AND (1)", "\tgene: 1"]

    def test_show(self, write_query, capsys):
        assert main(["show", write_query(NESTED_QUERY)]) == 0

        lines = capsys.readouterr().out.splitlines()
        assert lines[0] == "ROOT AND (2)"
        assert "    Gene symbol: 1" in lines

    def test_show_invalid_query(self, write_query):
        assert main(["show", write_query([1, 2])]) == 1


class TestConditions:
    """Tests for the conditions command."""

    def test_lists_catalog(self, capsys):
        assert main(["conditions"]) == 0

        out = capsys.readouterr().out
        lines = {line.split()[0]: line for line in out.splitlines()}
        assert "Gene symbol" in lines["gene"]
        assert "(no relation)" in lines["location"]
        assert "(no relation)" not in lines["disease"]
