# tests/test_main.py
"""
Tests for the command-line interface.
"""

import json

import pytest

from butane.main import EXIT_ERROR, EXIT_INFRA, EXIT_OK, main
from tests.conftest import RULES_JSON, RULES_YAML


@pytest.fixture
def rules_file(tmp_path):
    path = tmp_path / "rules.yaml"
    path.write_text(RULES_YAML, encoding="utf-8")
    return path


class TestMain:

    def test_prints_json(self, rules_file, capsys):
        assert main([str(rules_file)]) == EXIT_OK
        assert json.loads(capsys.readouterr().out) == RULES_JSON

    def test_writes_file(self, rules_file, tmp_path, capsys):
        out = tmp_path / "rules.json"
        assert main([str(rules_file), str(out)]) == EXIT_OK
        assert json.loads(out.read_text(encoding="utf-8")) == RULES_JSON
        assert capsys.readouterr().out == ""

    def test_missing_input(self, tmp_path):
        assert main([str(tmp_path / "nope.yaml")]) == EXIT_INFRA

    def test_missing_output_directory(self, rules_file, tmp_path):
        assert main([str(rules_file), str(tmp_path / "x" / "out.json")]) == EXIT_INFRA

    def test_compile_error(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("rules:\n  .read: undefinedFn()\n", encoding="utf-8")
        assert main([str(path)]) == EXIT_ERROR

    def test_no_input(self, capsys):
        assert main([]) == EXIT_INFRA

    def test_expr(self, capsys):
        assert main(["--expr", "next.a === prev.a"]) == EXIT_OK
        assert capsys.readouterr().out.strip() == (
            "newData.child('a').val() === data.child('a').val()")

    def test_dump_ast(self, capsys):
        assert main(["--dump-ast", "next.foo"]) == EXIT_OK
        assert capsys.readouterr().out.strip() == "(member next foo)"

    def test_version(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            main(["--version"])
        assert exc_info.value.code == 0
        assert "butane" in capsys.readouterr().out
