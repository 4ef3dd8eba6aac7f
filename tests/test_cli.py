"""Tests for the jsondelta command-line bridge."""

import json
import logging
import subprocess
import sys
from pathlib import Path

import pytest

from jsondelta.cli import main

REPO_ROOT = Path(__file__).parent.parent


@pytest.fixture(autouse=True)
def reset_logging():
    """main() installs a stderr handler; drop it after each test."""
    yield
    package_logger = logging.getLogger("jsondelta")
    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)
    package_logger.setLevel(logging.NOTSET)


def run_cli(*args: str) -> subprocess.CompletedProcess:
    """Run `python -m jsondelta` with the given arguments."""
    return subprocess.run(
        [sys.executable, "-m", "jsondelta", *args],
        capture_output=True,
        text=True,
        cwd=REPO_ROOT,
    )


class TestCLIBasic:

    def test_prints_delta(self, capsys):
        assert main(["{}", '{"x": 1}']) == 0
        out = capsys.readouterr().out
        assert json.loads(out) == {"x": [1]}

    def test_equal_documents_print_empty_object(self, capsys):
        assert main(['{"a": [1, 2]}', '{"a": [1, 2]}']) == 0
        assert capsys.readouterr().out == "{}\n"

    def test_move(self, capsys):
        assert main(["[1, 2, 3]", "[1, 3, 2]"]) == 0
        assert json.loads(capsys.readouterr().out) == {"_t": "a", "_2": ["", 1, 3]}

    def test_default_indent(self, capsys):
        assert main(['{"a": 1}', '{"a": 2}']) == 0
        assert capsys.readouterr().out == '{\n  "a": [\n    1,\n    2\n  ]\n}\n'

    def test_compact(self, capsys):
        assert main(["--compact", '{"a": 1}', '{"a": 2}']) == 0
        assert capsys.readouterr().out == '{"a":[1,2]}\n'

    def test_text_format(self, capsys):
        assert main(["--format", "text", '{"port": 1}', '{"port": 2}']) == 0
        assert capsys.readouterr().out == "changed /port: 1 -> 2\n"

    def test_text_format_no_changes(self, capsys):
        assert main(["--format", "text", "[]", "[]"]) == 0
        assert capsys.readouterr().out == ""

    @pytest.mark.parametrize("left, right, expected", [
        ("-1e5", "2", [-100000.0, 2]),
        ("-1", "-0.5", [-1, -0.5]),
        ("3", "-2E-3", [3, -0.002]),
    ])
    def test_negative_number_documents(self, left, right, expected, capsys):
        assert main([left, right]) == 0
        assert json.loads(capsys.readouterr().out) == expected

    def test_deeply_nested_arrays(self, capsys):
        depth = 400
        left = "[" * depth + "1" + "]" * depth
        right = "[" * depth + "2" + "]" * depth
        assert main(["--compact", left, right]) == 0

        delta = json.loads(capsys.readouterr().out)
        for _ in range(depth - 1):
            assert delta["_t"] == "a"
            delta = delta["0"]
        assert delta == {"0": [2], "_t": "a", "_0": [1, 0, 0]}


class TestCLIOptions:

    def test_no_moves(self, capsys):
        assert main(["--no-moves", "--compact", "[1, 2, 3]", "[1, 3, 2]"]) == 0
        assert json.loads(capsys.readouterr().out) == {"1": [3], "_t": "a", "_2": [3, 0, 0]}

    def test_include_moved_values(self, capsys):
        assert main(["--include-moved-values", "[1, 2, 3]", "[1, 3, 2]"]) == 0
        assert json.loads(capsys.readouterr().out) == {"_t": "a", "_2": [3, 1, 3]}

    def test_no_position_match(self, capsys):
        assert main(["--no-position-match", '[{"a": 1}]', '[{"a": 2}]']) == 0
        assert json.loads(capsys.readouterr().out) == {
            "0": [{"a": 2}], "_t": "a", "_0": [{"a": 1}, 0, 0],
        }

    def test_files(self, tmp_path, capsys):
        left = tmp_path / "left.json"
        right = tmp_path / "right.json"
        left.write_text('{"name": "a"}', encoding="utf-8")
        right.write_text('{"name": "b"}', encoding="utf-8")

        assert main(["--files", str(left), str(right)]) == 0
        assert json.loads(capsys.readouterr().out) == {"name": ["a", "b"]}

    def test_verbose_logs_to_stderr(self, tmp_path, capsys):
        left = tmp_path / "left.json"
        left.write_text("[]", encoding="utf-8")

        assert main(["-v", "-f", str(left), str(left)]) == 0
        captured = capsys.readouterr()
        assert captured.out == "{}\n"
        assert "[DEBUG] jsondelta.cli: reading" in captured.err


class TestCLIErrors:

    @pytest.mark.parametrize("args", [[], ["{}"], ["{}", "{}", "{}"]])
    def test_argument_count(self, args, capsys):
        assert main(args) == 1
        captured = capsys.readouterr()
        assert captured.out == ""
        assert "Expected exactly 2 JSON arguments" in captured.err
        assert "usage:" in captured.err

    def test_malformed_json(self, capsys):
        assert main(["{}", "{not json"]) == 1
        captured = capsys.readouterr()
        assert captured.out == ""
        assert "Error processing JSON diff" in captured.err
        assert "second document" in captured.err

    def test_missing_file(self, tmp_path, capsys):
        assert main(["--files", str(tmp_path / "nope.json"), str(tmp_path / "nope.json")]) == 1
        captured = capsys.readouterr()
        assert captured.out == ""
        assert "Could not read file" in captured.err

    def test_file_not_utf8(self, tmp_path, capsys):
        bad = tmp_path / "latin1.json"
        bad.write_bytes(b'"\xff"')
        assert main(["--files", str(bad), str(bad)]) == 1
        captured = capsys.readouterr()
        assert captured.out == ""
        assert "latin1.json" in captured.err
        assert "not valid UTF-8" in captured.err

    def test_too_deeply_nested(self, capsys):
        depth = 100_000
        left = '{"k":' * depth + "1" + "}" * depth
        right = '{"k":' * depth + "2" + "}" * depth
        assert main(["--compact", left, right]) == 1
        captured = capsys.readouterr()
        assert captured.out == ""
        assert "nested too deeply" in captured.err


class TestCLISubprocess:

    def test_help(self):
        result = run_cli("--help")
        assert result.returncode == 0
        assert "usage" in result.stdout.lower()

    def test_delta(self):
        result = run_cli('{"a": 1}', '{"a": 1, "b": [true]}')
        assert result.returncode == 0
        assert json.loads(result.stdout) == {"b": [[True]]}

    def test_parse_error_exit_status(self):
        result = run_cli("[1, 2", "[]")
        assert result.returncode != 0
        assert result.stdout == ""
        assert "first document" in result.stderr

    def test_argument_count_exit_status(self):
        result = run_cli("{}")
        assert result.returncode != 0
        assert result.stdout == ""
