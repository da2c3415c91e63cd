"""Tests for the Typer command line interface."""

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from faultlock.main import app

SAMPLE = Path(__file__).parent / "sample.c"
WIDE = {"COLUMNS": "200"}

runner = CliRunner()


@pytest.fixture
def clean_file(tmp_path):
    path = tmp_path / "clean.c"
    path.write_text("int main(void) { return 0; }\n")
    return path


def test_clean_file_exits_zero(clean_file):
    result = runner.invoke(app, ["analyze", str(clean_file)], env=WIDE)
    assert result.exit_code == 0
    assert "No fault-injection weaknesses found in 1 file(s)." in result.stdout


def test_findings_exit_one():
    result = runner.invoke(app, ["analyze", str(SAMPLE)], env=WIDE)
    assert result.exit_code == 1
    assert "double_check" in result.stdout
    assert "Summary" in result.stdout


def test_json_output():
    result = runner.invoke(app, ["analyze", str(SAMPLE), "--format", "json"])
    assert result.exit_code == 1
    payload = json.loads(result.stdout)
    assert len(payload) == 1
    entry = payload[0]
    assert entry["path"] == str(SAMPLE.resolve())
    assert entry["failed_patterns"] == []
    categories = [f["category"] for f in entry["findings"]]
    assert categories.count("detect") == 2
    assert entry["edits"][0]["line"] == 14
    spanning = [f for f in entry["findings"] if f["end_line"] is not None]
    assert [(f["start_line"], f["end_line"]) for f in spanning] == [(14, 18)]


def test_pattern_selection():
    result = runner.invoke(
        app, ["analyze", str(SAMPLE), "-p", "constant_coding", "--format", "json"]
    )
    payload = json.loads(result.stdout)
    assert {f["category"] for f in payload[0]["findings"]} == {"constant_coding"}
    assert "edits" not in payload[0]


def test_sensitivity_option(clean_file):
    clean_file.write_text("void f(int x) { if (x == 7) { } }\n")
    result = runner.invoke(app, ["analyze", str(clean_file), "-p", "branch"])
    assert result.exit_code == 0
    result = runner.invoke(app, ["analyze", str(clean_file), "-p", "branch", "-s", "4"])
    assert result.exit_code == 1


def test_guard_option():
    result = runner.invoke(
        app, ["analyze", str(SAMPLE), "--guard", "onFault", "--format", "json"]
    )
    payload = json.loads(result.stdout)
    assert "onFault();" in payload[0]["edits"][0]["text"]


def test_show_patched_prints_diff():
    result = runner.invoke(app, ["analyze", str(SAMPLE), "--show-patched"], env=WIDE)
    assert result.exit_code == 1
    assert "with double checks" in result.stdout
    assert "faultDetect();" in result.stdout


def test_directory_target(tmp_path):
    (tmp_path / "src").mkdir()
    (tmp_path / "src" / "a.c").write_text("int main(void) { return 0; }\n")
    (tmp_path / "src" / "b.c").write_text("#define ONE 1\n")
    result = runner.invoke(app, ["analyze", str(tmp_path), "--format", "json"])
    assert result.exit_code == 1
    payload = json.loads(result.stdout)
    assert [Path(entry["path"]).name for entry in payload] == ["a.c", "b.c"]


def test_unknown_pattern_is_usage_error():
    result = runner.invoke(app, ["analyze", str(SAMPLE), "-p", "nope"])
    assert result.exit_code == 2


def test_bad_guard_is_usage_error():
    result = runner.invoke(app, ["analyze", str(SAMPLE), "--guard", "not valid"])
    assert result.exit_code == 2


def test_non_c_file_is_usage_error(tmp_path):
    notes = tmp_path / "notes.txt"
    notes.write_text("hello")
    result = runner.invoke(app, ["analyze", str(notes)])
    assert result.exit_code == 2


def test_missing_target_is_usage_error(tmp_path):
    result = runner.invoke(app, ["analyze", str(tmp_path / "missing.c")])
    assert result.exit_code == 2


def test_patterns_command_lists_registry():
    result = runner.invoke(app, ["patterns"], env=WIDE)
    assert result.exit_code == 0
    for name in ("branch", "bypass", "constant_coding", "default_fail", "detect", "double_check"):
        assert name in result.stdout


def test_verbose_prints_fix_hints():
    result = runner.invoke(app, ["analyze", str(SAMPLE), "--verbose"], env=WIDE)
    assert result.exit_code == 1
    assert "[Fix] [double_check]" in result.stdout


def test_show_tree_prints_nodes(clean_file):
    result = runner.invoke(app, ["analyze", str(clean_file), "--show-tree"], env=WIDE)
    assert result.exit_code == 0
    assert "function_definition" in result.stdout
    assert "return_statement" in result.stdout
