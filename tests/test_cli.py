"""Tests for the click CLI."""

import json
from pathlib import Path

from click.testing import CliRunner

from deppack.cli import cli

FIXTURES = Path(__file__).parent / "fixtures"
SAMPLE = FIXTURES / "sample_project"


def _json(output):
    # log lines may share the captured stream; the document is the only brace block
    return json.loads(output[output.index("{"):output.rindex("}") + 1])


def test_analyze_json():
    runner = CliRunner()
    result = runner.invoke(cli, ["analyze", "main.py", "--root", str(SAMPLE), "--json"])
    assert result.exit_code == 0, result.output
    data = _json(result.output)
    assert data["entry_files"] == ["main.py"]
    assert data["files"] == ["main.py", "app/service.py", "app/util.py", "app/models.py"]
    assert data["circular_dependencies"] == [["app/service.py", "app/models.py"]]
    assert data["total_files"] == 4
    assert data["warnings"] == ["Found 1 circular dependencies"]


def test_analyze_depth():
    runner = CliRunner()
    result = runner.invoke(cli, ["analyze", "main.py", "--root", str(SAMPLE), "--depth", "1", "--json"])
    assert result.exit_code == 0, result.output
    assert _json(result.output)["files"] == ["main.py", "app/service.py", "app/util.py"]


def test_analyze_extra_ignore():
    runner = CliRunner()
    result = runner.invoke(cli, [
        "analyze", "main.py", "--root", str(SAMPLE), "--ignore", "models.py", "--json",
    ])
    assert result.exit_code == 0, result.output
    data = _json(result.output)
    assert "app/models.py" not in data["files"]
    assert data["circular_dependencies"] == []


def test_analyze_text_output():
    runner = CliRunner()
    result = runner.invoke(cli, ["analyze", "main.py", "--root", str(SAMPLE)])
    assert result.exit_code == 0, result.output
    assert "Gathered 4 file(s)" in result.output
    assert "app/service.py -> app/models.py -> app/service.py" in result.output


def test_analyze_missing_entry():
    runner = CliRunner()
    result = runner.invoke(cli, ["analyze", "nope.py", "--root", str(SAMPLE)])
    assert result.exit_code != 0
    assert "Validation failed" in result.output
    assert "nope.py: Entry file not found" in result.output


def test_analyze_ignored_entry():
    runner = CliRunner()
    result = runner.invoke(cli, ["analyze", "generated/schema.py", "--root", str(SAMPLE)])
    assert result.exit_code != 0
    assert "Entry file is ignored" in result.output


def test_check_ignore():
    runner = CliRunner()
    result = runner.invoke(cli, [
        "check-ignore", "generated/schema.py", "app/service.py", "node_modules/x.js",
        "--root", str(SAMPLE),
    ])
    assert result.exit_code == 0, result.output
    assert "generated/schema.py: IGNORED (pattern 'generated/')" in result.output
    assert "app/service.py: INCLUDED" in result.output
    assert "node_modules/x.js: IGNORED (vendor directory)" in result.output


def test_check_ignore_verbose():
    runner = CliRunner()
    result = runner.invoke(cli, ["check-ignore", "debug.log", "--root", str(SAMPLE), "-v"])
    assert result.exit_code == 0, result.output
    assert "+ *.log  [gitignore]" in result.output


def test_patterns():
    runner = CliRunner()
    result = runner.invoke(cli, ["patterns", "--root", str(SAMPLE)])
    assert result.exit_code == 0, result.output
    lines = [line for line in result.output.splitlines() if line[:4].strip().isdigit()]
    assert lines[0].split()[:2] == ["1", "generated/"]
    assert any("node_modules/**" in line for line in lines)
