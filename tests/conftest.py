"""Shared test fixtures and helpers for qrefine tests.

Provides:
- CliRunner fixtures: cli_runner, invoke_cli()
- Composable project fixtures: sql_project -> mixed_project
- JSON validation helpers: parse_json_output(), assert_json_envelope()
- Suggestion helpers: codes(), by_code()
"""

from __future__ import annotations

import json
import os

import pytest
from click.testing import CliRunner

# ===========================================================================
# Suggestion helpers
# ===========================================================================


def codes(suggestions):
    """List of suggestion codes, in result order."""
    return [s.code for s in suggestions]


def by_code(suggestions, code):
    return [s for s in suggestions if s.code == code]


# ===========================================================================
# CliRunner helpers
# ===========================================================================


@pytest.fixture
def cli_runner():
    """Provide a Click CliRunner for in-process CLI testing."""
    return CliRunner()


def invoke_cli(runner, args, cwd=None, json_mode=False):
    """Invoke the qrefine CLI via CliRunner.

    Args:
        runner: CliRunner instance
        args: list of CLI arguments (e.g. ["check", "queries.sql"])
        cwd: directory to run in
        json_mode: if True, prepend --json flag
    Returns:
        click.testing.Result
    """
    from qrefine.cli import cli

    full_args = []
    if json_mode:
        full_args.append("--json")
    full_args.extend(args)

    old_cwd = os.getcwd()
    try:
        if cwd:
            os.chdir(str(cwd))
        result = runner.invoke(cli, full_args, catch_exceptions=False)
    finally:
        os.chdir(old_cwd)

    return result


# ===========================================================================
# JSON validation helpers
# ===========================================================================


def parse_json_output(result, command=None, expect_exit=0):
    """Parse JSON from a CliRunner result's stdout.

    Args:
        result: click.testing.Result from invoke_cli
        command: optional command name for better error messages
        expect_exit: exit code the command is expected to return
    Returns:
        Parsed dict from JSON output
    """
    assert result.exit_code == expect_exit, (
        f"Command {command or '?'} exited {result.exit_code}, expected {expect_exit}:\n{result.output}"
    )
    try:
        return json.loads(result.stdout)
    except json.JSONDecodeError as e:
        pytest.fail(f"Invalid JSON from {command or '?'}: {e}\nOutput was:\n{result.stdout[:500]}")


def assert_json_envelope(data, command=None):
    """Validate that a parsed JSON dict follows the qrefine envelope contract.

    Checks required top-level keys: schema, command, version, summary.
    Checks _meta contains timestamp (non-deterministic metadata).
    """
    assert isinstance(data, dict), f"Expected dict, got {type(data)}"
    assert data.get("schema") == "qrefine-envelope-v1"
    assert "command" in data, "Missing 'command' key in envelope"
    assert "version" in data, "Missing 'version' key in envelope"
    assert "summary" in data, "Missing 'summary' key in envelope"
    assert "timestamp" in data.get("_meta", {}), "Missing 'timestamp' in _meta"
    if command:
        assert data["command"] == command, f"Expected command={command}, got {data['command']}"
    summary = data["summary"]
    assert isinstance(summary, dict), f"summary should be dict, got {type(summary)}"
    assert isinstance(summary.get("verdict"), str), "summary should carry a verdict string"


# ===========================================================================
# Composable project fixtures
# ===========================================================================


@pytest.fixture
def sql_project(tmp_path):
    """A directory with one clean and one problematic .sql file."""
    proj = tmp_path / "proj"
    proj.mkdir()
    (proj / "clean.sql").write_text("SELECT id, name FROM users WHERE id = 1 LIMIT 10;\n")
    (proj / "bad.sql").write_text(
        "SELECT * FROM users;\n"
        "DELETE FROM sessions;\n"
    )
    return proj


@pytest.fixture
def mixed_project(sql_project):
    """Extend sql_project with host-language files containing embedded SQL."""
    src = sql_project / "src"
    src.mkdir()
    (src / "repo.py").write_text(
        "def active_users(db):\n"
        '    query = """SELECT * FROM users WHERE active = 1"""\n'
        "    return db.execute(query)\n"
    )
    (src / "store.go").write_text(
        "package store\n"
        "\n"
        "func load(db *sql.DB) {\n"
        "    db.Query(`SELECT id FROM orders ORDER BY created_at`)\n"
        "}\n"
    )
    (src / "README.txt").write_text("SELECT * FROM nothing -- not analyzed\n")
    return sql_project
