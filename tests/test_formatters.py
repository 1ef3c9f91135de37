"""Unit tests for qrefine.output.formatter — pure functions, no fixtures needed."""

from __future__ import annotations

import json

from qrefine.analyzer import analyze_sql
from qrefine.output.formatter import format_table, json_envelope, loc, suggestion_line, to_json

# ── loc ──────────────────────────────────────────────────────────────


class TestLoc:
    def test_path_only(self):
        assert loc("a.sql") == "a.sql"

    def test_one_based(self):
        assert loc("a.sql", 0) == "a.sql:1"
        assert loc("a.sql", 2, 4) == "a.sql:3:5"


# ── suggestion_line ──────────────────────────────────────────────────


class TestSuggestionLine:
    def test_complete(self):
        (s,) = analyze_sql("DELETE FROM t")
        line = suggestion_line("q.sql", s)
        assert line.startswith("q.sql:1:1  [ERROR] delete-without-where: ")

    def test_low_trust_provenance_marked(self):
        (s,) = analyze_sql("SELECT * FROM t")
        s = s.translated(s.range.start, "dynamic")
        assert suggestion_line("app.js", s).endswith("(dynamic)")


# ── format_table ─────────────────────────────────────────────────────


class TestFormatTable:
    def test_empty(self):
        assert format_table(["a"], []) == "(none)"

    def test_alignment(self):
        out = format_table(["name", "n"], [["x", "1"], ["longer", "22"]]).splitlines()
        assert out[0].rstrip() == "name    n"
        assert out[1] == "------  --"
        assert out[3] == "longer  22"

    def test_budget(self):
        out = format_table(["n"], [[str(i)] for i in range(5)], budget=2)
        assert out.endswith("(+3 more)")


# ── JSON ─────────────────────────────────────────────────────────────


class TestJson:
    def test_sorted_keys(self):
        assert to_json({"b": 1, "a": 2}).index('"a"') < to_json({"b": 1, "a": 2}).index('"b"')

    def test_envelope(self):
        env = json_envelope("check", summary={"verdict": "PASS"}, files=[])
        assert env["schema"] == "qrefine-envelope-v1"
        assert env["schema_version"] == "1.0.0"
        assert env["command"] == "check"
        assert env["files"] == []
        assert env["_meta"]["timestamp"].endswith("Z")
        assert json.loads(to_json(env))["summary"] == {"verdict": "PASS"}
