"""Tests for the built-in rule catalog, rule fixes and profiles."""

from __future__ import annotations

import pytest

from qrefine.fixes import apply_fix
from qrefine.rules.base import Rule, Severity, make_finding
from qrefine.rules.builtin import (
    BUILTIN_RULE_MAP,
    BUILTIN_RULES,
    default_rules,
    get_builtin_rule,
    list_profiles,
    resolve_profile,
)
from qrefine.sql.positions import Range
from qrefine.sql.tokenizer import tokenize


def _run(rule_id, text):
    return get_builtin_rule(rule_id).apply(text, tokenize(text))


def _fixed(rule_id, text, index=0):
    return apply_fix(text, _run(rule_id, text)[index])


# ---------------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------------


def test_catalog_order_and_codes():
    assert [(r.id, r.code) for r in BUILTIN_RULES] == [
        ("select-star", "avoid-select-star"),
        ("delete-without-where", "delete-without-where"),
        ("update-without-where", "update-without-where"),
        ("join-without-condition", "join-without-condition"),
        ("functions-in-where", "functions-in-where"),
        ("select-distinct", "select-distinct"),
        ("order-by-without-limit", "order-by-without-limit"),
        ("like-leading-wildcard", "like-leading-percent"),
        ("not-in", "not-in"),
        ("insert-without-columns", "insert-without-columns"),
        ("select-without-where", "select-without-where"),
    ]
    assert set(BUILTIN_RULE_MAP) == {r.id for r in BUILTIN_RULES}


def test_catalog_severities():
    sev = {r.id: r.severity for r in BUILTIN_RULES}
    assert sev["select-star"] is Severity.WARNING
    assert sev["delete-without-where"] is Severity.ERROR
    assert sev["update-without-where"] is Severity.ERROR
    assert sev["join-without-condition"] is Severity.ERROR
    assert sev["select-distinct"] is Severity.INFO
    assert sev["like-leading-wildcard"] is Severity.WARNING


def test_select_without_where_disabled_by_default():
    assert "select-without-where" not in {r.id for r in default_rules()}
    assert len(default_rules()) == len(BUILTIN_RULES) - 1


def test_get_builtin_rule_by_id_or_code():
    assert get_builtin_rule("like-leading-wildcard") is get_builtin_rule("like-leading-percent")
    assert get_builtin_rule("avoid-select-star").id == "select-star"
    assert get_builtin_rule("nonexistent") is None


def test_all_rules_have_descriptions():
    for r in BUILTIN_RULES:
        assert r.description, f"Rule {r.id} has no description"


def test_rule_without_fn_returns_nothing():
    r = Rule(id="x", code="x", severity=Severity.INFO, description="x")
    assert r.apply("SELECT 1", tokenize("SELECT 1")) == []


def test_rule_apply_uses_overridden_severity():
    def check(text, tokens, mapper):
        return [make_finding(0, 6, "found")]

    r = Rule(id="x", code="x-code", severity=Severity.INFO, description="x", _fn=check)
    r.severity = Severity.ERROR
    (s,) = r.apply("SELECT 1", tokenize("SELECT 1"))
    assert s.severity is Severity.ERROR
    assert s.code == "x-code"
    assert s.rule_id == "x"
    assert s.range == Range.of(0, 0, 0, 6)


# ---------------------------------------------------------------------------
# select-star
# ---------------------------------------------------------------------------


def test_select_star_flags_and_ranges():
    (s,) = _run("select-star", "SELECT * FROM users")
    assert s.code == "avoid-select-star"
    assert s.severity is Severity.WARNING
    assert s.range == Range.of(0, 0, 0, 8)


def test_select_star_skips_trivia():
    assert len(_run("select-star", "SELECT /* all */\n  * FROM t")) == 1


@pytest.mark.parametrize("text", ["SELECT COUNT(*) FROM t", "SELECT a.* FROM t", "SELECT a FROM t"])
def test_select_star_not_flagged(text):
    assert _run("select-star", text) == []


def test_select_star_literal_fix():
    s = _run("select-star", "SELECT * FROM users")[0]
    assert s.fix == "SELECT col1, col2"
    assert apply_fix("SELECT * FROM users", s) == "SELECT col1, col2 FROM users"


# ---------------------------------------------------------------------------
# delete-without-where / update-without-where
# ---------------------------------------------------------------------------


def test_delete_without_where():
    (s,) = _run("delete-without-where", "DELETE FROM users;")
    assert s.severity is Severity.ERROR
    assert _fixed("delete-without-where", "DELETE FROM users;") == "DELETE FROM users WHERE condition_here;"


def test_delete_with_where():
    assert _run("delete-without-where", "DELETE FROM users WHERE id=1;") == []


def test_delete_where_in_next_statement_does_not_count():
    text = "DELETE FROM a; SELECT x FROM b WHERE y = 1"
    assert len(_run("delete-without-where", text)) == 1


def test_delete_at_end_of_input():
    assert len(_run("delete-without-where", "DELETE FROM users")) == 1


def test_on_delete_clause_skipped():
    text = "CREATE TABLE c (p INT REFERENCES p(id) ON DELETE CASCADE)"
    assert _run("delete-without-where", text) == []


def test_update_without_where():
    text = "UPDATE users SET active = 0"
    (s,) = _run("update-without-where", text)
    assert s.code == "update-without-where"
    assert _fixed("update-without-where", text) == "UPDATE users SET active = 0 WHERE condition_here"


@pytest.mark.parametrize(
    "text",
    [
        "UPDATE users SET active = 0 WHERE id = 2",
        "SELECT * FROM t FOR UPDATE",
        "CREATE TABLE t (ts TIMESTAMP ON UPDATE CURRENT_TIMESTAMP)",
        "UPDATE users",
    ],
)
def test_update_not_flagged(text):
    assert _run("update-without-where", text) == []


# ---------------------------------------------------------------------------
# join-without-condition
# ---------------------------------------------------------------------------


def test_join_with_on_across_lines():
    text = "SELECT a.id FROM t1 a\nJOIN t2 b\nON a.id=b.id\nWHERE b.x>1"
    assert _run("join-without-condition", text) == []


def test_join_without_on_across_lines():
    text = "SELECT a.id FROM t1 a\nJOIN t2 b\nWHERE b.x>1"
    (s,) = _run("join-without-condition", text)
    assert s.range == Range.of(1, 0, 1, 9)


@pytest.mark.parametrize("kind", ["NATURAL", "CROSS", "natural"])
def test_natural_and_cross_join_skipped(kind):
    assert _run("join-without-condition", f"SELECT * FROM t1 {kind} JOIN t2") == []


@pytest.mark.parametrize("kind", ["NATURAL LEFT", "NATURAL INNER", "natural full outer", "NATURAL RIGHT OUTER"])
def test_natural_join_with_modifiers_skipped(kind):
    assert _run("join-without-condition", f"SELECT * FROM t1 {kind} JOIN t2") == []


@pytest.mark.parametrize("kind", ["LEFT", "LEFT OUTER", "INNER", "FULL OUTER"])
def test_outer_join_without_on_flagged(kind):
    (s,) = _run("join-without-condition", f"SELECT * FROM t1 {kind} JOIN t2")
    assert s.code == "join-without-condition"


def test_join_using():
    assert _run("join-without-condition", "SELECT * FROM a JOIN b USING (id)") == []


def test_join_stops_at_next_join():
    text = "SELECT * FROM a JOIN b JOIN c ON b.id = c.id"
    assert len(_run("join-without-condition", text)) == 1


def test_join_fix_inserts_condition():
    text = "SELECT * FROM a LEFT JOIN b WHERE a.x = 1"
    assert _fixed("join-without-condition", text) == (
        "SELECT * FROM a LEFT JOIN b ON table1.id = table2.id WHERE a.x = 1"
    )


def test_comment_between_join_and_on_is_transparent():
    text = "SELECT * FROM t1 -- note\nJOIN t2 /* x */ ON t1.id=t2.id"
    assert _run("join-without-condition", text) == []


# ---------------------------------------------------------------------------
# functions-in-where
# ---------------------------------------------------------------------------


def test_function_in_where():
    text = "SELECT id FROM t WHERE LOWER(email) = 'x'"
    (s,) = _run("functions-in-where", text)
    assert s.severity is Severity.WARNING
    assert s.range == Range.of(0, 23, 0, 28)
    assert s.fix is None


def test_function_in_where_multiple():
    text = "SELECT id FROM t WHERE upper(a) = 1 AND trim (b) = 'x'"
    assert len(_run("functions-in-where", text)) == 2


@pytest.mark.parametrize(
    "text",
    [
        "SELECT id FROM t WHERE a = 1 GROUP BY b HAVING count(b) > 1",
        "SELECT id FROM t WHERE a IN (1, 2)",
        "SELECT id FROM t WHERE a = 1 ORDER BY lower(b)",
        "SELECT lower(a) FROM t",
    ],
)
def test_function_outside_where_not_flagged(text):
    assert _run("functions-in-where", text) == []


def test_function_in_nested_where_reported_once():
    text = "SELECT * FROM t WHERE x IN (SELECT y FROM u WHERE lower(z) = 'a')"
    assert len(_run("functions-in-where", text)) == 1


def test_function_in_where_stops_at_statement_end():
    text = "DELETE FROM t WHERE a = 1; SELECT now() FROM dual"
    assert _run("functions-in-where", text) == []


# ---------------------------------------------------------------------------
# select-distinct
# ---------------------------------------------------------------------------


def test_select_distinct():
    text = "SELECT DISTINCT a FROM t"
    (s,) = _run("select-distinct", text)
    assert s.severity is Severity.INFO
    assert s.range == Range.of(0, 7, 0, 15)
    assert _fixed("select-distinct", text) == "SELECT a FROM t"


def test_distinct_inside_aggregate_not_flagged():
    assert _run("select-distinct", "SELECT COUNT(DISTINCT a) FROM t") == []


# ---------------------------------------------------------------------------
# order-by-without-limit
# ---------------------------------------------------------------------------


def test_order_by_without_limit():
    text = "SELECT a FROM t ORDER BY a"
    (s,) = _run("order-by-without-limit", text)
    assert s.range == Range.of(0, 16, 0, 24)
    assert _fixed("order-by-without-limit", text) == "SELECT a FROM t ORDER BY a LIMIT 100"


def test_order_by_fix_goes_before_semicolon():
    text = "SELECT a FROM t ORDER BY a;"
    assert _fixed("order-by-without-limit", text) == "SELECT a FROM t ORDER BY a LIMIT 100;"


@pytest.mark.parametrize(
    "text",
    [
        "SELECT a FROM t ORDER BY a LIMIT 5",
        "SELECT a, ROW_NUMBER() OVER (ORDER BY b) FROM t",
        "SELECT string_agg(a, ',' ORDER BY a) FROM t",
        "SELECT percentile_cont(0.5) WITHIN GROUP (ORDER BY a) FROM t",
        "SELECT a FROM t",
    ],
)
def test_order_by_not_flagged(text):
    assert _run("order-by-without-limit", text) == []


def test_order_by_in_subquery_flagged():
    text = "SELECT s.a FROM (SELECT a FROM t ORDER BY a) s"
    (s,) = _run("order-by-without-limit", text)
    assert text[s.range.start.column : s.range.end.column] == "ORDER BY"


def test_order_by_limit_is_per_statement():
    text = "SELECT a FROM t ORDER BY a; SELECT b FROM u LIMIT 1"
    assert len(_run("order-by-without-limit", text)) == 1


def test_fix_closures_bind_their_own_offsets():
    text = "SELECT a FROM t ORDER BY a; SELECT b FROM u ORDER BY b"
    first, second = _run("order-by-without-limit", text)
    assert apply_fix(text, first) == "SELECT a FROM t ORDER BY a LIMIT 100; SELECT b FROM u ORDER BY b"
    assert apply_fix(text, second) == "SELECT a FROM t ORDER BY a; SELECT b FROM u ORDER BY b LIMIT 100"


# ---------------------------------------------------------------------------
# like-leading-wildcard
# ---------------------------------------------------------------------------


def test_like_leading_percent():
    text = "SELECT a FROM t WHERE name LIKE '%abc%'"
    (s,) = _run("like-leading-wildcard", text)
    assert s.code == "like-leading-percent"
    assert _fixed("like-leading-wildcard", text) == "SELECT a FROM t WHERE name LIKE 'abc%'"


def test_like_trailing_percent_not_flagged():
    assert _run("like-leading-wildcard", "SELECT a FROM t WHERE name LIKE 'abc%'") == []


def test_ilike_and_repeated_percent():
    text = "SELECT a FROM t WHERE name ILIKE '%%x'"
    assert _fixed("like-leading-wildcard", text) == "SELECT a FROM t WHERE name ILIKE 'x'"


# ---------------------------------------------------------------------------
# not-in
# ---------------------------------------------------------------------------


def test_not_in_subquery_rewrite():
    text = "SELECT a FROM t WHERE t.id NOT IN (SELECT b FROM u)"
    (s,) = _run("not-in", text)
    assert s.range == Range.of(0, 27, 0, 35)
    assert apply_fix(text, s) == (
        "SELECT a FROM t WHERE NOT EXISTS (SELECT 1 FROM table_name WHERE table_name.column = t.id)"
    )


def test_not_in_without_column_operand_has_no_fix():
    (s,) = _run("not-in", "SELECT a FROM t WHERE 5 NOT IN (1, 2)")
    assert s.fix is None


@pytest.mark.parametrize("text", ["SELECT a FROM t WHERE x IN (1)", "SELECT a FROM t WHERE NOT EXISTS (SELECT 1)"])
def test_not_in_not_flagged(text):
    assert _run("not-in", text) == []


# ---------------------------------------------------------------------------
# insert-without-columns
# ---------------------------------------------------------------------------


def test_insert_without_columns():
    text = "INSERT INTO users VALUES (1, 'a')"
    assert _fixed("insert-without-columns", text) == "INSERT INTO users (col1, col2) VALUES (1, 'a')"


def test_insert_qualified_table():
    text = "INSERT INTO app.users VALUES (1)"
    assert _fixed("insert-without-columns", text) == "INSERT INTO app.users (col1, col2) VALUES (1)"


def test_insert_with_columns_not_flagged():
    assert _run("insert-without-columns", "INSERT INTO users (id, name) VALUES (1, 'a')") == []


# ---------------------------------------------------------------------------
# select-without-where
# ---------------------------------------------------------------------------


def test_select_without_where():
    assert _fixed("select-without-where", "SELECT a FROM t") == "SELECT a FROM t WHERE condition_here"


def test_select_without_where_fix_before_group_by():
    text = "SELECT a FROM t GROUP BY a"
    assert _fixed("select-without-where", text) == "SELECT a FROM t WHERE condition_here GROUP BY a"


@pytest.mark.parametrize("text", ["SELECT 1", "SELECT a FROM t LIMIT 1", "SELECT a FROM t WHERE b = 2"])
def test_select_without_where_not_flagged(text):
    assert _run("select-without-where", text) == []


# ---------------------------------------------------------------------------
# Fixes resolve their findings
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "rule_id,text",
    [
        ("select-star", "SELECT * FROM users"),
        ("delete-without-where", "DELETE FROM users;"),
        ("update-without-where", "UPDATE users SET a = 1;"),
        ("join-without-condition", "SELECT a FROM t1 JOIN t2 WHERE t1.x = 1"),
        ("select-distinct", "SELECT DISTINCT a FROM t"),
        ("order-by-without-limit", "SELECT a FROM t ORDER BY a"),
        ("like-leading-wildcard", "SELECT a FROM t WHERE b LIKE '%x'"),
        ("not-in", "SELECT a FROM t WHERE b NOT IN (SELECT c FROM u)"),
        ("insert-without-columns", "INSERT INTO t VALUES (1)"),
        ("select-without-where", "SELECT a FROM t ORDER BY a"),
    ],
)
def test_fix_resolves_finding(rule_id, text):
    before = _run(rule_id, text)
    assert len(before) == 1
    fixed = apply_fix(text, before[0])
    assert fixed != text
    assert _run(rule_id, fixed) == []


# ---------------------------------------------------------------------------
# Profiles
# ---------------------------------------------------------------------------


def test_list_profiles():
    names = [p["name"] for p in list_profiles()]
    assert names == ["default", "minimal", "strict"]
    strict = next(p for p in list_profiles() if p["name"] == "strict")
    assert strict["extends"] == "default"


def test_resolve_strict_profile():
    overrides = {ov["id"]: ov for ov in resolve_profile("strict")}
    assert overrides["select-without-where"]["enabled"] is True
    assert overrides["functions-in-where"]["severity"] == "error"
    assert overrides["select-star"]["enabled"] is True


def test_resolve_minimal_profile():
    enabled = {ov["id"] for ov in resolve_profile("minimal") if ov.get("enabled")}
    assert enabled == {"delete-without-where", "update-without-where", "join-without-condition"}


def test_resolve_unknown_profile():
    with pytest.raises(ValueError, match="Unknown profile"):
        resolve_profile("nope")
