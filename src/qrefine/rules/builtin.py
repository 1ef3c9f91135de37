"""Built-in SQL anti-pattern rule pack.

Provides the fixed, ordered rule catalog. Rules can be disabled or have
their severity overridden via user config (.qrefine.yml) or a named
profile, but the catalog itself is static: there is no discovery.

Each check function has signature::

    (text, tokens, mapper) -> list[Finding]

where offsets in each Finding index into ``text``. Fix closures bind the
offsets of their own match when they are created.
"""

from __future__ import annotations

from qrefine.rules.base import Rule, Severity, insert_at, make_finding, replace_span
from qrefine.rules.scan import is_punct, matching_paren, previous_word, significant, statement_end, statements
from qrefine.sql.tokenizer import TokenKind

# Words that put DELETE/UPDATE in a non-statement position
# (ON DELETE CASCADE, SELECT ... FOR UPDATE, AFTER UPDATE triggers, GRANT).
_NON_STATEMENT_PREFIXES = frozenset({"on", "for", "after", "before", "of", "or", ",", "grant", "revoke"})

_CLAUSE_BREAKS = ("where", "group", "order", "having", "limit")
_JOIN_FAMILY = ("join", "left", "right", "inner", "full", "cross")
_JOIN_MODIFIERS = ("left", "right", "full", "inner", "outer")


def _check_select_star(text, tokens, mapper):
    """SELECT immediately followed by ``*``."""
    sig = significant(tokens)
    found = []
    for i, tok in enumerate(sig[:-1]):
        nxt = sig[i + 1]
        if tok.is_keyword("select") and nxt.kind is TokenKind.OPERATOR and nxt.text == "*":
            found.append(
                make_finding(
                    tok.start,
                    nxt.end,
                    "Avoid SELECT * - specify the columns you need explicitly.",
                    fix="SELECT col1, col2",
                    fix_title="Replace * with explicit columns",
                )
            )
    return found


def _check_delete_without_where(text, tokens, mapper):
    """DELETE whose statement ends before any WHERE."""
    sig = significant(tokens)
    found = []
    for i, tok in enumerate(sig):
        if not tok.is_keyword("delete") or previous_word(sig, i) in _NON_STATEMENT_PREFIXES:
            continue
        stop = statement_end(sig, i)
        if any(t.is_keyword("where") for t in sig[i + 1 : stop]):
            continue
        last = sig[stop - 1]
        found.append(
            make_finding(
                tok.start,
                last.end,
                "DELETE without WHERE clause - this will delete all rows.",
                fix=insert_at(last.end, " WHERE condition_here"),
                fix_title="Add WHERE clause",
            )
        )
    return found


def _check_update_without_where(text, tokens, mapper):
    """UPDATE ... SET whose statement ends before any WHERE."""
    sig = significant(tokens)
    found = []
    for i, tok in enumerate(sig):
        if not tok.is_keyword("update") or previous_word(sig, i) in _NON_STATEMENT_PREFIXES:
            continue
        stop = statement_end(sig, i)
        body = sig[i + 1 : stop]
        if not any(t.is_keyword("set") for t in body):
            continue
        if any(t.is_keyword("where") for t in body):
            continue
        last = sig[stop - 1]
        found.append(
            make_finding(
                tok.start,
                last.end,
                "UPDATE without WHERE clause - this will update all rows.",
                fix=insert_at(last.end, " WHERE condition_here"),
                fix_title="Add WHERE clause",
            )
        )
    return found


def _check_join_without_condition(text, tokens, mapper):
    """JOIN not followed by ON/USING before the next clause, join or ``;``."""
    sig = significant(tokens)
    found = []
    for i, tok in enumerate(sig):
        if not tok.is_keyword("join"):
            continue
        # NATURAL / CROSS joins need no condition, also as NATURAL LEFT OUTER JOIN.
        k = i
        while previous_word(sig, k) in _JOIN_MODIFIERS:
            k -= 1
        if previous_word(sig, k) in ("natural", "cross"):
            continue
        last = tok
        has_condition = False
        for t in sig[i + 1 :]:
            if t.is_keyword("on", "using"):
                has_condition = True
                break
            if t.is_keyword(*_CLAUSE_BREAKS) or t.is_keyword(*_JOIN_FAMILY) or is_punct(t, ";"):
                break
            last = t
        if has_condition:
            continue
        found.append(
            make_finding(
                tok.start,
                last.end,
                "JOIN without ON or USING condition may produce a Cartesian product.",
                fix=insert_at(last.end, " ON table1.id = table2.id"),
                fix_title="Add JOIN condition (ON ...)",
            )
        )
    return found


def _check_functions_in_where(text, tokens, mapper):
    """Function calls inside a WHERE clause (until GROUP/ORDER/LIMIT)."""
    sig = significant(tokens)
    found = []
    seen: set[int] = set()
    for i, tok in enumerate(sig):
        if not tok.is_keyword("where"):
            continue
        for j in range(i + 1, len(sig)):
            t = sig[j]
            if is_punct(t, ";") or t.is_keyword("group", "order", "limit"):
                break
            if t.kind is not TokenKind.IDENTIFIER or j in seen:
                continue
            if j + 1 < len(sig) and is_punct(sig[j + 1], "("):
                seen.add(j)
                found.append(
                    make_finding(
                        t.start,
                        t.end,
                        f"Function call {t.text}() in WHERE can prevent index usage on the wrapped column.",
                    )
                )
    return found


def _check_select_distinct(text, tokens, mapper):
    """SELECT immediately followed by DISTINCT."""
    sig = significant(tokens)
    found = []
    for i, tok in enumerate(sig[:-1]):
        nxt = sig[i + 1]
        if not (tok.is_keyword("select") and nxt.is_keyword("distinct")):
            continue
        end = nxt.end
        while end < len(text) and text[end] in " \t":
            end += 1
        found.append(
            make_finding(
                nxt.start,
                nxt.end,
                "DISTINCT may hide duplicate rows from a bad join - make sure it is needed.",
                fix=replace_span(nxt.start, end, ""),
                fix_title="Remove DISTINCT",
            )
        )
    return found


def _check_order_by_without_limit(text, tokens, mapper):
    """Top-level ORDER BY in a statement that has no LIMIT.

    ORDER BY inside window, aggregate or call parens (``OVER (ORDER BY ...)``,
    ``WITHIN GROUP (ORDER BY ...)``, ``string_agg(x ORDER BY y)``) does not
    sort the result set and is deliberately not reported. Subquery parens are
    still checked.
    """
    sig = significant(tokens)
    found = []
    for start, stop in statements(sig):
        if any(t.is_keyword("limit") for t in sig[start:stop]):
            continue
        # One entry per open paren: True when it is a window/aggregate/call
        # argument list rather than a subquery.
        parens: list[bool] = []
        for j in range(start, stop):
            t = sig[j]
            if is_punct(t, "("):
                before = sig[j - 1] if j > start else None
                parens.append(
                    before is not None
                    and (before.lower in ("over", "group") or before.kind is TokenKind.IDENTIFIER)
                )
            elif is_punct(t, ")"):
                if parens:
                    parens.pop()
            elif t.is_keyword("order") and j + 1 < stop and sig[j + 1].is_keyword("by") and not any(parens):
                found.append(
                    make_finding(
                        t.start,
                        sig[j + 1].end,
                        "ORDER BY without LIMIT sorts and returns the whole result set.",
                        fix=insert_at(sig[stop - 1].end, " LIMIT 100"),
                        fix_title="Add LIMIT clause",
                    )
                )
    return found


def _check_like_leading_wildcard(text, tokens, mapper):
    """LIKE / ILIKE with a pattern literal that starts with ``%``."""
    sig = significant(tokens)
    found = []
    for i, tok in enumerate(sig[:-1]):
        lit = sig[i + 1]
        if tok.lower not in ("like", "ilike") or lit.kind is not TokenKind.STRING:
            continue
        if not lit.text[1:].startswith("%"):
            continue
        fixed = lit.text[0] + lit.text[1:].lstrip("%")
        found.append(
            make_finding(
                tok.start,
                lit.end,
                "LIKE pattern with a leading % cannot use an index.",
                fix=replace_span(lit.start, lit.end, fixed),
                fix_title="Remove leading % from LIKE pattern",
            )
        )
    return found


def _check_not_in(text, tokens, mapper):
    """``NOT IN (`` which silently returns nothing when a NULL is present."""
    sig = significant(tokens)
    found = []
    for i in range(len(sig) - 2):
        tok = sig[i]
        if not (tok.is_keyword("not") and sig[i + 1].is_keyword("in") and is_punct(sig[i + 2], "(")):
            continue
        fix = None
        close = matching_paren(sig, i + 2)
        k = i
        while k > 0 and (sig[k - 1].kind is TokenKind.IDENTIFIER or is_punct(sig[k - 1], ".")):
            k -= 1
        if close is not None and k < i:
            operand = text[sig[k].start : sig[i - 1].end]
            fix = replace_span(
                sig[k].start,
                sig[close].end,
                f"NOT EXISTS (SELECT 1 FROM table_name WHERE table_name.column = {operand})",
            )
        found.append(
            make_finding(
                tok.start,
                sig[i + 2].end,
                "NOT IN returns no rows when the list or subquery contains NULL - prefer NOT EXISTS.",
                fix=fix,
                fix_title="Rewrite as NOT EXISTS" if fix else None,
            )
        )
    return found


def _check_insert_without_columns(text, tokens, mapper):
    """``INSERT INTO table VALUES`` with no column list."""
    sig = significant(tokens)
    found = []
    for i in range(len(sig) - 3):
        tok = sig[i]
        if not (tok.is_keyword("insert") and sig[i + 1].is_keyword("into")):
            continue
        j = i + 2
        if sig[j].kind not in (TokenKind.IDENTIFIER, TokenKind.STRING):
            continue
        while j + 2 < len(sig) and is_punct(sig[j + 1], ".") and sig[j + 2].kind is TokenKind.IDENTIFIER:
            j += 2
        if j + 1 >= len(sig) or not sig[j + 1].is_keyword("values"):
            continue
        found.append(
            make_finding(
                tok.start,
                sig[j + 1].end,
                "INSERT without an explicit column list breaks when the table changes.",
                fix=insert_at(sig[j].end, " (col1, col2)"),
                fix_title="Specify column names",
            )
        )
    return found


def _check_select_without_where(text, tokens, mapper):
    """SELECT ... FROM statement with neither WHERE nor LIMIT."""
    sig = significant(tokens)
    found = []
    for start, stop in statements(sig):
        body = sig[start:stop]
        if not body[0].is_keyword("select"):
            continue
        if not any(t.is_keyword("from") for t in body):
            continue
        if any(t.is_keyword("where", "limit") for t in body):
            continue
        depth = 0
        anchor = None
        for t in body:
            if is_punct(t, "("):
                depth += 1
            elif is_punct(t, ")"):
                depth -= 1
            elif depth == 0 and t.is_keyword("group", "order", "having", "limit", "union"):
                anchor = t
                break
        if anchor is not None:
            fix = insert_at(anchor.start, "WHERE condition_here ")
        else:
            fix = insert_at(body[-1].end, " WHERE condition_here")
        found.append(
            make_finding(
                body[0].start,
                body[-1].end,
                "SELECT without WHERE reads every row of the table.",
                fix=fix,
                fix_title="Add WHERE clause",
            )
        )
    return found


# ---------------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------------

BUILTIN_RULES: list[Rule] = [
    Rule(
        id="select-star",
        code="avoid-select-star",
        severity=Severity.WARNING,
        description="SELECT * instead of an explicit column list",
        _fn=_check_select_star,
    ),
    Rule(
        id="delete-without-where",
        code="delete-without-where",
        severity=Severity.ERROR,
        description="DELETE without WHERE clause",
        _fn=_check_delete_without_where,
    ),
    Rule(
        id="update-without-where",
        code="update-without-where",
        severity=Severity.ERROR,
        description="UPDATE ... SET without WHERE clause",
        _fn=_check_update_without_where,
    ),
    Rule(
        id="join-without-condition",
        code="join-without-condition",
        severity=Severity.ERROR,
        description="JOIN without ON or USING (NATURAL and CROSS joins excluded)",
        _fn=_check_join_without_condition,
    ),
    Rule(
        id="functions-in-where",
        code="functions-in-where",
        severity=Severity.WARNING,
        description="Function calls on columns inside WHERE",
        _fn=_check_functions_in_where,
    ),
    Rule(
        id="select-distinct",
        code="select-distinct",
        severity=Severity.INFO,
        description="SELECT DISTINCT",
        _fn=_check_select_distinct,
    ),
    Rule(
        id="order-by-without-limit",
        code="order-by-without-limit",
        severity=Severity.WARNING,
        description="ORDER BY in a statement without LIMIT",
        _fn=_check_order_by_without_limit,
    ),
    Rule(
        id="like-leading-wildcard",
        code="like-leading-percent",
        severity=Severity.WARNING,
        description="LIKE pattern starting with %",
        _fn=_check_like_leading_wildcard,
    ),
    Rule(
        id="not-in",
        code="not-in",
        severity=Severity.WARNING,
        description="NOT IN (...) predicate",
        _fn=_check_not_in,
    ),
    Rule(
        id="insert-without-columns",
        code="insert-without-columns",
        severity=Severity.WARNING,
        description="INSERT INTO table VALUES without a column list",
        _fn=_check_insert_without_columns,
    ),
    Rule(
        id="select-without-where",
        code="select-without-where",
        severity=Severity.INFO,
        description="SELECT ... FROM without WHERE or LIMIT",
        _fn=_check_select_without_where,
        enabled=False,
    ),
]

BUILTIN_RULE_MAP: dict[str, Rule] = {r.id: r for r in BUILTIN_RULES}


def get_builtin_rule(rule_id: str) -> Rule | None:
    """Return the built-in rule with the given ID (or code), or None."""
    rule = BUILTIN_RULE_MAP.get(rule_id)
    if rule is None:
        rule = next((r for r in BUILTIN_RULES if r.code == rule_id), None)
    return rule


def default_rules() -> list[Rule]:
    """Enabled rules of the catalog, in catalog order."""
    return [r for r in BUILTIN_RULES if r.enabled]


# ---------------------------------------------------------------------------
# Rule profiles
# ---------------------------------------------------------------------------

BUILTIN_PROFILES: dict[str, dict] = {
    "default": {
        "description": "Standard rule set",
        "rules": {r.id: {"enabled": r.enabled} for r in BUILTIN_RULES},
    },
    "strict": {
        "description": "Every rule enabled; function calls in WHERE are errors",
        "extends": "default",
        "rules": {
            "select-without-where": {"enabled": True},
            "functions-in-where": {"severity": "error"},
        },
    },
    "minimal": {
        "description": "Only rules that guard against destructive or runaway statements",
        "exclusive": True,
        "rules": {
            "delete-without-where": {"enabled": True},
            "update-without-where": {"enabled": True},
            "join-without-condition": {"enabled": True},
        },
    },
}


def resolve_profile(profile_name: str) -> list[dict]:
    """Resolve a named profile into a list of rule override dicts.

    Handles ``extends:`` inheritance by merging the parent profile's
    overrides first, then applying the child's on top. An ``exclusive``
    profile disables every rule it does not list.

    Raises
    ------
    ValueError:
        If the profile name is not found.
    """
    if profile_name not in BUILTIN_PROFILES:
        raise ValueError(
            "Unknown profile: '{}'. Available: {}".format(profile_name, ", ".join(sorted(BUILTIN_PROFILES.keys())))
        )

    profile = BUILTIN_PROFILES[profile_name]

    merged_rules: dict[str, dict] = {}
    parent_name = profile.get("extends")
    if parent_name:
        for ov in resolve_profile(parent_name):
            merged_rules[ov["id"]] = dict(ov)

    if profile.get("exclusive"):
        for rule in BUILTIN_RULES:
            merged_rules.setdefault(rule.id, {"id": rule.id})["enabled"] = False

    for rule_id, overrides in profile.get("rules", {}).items():
        merged_rules.setdefault(rule_id, {"id": rule_id}).update(overrides)

    return list(merged_rules.values())


def list_profiles() -> list[dict]:
    """Return a list of available profile summaries."""
    return [
        {
            "name": name,
            "description": prof.get("description", ""),
            "extends": prof.get("extends"),
            "rule_count": len(prof.get("rules", {})),
        }
        for name, prof in sorted(BUILTIN_PROFILES.items())
    ]
