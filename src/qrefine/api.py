"""Programmatic Python API.

Stable entry points for editors, relays and other callers that consume
suggestions and snippets directly::

    from qrefine.api import analyze

    for s in analyze({"text": "SELECT * FROM users"}):
        print(s.code, s.severity.value, s.range.start)
"""

from __future__ import annotations

from qrefine.analyzer import FileReport, HostUnit, SqlUnit, analyze, analyze_file, analyze_host, analyze_sql
from qrefine.capture import CapturedQuery, QueryCapture, intercept_query
from qrefine.extract.extractor import ExtractedSnippet, extract
from qrefine.extract.strategies import Provenance, register_strategy
from qrefine.fixes import FixResult, NotFixableError, apply_fix, apply_snippet_fix, fix_all
from qrefine.rules.base import Rule, Severity, Suggestion
from qrefine.rules.engine import EvaluationResult, RuleFailure, evaluate, evaluate_rules
from qrefine.sql.tokenizer import Token, TokenKind, tokenize

extract_snippets = extract

__all__ = [
    "CapturedQuery",
    "EvaluationResult",
    "ExtractedSnippet",
    "FileReport",
    "FixResult",
    "HostUnit",
    "NotFixableError",
    "Provenance",
    "QueryCapture",
    "Rule",
    "RuleFailure",
    "Severity",
    "SqlUnit",
    "Suggestion",
    "Token",
    "TokenKind",
    "analyze",
    "analyze_file",
    "analyze_host",
    "analyze_sql",
    "apply_fix",
    "apply_snippet_fix",
    "evaluate",
    "evaluate_rules",
    "extract",
    "extract_snippets",
    "fix_all",
    "intercept_query",
    "register_strategy",
    "tokenize",
]
