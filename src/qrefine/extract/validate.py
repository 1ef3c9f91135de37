"""SQL-likeness scoring for candidate string contents."""

from __future__ import annotations

import re
from dataclasses import dataclass

SQL_STARTERS = ("SELECT", "INSERT", "UPDATE", "DELETE", "WITH", "CREATE", "ALTER", "DROP", "TRUNCATE")

COMPLETE_THRESHOLD = 40
LOW_TRUST_THRESHOLD = 30

_STARTER_RE = re.compile(r"^(?:%s)\b" % "|".join(SQL_STARTERS))
_IMPORT_RE = re.compile(r"\b(?:IMPORT|REQUIRE)\b")
_URL_RE = re.compile(r"^[A-Z][A-Z0-9+.\-]*://")


def _has(upper: str, word: str) -> bool:
    return re.search(r"\b%s\b" % word, upper) is not None


@dataclass(frozen=True)
class Validation:
    confidence: int
    is_valid: bool


def score_sql(content: str) -> int:
    """Confidence in [0, 100] that *content* is a SQL statement."""
    upper = content.strip().upper()
    if not _STARTER_RE.match(upper):
        return 0

    score = 50
    if (_has(upper, "SELECT") or _has(upper, "WITH")) and _has(upper, "FROM"):
        score += 30
    if _has(upper, "INSERT") and _has(upper, "INTO"):
        score += 30
    if _has(upper, "UPDATE") and _has(upper, "SET"):
        score += 30
    if _has(upper, "WHERE"):
        score += 10
    if _has(upper, "JOIN"):
        score += 10
    if re.search(r"\bORDER\s+BY\b", upper):
        score += 5
    if re.search(r"\bGROUP\s+BY\b", upper):
        score += 5
    if _IMPORT_RE.search(upper) or _URL_RE.match(upper):
        score -= 50
    return max(0, min(100, score))


def validate_sql(content: str, threshold: int = COMPLETE_THRESHOLD) -> Validation:
    """Score *content* and admit it when the score reaches *threshold*."""
    confidence = score_sql(content)
    return Validation(confidence=confidence, is_valid=confidence > 0 and confidence >= threshold)
