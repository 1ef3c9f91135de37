"""Composed analysis entry points.

Standalone SQL is tokenized and evaluated in document coordinates. Host
source text goes through the extractor first; each snippet's query is
tokenized and evaluated on its own, then every suggestion range is shifted
back into host coordinates by the snippet's start position.

Remapping is exact for snippets whose content starts on one physical line
and carries no placeholders. After the first interpolation in a templated
snippet, columns drift by the length difference of the replaced
expression.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Union

from qrefine.extract.extractor import ExtractedSnippet, extract
from qrefine.languages import SQL, get_language_for_file, normalize_language
from qrefine.rules.base import Rule, Suggestion
from qrefine.rules.engine import EvaluationResult, RuleFailure, evaluate
from qrefine.sql.tokenizer import tokenize

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class SqlUnit:
    text: str


@dataclass(frozen=True)
class HostUnit:
    host_text: str
    language: str | None = None


Unit = Union[SqlUnit, HostUnit, Mapping]


@dataclass
class FileReport:
    """Analysis of one file on disk."""

    path: str
    language: str | None
    suggestions: list[Suggestion] = field(default_factory=list)
    snippets: list[ExtractedSnippet] = field(default_factory=list)
    failures: list[RuleFailure] = field(default_factory=list)

    @property
    def standalone(self) -> bool:
        return self.language == SQL

    def to_dict(self) -> dict:
        return {
            "path": self.path,
            "language": self.language,
            "suggestions": [s.to_dict() for s in self.suggestions],
            "snippets": [s.to_dict() for s in self.snippets],
            "failures": [f.to_dict() for f in self.failures],
        }


def _coerce(unit: Unit) -> SqlUnit | HostUnit:
    if isinstance(unit, (SqlUnit, HostUnit)):
        return unit
    if isinstance(unit, Mapping):
        if "host_text" in unit:
            return HostUnit(unit["host_text"], unit.get("language") or unit.get("language_hint"))
        if "text" in unit:
            return SqlUnit(unit["text"])
    raise TypeError(f"cannot analyze {type(unit).__name__}: expected SqlUnit, HostUnit or a mapping with text/host_text")


def evaluate_sql(text: str, rules: list[Rule] | None = None, max_workers: int = 0) -> EvaluationResult:
    return evaluate(text, tokenize(text), rules, max_workers=max_workers)


def evaluate_host(
    host_text: str,
    language: str | None = None,
    rules: list[Rule] | None = None,
    max_workers: int = 0,
) -> tuple[EvaluationResult, list[ExtractedSnippet]]:
    """Evaluate every embedded snippet; suggestions are in host coordinates."""
    snippets = extract(host_text, language)
    result = EvaluationResult()
    for snippet in snippets:
        local = evaluate(snippet.query, tokenize(snippet.query), rules, max_workers=max_workers)
        origin = snippet.range.start
        result.suggestions.extend(s.translated(origin, snippet.provenance.value) for s in local.suggestions)
        result.failures.extend(local.failures)
    return result, snippets


def analyze_sql(text: str, rules: list[Rule] | None = None) -> list[Suggestion]:
    """Suggestions for standalone SQL *text*."""
    return evaluate_sql(text, rules).suggestions


def analyze_host(host_text: str, language: str | None = None, rules: list[Rule] | None = None) -> list[Suggestion]:
    """Suggestions for SQL embedded in *host_text*, in snippet order."""
    result, _ = evaluate_host(host_text, language, rules)
    return result.suggestions


def analyze(unit: Unit, rules: list[Rule] | None = None) -> list[Suggestion]:
    """Analyze a ``SqlUnit``, a ``HostUnit`` or an equivalent mapping.

    ``{"text": ...}`` is standalone SQL; ``{"host_text": ..., "language": ...}``
    is host source text.
    """
    unit = _coerce(unit)
    if isinstance(unit, SqlUnit):
        return analyze_sql(unit.text, rules)
    return analyze_host(unit.host_text, unit.language, rules)


def analyze_file(
    path: str | Path,
    language: str | None = None,
    rules: list[Rule] | None = None,
    extensions: dict[str, str] | None = None,
    max_workers: int = 0,
) -> FileReport:
    """Read and analyze one file.

    The language comes from *language* or the file extension. ``sql``
    files are analyzed directly; anything else is treated as host text.
    """
    path = Path(path)
    text = path.read_text(encoding="utf-8", errors="replace")
    lang = normalize_language(language) or get_language_for_file(str(path), extensions)
    log.debug("analyzing %s as %s", path, lang or "unknown host")

    report = FileReport(path=str(path), language=lang)
    if lang == SQL:
        result = evaluate_sql(text, rules, max_workers=max_workers)
    else:
        result, report.snippets = evaluate_host(text, lang, rules, max_workers=max_workers)
    report.suggestions = result.suggestions
    report.failures = result.failures
    return report
