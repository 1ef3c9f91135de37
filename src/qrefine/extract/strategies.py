"""String-boundary strategies for locating embedded SQL.

A strategy is a pure function ``(text) -> list[Span]``. Common strategies
run for every host; language strategies are looked up in a table keyed by
language tag and run first. Add a dialect with ``register_strategy``
without touching the merge, dedupe and sort logic in the extractor.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Callable

from qrefine.extract.validate import COMPLETE_THRESHOLD, LOW_TRUST_THRESHOLD


class Provenance(str, Enum):
    """How reliably a snippet represents the SQL that will run."""

    COMPLETE = "complete"
    TEMPLATED = "templated"
    DYNAMIC = "dynamic"


@dataclass(frozen=True)
class Span:
    """Candidate query content located at ``text[start:end]``."""

    start: int
    end: int
    query: str
    provenance: Provenance = Provenance.COMPLETE
    threshold: int = COMPLETE_THRESHOLD


Strategy = Callable[[str], "list[Span]"]

MIN_WORDS = 4
MIN_CONCAT_SEGMENTS = 3
PLACEHOLDER = "?"

_QUOTED_RE = re.compile(r"([\"'`])(.*?)\1", re.S)
_TEMPLATE_EXPR_RE = re.compile(r"\$\{[^}]*\}")
_TRIPLE_RE = re.compile(r"(\"\"\"|''')(.*?)\1", re.S)
_FSTRING_RE = re.compile(r"(?<![A-Za-z0-9_])(?:[fF][rR]?|[rR][fF])(\"\"\"|'''|\"|')(.*?)\1", re.S)
_FSTRING_EXPR_RE = re.compile(r"(?<!\{)\{[^{}]*\}(?!\})")
_RAW_BACKTICK_RE = re.compile(r"`([^`]*)`")


def _word_count(content: str) -> int:
    return len(content.split())


# ---------------------------------------------------------------------------
# Common passes
# ---------------------------------------------------------------------------


def quoted_strings(text: str) -> list[Span]:
    """Generic ``"..."`` and backtick literals with at least four words.

    Single-quoted spans are skipped (mostly identifiers and paths), and
    interpolating backtick spans are left to ``template_literals``.
    """
    spans = []
    for m in _QUOTED_RE.finditer(text):
        quote, content = m.group(1), m.group(2)
        if quote == "'" or _word_count(content) < MIN_WORDS:
            continue
        if quote == "`" and "${" in content:
            continue
        spans.append(Span(m.start(2), m.end(2), content))
    return spans


def template_literals(text: str) -> list[Span]:
    """Backtick literals with ``${...}``; each interpolation becomes ``?``."""
    spans = []
    for m in _QUOTED_RE.finditer(text):
        if m.group(1) != "`" or "${" not in m.group(2):
            continue
        query = _TEMPLATE_EXPR_RE.sub(PLACEHOLDER, m.group(2))
        spans.append(Span(m.start(2), m.end(2), query, Provenance.TEMPLATED, LOW_TRUST_THRESHOLD))
    return spans


def concatenations(operator: str = "+") -> Strategy:
    """Build a pass for literal chains joined by *operator*.

    Operands between literals may be simple expressions
    (``"a " + name + " b"``). Chains need at least three literals; their
    contents are joined with a space.
    """
    op = re.escape(operator)
    gap_re = re.compile(r"\s*%s\s*(?:[\w.\[\]()$>-]+\s*%s\s*)*" % (op, op))

    def _pass(text: str) -> list[Span]:
        literals = list(_QUOTED_RE.finditer(text))
        spans = []
        chain: list[re.Match] = []

        def _flush():
            if len(chain) >= MIN_CONCAT_SEGMENTS:
                query = " ".join(m.group(2) for m in chain)
                spans.append(
                    Span(chain[0].start(2), chain[-1].end(2), query, Provenance.DYNAMIC, LOW_TRUST_THRESHOLD)
                )

        for m in literals:
            if chain and gap_re.fullmatch(text, chain[-1].end(), m.start()):
                chain.append(m)
                continue
            _flush()
            chain = [m]
        _flush()
        return spans

    return _pass


# ---------------------------------------------------------------------------
# Language passes
# ---------------------------------------------------------------------------


def triple_quoted(text: str) -> list[Span]:
    """Python triple-quoted strings and Java/Kotlin text blocks."""
    spans = []
    for m in _TRIPLE_RE.finditer(text):
        # f-strings belong to the f-string pass.
        if m.start() > 0 and text[m.start() - 1] in "fF":
            continue
        content = m.group(2)
        if _word_count(content) >= MIN_WORDS:
            spans.append(Span(m.start(2), m.end(2), content))
    return spans


def python_fstrings(text: str) -> list[Span]:
    """Python f-strings; ``{expr}`` fields become ``?`` placeholders."""
    spans = []
    for m in _FSTRING_RE.finditer(text):
        content = m.group(2)
        if _word_count(content) < MIN_WORDS:
            continue
        query, count = _FSTRING_EXPR_RE.subn(PLACEHOLDER, content)
        if count:
            spans.append(Span(m.start(2), m.end(2), query, Provenance.TEMPLATED, LOW_TRUST_THRESHOLD))
        else:
            spans.append(Span(m.start(2), m.end(2), content))
    return spans


def go_raw_strings(text: str) -> list[Span]:
    """Go raw string literals; backticks never interpolate in Go."""
    return [
        Span(m.start(1), m.end(1), m.group(1))
        for m in _RAW_BACKTICK_RE.finditer(text)
        if _word_count(m.group(1)) >= MIN_WORDS
    ]


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

_LANGUAGE_STRATEGIES: dict[str, list[Strategy]] = {}

_CONCAT_OPERATORS = {
    "php": ".",
}


def register_strategy(language: str, strategy: Strategy | None = None):
    """Register a language pass; usable as a plain call or a decorator."""

    def _register(fn: Strategy) -> Strategy:
        _LANGUAGE_STRATEGIES.setdefault(language, []).append(fn)
        return fn

    if strategy is not None:
        return _register(strategy)
    return _register


def strategies_for(language: str | None) -> list[Strategy]:
    """Language passes for *language* followed by the common passes."""
    passes = list(_LANGUAGE_STRATEGIES.get(language or "", []))
    passes.append(quoted_strings)
    passes.append(template_literals)
    passes.append(concatenations(_CONCAT_OPERATORS.get(language or "", "+")))
    return passes


register_strategy("python", python_fstrings)
register_strategy("python", triple_quoted)
register_strategy("java", triple_quoted)
register_strategy("kotlin", triple_quoted)
register_strategy("scala", triple_quoted)
register_strategy("go", go_raw_strings)
