"""Apply suggestion fixes to SQL text and embedded snippets."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from qrefine.extract.extractor import ExtractedSnippet
from qrefine.rules.base import Rule, Suggestion
from qrefine.rules.engine import evaluate_rules
from qrefine.sql.positions import PositionMapper
from qrefine.sql.tokenizer import tokenize

log = logging.getLogger(__name__)

MAX_FIX_PASSES = 50


class NotFixableError(ValueError):
    """The suggestion has no fix, or its snippet cannot be rewritten safely."""


@dataclass
class FixResult:
    original: str
    text: str
    applied: list[Suggestion] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return self.text != self.original


def apply_fix(text: str, suggestion: Suggestion) -> str:
    """Return *text* with the suggestion's fix applied.

    A string fix replaces the suggestion range; a callable fix receives the
    whole text. Either way *text* must be the text the suggestion was
    produced from.
    """
    fix = suggestion.fix
    if fix is None:
        raise NotFixableError(f"{suggestion.code} has no fix")
    if callable(fix):
        return fix(text)
    mapper = PositionMapper(text)
    start = mapper.offset_at(suggestion.range.start)
    end = mapper.offset_at(suggestion.range.end)
    return text[:start] + fix + text[end:]


def _selected(suggestion: Suggestion, codes) -> bool:
    if not codes:
        return True
    return suggestion.code in codes or suggestion.rule_id in codes


def fix_all(
    text: str,
    rules: list[Rule] | None = None,
    codes: list[str] | set[str] | None = None,
    max_passes: int = MAX_FIX_PASSES,
) -> FixResult:
    """Apply fixes one at a time until no selected suggestion is fixable.

    The text is re-tokenized and re-evaluated after every fix so later
    fixes always see fresh offsets. A fix that leaves the text unchanged is
    skipped for the rest of the run.
    """
    result = FixResult(original=text, text=text)
    inert: set[tuple] = set()

    for _ in range(max_passes):
        current = result.text
        picked = None
        for s in evaluate_rules(current, tokenize(current), rules):
            if not s.has_fix or not _selected(s, codes):
                continue
            marker = (s.code, s.range)
            if marker in inert:
                continue
            new = apply_fix(current, s)
            if new == current:
                inert.add(marker)
                continue
            picked = (s, new)
            break
        if picked is None:
            break
        suggestion, result.text = picked
        result.applied.append(suggestion)
        log.debug("applied %s at %s", suggestion.code, suggestion.range.start)
    else:
        log.warning("stopped fixing after %d passes", max_passes)

    return result


def apply_snippet_fix(host_text: str, snippet: ExtractedSnippet, suggestion: Suggestion) -> str:
    """Rewrite one embedded snippet of *host_text* in place.

    *suggestion* is one produced for *snippet* by host analysis (its range
    in host coordinates). Only ``complete`` snippets are rewritten: the
    query of a templated or concatenated snippet is not the host text.
    """
    if not snippet.fixable:
        raise NotFixableError(f"{snippet.provenance.value} snippet cannot be fixed in place")
    if suggestion.fix is None:
        raise NotFixableError(f"{suggestion.code} has no fix")
    if not snippet.range.contains(suggestion.range):
        raise NotFixableError(f"{suggestion.code} does not belong to the snippet at {snippet.range.start}")

    if callable(suggestion.fix):
        new_query = suggestion.fix(snippet.query)
        return host_text[: snippet.start] + new_query + host_text[snippet.end :]
    return apply_fix(host_text, suggestion)
