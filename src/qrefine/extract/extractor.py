"""Locate SQL fragments embedded in host-language source text."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from qrefine.extract.strategies import Provenance, Span, strategies_for
from qrefine.extract.validate import validate_sql
from qrefine.languages import normalize_language
from qrefine.sql.positions import PositionMapper, Range

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExtractedSnippet:
    """A candidate query; ``range``/``start``/``end`` cover its host content."""

    query: str
    range: Range
    provenance: Provenance
    confidence: int
    start: int
    end: int
    language: str | None = None

    @property
    def fixable(self) -> bool:
        return self.provenance is Provenance.COMPLETE

    def to_dict(self) -> dict:
        return {
            "query": self.query,
            "range": self.range.to_dict(),
            "provenance": self.provenance.value,
            "confidence": self.confidence,
            "language": self.language,
        }


def _key(span: Span) -> str:
    return span.query.strip().upper()


def _superseded(snippet: ExtractedSnippet, span: Span) -> bool:
    return span.start <= snippet.start and snippet.end <= span.end


def extract(host_text: str, language: str | None = None) -> list[ExtractedSnippet]:
    """Return the SQL snippets found in *host_text*, sorted by position.

    Candidates from every pass are validated in pass order (language passes
    first). A candidate is dropped when an earlier admitted snippet has the
    same normalized query or starts at the same offset, since two passes
    then matched the same literal. Concatenation chains are the exception:
    an admitted chain replaces the single-literal snippets it covers.
    """
    language = normalize_language(language)
    mapper = PositionMapper(host_text)

    seen: set[str] = set()
    claimed: set[int] = set()
    snippets: list[ExtractedSnippet] = []
    for strategy in strategies_for(language):
        for span in strategy(host_text):
            key = _key(span)
            chain = span.provenance is Provenance.DYNAMIC
            if not key or key in seen or (span.start in claimed and not chain):
                continue
            check = validate_sql(span.query, span.threshold)
            if not check.is_valid:
                continue
            if chain:
                for old in [s for s in snippets if _superseded(s, span)]:
                    snippets.remove(old)
                    seen.discard(old.query.strip().upper())
            seen.add(key)
            claimed.add(span.start)
            snippets.append(
                ExtractedSnippet(
                    query=span.query,
                    range=mapper.range(span.start, span.end),
                    provenance=span.provenance,
                    confidence=check.confidence,
                    start=span.start,
                    end=span.end,
                    language=language,
                )
            )

    snippets.sort(key=lambda s: s.start)
    log.debug("extracted %d snippets (language=%s)", len(snippets), language)
    return snippets
