"""Rule and suggestion model shared by the catalog, engine and coordinator."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Callable, Union

from qrefine.sql.positions import Position, PositionMapper, Range
from qrefine.sql.tokenizer import Token


class Severity(str, Enum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"

    @property
    def rank(self) -> int:
        return _SEVERITY_RANK[self]


_SEVERITY_RANK = {Severity.INFO: 0, Severity.WARNING: 1, Severity.ERROR: 2}


# Literal replacement text for the suggestion range, or text -> corrected text.
Fix = Union[str, Callable[[str], str]]


@dataclass(frozen=True)
class Suggestion:
    """One finding produced by a single rule invocation."""

    message: str
    code: str
    severity: Severity
    range: Range
    fix: Fix | None = field(default=None, compare=False, repr=False)
    rule_id: str = ""
    fix_title: str | None = None
    provenance: str | None = None

    @property
    def has_fix(self) -> bool:
        return self.fix is not None

    @property
    def fixable(self) -> bool:
        """True when applying ``fix`` is reliable for the analyzed text."""
        return self.fix is not None and self.provenance in (None, "complete")

    def translated(self, origin: Position, provenance: str | None = None) -> Suggestion:
        return replace(self, range=self.range.shift(origin), provenance=provenance or self.provenance)

    def to_dict(self) -> dict:
        return {
            "code": self.code,
            "rule": self.rule_id,
            "severity": self.severity.value,
            "message": self.message,
            "range": self.range.to_dict(),
            "fix_title": self.fix_title,
            "has_fix": self.has_fix,
            "provenance": self.provenance,
        }


@dataclass(frozen=True)
class Finding:
    """Raw match reported by a check function, in character offsets."""

    start: int
    end: int
    message: str
    fix: Fix | None = None
    fix_title: str | None = None


def make_finding(start, end, message, fix=None, fix_title=None):
    """Return a standard finding."""
    return Finding(start=start, end=end, message=message, fix=fix, fix_title=fix_title)


CheckFn = Callable[[str, "list[Token]", PositionMapper], "list[Finding]"]


@dataclass
class Rule:
    """A single stateless detection rule.

    The check function must be pure: the same text and tokens always yield
    the same findings. ``apply`` turns those findings into suggestions
    carrying this rule's code and (possibly overridden) severity.
    """

    id: str
    code: str
    severity: Severity
    description: str
    _fn: CheckFn | None = field(default=None, repr=False)
    enabled: bool = True

    def apply(self, text: str, tokens: list[Token], mapper: PositionMapper | None = None) -> list[Suggestion]:
        if self._fn is None:
            return []
        if mapper is None:
            mapper = PositionMapper(text)
        return [
            Suggestion(
                message=f.message,
                code=self.code,
                severity=self.severity,
                range=mapper.range(f.start, f.end),
                fix=f.fix,
                rule_id=self.id,
                fix_title=f.fix_title,
            )
            for f in self._fn(text, tokens, mapper)
        ]

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "code": self.code,
            "severity": self.severity.value,
            "description": self.description,
            "enabled": self.enabled,
        }


def replace_span(start: int, end: int, replacement: str) -> Callable[[str], str]:
    """Fix closure replacing ``text[start:end]``; offsets are bound now."""

    def _fix(text: str) -> str:
        return text[:start] + replacement + text[end:]

    return _fix


def insert_at(offset: int, insertion: str) -> Callable[[str], str]:
    return replace_span(offset, offset, insertion)
