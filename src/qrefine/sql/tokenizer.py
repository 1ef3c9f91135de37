"""Lenient SQL tokenizer.

Turns arbitrary text into a positioned token stream. It never raises:
unterminated strings and comments run to end of input and characters
outside the recognised alphabet become single-character ``UNKNOWN``
tokens, so partially typed SQL still produces usable diagnostics.

Every character of the input belongs to exactly one token (whitespace and
comments included), so ``"".join(t.text for t in tokens) == text``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum

from qrefine.sql.positions import Position, Range


class TokenKind(str, Enum):
    KEYWORD = "keyword"
    IDENTIFIER = "identifier"
    STRING = "string"
    NUMBER = "number"
    OPERATOR = "operator"
    PUNCTUATION = "punctuation"
    COMMENT = "comment"
    WHITESPACE = "whitespace"
    UNKNOWN = "unknown"


# Shared across dialects on purpose; rules only rely on a handful of these.
KEYWORDS = frozenset(
    {
        "select", "from", "where", "insert", "into", "values", "update", "set",
        "delete", "truncate", "join", "left", "right", "inner", "outer", "full",
        "cross", "natural", "on", "using", "group", "by", "order", "having",
        "limit", "offset", "union", "all", "distinct", "as", "and", "or", "not",
        "in", "exists", "null", "is", "like", "between", "case", "when", "then",
        "else", "end", "with", "create", "table", "drop", "alter", "index",
        "view",
    }
)

_PUNCTUATION = frozenset(";,)")
_OPERATORS = frozenset("()[],;.*=<>!+-/%|&^~:?")
_DIGITS = frozenset("0123456789")
_NUMBER_CHARS = frozenset("0123456789.")
_IDENT_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")


@dataclass(frozen=True)
class Token:
    kind: TokenKind
    text: str
    start_line: int
    start_column: int
    end_line: int
    end_column: int
    start: int
    end: int

    @property
    def lower(self) -> str:
        return self.text.lower()

    @property
    def is_trivia(self) -> bool:
        return self.kind in (TokenKind.WHITESPACE, TokenKind.COMMENT)

    @property
    def range(self) -> Range:
        return Range(
            Position(self.start_line, self.start_column),
            Position(self.end_line, self.end_column),
        )

    def is_keyword(self, *words: str) -> bool:
        return self.kind is TokenKind.KEYWORD and self.text.lower() in words

    def to_dict(self) -> dict:
        return {
            "kind": self.kind.value,
            "text": self.text,
            "start_line": self.start_line,
            "start_column": self.start_column,
            "end_line": self.end_line,
            "end_column": self.end_column,
        }


def _advance(line: int, column: int, chunk: str) -> tuple[int, int]:
    newlines = chunk.count("\n")
    if not newlines:
        return line, column + len(chunk)
    return line + newlines, len(chunk) - chunk.rfind("\n") - 1


def _scan(text: str, pos: int) -> tuple[TokenKind, int]:
    """Return the kind and end offset of the token starting at *pos*."""
    n = len(text)
    c = text[pos]

    if c.isspace():
        end = pos + 1
        while end < n and text[end].isspace():
            end += 1
        return TokenKind.WHITESPACE, end

    if text.startswith("--", pos):
        end = text.find("\n", pos)
        return TokenKind.COMMENT, n if end == -1 else end

    if text.startswith("/*", pos):
        end = text.find("*/", pos + 2)
        return TokenKind.COMMENT, n if end == -1 else end + 2

    if c == "'" or c == '"':
        # No escape handling: the next identical quote closes the literal.
        end = text.find(c, pos + 1)
        return TokenKind.STRING, n if end == -1 else end + 1

    if c in _DIGITS:
        end = pos + 1
        while end < n and text[end] in _NUMBER_CHARS:
            end += 1
        return TokenKind.NUMBER, end

    if c in _OPERATORS:
        kind = TokenKind.PUNCTUATION if c in _PUNCTUATION else TokenKind.OPERATOR
        return kind, pos + 1

    m = _IDENT_RE.match(text, pos)
    if m:
        word = m.group(0).lower()
        kind = TokenKind.KEYWORD if word in KEYWORDS else TokenKind.IDENTIFIER
        return kind, m.end()

    return TokenKind.UNKNOWN, pos + 1


def tokenize(text: str) -> list[Token]:
    """Split *text* into tokens with zero-based line/column positions."""
    tokens: list[Token] = []
    pos = 0
    line = 0
    column = 0
    n = len(text)

    while pos < n:
        kind, end = _scan(text, pos)
        chunk = text[pos:end]
        end_line, end_column = _advance(line, column, chunk)
        tokens.append(Token(kind, chunk, line, column, end_line, end_column, pos, end))
        pos, line, column = end, end_line, end_column

    return tokens


def significant(tokens: list[Token]) -> list[Token]:
    """Drop whitespace and comment tokens."""
    return [t for t in tokens if not t.is_trivia]
