"""Token-stream scanning helpers used by the built-in checks.

Checks work on the *significant* token list (trivia removed) so comments
and whitespace never break a match. Forward scans stop at statement
boundaries (``;``) to keep each finding inside its own statement.
"""

from __future__ import annotations

from qrefine.sql.tokenizer import Token, TokenKind, significant

__all__ = [
    "significant",
    "is_punct",
    "statement_end",
    "statements",
    "matching_paren",
    "previous_word",
]


def is_punct(token: Token, char: str) -> bool:
    return token.kind in (TokenKind.PUNCTUATION, TokenKind.OPERATOR) and token.text == char


def statement_end(sig: list[Token], i: int) -> int:
    """Index of the ``;`` ending the statement containing *i*, or ``len(sig)``."""
    j = i
    while j < len(sig):
        if is_punct(sig[j], ";"):
            return j
        j += 1
    return len(sig)


def statements(sig: list[Token]) -> list[tuple[int, int]]:
    """Split into ``(start, stop)`` index pairs; ``stop`` excludes the ``;``."""
    out = []
    start = 0
    for j, tok in enumerate(sig):
        if is_punct(tok, ";"):
            if j > start:
                out.append((start, j))
            start = j + 1
    if start < len(sig):
        out.append((start, len(sig)))
    return out


def matching_paren(sig: list[Token], i: int) -> int | None:
    """Index of the ``)`` closing the ``(`` at *i* (None when unbalanced)."""
    depth = 0
    for j in range(i, len(sig)):
        if is_punct(sig[j], "("):
            depth += 1
        elif is_punct(sig[j], ")"):
            depth -= 1
            if depth == 0:
                return j
        elif is_punct(sig[j], ";"):
            return None
    return None


def previous_word(sig: list[Token], i: int) -> str:
    """Lower-cased text of the significant token before *i* ('' at start)."""
    if i <= 0:
        return ""
    return sig[i - 1].lower
