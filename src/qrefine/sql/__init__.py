"""SQL lexical layer: positions and the lenient tokenizer."""

from qrefine.sql.positions import Position, PositionMapper, Range
from qrefine.sql.tokenizer import KEYWORDS, Token, TokenKind, significant, tokenize

__all__ = [
    "KEYWORDS",
    "Position",
    "PositionMapper",
    "Range",
    "Token",
    "TokenKind",
    "significant",
    "tokenize",
]
