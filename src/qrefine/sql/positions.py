"""Zero-based source positions and offset <-> line/column mapping."""

from __future__ import annotations

from bisect import bisect_right
from dataclasses import dataclass


@dataclass(frozen=True, order=True)
class Position:
    line: int
    column: int

    def to_dict(self) -> dict:
        return {"line": self.line, "column": self.column}


@dataclass(frozen=True)
class Range:
    """Half-open span ``[start, end)`` in line/column coordinates."""

    start: Position
    end: Position

    @classmethod
    def of(cls, start_line: int, start_column: int, end_line: int, end_column: int) -> Range:
        return cls(Position(start_line, start_column), Position(end_line, end_column))

    def shift(self, origin: Position) -> Range:
        """Translate a snippet-local range so that local (0, 0) lands on *origin*.

        The column offset only applies to positions on the snippet's first
        line; later lines keep their own columns.
        """
        return Range(_shift_position(self.start, origin), _shift_position(self.end, origin))

    def contains(self, other: Range) -> bool:
        return self.start <= other.start and other.end <= self.end

    def to_dict(self) -> dict:
        return {"start": self.start.to_dict(), "end": self.end.to_dict()}


def _shift_position(pos: Position, origin: Position) -> Position:
    if pos.line == 0:
        return Position(origin.line, origin.column + pos.column)
    return Position(origin.line + pos.line, pos.column)


class PositionMapper:
    """Converts character offsets of one text to positions and back."""

    def __init__(self, text: str):
        self.text = text
        self._line_starts = [0]
        start = text.find("\n")
        while start != -1:
            self._line_starts.append(start + 1)
            start = text.find("\n", start + 1)

    @property
    def line_count(self) -> int:
        return len(self._line_starts)

    def position_at(self, offset: int) -> Position:
        offset = max(0, min(offset, len(self.text)))
        line = bisect_right(self._line_starts, offset) - 1
        return Position(line, offset - self._line_starts[line])

    def offset_at(self, position: Position) -> int:
        if position.line < 0:
            return 0
        if position.line >= len(self._line_starts):
            return len(self.text)
        line_start = self._line_starts[position.line]
        if position.line + 1 < len(self._line_starts):
            line_end = self._line_starts[position.line + 1] - 1
        else:
            line_end = len(self.text)
        return min(line_start + max(position.column, 0), line_end)

    def range(self, start: int, end: int) -> Range:
        return Range(self.position_at(start), self.position_at(end))

    def slice(self, rng: Range) -> str:
        return self.text[self.offset_at(rng.start) : self.offset_at(rng.end)]
