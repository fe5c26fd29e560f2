"""Source spans and conversion between offsets and line/column positions.

The compiler front-end reports locations as offsets into a file's text
while the editor protocol speaks in zero-based (line, column) pairs.
Columns count characters, so multi-byte text keeps correct positions.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import NamedTuple


class SourcePosition(NamedTuple):
    """A zero-based line/column pair."""

    line: int
    column: int


@dataclass(frozen=True)
class Span:
    """An inclusive offset range within one file of the compiler's file table."""

    file_no: int
    start: int
    end: int

    def contains(self, offset: int) -> bool:
        return self.start <= offset <= self.end

    def __str__(self) -> str:
        return f"{self.file_no}:{self.start}..{self.end}"


def offset_to_position(text: str, offset: int) -> SourcePosition:
    """Convert an offset into a line/column pair.

    Offsets outside ``[0, len(text)]`` are clamped. ``len(text)`` maps to
    the position one past the last character of the final line.
    """
    offset = max(0, min(offset, len(text)))
    line = text.count("\n", 0, offset)
    line_start = text.rfind("\n", 0, offset) + 1
    return SourcePosition(line, offset - line_start)


def position_to_offset(text: str, line: int, column: int) -> int:
    """Convert a line/column pair back into an offset.

    A line past the end of the text clamps to ``len(text)``; a column past
    the end of its line clamps to the end of that line.
    """
    line_start = 0
    for _ in range(line):
        newline = text.find("\n", line_start)
        if newline == -1:
            return len(text)
        line_start = newline + 1

    line_end = text.find("\n", line_start)
    if line_end == -1:
        line_end = len(text)
    return line_start + min(max(column, 0), line_end - line_start)


def line_at(text: str, line: int) -> str | None:
    """Return the zero-based line, or None if out of range."""
    lines = text.split("\n")
    if 0 <= line < len(lines):
        return lines[line]
    return None
