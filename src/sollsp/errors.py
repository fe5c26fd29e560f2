"""Compiler diagnostics and Rust-style colored rendering."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from sollsp.source import line_at, offset_to_position

if TYPE_CHECKING:
    from sollsp.source import Span


class Level(Enum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    DEBUG = "debug"


# ANSI color codes
_COLORS = {
    Level.ERROR: "\033[1;31m",    # bold red
    Level.WARNING: "\033[1;33m",  # bold yellow
    Level.INFO: "\033[1;36m",     # bold cyan
    Level.DEBUG: "\033[2m",       # dim
}
_BOLD = "\033[1m"
_BLUE = "\033[1;34m"
_RESET = "\033[0m"


@dataclass(frozen=True)
class DiagnosticRecord:
    """A diagnostic as reported by the compiler.

    ``pos`` is None when the compiler could not attach a location.
    """

    level: Level
    message: str
    pos: Span | None = None


class DiagnosticRenderer:
    """Renders compiler diagnostics in Rust-style format with colors."""

    def __init__(self, *, color: bool = True) -> None:
        self.color = color

    def _c(self, code: str) -> str:
        return code if self.color else ""

    def render(self, diag: DiagnosticRecord, filename: str = "", text: str = "") -> str:
        lines: list[str] = []
        color = _COLORS[diag.level]

        # Header: error: message
        lines.append(
            f"{self._c(color)}{diag.level.value}{self._c(_RESET)}"
            f"{self._c(_BOLD)}: {diag.message}{self._c(_RESET)}"
        )

        if diag.pos is None:
            return "\n".join(lines)

        start = offset_to_position(text, diag.pos.start)
        end = offset_to_position(text, diag.pos.end)
        loc = f"{filename}:{start.line + 1}:{start.column + 1}"
        lines.append(f"  {self._c(_BLUE)}-->{self._c(_RESET)} {loc}")
        lines.append(f"  {self._c(_BLUE)}   |{self._c(_RESET)}")

        gutter = f"{start.line + 1:>4}"
        source_line = line_at(text, start.line)
        if source_line is not None:
            lines.append(
                f"  {self._c(_BLUE)}{gutter} |{self._c(_RESET)} {source_line}"
            )

            # Carets only for single-line spans
            if start.line == end.line:
                caret_len = max(1, end.column - start.column)
                padding = " " * start.column
                carets = "^" * caret_len
                lines.append(
                    f"  {self._c(_BLUE)}   |{self._c(_RESET)} "
                    f"{padding}{self._c(color)}{carets}{self._c(_RESET)}"
                )

        return "\n".join(lines)


class CompilerError(Exception):
    """Raised when the external compiler cannot be run or its output read."""

    def __init__(self, message: str, stderr: str = "") -> None:
        self.stderr = stderr
        super().__init__(message)
