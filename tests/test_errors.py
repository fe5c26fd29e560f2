"""Tests for diagnostic records and terminal rendering."""

from __future__ import annotations

from sollsp.errors import CompilerError, DiagnosticRecord, DiagnosticRenderer, Level
from sollsp.source import Span

TEXT = "contract C {\n  uint256 total;\n}\n"


class TestRenderer:
    def test_plain_single_line(self):
        diag = DiagnosticRecord(Level.WARNING, "unused variable", Span(0, 23, 28))
        out = DiagnosticRenderer(color=False).render(diag, "C.sol", TEXT)
        assert out.splitlines() == [
            "warning: unused variable",
            "  --> C.sol:2:11",
            "     |",
            "     2 |   uint256 total;",
            "     | " + " " * 10 + "^^^^^",
        ]

    def test_without_location(self):
        diag = DiagnosticRecord(Level.ERROR, "Stack too deep")
        out = DiagnosticRenderer(color=False).render(diag, "C.sol", TEXT)
        assert out == "error: Stack too deep"

    def test_multiline_span_has_no_carets(self):
        diag = DiagnosticRecord(Level.INFO, "contract", Span(0, 0, 31))
        out = DiagnosticRenderer(color=False).render(diag, "C.sol", TEXT)
        assert "^" not in out
        assert "  --> C.sol:1:1" in out

    def test_color_codes(self):
        diag = DiagnosticRecord(Level.ERROR, "bad", Span(0, 0, 8))
        colored = DiagnosticRenderer().render(diag, "C.sol", TEXT)
        assert "\033[1;31m" in colored
        assert "\033[" not in DiagnosticRenderer(color=False).render(diag, "C.sol", TEXT)


class TestCompilerError:
    def test_keeps_stderr(self):
        err = CompilerError("solc failed", stderr="Segmentation fault")
        assert str(err) == "solc failed"
        assert err.stderr == "Segmentation fault"
