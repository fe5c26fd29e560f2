"""Translation of compiler diagnostics into editor protocol diagnostics."""

from __future__ import annotations

import logging

from lsprotocol import types as lsp

from sollsp.errors import DiagnosticRecord, Level
from sollsp.file_cache import FileCache
from sollsp.sema import Namespace
from sollsp.source import Span, offset_to_position

logger = logging.getLogger("sollsp.diagnostics")

DIAGNOSTIC_SOURCE = "solidity"

# Debug-level records are never shown in the editor.
_SEVERITY_MAP = {
    Level.INFO: lsp.DiagnosticSeverity.Information,
    Level.WARNING: lsp.DiagnosticSeverity.Warning,
    Level.ERROR: lsp.DiagnosticSeverity.Error,
}


def span_to_range(text: str, span: Span) -> lsp.Range:
    """Convert an offset span into a zero-based protocol range."""
    start = offset_to_position(text, span.start)
    end = offset_to_position(text, span.end)
    return lsp.Range(
        start=lsp.Position(line=start.line, character=start.column),
        end=lsp.Position(line=end.line, character=end.column),
    )


def translate(file_text: str, diag: DiagnosticRecord) -> lsp.Diagnostic | None:
    """Convert one compiler diagnostic, or None if it cannot be shown."""
    severity = _SEVERITY_MAP.get(diag.level)
    if severity is None or diag.pos is None:
        return None
    return lsp.Diagnostic(
        range=span_to_range(file_text, diag.pos),
        severity=severity,
        message=diag.message,
        source=DIAGNOSTIC_SOURCE,
    )


def translate_all(
    ns: Namespace, file_cache: FileCache, file_no: int | None = None,
) -> list[lsp.Diagnostic]:
    """Translate every displayable diagnostic of a compile.

    Each diagnostic is positioned against the text of its own file. With
    *file_no* set, diagnostics located in other files are left out.
    """
    result: list[lsp.Diagnostic] = []
    for diag in ns.diagnostics:
        if diag.pos is None:
            logger.debug("dropping diagnostic without location: %s", diag.message)
            continue
        if file_no is not None and diag.pos.file_no != file_no:
            continue
        try:
            text = file_cache.get_file_contents(ns.files[diag.pos.file_no])
        except (IndexError, OSError, UnicodeDecodeError):
            logger.debug("dropping diagnostic in unknown file: %s", diag.message)
            continue
        translated = translate(text, diag)
        if translated is not None:
            result.append(translated)
    return result
