"""Per-event orchestration: compile, translate diagnostics, answer hovers.

Every event compiles from scratch with its own file cache. Nothing is kept
between events, so concurrent requests never share state.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from urllib.parse import urlparse

from lsprotocol import types as lsp
from pygls.uris import to_fs_path

from sollsp.compiler import Compiler, SolcCompiler
from sollsp.config import SolLspConfig
from sollsp.diagnostics import translate_all
from sollsp.errors import CompilerError
from sollsp.file_cache import FileCache
from sollsp.index import SourceIndex
from sollsp.sema import Namespace
from sollsp.source import position_to_offset

logger = logging.getLogger("sollsp.session")

HOVER_UNRESOLVED = "unable to resolve the document to a local file"


def uri_to_path(uri: str) -> Path | None:
    """Local path of a ``file:`` URI, or None for any other URI."""
    if urlparse(uri).scheme != "file":
        return None
    path = to_fs_path(uri)
    return Path(path) if path else None


@dataclass
class CompileResult:
    """Outcome of one compile of one file."""

    filename: str
    file_cache: FileCache
    namespace: Namespace = field(default_factory=Namespace)

    @property
    def file_no(self) -> int | None:
        return self.namespace.file_no(self.filename)

    def text(self) -> str:
        """Text of the compiled file, or empty if it cannot be read."""
        try:
            return self.file_cache.get_file_contents(self.filename)
        except (OSError, UnicodeDecodeError):
            return ""


class SessionDriver:
    """Answers editor events by recompiling the affected file."""

    def __init__(self, compiler: Compiler, config: SolLspConfig | None = None) -> None:
        self.compiler = compiler
        self.config = config or SolLspConfig()

    @classmethod
    def from_config(cls, config: SolLspConfig) -> SessionDriver:
        compiler = SolcCompiler(config.compiler.solc, timeout=config.compiler.timeout)
        return cls(compiler, config)

    def compile(self, path: Path, overlay: str | None = None) -> CompileResult:
        """Compile *path*, importing relative to its directory.

        *overlay* replaces the file's on-disk text. A compiler failure is
        logged and gives an empty namespace, as does a file that cannot be
        read or decoded.
        """
        file_cache = FileCache()
        file_cache.add_import_path(path.parent)
        for import_path in self.config.compiler.import_paths:
            file_cache.add_import_path(import_path)
        if overlay is not None:
            file_cache.set_file_contents(path.name, overlay)

        result = CompileResult(path.name, file_cache)
        try:
            result.namespace = self.compiler.parse_and_resolve(
                path.name, file_cache, self.config.compiler.target,
            )
        except (CompilerError, OSError, UnicodeDecodeError) as e:
            logger.warning("compile of %s failed: %s", path, e)
        return result

    def diagnostics(self, path: Path, overlay: str | None = None) -> list[lsp.Diagnostic]:
        """Compile and return the diagnostics to publish for *path*."""
        result = self.compile(path, overlay)
        file_no = result.file_no
        if file_no is None:
            return []
        return translate_all(result.namespace, result.file_cache, file_no)

    def source_index(self, result: CompileResult) -> SourceIndex:
        file_no = result.file_no
        if file_no is None:
            return SourceIndex()
        return SourceIndex.build(result.namespace, file_no)

    def hover(
        self, path: Path, line: int, column: int, overlay: str | None = None,
    ) -> lsp.Hover:
        """Compile, index and describe the construct at (line, column)."""
        result = self.compile(path, overlay)
        index = self.source_index(result)
        offset = position_to_offset(result.text(), line, column)
        position = lsp.Position(line=line, character=column)
        return lsp.Hover(
            contents=lsp.MarkupContent(
                kind=lsp.MarkupKind.PlainText,
                value=index.lookup(offset),
            ),
            range=lsp.Range(start=position, end=position),
        )


def unresolved_hover() -> lsp.Hover:
    return lsp.Hover(
        contents=lsp.MarkupContent(kind=lsp.MarkupKind.PlainText, value=HOVER_UNRESOLVED),
    )
