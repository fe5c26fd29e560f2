"""File contents for one compile request, resolved through import paths."""

from __future__ import annotations

import logging
from pathlib import Path

logger = logging.getLogger("sollsp.file_cache")


class FileCache:
    """Reads and caches source files for a single compiler invocation.

    A fresh cache is built per request; nothing is shared between requests.
    ``set_file_contents`` overlays text that is not on disk yet, such as an
    unsaved editor buffer.
    """

    def __init__(self) -> None:
        self._import_paths: list[Path] = []
        self._contents: dict[str, str] = {}

    @property
    def import_paths(self) -> list[Path]:
        return list(self._import_paths)

    def add_import_path(self, path: Path) -> None:
        path = Path(path)
        if path not in self._import_paths:
            self._import_paths.append(path)

    def set_file_contents(self, name: str, contents: str) -> None:
        self._contents[name] = contents

    def resolve(self, name: str) -> Path | None:
        """Find *name* as an absolute path or under an import path."""
        candidate = Path(name)
        if candidate.is_absolute():
            return candidate if candidate.is_file() else None
        for root in self._import_paths:
            resolved = root / candidate
            if resolved.is_file():
                return resolved
        return None

    def get_file_contents(self, name: str) -> str:
        """Return the text of *name*.

        Raises FileNotFoundError when no import path has it and
        UnicodeDecodeError when it is not UTF-8.
        """
        if name in self._contents:
            return self._contents[name]
        path = self.resolve(name)
        if path is None:
            raise FileNotFoundError(f"{name} not found in import paths")
        logger.debug("reading %s", path)
        text = path.read_text(encoding="utf-8")
        self._contents[name] = text
        return text
