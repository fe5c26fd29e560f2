"""Boundary to the external Solidity compiler."""

from __future__ import annotations

import json
import logging
import shutil
import subprocess
from enum import Enum
from typing import Protocol

from sollsp.errors import CompilerError
from sollsp.file_cache import FileCache
from sollsp.sema import Namespace
from sollsp.solc_ast import namespace_from_output

logger = logging.getLogger("sollsp.compiler")


class Target(Enum):
    EWASM = "ewasm"
    SUBSTRATE = "substrate"
    SOLANA = "solana"


class Compiler(Protocol):
    """Parses and resolves a file, returning diagnostics and the program."""

    def parse_and_resolve(
        self, filename: str, file_cache: FileCache, target: Target,
    ) -> Namespace: ...


def find_solc() -> str | None:
    """Search PATH for a solc binary."""
    for name in ("solc", "solc-static-linux"):
        if shutil.which(name):
            return name
    return None


class SolcCompiler:
    """Runs ``solc --standard-json`` and reads back diagnostics and ASTs.

    solc has a single code generator, so the target is ignored.
    """

    def __init__(self, solc: str | None = None, *, timeout: float = 60) -> None:
        self.solc = solc
        self.timeout = timeout

    def _command(self, file_cache: FileCache) -> list[str]:
        solc = self.solc or find_solc()
        if solc is None:
            raise CompilerError("no solc compiler found (install solc or set [compiler] solc)")

        cmd = [solc, "--standard-json"]
        roots = file_cache.import_paths
        if roots:
            cmd.extend(["--base-path", str(roots[0])])
            for root in roots[1:]:
                cmd.extend(["--include-path", str(root)])
            cmd.extend(["--allow-paths", ",".join(str(r) for r in roots)])
        return cmd

    def parse_and_resolve(
        self, filename: str, file_cache: FileCache, target: Target,
    ) -> Namespace:
        cmd = self._command(file_cache)
        request = {
            "language": "Solidity",
            "sources": {filename: {"content": file_cache.get_file_contents(filename)}},
            "settings": {"outputSelection": {"*": {"": ["ast"]}}},
        }
        logger.debug("running %s for %s (target %s)", " ".join(cmd), filename, target.value)

        try:
            result = subprocess.run(
                cmd,
                input=json.dumps(request),
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except FileNotFoundError:
            raise CompilerError(f"solc compiler '{cmd[0]}' not found")
        except subprocess.TimeoutExpired:
            raise CompilerError("solc timed out")

        try:
            output = json.loads(result.stdout)
        except json.JSONDecodeError:
            raise CompilerError(
                f"solc produced unreadable output (exit {result.returncode})",
                stderr=result.stderr,
            )

        return namespace_from_output(output, file_cache)
