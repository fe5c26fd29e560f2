"""TOML config loading for sollsp.toml."""

from __future__ import annotations

import tomllib
from dataclasses import dataclass, field
from pathlib import Path

from sollsp.compiler import Target

CONFIG_NAME = "sollsp.toml"


@dataclass
class CompilerConfig:
    solc: str | None = None  # None searches PATH
    target: Target = Target.EWASM
    import_paths: list[Path] = field(default_factory=list)
    timeout: float = 60


@dataclass
class ServerConfig:
    use_editor_buffer: bool = True


@dataclass
class SolLspConfig:
    compiler: CompilerConfig = field(default_factory=CompilerConfig)
    server: ServerConfig = field(default_factory=ServerConfig)


def find_config(start_path: Path | None = None) -> Path:
    """Walk up directories to find sollsp.toml. Raises FileNotFoundError."""
    path = (start_path or Path.cwd()).resolve()
    if path.is_file():
        path = path.parent
    while True:
        candidate = path / CONFIG_NAME
        if candidate.exists():
            return candidate
        parent = path.parent
        if parent == path:
            raise FileNotFoundError(f"No {CONFIG_NAME} found in any parent directory")
        path = parent


def load_config(path: Path) -> SolLspConfig:
    """Parse a sollsp.toml file into a SolLspConfig.

    Relative import paths are taken relative to the config file.
    Raises ValueError for an unknown compiler target.
    """
    with open(path, "rb") as f:
        data = tomllib.load(f)

    config = SolLspConfig()

    if "compiler" in data:
        comp = data["compiler"]
        config.compiler = CompilerConfig(
            solc=comp.get("solc"),
            target=Target(comp.get("target", Target.EWASM.value)),
            import_paths=[path.parent / p for p in comp.get("import_paths", [])],
            timeout=comp.get("timeout", 60),
        )

    if "server" in data:
        srv = data["server"]
        config.server = ServerConfig(
            use_editor_buffer=srv.get("use_editor_buffer", True),
        )

    return config


def config_for(start_path: Path | None = None) -> SolLspConfig:
    """Load the nearest sollsp.toml, or defaults when there is none."""
    try:
        return load_config(find_config(start_path))
    except FileNotFoundError:
        return SolLspConfig()
