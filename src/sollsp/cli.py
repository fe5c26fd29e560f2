"""sollsp command line: run the language server or query a file directly."""

from __future__ import annotations

import logging
from pathlib import Path

import click

from sollsp import __version__
from sollsp.config import config_for
from sollsp.errors import DiagnosticRenderer, Level
from sollsp.session import CompileResult, SessionDriver
from sollsp.source import position_to_offset


def _driver(path: Path) -> SessionDriver:
    return SessionDriver.from_config(config_for(path))


def _render_diagnostics(result: CompileResult, *, color: bool) -> bool:
    """Print every non-debug diagnostic. Returns True if any is an error."""
    renderer = DiagnosticRenderer(color=color)
    ns = result.namespace
    had_errors = False
    for diag in ns.diagnostics:
        if diag.level == Level.DEBUG:
            continue
        filename, text = result.filename, ""
        if diag.pos is not None and diag.pos.file_no < len(ns.files):
            filename = ns.files[diag.pos.file_no]
            try:
                text = result.file_cache.get_file_contents(filename)
            except (OSError, UnicodeDecodeError):
                text = ""
        click.echo(renderer.render(diag, filename, text), err=True)
        if diag.level == Level.ERROR:
            had_errors = True
    return had_errors


@click.group()
@click.version_option(__version__, prog_name="sollsp")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
def main(verbose: bool) -> None:
    """Solidity language server: diagnostics and hover."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


@main.command()
@click.option("--tcp", "tcp", nargs=2, type=(str, int), default=None,
              metavar="HOST PORT", help="Listen on TCP instead of stdio.")
def lsp(tcp: tuple[str, int] | None) -> None:
    """Start the Solidity language server."""
    from sollsp.lsp import main as lsp_main

    config = config_for(Path.cwd())
    lsp_main(config, tcp=tcp)


@main.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--no-color", is_flag=True, help="Disable colored output.")
def check(file: Path, no_color: bool) -> None:
    """Compile a Solidity file and report its diagnostics."""
    file = file.resolve()
    result = _driver(file).compile(file)
    if _render_diagnostics(result, color=not no_color):
        raise SystemExit(1)
    click.echo(f"checked {file.name}: no errors")


@main.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("line", type=int)
@click.argument("column", type=int)
@click.option("--all", "show_all", is_flag=True,
              help="List every index entry containing the position.")
def hover(file: Path, line: int, column: int, show_all: bool) -> None:
    """Describe what is at LINE:COLUMN (both zero-based)."""
    file = file.resolve()
    driver = _driver(file)

    if not show_all:
        click.echo(driver.hover(file, line, column).contents.value)
        return

    result = driver.compile(file)
    index = driver.source_index(result)
    offset = position_to_offset(result.text(), line, column)
    entries = index.entries_at(offset)
    if not entries:
        click.echo("no entries")
    for entry in entries:
        click.echo(f"{entry.span.start}..{entry.span.end}  {entry.description}")
