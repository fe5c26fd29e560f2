"""Solidity language server: diagnostics and hover over a resolved program."""

__version__ = "0.1.0"
