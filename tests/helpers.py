"""Shared test helpers for building resolved trees by hand."""

from __future__ import annotations

from sollsp.compiler import Target
from sollsp.file_cache import FileCache
from sollsp.sema import (
    Function,
    FunctionKind,
    Literal,
    Namespace,
    Parameter,
    Stmt,
    VariableRef,
)
from sollsp.source import Span
from sollsp.types import UINT256, LiteralType, Type


def span(start: int, end: int, file_no: int = 0) -> Span:
    return Span(file_no, start, end)


def lit(value: str, start: int, end: int) -> Literal:
    return Literal(LiteralType("int_const", value), value, span(start, end))


def ref(name: str, start: int, end: int, ty: Type = UINT256) -> VariableRef:
    return VariableRef(ty, name, span(start, end))


def param(name: str, start: int, end: int, ty: Type = UINT256) -> Parameter:
    return Parameter(ty, name, span(start, end))


def func(
    start: int,
    end: int,
    body: list[Stmt] | None = None,
    *,
    kind: FunctionKind = FunctionKind.FUNCTION,
    name: str = "f",
    params: list[Parameter] | None = None,
    returns: list[Parameter] | None = None,
) -> Function:
    return Function(
        kind=kind,
        name=name,
        params=params or [],
        returns=returns or [],
        body=body or [],
        span=span(start, end),
    )


class FakeCompiler:
    """In-memory stand-in for the external compiler."""

    def __init__(self, namespace: Namespace | None = None, error: Exception | None = None) -> None:
        self.namespace = namespace or Namespace()
        self.error = error
        self.calls: list[tuple[str, FileCache, Target]] = []

    def parse_and_resolve(self, filename: str, file_cache: FileCache, target: Target) -> Namespace:
        self.calls.append((filename, file_cache, target))
        if self.error is not None:
            raise self.error
        file_cache.get_file_contents(filename)
        return self.namespace
