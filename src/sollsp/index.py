"""Hover index: a flat table of (span, description) records.

The table is built by one pre-order walk over the resolved program. Point
queries scan it in build order and return the first span containing the
offset. Children are recorded before (or instead of) their parents, so the
first hit is usually the most specific description; overlaps are resolved by
insertion order alone, never by span size.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from dataclasses import dataclass
from typing import assert_never

from sollsp.sema import (
    AggregateLiteral,
    ArrayOp,
    Assembly,
    BinaryOp,
    Block,
    Break,
    Builtin,
    Call,
    Cast,
    Continue,
    Delete,
    Destructure,
    DoWhile,
    Emit,
    Expr,
    ExprStmt,
    For,
    Function,
    FunctionKind,
    If,
    Literal,
    Namespace,
    NoOp,
    Parameter,
    Return,
    Stmt,
    StorageOp,
    StringOp,
    Ternary,
    TryCatch,
    UnaryOp,
    Underscore,
    VariableDecl,
    VariableRef,
    While,
)
from sollsp.source import Span
from sollsp.types import LiteralType, Type, type_name

logger = logging.getLogger("sollsp.index")

NO_INFORMATION = "no information available for this position"


@dataclass(frozen=True)
class IndexEntry:
    span: Span
    description: str


# ── Descriptions ─────────────────────────────────────────────────


def _declaration(ty: Type, name: str) -> str:
    return f"{type_name(ty)} {name}" if name else type_name(ty)


def _param_list(params: list[Parameter]) -> str:
    return ", ".join(_declaration(p.ty, p.name) for p in params)


def function_description(func: Function) -> str:
    """``function transfer(address to, uint256 amount) returns (bool)``"""
    text = func.kind.value
    if func.kind in (FunctionKind.FUNCTION, FunctionKind.MODIFIER) and func.name:
        text += f" {func.name}"
    text += f"({_param_list(func.params)})"
    if func.returns:
        text += f" returns ({_param_list(func.returns)})"
    return text


def _literal_description(expr: Literal) -> str:
    # Constant types already spell out their value.
    if isinstance(expr.ty, LiteralType):
        return type_name(expr.ty)
    return f"{type_name(expr.ty)} {expr.value}"


# ── Builder ──────────────────────────────────────────────────────


class _IndexBuilder:
    """Walks a namespace and records entries in traversal order."""

    def __init__(self, file_no: int | None) -> None:
        self.file_no = file_no
        self.entries: list[IndexEntry] = []

    def _push(self, span: Span, description: str) -> None:
        if self.file_no is not None and span.file_no != self.file_no:
            return
        self.entries.append(IndexEntry(span, description))

    # ── Declarations ────────────────────────────────────────────

    def build(self, ns: Namespace) -> list[IndexEntry]:
        for func in ns.functions:
            self._push(func.span, function_description(func))
            self._stmts(func.body)

        for contract in ns.contracts:
            for var in contract.variables:
                if var.initializer is not None:
                    self._expr(var.initializer)
                self._push(var.span, _declaration(var.ty, var.name))

        for struct in ns.structs:
            for struct_field in struct.fields:
                self._push(struct_field.span, _declaration(struct_field.ty, struct_field.name))

        return self.entries

    def _param(self, param: Parameter) -> None:
        self._push(param.span, _declaration(param.ty, param.name))

    # ── Statements ──────────────────────────────────────────────

    def _stmts(self, stmts: list[Stmt]) -> None:
        for stmt in stmts:
            self._stmt(stmt)

    def _stmt(self, stmt: Stmt) -> None:
        match stmt:
            case VariableDecl(param=param, initializer=initializer):
                if initializer is not None:
                    self._expr(initializer)
                self._param(param)
            case If(cond=cond, then_body=then_body, else_body=else_body):
                self._expr(cond)
                self._stmts(then_body)
                self._stmts(else_body)
            case While(cond=cond, body=body):
                self._expr(cond)
                self._stmts(body)
            case DoWhile(body=body, cond=cond):
                self._stmts(body)
                self._expr(cond)
            case For(init=init, cond=cond, next=next_, body=body):
                self._stmts(init)
                if cond is not None:
                    self._expr(cond)
                self._stmts(next_)
                self._stmts(body)
            case ExprStmt(expr=expr) | Delete(expr=expr):
                self._expr(expr)
            case Return(expr=expr):
                if expr is not None:
                    self._expr(expr)
            case Destructure(fields=fields, expr=expr):
                for target in fields:
                    if isinstance(target, Parameter):
                        self._param(target)
                    elif target is not None:
                        self._expr(target)
                self._expr(expr)
            case Emit(event=event, args=args, span=span):
                for arg in args:
                    self._expr(arg)
                self._push(span, f"event {event}")
            case TryCatch(expr=expr, returns=returns, ok_body=ok_body,
                          catch_clauses=catch_clauses):
                self._expr(expr)
                for param in returns:
                    self._param(param)
                self._stmts(ok_body)
                for clause in catch_clauses:
                    if clause.param is not None:
                        self._param(clause.param)
                    self._stmts(clause.body)
            case Block(statements=statements):
                self._stmts(statements)
            case Break() | Continue() | Underscore() | Assembly():
                pass
            case _:
                assert_never(stmt)

    # ── Expressions ─────────────────────────────────────────────

    def _exprs(self, exprs: list[Expr]) -> None:
        for expr in exprs:
            self._expr(expr)

    def _expr(self, expr: Expr) -> None:
        match expr:
            # Leaf-like nodes describe themselves by resolved type.
            case Literal(span=span):
                self._push(span, _literal_description(expr))
            case VariableRef(ty=ty, name=name, span=span):
                self._push(span, _declaration(ty, name))
            case StorageOp(ty=ty, name=name, base=base, span=span):
                if base is not None:
                    self._expr(base)
                self._push(span, _declaration(ty, name))
            case Cast(ty=ty, expr=inner, span=span):
                self._expr(inner)
                self._push(span, type_name(ty))
            case Builtin(ty=ty, name=name, args=args, span=span):
                self._exprs(args)
                self._push(span, f"builtin {name}: {type_name(ty)}")
            # Compound nodes only recurse, left to right.
            case BinaryOp(left=left, right=right):
                self._expr(left)
                self._expr(right)
            case UnaryOp(operand=operand):
                self._expr(operand)
            case Call(receiver=receiver, options=options, callee=callee, args=args):
                if receiver is not None:
                    self._expr(receiver)
                self._exprs(options)
                self._expr(callee)
                self._exprs(args)
            case AggregateLiteral(elements=elements):
                self._exprs(elements)
            case ArrayOp(array=array, args=args):
                self._expr(array)
                self._exprs(args)
            case StringOp(operands=operands):
                self._exprs(operands)
            case Ternary(cond=cond, then_expr=then_expr, else_expr=else_expr):
                self._expr(cond)
                self._expr(then_expr)
                self._expr(else_expr)
            case NoOp():
                pass
            case _:
                assert_never(expr)


# ── Index ────────────────────────────────────────────────────────


class SourceIndex:
    """Immutable, ordered hover table for one compile."""

    def __init__(self, entries: list[IndexEntry] | tuple[IndexEntry, ...] = ()) -> None:
        self._entries = tuple(entries)

    @classmethod
    def build(cls, ns: Namespace, file_no: int | None = None) -> SourceIndex:
        """Index every function, contract variable and struct field.

        With *file_no* set only spans in that file of the namespace's file
        table are recorded.
        """
        entries = _IndexBuilder(file_no).build(ns)
        logger.debug("built source index with %d entries", len(entries))
        return cls(entries)

    @property
    def entries(self) -> tuple[IndexEntry, ...]:
        return self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[IndexEntry]:
        return iter(self._entries)

    def lookup(self, offset: int) -> str:
        """Description of the first entry containing *offset*, in build order."""
        for entry in self._entries:
            if entry.span.contains(offset):
                return entry.description
        return NO_INFORMATION

    def entries_at(self, offset: int) -> list[IndexEntry]:
        """Every entry containing *offset*, in build order."""
        return [entry for entry in self._entries if entry.span.contains(offset)]
