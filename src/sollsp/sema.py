"""Resolved program tree produced by the compiler front-end.

Every expression carries its resolved type. The expression variants form a
closed set; consumers match over ``Expr`` exhaustively.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Union

from sollsp.errors import DiagnosticRecord
from sollsp.source import Span
from sollsp.types import Type

# ── Expressions ──────────────────────────────────────────────────


@dataclass(frozen=True)
class Literal:
    ty: Type
    value: str
    span: Span


@dataclass(frozen=True)
class VariableRef:
    ty: Type
    name: str
    span: Span


@dataclass(frozen=True)
class BinaryOp:
    """Arithmetic, comparison, logical and assignment operators."""

    ty: Type
    op: str
    left: Expr
    right: Expr
    span: Span


@dataclass(frozen=True)
class UnaryOp:
    ty: Type
    op: str
    operand: Expr
    span: Span


@dataclass(frozen=True)
class Call:
    ty: Type
    receiver: Expr | None  # address or contract for external calls
    options: list[Expr]  # {value: ..., gas: ...}
    callee: Expr
    args: list[Expr]
    span: Span


@dataclass(frozen=True)
class Cast:
    ty: Type
    expr: Expr
    span: Span


@dataclass(frozen=True)
class AggregateLiteral:
    """Struct constructor, array literal or tuple."""

    ty: Type
    elements: list[Expr]
    span: Span


@dataclass(frozen=True)
class ArrayOp:
    ty: Type
    op: str  # subscript, slice, push, pop, length
    array: Expr
    args: list[Expr]
    span: Span


@dataclass(frozen=True)
class StorageOp:
    """Load of a named member from storage or from another value."""

    ty: Type
    name: str
    base: Expr | None
    span: Span


@dataclass(frozen=True)
class StringOp:
    ty: Type
    op: str  # concat, compare
    operands: list[Expr]
    span: Span


@dataclass(frozen=True)
class Builtin:
    """Call of a compiler builtin: hashes, abi encoding, require, etc."""

    ty: Type
    name: str
    args: list[Expr]
    span: Span


@dataclass(frozen=True)
class Ternary:
    ty: Type
    cond: Expr
    then_expr: Expr
    else_expr: Expr
    span: Span


@dataclass(frozen=True)
class NoOp:
    span: Span


Expr = Union[
    Literal, VariableRef, BinaryOp, UnaryOp, Call, Cast, AggregateLiteral,
    ArrayOp, StorageOp, StringOp, Builtin, Ternary, NoOp,
]


# ── Statements ───────────────────────────────────────────────────


@dataclass(frozen=True)
class Parameter:
    ty: Type
    name: str  # empty for unnamed parameters
    span: Span


@dataclass(frozen=True)
class VariableDecl:
    param: Parameter
    initializer: Expr | None
    span: Span


@dataclass(frozen=True)
class If:
    cond: Expr
    then_body: list[Stmt]
    else_body: list[Stmt]
    span: Span


@dataclass(frozen=True)
class While:
    cond: Expr
    body: list[Stmt]
    span: Span


@dataclass(frozen=True)
class DoWhile:
    body: list[Stmt]
    cond: Expr
    span: Span


@dataclass(frozen=True)
class For:
    init: list[Stmt]
    cond: Expr | None
    next: list[Stmt]
    body: list[Stmt]
    span: Span


@dataclass(frozen=True)
class ExprStmt:
    expr: Expr
    span: Span


@dataclass(frozen=True)
class Delete:
    expr: Expr
    span: Span


@dataclass(frozen=True)
class Return:
    expr: Expr | None
    span: Span


@dataclass(frozen=True)
class Destructure:
    """``(a, , uint b) = f();``

    Each target is a declaration, an expression or None for a skipped slot.
    """

    fields: list[Parameter | Expr | None]
    expr: Expr
    span: Span


@dataclass(frozen=True)
class Emit:
    event: str
    args: list[Expr]
    span: Span


@dataclass(frozen=True)
class CatchClause:
    param: Parameter | None
    body: list[Stmt]
    span: Span


@dataclass(frozen=True)
class TryCatch:
    expr: Expr
    returns: list[Parameter]
    ok_body: list[Stmt]
    catch_clauses: list[CatchClause]
    span: Span


@dataclass(frozen=True)
class Block:
    statements: list[Stmt]
    span: Span


@dataclass(frozen=True)
class Break:
    span: Span


@dataclass(frozen=True)
class Continue:
    span: Span


@dataclass(frozen=True)
class Underscore:
    """The ``_;`` placeholder inside a modifier body."""

    span: Span


@dataclass(frozen=True)
class Assembly:
    span: Span


Stmt = Union[
    VariableDecl, If, While, DoWhile, For, ExprStmt, Delete, Return,
    Destructure, Emit, TryCatch, Block, Break, Continue, Underscore, Assembly,
]


# ── Declarations ─────────────────────────────────────────────────


class FunctionKind(Enum):
    CONSTRUCTOR = "constructor"
    FUNCTION = "function"
    FALLBACK = "fallback"
    RECEIVE = "receive"
    MODIFIER = "modifier"


@dataclass(frozen=True)
class Function:
    kind: FunctionKind
    name: str
    params: list[Parameter]
    returns: list[Parameter]
    body: list[Stmt]
    span: Span  # the declaration header, excluding the body


@dataclass(frozen=True)
class ContractVariable:
    ty: Type
    name: str
    initializer: Expr | None
    span: Span


@dataclass(frozen=True)
class Contract:
    name: str
    variables: list[ContractVariable]
    span: Span


@dataclass(frozen=True)
class StructField:
    ty: Type
    name: str
    span: Span


@dataclass(frozen=True)
class StructDecl:
    name: str
    fields: list[StructField]
    span: Span


@dataclass(frozen=True)
class Namespace:
    """Everything the compiler resolved for one compile request.

    ``files`` is the compiler's file table; ``Span.file_no`` indexes it.
    """

    files: list[str] = field(default_factory=list)
    diagnostics: list[DiagnosticRecord] = field(default_factory=list)
    functions: list[Function] = field(default_factory=list)
    contracts: list[Contract] = field(default_factory=list)
    structs: list[StructDecl] = field(default_factory=list)

    def file_no(self, name: str) -> int | None:
        """Index of *name* in the file table, or None."""
        try:
            return self.files.index(name)
        except ValueError:
            return None
