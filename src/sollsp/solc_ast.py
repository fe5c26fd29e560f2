"""Read ``solc --standard-json`` output into a resolved ``Namespace``.

solc reports locations as ``"start:length:file"`` byte offsets into the
UTF-8 encoded source. They are converted here to string indices, so spans
line up with the text the position codec works on. A span's end is the
offset just past the node, matching the compiler's diagnostic ranges.
"""

from __future__ import annotations

import logging
from bisect import bisect_right
from typing import Any

from sollsp.errors import DiagnosticRecord, Level
from sollsp.file_cache import FileCache
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
    CatchClause,
    Continue,
    Contract,
    ContractVariable,
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
    StructDecl,
    StructField,
    Ternary,
    TryCatch,
    UnaryOp,
    Underscore,
    VariableDecl,
    VariableRef,
    While,
)
from sollsp.source import Span
from sollsp.types import (
    ArrayType,
    ElementaryType,
    ReferenceType,
    Type,
    parse_type_string,
)

logger = logging.getLogger("sollsp.solc_ast")

Node = dict[str, Any]

_LEVELS = {
    "error": Level.ERROR,
    "warning": Level.WARNING,
    "info": Level.INFO,
}

_FUNCTION_KINDS = {
    "constructor": FunctionKind.CONSTRUCTOR,
    "function": FunctionKind.FUNCTION,
    "freeFunction": FunctionKind.FUNCTION,
    "fallback": FunctionKind.FALLBACK,
    "receive": FunctionKind.RECEIVE,
}


class _OffsetMap:
    """Maps UTF-8 byte offsets to string indices for one file."""

    def __init__(self, text: str | None) -> None:
        self._starts: list[int] | None = None
        if text is not None and not text.isascii():
            starts = []
            pos = 0
            for ch in text:
                starts.append(pos)
                pos += len(ch.encode("utf-8"))
            starts.append(pos)
            self._starts = starts

    def __call__(self, byte_offset: int) -> int:
        if self._starts is None:
            return byte_offset
        return bisect_right(self._starts, byte_offset) - 1


def _is_array_like(ty: Type) -> bool:
    if isinstance(ty, ReferenceType):
        ty = ty.inner
    if isinstance(ty, ArrayType):
        return True
    return isinstance(ty, ElementaryType) and ty.name in ("bytes", "string")


def _is_global(node: Node) -> bool:
    # solc gives magic globals (msg, abi, keccak256, ...) negative ids and
    # unresolved identifiers a null one.
    ref = node.get("referencedDeclaration")
    return node.get("nodeType") == "Identifier" and isinstance(ref, int) and ref < 0


class _AstConverter:
    """Converts solc JSON AST nodes into resolved tree nodes."""

    def __init__(self, files: list[str], file_cache: FileCache) -> None:
        self.files = files
        self.file_cache = file_cache
        self.functions: list[Function] = []
        self.contracts: list[Contract] = []
        self.structs: list[StructDecl] = []
        self._maps: dict[int, _OffsetMap] = {}

    # ── Locations ───────────────────────────────────────────────

    def file_no(self, name: str) -> int:
        if name not in self.files:
            self.files.append(name)
        return self.files.index(name)

    def _offsets(self, file_no: int) -> _OffsetMap:
        if file_no not in self._maps:
            text = None
            if 0 <= file_no < len(self.files):
                try:
                    text = self.file_cache.get_file_contents(self.files[file_no])
                except (OSError, UnicodeDecodeError):
                    logger.debug("no text for %s, assuming ASCII offsets", self.files[file_no])
            self._maps[file_no] = _OffsetMap(text)
        return self._maps[file_no]

    def range_span(self, file_no: int, start: int, end: int) -> Span:
        offsets = self._offsets(file_no)
        return Span(file_no, offsets(start), offsets(max(start, end)))

    def span(self, src: str) -> Span:
        start, length, file_no = (int(part) for part in src.split(":"))
        return self.range_span(file_no, start, start + length)

    def _header_span(self, node: Node, body: Node | None) -> Span:
        """Declaration span of a function: from its start up to the body."""
        span = self.span(node["src"])
        if body is None:
            return span
        body_start = self.span(body["src"]).start
        return Span(span.file_no, span.start, max(span.start, body_start))

    # ── Diagnostics ─────────────────────────────────────────────

    def diagnostic(self, error: Node) -> DiagnosticRecord:
        level = _LEVELS.get(error.get("severity"), Level.ERROR)
        pos = None
        location = error.get("sourceLocation") or {}
        start, end = location.get("start"), location.get("end")
        if location.get("file") and isinstance(start, int) and start >= 0:
            pos = self.range_span(
                self.file_no(location["file"]),
                start,
                end if isinstance(end, int) else start,
            )
        return DiagnosticRecord(level, error.get("message") or "", pos)

    # ── Declarations ────────────────────────────────────────────

    def source_unit(self, unit: Node) -> None:
        for node in unit.get("nodes") or []:
            node_type = node.get("nodeType")
            if node_type == "ContractDefinition":
                self._contract(node)
            elif node_type == "FunctionDefinition":
                self._function(node)
            elif node_type == "StructDefinition":
                self._struct(node)

    def _contract(self, node: Node) -> None:
        name = node.get("name", "")

        variables: list[ContractVariable] = []
        for member in node.get("nodes") or []:
            node_type = member.get("nodeType")
            if node_type in ("FunctionDefinition", "ModifierDefinition"):
                self._function(member)
            elif node_type == "VariableDeclaration":
                variables.append(ContractVariable(
                    ty=self._ty(member),
                    name=member.get("name", ""),
                    initializer=self._opt_expr(member.get("value")),
                    span=self.span(member["src"]),
                ))
            elif node_type == "StructDefinition":
                self._struct(member)

        self.contracts.append(Contract(name, variables, self.span(node["src"])))

    def _function(self, node: Node) -> None:
        if node.get("nodeType") == "ModifierDefinition":
            kind = FunctionKind.MODIFIER
        else:
            kind = _FUNCTION_KINDS.get(node.get("kind", "function"), FunctionKind.FUNCTION)
        body = node.get("body")
        self.functions.append(Function(
            kind=kind,
            name=node.get("name", ""),
            params=self._params(node.get("parameters")),
            returns=self._params(node.get("returnParameters")),
            body=self._body(body),
            span=self._header_span(node, body),
        ))

    def _struct(self, node: Node) -> None:
        fields = [
            StructField(self._ty(member), member.get("name", ""), self.span(member["src"]))
            for member in node.get("members") or []
        ]
        self.structs.append(
            StructDecl(node.get("name", ""), fields, self.span(node["src"]))
        )

    def _ty(self, node: Node) -> Type:
        descriptions = node.get("typeDescriptions") or {}
        return parse_type_string(descriptions.get("typeString") or "")

    def _parameter(self, node: Node) -> Parameter:
        return Parameter(self._ty(node), node.get("name", ""), self.span(node["src"]))

    def _params(self, param_list: Node | None) -> list[Parameter]:
        if param_list is None:
            return []
        return [self._parameter(p) for p in param_list.get("parameters") or []]

    # ── Statements ──────────────────────────────────────────────

    def _body(self, node: Node | None) -> list[Stmt]:
        """Statements of a block, or the single statement of a branch."""
        if node is None:
            return []
        if node.get("nodeType") == "Block":
            return self._stmt_list(node.get("statements"))
        return self._stmt_list([node])

    def _stmt_list(self, nodes: list[Node] | None) -> list[Stmt]:
        stmts = []
        for node in nodes or []:
            stmt = self._stmt(node)
            if stmt is not None:
                stmts.append(stmt)
        return stmts

    def _stmt(self, node: Node) -> Stmt | None:
        node_type = node.get("nodeType")
        span = self.span(node["src"])

        if node_type in ("Block", "UncheckedBlock"):
            return Block(self._stmt_list(node.get("statements")), span)
        if node_type == "VariableDeclarationStatement":
            return self._variable_statement(node, span)
        if node_type == "ExpressionStatement":
            return self._expression_statement(node["expression"], span)
        if node_type == "IfStatement":
            return If(
                self._expr(node["condition"]),
                self._body(node.get("trueBody")),
                self._body(node.get("falseBody")),
                span,
            )
        if node_type == "WhileStatement":
            return While(self._expr(node["condition"]), self._body(node.get("body")), span)
        if node_type == "DoWhileStatement":
            return DoWhile(self._body(node.get("body")), self._expr(node["condition"]), span)
        if node_type == "ForStatement":
            return For(
                self._body(node.get("initializationExpression")),
                self._opt_expr(node.get("condition")),
                self._body(node.get("loopExpression")),
                self._body(node.get("body")),
                span,
            )
        if node_type == "Return":
            return Return(self._opt_expr(node.get("expression")), span)
        if node_type == "EmitStatement":
            call = node["eventCall"]
            return Emit(
                self._callee_name(call.get("expression")),
                self._exprs(call.get("arguments")),
                span,
            )
        if node_type == "RevertStatement":
            return ExprStmt(self._expr(node["errorCall"]), span)
        if node_type == "TryStatement":
            return self._try_statement(node, span)
        if node_type == "Break":
            return Break(span)
        if node_type == "Continue":
            return Continue(span)
        if node_type == "PlaceholderStatement":
            return Underscore(span)
        if node_type == "InlineAssembly":
            return Assembly(span)

        logger.debug("skipping statement node %s at %s", node_type, span)
        return None

    def _variable_statement(self, node: Node, span: Span) -> Stmt:
        declarations = node.get("declarations") or []
        initializer = self._opt_expr(node.get("initialValue"))
        if len(declarations) == 1 and declarations[0] is not None:
            return VariableDecl(self._parameter(declarations[0]), initializer, span)
        return Destructure(
            [self._parameter(d) if d is not None else None for d in declarations],
            initializer if initializer is not None else NoOp(span),
            span,
        )

    def _expression_statement(self, expr: Node, span: Span) -> Stmt:
        node_type = expr.get("nodeType")
        if node_type == "UnaryOperation" and expr.get("operator") == "delete":
            return Delete(self._expr(expr["subExpression"]), span)
        if node_type == "Assignment" and expr.get("operator") == "=":
            target = expr["leftHandSide"]
            if target.get("nodeType") == "TupleExpression" and not target.get("isInlineArray"):
                return Destructure(
                    [self._expr(c) if c is not None else None
                     for c in target.get("components") or []],
                    self._expr(expr["rightHandSide"]),
                    span,
                )
        return ExprStmt(self._expr(expr), span)

    def _try_statement(self, node: Node, span: Span) -> Stmt:
        # The first clause is always the success clause.
        clauses = node.get("clauses") or []
        returns: list[Parameter] = []
        ok_body: list[Stmt] = []
        if clauses:
            returns = self._params(clauses[0].get("parameters"))
            ok_body = self._body(clauses[0].get("block"))

        catch_clauses = []
        for clause in clauses[1:]:
            params = self._params(clause.get("parameters"))
            catch_clauses.append(CatchClause(
                params[0] if params else None,
                self._body(clause.get("block")),
                self.span(clause["src"]),
            ))

        return TryCatch(self._expr(node["externalCall"]), returns, ok_body, catch_clauses, span)

    # ── Expressions ─────────────────────────────────────────────

    def _opt_expr(self, node: Node | None) -> Expr | None:
        return self._expr(node) if node is not None else None

    def _exprs(self, nodes: list[Node | None] | None) -> list[Expr]:
        return [self._expr(n) for n in nodes or [] if n is not None]

    def _callee_name(self, node: Node | None) -> str:
        if node is None:
            return ""
        if node.get("nodeType") == "MemberAccess":
            return node.get("memberName", "")
        return node.get("name", "")

    def _expr(self, node: Node) -> Expr:
        node_type = node.get("nodeType")
        span = self.span(node["src"])
        ty = self._ty(node)

        if node_type == "Literal":
            value = node.get("value")
            if value is None:
                value = f'hex"{node.get("hexValue", "")}"'
            return Literal(ty, value, span)
        if node_type == "Identifier":
            return VariableRef(ty, node.get("name", ""), span)
        if node_type == "BinaryOperation":
            return BinaryOp(
                ty, node.get("operator", ""),
                self._expr(node["leftExpression"]), self._expr(node["rightExpression"]),
                span,
            )
        if node_type == "Assignment":
            return BinaryOp(
                ty, node.get("operator", "="),
                self._expr(node["leftHandSide"]), self._expr(node["rightHandSide"]),
                span,
            )
        if node_type == "UnaryOperation":
            return UnaryOp(ty, node.get("operator", ""), self._expr(node["subExpression"]), span)
        if node_type == "Conditional":
            return Ternary(
                ty,
                self._expr(node["condition"]),
                self._expr(node["trueExpression"]),
                self._expr(node["falseExpression"]),
                span,
            )
        if node_type == "TupleExpression":
            components = node.get("components") or []
            if not node.get("isInlineArray") and len(components) == 1 and components[0]:
                # Parenthesised expression
                return self._expr(components[0])
            return AggregateLiteral(ty, self._exprs(components), span)
        if node_type == "IndexAccess":
            return ArrayOp(
                ty, "subscript", self._expr(node["baseExpression"]),
                self._exprs([node.get("indexExpression")]), span,
            )
        if node_type == "IndexRangeAccess":
            return ArrayOp(
                ty, "slice", self._expr(node["baseExpression"]),
                self._exprs([node.get("startExpression"), node.get("endExpression")]),
                span,
            )
        if node_type == "MemberAccess":
            base = node["expression"]
            member = node.get("memberName", "")
            if member == "length" and _is_array_like(self._ty(base)):
                return ArrayOp(ty, "length", self._expr(base), [], span)
            return StorageOp(ty, member, self._expr(base), span)
        if node_type == "FunctionCall":
            return self._call(node, ty, span)
        if node_type == "FunctionCallOptions":
            return Call(ty, None, self._exprs(node.get("options")), self._expr(node["expression"]), [], span)
        if node_type == "NewExpression":
            return VariableRef(ty, "new", span)
        if node_type == "ElementaryTypeNameExpression":
            return NoOp(span)

        logger.debug("no expression mapping for %s at %s", node_type, span)
        return NoOp(span)

    def _call(self, node: Node, ty: Type, span: Span) -> Expr:
        kind = node.get("kind", "functionCall")
        args = self._exprs(node.get("arguments"))

        if kind == "typeConversion":
            return Cast(ty, args[0] if args else NoOp(span), span)
        if kind == "structConstructorCall":
            return AggregateLiteral(ty, args, span)

        callee = node["expression"]
        options: list[Expr] = []
        if callee.get("nodeType") == "FunctionCallOptions":
            options = self._exprs(callee.get("options"))
            callee = callee["expression"]

        if _is_global(callee):
            return Builtin(ty, callee.get("name", ""), args, span)

        if callee.get("nodeType") == "MemberAccess":
            base = callee["expression"]
            member = callee.get("memberName", "")
            base_type = (base.get("typeDescriptions") or {}).get("typeString") or ""
            if member in ("push", "pop") and _is_array_like(self._ty(base)):
                return ArrayOp(ty, member, self._expr(base), args, span)
            if member == "concat" and base_type.startswith(("type(string", "type(bytes")):
                return StringOp(ty, "concat", args, span)
            if _is_global(base):
                return Builtin(ty, f"{base.get('name', '')}.{member}", args, span)
            member_span = self.span(callee.get("memberLocation") or callee["src"])
            return Call(
                ty,
                self._expr(base),
                options,
                VariableRef(self._ty(callee), member, member_span),
                args,
                span,
            )

        return Call(ty, None, options, self._expr(callee), args, span)


def namespace_from_output(output: Node, file_cache: FileCache) -> Namespace:
    """Build a namespace from a parsed ``solc --standard-json`` result."""
    sources = output.get("sources") or {}
    ordered = sorted(sources.items(), key=lambda item: item[1].get("id") or 0)
    converter = _AstConverter([name for name, _ in ordered], file_cache)

    diagnostics = [converter.diagnostic(error) for error in output.get("errors") or []]

    # Diagnostics survive an AST that cannot be read.
    for name, source in ordered:
        ast = source.get("ast")
        if ast is None:
            continue
        try:
            converter.source_unit(ast)
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            logger.warning("skipping unreadable AST of %s: %r", name, e)

    logger.debug(
        "resolved %d files, %d diagnostics, %d functions",
        len(converter.files), len(diagnostics), len(converter.functions),
    )
    return Namespace(
        files=converter.files,
        diagnostics=diagnostics,
        functions=converter.functions,
        contracts=converter.contracts,
        structs=converter.structs,
    )
