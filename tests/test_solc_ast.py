"""Tests for reading solc standard-json output."""

from __future__ import annotations

from sollsp.errors import Level
from sollsp.file_cache import FileCache
from sollsp.index import SourceIndex
from sollsp.sema import (
    ArrayOp,
    BinaryOp,
    Builtin,
    Call,
    Cast,
    Destructure,
    ExprStmt,
    FunctionKind,
    Literal,
    NoOp,
    StorageOp,
    VariableDecl,
    VariableRef,
)
from sollsp.solc_ast import _OffsetMap, namespace_from_output
from sollsp.source import Span
from sollsp.types import ADDRESS, BYTES, UINT256, LiteralType, ReferenceType, StructType

SOURCE = (
    "contract Token {\n"
    "    uint256 total = 1;\n"
    "    function mint(uint256 amount) public {\n"
    "        total += amount;\n"
    "    }\n"
    "}\n"
)


def _types(type_string: str) -> dict:
    return {"typeString": type_string}


def _ident(name: str, src: str, type_string: str = "uint256", ref: int | None = 1) -> dict:
    return {
        "nodeType": "Identifier",
        "name": name,
        "src": src,
        "referencedDeclaration": ref,
        "typeDescriptions": _types(type_string),
    }


TOKEN_AST = {
    "nodeType": "SourceUnit",
    "src": "0:116:0",
    "nodes": [{
        "nodeType": "ContractDefinition",
        "name": "Token",
        "contractKind": "contract",
        "abstract": False,
        "src": "0:115:0",
        "nodes": [
            {
                "nodeType": "VariableDeclaration",
                "name": "total",
                "src": "21:17:0",
                "constant": False,
                "typeDescriptions": _types("uint256"),
                "value": {
                    "nodeType": "Literal",
                    "kind": "number",
                    "value": "1",
                    "src": "37:1:0",
                    "typeDescriptions": _types("int_const 1"),
                },
            },
            {
                "nodeType": "FunctionDefinition",
                "kind": "function",
                "name": "mint",
                "src": "44:69:0",
                "parameters": {
                    "nodeType": "ParameterList",
                    "parameters": [{
                        "nodeType": "VariableDeclaration",
                        "name": "amount",
                        "src": "58:14:0",
                        "typeDescriptions": _types("uint256"),
                    }],
                },
                "returnParameters": {"nodeType": "ParameterList", "parameters": []},
                "body": {
                    "nodeType": "Block",
                    "src": "81:32:0",
                    "statements": [{
                        "nodeType": "ExpressionStatement",
                        "src": "91:16:0",
                        "expression": {
                            "nodeType": "Assignment",
                            "operator": "+=",
                            "src": "91:15:0",
                            "typeDescriptions": _types("uint256"),
                            "leftHandSide": _ident("total", "91:5:0", ref=3),
                            "rightHandSide": _ident("amount", "100:6:0", ref=7),
                        },
                    }],
                },
            },
        ],
    }],
}


def _output(ast: dict | None = TOKEN_AST, errors: list | None = None) -> dict:
    output: dict = {"sources": {"Token.sol": {"id": 0, "ast": ast}}}
    if errors is not None:
        output["errors"] = errors
    return output


def _cache(text: str = SOURCE) -> FileCache:
    cache = FileCache()
    cache.set_file_contents("Token.sol", text)
    return cache


def _function_body(stmt_nodes: list, text: str = SOURCE):
    """Wrap statement nodes in a free function and return the converted body."""
    ast = {
        "nodeType": "SourceUnit",
        "src": "0:1:0",
        "nodes": [{
            "nodeType": "FunctionDefinition",
            "kind": "freeFunction",
            "name": "g",
            "src": "0:100:0",
            "parameters": {"parameters": []},
            "returnParameters": {"parameters": []},
            "body": {"nodeType": "Block", "src": "10:90:0", "statements": stmt_nodes},
        }],
    }
    ns = namespace_from_output(_output(ast), _cache(text))
    return ns.functions[0].body


class TestOffsetMap:
    def test_ascii_is_identity(self):
        offsets = _OffsetMap("abc")
        assert [offsets(i) for i in range(4)] == [0, 1, 2, 3]

    def test_multibyte(self):
        offsets = _OffsetMap("é=1")
        assert offsets(0) == 0
        assert offsets(2) == 1
        assert offsets(3) == 2
        assert offsets(4) == 3

    def test_inside_multibyte_char_maps_to_its_start(self):
        assert _OffsetMap("é=1")(1) == 0

    def test_unknown_text_is_identity(self):
        assert _OffsetMap(None)(17) == 17


class TestDeclarations:
    def test_files_and_contract(self):
        ns = namespace_from_output(_output(), _cache())
        assert ns.files == ["Token.sol"]
        assert ns.file_no("Token.sol") == 0
        assert [c.name for c in ns.contracts] == ["Token"]
        assert ns.contracts[0].span == Span(0, 0, 115)

    def test_contract_variable(self):
        var = namespace_from_output(_output(), _cache()).contracts[0].variables[0]
        assert var.name == "total"
        assert var.ty == UINT256
        assert var.span == Span(0, 21, 38)
        assert var.initializer == Literal(LiteralType("int_const", "1"), "1", Span(0, 37, 38))

    def test_function_span_stops_at_body(self):
        func = namespace_from_output(_output(), _cache()).functions[0]
        assert func.kind == FunctionKind.FUNCTION
        assert func.name == "mint"
        assert func.span == Span(0, 44, 81)
        assert [(p.name, p.ty) for p in func.params] == [("amount", UINT256)]

    def test_body_statement(self):
        func = namespace_from_output(_output(), _cache()).functions[0]
        (stmt,) = func.body
        assert isinstance(stmt, ExprStmt)
        assert isinstance(stmt.expr, BinaryOp)
        assert stmt.expr.op == "+="
        assert stmt.expr.left == VariableRef(UINT256, "total", Span(0, 91, 96))
        assert stmt.expr.right == VariableRef(UINT256, "amount", Span(0, 100, 106))

    def test_nested_struct_and_modifier(self):
        ast = {
            "nodeType": "SourceUnit",
            "src": "0:1:0",
            "nodes": [{
                "nodeType": "ContractDefinition",
                "name": "Base",
                "contractKind": "contract",
                "abstract": True,
                "src": "0:60:0",
                "nodes": [{
                    "nodeType": "StructDefinition",
                    "name": "Info",
                    "src": "20:30:0",
                    "members": [{
                        "nodeType": "VariableDeclaration",
                        "name": "owner",
                        "src": "34:13:0",
                        "typeDescriptions": _types("address"),
                    }],
                }, {
                    "nodeType": "ModifierDefinition",
                    "name": "only",
                    "src": "50:9:0",
                    "parameters": {"parameters": []},
                    "body": {"nodeType": "Block", "src": "57:2:0", "statements": [{
                        "nodeType": "PlaceholderStatement", "src": "58:1:0",
                    }]},
                }],
            }],
        }
        ns = namespace_from_output(_output(ast), _cache())
        assert [c.name for c in ns.contracts] == ["Base"]
        assert ns.structs[0].name == "Info"
        assert ns.structs[0].fields[0].ty == ADDRESS
        assert ns.functions[0].kind == FunctionKind.MODIFIER
        assert ns.functions[0].returns == []


class TestIndexFromSolc:
    def test_build_order(self):
        ns = namespace_from_output(_output(), _cache())
        entries = [(e.span, e.description) for e in SourceIndex.build(ns, 0)]
        assert entries == [
            (Span(0, 44, 81), "function mint(uint256 amount)"),
            (Span(0, 91, 96), "uint256 total"),
            (Span(0, 100, 106), "uint256 amount"),
            (Span(0, 37, 38), "int_const 1"),
            (Span(0, 21, 38), "uint256 total"),
        ]

    def test_lookups(self):
        index = SourceIndex.build(namespace_from_output(_output(), _cache()), 0)
        assert index.lookup(60) == "function mint(uint256 amount)"
        assert index.lookup(93) == "uint256 total"
        assert index.lookup(102) == "uint256 amount"
        assert index.lookup(37) == "int_const 1"
        assert index.lookup(25) == "uint256 total"
        assert index.lookup(2).startswith("no information")


class TestDiagnostics:
    def test_located_warning(self):
        errors = [{
            "severity": "warning",
            "message": "Function state mutability can be restricted to pure",
            "sourceLocation": {"file": "Token.sol", "start": 58, "end": 72},
        }]
        (diag,) = namespace_from_output(_output(errors=errors), _cache()).diagnostics
        assert diag.level == Level.WARNING
        assert diag.pos == Span(0, 58, 72)

    def test_unlocated_error(self):
        errors = [{"severity": "error", "message": "Stack too deep"}]
        (diag,) = namespace_from_output(_output(errors=errors), _cache()).diagnostics
        assert diag.level == Level.ERROR
        assert diag.pos is None

    def test_negative_start_is_unlocated(self):
        errors = [{"severity": "error", "message": "x",
                   "sourceLocation": {"file": "Token.sol", "start": -1, "end": -1}}]
        (diag,) = namespace_from_output(_output(errors=errors), _cache()).diagnostics
        assert diag.pos is None

    def test_unknown_file_is_appended(self):
        errors = [{"severity": "info", "message": "imported",
                   "sourceLocation": {"file": "Other.sol", "start": 3, "end": 5}}]
        ns = namespace_from_output(_output(errors=errors), _cache())
        assert ns.files == ["Token.sol", "Other.sol"]
        assert ns.diagnostics[0].level == Level.INFO
        assert ns.diagnostics[0].pos == Span(1, 3, 5)

    def test_errors_without_sources(self):
        output = {"errors": [{"severity": "error", "message": "parse failed",
                              "sourceLocation": {"file": "Token.sol", "start": 0, "end": 8}}]}
        ns = namespace_from_output(output, _cache())
        assert ns.files == ["Token.sol"]
        assert ns.diagnostics[0].pos == Span(0, 0, 8)
        assert ns.functions == []

    def test_multibyte_offsets(self):
        text = "// é\ncontract C {}\n"
        cache = FileCache()
        cache.set_file_contents("Token.sol", text)
        # "contract" starts at byte 6, character 5.
        errors = [{"severity": "error", "message": "x",
                   "sourceLocation": {"file": "Token.sol", "start": 6, "end": 14}}]
        ns = namespace_from_output({"sources": {"Token.sol": {"id": 0}}, "errors": errors}, cache)
        assert ns.diagnostics[0].pos == Span(0, 5, 13)

    def test_unreadable_ast_keeps_diagnostics(self):
        ast = {"nodeType": "SourceUnit", "src": "0:1:0",
               "nodes": [{"nodeType": "ContractDefinition", "name": "Broken"}]}
        errors = [{"severity": "error", "message": "Undeclared identifier.",
                   "sourceLocation": {"file": "Token.sol", "start": 0, "end": 8}}]
        ns = namespace_from_output(_output(ast, errors), _cache())
        assert [d.message for d in ns.diagnostics] == ["Undeclared identifier."]
        assert ns.contracts == []


class TestExpressions:
    def test_variable_statement_and_destructure(self):
        decl = {
            "nodeType": "VariableDeclarationStatement",
            "src": "12:10:0",
            "declarations": [{"nodeType": "VariableDeclaration", "name": "x", "src": "12:9:0",
                              "typeDescriptions": _types("uint256")}],
            "initialValue": _ident("y", "20:1:0"),
        }
        tuple_decl = {
            "nodeType": "VariableDeclarationStatement",
            "src": "23:20:0",
            "declarations": [
                {"nodeType": "VariableDeclaration", "name": "a", "src": "24:9:0",
                 "typeDescriptions": _types("uint256")},
                None,
            ],
            "initialValue": _ident("pair", "40:4:0", "tuple(uint256,uint256)"),
        }
        first, second = _function_body([decl, tuple_decl])
        assert isinstance(first, VariableDecl)
        assert first.param.name == "x"
        assert first.initializer.name == "y"
        assert isinstance(second, Destructure)
        assert second.fields[0].name == "a"
        assert second.fields[1] is None

    def test_member_call_and_builtins(self):
        transfer = {
            "nodeType": "ExpressionStatement",
            "src": "12:30:0",
            "expression": {
                "nodeType": "FunctionCall",
                "kind": "functionCall",
                "src": "12:29:0",
                "typeDescriptions": _types("bool"),
                "arguments": [_ident("to", "35:2:0", "address")],
                "expression": {
                    "nodeType": "MemberAccess",
                    "memberName": "transfer",
                    "memberLocation": "18:8:0",
                    "src": "12:14:0",
                    "typeDescriptions": _types("function (address) external returns (bool)"),
                    "expression": _ident("token", "12:5:0", "contract IERC20"),
                },
            },
        }
        keccak = {
            "nodeType": "ExpressionStatement",
            "src": "43:15:0",
            "expression": {
                "nodeType": "FunctionCall",
                "kind": "functionCall",
                "src": "43:14:0",
                "typeDescriptions": _types("bytes32"),
                "arguments": [_ident("data", "53:4:0", "bytes memory")],
                "expression": _ident("keccak256", "43:9:0", "function (bytes memory) pure returns (bytes32)", ref=-8),
            },
        }
        call_stmt, builtin_stmt = _function_body([transfer, keccak])
        call = call_stmt.expr
        assert isinstance(call, Call)
        assert call.receiver.name == "token"
        assert call.callee.name == "transfer"
        assert call.callee.span == Span(0, 18, 26)
        assert [a.name for a in call.args] == ["to"]
        builtin = builtin_stmt.expr
        assert isinstance(builtin, Builtin)
        assert builtin.name == "keccak256"
        assert builtin.args[0].ty == ReferenceType(BYTES, "memory")

    def test_casts_lengths_and_members(self):
        cast = {
            "nodeType": "ExpressionStatement", "src": "12:12:0",
            "expression": {
                "nodeType": "FunctionCall", "kind": "typeConversion", "src": "12:11:0",
                "typeDescriptions": _types("address"),
                "arguments": [_ident("x", "20:1:0", "uint160")],
                "expression": {"nodeType": "ElementaryTypeNameExpression", "src": "12:7:0",
                               "typeDescriptions": _types("type(address)")},
            },
        }
        length = {
            "nodeType": "ExpressionStatement", "src": "25:10:0",
            "expression": {
                "nodeType": "MemberAccess", "memberName": "length", "src": "25:9:0",
                "typeDescriptions": _types("uint256"),
                "expression": _ident("xs", "25:2:0", "uint256[] storage ref"),
            },
        }
        member = {
            "nodeType": "ExpressionStatement", "src": "36:11:0",
            "expression": {
                "nodeType": "MemberAccess", "memberName": "owner", "src": "36:10:0",
                "typeDescriptions": _types("address"),
                "expression": _ident("info", "36:4:0", "struct Info storage ref"),
            },
        }
        cast_stmt, length_stmt, member_stmt = _function_body([cast, length, member])
        assert isinstance(cast_stmt.expr, Cast)
        assert cast_stmt.expr.ty == ADDRESS
        assert isinstance(length_stmt.expr, ArrayOp)
        assert length_stmt.expr.op == "length"
        assert isinstance(member_stmt.expr, StorageOp)
        assert member_stmt.expr.base.ty == ReferenceType(StructType("Info"), "storage")

    def test_unknown_nodes_are_tolerated(self):
        stmts = [
            {"nodeType": "SomethingNew", "src": "12:3:0"},
            {"nodeType": "ExpressionStatement", "src": "16:4:0",
             "expression": {"nodeType": "FutureExpression", "src": "16:3:0"}},
        ]
        (stmt,) = _function_body(stmts)
        assert stmt.expr == NoOp(Span(0, 16, 19))

    def test_unresolved_callee_is_a_call(self):
        call = {
            "nodeType": "ExpressionStatement", "src": "12:7:0",
            "expression": {
                "nodeType": "FunctionCall", "kind": "functionCall", "src": "12:6:0",
                "typeDescriptions": {"typeIdentifier": None, "typeString": None},
                "arguments": [{"nodeType": "Literal", "kind": "number", "value": "1",
                               "src": "16:1:0", "typeDescriptions": _types("int_const 1")}],
                "expression": _ident("foo", "12:3:0", "", ref=None),
            },
        }
        (stmt,) = _function_body([call])
        assert isinstance(stmt.expr, Call)
        assert stmt.expr.callee.name == "foo"
        assert stmt.expr.args[0].value == "1"
