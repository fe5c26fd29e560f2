"""Resolved type representations for Solidity programs.

These are the types attached by semantic analysis to declarations and
expressions. Hover descriptions are rendered from them with ``type_name``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

# ── Resolved types ──────────────────────────────────────────────


@dataclass(frozen=True)
class ElementaryType:
    name: str


@dataclass(frozen=True)
class ArrayType:
    element: Type
    length: int | None = None  # None for dynamic arrays


@dataclass(frozen=True)
class MappingType:
    key: Type
    value: Type


@dataclass(frozen=True)
class StructType:
    name: str


@dataclass(frozen=True)
class EnumType:
    name: str


@dataclass(frozen=True)
class ContractType:
    name: str
    kind: str = "contract"  # contract, interface or library


@dataclass(frozen=True)
class FunctionType:
    params: tuple[Type, ...] = ()
    returns: tuple[Type, ...] = ()
    attributes: tuple[str, ...] = ()  # visibility and mutability


@dataclass(frozen=True)
class TupleType:
    members: tuple[Type | None, ...] = ()


@dataclass(frozen=True)
class LiteralType:
    """Compile-time constant type such as ``int_const 42``."""

    kind: str
    value: str


@dataclass(frozen=True)
class ReferenceType:
    """A reference type qualified with its data location."""

    inner: Type
    location: str  # storage, memory or calldata


@dataclass(frozen=True)
class OpaqueType:
    """Any type the front-end reports that has no structured form here."""

    text: str


Type = (
    ElementaryType | ArrayType | MappingType | StructType | EnumType
    | ContractType | FunctionType | TupleType | LiteralType
    | ReferenceType | OpaqueType
)


# ── Built-in type constants ─────────────────────────────────────

BOOL = ElementaryType("bool")
ADDRESS = ElementaryType("address")
UINT256 = ElementaryType("uint256")
BYTES32 = ElementaryType("bytes32")
STRING = ElementaryType("string")
BYTES = ElementaryType("bytes")
VOID = TupleType(())


# ── Type utilities ──────────────────────────────────────────────


def type_name(ty: Type | None) -> str:
    """Human-readable Solidity spelling of a resolved type."""
    if ty is None:
        return ""
    if isinstance(ty, ElementaryType):
        return ty.name
    if isinstance(ty, ArrayType):
        length = "" if ty.length is None else str(ty.length)
        return f"{type_name(ty.element)}[{length}]"
    if isinstance(ty, MappingType):
        return f"mapping({type_name(ty.key)} => {type_name(ty.value)})"
    if isinstance(ty, StructType):
        return f"struct {ty.name}"
    if isinstance(ty, EnumType):
        return f"enum {ty.name}"
    if isinstance(ty, ContractType):
        return f"{ty.kind} {ty.name}"
    if isinstance(ty, FunctionType):
        params = ",".join(type_name(p) for p in ty.params)
        text = f"function ({params})"
        if ty.attributes:
            text += " " + " ".join(ty.attributes)
        if ty.returns:
            returns = ",".join(type_name(r) for r in ty.returns)
            text += f" returns ({returns})"
        return text
    if isinstance(ty, TupleType):
        members = ",".join(type_name(m) for m in ty.members)
        return f"tuple({members})"
    if isinstance(ty, LiteralType):
        return f"{ty.kind} {ty.value}"
    if isinstance(ty, ReferenceType):
        return f"{type_name(ty.inner)} {ty.location}"
    if isinstance(ty, OpaqueType):
        return ty.text
    return str(ty)


# ── Parsing solc typeString values ──────────────────────────────

# Longest suffix first so "storage ref" wins over "storage".
_LOCATION_SUFFIXES = (
    (" storage ref", "storage"),
    (" storage pointer", "storage"),
    (" storage", "storage"),
    (" memory", "memory"),
    (" calldata", "calldata"),
)

_LITERAL_KINDS = ("int_const", "rational_const", "literal_string")

_CONTRACT_KINDS = ("contract", "interface", "library")

_ELEMENTARY = re.compile(r"[A-Za-z_$][\w$.]*( payable)?")


def _split_top(text: str, sep: str) -> list[str]:
    """Split on *sep* where it occurs outside parentheses and brackets."""
    parts: list[str] = []
    depth = 0
    start = 0
    i = 0
    while i < len(text):
        ch = text[i]
        if ch in "([":
            depth += 1
        elif ch in ")]":
            depth -= 1
        elif depth == 0 and text.startswith(sep, i):
            parts.append(text[start:i])
            i += len(sep)
            start = i
            continue
        i += 1
    parts.append(text[start:])
    return parts


def _matching_open(text: str, close: int) -> int:
    """Index of the bracket opening the one that closes at *close*."""
    depth = 0
    for i in range(close, -1, -1):
        if text[i] in ")]":
            depth += 1
        elif text[i] in "([":
            depth -= 1
            if depth == 0:
                return i
    return -1


def _matching_close(text: str, open_: int) -> int:
    depth = 0
    for i in range(open_, len(text)):
        if text[i] in "([":
            depth += 1
        elif text[i] in ")]":
            depth -= 1
            if depth == 0:
                return i
    return -1


def _parse_list(text: str) -> tuple[Type, ...]:
    text = text.strip()
    if not text:
        return ()
    return tuple(parse_type_string(part) for part in _split_top(text, ","))


def _parse_function(text: str) -> Type:
    open_ = text.find("(")
    close = _matching_close(text, open_) if open_ != -1 else -1
    if close == -1:
        return OpaqueType(text)
    params = _parse_list(text[open_ + 1:close])
    rest = text[close + 1:].strip()

    returns: tuple[Type, ...] = ()
    marker = rest.find("returns (")
    if marker != -1:
        ret_open = marker + len("returns ")
        ret_close = _matching_close(rest, ret_open)
        if ret_close == -1:
            return OpaqueType(text)
        returns = _parse_list(rest[ret_open + 1:ret_close])
        rest = rest[:marker].strip()

    attributes = tuple(rest.split()) if rest else ()
    return FunctionType(params, returns, attributes)


def parse_type_string(text: str) -> Type:
    """Parse a solc ``typeDescriptions.typeString`` into a resolved type.

    Anything outside the recognised grammar is kept verbatim as an
    ``OpaqueType`` so descriptions never lose information.
    """
    text = text.strip()
    if not text:
        return OpaqueType("")

    if text.startswith("function"):
        return _parse_function(text)

    for suffix, location in _LOCATION_SUFFIXES:
        if text.endswith(suffix):
            return ReferenceType(parse_type_string(text[: -len(suffix)]), location)

    if text.endswith("]"):
        open_ = _matching_open(text, len(text) - 1)
        if open_ > 0:
            length = text[open_ + 1:-1].strip()
            return ArrayType(
                parse_type_string(text[:open_]),
                int(length) if length.isdigit() else None,
            )

    if text.startswith("mapping(") and text.endswith(")"):
        parts = _split_top(text[len("mapping("):-1], " => ")
        if len(parts) == 2:
            return MappingType(parse_type_string(parts[0]), parse_type_string(parts[1]))
        return OpaqueType(text)

    if text.startswith("tuple(") and text.endswith(")"):
        inner = text[len("tuple("):-1]
        if not inner.strip():
            return VOID
        return TupleType(tuple(
            parse_type_string(part) if part.strip() else None
            for part in _split_top(inner, ",")
        ))

    kind, _, rest = text.partition(" ")
    if rest:
        if kind == "struct":
            return StructType(rest)
        if kind == "enum":
            return EnumType(rest)
        if kind in _CONTRACT_KINDS:
            return ContractType(rest, kind)
        if kind in _LITERAL_KINDS:
            return LiteralType(kind, rest)

    if _ELEMENTARY.fullmatch(text):
        return ElementaryType(text)

    return OpaqueType(text)
