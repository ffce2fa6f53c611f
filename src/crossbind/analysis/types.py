"""Boundary type model, type-text parsing and identifier grammars.

Types arrive from the ingestion front end as short text such as
``*mut ui::Widget`` or ``std::vector<int>``. They are parsed into a small
closed set of frozen dataclasses which the rest of the analysis matches on.
Two additional nodes, ``OwnedPointerType`` and ``StrViewType``, never appear
in ingested declarations; they describe bridge-side types produced by
conversions.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import TypeAlias

from crossbind.exceptions import InvalidIdentifier

Namespace: TypeAlias = tuple[str, ...]

PLACEHOLDER_TYPE_NAME = "c_void"

_IDENT_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
_TOKEN_RE = re.compile(r"\s*(::|[A-Za-z_][A-Za-z0-9_]*|[*&<>,])")

MANAGED_RESERVED_WORDS: frozenset[str] = frozenset(
    {
        "abstract", "as", "async", "await", "become", "box", "break", "const",
        "continue", "crate", "do", "dyn", "else", "enum", "extern", "false",
        "final", "fn", "for", "if", "impl", "in", "let", "loop", "macro",
        "match", "mod", "move", "mut", "override", "priv", "pub", "ref",
        "return", "self", "Self", "static", "struct", "super", "trait", "true",
        "try", "type", "typeof", "unsafe", "unsized", "use", "virtual", "where",
        "while", "yield",
    }
)


class TypeSyntaxError(ValueError):
    pass


@dataclass(frozen=True)
class QualifiedName:
    namespace: Namespace
    name: str

    @classmethod
    def from_text(cls, text: str) -> "QualifiedName":
        parts = [part.strip() for part in text.split("::")]
        if not parts or not all(parts):
            raise TypeSyntaxError(f"malformed qualified name {text!r}")
        return cls(namespace=tuple(parts[:-1]), name=parts[-1])

    @property
    def final_item(self) -> str:
        return self.name

    def to_native_name(self) -> str:
        return "::".join((*self.namespace, self.name))

    def is_placeholder(self) -> bool:
        return not self.namespace and self.name == PLACEHOLDER_TYPE_NAME

    def __str__(self) -> str:
        return self.to_native_name()


@dataclass(frozen=True)
class NamedType:
    name: QualifiedName
    args: tuple["BoundaryType", ...] = ()


@dataclass(frozen=True)
class PointerType:
    pointee: "BoundaryType"
    mutable: bool = False


@dataclass(frozen=True)
class ReferenceType:
    referent: "BoundaryType"
    mutable: bool = False


@dataclass(frozen=True)
class OwnedPointerType:
    pointee: "BoundaryType"


@dataclass(frozen=True)
class StrViewType:
    pass


BoundaryType: TypeAlias = (
    NamedType | PointerType | ReferenceType | OwnedPointerType | StrViewType
)


def named(text: str, *args: BoundaryType) -> NamedType:
    return NamedType(QualifiedName.from_text(text), tuple(args))


def render_type(ty: BoundaryType) -> str:
    match ty:
        case NamedType(name=name, args=()):
            return name.to_native_name()
        case NamedType(name=name, args=args):
            inner = ", ".join(render_type(arg) for arg in args)
            return f"{name.to_native_name()}<{inner}>"
        case PointerType(pointee=pointee, mutable=mutable):
            return f"*{'mut' if mutable else 'const'} {render_type(pointee)}"
        case ReferenceType(referent=referent, mutable=mutable):
            return f"&{'mut ' if mutable else ''}{render_type(referent)}"
        case OwnedPointerType(pointee=pointee):
            return f"OwnedPtr<{render_type(pointee)}>"
        case StrViewType():
            return "&str"
    raise TypeError(f"not a boundary type: {ty!r}")


def parse_type(text: str) -> BoundaryType:
    tokens = _tokenize(text)
    ty, pos = _parse_type(tokens, 0, text)
    if pos != len(tokens):
        raise TypeSyntaxError(f"unexpected {tokens[pos]!r} in type {text!r}")
    return ty


def _tokenize(text: str) -> list[str]:
    tokens: list[str] = []
    pos = 0
    stripped = text.rstrip()
    while pos < len(stripped):
        match = _TOKEN_RE.match(stripped, pos)
        if match is None:
            raise TypeSyntaxError(f"cannot tokenize type {text!r} at offset {pos}")
        tokens.append(match.group(1))
        pos = match.end()
    if not tokens:
        raise TypeSyntaxError("empty type")
    return tokens


def _parse_type(tokens: list[str], pos: int, text: str) -> tuple[BoundaryType, int]:
    if pos >= len(tokens):
        raise TypeSyntaxError(f"type {text!r} ends unexpectedly")
    token = tokens[pos]
    if token == "*":
        if pos + 1 >= len(tokens) or tokens[pos + 1] not in {"mut", "const"}:
            raise TypeSyntaxError(f"pointer in {text!r} needs 'mut' or 'const'")
        pointee, end = _parse_type(tokens, pos + 2, text)
        return PointerType(pointee, mutable=tokens[pos + 1] == "mut"), end
    if token == "&":
        mutable = pos + 1 < len(tokens) and tokens[pos + 1] == "mut"
        referent, end = _parse_type(tokens, pos + (2 if mutable else 1), text)
        return ReferenceType(referent, mutable=mutable), end
    return _parse_named(tokens, pos, text)


def _parse_named(tokens: list[str], pos: int, text: str) -> tuple[NamedType, int]:
    parts: list[str] = []
    while True:
        if pos >= len(tokens) or not _IDENT_RE.match(tokens[pos]):
            raise TypeSyntaxError(f"expected a type name in {text!r}")
        parts.append(tokens[pos])
        pos += 1
        if pos < len(tokens) and tokens[pos] == "::":
            pos += 1
            continue
        break
    name = QualifiedName(namespace=tuple(parts[:-1]), name=parts[-1])
    args: list[BoundaryType] = []
    if pos < len(tokens) and tokens[pos] == "<":
        pos += 1
        while True:
            arg, pos = _parse_type(tokens, pos, text)
            args.append(arg)
            if pos < len(tokens) and tokens[pos] == ",":
                pos += 1
                continue
            if pos < len(tokens) and tokens[pos] == ">":
                pos += 1
                break
            raise TypeSyntaxError(f"unterminated template arguments in {text!r}")
    return NamedType(name, tuple(args)), pos


def validate_managed_identifier(ident: str) -> None:
    """Raise InvalidIdentifier unless ``ident`` is usable in managed code."""
    if not _IDENT_RE.match(ident):
        raise InvalidIdentifier(ident, "managed", "not an identifier")
    if ident in MANAGED_RESERVED_WORDS:
        raise InvalidIdentifier(ident, "managed", "reserved word")


def validate_bridge_identifier(ident: str) -> None:
    """The bridge layer accepts managed identifiers without double underscores."""
    try:
        validate_managed_identifier(ident)
    except InvalidIdentifier as exc:
        raise InvalidIdentifier(ident, "bridge", exc.reason) from exc
    if "__" in ident:
        raise InvalidIdentifier(ident, "bridge", "contains a double underscore")


def is_valid_managed_identifier(ident: str) -> bool:
    try:
        validate_managed_identifier(ident)
    except InvalidIdentifier:
        return False
    return True
