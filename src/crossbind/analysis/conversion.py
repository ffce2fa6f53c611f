from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum

from crossbind.analysis import known_types
from crossbind.analysis.types import (
    BoundaryType,
    NamedType,
    OwnedPointerType,
    PointerType,
    QualifiedName,
    ReferenceType,
    StrViewType,
    render_type,
)
from crossbind.invariants import decision_protocol, never
from crossbind.json_types import JSONObject


class ConversionKind(StrEnum):
    UNCONVERTED = "unconverted"
    FROM_BORROWED_STRING = "from_borrowed_string"
    TO_OWNED_POINTER = "to_owned_pointer"
    FROM_OWNED_POINTER = "from_owned_pointer"


class Direction(StrEnum):
    ARGUMENT = "argument"
    RETURN = "return"


@dataclass(frozen=True)
class TypeConversionPolicy:
    """How one native type crosses the boundary.

    ``unwrapped_type`` is the native-side type. The bridge-side type depends
    on the direction the value travels: an argument that arrives as an owned
    pointer is unwrapped into the native value, a native return value is
    wrapped into a newly owned pointer.
    """

    unwrapped_type: BoundaryType
    kind: ConversionKind

    @property
    def native_work_needed(self) -> bool:
        return self.kind is not ConversionKind.UNCONVERTED

    def bridge_argument_type(self) -> BoundaryType:
        match self.kind:
            case ConversionKind.FROM_OWNED_POINTER:
                return OwnedPointerType(self.unwrapped_type)
            case ConversionKind.FROM_BORROWED_STRING:
                return StrViewType()
            case ConversionKind.UNCONVERTED | ConversionKind.TO_OWNED_POINTER:
                return self.unwrapped_type
        never("unhandled conversion kind", kind=self.kind)

    def bridge_return_type(self) -> BoundaryType:
        match self.kind:
            case ConversionKind.TO_OWNED_POINTER:
                return OwnedPointerType(self.unwrapped_type)
            case (
                ConversionKind.UNCONVERTED
                | ConversionKind.FROM_OWNED_POINTER
                | ConversionKind.FROM_BORROWED_STRING
            ):
                return self.unwrapped_type
        never("unhandled conversion kind", kind=self.kind)

    def as_json(self) -> JSONObject:
        return {
            "kind": self.kind.value,
            "native_type": render_type(self.unwrapped_type),
        }


def unconverted(ty: BoundaryType) -> TypeConversionPolicy:
    return TypeConversionPolicy(ty, ConversionKind.UNCONVERTED)


def to_owned_pointer(ty: BoundaryType) -> TypeConversionPolicy:
    return TypeConversionPolicy(ty, ConversionKind.TO_OWNED_POINTER)


def from_owned_pointer(ty: BoundaryType) -> TypeConversionPolicy:
    return TypeConversionPolicy(ty, ConversionKind.FROM_OWNED_POINTER)


def from_borrowed_string(ty: BoundaryType) -> TypeConversionPolicy:
    return TypeConversionPolicy(ty, ConversionKind.FROM_BORROWED_STRING)


@dataclass(frozen=True)
class ConversionClassifier:
    pod_safe_types: frozenset[QualifiedName]
    exclude_utilities: bool = False

    def is_pod_safe(self, name: QualifiedName) -> bool:
        return name in self.pod_safe_types

    @decision_protocol
    def classify(self, ty: BoundaryType, direction: Direction) -> TypeConversionPolicy:
        match ty:
            case NamedType(name=name):
                if self.is_pod_safe(name):
                    return unconverted(ty)
                if direction is Direction.RETURN:
                    return to_owned_pointer(ty)
                if known_types.convertible_from_strs(name) and not self.exclude_utilities:
                    return from_borrowed_string(ty)
                return from_owned_pointer(ty)
            case PointerType() | ReferenceType() | OwnedPointerType() | StrViewType():
                return unconverted(ty)
        never("unclassifiable boundary type", ty=ty)
