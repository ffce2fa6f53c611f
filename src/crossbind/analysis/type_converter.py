from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import StrEnum

from crossbind.analysis import known_types
from crossbind.analysis.types import (
    BoundaryType,
    NamedType,
    Namespace,
    OwnedPointerType,
    PointerType,
    QualifiedName,
    ReferenceType,
    StrViewType,
    render_type,
)
from crossbind.invariants import never
from crossbind.json_types import JSONObject

CONCRETE_TYPE_PREFIX = "Concrete"
STRING_CONSTRUCTOR_NAME = "make_string"

_NON_IDENT_RE = re.compile(r"[^A-Za-z0-9]+")


class ExtraApiKind(StrEnum):
    CONCRETE_TYPE = "concrete_type"
    STRING_CONSTRUCTOR = "string_constructor"


@dataclass(frozen=True)
class ExtraApi:
    """An API discovered while converting types, analyzed in a later pass."""

    kind: ExtraApiKind
    name: str
    namespace: Namespace = ()
    native_type: str = ""

    def as_json(self) -> JSONObject:
        return {
            "kind": self.kind.value,
            "name": self.name,
            "namespace": list(self.namespace),
            "native_type": self.native_type,
        }


@dataclass(frozen=True)
class AnnotatedType:
    ty: BoundaryType
    types_encountered: frozenset[QualifiedName] = frozenset()
    requires_unsafe: bool = False
    extra_apis: tuple[ExtraApi, ...] = ()


@dataclass
class _Walk:
    deps: set[QualifiedName] = field(default_factory=set)
    requires_unsafe: bool = False
    extra_apis: list[ExtraApi] = field(default_factory=list)


def concrete_type_name(ty: NamedType) -> str:
    flat = _NON_IDENT_RE.sub("_", render_type(ty)).strip("_")
    return f"{CONCRETE_TYPE_PREFIX}_{flat}"


class TypeConverter:
    """Rewrites native types into their boundary form.

    A converter lives for one run: it remembers which concrete template
    instantiations and utility APIs it has already requested so each is
    queued once.
    """

    def __init__(self, *, exclude_utilities: bool = False) -> None:
        self.exclude_utilities = exclude_utilities
        self._requested: set[tuple[ExtraApiKind, str]] = set()

    def convert_type(
        self,
        ty: BoundaryType,
        namespace: Namespace,
        *,
        convert_ptrs_to_references: bool = False,
    ) -> AnnotatedType:
        walk = _Walk()
        if convert_ptrs_to_references and isinstance(ty, PointerType):
            converted: BoundaryType = ReferenceType(
                self._convert(ty.pointee, namespace, walk),
                mutable=ty.mutable,
            )
        else:
            converted = self._convert(ty, namespace, walk)
        return AnnotatedType(
            ty=converted,
            types_encountered=frozenset(walk.deps),
            requires_unsafe=walk.requires_unsafe,
            extra_apis=tuple(walk.extra_apis),
        )

    def _convert(self, ty: BoundaryType, namespace: Namespace, walk: _Walk) -> BoundaryType:
        match ty:
            case NamedType(name=name, args=args):
                converted_args = tuple(self._convert(arg, namespace, walk) for arg in args)
                converted = NamedType(name, converted_args)
                if not known_types.is_primitive(name) and not name.is_placeholder():
                    walk.deps.add(name)
                if converted_args:
                    self._request(
                        walk,
                        ExtraApi(
                            kind=ExtraApiKind.CONCRETE_TYPE,
                            name=concrete_type_name(converted),
                            namespace=namespace,
                            native_type=render_type(converted),
                        ),
                    )
                if known_types.convertible_from_strs(name) and not self.exclude_utilities:
                    self._request(
                        walk,
                        ExtraApi(
                            kind=ExtraApiKind.STRING_CONSTRUCTOR,
                            name=STRING_CONSTRUCTOR_NAME,
                            native_type=render_type(converted),
                        ),
                    )
                return converted
            case PointerType(pointee=pointee, mutable=mutable):
                # Pointers to the placeholder are opaque handles.
                if not (isinstance(pointee, NamedType) and pointee.name.is_placeholder()):
                    walk.requires_unsafe = True
                return PointerType(self._convert(pointee, namespace, walk), mutable=mutable)
            case ReferenceType(referent=referent, mutable=mutable):
                return ReferenceType(self._convert(referent, namespace, walk), mutable=mutable)
            case OwnedPointerType() | StrViewType():
                never("bridge-side type in a native declaration", ty=render_type(ty))
        never("unknown boundary type", ty=ty)

    def _request(self, walk: _Walk, api: ExtraApi) -> None:
        key = (api.kind, api.name)
        if key in self._requested:
            return
        self._requested.add(key)
        walk.extra_apis.append(api)
