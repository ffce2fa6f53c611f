from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum

from crossbind.analysis.types import BoundaryType, Namespace, QualifiedName

MOVE_CONSTRUCTOR_MARKER = "move_ctor"
DESTRUCTOR_SUFFIX = "_destructor"


class Visibility(StrEnum):
    PUBLIC = "public"
    PRIVATE = "private"


@dataclass(frozen=True)
class Param:
    name: str
    type: BoundaryType


@dataclass(frozen=True)
class DeclarationAnnotations:
    pure_virtual: bool = False
    special_member: str | None = None
    reference_params: frozenset[str] = frozenset()
    reference_return: bool = False
    unused_template_param: bool = False


@dataclass(frozen=True)
class Declaration:
    """One native function or method as handed over by the ingestion front end.

    ``name`` is the identifier the front end assigned (for methods usually
    ``<Type>_<method>``, possibly with a numeric overload suffix or a trailing
    underscore for reserved words). ``native_name`` is the name as spelled in
    the native headers, when it differs.
    """

    name: str
    params: tuple[Param, ...] = ()
    return_type: BoundaryType | None = None
    namespace: Namespace = ()
    native_name: str | None = None
    owning_type: QualifiedName | None = None
    virtual_this_type: QualifiedName | None = None
    annotations: DeclarationAnnotations = field(default_factory=DeclarationAnnotations)
    visibility: Visibility = Visibility.PUBLIC

    @property
    def diagnostic_name(self) -> str:
        return self.native_name if self.native_name is not None else self.name

    @property
    def is_destructor(self) -> bool:
        return self.name.endswith(DESTRUCTOR_SUFFIX)

    @property
    def is_move_constructor(self) -> bool:
        return self.annotations.special_member == MOVE_CONSTRUCTOR_MARKER
