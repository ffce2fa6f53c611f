from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping

from pydantic import ValidationError

from crossbind.analysis.declarations import (
    Declaration,
    DeclarationAnnotations,
    Param,
    Visibility,
)
from crossbind.analysis.types import QualifiedName, TypeSyntaxError, parse_type
from crossbind.invariants import boundary_normalization
from crossbind.schema import DeclarationDTO, DeclarationDocumentDTO


class DeclarationFormatError(ValueError):
    pass


@dataclass(frozen=True)
class DeclarationDocument:
    declarations: tuple[Declaration, ...]
    pod_safe_types: frozenset[QualifiedName] = frozenset()


def load_declaration_file(path: Path) -> DeclarationDocument:
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeError) as exc:
        raise DeclarationFormatError(f"cannot read {path}: {exc}") from exc
    return load_declaration_text(text, source=str(path))


def load_declaration_text(text: str, *, source: str = "<text>") -> DeclarationDocument:
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as exc:
        raise DeclarationFormatError(f"{source}: invalid JSON: {exc}") from exc
    if not isinstance(payload, Mapping):
        raise DeclarationFormatError(f"{source}: top level must be an object")
    return parse_declaration_document(payload, source=source)


@boundary_normalization
def parse_declaration_document(
    payload: Mapping[str, object],
    *,
    source: str = "<payload>",
) -> DeclarationDocument:
    try:
        document = DeclarationDocumentDTO.model_validate(payload)
    except ValidationError as exc:
        raise DeclarationFormatError(f"{source}: {exc}") from exc
    declarations = tuple(
        declaration_from_dto(dto, where=f"{source}: declarations[{index}]")
        for index, dto in enumerate(document.declarations)
    )
    try:
        pod_safe_types = frozenset(
            QualifiedName.from_text(name) for name in document.pod_safe_types
        )
    except TypeSyntaxError as exc:
        raise DeclarationFormatError(f"{source}: pod_safe_types: {exc}") from exc
    return DeclarationDocument(declarations=declarations, pod_safe_types=pod_safe_types)


def parse_declaration(raw: Mapping[str, object]) -> Declaration:
    try:
        dto = DeclarationDTO.model_validate(raw)
    except ValidationError as exc:
        raise DeclarationFormatError(str(exc)) from exc
    return declaration_from_dto(dto)


def declaration_from_dto(dto: DeclarationDTO, *, where: str = "<declaration>") -> Declaration:
    where = f"{where} ({dto.name})"
    try:
        return Declaration(
            name=dto.name,
            params=tuple(
                Param(name=param.name, type=parse_type(param.type)) for param in dto.params
            ),
            return_type=parse_type(dto.return_type) if dto.return_type else None,
            namespace=tuple(dto.namespace),
            native_name=dto.native_name,
            owning_type=_optional_name(dto.owning_type),
            virtual_this_type=_optional_name(dto.virtual_this_type),
            annotations=DeclarationAnnotations(
                pure_virtual=dto.annotations.pure_virtual,
                special_member=dto.annotations.special_member,
                reference_params=frozenset(dto.annotations.reference_params),
                reference_return=dto.annotations.reference_return,
                unused_template_param=dto.annotations.unused_template_param,
            ),
            visibility=Visibility(dto.visibility),
        )
    except TypeSyntaxError as exc:
        raise DeclarationFormatError(f"{where}: {exc}") from exc


def _optional_name(text: str | None) -> QualifiedName | None:
    return QualifiedName.from_text(text) if text else None
