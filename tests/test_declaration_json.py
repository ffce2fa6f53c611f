from __future__ import annotations

import json
from pathlib import Path

import pytest

from crossbind.analysis.declarations import Visibility
from crossbind.analysis.types import PointerType, QualifiedName, named
from crossbind.ingest import (
    DeclarationFormatError,
    load_declaration_file,
    load_declaration_text,
    parse_declaration,
    parse_declaration_document,
)

DOCUMENT = {
    "pod_safe_types": ["Point"],
    "declarations": [
        {
            "name": "Widget_resize",
            "native_name": "resize",
            "namespace": ["ui"],
            "owning_type": "ui::Widget",
            "params": [
                {"name": "this", "type": "*mut ui::Widget"},
                {"name": "w", "type": "int"},
            ],
            "return_type": None,
            "virtual_this_type": None,
            "visibility": "public",
            "annotations": {
                "pure_virtual": False,
                "special_member": None,
                "reference_params": [],
                "reference_return": False,
                "unused_template_param": False,
            },
        },
        {"name": "native_add", "params": [{"name": "a", "type": "int"}], "return_type": "int"},
    ],
}


def test_parse_declaration_document() -> None:
    document = parse_declaration_document(DOCUMENT)
    assert document.pod_safe_types == frozenset({QualifiedName((), "Point")})
    resize, add = document.declarations
    assert resize.namespace == ("ui",)
    assert resize.owning_type == QualifiedName(("ui",), "Widget")
    assert resize.params[0].type == PointerType(named("ui::Widget"), mutable=True)
    assert resize.return_type is None
    assert resize.visibility is Visibility.PUBLIC
    assert add.native_name is None
    assert add.owning_type is None
    assert add.return_type == named("int")


def test_annotations_are_carried_over() -> None:
    decl = parse_declaration(
        {
            "name": "Widget_draw",
            "owning_type": "Widget",
            "virtual_this_type": "Widget",
            "visibility": "private",
            "annotations": {
                "pure_virtual": True,
                "special_member": "move_ctor",
                "reference_params": ["out"],
                "reference_return": True,
            },
        }
    )
    assert decl.annotations.pure_virtual
    assert decl.is_move_constructor
    assert decl.annotations.reference_params == frozenset({"out"})
    assert decl.annotations.reference_return
    assert decl.virtual_this_type == QualifiedName((), "Widget")
    assert decl.visibility is Visibility.PRIVATE


def test_load_declaration_file(tmp_path: Path) -> None:
    path = tmp_path / "decls.json"
    path.write_text(json.dumps(DOCUMENT))
    assert len(load_declaration_file(path).declarations) == 2


@pytest.mark.parametrize(
    "text",
    [
        "{not json",
        "[]",
        '{"declarations": [{"params": []}]}',
        '{"declarations": [{"name": "f", "visibility": "protected"}]}',
        '{"declarations": [{"name": "f", "params": [{"name": "a", "type": "*int"}]}]}',
        '{"declarations": [{"name": "f", "owning_type": "ui::"}]}',
        '{"pod_safe_types": ["::Point"]}',
        '{"declarations": {"name": "f"}}',
    ],
)
def test_malformed_documents_are_rejected(text: str) -> None:
    with pytest.raises(DeclarationFormatError):
        load_declaration_text(text, source="decls.json")


def test_unreadable_file_is_a_format_error(tmp_path: Path) -> None:
    with pytest.raises(DeclarationFormatError) as excinfo:
        load_declaration_file(tmp_path / "missing.json")
    assert "missing.json" in str(excinfo.value)


def test_type_errors_name_the_declaration() -> None:
    with pytest.raises(DeclarationFormatError) as excinfo:
        load_declaration_text(
            '{"declarations": [{"name": "f", "return_type": "Foo<"}]}',
            source="decls.json",
        )
    assert "declarations[0] (f)" in str(excinfo.value)
