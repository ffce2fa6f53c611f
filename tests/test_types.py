from __future__ import annotations

import pytest

from crossbind.analysis.types import (
    NamedType,
    OwnedPointerType,
    PointerType,
    QualifiedName,
    ReferenceType,
    StrViewType,
    TypeSyntaxError,
    is_valid_managed_identifier,
    named,
    parse_type,
    render_type,
    validate_bridge_identifier,
    validate_managed_identifier,
)
from crossbind.exceptions import InvalidIdentifier


def test_qualified_name_from_text() -> None:
    name = QualifiedName.from_text("ui::detail::Widget")
    assert name.namespace == ("ui", "detail")
    assert name.final_item == "Widget"
    assert name.to_native_name() == "ui::detail::Widget"
    assert str(QualifiedName.from_text("int")) == "int"


@pytest.mark.parametrize("text", ["", "ui::", "::Widget", "a::::b"])
def test_qualified_name_rejects_empty_segments(text: str) -> None:
    with pytest.raises(TypeSyntaxError):
        QualifiedName.from_text(text)


def test_placeholder_is_only_the_unscoped_void_name() -> None:
    assert QualifiedName((), "c_void").is_placeholder()
    assert not QualifiedName(("ffi",), "c_void").is_placeholder()
    assert not QualifiedName((), "Widget").is_placeholder()


def test_parse_pointer_and_reference_types() -> None:
    assert parse_type("*mut ui::Widget") == PointerType(
        NamedType(QualifiedName(("ui",), "Widget")), mutable=True
    )
    assert parse_type("*const int") == PointerType(named("int"), mutable=False)
    assert parse_type("&Widget") == ReferenceType(named("Widget"), mutable=False)
    assert parse_type("&mut Widget") == ReferenceType(named("Widget"), mutable=True)


def test_parse_template_arguments() -> None:
    parsed = parse_type("std::map<int, *const c_char>")
    assert parsed == named(
        "std::map",
        named("int"),
        PointerType(named("c_char"), mutable=False),
    )


@pytest.mark.parametrize(
    "text",
    [
        "int",
        "ui::Widget",
        "*mut ui::Widget",
        "&mut std::vector<std::string>",
        "std::map<int, *const c_char>",
    ],
)
def test_render_type_matches_parsed_text(text: str) -> None:
    assert render_type(parse_type(text)) == text


def test_render_bridge_side_types() -> None:
    assert render_type(OwnedPointerType(named("Widget"))) == "OwnedPtr<Widget>"
    assert render_type(StrViewType()) == "&str"


@pytest.mark.parametrize(
    "text",
    ["", "*Widget", "Foo<int", "Foo<int,>", "int long", "int$", "&"],
)
def test_parse_type_rejects_malformed_text(text: str) -> None:
    with pytest.raises(TypeSyntaxError):
        parse_type(text)


def test_managed_identifier_grammar() -> None:
    validate_managed_identifier("resize")
    validate_managed_identifier("a__b")
    assert is_valid_managed_identifier("type_")
    assert not is_valid_managed_identifier("type")
    assert not is_valid_managed_identifier("operator+")
    with pytest.raises(InvalidIdentifier) as excinfo:
        validate_managed_identifier("1st")
    assert excinfo.value.grammar == "managed"


def test_bridge_identifier_grammar_rejects_double_underscore() -> None:
    validate_bridge_identifier("resize_crossbind_wrapper")
    with pytest.raises(InvalidIdentifier) as excinfo:
        validate_bridge_identifier("a__b")
    assert excinfo.value.grammar == "bridge"
    assert excinfo.value.kind == "InvalidIdentifier"
    with pytest.raises(InvalidIdentifier):
        validate_bridge_identifier("match")
