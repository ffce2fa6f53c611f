from __future__ import annotations

import pytest

from crossbind.analysis.conversion import (
    ConversionClassifier,
    ConversionKind,
    Direction,
    from_borrowed_string,
    from_owned_pointer,
    to_owned_pointer,
    unconverted,
)
from crossbind.analysis.functions import build_pod_safe_type_set
from crossbind.analysis.type_converter import (
    ExtraApiKind,
    TypeConverter,
    concrete_type_name,
)
from crossbind.analysis.types import (
    OwnedPointerType,
    PointerType,
    QualifiedName,
    ReferenceType,
    StrViewType,
    named,
    parse_type,
)


def _classifier(*, exclude_utilities: bool = False) -> ConversionClassifier:
    return ConversionClassifier(
        pod_safe_types=build_pod_safe_type_set([QualifiedName.from_text("Point")]),
        exclude_utilities=exclude_utilities,
    )


@pytest.mark.parametrize("direction", list(Direction))
def test_pod_safe_types_cross_unconverted(direction: Direction) -> None:
    classifier = _classifier()
    assert classifier.classify(named("int"), direction).kind is ConversionKind.UNCONVERTED
    assert classifier.classify(named("Point"), direction).kind is ConversionKind.UNCONVERTED


def test_non_trivial_type_depends_on_direction() -> None:
    classifier = _classifier()
    widget = named("Widget")
    assert classifier.classify(widget, Direction.ARGUMENT) == from_owned_pointer(widget)
    assert classifier.classify(widget, Direction.RETURN) == to_owned_pointer(widget)


def test_string_like_argument_is_built_from_a_borrowed_string() -> None:
    string = named("std::string")
    assert _classifier().classify(string, Direction.ARGUMENT) == from_borrowed_string(string)
    assert _classifier().classify(string, Direction.RETURN) == to_owned_pointer(string)
    assert _classifier(exclude_utilities=True).classify(
        string, Direction.ARGUMENT
    ) == from_owned_pointer(string)


def test_pointers_and_references_are_never_converted() -> None:
    classifier = _classifier()
    for text in ("*mut Widget", "&Widget", "&mut std::string"):
        ty = parse_type(text)
        assert classifier.classify(ty, Direction.ARGUMENT) == unconverted(ty)
        assert classifier.classify(ty, Direction.RETURN) == unconverted(ty)


def test_bridge_side_types_follow_the_conversion() -> None:
    widget = named("Widget")
    assert from_owned_pointer(widget).bridge_argument_type() == OwnedPointerType(widget)
    assert to_owned_pointer(widget).bridge_return_type() == OwnedPointerType(widget)
    assert to_owned_pointer(widget).bridge_argument_type() == widget
    assert from_borrowed_string(named("std::string")).bridge_argument_type() == StrViewType()
    assert unconverted(widget).bridge_return_type() == widget
    assert not unconverted(widget).native_work_needed
    assert from_owned_pointer(widget).native_work_needed


def test_conversion_as_json() -> None:
    assert to_owned_pointer(named("ui::Widget")).as_json() == {
        "kind": "to_owned_pointer",
        "native_type": "ui::Widget",
    }


def test_raw_pointers_require_unsafe_unless_treated_as_references() -> None:
    converter = TypeConverter()
    raw = converter.convert_type(parse_type("*mut int"), ())
    assert raw.requires_unsafe
    assert raw.ty == PointerType(named("int"), mutable=True)

    as_ref = converter.convert_type(
        parse_type("*mut Widget"), (), convert_ptrs_to_references=True
    )
    assert not as_ref.requires_unsafe
    assert as_ref.ty == ReferenceType(named("Widget"), mutable=True)
    assert as_ref.types_encountered == frozenset({QualifiedName.from_text("Widget")})


def test_void_handles_do_not_require_unsafe() -> None:
    converted = TypeConverter().convert_type(parse_type("*mut c_void"), ())
    assert not converted.requires_unsafe
    assert converted.types_encountered == frozenset()


def test_nested_pointers_still_require_unsafe() -> None:
    converted = TypeConverter().convert_type(
        parse_type("*mut *const Widget"), (), convert_ptrs_to_references=True
    )
    assert isinstance(converted.ty, ReferenceType)
    assert converted.requires_unsafe


def test_template_instantiations_are_requested_once() -> None:
    converter = TypeConverter()
    first = converter.convert_type(parse_type("std::vector<Widget>"), ("ui",))
    second = converter.convert_type(parse_type("&std::vector<Widget>"), ("ui",))
    assert [api.kind for api in first.extra_apis] == [ExtraApiKind.CONCRETE_TYPE]
    assert first.extra_apis[0].name == "Concrete_std_vector_Widget"
    assert first.extra_apis[0].namespace == ("ui",)
    assert first.extra_apis[0].native_type == "std::vector<Widget>"
    assert second.extra_apis == ()
    assert first.types_encountered == frozenset(
        {QualifiedName.from_text("std::vector"), QualifiedName.from_text("Widget")}
    )


def test_string_constructor_is_requested_unless_utilities_are_excluded() -> None:
    converter = TypeConverter()
    apis = converter.convert_type(named("std::string"), ()).extra_apis
    assert [api.kind for api in apis] == [ExtraApiKind.STRING_CONSTRUCTOR]
    assert converter.convert_type(named("std::string"), ()).extra_apis == ()

    excluded = TypeConverter(exclude_utilities=True)
    assert excluded.convert_type(named("std::string"), ()).extra_apis == ()


def test_concrete_type_name_flattens_template_text() -> None:
    ty = named("std::map", named("int"), named("ui::Widget"))
    assert concrete_type_name(ty) == "Concrete_std_map_int_ui_Widget"
