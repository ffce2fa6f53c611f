from __future__ import annotations

import pytest

from crossbind.analysis.functions import Method, MethodKind
from crossbind.analysis.pipeline import analyze_functions
from crossbind.analysis.types import ReferenceType
from crossbind.config import AnalyzerConfig
from crossbind.report import render_plan

from tests.decl_helpers import free_function, method


def _batch():
    return [
        free_function("native_add", ("a", "int"), ("b", "int"), returns="int"),
        method("Widget", "Widget_Widget", ("size", "int")),
        method("Widget", "Widget_Widget1", ("other", "&mut Widget"),
               native_name="Widget", special_member="move_ctor"),
        method("Widget", "Widget_resize", ("w", "int"), native_name="resize"),
        method("Widget", "Widget_destructor"),
        method("Gadget", "Gadget_resize", native_name="resize"),
        method("Widget", "Widget_draw", native_name="draw", virtual_this="Widget"),
        method("Widget", "Widget_count", returns="int", native_name="count", receiver=None),
        free_function("reset", namespace=("a",)),
        free_function("reset", namespace=("b",)),
        free_function("foo", ("x", "int")),
        free_function("foo1", ("x", "f64"), native_name="foo"),
        free_function("foo2", ("x", "bool"), native_name="foo"),
        free_function("greet", ("name", "std::string"), returns="std::string"),
        free_function("get", ("x", "int"), returns="&int"),
        free_function("pick", ("a", "&int"), returns="&int"),
        method("Sprocket", "Sprocket_spin", native_name="spin"),
        free_function("sum", ("v", "&std::vector<int>"), returns="int"),
    ]


def _config() -> AnalyzerConfig:
    return AnalyzerConfig(allowlist=frozenset({"Widget", "Gadget"}))


def test_errors_are_collected_and_the_run_continues() -> None:
    run = analyze_functions(_batch(), _config())
    assert [error.kind for error in run.errors] == [
        "MoveConstructorUnsupported",
        "AmbiguousReferenceReturn",
    ]
    assert run.errors[0].declaration == "Widget_Widget1"
    assert run.errors[0].context.startswith("Widget::make_unique1: ")
    assert not run.ok
    assert not run.stopped_early
    assert "native_add" in [result.managed_name for result in run.results]
    assert "resize" in [result.managed_name for result in run.results]
    assert [skipped.name for skipped in run.skipped] == ["Widget_destructor", "Sprocket_spin"]
    assert [api.kind.value for api in run.extra_apis] == [
        "string_constructor",
        "concrete_type",
    ]


def test_stop_on_first_error() -> None:
    run = analyze_functions(_batch(), _config(), stop_on_first_error=True)
    assert run.stopped_early
    assert [error.kind for error in run.errors] == ["MoveConstructorUnsupported"]
    assert [result.managed_name for result in run.results] == ["native_add", "make_unique"]

    configured = analyze_functions(
        _batch(), AnalyzerConfig(allowlist=frozenset({"Widget"}), stop_on_first_error=True)
    )
    assert configured.stopped_early


def test_identical_input_gives_identical_plan() -> None:
    first = analyze_functions(_batch(), _config())
    second = analyze_functions(_batch(), _config())
    assert render_plan(first) == render_plan(second)
    assert [
        (result.bridge_name, result.managed_name, result.rename_strategy)
        for result in first.results
    ] == [
        (result.bridge_name, result.managed_name, result.rename_strategy)
        for result in second.results
    ]


def _colliding_batch():
    return [
        free_function("b_f_crossbind1"),
        free_function("b_f"),
        free_function("f", namespace=("a",)),
        free_function("f", namespace=("b",)),
        free_function("f", namespace=("c",)),
        free_function("hello_crossbind_wrapper", ("a", "int"), returns="int"),
        free_function("hello", ("name", "std::string")),
    ]


def test_colliding_bridge_names_are_renamed() -> None:
    run = analyze_functions(_colliding_batch(), _config())
    assert run.ok
    assert [result.bridge_name for result in run.results] == [
        "b_f_crossbind1",
        "b_f",
        "f",
        "b_f_crossbind2",
        "c_f",
        "hello_crossbind_wrapper",
        "hello_crossbind_wrapper_crossbind1",
    ]
    assert run.results[-1].shim is not None
    assert run.results[-1].shim.wrapper_function_name == "hello_crossbind_wrapper_crossbind1"


@pytest.mark.parametrize("batch", [_batch, _colliding_batch])
def test_bridge_names_and_managed_identities_are_unique(batch) -> None:
    run = analyze_functions(batch(), _config())
    bridge_names = [result.bridge_name for result in run.results]
    assert len(set(bridge_names)) == len(bridge_names)
    identities = [
        (result.namespace, result.allowlist_typename, result.managed_name)
        for result in run.results
    ]
    assert len(set(identities)) == len(identities)
    exported = [
        result.exported_name
        for result in run.results
        if not isinstance(result.kind, Method)
    ]
    assert len(set(exported)) == len(exported)


def test_reference_returns_borrow_from_exactly_one_parameter() -> None:
    run = analyze_functions(_batch(), _config())
    for result in run.results:
        if isinstance(result.return_type, ReferenceType):
            assert sum(1 for detail in result.param_details if detail.was_reference) == 1


def test_special_method_kinds_always_carry_a_shim() -> None:
    run = analyze_functions(_batch(), _config())
    for result in run.results:
        match result.kind:
            case Method(method_kind=MethodKind.STATIC | MethodKind.VIRTUAL | MethodKind.PURE_VIRTUAL):
                assert result.shim is not None
            case Method(method_kind=MethodKind.NORMAL) if (
                result.bridge_name == result.managed_name
                and not any(d.conversion.native_work_needed for d in result.param_details)
            ):
                assert result.shim is None
            case _:
                pass
