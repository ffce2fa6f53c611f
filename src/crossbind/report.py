"""Plan and diagnostic rendering for an analysis run."""

from __future__ import annotations

from crossbind.analysis.arguments import ArgumentAnalysis
from crossbind.analysis.declarations import Param
from crossbind.analysis.functions import (
    FreeFunction,
    FunctionAnalysisResult,
    FunctionKind,
    Method,
    NoRenameNeeded,
    RenameStrategy,
    RenameViaAliasExport,
    RenameViaAttribute,
    SkippedDeclaration,
)
from crossbind.analysis.pipeline import AnalysisRun, DeclarationError
from crossbind.analysis.types import render_type
from crossbind.invariants import never
from crossbind.json_types import JSONObject
from crossbind.order_contract import sort_once
from crossbind.runtime.stable_encode import stable_pretty_text

PLAN_SCHEMA_VERSION = 1


def kind_as_json(kind: FunctionKind) -> JSONObject:
    match kind:
        case FreeFunction():
            return {"kind": "function"}
        case Method(owning_type=owning_type, method_kind=method_kind):
            return {
                "kind": "method",
                "owning_type": owning_type.to_native_name(),
                "method_kind": method_kind.value,
            }
    never("unknown function kind", kind=kind)


def rename_strategy_as_json(strategy: RenameStrategy) -> JSONObject:
    match strategy:
        case NoRenameNeeded():
            return {"strategy": "none"}
        case RenameViaAttribute():
            return {"strategy": "attribute"}
        case RenameViaAliasExport(original_name=original_name):
            return {"strategy": "alias_export", "original_name": original_name}
    never("unknown rename strategy", strategy=strategy)


def _param_as_json(param: Param) -> JSONObject:
    return {"name": param.name, "type": render_type(param.type)}


def _argument_as_json(detail: ArgumentAnalysis) -> JSONObject:
    return {
        "name": detail.name,
        "conversion": detail.conversion.as_json(),
        "self_type": (
            detail.self_type.to_native_name() if detail.self_type is not None else None
        ),
        "was_reference": detail.was_reference,
        "is_virtual": detail.is_virtual,
        "requires_unsafe": detail.requires_unsafe,
    }


def result_as_json(result: FunctionAnalysisResult) -> JSONObject:
    return {
        "bridge_name": result.bridge_name,
        "managed_name": result.managed_name,
        "exported_name": result.exported_name,
        "native_name": result.native_name,
        "namespace": list(result.namespace),
        "rename_strategy": rename_strategy_as_json(result.rename_strategy),
        "kind": kind_as_json(result.kind),
        "params": [_param_as_json(param) for param in result.params],
        "return_type": (
            render_type(result.return_type) if result.return_type is not None else None
        ),
        "param_details": [_argument_as_json(detail) for detail in result.param_details],
        "requires_unsafe": result.requires_unsafe,
        "visibility": result.visibility.value,
        "shim": result.shim.as_json() if result.shim is not None else None,
        "deps": sort_once(
            (dep.to_native_name() for dep in result.deps),
            source="report.result_as_json.deps",
        ),
    }


def _skipped_as_json(skipped: SkippedDeclaration) -> JSONObject:
    return {
        "name": skipped.name,
        "namespace": list(skipped.namespace),
        "reason": skipped.reason.value,
        "owning_type": (
            skipped.owning_type.to_native_name()
            if skipped.owning_type is not None
            else None
        ),
    }


def _error_as_json(error: DeclarationError) -> JSONObject:
    return {
        "declaration": error.declaration,
        "namespace": list(error.namespace),
        "kind": error.kind,
        "message": error.message,
        "context": error.context,
    }


def run_as_json(run: AnalysisRun) -> JSONObject:
    return {
        "schema_version": PLAN_SCHEMA_VERSION,
        "functions": [result_as_json(result) for result in run.results],
        "extra_apis": [api.as_json() for api in run.extra_apis],
        "skipped": [_skipped_as_json(skipped) for skipped in run.skipped],
        "errors": [_error_as_json(error) for error in run.errors],
        "stopped_early": run.stopped_early,
    }


def render_plan(run: AnalysisRun) -> str:
    return stable_pretty_text(run_as_json(run))


def render_diagnostics_markdown(run: AnalysisRun) -> str:
    lines = [
        "# crossbind analysis",
        "",
        f"- bound: {len(run.results)}",
        f"- with shims: {sum(1 for result in run.results if result.needs_native_codegen)}",
        f"- skipped: {len(run.skipped)}",
        f"- errors: {len(run.errors)}",
        f"- extra APIs: {len(run.extra_apis)}",
    ]
    if run.stopped_early:
        lines.append("- stopped at the first error")
    if run.errors:
        lines.extend(["", "## Errors", ""])
        lines.extend(f"- `{error.kind}` {error.context}" for error in run.errors)
    if run.skipped:
        lines.extend(["", "## Skipped", ""])
        for skipped in run.skipped:
            name = "::".join((*skipped.namespace, skipped.name))
            lines.append(f"- {name}: {skipped.reason.value}")
    return "\n".join(lines) + "\n"
