from __future__ import annotations

from pathlib import Path
from typing import List, Optional

import typer

from crossbind.analysis.pipeline import AnalysisRun, analyze_functions
from crossbind.config import (
    ConfigError,
    TomlTable,
    analysis_defaults,
    analyzer_config,
    merge_payload,
)
from crossbind.ingest.declaration_json import (
    DeclarationFormatError,
    load_declaration_file,
)
from crossbind.report import render_diagnostics_markdown, render_plan
from crossbind.schema import PlanSummaryDTO

app = typer.Typer(add_completion=False)


@app.callback()
def _root() -> None:
    """Plan managed-side bindings for native declarations."""


def _cli_payload(
    *,
    allow: Optional[List[str]],
    unsafe_policy: Optional[str],
    exclude_utilities: Optional[bool],
    stop_on_first_error: Optional[bool],
) -> TomlTable:
    return {
        "allowlist": list(allow) if allow else None,
        "unsafe_policy": unsafe_policy,
        "exclude_utilities": exclude_utilities,
        "stop_on_first_error": stop_on_first_error,
    }


def _summary(run: AnalysisRun) -> PlanSummaryDTO:
    return PlanSummaryDTO(
        bound=len(run.results),
        shims=sum(1 for result in run.results if result.needs_native_codegen),
        skipped=len(run.skipped),
        errors=len(run.errors),
        extra_apis=len(run.extra_apis),
        stopped_early=run.stopped_early,
    )


def _write_output(path: Path, text: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")


@app.command("analyze")
def analyze(
    declarations: Path = typer.Argument(..., help="Declaration document (JSON)."),
    config: Optional[Path] = typer.Option(None, "--config"),
    allow: Optional[List[str]] = typer.Option(
        None, "--allow", help="Type whose methods are generated (repeatable)."
    ),
    unsafe_policy: Optional[str] = typer.Option(None, "--unsafe-policy"),
    exclude_utilities: Optional[bool] = typer.Option(
        None, "--exclude-utilities/--include-utilities"
    ),
    out: Optional[Path] = typer.Option(None, "--out"),
    report: Optional[Path] = typer.Option(None, "--report"),
    fail_on_error: bool = typer.Option(False, "--fail-on-error/--no-fail-on-error"),
    stop_on_first_error: Optional[bool] = typer.Option(
        None, "--stop-on-first-error/--no-stop-on-first-error"
    ),
) -> None:
    """Analyze a declaration document and emit the binding plan."""
    defaults = analysis_defaults(
        root=declarations.parent if config is None else None,
        config_path=config,
    )
    payload = _cli_payload(
        allow=allow,
        unsafe_policy=unsafe_policy,
        exclude_utilities=exclude_utilities,
        stop_on_first_error=stop_on_first_error,
    )
    try:
        settings = analyzer_config(merge_payload(payload, defaults))
    except ConfigError as exc:
        typer.secho(str(exc), err=True, fg=typer.colors.RED)
        raise typer.Exit(code=2) from exc
    try:
        document = load_declaration_file(declarations)
    except DeclarationFormatError as exc:
        typer.secho(str(exc), err=True, fg=typer.colors.RED)
        raise typer.Exit(code=2) from exc
    run = analyze_functions(
        document.declarations,
        settings,
        pod_safe_types=document.pod_safe_types,
    )
    plan_text = render_plan(run)
    if out is None:
        typer.echo(plan_text, nl=False)
    else:
        _write_output(out, plan_text)
    if report is not None:
        _write_output(report, render_diagnostics_markdown(run))
    summary = _summary(run)
    typer.echo(
        "bound={bound} shims={shims} skipped={skipped} errors={errors} "
        "extra_apis={extra_apis}".format(**summary.model_dump()),
        err=True,
    )
    for error in run.errors:
        typer.secho(error.context, err=True, fg=typer.colors.RED)
    if run.errors and fail_on_error:
        raise typer.Exit(code=1)
