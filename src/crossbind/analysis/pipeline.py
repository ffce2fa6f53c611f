from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable

from crossbind.analysis.declarations import Declaration
from crossbind.analysis.functions import (
    FunctionAnalysisResult,
    FunctionAnalyzer,
    SkippedDeclaration,
)
from crossbind.analysis.type_converter import ExtraApi
from crossbind.analysis.types import Namespace, QualifiedName
from crossbind.config import AnalyzerConfig
from crossbind.exceptions import ContextualizedError


@dataclass(frozen=True)
class DeclarationError:
    """A declaration that could not be bound, with enough context to find it."""

    declaration: str
    namespace: Namespace
    kind: str
    message: str
    context: str

    @classmethod
    def from_error(cls, decl: Declaration, error: ContextualizedError) -> "DeclarationError":
        return cls(
            declaration=decl.name,
            namespace=decl.namespace,
            kind=error.kind,
            message=str(error.error),
            context=str(error),
        )


@dataclass
class AnalysisRun:
    results: list[FunctionAnalysisResult] = field(default_factory=list)
    skipped: list[SkippedDeclaration] = field(default_factory=list)
    errors: list[DeclarationError] = field(default_factory=list)
    extra_apis: list[ExtraApi] = field(default_factory=list)
    stopped_early: bool = False

    @property
    def ok(self) -> bool:
        return not self.errors


def analyze_functions(
    declarations: Iterable[Declaration],
    config: AnalyzerConfig,
    *,
    pod_safe_types: Iterable[QualifiedName] = (),
    stop_on_first_error: bool | None = None,
) -> AnalysisRun:
    """Analyze a batch of declarations in order with fresh naming state.

    Declaration-level errors are collected and the batch continues, unless
    ``stop_on_first_error`` (or the config equivalent) asks otherwise. Extra
    APIs discovered along the way are drained once the main pass is over.
    """
    if stop_on_first_error is None:
        stop_on_first_error = config.stop_on_first_error
    analyzer = FunctionAnalyzer(config, pod_safe_types)
    run = AnalysisRun()
    for decl in declarations:
        try:
            result = analyzer.analyze_declaration(decl)
        except ContextualizedError as exc:
            run.errors.append(DeclarationError.from_error(decl, exc))
            if stop_on_first_error:
                run.stopped_early = True
                break
            continue
        if result is not None:
            run.results.append(result)
    run.skipped = list(analyzer.skipped)
    run.extra_apis = analyzer.drain_extra_apis()
    return run
