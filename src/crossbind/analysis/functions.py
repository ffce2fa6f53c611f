"""Per-declaration analysis: kind, naming and shim decisions.

``FunctionAnalyzer.analyze_declaration`` decides how one native function or
method is materialized across the boundary. Most declarations can be listed
in the bridge layer as they are; some need a native-side shim that wraps and
unwraps owned pointers, turns a static or virtual call into a plain
function, or gives the entry point a name the bridge layer accepts. The
analyzer also settles naming, which depends on overloads and on every name
handed out earlier in the same run, so one analyzer must see all
declarations of a run in order.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Iterable, TypeAlias

from crossbind.analysis import known_types
from crossbind.analysis.arguments import (
    ArgumentAnalysis,
    ArgumentAnalyzer,
    check_reference_return,
    constructor_return,
)
from crossbind.analysis.bridge_names import BridgeNameRegistry
from crossbind.analysis.conversion import ConversionClassifier
from crossbind.analysis.declarations import Declaration, Param, Visibility
from crossbind.analysis.managed_names import ManagedNameRegistry
from crossbind.analysis.overloads import OverloadRegistry
from crossbind.analysis.shim import (
    RECEIVER_PLACEHOLDER,
    ShimDescription,
    ShimPayload,
    wrapper_name,
)
from crossbind.analysis.type_converter import ExtraApi, TypeConverter
from crossbind.analysis.types import (
    BoundaryType,
    Namespace,
    QualifiedName,
    is_valid_managed_identifier,
    validate_bridge_identifier,
)
from crossbind.config import AnalyzerConfig, UnsafePolicy
from crossbind.exceptions import (
    ContextualizedError,
    ConvertError,
    ErrorContext,
    MoveConstructorUnsupported,
    UnresolvedTemplateParameter,
    UnsupportedReceiverType,
)
from crossbind.invariants import decision_protocol, never

CONSTRUCTOR_NAME = "make_unique"


class MethodKind(StrEnum):
    NORMAL = "normal"
    CONSTRUCTOR = "constructor"
    STATIC = "static"
    VIRTUAL = "virtual"
    PURE_VIRTUAL = "pure_virtual"


@dataclass(frozen=True)
class FreeFunction:
    pass


@dataclass(frozen=True)
class Method:
    owning_type: QualifiedName
    method_kind: MethodKind


FunctionKind: TypeAlias = FreeFunction | Method


@dataclass(frozen=True)
class NoRenameNeeded:
    pass


@dataclass(frozen=True)
class RenameViaAttribute:
    pass


@dataclass(frozen=True)
class RenameViaAliasExport:
    original_name: str


RenameStrategy: TypeAlias = NoRenameNeeded | RenameViaAttribute | RenameViaAliasExport


class SkipReason(StrEnum):
    DESTRUCTOR = "destructor"
    NOT_ALLOWLISTED = "owning_type_not_allowlisted"


@dataclass(frozen=True)
class SkippedDeclaration:
    name: str
    namespace: Namespace
    reason: SkipReason
    owning_type: QualifiedName | None = None


@dataclass(frozen=True)
class FunctionAnalysisResult:
    bridge_name: str
    managed_name: str
    exported_name: str
    rename_strategy: RenameStrategy
    params: tuple[Param, ...]
    kind: FunctionKind
    return_type: BoundaryType | None
    param_details: tuple[ArgumentAnalysis, ...]
    requires_unsafe: bool
    visibility: Visibility
    shim: ShimDescription | None
    deps: frozenset[QualifiedName]
    namespace: Namespace = ()
    native_name: str | None = None

    @property
    def needs_native_codegen(self) -> bool:
        return self.shim is not None

    @property
    def allowlist_typename(self) -> QualifiedName:
        match self.kind:
            case Method(owning_type=owning_type):
                return owning_type
            case FreeFunction():
                return QualifiedName(self.namespace, self.managed_name)
        never("unknown function kind", kind=self.kind)


def seed_ideal_name(ingestion_name: str, native_name: str | None) -> str:
    """Managed name before overload handling.

    The ingestion front end mangles names that are reserved words (trailing
    underscore) and overloads (numeric suffix). Reserved-word mangling is
    kept; overload suffixes are dropped because ``OverloadRegistry``
    reassigns them.
    """
    if native_name is None:
        return ingestion_name
    if ingestion_name.endswith("_"):
        return ingestion_name
    if not is_valid_managed_identifier(native_name):
        return f"{native_name}_"
    return native_name


@decision_protocol
def shim_required(
    kind: FunctionKind,
    bridge_name: str,
    managed_name: str,
    *,
    conversion_needed: bool,
    native_name_incompatible: bool,
) -> bool:
    match kind:
        case Method(
            method_kind=MethodKind.STATIC | MethodKind.VIRTUAL | MethodKind.PURE_VIRTUAL
        ):
            return True
        case Method() if bridge_name != managed_name:
            return True
        case Method() | FreeFunction():
            return conversion_needed or native_name_incompatible
    never("unknown function kind", kind=kind)


def build_pod_safe_type_set(
    *sources: Iterable[QualifiedName],
) -> frozenset[QualifiedName]:
    names: set[QualifiedName] = set(known_types.pod_safe_types())
    for source in sources:
        names.update(source)
    return frozenset(names)


class FunctionAnalyzer:
    """Owns all naming state for one generation run."""

    def __init__(
        self,
        config: AnalyzerConfig,
        pod_safe_types: Iterable[QualifiedName] = (),
    ) -> None:
        self.config = config
        self.pod_safe_types = build_pod_safe_type_set(config.pod_safe_types, pod_safe_types)
        self.bridge_names = BridgeNameRegistry()
        self.managed_names = ManagedNameRegistry()
        self.overloads_by_namespace: dict[Namespace, OverloadRegistry] = {}
        self.extra_apis: list[ExtraApi] = []
        self.skipped: list[SkippedDeclaration] = []
        self.arguments = ArgumentAnalyzer(
            TypeConverter(exclude_utilities=config.exclude_utilities),
            ConversionClassifier(
                pod_safe_types=self.pod_safe_types,
                exclude_utilities=config.exclude_utilities,
            ),
            self.extra_apis,
        )

    def drain_extra_apis(self) -> list[ExtraApi]:
        drained = list(self.extra_apis)
        self.extra_apis.clear()
        return drained

    def _overloads(self, namespace: Namespace) -> OverloadRegistry:
        return self.overloads_by_namespace.setdefault(namespace, OverloadRegistry())

    def _should_be_unsafe(self) -> bool:
        return self.config.unsafe_policy is UnsafePolicy.ALL_FUNCTIONS_UNSAFE

    def _skip(
        self,
        decl: Declaration,
        reason: SkipReason,
        owning_type: QualifiedName | None = None,
    ) -> None:
        self.skipped.append(
            SkippedDeclaration(
                name=decl.name,
                namespace=decl.namespace,
                reason=reason,
                owning_type=owning_type,
            )
        )

    def analyze_declaration(self, decl: Declaration) -> FunctionAnalysisResult | None:
        """Analyze one declaration.

        Returns None when the declaration is deliberately dropped (see
        ``skipped``) and raises ContextualizedError when it cannot be bound.
        """
        if decl.is_destructor:
            self._skip(decl, SkipReason.DESTRUCTOR)
            return None
        namespace = decl.namespace
        native_name = decl.native_name

        params: list[Param] = []
        param_details: list[ArgumentAnalysis] = []
        first_error: ConvertError | None = None
        for param in decl.params:
            try:
                converted, analysis = self.arguments.analyze_argument(
                    param,
                    namespace,
                    decl.diagnostic_name,
                    decl.virtual_this_type,
                    decl.annotations.reference_params,
                )
            except ConvertError as exc:
                if first_error is None:
                    first_error = exc
                continue
            params.append(converted)
            param_details.append(analysis)

        params_deps: set[QualifiedName] = set()
        for detail in param_details:
            params_deps.update(detail.deps)
        requires_unsafe = self._should_be_unsafe() or any(
            detail.requires_unsafe for detail in param_details
        )
        ideal_name = seed_ideal_name(decl.name, native_name)

        self_ty = next(
            (detail.self_type for detail in param_details if detail.self_type is not None),
            None,
        )
        is_static_method = False
        if self_ty is None and decl.owning_type is not None:
            self_ty = decl.owning_type
            is_static_method = True

        kind: FunctionKind
        type_ident: str | None = None
        if self_ty is not None:
            if not self.config.is_on_allowlist(self_ty):
                self._skip(decl, SkipReason.NOT_ALLOWLISTED, self_ty)
                return None
            type_ident = self_ty.final_item
            managed_name = self._overloads(namespace).method_real_name(type_ident, ideal_name)
            if managed_name.startswith(type_ident):
                # Constructors arrive named after their type, with overload
                # suffixes that the constructor name keeps.
                managed_name = f"{CONSTRUCTOR_NAME}{managed_name[len(type_ident):]}"
                receiver_index = next(
                    (i for i, detail in enumerate(param_details) if detail.self_type is not None),
                    None,
                )
                if receiver_index is not None:
                    del params[receiver_index]
                    del param_details[receiver_index]
                method_kind = MethodKind.CONSTRUCTOR
            elif is_static_method:
                method_kind = MethodKind.STATIC
            elif any(detail.is_virtual for detail in param_details):
                method_kind = (
                    MethodKind.PURE_VIRTUAL
                    if decl.annotations.pure_virtual
                    else MethodKind.VIRTUAL
                )
            else:
                method_kind = MethodKind.NORMAL
            kind = Method(self_ty, method_kind)
            error_context = ErrorContext(item=managed_name, owning_type=type_ident)
        else:
            managed_name = self._overloads(namespace).function_real_name(ideal_name)
            kind = FreeFunction()
            error_context = ErrorContext(item=managed_name)

        def contextualize(error: ConvertError) -> ContextualizedError:
            return ContextualizedError(error, error_context, namespace)

        # The bridge layer is flat, so its name may need qualifying even
        # when the managed name does not.
        bridge_name = self.bridge_names.unique_name(type_ident, managed_name, namespace)
        if bridge_name != managed_name and native_name is None:
            native_name = managed_name

        if first_error is not None:
            raise contextualize(first_error) from first_error
        if decl.annotations.unused_template_param:
            raise contextualize(UnresolvedTemplateParameter())
        if decl.is_move_constructor:
            raise contextualize(MoveConstructorUnsupported())
        match kind:
            case Method(method_kind=MethodKind.STATIC):
                pass
            case Method(owning_type=owning_type):
                if not known_types.is_acceptable_receiver(
                    owning_type,
                    non_receiver_types=self.config.non_receiver_types,
                ):
                    raise contextualize(UnsupportedReceiverType(owning_type.to_native_name()))
            case FreeFunction():
                pass

        match kind:
            case Method(owning_type=owning_type, method_kind=MethodKind.CONSTRUCTOR):
                return_analysis = constructor_return(owning_type)
            case Method() | FreeFunction():
                return_analysis = self.arguments.analyze_return(
                    decl.return_type,
                    namespace,
                    decl.annotations.reference_return,
                )
        deps = frozenset(params_deps | return_analysis.deps)
        try:
            check_reference_return(managed_name, return_analysis, param_details)
        except ConvertError as exc:
            raise contextualize(exc) from exc

        ret_type = return_analysis.return_type
        ret_conversion = return_analysis.conversion
        conversion_needed = any(
            detail.conversion.native_work_needed for detail in param_details
        ) or (ret_conversion is not None and ret_conversion.native_work_needed)
        effective_native_name = native_name if native_name is not None else managed_name

        shim: ShimDescription | None = None
        if shim_required(
            kind,
            bridge_name,
            managed_name,
            conversion_needed=conversion_needed,
            native_name_incompatible=not is_valid_managed_identifier(effective_native_name),
        ):
            bridge_name = self.bridge_names.claim(wrapper_name(bridge_name))
            payload, has_receiver = _shim_payload(kind, namespace, effective_native_name)
            if ret_conversion is not None:
                ret_type = ret_conversion.bridge_return_type()
            is_constructor = (
                isinstance(kind, Method) and kind.method_kind is MethodKind.CONSTRUCTOR
            )
            params = [
                Param(
                    name=(
                        RECEIVER_PLACEHOLDER
                        if detail.self_type is not None and not is_constructor
                        else detail.name
                    ),
                    type=detail.conversion.bridge_argument_type(),
                )
                for detail in param_details
            ]
            shim = ShimDescription(
                payload=payload,
                wrapper_function_name=bridge_name,
                argument_conversions=tuple(detail.conversion for detail in param_details),
                return_conversion=ret_conversion,
                has_receiver=has_receiver,
            )

        try:
            validate_bridge_identifier(bridge_name)
        except ConvertError as exc:
            raise contextualize(exc) from exc

        rename_strategy: RenameStrategy
        match kind:
            case Method():
                exported_name = managed_name
                rename_strategy = NoRenameNeeded()
            case FreeFunction():
                # Managed names share one flat space across namespaces.
                managed_name_free = self.managed_names.claim(managed_name)
                if bridge_name == managed_name:
                    exported_name = managed_name
                    rename_strategy = NoRenameNeeded()
                elif managed_name_free:
                    exported_name = managed_name
                    rename_strategy = RenameViaAttribute()
                else:
                    exported_name = bridge_name
                    rename_strategy = RenameViaAliasExport(managed_name)

        return FunctionAnalysisResult(
            bridge_name=bridge_name,
            managed_name=managed_name,
            exported_name=exported_name,
            rename_strategy=rename_strategy,
            params=tuple(params),
            kind=kind,
            return_type=ret_type,
            param_details=tuple(param_details),
            requires_unsafe=requires_unsafe,
            visibility=decl.visibility,
            shim=shim,
            deps=deps,
            namespace=namespace,
            native_name=native_name,
        )


def _shim_payload(
    kind: FunctionKind,
    namespace: Namespace,
    native_entry_name: str,
) -> tuple[ShimPayload, bool]:
    match kind:
        case Method(method_kind=MethodKind.CONSTRUCTOR):
            return ShimPayload.constructor(), False
        case Method(owning_type=owning_type, method_kind=MethodKind.STATIC):
            return (
                ShimPayload.static_call(namespace, owning_type.final_item, native_entry_name),
                False,
            )
        case Method():
            return ShimPayload.instance_call(namespace, native_entry_name), True
        case FreeFunction():
            return ShimPayload.instance_call(namespace, native_entry_name), False
    never("unknown function kind", kind=kind)
