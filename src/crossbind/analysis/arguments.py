from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from crossbind.analysis.conversion import (
    ConversionClassifier,
    Direction,
    TypeConversionPolicy,
    to_owned_pointer,
)
from crossbind.analysis.declarations import Param
from crossbind.analysis.type_converter import ExtraApi, TypeConverter
from crossbind.analysis.types import (
    BoundaryType,
    NamedType,
    Namespace,
    PointerType,
    QualifiedName,
    ReferenceType,
    validate_bridge_identifier,
)
from crossbind.exceptions import (
    AmbiguousReferenceReturn,
    UnexpectedReceiverShape,
    VirtualThisTypeMissing,
)

RECEIVER_NAME = "this"
SELF_NAME = "self"


@dataclass(frozen=True)
class ArgumentAnalysis:
    conversion: TypeConversionPolicy
    name: str
    self_type: QualifiedName | None = None
    was_reference: bool = False
    deps: frozenset[QualifiedName] = frozenset()
    is_virtual: bool = False
    requires_unsafe: bool = False


@dataclass(frozen=True)
class ReturnTypeAnalysis:
    return_type: BoundaryType | None
    conversion: TypeConversionPolicy | None = None
    was_reference: bool = False
    deps: frozenset[QualifiedName] = frozenset()


class ArgumentAnalyzer:
    """Per-parameter and return-type analysis for one run.

    Extra APIs discovered while converting types are appended to the
    ``extra_apis`` work-list owned by the caller.
    """

    def __init__(
        self,
        type_converter: TypeConverter,
        classifier: ConversionClassifier,
        extra_apis: list[ExtraApi],
    ) -> None:
        self.type_converter = type_converter
        self.classifier = classifier
        self.extra_apis = extra_apis

    def analyze_argument(
        self,
        param: Param,
        namespace: Namespace,
        fn_name: str,
        virtual_this: QualifiedName | None,
        reference_params: frozenset[str],
    ) -> tuple[Param, ArgumentAnalysis]:
        self_type: QualifiedName | None = None
        is_virtual = False
        ty = param.type
        if param.name == RECEIVER_NAME:
            match ty:
                case PointerType(pointee=NamedType(name=pointee_name), mutable=mutable):
                    if pointee_name.is_placeholder():
                        is_virtual = True
                        if virtual_this is None:
                            raise VirtualThisTypeMissing("::".join(namespace), fn_name)
                        self_type = virtual_this
                        ty = PointerType(NamedType(virtual_this), mutable=mutable)
                    else:
                        self_type = pointee_name
                case _:
                    raise UnexpectedReceiverShape("::".join(namespace), fn_name)
            name = SELF_NAME
            treat_as_reference = True
        else:
            validate_bridge_identifier(param.name)
            name = param.name
            treat_as_reference = param.name in reference_params

        annotated = self.type_converter.convert_type(
            ty,
            namespace,
            convert_ptrs_to_references=treat_as_reference,
        )
        self.extra_apis.extend(annotated.extra_apis)
        conversion = self.classifier.classify(annotated.ty, Direction.ARGUMENT)
        return (
            Param(name=name, type=annotated.ty),
            ArgumentAnalysis(
                conversion=conversion,
                name=name,
                self_type=self_type,
                was_reference=isinstance(annotated.ty, ReferenceType),
                deps=annotated.types_encountered,
                is_virtual=is_virtual,
                requires_unsafe=annotated.requires_unsafe,
            ),
        )

    def analyze_return(
        self,
        return_type: BoundaryType | None,
        namespace: Namespace,
        reference_return: bool,
    ) -> ReturnTypeAnalysis:
        if return_type is None:
            return ReturnTypeAnalysis(return_type=None)
        annotated = self.type_converter.convert_type(
            return_type,
            namespace,
            convert_ptrs_to_references=reference_return,
        )
        self.extra_apis.extend(annotated.extra_apis)
        return ReturnTypeAnalysis(
            return_type=annotated.ty,
            conversion=self.classifier.classify(annotated.ty, Direction.RETURN),
            was_reference=isinstance(annotated.ty, ReferenceType),
            deps=annotated.types_encountered,
        )


def constructor_return(owning_type: QualifiedName) -> ReturnTypeAnalysis:
    constructed = NamedType(owning_type)
    return ReturnTypeAnalysis(
        return_type=constructed,
        conversion=to_owned_pointer(constructed),
        was_reference=False,
        deps=frozenset({owning_type}),
    )


def check_reference_return(
    function_name: str,
    return_analysis: ReturnTypeAnalysis,
    arguments: Iterable[ArgumentAnalysis],
) -> None:
    """A returned reference may only borrow from exactly one reference input."""
    if not return_analysis.was_reference:
        return
    reference_inputs = sum(1 for argument in arguments if argument.was_reference)
    if reference_inputs != 1:
        raise AmbiguousReferenceReturn(function_name, reference_inputs)
