"""Exception protocol for crossbind analysis."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping


class NeverRaise(RuntimeError):
    """Sentinel exception that should be statically unreachable.

    Raising this exception signals a broken internal invariant rather than a
    problem with the declarations being analyzed. It is never collected as a
    per-declaration diagnostic; it propagates to the caller.
    """

    def __init__(self, message: str, *, env: Mapping[str, object] | None = None):
        super().__init__(message)
        self.reason = message
        self.env = dict(env or {})

    @property
    def marker_payload_dict(self) -> dict[str, object]:
        return {
            "reason": self.reason,
            "env": {key: repr(value) for key, value in sorted(self.env.items())},
        }


class NeverThrown(NeverRaise):
    """Alias for NeverRaise used by the explicit never() marker."""


class ConvertError(Exception):
    """A declaration cannot be expressed across the boundary."""

    kind = "ConvertError"


class InvalidIdentifier(ConvertError):
    kind = "InvalidIdentifier"

    def __init__(self, ident: str, grammar: str, reason: str):
        super().__init__(f"{ident!r} is not a valid {grammar} identifier: {reason}")
        self.ident = ident
        self.grammar = grammar
        self.reason = reason


class VirtualThisTypeMissing(ConvertError):
    kind = "VirtualThisTypeMissing"

    def __init__(self, namespace: str, function: str):
        super().__init__(
            f"{_qualified(namespace, function)}: virtual receiver placeholder "
            "has no owning type to substitute"
        )
        self.namespace = namespace
        self.function = function


class UnexpectedReceiverShape(ConvertError):
    kind = "UnexpectedReceiverShape"

    def __init__(self, namespace: str, function: str):
        super().__init__(
            f"{_qualified(namespace, function)}: receiver parameter is not a "
            "pointer to a named type"
        )
        self.namespace = namespace
        self.function = function


class UnresolvedTemplateParameter(ConvertError):
    kind = "UnresolvedTemplateParameter"

    def __init__(self) -> None:
        super().__init__(
            "an argument or return type depends on a template parameter "
            "that could not be resolved"
        )


class MoveConstructorUnsupported(ConvertError):
    kind = "MoveConstructorUnsupported"

    def __init__(self) -> None:
        super().__init__("move constructors cannot be exposed across the boundary")


class UnsupportedReceiverType(ConvertError):
    kind = "UnsupportedReceiverType"

    def __init__(self, receiver: str):
        super().__init__(f"{receiver} cannot be used as a method receiver")
        self.receiver = receiver


class AmbiguousReferenceReturn(ConvertError):
    kind = "AmbiguousReferenceReturn"

    def __init__(self, function: str, reference_params: int):
        super().__init__(
            f"{function} returns a reference but takes {reference_params} "
            "reference parameters; exactly one is required"
        )
        self.function = function
        self.reference_params = reference_params


@dataclass(frozen=True)
class ErrorContext:
    """Where a conversion error happened: a free item or a method of a type."""

    item: str
    owning_type: str | None = None

    def describe(self) -> str:
        if self.owning_type is None:
            return self.item
        return f"{self.owning_type}::{self.item}"


@dataclass
class ContextualizedError(Exception):
    error: ConvertError
    context: ErrorContext | None = None
    namespace: tuple[str, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        super().__init__(str(self.error))

    @property
    def kind(self) -> str:
        return self.error.kind

    def __str__(self) -> str:
        where = self.context.describe() if self.context is not None else "<unknown>"
        if self.namespace:
            where = "::".join(self.namespace) + "::" + where
        return f"{where}: {self.error}"


def _qualified(namespace: str, function: str) -> str:
    return f"{namespace}::{function}" if namespace else function
