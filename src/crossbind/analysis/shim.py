"""Declarative description of a synthesized two-sided wrapper.

Emitters render native and managed source from a ``ShimDescription`` and
nothing else: every conversion they apply must be listed here.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum

from crossbind.analysis.conversion import TypeConversionPolicy
from crossbind.analysis.types import Namespace
from crossbind.json_types import JSONObject

WRAPPER_SUFFIX = "crossbind_wrapper"
RECEIVER_PLACEHOLDER = "crossbind_gen_this"


class ShimPayloadKind(StrEnum):
    CONSTRUCTOR = "constructor"
    STATIC_CALL = "static_call"
    INSTANCE_CALL = "instance_call"


@dataclass(frozen=True)
class ShimPayload:
    kind: ShimPayloadKind
    namespace: Namespace = ()
    owning_type: str | None = None
    native_entry_name: str | None = None

    @classmethod
    def constructor(cls) -> "ShimPayload":
        return cls(ShimPayloadKind.CONSTRUCTOR)

    @classmethod
    def static_call(
        cls, namespace: Namespace, owning_type: str, native_entry_name: str
    ) -> "ShimPayload":
        return cls(
            ShimPayloadKind.STATIC_CALL,
            namespace=namespace,
            owning_type=owning_type,
            native_entry_name=native_entry_name,
        )

    @classmethod
    def instance_call(cls, namespace: Namespace, native_entry_name: str) -> "ShimPayload":
        return cls(
            ShimPayloadKind.INSTANCE_CALL,
            namespace=namespace,
            native_entry_name=native_entry_name,
        )

    def as_json(self) -> JSONObject:
        return {
            "kind": self.kind.value,
            "namespace": list(self.namespace),
            "owning_type": self.owning_type,
            "native_entry_name": self.native_entry_name,
        }


@dataclass(frozen=True)
class ShimDescription:
    payload: ShimPayload
    wrapper_function_name: str
    argument_conversions: tuple[TypeConversionPolicy, ...]
    return_conversion: TypeConversionPolicy | None
    has_receiver: bool

    def as_json(self) -> JSONObject:
        return {
            "payload": self.payload.as_json(),
            "wrapper_function_name": self.wrapper_function_name,
            "argument_conversions": [
                conversion.as_json() for conversion in self.argument_conversions
            ],
            "return_conversion": (
                self.return_conversion.as_json()
                if self.return_conversion is not None
                else None
            ),
            "has_receiver": self.has_receiver,
        }


def wrapper_name(bridge_name: str) -> str:
    joiner = "" if bridge_name.endswith("_") else "_"
    return f"{bridge_name}{joiner}{WRAPPER_SUFFIX}"
