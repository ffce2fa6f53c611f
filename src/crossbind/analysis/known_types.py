from __future__ import annotations

from dataclasses import dataclass

from crossbind.analysis.types import PLACEHOLDER_TYPE_NAME, QualifiedName


@dataclass(frozen=True)
class KnownType:
    name: QualifiedName
    pod_safe: bool
    string_like: bool = False


def _known(text: str, *, pod_safe: bool, string_like: bool = False) -> KnownType:
    return KnownType(QualifiedName.from_text(text), pod_safe, string_like)


_PRIMITIVES = (
    "bool", "char", "i8", "u8", "i16", "u16", "i32", "u32", "i64", "u64",
    "isize", "usize", "f32", "f64", "int", "unsigned", "short", "long",
    "float", "double", "c_char", "c_int", "c_uint", "c_long", "c_ulong",
    "c_short", "c_ushort", "c_longlong", "c_ulonglong", "size_t",
)

KNOWN_TYPES: dict[QualifiedName, KnownType] = {
    known.name: known
    for known in (
        *(_known(name, pod_safe=True) for name in _PRIMITIVES),
        _known(PLACEHOLDER_TYPE_NAME, pod_safe=False),
        _known("std::string", pod_safe=False, string_like=True),
        _known("std::unique_ptr", pod_safe=False),
        _known("std::shared_ptr", pod_safe=False),
        _known("std::vector", pod_safe=False),
    )
}


def pod_safe_types() -> frozenset[QualifiedName]:
    return frozenset(name for name, known in KNOWN_TYPES.items() if known.pod_safe)


def convertible_from_strs(name: QualifiedName) -> bool:
    known = KNOWN_TYPES.get(name)
    return known is not None and known.string_like


def is_primitive(name: QualifiedName) -> bool:
    known = KNOWN_TYPES.get(name)
    return known is not None and known.pod_safe


def is_acceptable_receiver(
    name: QualifiedName,
    *,
    non_receiver_types: frozenset[QualifiedName] = frozenset(),
) -> bool:
    # Built-ins are exposed by the bridge layer itself and cannot gain methods.
    if name in KNOWN_TYPES:
        return False
    return name not in non_receiver_types
