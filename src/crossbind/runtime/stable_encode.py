"""Deterministic JSON text for binding plans.

Two runs over the same declarations must write byte-identical plans, so
every mapping is emitted with sorted keys and every set-like carrier as a
sorted list. Values outside the JSON model are rejected.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from enum import Enum

from crossbind.order_contract import sort_once


def stable_compact_text(value: object) -> str:
    normalized = stable_json_value(value, source="stable_encode.stable_compact_text")
    return json.dumps(normalized, separators=(",", ":"))


def stable_pretty_text(value: object) -> str:
    normalized = stable_json_value(value, source="stable_encode.stable_pretty_text")
    return json.dumps(normalized, indent=2) + "\n"


def stable_json_value(value: object, *, source: str) -> object:
    match value:
        case Enum():
            return stable_json_value(value.value, source=source)
        case str() | int() | float() | bool() | None:
            return value
        case Mapping():
            text_keyed = {str(key): item for key, item in value.items()}
            return {
                key: stable_json_value(text_keyed[key], source=f"{source}.{key}")
                for key in sort_once(text_keyed, source=f"{source}.keys")
            }
        case tuple() | list():
            return [stable_json_value(item, source=f"{source}[]") for item in value]
        case set() | frozenset():
            return sort_once(
                (stable_json_value(item, source=f"{source}{{}}") for item in value),
                source=f"{source}.set_items",
                key=stable_compact_text,
            )
    raise TypeError(f"cannot encode {type(value).__name__} at {source}")
