from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time
from enum import StrEnum
from pathlib import Path
from typing import TypeAlias
import tomllib

from crossbind.analysis.types import QualifiedName

DEFAULT_CONFIG_NAME = "crossbind.toml"

TomlScalar: TypeAlias = str | int | float | bool | None | date | datetime | time
TomlValue: TypeAlias = TomlScalar | list["TomlValue"] | dict[str, "TomlValue"]
TomlTable: TypeAlias = dict[str, TomlValue]


class ConfigError(ValueError):
    pass


class UnsafePolicy(StrEnum):
    ALL_FUNCTIONS_SAFE = "all_functions_safe"
    ALL_FUNCTIONS_UNSAFE = "all_functions_unsafe"


@dataclass(frozen=True)
class AnalyzerConfig:
    allowlist: frozenset[str] = frozenset()
    unsafe_policy: UnsafePolicy = UnsafePolicy.ALL_FUNCTIONS_SAFE
    exclude_utilities: bool = False
    pod_safe_types: frozenset[QualifiedName] = frozenset()
    non_receiver_types: frozenset[QualifiedName] = frozenset()
    stop_on_first_error: bool = False

    def is_on_allowlist(self, type_name: QualifiedName) -> bool:
        return type_name.to_native_name() in self.allowlist


def _load_toml(path: Path) -> TomlTable:
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError:
        return {}
    try:
        data = tomllib.loads(raw)
    except tomllib.TOMLDecodeError:
        return {}
    return data if isinstance(data, dict) else {}


def load_config(root: Path | None = None, config_path: Path | None = None) -> TomlTable:
    if config_path is None:
        base = root if root is not None else Path.cwd()
        config_path = base / DEFAULT_CONFIG_NAME
    return _load_toml(config_path)


def analysis_defaults(
    root: Path | None = None, config_path: Path | None = None
) -> TomlTable:
    data = load_config(root=root, config_path=config_path)
    section = data.get("analysis", {})
    return section if isinstance(section, dict) else {}


def _normalize_name_list(value: TomlValue) -> list[str]:
    items: list[str] = []
    if value is None:
        return items
    if isinstance(value, str):
        items = [part.strip() for part in value.split(",") if part.strip()]
    elif isinstance(value, (list, tuple, set)):
        for item in value:
            if isinstance(item, str):
                items.extend([part.strip() for part in item.split(",") if part.strip()])
    return [item for item in items if item]


def _as_bool(value: TomlValue) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return value != 0
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "on"}
    return False


def _as_unsafe_policy(value: TomlValue) -> UnsafePolicy:
    if value is None:
        return UnsafePolicy.ALL_FUNCTIONS_SAFE
    choices = ", ".join(policy.value for policy in UnsafePolicy)
    message = f"unsafe_policy must be one of {choices}; got {value!r}"
    if not isinstance(value, str):
        raise ConfigError(message)
    try:
        return UnsafePolicy(value.strip().lower())
    except ValueError as exc:
        raise ConfigError(message) from exc


def merge_payload(payload: TomlTable, defaults: TomlTable) -> TomlTable:
    merged = dict(defaults)
    for key, value in payload.items():
        if value is None:
            continue
        merged[key] = value
    return merged


def analyzer_config(section: TomlTable | None) -> AnalyzerConfig:
    if section is None or not isinstance(section, dict):
        return AnalyzerConfig()
    return AnalyzerConfig(
        allowlist=frozenset(_normalize_name_list(section.get("allowlist"))),
        unsafe_policy=_as_unsafe_policy(section.get("unsafe_policy")),
        exclude_utilities=_as_bool(section.get("exclude_utilities")),
        pod_safe_types=frozenset(
            QualifiedName.from_text(name)
            for name in _normalize_name_list(section.get("pod_safe_types"))
        ),
        non_receiver_types=frozenset(
            QualifiedName.from_text(name)
            for name in _normalize_name_list(section.get("non_receiver_types"))
        ),
        stop_on_first_error=_as_bool(section.get("stop_on_first_error")),
    )
