from __future__ import annotations


class OverloadRegistry:
    """Final names for overloaded functions and methods within one namespace.

    The first declaration seen for a name keeps it; later ones get ``1``,
    ``2``, ... appended in first-seen order, matching the suffixes the
    ingestion front end assigns to overloads.
    """

    def __init__(self) -> None:
        self._offset_by_name: dict[str, int] = {}
        self._offset_by_type_and_name: dict[str, dict[str, int]] = {}

    def function_real_name(self, ideal_name: str) -> str:
        return _next_name(self._offset_by_name, ideal_name)

    def method_real_name(self, owning_type: str, ideal_name: str) -> str:
        prefix = f"{owning_type}_"
        if ideal_name.startswith(prefix) and len(ideal_name) > len(prefix):
            ideal_name = ideal_name[len(prefix):]
        offsets = self._offset_by_type_and_name.setdefault(owning_type, {})
        return _next_name(offsets, ideal_name)


def _next_name(offsets: dict[str, int], name: str) -> str:
    offset = offsets.get(name, 0)
    offsets[name] = offset + 1
    if offset == 0:
        return name
    return f"{name}{offset}"
