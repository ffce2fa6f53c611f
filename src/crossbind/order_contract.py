from __future__ import annotations

from typing import Any, Callable, Iterable, TypeVar

from crossbind.invariants import never

T = TypeVar("T")


def sort_once(
    values: Iterable[T],
    *,
    source: str,
    key: Callable[[T], Any] | None = None,
    reverse: bool = False,
) -> list[T]:
    """Sort an unordered carrier into its canonical order.

    ``source`` names the call site so an incomparable carrier can be traced
    back to where the canonical order was requested.
    """
    items = list(values)
    try:
        return sorted(items, key=key, reverse=reverse)
    except TypeError:
        never("canonical sort requires comparable keys", source=source)
