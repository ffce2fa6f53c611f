from __future__ import annotations

from crossbind.analysis.types import Namespace

COLLISION_MARKER = "crossbind"


def _join(name: str, suffix: str) -> str:
    joiner = "" if name.endswith("_") else "_"
    return f"{name}{joiner}{suffix}"


class BridgeNameRegistry:
    """Hands out names for the bridge layer, which is one flat namespace.

    The first request for a name gets it unchanged. Later requests for the
    same name are qualified with the namespace and owning type. A qualified
    name that is already taken gets the first free numbered marker suffix.
    Every name returned is remembered, so no two requests ever share one.
    """

    def __init__(self) -> None:
        self._issued: set[str] = set()
        self._next_for_prefix: dict[str, int] = {}

    def unique_name(
        self,
        owning_type: str | None,
        proposed_name: str,
        namespace: Namespace = (),
    ) -> str:
        if self._try_issue(proposed_name):
            return proposed_name
        segments = [*namespace]
        if owning_type is not None:
            segments.append(owning_type)
        segments.append(proposed_name)
        return self.claim("_".join(segments))

    def claim(self, name: str) -> str:
        """Issue ``name``, or its first free numbered form when taken."""
        if self._try_issue(name):
            return name
        count = self._next_for_prefix.get(name, 1)
        candidate = _join(name, f"{COLLISION_MARKER}{count}")
        while not self._try_issue(candidate):
            count += 1
            candidate = _join(name, f"{COLLISION_MARKER}{count}")
        self._next_for_prefix[name] = count + 1
        return candidate

    def _try_issue(self, name: str) -> bool:
        if name in self._issued:
            return False
        self._issued.add(name)
        return True
