from __future__ import annotations


class ManagedNameRegistry:
    """Managed-visible names already claimed anywhere in the run."""

    def __init__(self) -> None:
        self._names: set[str] = set()

    def claim(self, name: str) -> bool:
        """Claim ``name``; False when another declaration already holds it."""
        if name in self._names:
            return False
        self._names.add(name)
        return True
