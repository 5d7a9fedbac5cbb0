"""Which drill-down rows are currently expanded."""

from collections.abc import Iterable
from typing import Any


class ExpansionState:
    """
    Set of expanded row keys for one hierarchy level.

    Keys are opaque strings; other values are stringified so that package id
    ``7`` and ``"7"`` name the same row.
    """

    def __init__(self, keys: Iterable[Any] = ()):
        self._keys: set[str] = {str(k) for k in keys}

    def toggle(self, key: Any) -> bool:
        """Collapse if expanded, else expand. Returns the new state."""
        k = str(key)
        if k in self._keys:
            self._keys.discard(k)
            return False
        self._keys.add(k)
        return True

    def is_expanded(self, key: Any) -> bool:
        return str(key) in self._keys

    def expanded_keys(self) -> list[str]:
        return sorted(self._keys)

    def __contains__(self, key: Any) -> bool:
        return self.is_expanded(key)

    def __len__(self) -> int:
        return len(self._keys)


class ViewExpansion:
    """
    Independent expansion sets of one view, one per hierarchy level.

    Levels do not cascade: collapsing a package-name row keeps the student
    rows below it expanded for when the parent is opened again.
    """

    def __init__(self, levels: Iterable[str]):
        self._levels: dict[str, ExpansionState] = {name: ExpansionState() for name in levels}

    @property
    def levels(self) -> list[str]:
        return list(self._levels)

    def has_level(self, level: str) -> bool:
        return level in self._levels

    def level(self, level: str) -> ExpansionState:
        """Expansion set of ``level``; raises KeyError for levels the view lacks."""
        return self._levels[level]

    def toggle(self, level: str, key: Any) -> bool:
        return self._levels[level].toggle(key)

    def snapshot(self) -> dict[str, list[str]]:
        return {name: state.expanded_keys() for name, state in self._levels.items()}
