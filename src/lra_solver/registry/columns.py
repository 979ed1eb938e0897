"""
Variable registry: dense integer ids, their names, and which ids are active.

A variable is active once some constraint mentions it with a nonzero
coefficient; only active variables get a column in the assembled problem.
"""

from typing import Dict, List, Optional, Set


class ColumnRegistry:
    """Maps variable names to dense ids and back."""

    def __init__(self):
        self._names: List[str] = []
        self._latest_index: Dict[str, int] = {}
        self._active: Set[int] = set()

    def add_var(self, name: str) -> int:
        """
        Allocate the next variable id.

        Re-adding an existing name yields a new id; name lookups then
        resolve to the most recent one.
        """
        index = len(self._names)
        self._names.append(name)
        self._latest_index[name] = index
        return index

    def __len__(self) -> int:
        return len(self._names)

    def __contains__(self, var: int) -> bool:
        return isinstance(var, int) and 0 <= var < len(self._names)

    def name(self, var: int) -> str:
        if var not in self:
            raise ValueError(f"Unknown variable index {var}")
        return self._names[var]

    def index(self, name: str) -> Optional[int]:
        return self._latest_index.get(name)

    def mark_active(self, var: int) -> None:
        self._active.add(var)

    def is_active(self, var: int) -> bool:
        return var in self._active

    @property
    def active(self) -> Set[int]:
        return set(self._active)
