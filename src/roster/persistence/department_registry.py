"""In-memory department registry: indexed table keyed by department code."""

from __future__ import annotations

from types import MappingProxyType
from typing import Mapping

from roster.core.types import DepartmentCode, DepartmentHandle
from roster.models.employee import Department


class DepartmentRegistry:
    """Dict-backed IDepartmentResolver with first-seen-wins handles.

    Handles are positions in an append-only table, so the first distinct code
    gets 1, the next 2, and so on. Entries are never removed and every
    registry counts from 1.
    """

    def __init__(self, name_prefix: str = "Department ", unknown_code: str = "UNKNOWN") -> None:
        self._name_prefix = name_prefix
        self._unknown_code = unknown_code
        self._table: list[Department] = []
        self._index: dict[DepartmentCode, int] = {}

    def normalize(self, code: DepartmentCode | None) -> DepartmentCode:
        """Trim surrounding whitespace; blank codes become the sentinel code."""
        trimmed = (code or "").strip()
        return trimmed or self._unknown_code

    def resolve(self, code: DepartmentCode | None) -> Department:
        key = self.normalize(code)
        position = self._index.get(key)
        if position is not None:
            return self._table[position]

        department = Department(id=len(self._table) + 1, name=f"{self._name_prefix}{key}")
        self._index[key] = len(self._table)
        self._table.append(department)
        return department

    def get(self, code: str) -> Department | None:
        position = self._index.get(self.normalize(code))
        return None if position is None else self._table[position]

    def get_by_id(self, handle: DepartmentHandle) -> Department:
        if handle < 1 or handle > len(self._table):
            raise KeyError(handle)
        return self._table[handle - 1]

    def snapshot(self) -> Mapping[DepartmentCode, Department]:
        """Read-only copy of the code-to-department mapping, in first-seen order."""
        return MappingProxyType({code: self._table[pos] for code, pos in self._index.items()})

    def __contains__(self, department: object) -> bool:
        if not isinstance(department, Department):
            return False
        return 1 <= department.id <= len(self._table) and self._table[department.id - 1] is department

    def __len__(self) -> int:
        return len(self._table)
