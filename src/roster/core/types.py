"""Type aliases used across the Roster package."""

from __future__ import annotations

LineNumber = int
DepartmentCode = str
DepartmentHandle = int
RawRow = list[str]
