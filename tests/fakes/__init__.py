"""Shared test doubles for the pipeline's protocol seams."""

from __future__ import annotations

from typing import Mapping

from roster.models.employee import Department, EmployeeRecord
from roster.models.ingest import Violation
from roster.persistence.department_registry import DepartmentRegistry


class CannedValidator:
    """IRecordValidator that flags configured ids and accepts everything else."""

    def __init__(self, rejected_ids: set[int] | None = None) -> None:
        self._rejected_ids = rejected_ids or set()
        self.seen: list[int] = []

    def validate(self, record: EmployeeRecord) -> frozenset[Violation]:
        self.seen.append(record.id)
        if record.id in self._rejected_ids:
            return frozenset({Violation(field="id", message="rejected by test")})
        return frozenset()


class RecordingRegistry:
    """IDepartmentResolver that logs every resolve call."""

    def __init__(self) -> None:
        self._inner = DepartmentRegistry()
        self.calls: list[str] = []

    def resolve(self, code: str) -> Department:
        self.calls.append(code)
        return self._inner.resolve(code)

    def snapshot(self) -> Mapping[str, Department]:
        return self._inner.snapshot()

    def __contains__(self, department: object) -> bool:
        return department in self._inner


__all__ = ["CannedValidator", "RecordingRegistry"]
