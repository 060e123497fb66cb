"""Protocol interfaces for the ingestion seams.

The pipeline talks to the department store and the validator through these
Protocols, so either can be swapped without inheritance.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Mapping, Protocol, runtime_checkable

if TYPE_CHECKING:
    from roster.models.employee import Department, EmployeeRecord
    from roster.models.ingest import Violation


# ---------------------------------------------------------------------------
# Department store
# ---------------------------------------------------------------------------

@runtime_checkable
class IDepartmentResolver(Protocol):
    """Code-to-department store with first-seen-wins identity."""

    def resolve(self, code: str) -> Department: ...

    def snapshot(self) -> Mapping[str, Department]: ...

    def __contains__(self, department: object) -> bool: ...


# ---------------------------------------------------------------------------
# Record validation
# ---------------------------------------------------------------------------

@runtime_checkable
class IRecordValidator(Protocol):
    """Applies every constraint to an assembled record."""

    def validate(self, record: EmployeeRecord) -> frozenset[Violation]: ...
