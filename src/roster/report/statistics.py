"""Summary statistics computed from an ingest result."""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Mapping, Optional, Sequence

from pydantic import BaseModel, Field

from roster.models.employee import Department, EmployeeRecord, Gender
from roster.models.ingest import IngestResult

_CENTS = Decimal("0.01")


class DepartmentStats(BaseModel):
    """Headcount and mean salary for one department."""

    code: str
    department_id: int
    name: str
    headcount: int = 0
    mean_salary: Decimal = Decimal("0")


class GenderSplit(BaseModel):
    gender: Gender
    count: int = 0
    percent: Decimal = Decimal("0")


class EmployeeRef(BaseModel):
    """Short reference to an extremal employee."""

    id: int
    name: str
    birth_date: str
    salary: Decimal


class RosterSummary(BaseModel):
    """Aggregated view of accepted records and their departments."""

    total_employees: int = 0
    mean_salary: Decimal = Decimal("0")
    genders: list[GenderSplit] = Field(default_factory=list)
    department_count: int = 0
    departments: list[DepartmentStats] = Field(default_factory=list)
    oldest: Optional[EmployeeRef] = None
    youngest: Optional[EmployeeRef] = None
    highest_paid: Optional[EmployeeRef] = None
    lowest_paid: Optional[EmployeeRef] = None


def _mean(amounts: list[Decimal]) -> Decimal:
    if not amounts:
        return Decimal("0")
    return (sum(amounts, Decimal("0")) / len(amounts)).quantize(_CENTS, rounding=ROUND_HALF_UP)


def _percent(part: int, whole: int) -> Decimal:
    if whole == 0:
        return Decimal("0")
    return (Decimal(part) * 100 / whole).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP)


def _ref(record: EmployeeRecord | None) -> EmployeeRef | None:
    if record is None:
        return None
    return EmployeeRef(
        id=record.id,
        name=record.name,
        birth_date=record.birth_date.isoformat(),
        salary=record.salary,
    )


def department_stats(
    records: Sequence[EmployeeRecord],
    departments: Mapping[str, Department],
) -> list[DepartmentStats]:
    """Per-department headcount and mean salary, sorted by department name.

    Departments that only appear on rejected lines are listed with zero
    headcount.
    """
    salaries: dict[Department, list[Decimal]] = {}
    for record in records:
        salaries.setdefault(record.department, []).append(record.salary)

    stats = [
        DepartmentStats(
            code=code,
            department_id=department.id,
            name=department.name,
            headcount=len(salaries.get(department, [])),
            mean_salary=_mean(salaries.get(department, [])),
        )
        for code, department in departments.items()
    ]
    return sorted(stats, key=lambda s: s.name)


def summarize(result: IngestResult) -> RosterSummary:
    """Compute the report numbers for one ingest run."""
    records = result.records
    total = len(records)

    genders = []
    for gender in Gender:
        count = sum(1 for r in records if r.gender is gender)
        genders.append(GenderSplit(gender=gender, count=count, percent=_percent(count, total)))

    # min/max keep the first of equal candidates, so ties resolve to file order
    oldest = min(records, key=lambda r: r.birth_date, default=None)
    youngest = max(records, key=lambda r: r.birth_date, default=None)
    highest = max(records, key=lambda r: r.salary, default=None)
    lowest = min(records, key=lambda r: r.salary, default=None)

    return RosterSummary(
        total_employees=total,
        mean_salary=_mean([r.salary for r in records]),
        genders=genders,
        department_count=len(result.departments),
        departments=department_stats(records, result.departments),
        oldest=_ref(oldest),
        youngest=_ref(youngest),
        highest_paid=_ref(highest),
        lowest_paid=_ref(lowest),
    )
