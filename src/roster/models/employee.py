"""Employee and department models, the structures every ingest stage produces.

Records are frozen once built. Departments are shared by reference between
all employees that belong to them; the registry is the only place that
creates them.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from enum import StrEnum

from pydantic import BaseModel


class Gender(StrEnum):
    MALE = "MALE"
    FEMALE = "FEMALE"

    @property
    def localized_name(self) -> str:
        return _LOCALIZED_NAMES[self]

    @property
    def synonyms(self) -> frozenset[str]:
        """Casefolded tokens accepted for this category, canonical name included."""
        return _SYNONYMS[self]


_LOCALIZED_NAMES: dict[Gender, str] = {
    Gender.MALE: "Мужской",
    Gender.FEMALE: "Женский",
}

_SYNONYMS: dict[Gender, frozenset[str]] = {
    Gender.MALE: frozenset({"male", "m", "муж", "мужской"}),
    Gender.FEMALE: frozenset({"female", "f", "жен", "женский"}),
}


class Department(BaseModel):
    """Organizational unit issued by the department registry.

    Two departments are equal when their handles match, whatever their names.
    """

    id: int
    name: str

    model_config = {"frozen": True}

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Department):
            return NotImplemented
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)

    def __str__(self) -> str:
        return self.name


class EmployeeRecord(BaseModel):
    """Single employee row in canonical form."""

    # --- Identity ---
    id: int
    name: str

    # --- Demographics ---
    gender: Gender
    birth_date: date

    # --- Employment ---
    department: Department
    salary: Decimal

    model_config = {"frozen": True}

    def age_on(self, when: date) -> int:
        """Full years completed on ``when``."""
        years = when.year - self.birth_date.year
        if (when.month, when.day) < (self.birth_date.month, self.birth_date.day):
            years -= 1
        return years
