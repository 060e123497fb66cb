"""RecordValidator: declarative constraints checked on every assembled record."""

from __future__ import annotations

from decimal import Decimal

from pydantic import BaseModel, Field, PastDate, ValidationError, create_model

from roster.core.config import ValidationConfig
from roster.core.protocols import IDepartmentResolver
from roster.models.employee import EmployeeRecord
from roster.models.ingest import Violation

_CONSTRAINED_FIELDS = {"id", "name", "salary", "birth_date"}


def build_constraint_model(config: ValidationConfig) -> type[BaseModel]:
    """Build a pydantic model carrying the configured bounds.

    Pydantic reports every failing field in one ValidationError.
    """
    return create_model(
        "EmployeeConstraints",
        __config__={"str_strip_whitespace": True},
        id=(int, Field(gt=0)),
        name=(str, Field(min_length=config.name_min_length, max_length=config.name_max_length)),
        salary=(Decimal, Field(gt=Decimal("0"), le=config.salary_ceiling)),
        birth_date=(PastDate, ...),
    )


class RecordValidator:
    """Applies every constraint independently and returns all violations.

    When a registry is supplied, the record's department must also be one
    the registry issued.
    """

    def __init__(
        self,
        config: ValidationConfig | None = None,
        registry: IDepartmentResolver | None = None,
    ) -> None:
        self._config = config or ValidationConfig()
        self._registry = registry
        self._constraints = build_constraint_model(self._config)

    def validate(self, record: EmployeeRecord) -> frozenset[Violation]:
        violations: set[Violation] = set()

        try:
            self._constraints.model_validate(record.model_dump(include=_CONSTRAINED_FIELDS))
        except ValidationError as exc:
            for error in exc.errors():
                field = ".".join(str(part) for part in error["loc"])
                violations.add(Violation(field=field, message=error["msg"]))

        if self._registry is not None and record.department not in self._registry:
            violations.add(
                Violation(field="department", message=f"Unregistered department: {record.department}")
            )

        return frozenset(violations)
