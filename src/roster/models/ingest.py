"""Ingest run outcome models: violations, per-line failures, diagnostics."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Mapping, Optional

from pydantic import BaseModel, Field, computed_field

from roster.models.employee import Department, EmployeeRecord


class PipelineState(StrEnum):
    HEADER = "HEADER"
    DATA = "DATA"
    DONE = "DONE"


class FailureKind(StrEnum):
    PARSE = "PARSE"
    VALIDATION = "VALIDATION"


class Violation(BaseModel):
    """One broken constraint on an assembled record."""

    field: str
    message: str

    model_config = {"frozen": True}

    def __str__(self) -> str:
        return f"{self.field} - {self.message}"


class FieldWarning(BaseModel):
    """A field that was replaced by a default; the line was kept."""

    line_number: int
    field: str
    reason: str
    substituted: str


class LineFailure(BaseModel):
    """A line excluded from the result set."""

    line_number: int
    kind: FailureKind
    reason: str
    violations: list[Violation] = Field(default_factory=list)
    raw: list[str] = Field(default_factory=list)


class RunDiagnostics(BaseModel):
    """Aggregate counts and per-line details for one ingest run."""

    lines_seen: int = 0  # non-blank data lines
    accepted: int = 0
    rejected_parse: int = 0
    rejected_validation: int = 0
    blank_lines_skipped: int = 0
    header: list[str] = Field(default_factory=list)
    failures: list[LineFailure] = Field(default_factory=list)
    warnings: list[FieldWarning] = Field(default_factory=list)
    source: Optional[str] = None

    model_config = {"frozen": True}

    @computed_field  # type: ignore[prop-decorator]
    @property
    def rejected(self) -> int:
        return self.rejected_parse + self.rejected_validation


@dataclass(frozen=True)
class IngestResult:
    """Everything a reporting collaborator gets back from a run."""

    records: tuple[EmployeeRecord, ...]
    departments: Mapping[str, Department]
    diagnostics: RunDiagnostics
