"""Ingest orchestration for employee files.

This module walks the csv rows in file order: it consumes the header,
parses each data line into a candidate record, resolves its department,
validates it and accumulates accepted records plus run diagnostics. Any
per-line problem is isolated to that line; only source-level problems
abort the run.
"""

from __future__ import annotations

import csv
import re
from pathlib import Path
from typing import Any, Iterable, Iterator

from roster.core.config import AppSettings
from roster.core.exceptions import (
    HeaderMismatchError,
    MissingHeaderError,
    PipelineStateError,
    SourceDecodeError,
    SourceFormatError,
    SourceNotFoundError,
    SourceUnreadableError,
)
from roster.core.logging_config import get_logger
from roster.core.protocols import IDepartmentResolver, IRecordValidator
from roster.core.types import LineNumber, RawRow
from roster.ingest.field_parsers import (
    Defaulted,
    Failed,
    Parsed,
    ParseResult,
    parse_birth_date,
    parse_department_code,
    parse_gender,
    parse_identifier,
    parse_name,
    parse_salary,
)
from roster.ingest.record_validator import RecordValidator
from roster.models.employee import EmployeeRecord, Gender
from roster.models.ingest import (
    FailureKind,
    FieldWarning,
    IngestResult,
    LineFailure,
    PipelineState,
    RunDiagnostics,
)
from roster.persistence import create_registry

_LOGGER = get_logger(__name__)

FIELD_ORDER: tuple[str, ...] = ("id", "name", "gender", "birth_date", "department", "salary")

# Header names seen in real exports, per position. Compared after casefolding
# and dropping everything but letters and digits.
HEADER_ALIASES: tuple[frozenset[str], ...] = (
    frozenset({"id", "employeeid", "personid"}),
    frozenset({"name", "fullname", "employeename"}),
    frozenset({"gender", "sex"}),
    frozenset({"birthdate", "birtdate", "dateofbirth", "dob"}),
    frozenset({"departmentcode", "department", "dept", "division", "divisioncode"}),
    frozenset({"salary", "pay", "wage"}),
)

_NON_ALNUM = re.compile(r"[\W_]+")


class IngestPipeline:
    """Single-use runner: HEADER -> DATA -> DONE over one input stream."""

    def __init__(
        self,
        settings: AppSettings | None = None,
        registry: IDepartmentResolver | None = None,
        validator: IRecordValidator | None = None,
    ) -> None:
        self._settings = settings or AppSettings()
        self._config = self._settings.ingest
        self._registry = registry if registry is not None else create_registry(self._config)
        self._validator = validator or RecordValidator(self._settings.validation, self._registry)
        self._default_gender = Gender(self._config.default_gender)
        self._state = PipelineState.HEADER

        self._records: list[EmployeeRecord] = []
        self._failures: list[LineFailure] = []
        self._warnings: list[FieldWarning] = []
        self._lines_seen = 0
        self._blank_lines = 0
        self._rejected_parse = 0
        self._rejected_validation = 0

    @property
    def state(self) -> PipelineState:
        return self._state

    def run(self, lines: Iterable[str], source: str | None = None) -> IngestResult:
        """Consume ``lines`` and return records, departments and diagnostics.

        Raises:
            PipelineStateError: If this instance already ran.
            MissingHeaderError: If the input has no header line.
            HeaderMismatchError: If the header column count is wrong or a known
                column name sits in another column's position.
            SourceDecodeError: If the stream cannot be decoded.
            SourceFormatError: If the csv reader cannot tokenize the header.
        """
        if self._state is not PipelineState.HEADER:
            raise PipelineStateError(f"Pipeline already used (state={self._state})")

        reader = csv.reader(
            lines,
            delimiter=self._config.delimiter,
            quotechar=self._config.quote_char,
        )
        _LOGGER.info("ingest_started", source=source)
        try:
            header = self._read_header(reader)
            self._state = PipelineState.DATA
            for row in self._iter_rows(reader):
                self._process_row(row, reader.line_num)
        finally:
            self._state = PipelineState.DONE

        diagnostics = RunDiagnostics(
            lines_seen=self._lines_seen,
            accepted=len(self._records),
            rejected_parse=self._rejected_parse,
            rejected_validation=self._rejected_validation,
            blank_lines_skipped=self._blank_lines,
            header=header,
            failures=self._failures,
            warnings=self._warnings,
            source=source,
        )
        departments = self._registry.snapshot()
        _LOGGER.info(
            "ingest_completed",
            source=source,
            lines_seen=diagnostics.lines_seen,
            accepted=diagnostics.accepted,
            rejected=diagnostics.rejected,
            warnings=len(diagnostics.warnings),
            departments=len(departments),
        )
        return IngestResult(
            records=tuple(self._records),
            departments=departments,
            diagnostics=diagnostics,
        )

    # ---- stream handling ----

    def _next_row(self, reader: Any) -> RawRow | None:
        try:
            return next(reader)
        except StopIteration:
            return None
        except csv.Error as exc:
            raise SourceFormatError(reader.line_num, str(exc)) from exc
        except UnicodeDecodeError as exc:
            raise SourceDecodeError(self._config.encoding, str(exc)) from exc

    def _iter_rows(self, reader: Any) -> Iterator[RawRow]:
        """Yield data rows; a row the csv reader rejects is dropped, not fatal."""
        while True:
            try:
                row = self._next_row(reader)
            except SourceFormatError as exc:
                self._lines_seen += 1
                self._reject(exc.line_number, FailureKind.PARSE, f"malformed line: {exc.detail}", [])
                continue
            if row is None:
                return
            yield row

    def _read_header(self, reader: Any) -> list[str]:
        header = self._next_row(reader)
        if header is None or _is_blank(header):
            raise MissingHeaderError()

        columns = [cell.strip() for cell in header]
        while columns and not columns[-1]:
            columns.pop()  # trailing delimiter
        if len(columns) != len(FIELD_ORDER):
            raise HeaderMismatchError(
                columns, f"{len(columns)} columns, expected {len(FIELD_ORDER)}"
            )

        for position, column in enumerate(columns):
            key = _NON_ALNUM.sub("", column.casefold())
            if key in HEADER_ALIASES[position]:
                continue
            for other, aliases in enumerate(HEADER_ALIASES):
                if key in aliases:
                    raise HeaderMismatchError(
                        columns,
                        f"column {position + 1} is {column!r}, "
                        f"which belongs in column {other + 1}",
                    )
        return columns

    # ---- per-line processing ----

    def _process_row(self, row: RawRow, line_number: LineNumber) -> None:
        if _is_blank(row):
            self._blank_lines += 1
            return

        self._lines_seen += 1
        candidate = self._assemble(row, line_number)
        if isinstance(candidate, Failed):
            self._reject(line_number, FailureKind.PARSE, candidate.reason, row)
            return

        violations = self._validator.validate(candidate)
        if violations:
            ordered = sorted(violations, key=lambda v: (v.field, v.message))
            reason = "; ".join(str(v) for v in ordered)
            self._reject(line_number, FailureKind.VALIDATION, reason, row, ordered)
            return

        self._records.append(candidate)

    def _assemble(self, row: RawRow, line_number: LineNumber) -> EmployeeRecord | Failed:
        """Build a candidate record; hard failures come back as Failed."""
        if len(row) < len(FIELD_ORDER):
            return Failed(f"expected {len(FIELD_ORDER)} fields, got {len(row)}")

        id_text, name_text, gender_text, birth_text, department_text, salary_text = row[:len(FIELD_ORDER)]

        # Hard-failure fields are parsed before the department is resolved.
        identifier = parse_identifier(id_text, line_number, self._config.id_fallback_multiplier)
        if isinstance(identifier, Failed):
            return identifier
        birth_date = parse_birth_date(birth_text, self._config.date_formats)
        if isinstance(birth_date, Failed):
            return birth_date

        pending: list[FieldWarning] = []
        record_id: int = self._take(identifier, line_number, "id", pending)
        code: str = self._take(
            parse_department_code(department_text, self._config.unknown_department_code),
            line_number, "department", pending,
        )
        record = EmployeeRecord(
            id=record_id,
            name=self._take(parse_name(name_text, record_id), line_number, "name", pending),
            gender=self._take(
                parse_gender(gender_text, self._default_gender), line_number, "gender", pending
            ),
            birth_date=self._take(birth_date, line_number, "birth_date", pending),
            department=self._registry.resolve(code),
            salary=self._take(parse_salary(salary_text), line_number, "salary", pending),
        )
        for warning in pending:
            self._warn(warning)
        return record

    def _take(
        self,
        result: ParseResult[Any],
        line_number: LineNumber,
        field: str,
        pending: list[FieldWarning],
    ) -> Any:
        match result:
            case Parsed(value):
                return value
            case Defaulted(value, reason):
                pending.append(
                    FieldWarning(
                        line_number=line_number,
                        field=field,
                        reason=reason,
                        substituted=str(value),
                    )
                )
                return value
            case _:
                raise TypeError(f"Unexpected parse result for {field}: {result!r}")

    def _warn(self, warning: FieldWarning) -> None:
        self._warnings.append(warning)
        _LOGGER.warning(
            "field_defaulted",
            line=warning.line_number,
            field=warning.field,
            reason=warning.reason,
            substituted=warning.substituted,
        )

    def _reject(
        self,
        line_number: LineNumber,
        kind: FailureKind,
        reason: str,
        row: RawRow,
        violations: list | None = None,
    ) -> None:
        if kind is FailureKind.PARSE:
            self._rejected_parse += 1
        else:
            self._rejected_validation += 1
        self._failures.append(
            LineFailure(
                line_number=line_number,
                kind=kind,
                reason=reason,
                violations=violations or [],
                raw=row,
            )
        )
        _LOGGER.warning("line_rejected", line=line_number, kind=str(kind), reason=reason)


def _is_blank(row: RawRow) -> bool:
    return all(not cell.strip() for cell in row)


def ingest(
    lines: Iterable[str],
    settings: AppSettings | None = None,
    source: str | None = None,
) -> IngestResult:
    """Run a fresh pipeline (and a fresh registry) over ``lines``."""
    return IngestPipeline(settings).run(lines, source=source)


def ingest_file(path: str | Path | None = None, settings: AppSettings | None = None) -> IngestResult:
    """Open ``path`` (default: the configured source path) and ingest it.

    Raises:
        SourceNotFoundError: If the file does not exist.
        SourceUnreadableError: If the path cannot be opened for reading.
        SourceDecodeError: If the configured encoding is unknown or does not fit.
    """
    settings = settings or AppSettings()
    source = Path(path) if path is not None else settings.ingest.source_path
    encoding = settings.ingest.encoding

    try:
        handle = source.open(encoding=encoding, newline="")
    except LookupError as exc:
        raise SourceDecodeError(encoding, str(exc)) from exc
    except FileNotFoundError as exc:
        raise SourceNotFoundError(str(source)) from exc
    except OSError as exc:
        raise SourceUnreadableError(str(source), exc.strerror or str(exc)) from exc

    with handle:
        return ingest(handle, settings, source=str(source))
