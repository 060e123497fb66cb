"""Tests for the ingest pipeline state machine and run diagnostics."""

from __future__ import annotations

import io
from datetime import date
from decimal import Decimal

import pytest

from roster.core.config import AppSettings, IngestConfig
from roster.core.exceptions import (
    HeaderMismatchError,
    IngestError,
    MissingHeaderError,
    PipelineStateError,
    SourceDecodeError,
    SourceNotFoundError,
    SourceUnreadableError,
)
from roster.ingest.pipeline import IngestPipeline, ingest, ingest_file
from roster.ingest.record_validator import RecordValidator
from roster.models.employee import Gender
from roster.models.ingest import FailureKind, PipelineState
from tests.fakes import CannedValidator, RecordingRegistry


class TestEndToEnd:
    def test_blank_salary_and_future_birth_date(self, csv_lines, settings):
        lines = csv_lines(
            "1;Anna;F;15.05.1970;A;2500",
            "2;Boris;M;01.01.2999;B;",
        )
        result = ingest(lines, settings)
        diag = result.diagnostics

        assert [r.name for r in result.records] == ["Anna"]
        assert diag.lines_seen == 2
        assert diag.accepted == 1
        assert diag.rejected == 1
        assert diag.rejected_validation == 1
        assert [(w.line_number, w.field) for w in diag.warnings] == [(3, "salary")]

        failure = diag.failures[0]
        assert failure.line_number == 3
        assert failure.kind is FailureKind.VALIDATION
        assert {v.field for v in failure.violations} == {"birth_date", "salary"}

    def test_sample_file(self, sample_csv, settings):
        result = ingest_file(sample_csv, settings)
        diag = result.diagnostics

        assert [r.id for r in result.records] == [28281, 28282, 28283, 6000]
        assert diag.lines_seen == 7
        assert diag.blank_lines_skipped == 1
        assert diag.accepted == 4
        assert diag.rejected_parse == 2
        assert diag.rejected_validation == 1
        assert [f.line_number for f in diag.failures] == [7, 8, 9]
        assert list(result.departments) == ["I", "J", "H"]
        assert diag.header == ["id", "name", "gender", "BirtDate", "Division", "Salary"]

        first = result.records[0]
        assert first.name == "Aahan"
        assert first.gender is Gender.MALE
        assert first.birth_date == date(1970, 5, 15)
        assert first.department.name == "Department I"
        assert first.salary == Decimal("4800")

        zyta = result.records[-1]
        assert zyta.gender is Gender.FEMALE
        assert zyta.department.name == "Department H"


class TestDepartments:
    def test_same_code_shares_identical_reference(self, csv_lines, settings):
        result = ingest(
            csv_lines(
                "1;Anna;F;15.05.1970;A;2500",
                "2;Boris;M;15.05.1971;A;2600",
            ),
            settings,
        )
        first, second = result.records
        assert first.department is second.department
        assert result.departments["A"] is first.department

    def test_ids_follow_first_occurrence(self, csv_lines, settings):
        result = ingest(
            csv_lines(
                "1;Anna;F;15.05.1970;C;2500",
                "2;Boris;M;15.05.1971;A;2600",
                "3;Vera;F;15.05.1972;C;2700",
                "4;Gleb;M;15.05.1973;B;2800",
            ),
            settings,
        )
        assert {code: d.id for code, d in result.departments.items()} == {"C": 1, "A": 2, "B": 3}

    def test_rerun_assigns_identical_ids(self, sample_csv, settings):
        first = ingest_file(sample_csv, settings)
        second = ingest_file(sample_csv, settings)
        assert {c: d.id for c, d in first.departments.items()} == {
            c: d.id for c, d in second.departments.items()
        }

    def test_blank_code_uses_unknown_department(self, csv_lines, settings):
        result = ingest(csv_lines("1;Anna;F;15.05.1970; ;2500"), settings)
        assert result.records[0].department.name == "Department UNKNOWN"
        assert [w.field for w in result.diagnostics.warnings] == ["department"]

    def test_parse_failure_does_not_register_department(self, csv_lines, settings):
        result = ingest(csv_lines("1;Anna;F;not-a-date;Z;2500"), settings)
        assert "Z" not in result.departments

    def test_departments_snapshot_is_read_only(self, csv_lines, settings):
        result = ingest(csv_lines("1;Anna;F;15.05.1970;A;2500"), settings)
        with pytest.raises(TypeError):
            result.departments["B"] = result.departments["A"]  # type: ignore[index]


class TestLineIsolation:
    def test_short_row_is_dropped(self, csv_lines, settings):
        result = ingest(csv_lines("1;Anna;F;15.05.1970", "2;Boris;M;15.05.1971;A;2600"), settings)
        assert [r.name for r in result.records] == ["Boris"]
        failure = result.diagnostics.failures[0]
        assert failure.kind is FailureKind.PARSE
        assert "expected 6 fields" in failure.reason
        assert failure.raw == ["1", "Anna", "F", "15.05.1970"]

    def test_extra_fields_are_ignored(self, csv_lines, settings):
        result = ingest(csv_lines("1;Anna;F;15.05.1970;A;2500;extra"), settings)
        assert result.diagnostics.accepted == 1

    def test_oversized_identifier_is_dropped(self, csv_lines, settings):
        lines = csv_lines("9" * 5000 + ";Anna;F;15.05.1970;A;2500", "2;Boris;M;15.05.1971;B;2600")
        result = ingest(lines, settings)
        assert [r.id for r in result.records] == [2]
        failure = result.diagnostics.failures[0]
        assert failure.kind is FailureKind.PARSE
        assert failure.line_number == 2
        assert "too long" in failure.reason

    def test_oversized_field_is_dropped(self, csv_lines, settings):
        lines = csv_lines("1;" + "x" * 200_000 + ";F;15.05.1970;A;2500", "2;Boris;M;15.05.1971;B;2600")
        result = ingest(lines, settings)
        assert [r.name for r in result.records] == ["Boris"]
        diag = result.diagnostics
        assert diag.rejected_parse == 1
        assert diag.lines_seen == diag.accepted + diag.rejected
        failure = diag.failures[0]
        assert failure.line_number == 2
        assert failure.reason.startswith("malformed line:")
        assert failure.raw == []
        assert list(result.departments) == ["B"]

    def test_invalid_identifier_is_dropped(self, csv_lines, settings):
        result = ingest(csv_lines("x1;Anna;F;15.05.1970;A;2500"), settings)
        assert result.diagnostics.rejected_parse == 1
        assert result.records == ()

    def test_missing_identifier_uses_line_number(self, csv_lines, settings):
        result = ingest(csv_lines("1;Anna;F;15.05.1970;A;2500", ";Boris;M;15.05.1971;A;2600"), settings)
        assert [r.id for r in result.records] == [1, 3000]

    def test_missing_name_gets_placeholder(self, csv_lines, settings):
        result = ingest(csv_lines("7;;F;15.05.1970;A;2500"), settings)
        assert result.records[0].name == "Employee #7"

    def test_unknown_gender_defaults_and_keeps_line(self, csv_lines, settings):
        result = ingest(csv_lines("1;Anna;X;15.05.1970;A;2500"), settings)
        assert result.records[0].gender is Gender.MALE
        assert [w.field for w in result.diagnostics.warnings] == ["gender"]

    def test_parse_failed_line_records_no_warnings(self, csv_lines, settings):
        result = ingest(csv_lines(";;;bad;;"), settings)
        assert result.diagnostics.rejected_parse == 1
        assert result.diagnostics.warnings == []

    def test_blank_lines_are_skipped(self, csv_lines, settings):
        result = ingest(csv_lines("", ";;;;;", "1;Anna;F;15.05.1970;A;2500"), settings)
        assert result.diagnostics.blank_lines_skipped == 2
        assert result.diagnostics.lines_seen == 1

    def test_quoted_field_with_delimiter(self, csv_lines, settings):
        result = ingest(csv_lines('1;"Smith; Anna";F;15.05.1970;A;2500'), settings)
        assert result.records[0].name == "Smith; Anna"

    def test_accepted_records_pass_validation(self, sample_csv, settings):
        result = ingest_file(sample_csv, settings)
        validator = RecordValidator(settings.validation)
        assert all(validator.validate(record) == frozenset() for record in result.records)

    def test_counts_add_up(self, sample_csv, settings):
        diag = ingest_file(sample_csv, settings).diagnostics
        assert diag.lines_seen == diag.accepted + diag.rejected
        assert len(diag.failures) == diag.rejected


class TestFatalErrors:
    def test_empty_input(self, settings):
        with pytest.raises(MissingHeaderError):
            ingest([], settings)

    def test_whitespace_only_input(self, settings):
        with pytest.raises(MissingHeaderError):
            ingest(["   \n"], settings)

    def test_header_with_wrong_column_count(self, settings):
        with pytest.raises(HeaderMismatchError) as exc_info:
            ingest(["id,name,gender,birthDate,departmentCode,salary\n"], settings)
        assert "1 columns, expected 6" in exc_info.value.detail
        assert len(exc_info.value.header) == 1
        assert "delimiter" in exc_info.value.hint

    def test_header_with_swapped_columns(self, csv_lines, settings):
        lines = csv_lines("1;Anna;F;A;15.05.1970;2500", header="id;name;gender;departmentCode;birthDate;salary")
        with pytest.raises(HeaderMismatchError) as exc_info:
            ingest(lines, settings)
        assert "column 4 is 'departmentCode', which belongs in column 5" in exc_info.value.detail
        assert "in this order" in exc_info.value.hint

    @pytest.mark.parametrize(
        "header",
        [
            "ID;Name;Gender;Birth_Date;Department;Salary",
            "id;name;gender;BirtDate;Division;Salary",
            "id;full name;sex;date of birth;dept;pay",
            "n;fio;pol;dr;otdel;oklad",
        ],
    )
    def test_header_variants_in_canonical_order(self, csv_lines, settings, header):
        lines = csv_lines("1;Anna;F;15.05.1970;A;2500", header=header)
        assert ingest(lines, settings).diagnostics.accepted == 1

    def test_header_with_trailing_delimiter(self, csv_lines, settings):
        lines = csv_lines("1;Anna;F;15.05.1970;A;2500", header="id;name;gender;birthDate;dept;salary;")
        assert ingest(lines, settings).diagnostics.accepted == 1

    def test_file_not_found(self, tmp_path, settings):
        missing = tmp_path / "non_existent_file.csv"
        with pytest.raises(SourceNotFoundError) as exc_info:
            ingest_file(missing, settings)
        assert "non_existent_file.csv" in str(exc_info.value)
        assert isinstance(exc_info.value, IngestError)
        assert isinstance(exc_info.value.__cause__, FileNotFoundError)

    def test_directory_is_unreadable_not_missing(self, tmp_path, settings):
        with pytest.raises(SourceUnreadableError) as exc_info:
            ingest_file(tmp_path, settings)
        assert "cannot be opened" in str(exc_info.value)
        assert "read permission" in exc_info.value.hint
        assert isinstance(exc_info.value.__cause__, IsADirectoryError)

    def test_wrong_encoding(self, tmp_path, settings):
        path = tmp_path / "cp1251.csv"
        path.write_bytes("id;name;gender;birthDate;departmentCode;salary\n1;Анна;ЖЕН;15.05.1970;A;2500\n".encode("cp1251"))
        with pytest.raises(SourceDecodeError):
            ingest_file(path, settings)

    def test_configured_encoding(self, tmp_path):
        path = tmp_path / "cp1251.csv"
        path.write_bytes("id;name;gender;birthDate;departmentCode;salary\n1;Анна;ЖЕН;15.05.1970;A;2500\n".encode("cp1251"))
        settings = AppSettings(ingest=IngestConfig(encoding="cp1251"))
        result = ingest_file(path, settings)
        assert result.records[0].name == "Анна"
        assert result.records[0].gender is Gender.FEMALE

    def test_utf8_bom_is_tolerated(self, tmp_path, settings):
        path = tmp_path / "bom.csv"
        path.write_bytes("id;name;gender;birthDate;departmentCode;salary\n1;Anna;F;15.05.1970;A;2500\n".encode("utf-8-sig"))
        result = ingest_file(path, settings)
        assert result.diagnostics.header[0] == "id"


class TestPipelineState:
    def test_states(self, csv_lines, settings):
        pipeline = IngestPipeline(settings)
        assert pipeline.state is PipelineState.HEADER
        pipeline.run(csv_lines("1;Anna;F;15.05.1970;A;2500"))
        assert pipeline.state is PipelineState.DONE

    def test_single_use(self, csv_lines, settings):
        pipeline = IngestPipeline(settings)
        pipeline.run(csv_lines())
        with pytest.raises(PipelineStateError):
            pipeline.run(csv_lines())

    def test_done_after_fatal_error(self, settings):
        pipeline = IngestPipeline(settings)
        with pytest.raises(MissingHeaderError):
            pipeline.run([])
        assert pipeline.state is PipelineState.DONE

    def test_accepts_text_stream(self, settings):
        stream = io.StringIO("id;name;gender;birthDate;departmentCode;salary\n1;Anna;F;15.05.1970;A;2500\n")
        assert ingest(stream, settings).diagnostics.accepted == 1

    def test_result_records_are_a_tuple(self, csv_lines, settings):
        result = ingest(csv_lines("1;Anna;F;15.05.1970;A;2500"), settings)
        assert isinstance(result.records, tuple)


class TestInjectedCollaborators:
    def test_uses_supplied_validator(self, csv_lines, settings):
        validator = CannedValidator(rejected_ids={2})
        pipeline = IngestPipeline(settings, validator=validator)
        result = pipeline.run(
            csv_lines(
                "1;Anna;F;15.05.1970;A;2500",
                "2;Boris;M;15.05.1971;A;2600",
            )
        )
        assert validator.seen == [1, 2]
        assert [r.id for r in result.records] == [1]
        assert result.diagnostics.failures[0].reason == "id - rejected by test"

    def test_department_resolved_once_per_assembled_line(self, csv_lines, settings):
        registry = RecordingRegistry()
        pipeline = IngestPipeline(settings, registry=registry)
        pipeline.run(
            csv_lines(
                "1;Anna;F;15.05.1970;A;2500",
                "2;Boris;M;bad-date;B;2600",
                "3;Vera;F;15.05.1972;;2700",
            )
        )
        assert registry.calls == ["A", "UNKNOWN"]
