"""Command-line report for an employee file.

Usage:
    roster people.csv --preview 5
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from roster.core.config import AppSettings
from roster.core.exceptions import IngestError
from roster.core.logging_config import configure_logging
from roster.ingest.pipeline import ingest_file
from roster.models.ingest import IngestResult
from roster.report.statistics import RosterSummary, summarize

DATE_DISPLAY = "%d.%m.%Y"

TROUBLESHOOTING = [
    "The file is missing or the path is wrong",
    "The file is not UTF-8 encoded",
    "The delimiter is not ';'",
    "The file is damaged or has a different column layout",
]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="roster", description="Ingest an employee file and print statistics")
    parser.add_argument("path", nargs="?", type=Path, help="Input file (default: ROSTER_INGEST_SOURCE_PATH)")
    parser.add_argument("--encoding", help="Input encoding override")
    parser.add_argument("--delimiter", help="Field delimiter override")
    parser.add_argument("--preview", type=int, default=5, help="Number of records to preview")
    parser.add_argument("--show-failures", type=int, default=5, help="Number of rejected lines to list")
    parser.add_argument("--log-level", help="Log level override (e.g. WARNING)")
    return parser


def _settings_from_args(args: argparse.Namespace) -> AppSettings:
    settings = AppSettings()
    overrides = {
        key: value
        for key, value in (("encoding", args.encoding), ("delimiter", args.delimiter))
        if value
    }
    if overrides:
        ingest = settings.ingest.model_copy(update=overrides)
        settings = settings.model_copy(update={"ingest": ingest})
    if args.log_level:
        settings = settings.model_copy(update={"log_level": args.log_level})
    return settings


def print_processing(console: Console, result: IngestResult, show_failures: int) -> None:
    diag = result.diagnostics
    console.print("[bold]Processing[/bold]")
    console.print(f"  Header: {escape(str(diag.header))}")
    console.print(f"  Data lines: {diag.lines_seen}")
    console.print(f"  Accepted: {diag.accepted}")
    console.print(f"  Rejected: {diag.rejected} (parse: {diag.rejected_parse}, validation: {diag.rejected_validation})")
    console.print(f"  Defaulted fields: {len(diag.warnings)}")
    for failure in diag.failures[:show_failures]:
        console.print(f"  [red]✗ line {failure.line_number}[/red] {failure.kind}: {escape(failure.reason)}")


def print_summary(console: Console, summary: RosterSummary) -> None:
    console.print("\n[bold]Summary[/bold]")
    console.print(f"  Employees loaded: {summary.total_employees}")
    console.print(f"  Mean salary: {summary.mean_salary:.2f}")
    for split in summary.genders:
        console.print(f"  {split.gender.localized_name} ({split.gender}): {split.count} ({split.percent}%)")
    console.print(f"  Departments: {summary.department_count}")

    table = Table(title="Departments")
    table.add_column("Department")
    table.add_column("ID", justify="right")
    table.add_column("Employees", justify="right")
    table.add_column("Mean salary", justify="right")
    for dept in summary.departments:
        table.add_row(escape(dept.name), str(dept.department_id), str(dept.headcount), f"{dept.mean_salary:.2f}")
    console.print(table)

    if summary.oldest and summary.youngest:
        console.print(f"  Oldest: {escape(summary.oldest.name)} ({summary.oldest.birth_date})")
        console.print(f"  Youngest: {escape(summary.youngest.name)} ({summary.youngest.birth_date})")
    if summary.highest_paid and summary.lowest_paid:
        console.print(f"  Highest salary: {escape(summary.highest_paid.name)} ({summary.highest_paid.salary:.0f})")
        console.print(f"  Lowest salary: {escape(summary.lowest_paid.name)} ({summary.lowest_paid.salary:.0f})")


def print_preview(console: Console, result: IngestResult, limit: int) -> None:
    if limit <= 0 or not result.records:
        return
    table = Table(title=f"First {min(limit, len(result.records))} records")
    for column in ("#", "Name", "ID", "Gender", "Department", "Salary", "Birth date"):
        table.add_column(column)
    for position, person in enumerate(result.records[:limit], start=1):
        table.add_row(
            str(position),
            escape(person.name),
            str(person.id),
            str(person.gender),
            escape(person.department.name),
            f"{person.salary:.0f}",
            person.birth_date.strftime(DATE_DISPLAY),
        )
    console.print(table)


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    settings = _settings_from_args(args)
    configure_logging(settings.log_level, settings.log_format)

    console = Console()
    err_console = Console(stderr=True, soft_wrap=True)

    try:
        result = ingest_file(args.path, settings)
    except IngestError as exc:
        err_console.print(f"[red]ERROR:[/red] {escape(str(exc))}")
        if exc.hint:
            err_console.print(f"Hint: {escape(exc.hint)}")
        err_console.print("\nPossible causes:")
        for number, cause in enumerate(TROUBLESHOOTING, start=1):
            err_console.print(f"  {number}. {cause}")
        return 1

    print_processing(console, result, args.show_failures)
    print_summary(console, summarize(result))
    print_preview(console, result, args.preview)
    return 0


if __name__ == "__main__":
    sys.exit(main())
