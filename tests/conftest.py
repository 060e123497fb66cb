"""Shared fixtures for unit tests."""

from __future__ import annotations

from pathlib import Path

import pytest

from roster.core.config import AppSettings

FIXTURES = Path(__file__).resolve().parent / "fixtures"

HEADER = "id;name;gender;birthDate;departmentCode;salary"


def _csv_lines(*rows: str, header: str = HEADER) -> list[str]:
    return [f"{line}\n" for line in (header, *rows)]


@pytest.fixture
def settings() -> AppSettings:
    return AppSettings(environment="test")


@pytest.fixture
def sample_csv() -> Path:
    return FIXTURES / "people_sample.csv"


@pytest.fixture
def csv_lines():
    """Build an in-memory input: header followed by data rows."""
    return _csv_lines
