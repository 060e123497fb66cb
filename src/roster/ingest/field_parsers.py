"""Field parsers, one pure function per input column.

Each parser returns a tagged result instead of raising:

- ``Parsed(value)``: the text was well formed.
- ``Defaulted(value, reason)``: a safe substitute was used; the line is kept.
- ``Failed(reason)``: no safe default exists; the line is dropped.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Generic, Iterable, TypeVar, Union

from roster.core.exceptions import UnrecognizedGenderError
from roster.ingest.gender_classifier import classify_gender
from roster.models.employee import Gender

T = TypeVar("T")

_INTEGER = re.compile(r"[+-]?\d+", re.ASCII)


@dataclass(frozen=True)
class Parsed(Generic[T]):
    value: T


@dataclass(frozen=True)
class Defaulted(Generic[T]):
    value: T
    reason: str


@dataclass(frozen=True)
class Failed:
    reason: str


ParseResult = Union[Parsed[T], Defaulted[T], Failed]


def parse_identifier(text: str, line_number: int, multiplier: int = 1000) -> ParseResult[int]:
    """Parse a signed integer id; a missing id is derived from the line number.

    The fallback ``line_number * multiplier`` is deterministic, so two runs
    over the same file assign the same ids. Sign is left to the validator.
    """
    text = text.strip()
    if not text:
        fallback = line_number * multiplier
        return Defaulted(fallback, f"identifier missing, derived {fallback} from line number")
    if not _INTEGER.fullmatch(text):
        return Failed(f"invalid identifier: {text!r}")
    try:
        return Parsed(int(text))
    except ValueError:
        # int() refuses strings past sys.get_int_max_str_digits()
        return Failed(f"invalid identifier: {len(text)}-digit value is too long")


def parse_name(text: str, identifier: int) -> ParseResult[str]:
    name = text.strip()
    if not name:
        placeholder = f"Employee #{identifier}"
        return Defaulted(placeholder, "name missing, using placeholder")
    return Parsed(name)


def parse_gender(text: str, default: Gender = Gender.MALE) -> ParseResult[Gender]:
    if not text.strip():
        return Defaulted(default, f"gender missing, using {default}")
    try:
        return Parsed(classify_gender(text))
    except UnrecognizedGenderError:
        return Defaulted(default, f"unrecognized gender {text.strip()!r}, using {default}")


def parse_salary(text: str) -> ParseResult[Decimal]:
    """Parse a decimal amount, accepting either ',' or '.' as separator.

    Empty or unparseable input defaults to zero; a zero salary is then
    reported by the validator, not here.
    """
    text = text.strip()
    if not text:
        return Defaulted(Decimal("0"), "salary missing, using 0")
    try:
        amount = Decimal(text.replace(",", "."))
    except InvalidOperation:
        return Defaulted(Decimal("0"), f"invalid salary {text!r}, using 0")
    if not amount.is_finite():
        return Defaulted(Decimal("0"), f"invalid salary {text!r}, using 0")
    return Parsed(amount)


def parse_birth_date(text: str, formats: Iterable[str]) -> ParseResult[date]:
    """Try each strptime pattern in order; the first that matches wins.

    There is no default: an empty or unreadable date fails the line.
    """
    text = text.strip()
    if not text:
        return Failed("birth date missing")
    for fmt in formats:
        try:
            return Parsed(datetime.strptime(text, fmt).date())
        except ValueError:
            continue
    return Failed(f"invalid birth date format: {text!r}")


def parse_department_code(text: str, unknown_code: str = "UNKNOWN") -> ParseResult[str]:
    code = text.strip()
    if not code:
        return Defaulted(unknown_code, f"department code missing, using {unknown_code}")
    return Parsed(code)
