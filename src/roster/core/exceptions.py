"""Roster exception hierarchy."""

from __future__ import annotations


class RosterError(Exception):
    """Base exception for all Roster errors."""


class IngestError(RosterError):
    """Fatal error that aborts an ingestion run with no partial result."""

    def __init__(self, message: str, hint: str = "") -> None:
        self.hint = hint
        super().__init__(message)


class SourceNotFoundError(IngestError):
    """Input file does not exist."""

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(
            f"Input file not found: {path}",
            hint="Check the file name and that the path is relative to the working directory",
        )


class SourceUnreadableError(IngestError):
    """Input path exists but cannot be opened for reading."""

    def __init__(self, path: str, detail: str) -> None:
        self.path = path
        super().__init__(
            f"Input file cannot be opened: {path}: {detail}",
            hint="Check that the path is a regular file and that you have read permission",
        )


class MissingHeaderError(IngestError):
    """Input is empty, so there is no header line to consume."""

    def __init__(self) -> None:
        super().__init__(
            "Input is empty: expected a header line",
            hint="The first line must be the column header",
        )


class HeaderMismatchError(IngestError):
    """Header does not match the canonical field layout."""

    def __init__(self, header: list[str], detail: str) -> None:
        self.header = header
        self.detail = detail
        super().__init__(
            f"Header does not match the expected layout ({detail}): {header}",
            hint="Expected columns in this order: id; name; gender; birthDate; departmentCode; salary. "
            "Check that the delimiter is ';'",
        )


class SourceDecodeError(IngestError):
    """Input bytes could not be decoded with the configured encoding."""

    def __init__(self, encoding: str, detail: str) -> None:
        self.encoding = encoding
        super().__init__(
            f"Could not decode input as {encoding}: {detail}",
            hint="Save the file as UTF-8",
        )


class SourceFormatError(IngestError):
    """The csv reader could not tokenize the input."""

    def __init__(self, line_number: int, detail: str) -> None:
        self.line_number = line_number
        self.detail = detail
        super().__init__(
            f"Malformed input near line {line_number}: {detail}",
            hint="Check the delimiter (';') and quote character ('\"')",
        )


class PipelineStateError(IngestError):
    """An ingest pipeline instance was run more than once."""


class UnrecognizedGenderError(RosterError):
    """Gender token matches neither category nor any synonym."""

    def __init__(self, token: str | None) -> None:
        self.token = token
        super().__init__(f"Unrecognized gender: {token!r}")
