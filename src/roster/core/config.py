"""Application configuration using pydantic-settings with grouped env prefixes."""

from __future__ import annotations

from decimal import Decimal
from pathlib import Path
from typing import Literal

from pydantic_settings import BaseSettings


class IngestConfig(BaseSettings):
    """Input file layout and field defaulting policy."""

    model_config = {"env_prefix": "ROSTER_INGEST_"}

    source_path: Path = Path("people.csv")
    encoding: str = "utf-8-sig"  # tolerates a leading BOM
    delimiter: str = ";"
    quote_char: str = '"'

    primary_date_format: str = "%d.%m.%Y"
    fallback_date_formats: list[str] = [
        "%Y-%m-%d",
        "%d-%m-%Y",
        "%d/%m/%Y",
        "%Y/%m/%d",
        "%d.%m.%y",
        "%d-%m-%y",
        "%d/%m/%y",
    ]

    department_name_prefix: str = "Department "
    unknown_department_code: str = "UNKNOWN"
    default_gender: Literal["MALE", "FEMALE"] = "MALE"
    id_fallback_multiplier: int = 1000

    @property
    def date_formats(self) -> tuple[str, ...]:
        """Primary pattern followed by the fallbacks, in trial order."""
        return (self.primary_date_format, *self.fallback_date_formats)


class ValidationConfig(BaseSettings):
    """Constraint bounds applied to every assembled record."""

    model_config = {"env_prefix": "ROSTER_VALIDATION_"}

    name_min_length: int = 2
    name_max_length: int = 50
    salary_ceiling: Decimal = Decimal("1000000")


class AppSettings(BaseSettings):
    """Root application settings aggregating all sub-configs."""

    model_config = {"env_prefix": "ROSTER_"}

    environment: Literal["dev", "test", "prod"] = "dev"
    log_level: str = "INFO"
    log_format: Literal["json", "console"] = "json"

    ingest: IngestConfig = IngestConfig()
    validation: ValidationConfig = ValidationConfig()
