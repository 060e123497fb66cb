"""In-process stores backing the ingest pipeline."""

from __future__ import annotations

from roster.core.config import IngestConfig
from roster.persistence.department_registry import DepartmentRegistry


def create_registry(config: IngestConfig | None = None) -> DepartmentRegistry:
    """Create a fresh department registry from ingest settings."""
    if config is None:
        config = IngestConfig()

    return DepartmentRegistry(
        name_prefix=config.department_name_prefix,
        unknown_code=config.unknown_department_code,
    )
