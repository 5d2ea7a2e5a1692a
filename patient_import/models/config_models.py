from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

"""Config dataclasses for the clinical workbook importer.

Populated by `patient_import.config.loader.load_config` from
`config/import.yml`; every field has a default so the importer runs without a
config file.
"""

__all__ = [
    "DedupStrategy",
    "DatabaseConfig",
    "ImportConfig",
]


class DedupStrategy(Enum):
    """Natural-key policy used by the persistence gate.

    - MRN: verbatim (trimmed) MRN only
    - NAME_YEAR: case-folded name + registration year only
    - MRN_OR_NAME_YEAR: MRN when present, otherwise name + year
    """
    MRN = "mrn"
    NAME_YEAR = "name_year"
    MRN_OR_NAME_YEAR = "mrn_or_name_year"


@dataclass(frozen=True)
class DatabaseConfig:
    """Database connection fallback configuration.

    Environment variables (DATABASE_URL / PGDSN / PG*) take precedence.
    """
    host: str | None = None
    port: int | None = None
    user: str | None = None
    password: str | None = None
    database: str | None = None
    dsn: str | None = None


@dataclass(frozen=True)
class ImportConfig:
    """Root configuration object for an import run."""
    dedup_strategy: DedupStrategy = DedupStrategy.MRN_OR_NAME_YEAR
    require_mrn: bool = True  # False lets blank-MRN rows through to name+year dedup
    header_row: int = 1  # worksheet row holding the column headers
    default_country: str = "India"
    default_calling_code: str = "+91"  # prefixed to bare 10-digit phone numbers
    table: str = "patients"
    error_log_dir: str = "logs"
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
