"""Domain models for the clinical workbook importer.

This package contains the record, outcome, report and configuration types
shared by the reader, the pipeline services, the store and the CLI.
"""

from .clinical_record import ClinicalCategory, ClinicalRecord, Gender
from .config_models import DatabaseConfig, DedupStrategy, ImportConfig
from .error_record import ErrorRecord
from .intermediate_record import IntermediateRecord
from .outcome import Failed, Persisted, Rejected, RowOutcome, Skipped
from .report import ImportReport, SheetReport

__all__ = [
    # Configuration models
    "DatabaseConfig",
    "DedupStrategy",
    "ImportConfig",
    # Records
    "ClinicalCategory",
    "ClinicalRecord",
    "Gender",
    "IntermediateRecord",
    "ErrorRecord",
    # Row outcomes
    "Failed",
    "Persisted",
    "Rejected",
    "RowOutcome",
    "Skipped",
    # Reports
    "ImportReport",
    "SheetReport",
]
