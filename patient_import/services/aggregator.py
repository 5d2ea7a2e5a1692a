from __future__ import annotations

from datetime import UTC, datetime

from patient_import.models.clinical_record import ClinicalCategory
from patient_import.models.outcome import Failed, Persisted, Rejected, RowOutcome, Skipped
from patient_import.models.report import ImportReport, SheetReport

"""Result aggregation.

SheetReportBuilder is owned by the code processing one sheet; it is frozen
into a SheetReport at the end of the sheet and folded into the run-level
ImportReportBuilder. No builder is shared between sheets, so sheets could be
processed concurrently with a single merge step.
"""

__all__ = [
    "SheetReportBuilder",
    "ImportReportBuilder",
]


def _now() -> datetime:
    return datetime.now(UTC)


class SheetReportBuilder:
    """Mutable accumulator for one worksheet."""

    def __init__(self, sheet_name: str, category: ClinicalCategory) -> None:
        self.sheet_name = sheet_name
        self.category = category
        self.start_time = _now()
        self.succeeded = 0
        self.skipped = 0
        self.errored = 0
        self.errors: list[str] = []
        self.warnings: list[str] = []

    @property
    def total(self) -> int:
        return self.succeeded + self.skipped + self.errored

    def record(self, outcome: RowOutcome) -> None:
        """Count one row's terminal outcome (exactly once per row)."""
        location = f"{outcome.sheet_name} Row {outcome.row_number}"
        if isinstance(outcome, Persisted):
            self.succeeded += 1
        elif isinstance(outcome, Skipped):
            self.skipped += 1
            self.warnings.append(f"{location}: {outcome.reason}")
        elif isinstance(outcome, (Rejected, Failed)):
            self.errored += 1
            self.errors.append(f"{location}: {outcome.reason}")
        else:  # pragma: no cover
            raise TypeError(f"unknown outcome: {outcome!r}")

    def warn(self, message: str) -> None:
        self.warnings.append(message)

    def finalize(self) -> SheetReport:
        return SheetReport(
            sheet_name=self.sheet_name,
            category=self.category,
            total=self.total,
            succeeded=self.succeeded,
            skipped=self.skipped,
            errored=self.errored,
            errors=tuple(self.errors),
            warnings=tuple(self.warnings),
            start_time=self.start_time,
            end_time=_now(),
        )


class ImportReportBuilder:
    """Run-level accumulator; folds finalized sheet reports in document order."""

    def __init__(self, file_name: str, *, validate_only: bool = False) -> None:
        self.file_name = file_name
        self.validate_only = validate_only
        self.start_time = _now()
        self.sheets: list[SheetReport] = []

    def merge(self, sheet: SheetReport) -> None:
        self.sheets.append(sheet)

    def finalize(self) -> ImportReport:
        errors: list[str] = []
        warnings: list[str] = []
        for s in self.sheets:
            errors.extend(s.errors)
            warnings.extend(s.warnings)
        return ImportReport(
            file_name=self.file_name,
            total=sum(s.total for s in self.sheets),
            succeeded=sum(s.succeeded for s in self.sheets),
            skipped=sum(s.skipped for s in self.sheets),
            errored=sum(s.errored for s in self.sheets),
            errors=tuple(errors),
            warnings=tuple(warnings),
            start_time=self.start_time,
            end_time=_now(),
            sheets=tuple(self.sheets),
            validate_only=self.validate_only,
        )
