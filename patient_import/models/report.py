from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from .clinical_record import ClinicalCategory

"""Import report models.

Frozen results produced by the aggregator builders in
`patient_import.services.aggregator`. Two granularities share the same
counters: one SheetReport per worksheet and one ImportReport for the run.
"""

__all__ = [
    "SheetReport",
    "ImportReport",
]


@dataclass(frozen=True)
class SheetReport:
    """Outcome counts and messages for one worksheet."""
    sheet_name: str
    category: ClinicalCategory
    total: int
    succeeded: int
    skipped: int
    errored: int
    errors: tuple[str, ...]
    warnings: tuple[str, ...]
    start_time: datetime
    end_time: datetime

    @property
    def duration_seconds(self) -> float:
        return (self.end_time - self.start_time).total_seconds()

    @property
    def is_balanced(self) -> bool:
        return self.total == self.succeeded + self.skipped + self.errored


@dataclass(frozen=True)
class ImportReport:
    """Overall outcome of one import (or validation) run.

    Counters are sums over `sheets`; messages are the sheet messages in
    sheet-then-row order. Start/end are stamped around the whole run.
    """
    file_name: str
    total: int
    succeeded: int
    skipped: int
    errored: int
    errors: tuple[str, ...]
    warnings: tuple[str, ...]
    start_time: datetime
    end_time: datetime
    sheets: tuple[SheetReport, ...] = ()
    validate_only: bool = False

    @property
    def duration_seconds(self) -> float:
        return (self.end_time - self.start_time).total_seconds()

    @property
    def is_balanced(self) -> bool:
        return self.total == self.succeeded + self.skipped + self.errored

    def sheet(self, name: str) -> SheetReport | None:
        for s in self.sheets:
            if s.sheet_name == name:
                return s
        return None
