from __future__ import annotations

from dataclasses import dataclass

"""IntermediateRecord model for the clinical workbook importer.

IntermediateRecord represents one worksheet row exactly as read: every field is
the trimmed cell text (empty string when the cell is blank or missing). No
field is judged here; that is the validator's job.
"""

__all__ = [
    "IntermediateRecord",
]


@dataclass(frozen=True)
class IntermediateRecord:
    """Raw, untyped form of one data row of a cohort sheet.

    `sheet_name` and `row_number` are always populated, even when every other
    field is empty, because error and warning messages are keyed on them.
    `row_number` is the 1-based worksheet row (header row = 1 by default).
    """
    sheet_name: str
    row_number: int
    serial: str = ""
    name: str = ""
    mrn: str = ""
    year: str = ""
    diagnosis: str = ""
    stage: str = ""
    age: str = ""
    sex: str = ""
    contact_1: str = ""
    contact_2: str = ""
    contact_3: str = ""
    address: str = ""
    date_logged_in: str = ""

    @property
    def location(self) -> str:
        """Human-readable provenance prefix used by report messages."""
        return f"{self.sheet_name} Row {self.row_number}"

