from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from .clinical_record import ClinicalRecord

"""Row outcome variants.

Every row that enters the pipeline ends in exactly one of these terminal
states. Expected conditions (validation failure, duplicate) travel as values;
only run-level failures are raised.

    Extracted -> Rejected                      (error)
    Extracted -> Accepted -> Mapped -> Skipped    (skip)
                                    -> Persisted  (success)
                                    -> Failed     (error)
"""

__all__ = [
    "Rejected",
    "Skipped",
    "Persisted",
    "Failed",
    "RowOutcome",
]


@dataclass(frozen=True)
class Rejected:
    """Validation rejected the row; nothing was mapped or written."""
    sheet_name: str
    row_number: int
    reason: str


@dataclass(frozen=True)
class Skipped:
    """A record with the same natural key already exists; nothing was written."""
    sheet_name: str
    row_number: int
    reason: str


@dataclass(frozen=True)
class Persisted:
    """The record was written (or would have been, when `dry_run`)."""
    sheet_name: str
    row_number: int
    record: ClinicalRecord
    record_id: int | None = None
    dry_run: bool = False


@dataclass(frozen=True)
class Failed:
    """The store (or an unexpected bug) failed for this row only."""
    sheet_name: str
    row_number: int
    reason: str
    error_type: str = "PERSISTENCE_ERROR"


RowOutcome = Union[Rejected, Skipped, Persisted, Failed]
