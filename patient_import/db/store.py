from __future__ import annotations

import threading
from collections.abc import Sequence
from typing import Protocol

from patient_import.models.clinical_record import ClinicalRecord

"""Patient store interface and an in-memory implementation.

The pipeline needs three operations, each its own transaction:
find_by_natural_key, insert and count. imported_records lists what earlier
imports wrote, in sheet/row order.
"""

__all__ = [
    "StoreError",
    "StoreUnavailableError",
    "DuplicateKeyError",
    "PatientStore",
    "InMemoryPatientStore",
]


class StoreError(Exception):
    """A store operation failed for one record."""


class StoreUnavailableError(StoreError):
    """The store cannot be reached at all (fatal for the run)."""


class DuplicateKeyError(StoreError):
    """Insert hit the natural-key unique constraint."""

    def __init__(self, natural_key: str) -> None:
        super().__init__(f"duplicate natural key: {natural_key}")
        self.natural_key = natural_key


class PatientStore(Protocol):
    def find_by_natural_key(self, natural_key: str) -> int | None:
        """Return the id of the record holding `natural_key`, or None."""
        ...

    def insert(self, record: ClinicalRecord) -> int:
        """Persist `record` and return its new id."""
        ...

    def count(self) -> int:
        ...

    def imported_records(self, sheet_name: str | None = None) -> Sequence[ClinicalRecord]:
        ...


class InMemoryPatientStore:
    """Dict-backed store with the same natural-key uniqueness as the database."""

    def __init__(self) -> None:
        self._records: dict[int, ClinicalRecord] = {}
        self._keys: dict[str, int] = {}
        self._next_id = 1
        self._lock = threading.Lock()

    def find_by_natural_key(self, natural_key: str) -> int | None:
        with self._lock:
            return self._keys.get(natural_key)

    def insert(self, record: ClinicalRecord) -> int:
        with self._lock:
            if record.natural_key in self._keys:
                raise DuplicateKeyError(record.natural_key)
            record_id = self._next_id
            self._next_id += 1
            self._records[record_id] = record
            self._keys[record.natural_key] = record_id
            return record_id

    def count(self) -> int:
        with self._lock:
            return len(self._records)

    def get(self, record_id: int) -> ClinicalRecord | None:
        with self._lock:
            return self._records.get(record_id)

    def imported_records(self, sheet_name: str | None = None) -> list[ClinicalRecord]:
        with self._lock:
            selected = [
                r for r in self._records.values()
                if r.imported_from_excel and (sheet_name is None or r.excel_sheet_source == sheet_name)
            ]
        return sorted(selected, key=lambda r: (r.excel_sheet_source, r.excel_row_number))

