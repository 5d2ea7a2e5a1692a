from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from patient_import.db.store import DuplicateKeyError, PatientStore, StoreError
from patient_import.models.config_models import DedupStrategy
from patient_import.models.outcome import Failed, Persisted, RowOutcome, Skipped

from .cleaning import normalize_name_key

if TYPE_CHECKING:
    from .mapper import MappedRecord

"""Deduplication & persistence gate.

Natural key policy (DedupStrategy):

- MRN               "mrn:<MRN>"                    verbatim trimmed MRN (name+year when blank)
- NAME_YEAR         "name_year:<name>|<year>"      case-folded name, parsed year
- MRN_OR_NAME_YEAR  MRN key when the MRN is present, otherwise the name+year key

The lookup-then-insert sequence is not atomic. The store's unique index on
the natural key is the tie-breaker: a DuplicateKeyError from insert is a skip,
any other StoreError is a row error. Rows are never retried within a run.
"""

__all__ = [
    "MRN_KEY_PREFIX",
    "NAME_YEAR_KEY_PREFIX",
    "natural_key",
    "PersistenceGate",
]

logger = logging.getLogger(__name__)

MRN_KEY_PREFIX = "mrn:"
NAME_YEAR_KEY_PREFIX = "name_year:"


def natural_key(strategy: DedupStrategy, mrn: str, name: str, year: int | None) -> str:
    """Build the natural key of a record under `strategy`."""
    mrn = (mrn or "").strip()
    name_year = f"{NAME_YEAR_KEY_PREFIX}{normalize_name_key(name or '')}|{year if year is not None else ''}"
    # a blank MRN identifies nobody; name+year is the tie-break under every strategy
    if strategy is DedupStrategy.NAME_YEAR or not mrn:
        return name_year
    return f"{MRN_KEY_PREFIX}{mrn}"


class PersistenceGate:
    """Decides skip/insert for mapped records and performs the write.

    With `validate_only=True` the gate does not touch the store at all and
    every record "would succeed" (Persisted with dry_run=True).
    """

    def __init__(self, store: PatientStore | None, *, validate_only: bool = False) -> None:
        if store is None and not validate_only:
            raise ValueError("a store is required unless validate_only is set")
        self.store = store
        self.validate_only = validate_only

    def admit(self, mapped: MappedRecord) -> RowOutcome:
        """Apply the gate to a MappedRecord."""
        record = mapped.record
        sheet, row = record.excel_sheet_source, record.excel_row_number
        if self.validate_only:
            return Persisted(sheet_name=sheet, row_number=row, record=record, dry_run=True)

        if self.store is None:
            raise RuntimeError("a store is required unless validate_only is set")
        try:
            existing = self.store.find_by_natural_key(record.natural_key)
        except StoreError as e:
            logger.warning("lookup failed sheet=%s row=%d: %s", sheet, row, e)
            return Failed(sheet_name=sheet, row_number=row, reason=f"Lookup failed - {e}")

        if existing is not None:
            return Skipped(
                sheet_name=sheet,
                row_number=row,
                reason=f"Duplicate of existing record {existing} ({_describe_key(record.natural_key)}); skipped",
            )

        try:
            record_id = self.store.insert(record)
        except DuplicateKeyError:
            return Skipped(
                sheet_name=sheet,
                row_number=row,
                reason=f"Duplicate detected on insert ({_describe_key(record.natural_key)}); skipped",
            )
        except StoreError as e:
            logger.warning("save failed sheet=%s row=%d: %s", sheet, row, e)
            return Failed(sheet_name=sheet, row_number=row, reason=f"Save failed - {e}")
        return Persisted(sheet_name=sheet, row_number=row, record=record, record_id=record_id)


def _describe_key(key: str) -> str:
    if key.startswith(MRN_KEY_PREFIX):
        return f"MRN {key[len(MRN_KEY_PREFIX):]}"
    name, _, year = key[len(NAME_YEAR_KEY_PREFIX):].partition("|")
    return f"name '{name}' year {year or 'unknown'}"
