from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from types import MappingProxyType

from patient_import.models.intermediate_record import IntermediateRecord

"""Row extractor: header + cells -> IntermediateRecord.

Columns are matched by header text first (aliases below, compared trimmed and
case-folded). A field whose header is absent falls back to its position in
the workbook's fixed column order, but only when the header cell at that
position is blank or unrecognized, so a recognized column is never read twice.
Extraction never fails: a missing cell is an empty string.
"""

__all__ = [
    "FIELD_ORDER",
    "HEADER_ALIASES",
    "ColumnLayout",
    "resolve_columns",
    "extract_record",
]

# Fixed column order of the source workbook
FIELD_ORDER: tuple[str, ...] = (
    "serial",
    "name",
    "mrn",
    "year",
    "diagnosis",
    "stage",
    "age",
    "sex",
    "contact_1",
    "contact_2",
    "contact_3",
    "address",
    "date_logged_in",
)

HEADER_ALIASES: Mapping[str, str] = MappingProxyType({
    "sno": "serial",
    "s no": "serial",
    "sl no": "serial",
    "serial no": "serial",
    "name": "name",
    "mrn no.": "mrn",
    "mrn no": "mrn",
    "mrn": "mrn",
    "mh no": "mrn",
    "year": "year",
    "diagnosis": "diagnosis",
    "stage": "stage",
    "age": "age",
    "sex": "sex",
    "gender": "sex",
    "contact no": "contact_1",
    "contact no 1": "contact_1",
    "contact no1": "contact_1",
    "contact no 2": "contact_2",
    "contact no2": "contact_2",
    "contact no 3": "contact_3",
    "contact no3": "contact_3",
    "address": "address",
    "date logged in": "date_logged_in",
    "date of logging in": "date_logged_in",
})


def _normalize_header(text: str) -> str:
    return " ".join(text.strip().casefold().split())


@dataclass(frozen=True)
class ColumnLayout:
    """Field name -> 0-based column index for one sheet."""
    positions: Mapping[str, int]
    unmatched_headers: tuple[str, ...] = ()

    def index_of(self, field_name: str) -> int | None:
        return self.positions.get(field_name)


def resolve_columns(header: Sequence[str]) -> ColumnLayout:
    """Build the column layout for a sheet header."""
    positions: dict[str, int] = {}
    recognized: set[int] = set()
    unmatched: list[str] = []
    for idx, text in enumerate(header):
        field_name = HEADER_ALIASES.get(_normalize_header(text))
        if field_name is None:
            if text.strip():
                unmatched.append(text.strip())
            continue
        recognized.add(idx)
        # first matching column wins
        positions.setdefault(field_name, idx)

    for idx, field_name in enumerate(FIELD_ORDER):
        if field_name in positions or idx in recognized:
            continue
        positions[field_name] = idx
    return ColumnLayout(positions=MappingProxyType(positions), unmatched_headers=tuple(unmatched))


def extract_record(
    layout: ColumnLayout,
    cells: Sequence[str],
    sheet_name: str,
    row_number: int,
) -> IntermediateRecord:
    """Turn one row of cell text into an IntermediateRecord."""
    values: dict[str, str] = {}
    for field_name in FIELD_ORDER:
        idx = layout.index_of(field_name)
        if idx is None or idx >= len(cells):
            values[field_name] = ""
        else:
            values[field_name] = (cells[idx] or "").strip()
    return IntermediateRecord(sheet_name=sheet_name, row_number=row_number, **values)
