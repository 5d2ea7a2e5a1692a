from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, time
from pathlib import Path
from typing import Any

import pandas as pd

"""Workbook reader.

Reads every worksheet of an .xlsx workbook with pandas (openpyxl engine) and
exposes each one as a header row plus data rows of plain cell text. Nothing
here interprets the cells beyond turning them into strings.

- header on worksheet row `header_row` (1-based, default 1)
- data rows follow; each keeps its worksheet row number
- entirely blank rows are dropped (they are not counted as records)
"""

__all__ = [
    "WorkbookReadError",
    "SheetData",
    "cell_text",
    "read_workbook",
]


class WorkbookReadError(Exception):
    """Raised when the workbook is missing, unreadable or corrupt."""


@dataclass
class SheetData:
    sheet_name: str
    header: list[str]
    rows: list[tuple[int, list[str]]] = field(default_factory=list)  # (worksheet row, cells)

    @property
    def is_empty(self) -> bool:
        return not self.rows


def cell_text(value: Any) -> str:
    """Render one raw cell value as trimmed text.

    Integral floats lose their ".0" (Excel stores every number as a float, so
    an MRN or phone number typed as digits would otherwise gain a suffix).
    """
    if value is None:
        return ""
    if isinstance(value, float):
        if pd.isna(value):
            return ""
        if value.is_integer():
            return str(int(value))
        return str(value)
    if isinstance(value, (pd.Timestamp, datetime)):
        if pd.isna(value):
            return ""
        if value.hour == 0 and value.minute == 0 and value.second == 0:
            return value.strftime("%Y-%m-%d")
        return value.strftime("%Y-%m-%d %H:%M:%S")
    if isinstance(value, (date, time)):
        return value.isoformat()
    if value is pd.NaT:
        return ""
    return str(value).strip()


def read_workbook(path: Path, header_row: int = 1) -> dict[str, SheetData]:
    """Read all sheets in document order.

    Parameters
    ----------
    path: workbook path (.xlsx)
    header_row: 1-based worksheet row holding the column headers

    Raises
    ------
    WorkbookReadError: file missing or not a readable workbook
    """
    if not path.exists():
        raise WorkbookReadError(f"File not found: {path}")
    if not path.is_file():
        raise WorkbookReadError(f"Not a file: {path}")

    try:
        xls = pd.ExcelFile(path, engine="openpyxl")
    except Exception as e:
        raise WorkbookReadError(f"cannot open workbook {path.name}: {e}") from e

    sheets: dict[str, SheetData] = {}
    with xls:
        for name in xls.sheet_names:
            try:
                # Raw read: no header inference, no NA conversion ("NA" is a valid cell)
                df = xls.parse(name, header=None, dtype=object, keep_default_na=False, na_values=[])
            except Exception as e:
                raise WorkbookReadError(f"cannot read sheet '{name}': {e}") from e
            sheets[str(name)] = _to_sheet_data(str(name), df, header_row)
    return sheets


def _to_sheet_data(sheet_name: str, df: pd.DataFrame, header_row: int) -> SheetData:
    header_index = header_row - 1
    if df.shape[0] <= header_index:
        return SheetData(sheet_name=sheet_name, header=[])

    header = [cell_text(v) for v in df.iloc[header_index].tolist()]
    rows: list[tuple[int, list[str]]] = []
    for offset, raw in enumerate(df.iloc[header_index + 1:].itertuples(index=False, name=None)):
        cells = [cell_text(v) for v in raw]
        if not any(cells):
            continue
        # DataFrame index 0 is worksheet row 1
        rows.append((header_index + 2 + offset, cells))
    return SheetData(sheet_name=sheet_name, header=header, rows=rows)
