from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from patient_import.db.store import PatientStore
from patient_import.excel.reader import SheetData, WorkbookReadError, read_workbook
from patient_import.logging.error_log import ErrorLogBuffer, ErrorRecord
from patient_import.models.clinical_record import ClinicalCategory
from patient_import.models.config_models import ImportConfig
from patient_import.models.outcome import Failed, Rejected, RowOutcome
from patient_import.models.report import ImportReport, SheetReport

from .aggregator import ImportReportBuilder, SheetReportBuilder
from .classifier import classify_sheet
from .dedup import PersistenceGate
from .extractor import ColumnLayout, extract_record, resolve_columns
from .mapper import MapperOptions, map_record
from .progress import ProgressTracker
from .validator import ValidationRules, validate_record

"""Import orchestration.

Drives one workbook through the pipeline:

    read workbook -> per sheet: classify -> per row: extract -> validate
    -> map -> gate -> aggregate -> fold sheet report into run report

Two error channels:
- fatal (missing / unreadable workbook): ImportFatalError, nothing imported
- row level: recorded on the row's outcome; the run always continues

Row-level errors are also buffered as JSON lines and flushed once at the end.
"""

__all__ = [
    "EMPTY_SHEET_WARNING",
    "ImportFatalError",
    "ImportOptions",
    "run_import",
]

logger = logging.getLogger(__name__)

EMPTY_SHEET_WARNING = "Sheet is empty or has no data rows"


class ImportFatalError(Exception):
    """The run cannot start or continue (no partial report)."""


@dataclass(frozen=True)
class ImportOptions:
    created_by: str = "DataMigrationTool"
    validate_only: bool = False
    config: ImportConfig = field(default_factory=ImportConfig)


def run_import(
    path: Path,
    store: PatientStore | None,
    options: ImportOptions | None = None,
    error_log: ErrorLogBuffer | None = None,
) -> ImportReport:
    """Import every sheet of the workbook at `path`.

    `store` may be None only with `validate_only=True`. Returns the frozen run
    report; raises ImportFatalError when the workbook cannot be read.
    """
    options = options or ImportOptions()
    cfg = options.config
    if error_log is None:
        error_log = ErrorLogBuffer(Path(cfg.error_log_dir))

    try:
        sheets = read_workbook(path, header_row=cfg.header_row)
    except WorkbookReadError as e:
        raise ImportFatalError(str(e)) from e

    gate = PersistenceGate(store, validate_only=options.validate_only)
    mapper_options = MapperOptions(
        created_by=options.created_by,
        default_country=cfg.default_country,
        calling_code=cfg.default_calling_code,
        dedup_strategy=cfg.dedup_strategy,
    )
    rules = ValidationRules(require_mrn=cfg.require_mrn)

    report = ImportReportBuilder(path.name, validate_only=options.validate_only)
    mode = "validate" if options.validate_only else "import"
    logger.info(f"{mode} start file={path.name} sheets={len(sheets)}")

    with ProgressTracker(len(sheets)) as progress:
        for sheet_name, sheet in sheets.items():
            progress.start_sheet(sheet_name)
            sheet_report = _process_sheet(sheet, gate, rules, mapper_options, error_log, path.name)
            report.merge(sheet_report)
            progress.finish_sheet(
                ok=sheet_report.succeeded,
                skipped=sheet_report.skipped,
                errors=sheet_report.errored,
            )

    written = error_log.flush()
    if written is not None:
        logger.info(f"error log written: {written}")
    return report.finalize()


def _process_sheet(
    sheet: SheetData,
    gate: PersistenceGate,
    rules: ValidationRules,
    mapper_options: MapperOptions,
    error_log: ErrorLogBuffer,
    file_name: str,
) -> SheetReport:
    category = classify_sheet(sheet.sheet_name)
    builder = SheetReportBuilder(sheet.sheet_name, category)

    if sheet.is_empty:
        builder.warn(f"{sheet.sheet_name}: {EMPTY_SHEET_WARNING}")
        logger.info(f"sheet={sheet.sheet_name} category={category.value} rows=0 (empty)")
        return builder.finalize()

    layout = resolve_columns(sheet.header)
    if layout.unmatched_headers:
        logger.debug(f"sheet={sheet.sheet_name} unrecognized headers={list(layout.unmatched_headers)}")

    for row_number, cells in sheet.rows:
        outcome = _process_row(
            layout, cells, sheet.sheet_name, row_number, category, gate, rules, mapper_options, builder
        )
        builder.record(outcome)
        if isinstance(outcome, (Rejected, Failed)):
            error_type = "VALIDATION_ERROR" if isinstance(outcome, Rejected) else outcome.error_type
            error_log.append(ErrorRecord.create(
                file=file_name,
                sheet=sheet.sheet_name,
                row=row_number,
                error_type=error_type,
                message=outcome.reason,
            ))

    result = builder.finalize()
    logger.info(
        f"sheet={result.sheet_name} category={category.value} total={result.total} "
        f"succeeded={result.succeeded} skipped={result.skipped} errors={result.errored}"
    )
    return result


def _process_row(
    layout: ColumnLayout,
    cells: list[str],
    sheet_name: str,
    row_number: int,
    category: ClinicalCategory,
    gate: PersistenceGate,
    rules: ValidationRules,
    mapper_options: MapperOptions,
    builder: SheetReportBuilder,
) -> RowOutcome:
    """Run one row through extract -> validate -> map -> gate.

    Any unexpected exception becomes a Failed outcome for this row only.
    """
    try:
        record = extract_record(layout, cells, sheet_name, row_number)
        validation = validate_record(record, category, rules)
        if not validation.accepted:
            return Rejected(sheet_name=sheet_name, row_number=row_number, reason=validation.message)
        mapped = map_record(record, category, mapper_options)
        for message in mapped.warnings:
            builder.warn(message)
        return gate.admit(mapped)
    except Exception as e:
        logger.error(f"unexpected error sheet={sheet_name} row={row_number}: {e}")
        logger.debug("row failure traceback", exc_info=True)
        return Failed(
            sheet_name=sheet_name,
            row_number=row_number,
            reason=f"Unexpected error - {e}",
            error_type="UNEXPECTED_ERROR",
        )
