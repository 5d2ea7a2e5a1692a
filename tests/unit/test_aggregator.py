from __future__ import annotations

from patient_import.models.clinical_record import ClinicalCategory
from patient_import.models.outcome import Failed, Rejected, Skipped
from patient_import.services.aggregator import ImportReportBuilder, SheetReportBuilder


def _sheet(name: str, outcomes) -> SheetReportBuilder:
    builder = SheetReportBuilder(name, ClinicalCategory.OTHER)
    for o in outcomes:
        builder.record(o)
    return builder


def test_each_outcome_counts_once():
    builder = _sheet("Lung", [
        Rejected("Lung", 2, "Name is required"),
        Skipped("Lung", 3, "Duplicate of existing record 1 (MRN A); skipped"),
        Failed("Lung", 4, "Save failed - boom"),
    ])
    report = builder.finalize()
    assert (report.total, report.succeeded, report.skipped, report.errored) == (3, 0, 1, 2)
    assert report.is_balanced
    assert report.errors == ("Lung Row 2: Name is required", "Lung Row 4: Save failed - boom")
    assert report.warnings == ("Lung Row 3: Duplicate of existing record 1 (MRN A); skipped",)
    assert report.end_time >= report.start_time


def test_run_report_sums_sheets_in_order():
    run = ImportReportBuilder("cohorts.xlsx")
    first = _sheet("A", [Rejected("A", 2, "x")])
    first.warn("A Row 2: note")
    run.merge(first.finalize())
    run.merge(_sheet("B", [Rejected("B", 2, "y"), Skipped("B", 3, "dup")]).finalize())
    report = run.finalize()

    assert report.total == 3
    assert report.errored == 2
    assert report.skipped == 1
    assert report.is_balanced
    assert report.errors == ("A Row 2: x", "B Row 2: y")
    assert report.warnings == ("A Row 2: note", "B Row 3: dup")
    assert [s.sheet_name for s in report.sheets] == ["A", "B"]
    assert report.sheet("B").total == 2
    assert report.sheet("missing") is None
    assert report.validate_only is False


def test_empty_run():
    report = ImportReportBuilder("empty.xlsx", validate_only=True).finalize()
    assert report.total == 0
    assert report.sheets == ()
    assert report.validate_only is True
