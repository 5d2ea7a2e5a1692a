from __future__ import annotations

from datetime import UTC, datetime, timedelta

from patient_import.models.report import ImportReport
from patient_import.services.summary import format_elapsed, render_summary_block, render_summary_line

START = datetime(2025, 1, 1, 10, 0, 0, tzinfo=UTC)


def _report(errors=(), warnings=(), validate_only=False, seconds=1.5) -> ImportReport:
    return ImportReport(
        file_name="cohorts.xlsx",
        total=4,
        succeeded=2,
        skipped=1,
        errored=1,
        errors=tuple(errors),
        warnings=tuple(warnings),
        start_time=START,
        end_time=START + timedelta(seconds=seconds),
        validate_only=validate_only,
    )


def test_format_elapsed():
    assert format_elapsed(0) == "0"
    assert format_elapsed(2.0) == "2"
    assert format_elapsed(0.0012) == "0.0012"
    assert format_elapsed(1.23456) == "1.235"


def test_block_counters():
    lines = render_summary_block(_report())
    assert lines[0] == "=== Import Results ==="
    assert "Total Records: 4" in lines
    assert "Successful: 2" in lines
    assert "Skipped: 1" in lines
    assert "Errors: 1" in lines
    assert "Duration: 1.50 seconds" in lines
    assert "=== Errors ===" not in lines


def test_validation_title():
    assert render_summary_block(_report(validate_only=True))[0] == "=== Validation Results ==="


def test_warnings_truncated_to_ten():
    lines = render_summary_block(_report(warnings=[f"w{i}" for i in range(12)]))
    idx = lines.index("=== Warnings ===")
    assert lines[idx + 1:] == [f"w{i}" for i in range(10)] + ["... and 2 more warnings"]


def test_summary_line():
    assert render_summary_line(_report(warnings=["a", "b"])) == (
        "SUMMARY total=4 succeeded=2 skipped=1 errors=1 warnings=2 sheets=0 elapsed_sec=1.5 mode=import"
    )
    assert render_summary_line(_report(validate_only=True)).endswith("mode=validate")
