from __future__ import annotations

import re
from pathlib import Path

from patient_import.cli.__main__ import main
from patient_import.services.orchestrator import run_import
from patient_import.services.summary import render_summary_block

"""Summary output contract: truncation of the errors section and the SUMMARY line."""

SUMMARY_RE = re.compile(
    r"^SUMMARY total=\d+ succeeded=\d+ skipped=\d+ errors=\d+ warnings=\d+ sheets=\d+ "
    r"elapsed_sec=[0-9.]+ mode=(import|validate)$"
)


def _bad_rows_workbook(temp_workdir: Path, workbook_factory, row_factory, n: int) -> Path:
    rows = [row_factory(name="", mrn=f"M{i}", serial=i) for i in range(n)]
    return workbook_factory(temp_workdir / "bad.xlsx", {"Breast": rows})


def test_twenty_five_errors_show_twenty(temp_workdir: Path, workbook_factory, row_factory, store):
    report = run_import(_bad_rows_workbook(temp_workdir, workbook_factory, row_factory, 25), store)
    assert report.errored == 25
    lines = render_summary_block(report)
    start = lines.index("=== Errors ===") + 1
    shown = [line for line in lines[start:] if line.startswith("Breast Row")]
    assert len(shown) == 20
    assert shown[0] == "Breast Row 2: Name is required"
    assert "... and 5 more errors" in lines


def test_twenty_errors_have_no_overflow_line(temp_workdir: Path, workbook_factory, row_factory, store):
    report = run_import(_bad_rows_workbook(temp_workdir, workbook_factory, row_factory, 20), store)
    assert not any(line.startswith("... and") for line in render_summary_block(report))


def test_cli_summary_line_format(two_sheet_workbook: Path, capsys):
    main(["--file", str(two_sheet_workbook), "--validate-only"])
    summary = [line for line in capsys.readouterr().out.splitlines() if line.startswith("SUMMARY ")]
    assert len(summary) == 1
    assert SUMMARY_RE.match(summary[0])
    assert "sheets=2" in summary[0]
