from __future__ import annotations

from patient_import.models.report import ImportReport

"""Summary rendering for the CLI.

Two outputs:
- the human-readable results block (counters, first errors and warnings)
- one machine-readable line:

    SUMMARY total={n} succeeded={n} skipped={n} errors={n} warnings={n}
    sheets={n} elapsed_sec={elapsed} mode={import|validate}
"""

__all__ = [
    "MAX_ERRORS_SHOWN",
    "MAX_WARNINGS_SHOWN",
    "format_elapsed",
    "render_summary_block",
    "render_summary_line",
]

MAX_ERRORS_SHOWN = 20
MAX_WARNINGS_SHOWN = 10


def format_elapsed(seconds: float) -> str:
    """Render seconds without a trailing ".0" or scientific notation."""
    if seconds == 0:
        return "0"
    if seconds == int(seconds):
        return str(int(seconds))
    if seconds < 0.01:
        return f"{seconds:.6f}".rstrip("0").rstrip(".")
    return str(round(seconds, 3))


def render_summary_block(report: ImportReport) -> list[str]:
    """Lines of the results block, errors and warnings truncated."""
    title = "Validation Results" if report.validate_only else "Import Results"
    lines = [
        f"=== {title} ===",
        f"File: {report.file_name}",
        f"Total Records: {report.total}",
        f"Successful: {report.succeeded}",
        f"Skipped: {report.skipped}",
        f"Errors: {report.errored}",
        f"Duration: {report.duration_seconds:.2f} seconds",
    ]
    if report.errors:
        lines.append("")
        lines.append("=== Errors ===")
        lines.extend(report.errors[:MAX_ERRORS_SHOWN])
        hidden = len(report.errors) - MAX_ERRORS_SHOWN
        if hidden > 0:
            lines.append(f"... and {hidden} more errors")
    if report.warnings:
        lines.append("")
        lines.append("=== Warnings ===")
        lines.extend(report.warnings[:MAX_WARNINGS_SHOWN])
        hidden = len(report.warnings) - MAX_WARNINGS_SHOWN
        if hidden > 0:
            lines.append(f"... and {hidden} more warnings")
    return lines


def render_summary_line(report: ImportReport) -> str:
    return (
        f"SUMMARY total={report.total} "
        f"succeeded={report.succeeded} "
        f"skipped={report.skipped} "
        f"errors={report.errored} "
        f"warnings={len(report.warnings)} "
        f"sheets={len(report.sheets)} "
        f"elapsed_sec={format_elapsed(report.duration_seconds)} "
        f"mode={'validate' if report.validate_only else 'import'}"
    )
