from __future__ import annotations

import argparse
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from dotenv import load_dotenv

from patient_import.config.loader import DEFAULT_CONFIG_PATH, ConfigError, load_config
from patient_import.db.connection import open_connection
from patient_import.db.postgres_store import PostgresPatientStore
from patient_import.db.store import PatientStore, StoreError, StoreUnavailableError
from patient_import.excel.reader import WorkbookReadError, read_workbook
from patient_import.logging.init import log_summary, setup_logging
from patient_import.models.config_models import ImportConfig
from patient_import.services.classifier import classify_sheet
from patient_import.services.orchestrator import ImportFatalError, ImportOptions, run_import
from patient_import.services.summary import render_summary_block, render_summary_line

"""CLI entrypoint.

    patient-import --file cohorts.xlsx [--validate-only] [--created-by NAME]
                   [--config PATH] [--debug] [--inspect]

Flow:
- load .env (overrides existing environment, so it wins for DB settings)
- load config (built-in defaults when the default config file is absent)
- open the PostgreSQL store (skipped in validate-only / inspect mode)
- run the import and print the results block plus the SUMMARY line

Exit codes: 0 when the run completed (row errors included), 1 on fatal
conditions (config, missing or unreadable workbook, store unreachable).
"""

EXIT_SUCCESS = 0
EXIT_FATAL = 1

INSPECT_SAMPLE_ROWS = 3


@contextmanager
def _open_store(cfg: ImportConfig) -> Iterator[PatientStore]:  # pragma: no cover (tests patch this)
    """Yield a PostgresPatientStore with its schema ensured.

    Raises StoreUnavailableError when the database cannot be reached.
    """
    with open_connection(cfg.database) as conn:
        store = PostgresPatientStore(conn, table=cfg.table)
        store.ensure_schema()
        store.count()
        yield store


def _load_env_file(path: Path, override: bool = True) -> None:
    """Load .env with python-dotenv; values override the current environment."""
    if path.exists():
        load_dotenv(dotenv_path=path, override=override)


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        prog="patient-import",
        description="Import clinical cohort workbooks (.xlsx) into the patient store",
    )
    p.add_argument("--file", required=True, type=Path, help="Workbook to import (.xlsx)")
    p.add_argument("--validate-only", action="store_true", help="Validate every row without writing")
    p.add_argument("--created-by", default="DataMigrationTool", help="Value recorded as created_by")
    p.add_argument("--config", type=Path, default=None, help=f"Config file (default {DEFAULT_CONFIG_PATH})")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    p.add_argument("--inspect", action="store_true", help="Print sheet headers & first rows then exit")
    return p.parse_args(argv)


def _inspect(path: Path, cfg: ImportConfig) -> int:
    try:
        sheets = read_workbook(path, header_row=cfg.header_row)
    except WorkbookReadError as e:
        print(f"inspect: {e}")
        return EXIT_FATAL
    print(f"FILE: {path.name}")
    for name, sheet in sheets.items():
        print(f"  SHEET: {name} category={classify_sheet(name).value} rows={len(sheet.rows)}")
        print(f"    header={sheet.header}")
        for row_number, cells in sheet.rows[:INSPECT_SAMPLE_ROWS]:
            print(f"    row {row_number}: {cells}")
    return EXIT_SUCCESS


def main(argv: list[str] | None = None) -> int:
    logger = setup_logging()

    # None only: an explicit [] must not fall back to sys.argv (pytest flags)
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)

    if args.debug:
        setup_logging(debug=True)
        logger.debug("debug mode enabled")

    _load_env_file(Path(".env"), override=True)

    config_path = args.config if args.config is not None else DEFAULT_CONFIG_PATH
    try:
        cfg = load_config(config_path, required=args.config is not None)
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL

    path: Path = args.file
    if not path.is_file():
        logger.error(f"File not found: {path}")
        return EXIT_FATAL

    if args.inspect:
        return _inspect(path, cfg)

    options = ImportOptions(created_by=args.created_by, validate_only=args.validate_only, config=cfg)
    try:
        if args.validate_only:
            # no store, no connection
            report = run_import(path, None, options)
        else:
            with _open_store(cfg) as store:
                logger.info(f"store ready table={cfg.table}")
                report = run_import(path, store, options)
    except ImportFatalError as e:
        logger.error(f"import: {e}")
        return EXIT_FATAL
    except StoreUnavailableError as e:
        logger.error(f"database unavailable: {e}")
        return EXIT_FATAL
    except StoreError as e:
        logger.error(f"database: {e}")
        return EXIT_FATAL

    print()
    for line in render_summary_block(report):
        print(line)
    print()
    # log_summary adds the "SUMMARY " label itself
    log_summary(render_summary_line(report)[len("SUMMARY "):])
    return EXIT_SUCCESS


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
