from __future__ import annotations

import logging
from typing import Any

import psycopg2
import psycopg2.extras
from psycopg2 import errors as pg_errors
from psycopg2 import sql

from patient_import.models.clinical_record import ClinicalCategory, ClinicalRecord, Gender

from .store import DuplicateKeyError, StoreError, StoreUnavailableError

"""PostgreSQL patient store (psycopg2).

Every public operation runs in its own transaction (`with conn:` commits on
success, rolls back on error), so a crash mid-import leaves the rows written
so far committed. The unique index on import_natural_key backs the
duplicate check; a unique violation is reported as DuplicateKeyError only
after a lookup confirms the key now exists.
"""

__all__ = [
    "INSERT_COLUMNS",
    "PostgresPatientStore",
]

logger = logging.getLogger(__name__)

INSERT_COLUMNS: tuple[str, ...] = (
    "patient_id",
    "first_name",
    "last_name",
    "age",
    "gender",
    "mobile_number",
    "secondary_contact_phone",
    "tertiary_contact_phone",
    "address",
    "city",
    "state",
    "country",
    "primary_cancer_site",
    "cancer_stage",
    "site_specific_diagnosis",
    "registration_year",
    "registration_date",
    "diagnosis_date",
    "date_logged_in",
    "original_mrn",
    "excel_sheet_source",
    "excel_row_number",
    "imported_from_excel",
    "created_by",
    "import_natural_key",
)

_CREATE_TABLE = """
CREATE TABLE IF NOT EXISTS {table} (
    id SERIAL PRIMARY KEY,
    patient_id VARCHAR(20) NOT NULL UNIQUE,
    first_name VARCHAR(100) NOT NULL,
    last_name VARCHAR(100) NOT NULL,
    age INTEGER NOT NULL,
    gender CHAR(1) NOT NULL,
    mobile_number VARCHAR(20) NOT NULL,
    secondary_contact_phone VARCHAR(20),
    tertiary_contact_phone VARCHAR(20),
    address TEXT,
    city VARCHAR(100),
    state VARCHAR(100),
    country VARCHAR(100) NOT NULL DEFAULT 'India',
    primary_cancer_site VARCHAR(20) NOT NULL,
    cancer_stage VARCHAR(10),
    site_specific_diagnosis VARCHAR(500),
    registration_year INTEGER,
    registration_date DATE NOT NULL,
    diagnosis_date DATE,
    date_logged_in TIMESTAMPTZ,
    original_mrn VARCHAR(50),
    excel_sheet_source VARCHAR(100),
    excel_row_number INTEGER,
    imported_from_excel BOOLEAN NOT NULL DEFAULT FALSE,
    created_by TEXT,
    created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
    updated_at TIMESTAMPTZ NOT NULL DEFAULT now(),
    import_natural_key TEXT
)
"""


class PostgresPatientStore:
    """PatientStore over one psycopg2 connection."""

    def __init__(self, conn: Any, table: str = "patients") -> None:
        self._conn = conn
        self.table = table
        self._table_sql = sql.Identifier(table)

    def ensure_schema(self) -> None:
        """Create the table when absent and the natural-key unique index.

        Existing host tables only gain the import_natural_key column.
        """
        index = sql.Identifier(f"ux_{self.table}_import_natural_key")
        statements = (
            sql.SQL(_CREATE_TABLE).format(table=self._table_sql),
            sql.SQL("ALTER TABLE {} ADD COLUMN IF NOT EXISTS import_natural_key TEXT").format(self._table_sql),
            sql.SQL("CREATE UNIQUE INDEX IF NOT EXISTS {} ON {} (import_natural_key)").format(
                index, self._table_sql
            ),
        )
        try:
            with self._conn:
                with self._conn.cursor() as cur:
                    for stmt in statements:
                        cur.execute(stmt)
        except psycopg2.OperationalError as e:
            raise StoreUnavailableError(str(e)) from e
        except psycopg2.Error as e:
            raise StoreError(f"schema setup failed: {e}") from e

    def find_by_natural_key(self, natural_key: str) -> int | None:
        # MRN keys also match host rows that predate the natural-key column
        if natural_key.startswith("mrn:") and natural_key != "mrn:":
            query = sql.SQL(
                "SELECT id FROM {} WHERE import_natural_key = %s OR original_mrn = %s ORDER BY id LIMIT 1"
            ).format(self._table_sql)
            params: tuple[Any, ...] = (natural_key, natural_key[len("mrn:"):])
        else:
            query = sql.SQL("SELECT id FROM {} WHERE import_natural_key = %s ORDER BY id LIMIT 1").format(
                self._table_sql
            )
            params = (natural_key,)
        row = self._fetchone(query, params)
        return row[0] if row else None

    def insert(self, record: ClinicalRecord) -> int:
        values = record.to_row()
        query = sql.SQL("INSERT INTO {} ({}) VALUES ({}) RETURNING id").format(
            self._table_sql,
            sql.SQL(", ").join(sql.Identifier(c) for c in INSERT_COLUMNS),
            sql.SQL(", ").join(sql.Placeholder() for _ in INSERT_COLUMNS),
        )
        try:
            row = self._fetchone(query, tuple(values[c] for c in INSERT_COLUMNS))
        except pg_errors.UniqueViolation as e:
            if self.find_by_natural_key(record.natural_key) is not None:
                logger.debug("unique violation confirmed as duplicate key=%s", record.natural_key)
                raise DuplicateKeyError(record.natural_key) from e
            raise StoreError(f"unique constraint violated: {e}") from e
        except psycopg2.IntegrityError as e:
            raise StoreError(f"constraint violated: {e}") from e
        if row is None:
            raise StoreError("insert returned no id")
        return row[0]

    def count(self) -> int:
        row = self._fetchone(sql.SQL("SELECT COUNT(*) FROM {}").format(self._table_sql), ())
        return int(row[0]) if row else 0

    def imported_records(self, sheet_name: str | None = None) -> list[ClinicalRecord]:
        columns = sql.SQL(", ").join(sql.Identifier(c) for c in INSERT_COLUMNS)
        if sheet_name is None:
            query = sql.SQL(
                "SELECT {} FROM {} WHERE imported_from_excel ORDER BY excel_sheet_source, excel_row_number"
            ).format(columns, self._table_sql)
            params: tuple[Any, ...] = ()
        else:
            query = sql.SQL(
                "SELECT {} FROM {} WHERE imported_from_excel AND excel_sheet_source = %s "
                "ORDER BY excel_row_number"
            ).format(columns, self._table_sql)
            params = (sheet_name,)
        try:
            with self._conn:
                with self._conn.cursor(cursor_factory=psycopg2.extras.RealDictCursor) as cur:
                    cur.execute(query, params)
                    rows = cur.fetchall()
        except psycopg2.OperationalError as e:
            raise StoreUnavailableError(str(e)) from e
        except psycopg2.Error as e:
            raise StoreError(str(e)) from e
        return [_record_from_row(r) for r in rows]

    def _fetchone(self, query: Any, params: tuple[Any, ...]) -> Any:
        try:
            with self._conn:
                with self._conn.cursor() as cur:
                    cur.execute(query, params)
                    return cur.fetchone()
        except psycopg2.OperationalError as e:
            raise StoreUnavailableError(str(e)) from e
        except psycopg2.IntegrityError:
            # insert() decides between duplicate and constraint failure
            raise
        except psycopg2.Error as e:
            raise StoreError(str(e)) from e


def _record_from_row(row: dict[str, Any]) -> ClinicalRecord:
    data = dict(row)
    data["gender"] = Gender(data["gender"].strip())
    data["primary_cancer_site"] = ClinicalCategory(data["primary_cancer_site"])
    data["natural_key"] = data.pop("import_natural_key") or ""
    return ClinicalRecord(**data)
