from __future__ import annotations

from datetime import date
from typing import Any

import psycopg2
import pytest
from psycopg2 import errors as pg_errors

from patient_import.db.postgres_store import _CREATE_TABLE, INSERT_COLUMNS, PostgresPatientStore
from patient_import.db.store import DuplicateKeyError, StoreError, StoreUnavailableError
from patient_import.models.clinical_record import ClinicalCategory, ClinicalRecord, Gender
from patient_import.models.intermediate_record import IntermediateRecord
from patient_import.models.outcome import Failed
from patient_import.services.dedup import PersistenceGate
from patient_import.services.mapper import MapperOptions, map_record


class FakeCursor:
    def __init__(self, conn: FakeConnection) -> None:
        self.conn = conn

    def __enter__(self) -> FakeCursor:
        return self

    def __exit__(self, *exc: Any) -> None:
        return None

    def execute(self, query: Any, params: Any = None) -> None:
        self.conn.executed.append(params)
        response = self.conn.responses.pop(0) if self.conn.responses else None
        if isinstance(response, Exception):
            raise response
        self.conn.current = response

    def fetchone(self) -> Any:
        return self.conn.current

    def fetchall(self) -> Any:
        return self.conn.current or []


class FakeConnection:
    """Mimics `with conn:` (commit/rollback) and cursor() of psycopg2."""

    def __init__(self, responses: list[Any] | None = None) -> None:
        self.responses = list(responses or [])
        self.executed: list[Any] = []
        self.current: Any = None
        self.commits = 0
        self.rollbacks = 0
        self.cursor_factories: list[Any] = []

    def __enter__(self) -> FakeConnection:
        return self

    def __exit__(self, exc_type: Any, exc: Any, tb: Any) -> None:
        if exc_type is None:
            self.commits += 1
        else:
            self.rollbacks += 1

    def cursor(self, cursor_factory: Any = None) -> FakeCursor:
        self.cursor_factories.append(cursor_factory)
        return FakeCursor(self)


def _record(natural_key: str = "mrn:MRN001") -> ClinicalRecord:
    return ClinicalRecord(
        patient_id="BR001",
        first_name="Jane",
        last_name="Doe",
        age=45,
        gender=Gender.FEMALE,
        mobile_number="+919876543210",
        primary_cancer_site=ClinicalCategory.BREAST,
        original_mrn="MRN001",
        excel_sheet_source="Breast",
        excel_row_number=2,
        natural_key=natural_key,
        registration_date=date(2023, 1, 1),
        registration_year=2023,
        created_by="tester",
    )


def test_insert_returns_new_id_in_own_transaction():
    conn = FakeConnection([(42,)])
    store = PostgresPatientStore(conn)
    assert store.insert(_record()) == 42
    params = conn.executed[0]
    assert len(params) == len(INSERT_COLUMNS)
    values = dict(zip(INSERT_COLUMNS, params))
    assert values["gender"] == "F"
    assert values["primary_cancer_site"] == "Breast"
    assert values["import_natural_key"] == "mrn:MRN001"
    assert values["imported_from_excel"] is True
    assert conn.commits == 1


def test_unique_violation_confirmed_is_duplicate():
    conn = FakeConnection([pg_errors.UniqueViolation("dup"), (7,)])
    with pytest.raises(DuplicateKeyError) as exc_info:
        PostgresPatientStore(conn).insert(_record())
    assert exc_info.value.natural_key == "mrn:MRN001"
    assert conn.rollbacks == 1


def test_unique_violation_on_other_constraint_is_store_error():
    conn = FakeConnection([pg_errors.UniqueViolation("patient_id taken"), None])
    with pytest.raises(StoreError) as exc_info:
        PostgresPatientStore(conn).insert(_record())
    assert not isinstance(exc_info.value, DuplicateKeyError)


def test_other_integrity_error_is_store_error():
    conn = FakeConnection([psycopg2.IntegrityError("not null")])
    with pytest.raises(StoreError, match="constraint violated"):
        PostgresPatientStore(conn).insert(_record())


def test_operational_error_is_unavailable():
    conn = FakeConnection([psycopg2.OperationalError("server closed the connection")])
    with pytest.raises(StoreUnavailableError):
        PostgresPatientStore(conn).count()


def test_find_by_mrn_key_also_matches_original_mrn():
    conn = FakeConnection([(3,)])
    assert PostgresPatientStore(conn).find_by_natural_key("mrn:MRN001") == 3
    assert conn.executed[0] == ("mrn:MRN001", "MRN001")


def test_find_by_name_year_key():
    conn = FakeConnection([None])
    assert PostgresPatientStore(conn).find_by_natural_key("name_year:jane doe|2023") is None
    assert conn.executed[0] == ("name_year:jane doe|2023",)


def test_count():
    assert PostgresPatientStore(FakeConnection([(5,)])).count() == 5


def test_ensure_schema_runs_three_statements():
    conn = FakeConnection()
    PostgresPatientStore(conn, table="patients").ensure_schema()
    assert len(conn.executed) == 3
    assert conn.commits == 1


def test_ensure_schema_failure():
    conn = FakeConnection([psycopg2.ProgrammingError("permission denied")])
    with pytest.raises(StoreError, match="schema setup failed"):
        PostgresPatientStore(conn).ensure_schema()


def test_imported_records_rebuilds_records():
    row = _record().to_row()
    row["gender"] = "F"
    conn = FakeConnection([[row]])
    records = PostgresPatientStore(conn).imported_records("Breast")
    assert records == [_record()]
    assert conn.executed[0] == ("Breast",)
    assert conn.cursor_factories[0] is psycopg2.extras.RealDictCursor


def test_patient_id_unique_violation_is_row_failure_not_skip():
    # lookup (no match), insert hits unique patient_id, confirming lookup (still no match)
    conn = FakeConnection(
        [None, pg_errors.UniqueViolation("duplicate key value violates patients_patient_id_key"), None]
    )
    src = IntermediateRecord(sheet_name="Breast", row_number=3, name="Jane Roe", mrn="MRN001", year="2023")
    mapped = map_record(src, ClinicalCategory.BREAST, MapperOptions(today=date(2025, 6, 1)))
    outcome = PersistenceGate(PostgresPatientStore(conn)).admit(mapped)
    assert isinstance(outcome, Failed)
    assert outcome.reason.startswith("Save failed - unique constraint violated")
    assert outcome.error_type == "PERSISTENCE_ERROR"


def test_patient_id_declared_unique_in_table_ddl():
    assert "patient_id VARCHAR(20) NOT NULL UNIQUE" in _CREATE_TABLE
