# Shared pytest fixtures
from __future__ import annotations

import tempfile
from pathlib import Path

import pandas as pd
import pytest

from patient_import.db.store import InMemoryPatientStore
from patient_import.logging.init import reset_logging

HEADER = [
    "SNo", "Name", "MRN No.", "Year", "Diagnosis", "Stage", "Age", "Sex",
    "Contact No", "Contact No 2", "Contact No 3", "Address", "Date Logged In",
]


def make_row(
    name: object = "Jane Doe",
    mrn: object = "MRN001",
    year: object = 2023,
    diagnosis: object = "Invasive ductal carcinoma",
    stage: object = "Stage II",
    age: object = 45,
    sex: object = "F",
    contact_1: object = "9876543210",
    address: object = "12 MG Road, Bangalore",
    serial: object = 1,
) -> list[object]:
    return [serial, name, mrn, year, diagnosis, stage, age, sex, contact_1, "", "", address, ""]


def make_workbook(path: Path, sheets: dict[str, list[list[object]]], header: bool = True) -> Path:
    """Write a real .xlsx; each sheet gets HEADER on row 1 unless `header` is False."""
    with pd.ExcelWriter(path, engine="openpyxl") as writer:
        for sheet_name, rows in sheets.items():
            data = ([HEADER] if header and rows else []) + rows
            pd.DataFrame(data).to_excel(writer, sheet_name=sheet_name, header=False, index=False)
    return path


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        (p / "data").mkdir()
        monkeypatch.chdir(p)
        yield p


@pytest.fixture(autouse=True)
def _clean_logging():
    reset_logging()
    yield
    reset_logging()


@pytest.fixture()
def store() -> InMemoryPatientStore:
    return InMemoryPatientStore()


@pytest.fixture()
def two_sheet_workbook(temp_workdir: Path) -> Path:
    """Breast: valid, missing name, duplicate MRN; XYZ-Unknown: one valid row."""
    return make_workbook(
        temp_workdir / "data" / "cohorts.xlsx",
        {
            "Breast": [
                make_row(name="Jane Doe", mrn="MRN001", serial=1),
                make_row(name="", mrn="MRN002", serial=2),
                make_row(name="Janet Doe", mrn="MRN001", serial=3),
            ],
            "XYZ-Unknown": [
                make_row(name="John Roe", mrn="MRN100", diagnosis="Unclassified tumour", sex="M", serial=1),
            ],
        },
    )


@pytest.fixture()
def sample_config_yaml() -> str:
    return """dedup_strategy: mrn_or_name_year
require_mrn: true
header_row: 1
default_country: India
default_calling_code: "+91"
table: patients
error_log_dir: logs
database:
  host: localhost
  port: 5432
  user: appuser
  password: secret
  database: appdb
"""


@pytest.fixture()
def write_config(temp_workdir: Path, sample_config_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "import.yml"
    cfg.write_text(sample_config_yaml, encoding="utf-8")
    return cfg


@pytest.fixture()
def row_factory():
    return make_row


@pytest.fixture()
def workbook_factory():
    return make_workbook
