from __future__ import annotations

import pytest

from patient_import.models.clinical_record import ClinicalCategory
from patient_import.services.classifier import SHEET_CATEGORIES, classify_sheet, sheet_prefix


@pytest.mark.parametrize(
    "name,expected",
    [
        ("Breast", ClinicalCategory.BREAST),
        ("Lung", ClinicalCategory.LUNG),
        ("Colorectal", ClinicalCategory.COLON),
        ("Cervix", ClinicalCategory.CERVICAL),
        ("Ovary", ClinicalCategory.OVARIAN),
        ("HCC", ClinicalCategory.LIVER),
        ("Pancratio billiary", ClinicalCategory.PANCREATIC),
        ("CNS tumors", ClinicalCategory.BRAIN),
        ("Renal cell carcinoma", ClinicalCategory.KIDNEY),
        ("Lymphoma", ClinicalCategory.BLOOD),
        ("Waldenstrom Macroglobulinemia", ClinicalCategory.BLOOD),
        ("Sarcoma", ClinicalCategory.OTHER),
    ],
)
def test_known_sheets(name, expected):
    assert classify_sheet(name) is expected


def test_unknown_and_empty_names_are_other():
    assert classify_sheet("XYZ-Unknown") is ClinicalCategory.OTHER
    assert classify_sheet("") is ClinicalCategory.OTHER


def test_lookup_is_case_sensitive():
    assert classify_sheet("breast") is ClinicalCategory.OTHER


def test_classify_is_deterministic():
    assert {classify_sheet("Myeloma") for _ in range(5)} == {ClinicalCategory.BLOOD}


def test_table_is_immutable():
    with pytest.raises(TypeError):
        SHEET_CATEGORIES["New"] = ClinicalCategory.LUNG  # type: ignore[index]
    assert len(SHEET_CATEGORIES) == 33


def test_sheet_prefix():
    assert sheet_prefix("Breast") == "BR"
    assert sheet_prefix("adult leukemia") == "AL"
    assert sheet_prefix("HCC") == "OT"
