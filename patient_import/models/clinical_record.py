from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import date, datetime
from enum import Enum
from typing import Any

"""Clinical domain models: categories, gender codes and the persisted record.

ClinicalRecord is the subset of the host patient schema written by the
importer. It is created once per successfully imported row and never mutated
afterwards (updates belong to the API layer).
"""

__all__ = [
    "ClinicalCategory",
    "Gender",
    "ClinicalRecord",
]


class ClinicalCategory(Enum):
    """Primary cancer site of a cohort sheet.

    `OTHER` is the catch-all for sheets without a dedicated site.
    """
    LUNG = "Lung"
    BREAST = "Breast"
    KIDNEY = "Kidney"
    COLON = "Colon"
    PROSTATE = "Prostate"
    CERVICAL = "Cervical"
    OVARIAN = "Ovarian"
    LIVER = "Liver"
    STOMACH = "Stomach"
    PANCREATIC = "Pancreatic"
    BRAIN = "Brain"
    BLOOD = "Blood"
    OTHER = "Other"


class Gender(Enum):
    MALE = "M"
    FEMALE = "F"
    OTHER = "O"


@dataclass(frozen=True)
class ClinicalRecord:
    """Persistable patient entity produced by the mapper."""
    patient_id: str
    first_name: str
    last_name: str
    age: int
    gender: Gender
    mobile_number: str
    primary_cancer_site: ClinicalCategory
    original_mrn: str  # verbatim source MRN, not guaranteed unique
    excel_sheet_source: str
    excel_row_number: int
    natural_key: str  # dedup key chosen by the configured strategy
    registration_date: date
    secondary_contact_phone: str | None = None
    tertiary_contact_phone: str | None = None
    address: str | None = None
    city: str | None = None
    state: str | None = None
    country: str = "India"
    cancer_stage: str | None = None
    site_specific_diagnosis: str | None = None
    registration_year: int | None = None
    diagnosis_date: date | None = None
    date_logged_in: datetime | None = None
    created_by: str | None = None
    imported_from_excel: bool = True

    def to_row(self) -> dict[str, Any]:
        """Flatten to column -> value with enums replaced by their values."""
        row = asdict(self)
        row["gender"] = self.gender.value
        row["primary_cancer_site"] = self.primary_cancer_site.value
        row["import_natural_key"] = row.pop("natural_key")
        return row
