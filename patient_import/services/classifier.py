from __future__ import annotations

from collections.abc import Mapping
from types import MappingProxyType

from patient_import.models.clinical_record import ClinicalCategory

"""Sheet classifier: cohort sheet name -> primary cancer site.

The lookup is an immutable table keyed by the exact (case-sensitive) sheet
names of the source workbook. Several sheets share a category, and any name
not in the table classifies as ClinicalCategory.OTHER, so new cohort sheets
import without a code change.
"""

__all__ = [
    "SHEET_CATEGORIES",
    "classify_sheet",
    "sheet_prefix",
]

_C = ClinicalCategory

SHEET_CATEGORIES: Mapping[str, ClinicalCategory] = MappingProxyType({
    "Breast": _C.BREAST,
    "Lung": _C.LUNG,
    "Colorectal": _C.COLON,
    "Prostate": _C.PROSTATE,
    "Cervix": _C.CERVICAL,
    "Ovary": _C.OVARIAN,
    "Stomach": _C.STOMACH,
    "Esophagus": _C.OTHER,
    "Head & neck": _C.OTHER,
    "Pancratio billiary": _C.PANCREATIC,  # sheet name as spelled in the workbook
    "HCC": _C.LIVER,
    "Adult Leukemia": _C.BLOOD,
    "Lymphoma": _C.BLOOD,
    "Myeloma": _C.BLOOD,
    "MDS": _C.BLOOD,
    "MPN": _C.BLOOD,
    "Pediatric Leukemia": _C.BLOOD,
    "CNS tumors": _C.BRAIN,
    "Sarcoma": _C.OTHER,
    "THYROID": _C.OTHER,
    "Renal cell carcinoma": _C.KIDNEY,
    "Endometrium": _C.OTHER,
    "Neuroendocrine": _C.OTHER,
    "Unknown Primary": _C.OTHER,
    "Pediatric solid": _C.OTHER,
    "BONE TUMORS": _C.OTHER,
    "SKIN CANCER": _C.OTHER,
    "Geniatourinary Urinary bladar": _C.OTHER,
    "GTN": _C.OTHER,
    "Aplastic Anemia": _C.BLOOD,
    "RARE DISEASE": _C.OTHER,
    "Peutz Jeghers syndrome": _C.OTHER,
    "Waldenstrom Macroglobulinemia": _C.BLOOD,
})

# Patient-id prefixes, matched case-insensitively
_SHEET_PREFIXES: Mapping[str, str] = MappingProxyType({
    "BREAST": "BR",
    "LUNG": "LU",
    "COLORECTAL": "CR",
    "PROSTATE": "PR",
    "CERVIX": "CX",
    "OVARY": "OV",
    "STOMACH": "ST",
    "ADULT LEUKEMIA": "AL",
    "LYMPHOMA": "LY",
    "MYELOMA": "MY",
})
_DEFAULT_PREFIX = "OT"


def classify_sheet(sheet_name: str) -> ClinicalCategory:
    """Return the category for a sheet name; unknown names give OTHER."""
    return SHEET_CATEGORIES.get(sheet_name, ClinicalCategory.OTHER)


def sheet_prefix(sheet_name: str) -> str:
    """Two-letter patient-id prefix for a sheet."""
    return _SHEET_PREFIXES.get(sheet_name.strip().upper(), _DEFAULT_PREFIX)
