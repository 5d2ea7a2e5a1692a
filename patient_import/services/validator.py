from __future__ import annotations

from dataclasses import dataclass

from patient_import.models.clinical_record import ClinicalCategory
from patient_import.models.intermediate_record import IntermediateRecord

from .cleaning import MAX_AGE, MIN_AGE, MRN_MAX_LEN, parse_age, parse_gender, parse_year

"""Record validator.

Checks one IntermediateRecord without touching the store, so the same check
runs in validate-only mode. Blank optional fields are accepted here (the
mapper defaults them with a warning); present-but-malformed values are
rejected. All reasons for a row are folded into one error message.
"""

__all__ = [
    "ValidationRules",
    "Validation",
    "validate_record",
]


@dataclass(frozen=True)
class ValidationRules:
    require_mrn: bool = True


@dataclass(frozen=True)
class Validation:
    reasons: tuple[str, ...] = ()

    @property
    def accepted(self) -> bool:
        return not self.reasons

    @property
    def message(self) -> str:
        return "; ".join(self.reasons)


def validate_record(
    record: IntermediateRecord,
    category: ClinicalCategory,
    rules: ValidationRules | None = None,
) -> Validation:
    rules = rules or ValidationRules()
    reasons: list[str] = []

    if not record.name:
        reasons.append("Name is required")

    if rules.require_mrn and not record.mrn:
        reasons.append("MRN is required")

    # original_mrn is stored verbatim, never truncated
    if len(record.mrn) > MRN_MAX_LEN:
        reasons.append(f"MRN longer than {MRN_MAX_LEN} characters")

    if record.age and parse_age(record.age) is None:
        reasons.append(f"Invalid age format: {record.age} (expected {MIN_AGE}-{MAX_AGE})")

    if record.year and parse_year(record.year) is None:
        reasons.append(f"Invalid year format: {record.year}")

    if record.sex and parse_gender(record.sex) is None:
        reasons.append(f"Invalid gender: {record.sex}")

    # Without a site-specific sheet the diagnosis cell is the only clinical signal
    if category is ClinicalCategory.OTHER and not record.diagnosis:
        reasons.append("Diagnosis is required when the sheet has no recognized cancer site")

    return Validation(reasons=tuple(reasons))
