from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, date, datetime

from patient_import.models.clinical_record import ClinicalCategory, ClinicalRecord, Gender
from patient_import.models.config_models import DedupStrategy
from patient_import.models.intermediate_record import IntermediateRecord

from .cleaning import (
    clean_phone,
    clean_stage,
    extract_city_state,
    generate_patient_id,
    parse_age,
    parse_date_logged_in,
    parse_gender,
    parse_year,
    split_name,
)
from .dedup import natural_key

"""Record mapper: accepted IntermediateRecord -> ClinicalRecord.

Input has already passed validation, so the mapper never rejects. Anything it
cannot interpret falls back to a safe default and produces a warning
instead. Column limits follow the host patient schema.
"""

__all__ = [
    "FIELD_LIMITS",
    "MapperOptions",
    "MappedRecord",
    "map_record",
]

FIELD_LIMITS = {
    "first_name": 100,
    "last_name": 100,
    "mobile_number": 20,
    "secondary_contact_phone": 20,
    "tertiary_contact_phone": 20,
    "cancer_stage": 10,
    "site_specific_diagnosis": 500,
}


@dataclass(frozen=True)
class MapperOptions:
    created_by: str = "DataMigrationTool"
    default_country: str = "India"
    calling_code: str = "+91"
    dedup_strategy: DedupStrategy = DedupStrategy.MRN_OR_NAME_YEAR
    today: date | None = None  # fixed "import date" for tests


@dataclass(frozen=True)
class MappedRecord:
    record: ClinicalRecord
    warnings: tuple[str, ...] = ()


def map_record(
    source: IntermediateRecord,
    category: ClinicalCategory,
    options: MapperOptions | None = None,
) -> MappedRecord:
    options = options or MapperOptions()
    warnings: list[str] = []

    def warn(message: str) -> None:
        warnings.append(f"{source.location}: {message}")

    def limit(field_name: str, value: str | None) -> str | None:
        max_len = FIELD_LIMITS[field_name]
        if value is not None and len(value) > max_len:
            warn(f"{field_name} longer than {max_len} characters; truncated")
            return value[:max_len]
        return value

    first_name, last_name = split_name(source.name)

    age = parse_age(source.age)
    if age is None:
        warn("Age missing; defaulted to 0" if not source.age else f"Age '{source.age}' unreadable; defaulted to 0")
        age = 0

    gender = parse_gender(source.sex)
    if gender is None:
        warn("Sex missing; recorded as Other")
        gender = Gender.OTHER

    today = options.today or datetime.now(UTC).date()
    year = parse_year(source.year)
    if year is None:
        warn("Year missing; registration date set to import date")
        registration_date = today
        diagnosis_date = None
    else:
        registration_date = date(year, 1, 1)
        diagnosis_date = date(year, 1, 1)

    phones: list[str | None] = []
    for label, raw in (("Contact no 1", source.contact_1), ("Contact no 2", source.contact_2),
                       ("Contact no 3", source.contact_3)):
        value, cleaned = clean_phone(raw, options.calling_code)
        if not cleaned:
            warn(f"{label} '{raw}' is not a valid phone number; kept as entered")
        phones.append(value or None)

    date_logged_in = parse_date_logged_in(source.date_logged_in)
    if date_logged_in is None and source.date_logged_in:
        warn(f"Date logged in '{source.date_logged_in}' unreadable; left empty")

    city, state = extract_city_state(source.address)

    record = ClinicalRecord(
        patient_id=generate_patient_id(source.mrn, source.sheet_name),
        first_name=limit("first_name", first_name) or "",
        last_name=limit("last_name", last_name) or "",
        age=age,
        gender=gender,
        mobile_number=limit("mobile_number", phones[0]) or "",
        secondary_contact_phone=limit("secondary_contact_phone", phones[1]),
        tertiary_contact_phone=limit("tertiary_contact_phone", phones[2]),
        address=source.address or None,
        city=city,
        state=state,
        country=options.default_country,
        primary_cancer_site=category,
        cancer_stage=limit("cancer_stage", clean_stage(source.stage) or None),
        site_specific_diagnosis=limit("site_specific_diagnosis", source.diagnosis or None),
        registration_year=year,
        registration_date=registration_date,
        diagnosis_date=diagnosis_date,
        date_logged_in=date_logged_in,
        original_mrn=source.mrn,
        excel_sheet_source=source.sheet_name,
        excel_row_number=source.row_number,
        created_by=options.created_by,
        natural_key=natural_key(options.dedup_strategy, source.mrn, source.name, year),
    )
    return MappedRecord(record=record, warnings=tuple(warnings))
