from __future__ import annotations

import re
import uuid
import warnings
from collections.abc import Mapping
from datetime import UTC, datetime
from types import MappingProxyType

import pandas as pd

from patient_import.models.clinical_record import Gender

from .classifier import sheet_prefix

"""Cell-level parsing and normalization helpers.

Pure functions over raw cell text. Parsers return None when the text cannot
be interpreted; they never raise. The validator decides whether a None is an
error, the mapper decides which default replaces it.
"""

MIN_AGE = 0
MAX_AGE = 150
MIN_YEAR = 1900
PATIENT_ID_MAX_LEN = 20
MRN_MAX_LEN = 50  # host original_mrn column

_AGE_RE = re.compile(r"^\s*(\d+)(?:\.\d+)?\s*(?:yrs?|years?)?\s*$", re.IGNORECASE)
_PHONE_STRIP_RE = re.compile(r"[^\d+]")
_YEAR_RE = re.compile(r"(\d{4})")
_ORDINAL_RE = re.compile(r"(\d+)(?:st|nd|rd|th)\b", re.IGNORECASE)
_STAGE_PREFIX_RE = re.compile(r"^stage\s*", re.IGNORECASE)
_NON_DIGIT_RE = re.compile(r"\D")

_GENDERS: Mapping[str, Gender] = MappingProxyType({
    "m": Gender.MALE,
    "male": Gender.MALE,
    "f": Gender.FEMALE,
    "female": Gender.FEMALE,
    "o": Gender.OTHER,
    "other": Gender.OTHER,
})

_DATE_FORMATS = (
    "%m/%d/%Y %I:%M:%S %p",
    "%d/%m/%Y %I:%M:%S %p",
    "%m/%d/%Y %H:%M:%S",
    "%Y-%m-%d %H:%M:%S",
    "%m/%d/%Y",
    "%d/%m/%Y",
    "%Y-%m-%d",
    "%d-%m-%Y",
)
# Month + day written without a year ("March 5th") -> current year
_MONTH_DAY_FORMATS = ("%B %d %Y", "%b %d %Y")

_CITIES: Mapping[str, tuple[str, str]] = MappingProxyType({
    "BANGALORE": ("Bangalore", "Karnataka"),
    "BENGALURU": ("Bangalore", "Karnataka"),
    "MUMBAI": ("Mumbai", "Maharashtra"),
    "DELHI": ("Delhi", "Delhi"),
    "CHENNAI": ("Chennai", "Tamil Nadu"),
    "KOLKATA": ("Kolkata", "West Bengal"),
    "HYDERABAD": ("Hyderabad", "Telangana"),
    "PUNE": ("Pune", "Maharashtra"),
})
_STATES = (
    "KARNATAKA", "MAHARASHTRA", "TAMIL NADU", "WEST BENGAL",
    "DELHI", "TELANGANA", "ANDHRA PRADESH", "KERALA", "GUJARAT",
)


def title_case(text: str) -> str:
    return " ".join(part.capitalize() for part in text.split())


def split_name(full_name: str) -> tuple[str, str]:
    """Split into (first, last), title-cased; blank input gives ("Unknown", "Unknown")."""
    parts = full_name.split()
    if not parts:
        return ("Unknown", "Unknown")
    if len(parts) == 1:
        return (title_case(parts[0]), "")
    return (title_case(parts[0]), title_case(" ".join(parts[1:])))


def parse_age(text: str) -> int | None:
    """Whole-cell age such as "45", "45 yrs", "45.0"; None for other text or outside 0..150."""
    if not text or not text.strip():
        return None
    match = _AGE_RE.match(text)
    if match is None:
        return None
    age = int(match.group(1))
    if MIN_AGE <= age <= MAX_AGE:
        return age
    return None


def parse_gender(text: str) -> Gender | None:
    """Gender code for m/male/f/female/o/other (any case); None otherwise."""
    if not text:
        return None
    return _GENDERS.get(text.strip().casefold())


def parse_year(text: str, now: datetime | None = None) -> int | None:
    """Four-digit year in 1900..current+1, read directly or out of a date string."""
    if not text or not text.strip():
        return None
    max_year = (now or datetime.now(UTC)).year + 1
    stripped = text.strip()
    if stripped.isdigit():
        year = int(stripped)
        if MIN_YEAR <= year <= max_year:
            return year
    match = _YEAR_RE.search(stripped)
    if match is not None:
        year = int(match.group(1))
        if MIN_YEAR <= year <= max_year:
            return year
    return None


def clean_phone(text: str, calling_code: str = "+91") -> tuple[str, bool]:
    """Normalize a phone number.

    Returns (value, cleaned). Bare 10-digit numbers get `calling_code`.
    When the result is not 10-15 characters the trimmed original is returned
    with cleaned=False.
    """
    if not text or not text.strip():
        return ("", True)
    original = text.strip()
    digits = _PHONE_STRIP_RE.sub("", original)
    if len(digits) == 10 and not digits.startswith("+"):
        digits = calling_code + digits
    if 10 <= len(digits) <= 15:
        return (digits, True)
    return (original, False)


def clean_stage(text: str) -> str:
    """Drop a leading "stage" word and upper-case: "Stage iiB" -> "IIB"."""
    if not text or not text.strip():
        return ""
    return _STAGE_PREFIX_RE.sub("", text.strip()).upper()


def parse_date_logged_in(text: str, now: datetime | None = None) -> datetime | None:
    """Parse the free-text "date logged in" cell to a UTC datetime."""
    if not text or not text.strip():
        return None
    cleaned = _ORDINAL_RE.sub(r"\1", text.strip())
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(cleaned, fmt).replace(tzinfo=UTC)
        except ValueError:
            continue
    year = (now or datetime.now(UTC)).year
    for fmt in _MONTH_DAY_FORMATS:
        try:
            return datetime.strptime(f"{cleaned} {year}", fmt).replace(tzinfo=UTC)
        except ValueError:
            continue

    with warnings.catch_warnings():
        # format inference chatter for free text
        warnings.simplefilter("ignore", UserWarning)
        ts = pd.to_datetime(cleaned, errors="coerce")
    if ts is None or pd.isna(ts):
        return None
    result = ts.to_pydatetime()
    if result.tzinfo is None:
        return result.replace(tzinfo=UTC)
    return result.astimezone(UTC)


def extract_city_state(address: str) -> tuple[str | None, str | None]:
    """Best-effort (city, state) from an address for the known cities/states."""
    if not address or not address.strip():
        return (None, None)
    upper = address.upper()
    for token, (city, state) in _CITIES.items():
        if re.search(rf"\b{token}\b", upper):
            return (city, state)
    for state in _STATES:
        if state in upper:
            return (None, title_case(state.lower()))
    return (None, None)


def generate_patient_id(mrn: str, sheet_name: str) -> str:
    """Sheet prefix + MRN digits; a random suffix when the MRN has no digits."""
    prefix = sheet_prefix(sheet_name)
    digits = _NON_DIGIT_RE.sub("", mrn or "")
    if not digits:
        digits = uuid.uuid4().hex[:6].upper()
    return f"{prefix}{digits}"[:PATIENT_ID_MAX_LEN]


def normalize_name_key(name: str) -> str:
    """Case- and whitespace-insensitive form of a name for natural keys."""
    return " ".join(name.casefold().split())
