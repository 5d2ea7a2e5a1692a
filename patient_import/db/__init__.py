"""Patient store: interface, in-memory and PostgreSQL implementations."""

from .store import (
    DuplicateKeyError,
    InMemoryPatientStore,
    PatientStore,
    StoreError,
    StoreUnavailableError,
)

__all__ = [
    "DuplicateKeyError",
    "InMemoryPatientStore",
    "PatientStore",
    "StoreError",
    "StoreUnavailableError",
]
