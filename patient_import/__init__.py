"""Bulk import of clinical cohort workbooks into the patient store."""

__version__ = "0.1.0"
