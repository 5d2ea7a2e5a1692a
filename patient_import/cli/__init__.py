"""Command-line interface (python -m patient_import.cli)."""
