from __future__ import annotations

from unittest.mock import patch

from patient_import.services.progress import ProgressTracker


def test_disabled_without_tty():
    with patch("patient_import.services.progress.is_tty_enabled", return_value=False):
        with ProgressTracker(2) as tracker:
            tracker.start_sheet("Breast")
            tracker.finish_sheet(ok=1)
            assert tracker.pbar is None
            assert tracker.current_sheet == 1


def test_enabled_with_tty():
    with patch("patient_import.services.progress.is_tty_enabled", return_value=True):
        tracker = ProgressTracker(2, description="Importing")
        assert tracker.pbar is not None
        tracker.start_sheet("Breast")
        tracker.finish_sheet(ok=3, skipped=0, errors=1)
        assert tracker.pbar.n == 1
        tracker.close()
        assert tracker.pbar is None
