from __future__ import annotations

from pathlib import Path
from unittest.mock import Mock, patch

import pytest

from tabular_import.models.result import ImportResult
from tabular_import.services.progress import BAR_FORMAT, ProgressTracker, is_tty_enabled


def test_is_tty_enabled_returns_stdout_isatty():
    with patch('sys.stdout.isatty', return_value=True):
        assert is_tty_enabled() is True

    with patch('sys.stdout.isatty', return_value=False):
        assert is_tty_enabled() is False


class TestProgressTracker:
    def test_bar_created_on_tty(self):
        with patch('tabular_import.services.progress.is_tty_enabled', return_value=True), \
             patch('tabular_import.services.progress.tqdm') as mock_tqdm:

            tracker = ProgressTracker(5, description="Test files")

            assert tracker.bar is mock_tqdm.return_value
            mock_tqdm.assert_called_once_with(
                total=5,
                desc="Test files",
                unit="file",
                bar_format=BAR_FORMAT,
                ascii=True,
                leave=True,
            )

    def test_no_bar_without_tty_but_totals_kept(self):
        with patch('tabular_import.services.progress.is_tty_enabled', return_value=False):
            tracker = ProgressTracker(2)

            assert tracker.bar is None
            with tracker.track(Path("a.csv")):
                pass
            tracker.add(ImportResult("a.csv", True, submitted_records=4))
            tracker.add(ImportResult("b.csv", False))
            tracker.close()

            assert (tracker.ok, tracker.failed, tracker.records) == (1, 1, 4)
            assert tracker.done == 2

    def test_track_and_add_update_bar(self):
        mock_bar = Mock()

        with patch('tabular_import.services.progress.is_tty_enabled', return_value=True), \
             patch('tabular_import.services.progress.tqdm', return_value=mock_bar):

            with ProgressTracker(2, description="Importing") as tracker:
                with tracker.track(Path("data/people.csv")):
                    mock_bar.set_description_str.assert_called_with("Importing [people.csv]")
                    mock_bar.update.assert_not_called()
                mock_bar.update.assert_called_once_with(1)
                mock_bar.set_description_str.assert_called_with("Importing")

                tracker.add(ImportResult("people.csv", True, submitted_records=3))
                mock_bar.set_postfix.assert_called_once_with(ok=1, failed=0, records=3)

            mock_bar.close.assert_called_once()
            assert tracker.bar is None

    def test_bar_advances_when_import_raises(self):
        mock_bar = Mock()

        with patch('tabular_import.services.progress.is_tty_enabled', return_value=True), \
             patch('tabular_import.services.progress.tqdm', return_value=mock_bar):

            tracker = ProgressTracker(1)
            with pytest.raises(RuntimeError):
                with tracker.track(Path("a.csv")):
                    raise RuntimeError("boom")
            mock_bar.update.assert_called_once_with(1)
