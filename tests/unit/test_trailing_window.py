"""Start of the twelve-month dashboard window."""

from datetime import datetime, timezone

from donatehub.dashboard.service import trailing_window_start


class TestTrailingWindow:
    def test_mid_year(self):
        now = datetime(2026, 10, 19, 15, 30, tzinfo=timezone.utc)
        assert trailing_window_start(now) == datetime(2025, 11, 1, tzinfo=timezone.utc)

    def test_december(self):
        now = datetime(2026, 12, 31, 23, 59, tzinfo=timezone.utc)
        assert trailing_window_start(now) == datetime(2026, 1, 1, tzinfo=timezone.utc)

    def test_january(self):
        now = datetime(2026, 1, 1, tzinfo=timezone.utc)
        assert trailing_window_start(now) == datetime(2025, 2, 1, tzinfo=timezone.utc)

    def test_single_month_window(self):
        now = datetime(2026, 3, 15, tzinfo=timezone.utc)
        assert trailing_window_start(now, months=1) == datetime(2026, 3, 1, tzinfo=timezone.utc)
