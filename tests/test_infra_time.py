"""Tests for time utilities."""

from datetime import datetime, timezone


class TestUtcNow:
    def test_returns_utc_datetime(self):
        from estatedesk.infra.time import utc_now

        assert utc_now().tzinfo == timezone.utc

    def test_today_matches_utc_date(self):
        from estatedesk.infra.time import utc_today

        before = datetime.now(timezone.utc).date()
        today = utc_today()
        after = datetime.now(timezone.utc).date()
        assert before <= today <= after
