"""Tests for the availability scanner."""

import threading
from datetime import date, timedelta
from decimal import Decimal
from unittest.mock import patch

import pytest

from estatedesk.config import PricingSettings
from estatedesk.services.availability import (
    ScanStatus,
    ScanValidationError,
    find_available_periods,
    is_span_free,
    iter_candidates,
    scan_available_periods,
    search_window,
)

from helpers import FakePricingReader, season

SPLIT_JUNE = [
    season("06-01", "06-15", 1000, season_type="early"),
    season("06-16", "06-30", 2000, season_type="late"),
]


class TestSearchWindow:
    def test_month_and_year(self):
        assert search_window(date(2026, 1, 1), 2, 2028) == (
            date(2028, 2, 1),
            date(2028, 2, 29),
        )

    def test_default_three_months(self):
        assert search_window(date(2026, 11, 30)) == (date(2026, 11, 30), date(2027, 2, 28))

    def test_month_without_year_uses_default(self):
        assert search_window(date(2026, 1, 10), 6, None) == (
            date(2026, 1, 10),
            date(2026, 4, 10),
        )

    def test_invalid_month(self):
        with pytest.raises(ScanValidationError):
            search_window(date(2026, 1, 1), 13, 2026)


class TestCandidates:
    def test_capped(self):
        candidates = list(iter_candidates(date(2026, 1, 1), date(2026, 12, 31), 100))
        assert len(candidates) == 100
        assert candidates[0] == date(2026, 1, 1)
        assert candidates[-1] == date(2026, 1, 1) + timedelta(days=99)

    def test_window_inclusive(self):
        candidates = list(iter_candidates(date(2026, 6, 1), date(2026, 6, 3), 100))
        assert candidates == [date(2026, 6, 1), date(2026, 6, 2), date(2026, 6, 3)]

    def test_span_free(self):
        blocked = {date(2026, 6, 10)}
        assert is_span_free(date(2026, 6, 5), 5, blocked)
        assert not is_span_free(date(2026, 6, 6), 5, blocked)
        assert not is_span_free(date(2026, 6, 10), 1, blocked)
        # check-out day itself may be blocked
        assert is_span_free(date(2026, 6, 9), 1, blocked)


class TestScanAvailablePeriods:
    def test_cheapest_first_and_blocked_skipped(self):
        reader = FakePricingReader(seasonal=SPLIT_JUNE, blocked=[date(2026, 6, 10)])
        outcome = scan_available_periods(reader, 1, 5, 6, 2026)

        assert outcome.status == ScanStatus.OK
        assert outcome.candidates_checked == 30
        check_ins = [p.check_in.day for p in outcome.periods]
        assert check_ins[:6] == [1, 2, 3, 4, 5, 11]
        assert all(p.total_price == 5000 for p in outcome.periods[:6])
        assert not set(check_ins) & {6, 7, 8, 9, 10}
        prices = [p.total_price for p in outcome.periods]
        assert prices == sorted(prices)

    def test_stays_inside_window(self):
        reader = FakePricingReader(seasonal=SPLIT_JUNE)
        outcome = scan_available_periods(reader, 1, 5, 6, 2026)
        assert all(p.check_out <= date(2026, 6, 30) for p in outcome.periods)
        assert all(p.nights == 5 for p in outcome.periods)
        assert len(outcome.periods) == 20

    def test_result_and_candidate_caps(self):
        reader = FakePricingReader(seasonal=[season("01-01", "12-31", 1000)])
        outcome = scan_available_periods(
            reader,
            1,
            1,
            today=date(2026, 1, 1),
            settings=PricingSettings(scan_window_months=6),
        )
        assert outcome.candidates_checked == 100
        assert len(outcome.periods) == 20
        assert outcome.periods[0].check_in == date(2026, 1, 1)

    def test_settings_limits(self):
        reader = FakePricingReader(seasonal=[season("01-01", "12-31", 1000)])
        outcome = scan_available_periods(
            reader,
            1,
            2,
            today=date(2026, 1, 1),
            settings=PricingSettings(scan_max_candidates=10, scan_max_results=3),
        )
        assert outcome.candidates_checked == 10
        assert len(outcome.periods) == 3

    def test_env_cannot_exceed_caps(self, monkeypatch):
        monkeypatch.setenv("ESTATEDESK_SCAN_MAX_CANDIDATES", "500")
        monkeypatch.setenv("ESTATEDESK_SCAN_MAX_RESULTS", "500")
        monkeypatch.setenv("ESTATEDESK_SCAN_WINDOW_MONTHS", "12")
        reader = FakePricingReader(seasonal=[season("01-01", "12-31", 1000)])
        outcome = scan_available_periods(reader, 1, 1, today=date(2026, 1, 1))
        assert outcome.candidates_checked == 100
        assert len(outcome.periods) == 20

    def test_oversized_settings_object_is_capped(self):
        reader = FakePricingReader(seasonal=[season("01-01", "12-31", 1000)])
        outcome = scan_available_periods(
            reader,
            1,
            1,
            today=date(2026, 1, 1),
            settings=PricingSettings(
                scan_max_candidates=500, scan_max_results=500, scan_window_months=12
            ),
        )
        assert outcome.candidates_checked == 100
        assert len(outcome.periods) == 20

    def test_price_on_request_excluded(self):
        reader = FakePricingReader(seasonal=[season("01-01", "12-31", 0)])
        outcome = scan_available_periods(reader, 1, 3, 6, 2026)
        assert outcome.status == ScanStatus.EMPTY
        assert outcome.periods == []

    def test_parallel_matches_sequential(self):
        reader = FakePricingReader(seasonal=SPLIT_JUNE, blocked=[date(2026, 6, 20)])
        sequential = scan_available_periods(reader, 1, 4, 6, 2026)
        parallel = scan_available_periods(
            reader, 1, 4, 6, 2026, settings=PricingSettings(scan_workers=4)
        )
        assert parallel.periods == sequential.periods

    def test_cancelled_before_start(self):
        reader = FakePricingReader(seasonal=SPLIT_JUNE)
        cancel = threading.Event()
        cancel.set()
        outcome = scan_available_periods(reader, 1, 3, 6, 2026, cancel_event=cancel)
        assert outcome.candidates_checked == 0
        assert outcome.periods == []

    def test_unknown_property_is_empty(self):
        reader = FakePricingReader(prop=None, seasonal=SPLIT_JUNE)
        assert scan_available_periods(reader, 1, 3, 6, 2026).status == ScanStatus.EMPTY

    def test_malformed_season_row_does_not_fail_scan(self):
        reader = FakePricingReader(
            seasonal=[season("06/01", "06/30", 2000), season("01-01", "12-31", 1000)],
        )
        outcome = scan_available_periods(reader, 1, 3, 3, 2026)
        assert outcome.status == ScanStatus.OK
        assert outcome.periods[0].total_price == 3000

    def test_no_rates_is_empty(self, reader):
        assert scan_available_periods(reader, 1, 3, 6, 2026).status == ScanStatus.EMPTY

    def test_invalid_nights_is_error(self):
        reader = FakePricingReader(seasonal=SPLIT_JUNE)
        outcome = scan_available_periods(reader, 1, 0, 6, 2026)
        assert outcome.status == ScanStatus.ERROR
        assert "nights" in outcome.error

    def test_reader_failure_is_error(self):
        reader = FakePricingReader(yearly_rate=Decimal(1000))
        with patch.object(
            reader, "get_blocked_dates", side_effect=RuntimeError("db down")
        ), patch("estatedesk.services.availability.logger") as mock_logger:
            outcome = scan_available_periods(reader, 1, 3, 6, 2026)

        assert outcome.status == ScanStatus.ERROR
        assert outcome.error == "db down"
        mock_logger.exception.assert_called_once()


class TestFindAvailablePeriods:
    def test_returns_list(self):
        reader = FakePricingReader(seasonal=SPLIT_JUNE)
        periods = find_available_periods(reader, 1, 5, 6, 2026)
        assert len(periods) == 20
        assert periods[0].total_price == 5000

    def test_errors_collapse_to_empty_list(self):
        reader = FakePricingReader(yearly_rate=Decimal(1000))
        with patch.object(reader, "get_property", side_effect=RuntimeError("boom")):
            assert find_available_periods(reader, 1, 3, 6, 2026) == []
