"""Tests for recurring season matching and season-length arithmetic."""

from datetime import date
from decimal import Decimal

import pytest

from estatedesk.domain.periods import InvalidRateError
from estatedesk.domain.rates import PricingType
from estatedesk.domain.seasons import (
    find_season_for_date,
    first_rate_gap_filler,
    get_days_in_season,
    is_date_in_season,
    is_valid_season,
    parse_mmdd,
    season_daily_rate,
    to_mmdd,
    yearly_average_from_seasonal,
)

from helpers import season


class TestIsDateInSeason:
    @pytest.mark.parametrize("mmdd", ["06-01", "07-15", "08-31"])
    def test_inside_plain_season(self, mmdd):
        assert is_date_in_season(mmdd, "06-01", "08-31")

    @pytest.mark.parametrize("mmdd", ["05-31", "09-01", "01-01", "12-31"])
    def test_outside_plain_season(self, mmdd):
        assert not is_date_in_season(mmdd, "06-01", "08-31")

    @pytest.mark.parametrize("mmdd", ["12-01", "12-15", "12-31", "01-01", "01-15", "02-28"])
    def test_inside_wrapping_season(self, mmdd):
        assert is_date_in_season(mmdd, "12-01", "02-28")

    @pytest.mark.parametrize("mmdd", ["03-01", "11-30", "06-15"])
    def test_outside_wrapping_season(self, mmdd):
        assert not is_date_in_season(mmdd, "12-01", "02-28")

    def test_leap_day_matches_range_containing_it(self):
        assert is_date_in_season("02-29", "02-01", "03-31")
        assert not is_date_in_season("02-29", "12-01", "02-28")

    def test_single_day_season(self):
        assert is_date_in_season("07-04", "07-04", "07-04")
        assert not is_date_in_season("07-05", "07-04", "07-04")


class TestParseMmdd:
    def test_parses(self):
        assert parse_mmdd("06-01") == (6, 1)
        assert parse_mmdd("02-29") == (2, 29)

    @pytest.mark.parametrize("value", ["13-01", "00-10", "04-31", "02-30", "6/1", "", None])
    def test_rejects_malformed(self, value):
        with pytest.raises(InvalidRateError):
            parse_mmdd(value)

    def test_is_valid_season(self):
        assert is_valid_season(season("11-01", "02-29", 1000))
        assert not is_valid_season(season("06/01", "06-30", 1000))
        assert not is_valid_season(season("06-01", "06-31", 1000))

    def test_to_mmdd_pads(self):
        assert to_mmdd(date(2026, 3, 7)) == "03-07"


class TestFindSeasonForDate:
    def test_first_match_wins(self):
        wide = season("01-01", "12-31", 500, season_type="base")
        peak = season("12-20", "01-05", 3000, season_type="peak")
        assert find_season_for_date("12-25", [wide, peak]) is wide
        assert find_season_for_date("12-25", [peak, wide]) is peak

    def test_no_match(self):
        assert find_season_for_date("03-01", [season("06-01", "08-31", 1000)]) is None


class TestGetDaysInSeason:
    def test_plain_season(self):
        assert get_days_in_season("06-01", "08-31") == 92

    def test_wrapping_season(self):
        assert get_days_in_season("12-01", "02-28") == 90

    def test_full_year(self):
        assert get_days_in_season("01-01", "12-31") == 365

    def test_single_day(self):
        assert get_days_in_season("07-04", "07-04") == 1

    def test_february_uses_non_leap_calendar(self):
        # 02-29 counts as 02-28 for length, whatever the year
        assert get_days_in_season("02-01", "02-29") == 28
        assert get_days_in_season("11-01", "02-29") == 120
        assert get_days_in_season("02-01", "03-31") == 59


class TestSeasonDailyRate:
    def test_per_night(self):
        assert season_daily_rate(season("06-01", "08-31", 1500)) == Decimal(1500)

    def test_per_period_divides_by_length(self):
        rate = season("06-01", "08-31", 92000, pricing_type=PricingType.PER_PERIOD)
        assert season_daily_rate(rate) == Decimal(1000)

    def test_per_period_wrapping(self):
        rate = season("12-01", "02-28", 90000, pricing_type=PricingType.PER_PERIOD)
        assert season_daily_rate(rate) == Decimal(1000)


class TestYearlyAverageFromSeasonal:
    def test_weighted_by_length(self):
        seasons = [
            season("01-01", "06-30", 1000, season_type="low"),
            season("07-01", "12-31", 2000, season_type="high"),
        ]
        average = yearly_average_from_seasonal(seasons)
        assert round(average * 365) == 181 * 1000 + 184 * 2000

    def test_empty(self):
        assert yearly_average_from_seasonal([]) == 0


class TestFirstRateGapFiller:
    def test_uses_first_rate_not_nearest(self):
        seasons = [
            season("01-01", "01-31", 500, season_type="january"),
            season("06-01", "06-30", 2000, season_type="june"),
        ]
        trace: list[str] = []
        assert first_rate_gap_filler(seasons, date(2026, 7, 1), trace) == Decimal(500)
        assert any("january" in line for line in trace)

    def test_per_period_first_rate(self):
        seasons = [season("06-01", "08-31", 92000, pricing_type=PricingType.PER_PERIOD)]
        assert first_rate_gap_filler(seasons, date(2026, 9, 1), []) == Decimal(1000)

    def test_no_rates(self):
        assert first_rate_gap_filler([], date(2026, 9, 1), []) is None
