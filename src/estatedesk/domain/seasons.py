"""Recurring season matching and season-length arithmetic.

Seasons are month-day ranges without a year. A range whose start is after
its end wraps across the year boundary (e.g. 11-01 -> 02-28).

Season lengths are computed on a fixed non-leap calendar (365 days).
A 02-29 endpoint counts as 02-28 for length purposes only; matching
still compares month*100+day, so Feb 29 falls inside 02-01..03-31.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from datetime import date
from decimal import Decimal

from .periods import InvalidRateError
from .rates import PricingType, SeasonalRate

# Cumulative day counts before each month in a non-leap year.
_DAYS_BEFORE_MONTH = (0, 31, 59, 90, 120, 151, 181, 212, 243, 273, 304, 334)
_DAYS_IN_MONTH = (31, 28, 31, 30, 31, 30, 31, 31, 30, 31, 30, 31)
YEAR_DAYS = 365


def parse_mmdd(value: str) -> tuple[int, int]:
    """Parse "MM-DD" into (month, day).

    Raises:
        InvalidRateError: malformed or impossible month-day.
    """
    try:
        month_s, day_s = value.strip().split("-")
        month, day = int(month_s), int(day_s)
    except (AttributeError, ValueError):
        raise InvalidRateError("invalid_mmdd", {"value": value}) from None
    if not 1 <= month <= 12:
        raise InvalidRateError("invalid_mmdd", {"value": value})
    max_day = 29 if month == 2 else _DAYS_IN_MONTH[month - 1]
    if not 1 <= day <= max_day:
        raise InvalidRateError("invalid_mmdd", {"value": value})
    return month, day


def is_valid_season(season: SeasonalRate) -> bool:
    """True if both endpoints of a season parse as MM-DD."""
    try:
        parse_mmdd(season.start_mmdd)
        parse_mmdd(season.end_mmdd)
    except InvalidRateError:
        return False
    return True


def to_mmdd(d: date) -> str:
    return f"{d.month:02d}-{d.day:02d}"


def _mmdd_value(value: str) -> int:
    month, day = parse_mmdd(value)
    return month * 100 + day


def _day_of_year(value: str) -> int:
    month, day = parse_mmdd(value)
    day = min(day, _DAYS_IN_MONTH[month - 1])
    return _DAYS_BEFORE_MONTH[month - 1] + day


def is_date_in_season(date_mmdd: str, start_mmdd: str, end_mmdd: str) -> bool:
    """Return True if a month-day falls inside a (possibly wrapping) season."""
    value = _mmdd_value(date_mmdd)
    start = _mmdd_value(start_mmdd)
    end = _mmdd_value(end_mmdd)
    if start <= end:
        return start <= value <= end
    return value >= start or value <= end


def find_season_for_date(
    date_mmdd: str, seasons: Sequence[SeasonalRate]
) -> SeasonalRate | None:
    """Return the first season in load order that covers date_mmdd."""
    for season in seasons:
        if is_date_in_season(date_mmdd, season.start_mmdd, season.end_mmdd):
            return season
    return None


def get_days_in_season(start_mmdd: str, end_mmdd: str) -> int:
    """Length of a recurring season in days, both endpoints inclusive."""
    start = _day_of_year(start_mmdd)
    end = _day_of_year(end_mmdd)
    if _mmdd_value(start_mmdd) <= _mmdd_value(end_mmdd):
        return max(end - start, 0) + 1
    return (YEAR_DAYS - start + 1) + end


def season_daily_rate(season: SeasonalRate) -> Decimal:
    """Daily-equivalent rate of a season.

    per_period prices cover the whole season and are spread over its length.
    """
    if season.pricing_type == PricingType.PER_PERIOD:
        return season.price_per_night / get_days_in_season(
            season.start_mmdd, season.end_mmdd
        )
    return season.price_per_night


def yearly_average_from_seasonal(seasons: Sequence[SeasonalRate]) -> Decimal:
    """Season-length weighted mean daily rate over all seasons."""
    total_days = 0
    total_price = Decimal(0)
    for season in seasons:
        days = get_days_in_season(season.start_mmdd, season.end_mmdd)
        total_days += days
        total_price += season_daily_rate(season) * days
    if total_days == 0:
        return Decimal(0)
    return total_price / total_days


# ── Gap filling ───────────────────────────────────────────

GapFiller = Callable[[Sequence[SeasonalRate], date, list[str]], Decimal | None]


def first_rate_gap_filler(
    seasons: Sequence[SeasonalRate], first_uncovered: date, trace: list[str]
) -> Decimal | None:
    """Daily rate borrowed for days no season covers.

    Takes the first season in load order, not the nearest one in time.
    Returns None when there is nothing to borrow from.
    """
    if not seasons:
        return None
    trace.append(f"  -> borrowing a rate for {to_mmdd(first_uncovered)}")
    season = seasons[0]
    daily = season_daily_rate(season)
    if season.pricing_type == PricingType.PER_PERIOD:
        days = get_days_in_season(season.start_mmdd, season.end_mmdd)
        trace.append(
            f"  -> borrowed season {season.season_type}: per_period "
            f"({season.price_per_night} / {days} = {daily:.2f}/day)"
        )
    else:
        trace.append(
            f"  -> borrowed season {season.season_type}: per_night ({daily}/day)"
        )
    return daily
