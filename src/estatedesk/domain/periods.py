"""Stay length classification.

The period class decides which rate source is tried first:
near-month stays prefer a whole-month rate, very long stays amortize
the yearly rate.
"""

from __future__ import annotations

import calendar
from datetime import date
from enum import Enum


class PricingError(Exception):
    """Base class for pricing domain errors."""


class InvalidStayError(PricingError):
    def __init__(self, reason_code: str, meta: dict | None = None):
        self.reason_code = reason_code
        self.meta = meta or {}
        super().__init__(f"Invalid stay: {reason_code}")


class InvalidRateError(PricingError):
    """Stored rate data the engine cannot interpret."""

    def __init__(self, reason_code: str, meta: dict | None = None):
        self.reason_code = reason_code
        self.meta = meta or {}
        super().__init__(f"Invalid rate: {reason_code}")


class PeriodClass(str, Enum):
    SHORT_TERM = "SHORT_TERM"  # 1-26 nights
    MONTHLY_EXACT = "MONTHLY_EXACT"  # 27-31 nights
    LONG_TERM = "LONG_TERM"  # 32-364 nights
    YEARLY = "YEARLY"  # 365+ nights


SHORT_TERM_MAX = 26
MONTHLY_EXACT_MAX = 31
LONG_TERM_MAX = 364


def nights_between(check_in: date, check_out: date) -> int:
    """Return the number of nights of a stay.

    Raises:
        InvalidStayError: check_out is not after check_in.
    """
    nights = (check_out - check_in).days
    if nights <= 0:
        raise InvalidStayError("invalid_dates", {"nights": nights})
    return nights


def classify_period(nights: int) -> PeriodClass:
    if nights <= 0:
        raise InvalidStayError("invalid_nights", {"nights": nights})
    if nights <= SHORT_TERM_MAX:
        return PeriodClass.SHORT_TERM
    if nights <= MONTHLY_EXACT_MAX:
        return PeriodClass.MONTHLY_EXACT
    if nights <= LONG_TERM_MAX:
        return PeriodClass.LONG_TERM
    return PeriodClass.YEARLY


def days_in_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def add_months(d: date, months: int) -> date:
    """Shift a date by whole months, clamping the day to the target month."""
    index = d.month - 1 + months
    year = d.year + index // 12
    month = index % 12 + 1
    return date(year, month, min(d.day, days_in_month(year, month)))
