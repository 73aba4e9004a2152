"""Rate inputs and quote outputs for the price calculation engine.

Rates are read-only inputs loaded fresh for every calculation.
Quotes are plain pydantic models returned to callers (availability
search, booking quote endpoints).
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum

from pydantic import BaseModel, Field


# ── Enums ─────────────────────────────────────────────────


class PricingType(str, Enum):
    PER_NIGHT = "per_night"
    PER_PERIOD = "per_period"


class PricingMethod(str, Enum):
    SEASONAL = "seasonal"
    MONTHLY = "monthly"
    YEARLY = "yearly"
    COMBINED = "combined"


# ── Rate inputs ───────────────────────────────────────────


@dataclass(frozen=True)
class SeasonalRate:
    """Recurring seasonal rate, keyed by month-day without a year.

    price_per_night == 0 means "price on request", which is not the same
    as having no rate at all.
    """

    season_type: str
    start_mmdd: str
    end_mmdd: str
    price_per_night: Decimal
    minimum_nights: int = 0
    pricing_type: PricingType = PricingType.PER_NIGHT


@dataclass(frozen=True)
class MonthlyRate:
    month_number: int
    price_per_month: Decimal
    minimum_days: int = 0


@dataclass(frozen=True)
class PropertySummary:
    id: int
    property_number: str | None = None
    property_type: str | None = None


@dataclass(frozen=True)
class PricingData:
    """All rate sources of one property, as loaded for a single calculation.

    seasonal is kept in load order (by start_mmdd); first match wins.
    yearly_rate is the monthly-equivalent form (annualized as x12).
    """

    seasonal: tuple[SeasonalRate, ...] = ()
    monthly: tuple[MonthlyRate, ...] = ()
    yearly_rate: Decimal | None = None

    def is_empty(self) -> bool:
        return not self.seasonal and not self.monthly and not self.yearly_rate

    def yearly_only(self) -> bool:
        return bool(self.yearly_rate) and not self.seasonal and not self.monthly

    def monthly_rate_for(self, month: int) -> MonthlyRate | None:
        for rate in self.monthly:
            if rate.month_number == month:
                return rate
        return None


# ── Quote outputs ─────────────────────────────────────────


class LineItem(BaseModel):
    period: str
    nights: int
    total: int
    price_per_night: int | None = None
    price_per_month: int | None = None
    season_type: str | None = None
    month_number: int | None = None


class PriceQuote(BaseModel):
    total_price: int
    currency: str = "THB"
    nights: int
    daily_average: int
    monthly_equivalent: int
    breakdown: list[LineItem] = Field(default_factory=list)
    pricing_method: PricingMethod
    yearly_only_warning: bool = False
    trace: list[str] = Field(default_factory=list)


class AvailablePeriod(BaseModel):
    check_in: date
    check_out: date
    nights: int
    total_price: int
    daily_average: int


# ── Helpers ───────────────────────────────────────────────


def to_decimal(value: object) -> Decimal:
    """Coerce a numeric DB/JSON value to Decimal; None and garbage become 0."""
    if value is None:
        return Decimal(0)
    try:
        result = Decimal(str(value))
    except ArithmeticError:
        return Decimal(0)
    return result if result.is_finite() else Decimal(0)


def round_money(value: Decimal) -> int:
    """Round half-up to a whole currency unit."""
    return int(value.quantize(Decimal(1), rounding=ROUND_HALF_UP))

