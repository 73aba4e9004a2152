"""Shared test helpers for EstateDesk tests.

Plain functions and classes importable from any test module (not fixtures).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal

from estatedesk.domain.rates import (
    MonthlyRate,
    PricingData,
    PricingType,
    PropertySummary,
    SeasonalRate,
)


@dataclass
class FakePricingReader:
    """In-memory PricingReader; counts reads so tests can assert on them."""

    prop: PropertySummary | None = field(
        default_factory=lambda: PropertySummary(
            id=1, property_number="V-12", property_type="villa"
        )
    )
    seasonal: list[SeasonalRate] = field(default_factory=list)
    monthly: list[MonthlyRate] = field(default_factory=list)
    yearly_rate: Decimal | None = None
    blocked: list[date] = field(default_factory=list)
    reads: int = 0

    def get_property(self, property_id):
        self.reads += 1
        return self.prop

    def get_seasonal_prices(self, property_id):
        self.reads += 1
        return list(self.seasonal)

    def get_monthly_prices(self, property_id):
        self.reads += 1
        return list(self.monthly)

    def get_yearly_rate(self, property_id):
        self.reads += 1
        return self.yearly_rate

    def get_blocked_dates(self, property_id, start, end):
        self.reads += 1
        return [d for d in self.blocked if start <= d <= end]


def season(
    start: str,
    end: str,
    price,
    *,
    season_type: str = "high",
    pricing_type: PricingType = PricingType.PER_NIGHT,
    minimum_nights: int = 0,
) -> SeasonalRate:
    return SeasonalRate(
        season_type=season_type,
        start_mmdd=start,
        end_mmdd=end,
        price_per_night=Decimal(str(price)),
        minimum_nights=minimum_nights,
        pricing_type=pricing_type,
    )


def month_rate(month: int, price, minimum_days: int = 0) -> MonthlyRate:
    return MonthlyRate(
        month_number=month,
        price_per_month=Decimal(str(price)),
        minimum_days=minimum_days,
    )


def pricing_data(seasonal=(), monthly=(), yearly_rate=None) -> PricingData:
    return PricingData(
        seasonal=tuple(seasonal),
        monthly=tuple(monthly),
        yearly_rate=Decimal(str(yearly_rate)) if yearly_rate is not None else None,
    )
