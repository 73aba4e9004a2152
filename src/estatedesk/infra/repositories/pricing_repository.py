"""Pricing repository - read-only queries feeding the price engine.

Uses raw SQL with psycopg2 (no ORM). Tables:
- properties: id, property_number, property_type, year_price
- property_pricing: recurring seasonal rates (MM-DD ranges)
- property_pricing_monthly: one rate per calendar month
- property_calendar: blocked dates
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Protocol

from psycopg2.extensions import cursor as PgCursor

from estatedesk.domain.rates import (
    MonthlyRate,
    PricingData,
    PricingType,
    PropertySummary,
    SeasonalRate,
    to_decimal,
)
from estatedesk.domain.seasons import is_valid_season
from estatedesk.infra.db import fetchall, fetchone, txn
from estatedesk.observability.logging import get_logger

logger = get_logger(__name__)


class PricingReader(Protocol):
    """Read interface the engine consumes."""

    def get_property(self, property_id: int) -> PropertySummary | None: ...

    def get_seasonal_prices(self, property_id: int) -> list[SeasonalRate]: ...

    def get_monthly_prices(self, property_id: int) -> list[MonthlyRate]: ...

    def get_yearly_rate(self, property_id: int) -> Decimal | None: ...

    def get_blocked_dates(self, property_id: int, start: date, end: date) -> list[date]: ...


def load_pricing_data(reader: PricingReader, property_id: int) -> PricingData:
    """Load all three rate sources for one calculation.

    Seasonal rows with unparseable MM-DD endpoints are dropped with a
    warning; they never match a date.
    """
    seasonal = []
    for season in reader.get_seasonal_prices(property_id):
        if is_valid_season(season):
            seasonal.append(season)
        else:
            logger.warning(
                "Skipping seasonal rate with invalid dates",
                extra={
                    "extra_fields": {
                        "property_id": property_id,
                        "season_type": season.season_type,
                        "start": season.start_mmdd,
                        "end": season.end_mmdd,
                    }
                },
            )
    return PricingData(
        seasonal=tuple(seasonal),
        monthly=tuple(reader.get_monthly_prices(property_id)),
        yearly_rate=reader.get_yearly_rate(property_id),
    )


# ── Row mapping ───────────────────────────────────────────


def _int_or_zero(value) -> int:
    try:
        return int(value or 0)
    except (TypeError, ValueError):
        return 0


def _pricing_type(value) -> PricingType:
    try:
        return PricingType(value)
    except ValueError:
        return PricingType.PER_NIGHT


# ── Queries ───────────────────────────────────────────────


def fetch_property(cur: PgCursor, property_id: int) -> PropertySummary | None:
    row = fetchone(
        cur,
        "SELECT id, property_number, property_type FROM properties WHERE id = %s",
        (property_id,),
    )
    if row is None:
        return None
    return PropertySummary(id=row[0], property_number=row[1], property_type=row[2])


def fetch_seasonal_prices(cur: PgCursor, property_id: int) -> list[SeasonalRate]:
    """Seasonal rates ordered by start_date_recurring (first match wins)."""
    rows = fetchall(
        cur,
        """
        SELECT season_type, start_date_recurring, end_date_recurring,
               price_per_night, minimum_nights, pricing_type
        FROM property_pricing
        WHERE property_id = %s
        ORDER BY start_date_recurring
        """,
        (property_id,),
    )
    return [
        SeasonalRate(
            season_type=r[0],
            start_mmdd=r[1],
            end_mmdd=r[2],
            price_per_night=to_decimal(r[3]),
            minimum_nights=_int_or_zero(r[4]),
            pricing_type=_pricing_type(r[5]),
        )
        for r in rows
    ]


def fetch_monthly_prices(cur: PgCursor, property_id: int) -> list[MonthlyRate]:
    rows = fetchall(
        cur,
        """
        SELECT month_number, price_per_month, minimum_days
        FROM property_pricing_monthly
        WHERE property_id = %s
        ORDER BY month_number
        """,
        (property_id,),
    )
    return [
        MonthlyRate(
            month_number=int(r[0]),
            price_per_month=to_decimal(r[1]),
            minimum_days=_int_or_zero(r[2]),
        )
        for r in rows
    ]


def fetch_yearly_rate(cur: PgCursor, property_id: int) -> Decimal | None:
    """Monthly-equivalent yearly rate; None unless strictly positive."""
    row = fetchone(
        cur,
        "SELECT year_price FROM properties WHERE id = %s",
        (property_id,),
    )
    if row is None or row[0] is None:
        return None
    value = to_decimal(row[0])
    return value if value > 0 else None


def fetch_blocked_dates(
    cur: PgCursor, property_id: int, start: date, end: date
) -> list[date]:
    """Blocked dates in [start, end], both inclusive."""
    rows = fetchall(
        cur,
        """
        SELECT blocked_date
        FROM property_calendar
        WHERE property_id = %s
          AND blocked_date BETWEEN %s AND %s
        ORDER BY blocked_date
        """,
        (property_id, start, end),
    )
    return [r[0] for r in rows]


class PgPricingReader:
    """PricingReader backed by Postgres; one short read-only txn per call."""

    def get_property(self, property_id: int) -> PropertySummary | None:
        with txn(readonly=True) as cur:
            return fetch_property(cur, property_id)

    def get_seasonal_prices(self, property_id: int) -> list[SeasonalRate]:
        with txn(readonly=True) as cur:
            return fetch_seasonal_prices(cur, property_id)

    def get_monthly_prices(self, property_id: int) -> list[MonthlyRate]:
        with txn(readonly=True) as cur:
            return fetch_monthly_prices(cur, property_id)

    def get_yearly_rate(self, property_id: int) -> Decimal | None:
        with txn(readonly=True) as cur:
            return fetch_yearly_rate(cur, property_id)

    def get_blocked_dates(self, property_id: int, start: date, end: date) -> list[date]:
        with txn(readonly=True) as cur:
            return fetch_blocked_dates(cur, property_id, start, end)
