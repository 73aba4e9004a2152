"""Availability scanner - cheapest free stays of a given length.

Walks candidate check-in dates from the start of a search window, skips
spans that touch a blocked date, prices the rest and keeps the cheapest.
The scan is a bounded linear pass, not an optimal search:
- at most 100 check-in dates are evaluated (scan_max_candidates may lower it)
- at most 20 periods are returned, cheapest first (scan_max_results may lower it)

scan_available_periods() reports ok/empty/error explicitly.
find_available_periods() is the outer contract: always a list, errors
are logged and collapse to [].
"""

from __future__ import annotations

import threading
from collections.abc import Iterator
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import date, timedelta
from enum import Enum

from estatedesk.config import PricingSettings, load_pricing_settings
from estatedesk.domain.periods import add_months, days_in_month
from estatedesk.domain.pricing import quote_stay
from estatedesk.domain.rates import AvailablePeriod, PricingData
from estatedesk.infra.repositories.pricing_repository import (
    PricingReader,
    load_pricing_data,
)
from estatedesk.infra.time import utc_today
from estatedesk.observability.correlation import correlation_scope
from estatedesk.observability.logging import get_logger

logger = get_logger(__name__)


class ScanStatus(str, Enum):
    OK = "ok"
    EMPTY = "empty"
    ERROR = "error"


@dataclass(frozen=True)
class ScanOutcome:
    status: ScanStatus
    periods: list[AvailablePeriod] = field(default_factory=list)
    candidates_checked: int = 0
    error: str | None = None


class ScanValidationError(ValueError):
    pass


def search_window(
    today: date,
    month: int | None = None,
    year: int | None = None,
    *,
    window_months: int = 3,
) -> tuple[date, date]:
    """Return the inclusive [start, end] window to search.

    A month and year together select that whole calendar month; otherwise
    the window runs from today for window_months months.
    """
    if month is not None and year is not None:
        if not 1 <= month <= 12:
            raise ScanValidationError(f"month must be 1..12, got {month}")
        return date(year, month, 1), date(year, month, days_in_month(year, month))
    return today, add_months(today, window_months)


def iter_candidates(
    window_start: date, window_end: date, max_candidates: int
) -> Iterator[date]:
    """Check-in dates from window_start to window_end, capped."""
    current = window_start
    checks = 0
    while current <= window_end and checks < max_candidates:
        checks += 1
        yield current
        current += timedelta(days=1)


def is_span_free(check_in: date, nights: int, blocked: set[date]) -> bool:
    """True if none of the nights starting at check_in is blocked."""
    return not any(check_in + timedelta(days=i) in blocked for i in range(nights))


def _price_candidate(
    data: PricingData,
    check_in: date,
    nights: int,
    cancel_event: threading.Event | None,
) -> AvailablePeriod | None:
    if cancel_event is not None and cancel_event.is_set():
        return None
    check_out = check_in + timedelta(days=nights)
    quote = quote_stay(data, check_in, check_out).quote
    if quote is None or quote.total_price <= 0:
        return None
    return AvailablePeriod(
        check_in=check_in,
        check_out=check_out,
        nights=nights,
        total_price=quote.total_price,
        daily_average=quote.daily_average,
    )


def scan_available_periods(
    reader: PricingReader,
    property_id: int,
    nights: int,
    month: int | None = None,
    year: int | None = None,
    *,
    settings: PricingSettings | None = None,
    today: date | None = None,
    cancel_event: threading.Event | None = None,
) -> ScanOutcome:
    """Find the cheapest free stays of `nights` nights.

    Args:
        reader: Source of property, rate and calendar data.
        property_id: Property identifier.
        nights: Stay length, must be > 0.
        month, year: Restrict the search to one calendar month (both needed).
        settings: Scan limits; loaded from the environment if omitted.
        today: Anchor of the default window (defaults to UTC today).
        cancel_event: Set it to stop evaluating further candidates.

    Returns:
        ScanOutcome with periods sorted by total_price ascending.
    """
    try:
        settings = settings or load_pricing_settings()
        if nights < 1:
            raise ScanValidationError(f"nights must be > 0, got {nights}")
        window_start, window_end = search_window(
            today or utc_today(),
            month,
            year,
            window_months=settings.scan_window_months,
        )

        if reader.get_property(property_id) is None:
            logger.warning(
                "Property not found for availability scan",
                extra={"extra_fields": {"property_id": property_id}},
            )
            return ScanOutcome(ScanStatus.EMPTY)

        data = load_pricing_data(reader, property_id)
        if data.is_empty():
            return ScanOutcome(ScanStatus.EMPTY)

        blocked = set(reader.get_blocked_dates(property_id, window_start, window_end))

        qualifying: list[date] = []
        checked = 0
        for check_in in iter_candidates(
            window_start, window_end, settings.candidate_cap()
        ):
            if cancel_event is not None and cancel_event.is_set():
                break
            checked += 1
            if check_in + timedelta(days=nights) > window_end:
                continue
            if is_span_free(check_in, nights, blocked):
                qualifying.append(check_in)

        periods = _price_all(data, qualifying, nights, settings, cancel_event)
    except Exception as exc:
        logger.exception(
            "Availability scan failed",
            extra={"extra_fields": {"property_id": property_id, "nights": nights}},
        )
        return ScanOutcome(ScanStatus.ERROR, error=str(exc))

    periods.sort(key=lambda p: (p.total_price, p.check_in))
    periods = periods[: settings.result_cap()]
    logger.info(
        "Availability scan finished",
        extra={
            "extra_fields": {
                "property_id": property_id,
                "nights": nights,
                "window_start": window_start,
                "window_end": window_end,
                "candidates_checked": checked,
                "found": len(periods),
            }
        },
    )
    status = ScanStatus.OK if periods else ScanStatus.EMPTY
    return ScanOutcome(status, periods=periods, candidates_checked=checked)


def _price_all(
    data: PricingData,
    check_ins: list[date],
    nights: int,
    settings: PricingSettings,
    cancel_event: threading.Event | None,
) -> list[AvailablePeriod]:
    """Price candidates sequentially or on a bounded pool; order is restored by the caller."""
    args = (nights, cancel_event)
    if settings.scan_workers <= 1 or len(check_ins) <= 1:
        results = [_price_candidate(data, d, *args) for d in check_ins]
    else:
        with ThreadPoolExecutor(max_workers=settings.scan_workers) as pool:
            results = list(
                pool.map(lambda d: _price_candidate(data, d, *args), check_ins)
            )
    return [p for p in results if p is not None]


def find_available_periods(
    reader: PricingReader,
    property_id: int,
    nights: int,
    month: int | None = None,
    year: int | None = None,
    *,
    settings: PricingSettings | None = None,
    today: date | None = None,
    cancel_event: threading.Event | None = None,
) -> list[AvailablePeriod]:
    """Cheapest free stays; always a list, possibly empty."""
    with correlation_scope():
        outcome = scan_available_periods(
            reader,
            property_id,
            nights,
            month,
            year,
            settings=settings,
            today=today,
            cancel_event=cancel_event,
        )
    return outcome.periods
