"""Price calculation engine - pure rule evaluation over loaded rates.

Given the rate sources of one property and a stay, determine the total
rental price. The stay is classified by length and each period class
tries the sources in a fixed order:

    SHORT_TERM     seasonal -> monthly (daily split) -> yearly
    MONTHLY_EXACT  monthly (full month) -> seasonal -> yearly
    LONG_TERM      monthly (proportional) -> seasonal -> yearly
    YEARLY         yearly rate -> min monthly x12 -> seasonal average

Each calculator returns an Attempt(quote, trace). A None quote means
"try the next source", never an error. Nothing here touches the database.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from datetime import date, timedelta
from decimal import Decimal
from typing import NamedTuple

from .periods import PeriodClass, classify_period, days_in_month, nights_between
from .rates import (
    LineItem,
    MonthlyRate,
    PriceQuote,
    PricingData,
    PricingMethod,
    PricingType,
    SeasonalRate,
    round_money,
)
from .seasons import (
    YEAR_DAYS,
    GapFiller,
    find_season_for_date,
    first_rate_gap_filler,
    get_days_in_season,
    season_daily_rate,
    to_mmdd,
    yearly_average_from_seasonal,
)

PRICE_ON_REQUEST = "price_on_request"
PRICE_ON_REQUEST_LABEL = "Price on request"


class Attempt(NamedTuple):
    quote: PriceQuote | None
    trace: list[str]


def is_price_on_request(quote: PriceQuote) -> bool:
    return quote.total_price == 0 and any(
        item.period == PRICE_ON_REQUEST for item in quote.breakdown
    )


def succeeded(quote: PriceQuote | None) -> bool:
    if quote is None:
        return False
    return quote.total_price > 0 or is_price_on_request(quote)


def _daily_walk(start: date, end: date):
    current = start
    while current < end:
        yield current
        current += timedelta(days=1)


def _price_on_request_quote(nights: int) -> PriceQuote:
    return PriceQuote(
        total_price=0,
        nights=nights,
        daily_average=0,
        monthly_equivalent=0,
        breakdown=[
            LineItem(
                period=PRICE_ON_REQUEST,
                nights=nights,
                total=0,
                season_type=PRICE_ON_REQUEST_LABEL,
            )
        ],
        pricing_method=PricingMethod.SEASONAL,
    )


# ── Per-source calculators ────────────────────────────────


def calculate_from_seasonal_prices(
    start: date,
    end: date,
    nights: int,
    seasons: Sequence[SeasonalRate],
    *,
    gap_filler: GapFiller = first_rate_gap_filler,
) -> Attempt:
    """Price the stay day by day from recurring seasons.

    A matched season with a zero price turns the whole stay into a
    price-on-request quote. Days no season covers are priced by gap_filler.
    """
    trace = ["  -> pricing from seasonal rates"]
    total = Decimal(0)
    per_season: dict[SeasonalRate, list] = {}
    uncovered: list[date] = []

    for day in _daily_walk(start, end):
        mmdd = to_mmdd(day)
        season = find_season_for_date(mmdd, seasons)
        if season is None:
            trace.append(f"  !! no season for {mmdd}")
            uncovered.append(day)
            continue

        if season.price_per_night == 0:
            trace.append(f"  !! price on request for {mmdd}")
            return Attempt(_price_on_request_quote(nights), trace)

        daily = season_daily_rate(season)
        if season.pricing_type == PricingType.PER_PERIOD:
            days = get_days_in_season(season.start_mmdd, season.end_mmdd)
            trace.append(
                f"  -> {mmdd}: per_period ({season.price_per_night} / {days} days "
                f"= {daily:.2f}/day)"
            )
        else:
            trace.append(f"  -> {mmdd}: per_night ({daily}/night)")
        total += daily
        bucket = per_season.setdefault(season, [0, Decimal(0)])
        bucket[0] += 1
        bucket[1] += daily

    breakdown = [
        LineItem(
            period="seasonal",
            nights=count,
            price_per_night=round_money(amount / count),
            total=round_money(amount),
            season_type=season.season_type,
        )
        for season, (count, amount) in per_season.items()
    ]

    if uncovered:
        trace.append(f"  !! uncovered days: {len(uncovered)}")
        borrowed = gap_filler(seasons, uncovered[0], trace)
        if borrowed is None or borrowed <= 0:
            trace.append("  xx no rate to borrow for uncovered days")
            return Attempt(None, trace)
        gap_total = borrowed * len(uncovered)
        total += gap_total
        trace.append(
            f"  -> borrowed rate applied: {borrowed:.2f}/day x {len(uncovered)} "
            f"= {gap_total:.2f}"
        )
        breakdown.append(
            LineItem(
                period="seasonal_gap",
                nights=len(uncovered),
                price_per_night=round_money(borrowed),
                total=round_money(gap_total),
            )
        )

    if total == 0:
        trace.append("  xx seasonal total is 0")
        return Attempt(None, trace)

    trace.append(f"  == total {total:.2f} for {nights} nights")
    daily_average = round_money(total / nights)
    return Attempt(
        PriceQuote(
            total_price=round_money(total),
            nights=nights,
            daily_average=daily_average,
            monthly_equivalent=round_money(Decimal(daily_average) * 30),
            breakdown=breakdown,
            pricing_method=PricingMethod.SEASONAL,
        ),
        trace,
    )


def calculate_from_monthly_daily(
    start: date, end: date, nights: int, monthly: Sequence[MonthlyRate]
) -> Attempt:
    """Price each night as month price / days in that calendar month.

    Strict: a single night without a monthly rate fails the whole stay.
    """
    trace = ["  -> pricing from monthly rates (daily split)"]
    rates = {rate.month_number: rate for rate in monthly}
    total = Decimal(0)
    per_month: dict[tuple[int, int], list] = {}

    for day in _daily_walk(start, end):
        rate = rates.get(day.month)
        if rate is None:
            trace.append(f"  xx no monthly rate for month {day.month}")
            return Attempt(None, trace)
        month_days = days_in_month(day.year, day.month)
        daily = rate.price_per_month / month_days
        total += daily
        key = (day.year, day.month)
        if key not in per_month:
            trace.append(
                f"  -> month {day.month}: {rate.price_per_month} / {month_days} "
                f"= {daily:.2f}/day"
            )
            per_month[key] = [0, Decimal(0)]
        per_month[key][0] += 1
        per_month[key][1] += daily

    trace.append(f"  == total {total:.2f}")
    daily_average = round_money(total / nights)
    return Attempt(
        PriceQuote(
            total_price=round_money(total),
            nights=nights,
            daily_average=daily_average,
            monthly_equivalent=round_money(Decimal(daily_average) * 30),
            breakdown=[
                LineItem(
                    period="monthly_daily",
                    nights=count,
                    total=round_money(amount),
                    month_number=month,
                )
                for (_, month), (count, amount) in per_month.items()
            ],
            pricing_method=PricingMethod.MONTHLY,
        ),
        trace,
    )


def calculate_long_term_from_monthly(
    start: date, end: date, nights: int, monthly: Sequence[MonthlyRate]
) -> Attempt:
    """Split the stay at month boundaries and charge each month pro rata."""
    trace = ["  -> pricing long stay from monthly rates (proportional)"]
    rates = {rate.month_number: rate for rate in monthly}
    total = Decimal(0)
    breakdown: list[LineItem] = []

    current = start
    while current < end:
        month_days = days_in_month(current.year, current.month)
        next_month = current.replace(day=1) + timedelta(days=month_days)
        segment_end = min(end, next_month)
        days = (segment_end - current).days

        rate = rates.get(current.month)
        if rate is None:
            trace.append(f"  xx no monthly rate for month {current.month}")
            return Attempt(None, trace)

        month_total = rate.price_per_month * days / month_days
        total += month_total
        trace.append(
            f"  -> month {current.month}: {days}/{month_days} days x "
            f"{rate.price_per_month} = {month_total:.2f}"
        )
        breakdown.append(
            LineItem(
                period=f"Month {current.month}",
                nights=days,
                price_per_month=round_money(rate.price_per_month),
                total=round_money(month_total),
                month_number=current.month,
            )
        )
        current = segment_end

    trace.append(f"  == total {total:.2f}")
    return Attempt(
        PriceQuote(
            total_price=round_money(total),
            nights=nights,
            daily_average=round_money(total / nights),
            monthly_equivalent=round_money(total / (Decimal(nights) / 30)),
            breakdown=breakdown,
            pricing_method=PricingMethod.MONTHLY,
        ),
        trace,
    )


def calculate_from_year_price(nights: int, yearly_rate: Decimal) -> Attempt:
    """Spread the annualized monthly-equivalent rate over the nights."""
    yearly_total = yearly_rate * 12
    per_day = yearly_total / YEAR_DAYS
    total = per_day * nights
    trace = [
        "  -> pricing from yearly rate",
        f"  -> monthly equivalent: {yearly_rate}",
        f"  -> yearly total: {yearly_total}",
        f"  -> per day: {per_day:.2f}",
        f"  == total {total:.2f}",
    ]
    return Attempt(
        PriceQuote(
            total_price=round_money(total),
            nights=nights,
            daily_average=round_money(per_day),
            monthly_equivalent=round_money(yearly_rate),
            breakdown=[
                LineItem(
                    period="from_year_price",
                    nights=nights,
                    price_per_month=round_money(yearly_rate),
                    total=round_money(total),
                )
            ],
            pricing_method=PricingMethod.YEARLY,
        ),
        trace,
    )


def calculate_monthly_exact(
    start: date, nights: int, monthly: Sequence[MonthlyRate]
) -> Attempt:
    """Charge the check-in month's rate in full, undivided."""
    month = start.month
    trace = [f"  -> looking up monthly rate for month {month}"]
    rate = next((r for r in monthly if r.month_number == month), None)
    if rate is None:
        trace.append(f"  xx no monthly rate for month {month}")
        return Attempt(None, trace)

    total = rate.price_per_month
    trace.append(f"  -> full month rate {total} (not divided)")
    return Attempt(
        PriceQuote(
            total_price=round_money(total),
            nights=nights,
            daily_average=round_money(total / nights),
            monthly_equivalent=round_money(total),
            breakdown=[
                LineItem(
                    period=f"Month {month}",
                    nights=nights,
                    price_per_month=round_money(total),
                    total=round_money(total),
                    month_number=month,
                )
            ],
            pricing_method=PricingMethod.MONTHLY,
        ),
        trace,
    )


# ── Annualized calculators (YEARLY class) ─────────────────


def _annualized_quote(
    nights: int,
    yearly_total: Decimal,
    monthly_equivalent: Decimal,
    daily_average: Decimal,
    period: str,
    method: PricingMethod,
) -> PriceQuote:
    total = Decimal(nights) / YEAR_DAYS * yearly_total
    return PriceQuote(
        total_price=round_money(total),
        nights=nights,
        daily_average=round_money(daily_average),
        monthly_equivalent=round_money(monthly_equivalent),
        breakdown=[
            LineItem(
                period=period,
                nights=nights,
                price_per_month=round_money(monthly_equivalent),
                total=round_money(total),
            )
        ],
        pricing_method=method,
    )


def calculate_yearly_contract(nights: int, yearly_rate: Decimal) -> Attempt:
    yearly_total = yearly_rate * 12
    trace = [
        f"  -> monthly equivalent: {yearly_rate}",
        f"  -> yearly total: {yearly_total}",
    ]
    quote = _annualized_quote(
        nights,
        yearly_total,
        yearly_rate,
        yearly_total / YEAR_DAYS,
        "yearly_contract",
        PricingMethod.YEARLY,
    )
    return Attempt(quote, trace)


def calculate_yearly_from_monthly(
    nights: int, monthly: Sequence[MonthlyRate]
) -> Attempt:
    if not monthly:
        return Attempt(None, ["  xx no monthly rates"])
    cheapest = min(rate.price_per_month for rate in monthly)
    yearly_total = cheapest * 12
    trace = [f"  -> cheapest monthly rate: {cheapest}"]
    quote = _annualized_quote(
        nights,
        yearly_total,
        cheapest,
        yearly_total / YEAR_DAYS,
        "yearly_from_monthly",
        PricingMethod.MONTHLY,
    )
    return Attempt(quote, trace)


def calculate_yearly_from_seasonal(
    nights: int, seasons: Sequence[SeasonalRate]
) -> Attempt:
    if not seasons:
        return Attempt(None, ["  xx no seasonal rates"])
    average = yearly_average_from_seasonal(seasons)
    trace = [f"  -> weighted average daily rate: {average:.2f}"]
    if average == 0:
        trace.append("  !! every season is price on request")
        return Attempt(_price_on_request_quote(nights), trace)
    yearly_total = average * YEAR_DAYS
    quote = _annualized_quote(
        nights,
        yearly_total,
        yearly_total / 12,
        average,
        "yearly_from_seasonal",
        PricingMethod.SEASONAL,
    )
    return Attempt(quote, trace)


# ── Period-class dispatchers ──────────────────────────────

Step = tuple[str, Callable[[], Attempt]]


def _run_chain(steps: Sequence[Step], trace: list[str]) -> PriceQuote | None:
    """Return the first successful attempt; failures fall through."""
    for number, (label, attempt_fn) in enumerate(steps, start=1):
        trace.append(f"Attempt #{number}: {label}")
        attempt = attempt_fn()
        trace.extend(attempt.trace)
        if succeeded(attempt.quote):
            trace.append(f"OK: priced from {label}")
            return attempt.quote
    return None


def _seasonal_step(start, end, nights, data, gap_filler) -> list[Step]:
    if not data.seasonal:
        return []
    return [
        (
            "seasonal rates",
            lambda: calculate_from_seasonal_prices(
                start, end, nights, data.seasonal, gap_filler=gap_filler
            ),
        )
    ]


def _yearly_step(nights, data) -> list[Step]:
    if not data.yearly_rate:
        return []
    return [("yearly rate", lambda: calculate_from_year_price(nights, data.yearly_rate))]


def dispatch_short_term(
    start: date,
    end: date,
    nights: int,
    data: PricingData,
    *,
    gap_filler: GapFiller = first_rate_gap_filler,
) -> Attempt:
    trace = ["--- SHORT_TERM (1-26 nights) ---"]
    steps = _seasonal_step(start, end, nights, data, gap_filler)
    if data.monthly:
        steps.append(
            (
                "monthly rates (daily split)",
                lambda: calculate_from_monthly_daily(start, end, nights, data.monthly),
            )
        )
    steps += _yearly_step(nights, data)
    return Attempt(_run_chain(steps, trace), trace)


def dispatch_monthly_exact(
    start: date,
    end: date,
    nights: int,
    data: PricingData,
    *,
    gap_filler: GapFiller = first_rate_gap_filler,
) -> Attempt:
    trace = ["--- MONTHLY_EXACT (27-31 nights) ---"]
    steps: list[Step] = []
    if data.monthly:
        steps.append(
            (
                f"full monthly rate for month {start.month}",
                lambda: calculate_monthly_exact(start, nights, data.monthly),
            )
        )
    steps += _seasonal_step(start, end, nights, data, gap_filler)
    steps += _yearly_step(nights, data)
    return Attempt(_run_chain(steps, trace), trace)


def dispatch_long_term(
    start: date,
    end: date,
    nights: int,
    data: PricingData,
    *,
    gap_filler: GapFiller = first_rate_gap_filler,
) -> Attempt:
    trace = ["--- LONG_TERM (32-364 nights) ---"]
    steps: list[Step] = []
    if data.monthly:
        steps.append(
            (
                "monthly rates (proportional)",
                lambda: calculate_long_term_from_monthly(
                    start, end, nights, data.monthly
                ),
            )
        )
    steps += _seasonal_step(start, end, nights, data, gap_filler)
    steps += _yearly_step(nights, data)
    return Attempt(_run_chain(steps, trace), trace)


def dispatch_yearly(
    start: date,
    end: date,
    nights: int,
    data: PricingData,
    *,
    gap_filler: GapFiller = first_rate_gap_filler,
) -> Attempt:
    trace = ["--- YEARLY (365+ nights) ---"]
    steps: list[Step] = []
    if data.yearly_rate:
        steps.append(
            ("yearly rate", lambda: calculate_yearly_contract(nights, data.yearly_rate))
        )
    if data.monthly:
        steps.append(
            (
                "cheapest monthly rate x12",
                lambda: calculate_yearly_from_monthly(nights, data.monthly),
            )
        )
    if data.seasonal:
        steps.append(
            (
                "seasonal average annualized",
                lambda: calculate_yearly_from_seasonal(nights, data.seasonal),
            )
        )
    return Attempt(_run_chain(steps, trace), trace)


DISPATCHERS = {
    PeriodClass.SHORT_TERM: dispatch_short_term,
    PeriodClass.MONTHLY_EXACT: dispatch_monthly_exact,
    PeriodClass.LONG_TERM: dispatch_long_term,
    PeriodClass.YEARLY: dispatch_yearly,
}


# ── Entry point ───────────────────────────────────────────


def describe_pricing_data(data: PricingData) -> list[str]:
    lines = [f"Seasonal rates: {len(data.seasonal)}"]
    if data.seasonal:
        lines.append(
            "  Seasons: "
            + ", ".join(
                f"{s.season_type} ({s.start_mmdd}->{s.end_mmdd}: {s.price_per_night})"
                for s in data.seasonal
            )
        )
    lines.append(f"Monthly rates: {len(data.monthly)}")
    if data.monthly:
        lines.append(
            "  Months: "
            + ", ".join(f"{m.month_number}={m.price_per_month}" for m in data.monthly)
        )
    lines.append(
        f"Yearly rate: {data.yearly_rate}/month" if data.yearly_rate else "Yearly rate: none"
    )
    return lines


def minimum_stay_notes(check_in: date, nights: int, data: PricingData) -> list[str]:
    """Informational notes when the stay is shorter than a configured minimum."""
    notes = []
    season = find_season_for_date(to_mmdd(check_in), data.seasonal)
    if season is not None and season.minimum_nights > nights:
        notes.append(
            f"Note: season {season.season_type} asks for at least "
            f"{season.minimum_nights} nights"
        )
    rate = data.monthly_rate_for(check_in.month)
    if rate is not None and rate.minimum_days > nights:
        notes.append(
            f"Note: month {rate.month_number} asks for at least {rate.minimum_days} days"
        )
    return notes


def quote_stay(
    data: PricingData,
    check_in: date,
    check_out: date,
    *,
    gap_filler: GapFiller = first_rate_gap_filler,
) -> Attempt:
    """Price a stay from already-loaded rate data.

    Returns Attempt(None, trace) when no source can price the stay.

    Raises:
        InvalidStayError: check_out is not after check_in.
    """
    nights = nights_between(check_in, check_out)
    trace = [f"Stay: {check_in.isoformat()} -> {check_out.isoformat()} ({nights} nights)"]
    trace += describe_pricing_data(data)

    if data.is_empty():
        trace.append("xx no pricing data")
        return Attempt(None, trace)

    period_class = classify_period(nights)
    trace.append(f"Period class: {period_class.value}")

    yearly_only_warning = data.yearly_only() and nights < YEAR_DAYS
    if yearly_only_warning:
        trace.append("!! only a yearly rate is configured for a stay under 365 nights")
    trace += minimum_stay_notes(check_in, nights, data)

    dispatch = DISPATCHERS[period_class]
    attempt = dispatch(check_in, check_out, nights, data, gap_filler=gap_filler)
    trace += attempt.trace

    if attempt.quote is None:
        trace.append(f"xx could not price {period_class.value}")
        return Attempt(None, trace)

    quote = attempt.quote.model_copy(
        update={
            "yearly_only_warning": yearly_only_warning,
            "trace": trace,
        }
    )
    return Attempt(quote, trace)
