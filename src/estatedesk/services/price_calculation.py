"""Price calculation service - engine entry point for callers.

Loads a property's rates through a PricingReader, runs the pure engine
and converts every outcome to the caller contract:

- calculate_price() returns a PriceQuote, or None when the stay cannot be
  quoted (invalid range, unknown property, no pricing data, no source
  able to price it, or an unexpected fault). It never raises.
- quote_property() returns the same result with an explicit status, for
  callers that need to tell those cases apart (HTTP layer, tests).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import Enum

from estatedesk.domain.periods import InvalidStayError, nights_between
from estatedesk.domain.pricing import quote_stay
from estatedesk.domain.rates import PriceQuote
from estatedesk.infra.repositories.pricing_repository import (
    PricingReader,
    load_pricing_data,
)
from estatedesk.observability.correlation import correlation_scope
from estatedesk.observability.logging import get_logger, log_trace

logger = get_logger(__name__)


class QuoteStatus(str, Enum):
    OK = "ok"
    INVALID_RANGE = "invalid_range"
    NOT_FOUND = "property_not_found"
    NO_PRICING = "no_pricing_data"
    UNPRICED = "pricing_unavailable"
    ERROR = "error"


@dataclass(frozen=True)
class QuoteResult:
    status: QuoteStatus
    quote: PriceQuote | None = None
    trace: list[str] = field(default_factory=list)


def quote_property(
    reader: PricingReader,
    property_id: int,
    check_in: date,
    check_out: date,
) -> QuoteResult:
    """Quote a stay for one property.

    Args:
        reader: Source of property and rate data.
        property_id: Property identifier.
        check_in: Arrival date.
        check_out: Departure date (exclusive, must be after check_in).

    Returns:
        QuoteResult whose quote is set only when status is OK.
    """
    with correlation_scope():
        try:
            nights_between(check_in, check_out)
        except InvalidStayError as exc:
            logger.warning(
                "Invalid stay range",
                extra={
                    "extra_fields": {
                        "property_id": property_id,
                        "reason": exc.reason_code,
                        **exc.meta,
                    }
                },
            )
            return QuoteResult(QuoteStatus.INVALID_RANGE)

        try:
            return _quote(reader, property_id, check_in, check_out)
        except Exception:
            logger.exception(
                "Price calculation failed",
                extra={"extra_fields": {"property_id": property_id}},
            )
            return QuoteResult(QuoteStatus.ERROR)


def _quote(
    reader: PricingReader,
    property_id: int,
    check_in: date,
    check_out: date,
) -> QuoteResult:
    fields = {"property_id": property_id}

    prop = reader.get_property(property_id)
    if prop is None:
        logger.warning("Property not found", extra={"extra_fields": fields})
        return QuoteResult(QuoteStatus.NOT_FOUND)

    header = [f"=== Quote for property {property_id} ==="]
    if prop.property_number or prop.property_type:
        header.append(f"Property: #{prop.property_number} ({prop.property_type})")

    data = load_pricing_data(reader, property_id)
    if data.is_empty():
        logger.info("No pricing data for property", extra={"extra_fields": fields})
        return QuoteResult(QuoteStatus.NO_PRICING, trace=header)

    attempt = quote_stay(data, check_in, check_out)
    trace = header + attempt.trace
    log_trace(logger, trace, **fields)

    if attempt.quote is None:
        logger.info("No source could price the stay", extra={"extra_fields": fields})
        return QuoteResult(QuoteStatus.UNPRICED, trace=trace)

    quote = attempt.quote.model_copy(update={"trace": trace})
    logger.info(
        "Price calculated",
        extra={
            "extra_fields": {
                **fields,
                "nights": quote.nights,
                "pricing_method": quote.pricing_method.value,
                "total_price": quote.total_price,
                "yearly_only_warning": quote.yearly_only_warning,
            }
        },
    )
    return QuoteResult(QuoteStatus.OK, quote=quote, trace=trace)


def calculate_price(
    reader: PricingReader,
    property_id: int,
    check_in: date,
    check_out: date,
) -> PriceQuote | None:
    """Quote a stay, or None when no price is available.

    None is a normal outcome ("cannot quote"), not a system fault.
    """
    return quote_property(reader, property_id, check_in, check_out).quote
