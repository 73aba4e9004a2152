"""Pricing endpoints.

Provides:
- GET /properties/{property_id}/price: quote a stay
- GET /properties/{property_id}/available-periods: cheapest free stays
"""

from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query

from estatedesk.domain.rates import AvailablePeriod, PriceQuote
from estatedesk.infra.repositories.pricing_repository import (
    PgPricingReader,
    PricingReader,
)
from estatedesk.services.availability import find_available_periods
from estatedesk.services.price_calculation import QuoteStatus, quote_property

router = APIRouter(prefix="/properties", tags=["pricing"])


def get_pricing_reader() -> PricingReader:
    """Dependency; tests override it with an in-memory reader."""
    return PgPricingReader()


_NOT_FOUND_STATUSES = {
    QuoteStatus.NOT_FOUND: "property_not_found",
    QuoteStatus.NO_PRICING: "pricing_unavailable",
    QuoteStatus.UNPRICED: "pricing_unavailable",
    QuoteStatus.ERROR: "pricing_unavailable",
}


@router.get("/{property_id}/price", response_model=PriceQuote)
def get_price(
    property_id: int,
    check_in: date,
    check_out: date,
    include_trace: bool = False,
    reader: PricingReader = Depends(get_pricing_reader),
) -> PriceQuote:
    """Quote a stay. The calculation trace is only returned on request."""
    if check_out <= check_in:
        raise HTTPException(status_code=422, detail="check_out must be after check_in")

    result = quote_property(reader, property_id, check_in, check_out)
    if result.quote is None:
        detail = _NOT_FOUND_STATUSES.get(result.status, "pricing_unavailable")
        raise HTTPException(status_code=404, detail=detail)

    if include_trace:
        return result.quote
    return result.quote.model_copy(update={"trace": []})


@router.get("/{property_id}/available-periods", response_model=list[AvailablePeriod])
def get_available_periods(
    property_id: int,
    nights: int = Query(..., ge=1, le=365),
    month: int | None = Query(None, ge=1, le=12),
    year: int | None = Query(None, ge=2000, le=2100),
    reader: PricingReader = Depends(get_pricing_reader),
) -> list[AvailablePeriod]:
    """Cheapest free stays of `nights` nights, cheapest first (max 20)."""
    return find_available_periods(reader, property_id, nights, month, year)
