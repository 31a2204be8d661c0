"""
Quote aggregation -- sum priced items into quote totals.

Every item on a quote must have been priced against the quote's locked
pricing set; mixing sets would make the total meaningless, so it is an
error rather than a warning.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from quoter_kernel.exceptions import PricingSetMismatchError
from quoter_kernel.logging_config import get_logger
from quoter_services.quote_pricing_service import QuoteItemSnapshot

logger = get_logger("services.quote_aggregator")


@dataclass(frozen=True)
class QuoteTotals:
    quote_id: str
    pricing_set_id: str
    item_count: int
    subtotal: int
    overridden_item_count: int
    line_totals: tuple[int, ...] = ()


def aggregate_quote(
    quote_id: str,
    pricing_set_id: str,
    items: Iterable[QuoteItemSnapshot],
) -> QuoteTotals:
    """
    Sum line totals of a quote's items.

    Raises:
        PricingSetMismatchError: if any item was priced on another set.
    """
    line_totals: list[int] = []
    overridden = 0
    for item in items:
        if item.pricing_set_id != pricing_set_id:
            raise PricingSetMismatchError(
                quote_id=quote_id,
                expected=pricing_set_id,
                actual=item.pricing_set_id,
                item_id=item.item_id,
            )
        line_totals.append(item.line_total)
        if item.has_overrides:
            overridden += 1

    totals = QuoteTotals(
        quote_id=quote_id,
        pricing_set_id=pricing_set_id,
        item_count=len(line_totals),
        subtotal=sum(line_totals),
        overridden_item_count=overridden,
        line_totals=tuple(line_totals),
    )
    logger.debug(
        "quote_aggregated",
        extra={
            "quote_id": quote_id,
            "item_count": totals.item_count,
            "subtotal": totals.subtotal,
        },
    )
    return totals
