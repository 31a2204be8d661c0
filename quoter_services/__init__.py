"""Services: rate card repositories, quote pricing and pricing set lifecycle."""

from quoter_services.pricing_set_service import PricingSetInfo, PricingSetService
from quoter_services.quote_aggregator import QuoteTotals, aggregate_quote
from quoter_services.quote_pricing_service import QuoteItemSnapshot, QuotePricingService
from quoter_services.rate_card_repository import (
    CachingRateCardRepository,
    DirectoryRateCardRepository,
    InMemoryRateCardRepository,
    RateCardRepository,
    SqlRateCardRepository,
)

__all__ = [
    "RateCardRepository",
    "InMemoryRateCardRepository",
    "DirectoryRateCardRepository",
    "SqlRateCardRepository",
    "CachingRateCardRepository",
    "QuotePricingService",
    "QuoteItemSnapshot",
    "aggregate_quote",
    "QuoteTotals",
    "PricingSetService",
    "PricingSetInfo",
]
