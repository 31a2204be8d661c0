"""
QuotePricingService -- price one quote item against its locked pricing set.

Responsibility:
    Load the rate card for the pricing set a quote is locked to, validate
    the raw item against that card's finish rules, run the engine and
    return a ``QuoteItemSnapshot`` for the caller to persist.

Architecture position:
    Services -- imperative shell around the pure engine.  The only I/O is
    whatever the injected ``RateCardRepository`` does.

Invariants enforced:
    - Items are priced against the pricing set passed in, never an
      implicit "active" one.
    - A snapshot is never recomputed implicitly; ``reprice`` is an
      explicit call that returns a new snapshot.
    - Engine errors propagate untouched.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

from quoter_config.catalog import DEFAULT_CATALOG, OptionCatalog
from quoter_config.schema import RateCard
from quoter_engines.inputs import PanelLettersV1Input
from quoter_engines.panel_letters_v1 import ITEM_TYPE, PanelLettersV1Output, calculate
from quoter_engines.validation import validate
from quoter_kernel.domain.dtos import ValidationResult
from quoter_kernel.logging_config import LogContext, get_logger
from quoter_services.rate_card_repository import RateCardRepository

logger = get_logger("services.quote_pricing")


@dataclass(frozen=True)
class QuoteItemSnapshot:
    """The stored calculation for one quote item."""

    item_type: str
    pricing_set_id: str
    input: PanelLettersV1Input
    output: PanelLettersV1Output
    item_id: str | None = None

    @property
    def line_total(self) -> int:
        return self.output.total_cost

    @property
    def has_overrides(self) -> bool:
        return self.output.has_overrides

    def to_dict(self) -> dict[str, Any]:
        return {
            "item_id": self.item_id,
            "item_type": self.item_type,
            "pricing_set_id": self.pricing_set_id,
            "line_total": self.line_total,
            "input": self.input.to_dict(),
            "output": self.output.to_dict(),
        }


class QuotePricingService:
    """
    Prices panel-letters items.

    Contract:
        ``price_item`` raises ``InputValidationError`` carrying every field
        error for bad input, and lets rate card / domain errors propagate.
    """

    def __init__(
        self,
        repository: RateCardRepository,
        catalog: OptionCatalog = DEFAULT_CATALOG,
    ):
        self._repository = repository
        self._catalog = catalog

    def validate_item(
        self,
        raw: Mapping[str, Any],
        pricing_set_id: str,
    ) -> ValidationResult[PanelLettersV1Input]:
        """Validate without pricing, so a form can show field errors early."""
        rate_card = self._repository.load_rate_card(pricing_set_id)
        return validate(raw, rate_card.letter_finish_rules, self._catalog)

    def price_item(
        self,
        raw: Mapping[str, Any],
        pricing_set_id: str,
        item_id: str | None = None,
    ) -> QuoteItemSnapshot:
        with LogContext.bind(pricing_set_id=pricing_set_id, quote_item_id=item_id):
            rate_card = self._repository.load_rate_card(pricing_set_id)
            item = validate(raw, rate_card.letter_finish_rules, self._catalog).unwrap()
            return self._price(item, rate_card, pricing_set_id, item_id)

    def reprice(self, snapshot: QuoteItemSnapshot) -> QuoteItemSnapshot:
        """Recalculate a stored item against its own pricing set."""
        with LogContext.bind(pricing_set_id=snapshot.pricing_set_id, quote_item_id=snapshot.item_id):
            rate_card = self._repository.load_rate_card(snapshot.pricing_set_id)
            return self._price(snapshot.input, rate_card, snapshot.pricing_set_id, snapshot.item_id)

    def _price(
        self,
        item: PanelLettersV1Input,
        rate_card: RateCard,
        pricing_set_id: str,
        item_id: str | None,
    ) -> QuoteItemSnapshot:
        output = calculate(item, rate_card)
        logger.info(
            "quote_item_priced",
            extra={
                "item_type": ITEM_TYPE,
                "total_cost": output.total_cost,
                "rate_card_checksum": output.rate_card_checksum,
                "overridden": output.has_overrides,
                "warning_count": len(output.warnings),
            },
        )
        return QuoteItemSnapshot(
            item_type=ITEM_TYPE,
            pricing_set_id=pricing_set_id,
            input=item,
            output=output,
            item_id=item_id,
        )
