"""
Rate card repositories -- where RateCards come from.

Responsibility:
    Supply an immutable ``RateCard`` for an explicit pricing set id.  The
    engine never knows which backend is behind the repository, and no
    repository ever answers "the current" rate card: callers always name
    the pricing set a quote is locked to.

Implementations:
    InMemoryRateCardRepository   -- pre-built cards (tests, tools).
    DirectoryRateCardRepository  -- YAML sets via quoter_config.get_rate_card.
    SqlRateCardRepository        -- pricing set rows through a Session.
    CachingRateCardRepository    -- per-request memo around any of the above.

Failure modes:
    - RateCardNotFoundError when the pricing set does not exist.
    - RateCardSchemaError when stored rows are malformed.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Iterable
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from quoter_config import get_rate_card
from quoter_config.catalog import DEFAULT_CATALOG, OptionCatalog
from quoter_config.completeness import CompletenessResult, check_completeness
from quoter_config.loader import parse_tables
from quoter_config.schema import TABLE_SPECS, RateCard
from quoter_kernel.exceptions import RateCardNotFoundError
from quoter_kernel.logging_config import get_logger
from quoter_kernel.models import RATE_ROW_MODELS, PricingSet

logger = get_logger("services.rate_card_repository")


class RateCardRepository(ABC):
    """Key-value lookup: pricing set id -> RateCard."""

    @abstractmethod
    def load_rate_card(self, pricing_set_id: str) -> RateCard:
        """Return the rate card, or raise RateCardNotFoundError."""
        ...

    def check_completeness(
        self,
        rate_card: RateCard,
        catalog: OptionCatalog = DEFAULT_CATALOG,
    ) -> CompletenessResult:
        return check_completeness(rate_card, catalog)


class InMemoryRateCardRepository(RateCardRepository):
    def __init__(self, rate_cards: Iterable[RateCard] = ()):
        self._cards: dict[str, RateCard] = {}
        for card in rate_cards:
            self.add(card)

    def add(self, rate_card: RateCard) -> None:
        self._cards[rate_card.pricing_set_id] = rate_card

    def load_rate_card(self, pricing_set_id: str) -> RateCard:
        try:
            return self._cards[pricing_set_id]
        except KeyError:
            raise RateCardNotFoundError(pricing_set_id) from None


class DirectoryRateCardRepository(RateCardRepository):
    """Rate cards authored as YAML under a sets directory."""

    def __init__(self, config_dir: Path | None = None):
        self._config_dir = config_dir

    def load_rate_card(self, pricing_set_id: str) -> RateCard:
        return get_rate_card(pricing_set_id, self._config_dir)


def parse_pricing_set_id(pricing_set_id: str) -> UUID | None:
    """UUID form of a pricing set id, or None if it is not a UUID."""
    try:
        return UUID(str(pricing_set_id))
    except ValueError:
        return None


class SqlRateCardRepository(RateCardRepository):
    """
    Builds rate cards from the nine rate tables of a stored pricing set.

    Rows go through the same ``parse_tables`` checks as YAML, so a card
    loaded from the database is exactly as strict as one loaded from disk.
    """

    def __init__(self, session: Session):
        self._session = session

    def load_rate_card(self, pricing_set_id: str) -> RateCard:
        set_uuid = parse_pricing_set_id(pricing_set_id)
        pricing_set = None if set_uuid is None else self._session.get(PricingSet, set_uuid)
        if pricing_set is None:
            raise RateCardNotFoundError(str(pricing_set_id))

        tables: dict[str, list[dict]] = {}
        for table, model in RATE_ROW_MODELS.items():
            fields = TABLE_SPECS[table].fields
            rows = self._session.execute(
                select(model).where(model.pricing_set_id == pricing_set.id)
            ).scalars().all()
            tables[table] = [{f: getattr(row, f) for f in fields} for row in rows]

        rate_card = parse_tables(str(pricing_set.id), pricing_set.name, tables)

        logger.debug(
            "rate_card_loaded",
            extra={
                "pricing_set_id": rate_card.pricing_set_id,
                "checksum": rate_card.checksum,
                "status": pricing_set.status,
            },
        )
        return rate_card


class CachingRateCardRepository(RateCardRepository):
    """
    Memoises another repository for the lifetime of one request.

    Create one per request and drop it afterwards; it never expires
    entries on its own.
    """

    def __init__(self, inner: RateCardRepository):
        self._inner = inner
        self._cache: dict[str, RateCard] = {}
        self.hits = 0
        self.misses = 0

    def load_rate_card(self, pricing_set_id: str) -> RateCard:
        card = self._cache.get(pricing_set_id)
        if card is not None:
            self.hits += 1
            return card
        self.misses += 1
        card = self._inner.load_rate_card(pricing_set_id)
        self._cache[pricing_set_id] = card
        return card

    def clear(self) -> None:
        self._cache.clear()
