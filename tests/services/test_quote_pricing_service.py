"""
Tests for quote item pricing, re-pricing and quote aggregation.
"""

import pytest

from quoter_config.loader import parse_rate_card
from quoter_kernel.exceptions import (
    InputValidationError,
    MissingRateRowError,
    PricingSetMismatchError,
    RateCardNotFoundError,
)
from quoter_services.quote_aggregator import aggregate_quote
from quoter_services.quote_pricing_service import QuotePricingService
from quoter_services.rate_card_repository import (
    CachingRateCardRepository,
    DirectoryRateCardRepository,
    InMemoryRateCardRepository,
)


@pytest.fixture
def repository(rate_card):
    return InMemoryRateCardRepository([rate_card])


@pytest.fixture
def service(repository):
    return QuotePricingService(repository)


class TestRepositories:

    def test_in_memory_lookup(self, repository, rate_card):
        assert repository.load_rate_card("standard-2025") is rate_card

    def test_in_memory_unknown(self, repository):
        with pytest.raises(RateCardNotFoundError):
            repository.load_rate_card("other")

    def test_directory_repository(self, rate_card):
        assert DirectoryRateCardRepository().load_rate_card("standard-2025").checksum == rate_card.checksum

    def test_repository_completeness(self, repository, rate_card):
        assert repository.check_completeness(rate_card).ok

    def test_caching_repository(self, repository):
        cache = CachingRateCardRepository(repository)

        first = cache.load_rate_card("standard-2025")
        second = cache.load_rate_card("standard-2025")

        assert first is second
        assert (cache.hits, cache.misses) == (1, 1)
        cache.clear()
        cache.load_rate_card("standard-2025")
        assert cache.misses == 2

    def test_caching_does_not_cache_failures(self, repository):
        cache = CachingRateCardRepository(repository)

        for _ in range(2):
            with pytest.raises(RateCardNotFoundError):
                cache.load_rate_card("other")

        assert cache.misses == 2


class TestPriceItem:

    def test_prices_scenario(self, service, scenario_item):
        snapshot = service.price_item(scenario_item, "standard-2025", item_id="item-1")

        assert snapshot.line_total == 56060
        assert snapshot.pricing_set_id == "standard-2025"
        assert snapshot.item_type == "panel_letters_v1"
        assert snapshot.item_id == "item-1"

    def test_snapshot_to_dict(self, service, scenario_item):
        data = service.price_item(scenario_item, "standard-2025").to_dict()

        assert data["line_total"] == 56060
        assert data["input"]["width_mm"] == 1200
        assert data["output"]["total_cost"] == 56060

    def test_invalid_input_raises_with_all_errors(self, service, scenario_item):
        raw = dict(scenario_item, width_mm=0, markup_percent=500)

        with pytest.raises(InputValidationError) as exc_info:
            service.price_item(raw, "standard-2025")

        assert {e.field for e in exc_info.value.errors} == {"width_mm", "markup_percent"}

    def test_incompatible_finish_never_reaches_engine(self, service, scenario_item, captured_logs):
        raw = dict(scenario_item, letter_sets=[
            {"letter_type": "Acrylic", "finish": "Brushed", "height_mm": 200, "qty": 3},
        ])

        with pytest.raises(InputValidationError):
            service.price_item(raw, "standard-2025")

        assert not any(r["message"] == "QUOTER_ENGINE_TRACE" for r in captured_logs())

    def test_validate_item(self, service, scenario_item):
        assert service.validate_item(scenario_item, "standard-2025").is_valid

    def test_unknown_pricing_set(self, service, scenario_item):
        with pytest.raises(RateCardNotFoundError):
            service.price_item(scenario_item, "missing-set")

    def test_engine_errors_propagate(self, make_card, scenario_item):
        card = make_card(panel_finishes=[])
        service = QuotePricingService(InMemoryRateCardRepository([card]))

        with pytest.raises(MissingRateRowError) as exc_info:
            service.price_item(scenario_item, "standard-2025")

        assert exc_info.value.row_ref == "panel_finishes[Powder Coating]"

    def test_priced_log_carries_context(self, service, scenario_item, captured_logs):
        service.price_item(scenario_item, "standard-2025", item_id="item-7")

        (record,) = [r for r in captured_logs() if r["message"] == "quote_item_priced"]
        assert record["pricing_set_id"] == "standard-2025"
        assert record["quote_item_id"] == "item-7"
        assert record["total_cost"] == 56060


class TestReprice:

    def test_reprice_uses_locked_set(self, rate_card, card_data, scenario_item):
        card_data["tables"]["panel_finishes"] = [
            {"finish": "Powder Coating", "cost_per_m2_pence": 5000},
            {"finish": "Wet Spray", "cost_per_m2_pence": 3500},
            {"finish": "Vinyl Wrap", "cost_per_m2_pence": 1800},
        ]
        repository = InMemoryRateCardRepository([rate_card])
        service = QuotePricingService(repository)
        snapshot = service.price_item(scenario_item, "standard-2025")

        repository.add(parse_rate_card(card_data))
        repriced = service.reprice(snapshot)

        # finish 1800 -> 3600, markup 6260 -> 6620
        assert snapshot.line_total == 56060
        assert repriced.line_total == 56060 + 1800 + 360
        assert repriced.output.rate_card_checksum != snapshot.output.rate_card_checksum

    def test_reprice_same_card_is_identical(self, service, scenario_item):
        snapshot = service.price_item(scenario_item, "standard-2025")

        assert service.reprice(snapshot).to_dict() == snapshot.to_dict()


class TestAggregateQuote:

    def test_sums_line_totals(self, service, scenario_item):
        items = [
            service.price_item(scenario_item, "standard-2025", item_id="a"),
            service.price_item(dict(scenario_item, illumination=True), "standard-2025", item_id="b"),
        ]
        totals = aggregate_quote("Q-1", "standard-2025", items)

        assert totals.item_count == 2
        assert totals.line_totals == (56060, 59060)
        assert totals.subtotal == 56060 + 59060
        assert totals.overridden_item_count == 0

    def test_counts_overridden_items(self, service, scenario_item):
        raw = dict(scenario_item, overrides={
            "markup_percent": {"override": 0, "reason_code": "goodwill", "note": "launch"},
        })
        totals = aggregate_quote("Q-1", "standard-2025", [service.price_item(raw, "standard-2025")])

        assert totals.overridden_item_count == 1
        assert totals.subtotal == 56060 - 6260

    def test_empty_quote(self):
        totals = aggregate_quote("Q-2", "standard-2025", [])

        assert totals.subtotal == 0
        assert totals.item_count == 0

    def test_mixed_pricing_sets_rejected(self, rate_card, card_data, scenario_item):
        card_data["pricing_set_id"] = "standard-2026"
        service = QuotePricingService(InMemoryRateCardRepository([rate_card, parse_rate_card(card_data)]))
        items = [
            service.price_item(scenario_item, "standard-2025", item_id="a"),
            service.price_item(scenario_item, "standard-2026", item_id="b"),
        ]

        with pytest.raises(PricingSetMismatchError) as exc_info:
            aggregate_quote("Q-3", "standard-2025", items)

        assert exc_info.value.item_id == "b"
        assert exc_info.value.actual == "standard-2026"
