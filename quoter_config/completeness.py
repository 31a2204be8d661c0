"""
Rate Card Completeness (``quoter_config.completeness``).

Responsibility
--------------
Given a ``RateCard`` and the ``OptionCatalog`` of selectable options,
report every rate row a quote could need but the card lacks, plus
non-fatal warnings.  ``ok`` is true only when nothing is missing; it gates
pricing set activation.

Missing entries use the same ``table[k1, k2]`` form as
``MissingRateRowError`` so an admin sees one vocabulary for "add this row".

Invariants enforced
-------------------
* Deterministic: entries are reported in catalog order.
* Pure: no I/O, no mutation of the rate card.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from quoter_config.catalog import DEFAULT_CATALOG, OptionCatalog
from quoter_config.schema import LetterPriceKey, OpalPriceKey, PanelPriceKey, RateCard
from quoter_kernel.exceptions import format_row_key


@dataclass
class CompletenessResult:
    """
    Result of a completeness check.

    Contract
    --------
    * ``ok`` is ``True`` only when ``missing`` is empty.
    * Warnings never block activation but should be reviewed.
    """

    missing: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return len(self.missing) == 0

    def add_missing(self, table: str, *key: object) -> None:
        self.missing.append(format_row_key(table, key))

    def add_warning(self, msg: str) -> None:
        self.warnings.append(msg)


def check_completeness(
    rate_card: RateCard,
    catalog: OptionCatalog = DEFAULT_CATALOG,
) -> CompletenessResult:
    """
    Check a rate card against every option combination in the catalog.

    Postconditions:
        - ``missing`` lists each absent row as ``table[key, ...]``.
        - ``warnings`` lists rows that exist but can never be selected,
          thin transformer catalogs and non-monotonic LED profiles.
    """
    result = CompletenessResult()

    _check_panels(rate_card, catalog, result)
    _check_labour(rate_card, catalog, result)
    _check_illumination(rate_card, catalog, result)
    _check_transformers(rate_card, catalog, result)
    _check_opal(rate_card, catalog, result)
    _check_consumables(rate_card, catalog, result)
    _check_letters(rate_card, catalog, result)

    return result


def _check_panels(card: RateCard, catalog: OptionCatalog, result: CompletenessResult) -> None:
    for material in catalog.materials:
        for size in catalog.sheet_sizes:
            if PanelPriceKey(material, size) not in card.panel_prices:
                result.add_missing("panel_prices", material, size)
    for finish in catalog.panel_finishes:
        if finish not in card.panel_finishes:
            result.add_missing("panel_finishes", finish)

    for key in card.panel_prices:
        if key.sheet_size not in catalog.sheet_sizes:
            result.add_warning(
                f"{format_row_key('panel_prices', key)} uses a sheet size "
                f"that cannot be selected"
            )


def _check_labour(card: RateCard, catalog: OptionCatalog, result: CompletenessResult) -> None:
    for task in catalog.labour_tasks:
        if task not in card.manufacturing_rates:
            result.add_missing("manufacturing_rates", task)


def _check_illumination(card: RateCard, catalog: OptionCatalog, result: CompletenessResult) -> None:
    for height in catalog.letter_heights:
        if height not in card.illumination_profiles:
            result.add_missing("illumination_profiles", height)

    previous: tuple[int, int] | None = None
    for height, leds in sorted(card.illumination_profiles.items()):
        if previous is not None and leds < previous[1]:
            result.add_warning(
                f"illumination_profiles: {height}mm letters use fewer LEDs ({leds}) "
                f"than {previous[0]}mm letters ({previous[1]})"
            )
        previous = (height, leds)


def _check_transformers(card: RateCard, catalog: OptionCatalog, result: CompletenessResult) -> None:
    for ttype in catalog.transformer_types:
        if ttype not in card.transformers:
            result.add_missing("transformers", ttype)

    if len(card.transformers) == 1:
        only = next(iter(card.transformers.values()))
        result.add_warning(
            f"transformers has a single size ({only.type}, {only.led_capacity} LEDs); "
            f"there is no headroom for larger LED loads"
        )

    capacities = [t.led_capacity for t in card.transformers.values()]
    if len(capacities) != len(set(capacities)):
        result.add_warning("transformers contains types with the same LED capacity")


def _check_opal(card: RateCard, catalog: OptionCatalog, result: CompletenessResult) -> None:
    for opal_type in catalog.opal_types:
        for size in catalog.opal_sheet_sizes:
            if OpalPriceKey(opal_type, size) not in card.opal_prices:
                result.add_missing("opal_prices", opal_type, size)


def _check_consumables(card: RateCard, catalog: OptionCatalog, result: CompletenessResult) -> None:
    for key in catalog.consumables:
        if key not in card.consumables:
            result.add_missing("consumables", key)


def _check_letters(card: RateCard, catalog: OptionCatalog, result: CompletenessResult) -> None:
    for letter_type in catalog.letter_types:
        finishes = card.allowed_finishes(letter_type)
        if not finishes:
            result.add_missing("letter_finish_rules", letter_type)
            continue
        for finish in sorted(finishes):
            for height in catalog.letter_heights:
                if LetterPriceKey(letter_type, finish, height) not in card.letter_prices:
                    result.add_missing("letter_prices", letter_type, finish, height)

    for key in card.letter_prices:
        if key.finish not in card.allowed_finishes(key.letter_type):
            result.add_warning(
                f"{format_row_key('letter_prices', key)} is unreachable: "
                f"{key.finish} is not an allowed finish for {key.letter_type}"
            )
