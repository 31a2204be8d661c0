"""
Panel-Letters pricing engine, version 1.

Pure function ``calculate(item, rate_card) -> PanelLettersV1Output``.
No I/O, no clock, no caching: the same item and rate card always give the
same output.  Every rate lookup either resolves to one row or raises
``MissingRateRowError`` naming it; nothing is defaulted to zero.

Computation order:
    1. panel fitting          panels_x * panels_y sheets, area in m2
    2. panel cost             sheets * unit cost + round(area * finish rate)
    3. aperture (optional)    opal sheets * opal cost + LEDs * led_unit_cost
    4. letters                unit price * qty per set
    5. illumination           smallest transformer covering all LEDs
    6. labour                 round(sum(hours * hourly rate))
    7. markup                 round(materials * percent / 100), labour excluded
    8. total                  sum of the above, no further rounding
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any

from quoter_config.catalog import LABOUR_TASKS, LED_UNIT_COST_KEY, parse_sheet_size
from quoter_config.schema import RateCard, TransformerSpec
from quoter_engines.illumination import aperture_led_count, select_transformer
from quoter_engines.inputs import Overrides, PanelLettersV1Input, Resolved, resolve
from quoter_engines.panel_fitting import fit_panels, sheets_for_area
from quoter_engines.tracer import traced_engine
from quoter_kernel.domain.pence import apply_percent, area_cost, round_half_up

ENGINE_NAME = "panel_letters"
ENGINE_VERSION = "1"
ITEM_TYPE = "panel_letters_v1"


@dataclass(frozen=True)
class DerivedDimensions:
    adjusted_width_mm: int
    adjusted_height_mm: int
    panels_x: int
    panels_y: int
    panels_needed: int
    area_m2: Decimal
    aperture_leds: int
    letters_total_leds: int
    total_leds: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "adjusted_width_mm": self.adjusted_width_mm,
            "adjusted_height_mm": self.adjusted_height_mm,
            "panels_x": self.panels_x,
            "panels_y": self.panels_y,
            "panels_needed": self.panels_needed,
            "area_m2": str(self.area_m2),
            "aperture_leds": self.aperture_leds,
            "letters_total_leds": self.letters_total_leds,
            "total_leds": self.total_leds,
        }


@dataclass(frozen=True)
class LetterSetBreakdown:
    qty: int
    type: str
    finish: str
    height_mm: int
    unit_price: int
    subtotal: int
    leds: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "qty": self.qty,
            "type": self.type,
            "finish": self.finish,
            "height_mm": self.height_mm,
            "unit_price": self.unit_price,
            "subtotal": self.subtotal,
            "leds": self.leds,
        }


@dataclass(frozen=True)
class LabourLine:
    """Hours used for one task, and the hours the input stated."""

    task: str
    hours: Resolved[Decimal]
    rate_per_hour: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "task": self.task,
            "base_hours": str(self.hours.base),
            "override_hours": None if self.hours.override is None else str(self.hours.override),
            "hours": str(self.hours.value),
            "overridden": self.hours.is_overridden,
            "rate_per_hour": self.rate_per_hour,
        }


@dataclass(frozen=True)
class CostBreakdown:
    """Every money field in pence.  Optional parts are None when absent."""

    panel_material_cost: int
    panel_finish_cost: int
    panel_overall_cost: int
    letters_total_cost: int
    labour_cost: int
    materials_base_cost: int
    materials_markup_cost: int
    aperture_opal_cost: int | None = None
    aperture_led_cost: int | None = None
    aperture_total_cost: int | None = None
    transformer_cost: int | None = None

    def line_items(self) -> dict[str, int]:
        """The components that sum to total_cost."""
        return {
            "panel_overall_cost": self.panel_overall_cost,
            "aperture_total_cost": self.aperture_total_cost or 0,
            "transformer_cost": self.transformer_cost or 0,
            "letters_total_cost": self.letters_total_cost,
            "labour_cost": self.labour_cost,
            "materials_markup_cost": self.materials_markup_cost,
        }

    def to_dict(self) -> dict[str, Any]:
        return {
            "panel_material_cost": self.panel_material_cost,
            "panel_finish_cost": self.panel_finish_cost,
            "panel_overall_cost": self.panel_overall_cost,
            "aperture_opal_cost": self.aperture_opal_cost,
            "aperture_led_cost": self.aperture_led_cost,
            "aperture_total_cost": self.aperture_total_cost,
            "transformer_cost": self.transformer_cost,
            "letters_total_cost": self.letters_total_cost,
            "labour_cost": self.labour_cost,
            "materials_base_cost": self.materials_base_cost,
            "materials_markup_cost": self.materials_markup_cost,
        }


@dataclass(frozen=True)
class PanelLettersV1Output:
    """
    Itemised cost breakdown for one quote item.

    Guarantees:
        - total_cost == sum(costs.line_items().values()).
        - Base and overridden values of markup and labour hours are both
          exposed, so a reader can see what was forced.
    """

    pricing_set_id: str
    rate_card_checksum: str
    derived: DerivedDimensions
    letter_sets_breakdown: tuple[LetterSetBreakdown, ...]
    labour: tuple[LabourLine, ...]
    markup_percent: Resolved[Decimal]
    costs: CostBreakdown
    total_cost: int
    transformer: TransformerSpec | None = None
    overrides: Overrides = field(default_factory=Overrides)
    warnings: tuple[str, ...] = ()
    engine_version: str = ENGINE_VERSION

    @property
    def has_overrides(self) -> bool:
        return self.markup_percent.is_overridden or any(
            line.hours.is_overridden for line in self.labour
        )

    def to_dict(self) -> dict[str, Any]:
        """JSON-safe snapshot; Decimals become strings."""
        return {
            "item_type": ITEM_TYPE,
            "engine_version": self.engine_version,
            "pricing_set_id": self.pricing_set_id,
            "rate_card_checksum": self.rate_card_checksum,
            "derived": self.derived.to_dict(),
            "letter_sets_breakdown": [b.to_dict() for b in self.letter_sets_breakdown],
            "labour": [line.to_dict() for line in self.labour],
            "markup_percent": {
                "base": str(self.markup_percent.base),
                "override": (
                    None if self.markup_percent.override is None
                    else str(self.markup_percent.override)
                ),
                "value": str(self.markup_percent.value),
                "overridden": self.markup_percent.is_overridden,
            },
            "transformer": None if self.transformer is None else {
                "type": self.transformer.type,
                "led_capacity": self.transformer.led_capacity,
                "unit_cost": self.transformer.unit_cost_pence,
            },
            "costs": self.costs.to_dict(),
            "total_cost": self.total_cost,
            "overrides": self.overrides.to_dict(),
            "warnings": list(self.warnings),
        }


@traced_engine(ENGINE_NAME, ENGINE_VERSION, fingerprint_fields=("item", "rate_card"))
def calculate(item: PanelLettersV1Input, rate_card: RateCard) -> PanelLettersV1Output:
    """
    Price one panel-with-letters item against an explicit rate card.

    Raises:
        MissingRateRowError: a required rate row is absent.
        NoSuitableTransformerError: LED load exceeds every transformer.
    """
    resolved = resolve(item)
    warnings: list[str] = []

    # Panel
    fit = fit_panels(item.width_mm, item.height_mm, item.allowance_mm, parse_sheet_size(item.sheet_size))
    panel_material_cost = fit.panels_needed * rate_card.panel_unit_cost(item.material, item.sheet_size)
    panel_finish_cost = area_cost(
        fit.adjusted_width_mm,
        fit.adjusted_height_mm,
        rate_card.finish_cost_per_m2(item.finish),
    )
    panel_overall_cost = panel_material_cost + panel_finish_cost

    # Aperture
    aperture_leds = 0
    opal_cost = led_cost = aperture_total_cost = None
    if item.aperture is not None:
        ap = item.aperture
        opal_sheets = sheets_for_area(ap.width_mm, ap.height_mm, parse_sheet_size(ap.sheet_size))
        opal_cost = opal_sheets * rate_card.opal_unit_cost(ap.opal_type, ap.sheet_size)
        aperture_leds = aperture_led_count(ap.width_mm, ap.height_mm)
        led_cost = aperture_leds * rate_card.consumable(LED_UNIT_COST_KEY)
        aperture_total_cost = opal_cost + led_cost

    # Letters
    breakdown: list[LetterSetBreakdown] = []
    for letter_set in item.letter_sets:
        unit_price = rate_card.letter_unit_price(
            letter_set.letter_type, letter_set.finish, letter_set.height_mm
        )
        leds = 0
        if item.illumination:
            leds = rate_card.leds_per_letter(letter_set.height_mm) * letter_set.qty
        breakdown.append(LetterSetBreakdown(
            qty=letter_set.qty,
            type=letter_set.letter_type,
            finish=letter_set.finish,
            height_mm=letter_set.height_mm,
            unit_price=unit_price,
            subtotal=unit_price * letter_set.qty,
            leds=leds,
        ))
    letters_total_cost = sum(b.subtotal for b in breakdown)
    letters_total_leds = sum(b.leds for b in breakdown)

    # Illumination
    total_leds = aperture_leds + letters_total_leds
    transformer = None
    transformer_cost = None
    if total_leds > 0:
        selection = select_transformer(
            total_leds, rate_card.transformers_by_capacity(), rate_card.pricing_set_id
        )
        transformer = selection.transformer
        transformer_cost = transformer.unit_cost_pence
        if selection.is_largest:
            warnings.append(
                f"Transformer {transformer.type} is the largest available "
                f"({total_leds} of {transformer.led_capacity} LEDs)"
            )

    # Labour
    labour_lines = tuple(
        LabourLine(task=task, hours=resolved.labour_hours[task], rate_per_hour=rate_card.labour_rate(task))
        for task in LABOUR_TASKS
    )
    labour_cost = round_half_up(sum(
        (line.hours.value * line.rate_per_hour for line in labour_lines),
        Decimal(0),
    ))

    # Markup and total
    materials_base_cost = (
        panel_overall_cost
        + letters_total_cost
        + (transformer_cost or 0)
        + (aperture_total_cost or 0)
    )
    materials_markup_cost = apply_percent(materials_base_cost, resolved.markup_percent.value)

    costs = CostBreakdown(
        panel_material_cost=panel_material_cost,
        panel_finish_cost=panel_finish_cost,
        panel_overall_cost=panel_overall_cost,
        letters_total_cost=letters_total_cost,
        labour_cost=labour_cost,
        materials_base_cost=materials_base_cost,
        materials_markup_cost=materials_markup_cost,
        aperture_opal_cost=opal_cost,
        aperture_led_cost=led_cost,
        aperture_total_cost=aperture_total_cost,
        transformer_cost=transformer_cost,
    )

    return PanelLettersV1Output(
        pricing_set_id=rate_card.pricing_set_id,
        rate_card_checksum=rate_card.checksum,
        derived=DerivedDimensions(
            adjusted_width_mm=fit.adjusted_width_mm,
            adjusted_height_mm=fit.adjusted_height_mm,
            panels_x=fit.panels_x,
            panels_y=fit.panels_y,
            panels_needed=fit.panels_needed,
            area_m2=fit.area_m2,
            aperture_leds=aperture_leds,
            letters_total_leds=letters_total_leds,
            total_leds=total_leds,
        ),
        letter_sets_breakdown=tuple(breakdown),
        labour=labour_lines,
        markup_percent=resolved.markup_percent,
        costs=costs,
        total_cost=sum(costs.line_items().values()),
        transformer=transformer,
        overrides=item.overrides,
        warnings=tuple(warnings),
    )
