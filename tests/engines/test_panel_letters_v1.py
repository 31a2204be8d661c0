"""
Tests for the panel-letters v1 pricing engine.

Covers:
- The reference scenario, field by field
- Illumination and transformer selection
- Apertures, allowances and multi-sheet panels
- Rounding of finish, labour and markup
- Overrides (markup and labour hours)
- Missing rate rows, each named exactly
"""

from decimal import Decimal

import pytest

from quoter_engines.panel_letters_v1 import ITEM_TYPE, calculate
from quoter_engines.validation import validate
from quoter_kernel.exceptions import MissingRateRowError, NoSuitableTransformerError


def _item(raw, rate_card):
    return validate(raw, rate_card.letter_finish_rules).unwrap()


def _with(raw, **changes):
    data = dict(raw)
    data.update(changes)
    return data


class TestReferenceScenario:
    """1200x600 powder-coated panel with five 200mm fabricated letters."""

    def test_panels_and_area(self, scenario_item, rate_card):
        output = calculate(_item(scenario_item, rate_card), rate_card)

        assert output.derived.adjusted_width_mm == 1200
        assert output.derived.adjusted_height_mm == 600
        assert output.derived.panels_needed == 1
        assert output.derived.area_m2 == Decimal("0.72")

    def test_cost_components(self, scenario_item, rate_card):
        output = calculate(_item(scenario_item, rate_card), rate_card)
        costs = output.costs

        assert costs.panel_material_cost == 9500
        assert costs.panel_finish_cost == 1800  # 0.72 m2 x 2500
        assert costs.panel_overall_cost == 11300
        assert costs.letters_total_cost == 5 * 4000
        assert costs.labour_cost == 4500 + 2 * 5000 + 4000
        assert costs.materials_base_cost == 31300
        assert costs.materials_markup_cost == 6260

    def test_total(self, scenario_item, rate_card):
        output = calculate(_item(scenario_item, rate_card), rate_card)

        assert output.total_cost == 56060
        assert output.total_cost == sum(output.costs.line_items().values())

    def test_no_transformer_without_illumination(self, scenario_item, rate_card):
        output = calculate(_item(scenario_item, rate_card), rate_card)

        assert output.transformer is None
        assert output.costs.transformer_cost is None
        assert output.costs.aperture_total_cost is None
        assert output.derived.total_leds == 0
        assert output.warnings == ()

    def test_letter_breakdown_recorded_verbatim(self, scenario_item, rate_card):
        output = calculate(_item(scenario_item, rate_card), rate_card)

        (line,) = output.letter_sets_breakdown
        assert line.qty == 5
        assert line.type == "Fabricated"
        assert line.finish == "Powder Coating"
        assert line.height_mm == 200
        assert line.unit_price == 4000
        assert line.subtotal == 20000

    def test_short_type_key_and_explicit_zero_hours(self, scenario_item, rate_card):
        raw = _with(
            scenario_item,
            letter_sets=[{"type": "Fabricated", "finish": "Powder Coating", "height_mm": 200, "qty": 5}],
            labour_hours={"router": 1, "fabrication": 2, "assembly": 1, "vinyl": 0, "print": 0},
        )

        assert calculate(_item(raw, rate_card), rate_card).total_cost == 56060

    def test_output_carries_rate_card_identity(self, scenario_item, rate_card):
        output = calculate(_item(scenario_item, rate_card), rate_card)

        assert output.pricing_set_id == "standard-2025"
        assert output.rate_card_checksum == rate_card.checksum

    def test_to_dict_is_json_safe(self, scenario_item, rate_card):
        data = calculate(_item(scenario_item, rate_card), rate_card).to_dict()

        assert data["item_type"] == ITEM_TYPE
        assert data["total_cost"] == 56060
        assert data["derived"]["area_m2"] == "0.72"
        assert data["costs"]["transformer_cost"] is None
        assert all(isinstance(v, int) for v in data["costs"].values() if v is not None)

    def test_deterministic(self, scenario_item, rate_card):
        item = _item(scenario_item, rate_card)

        assert calculate(item, rate_card).to_dict() == calculate(item, rate_card).to_dict()


class TestMultipleLetterSets:

    def test_sets_summed(self, scenario_item, rate_card):
        raw = _with(scenario_item, letter_sets=[
            {"letter_type": "Fabricated", "finish": "Powder Coating", "height_mm": 200, "qty": 5},
            {"letter_type": "Komacel", "finish": "Painted", "height_mm": 100, "text": "OPEN NOW"},
        ])
        output = calculate(_item(raw, rate_card), rate_card)

        assert [b.subtotal for b in output.letter_sets_breakdown] == [20000, 7 * 1200]
        assert output.costs.letters_total_cost == 28400
        assert output.costs.materials_base_cost == 11300 + 28400


class TestIllumination:

    def test_letters_select_smallest_transformer(self, scenario_item, rate_card):
        output = calculate(_item(_with(scenario_item, illumination=True), rate_card), rate_card)

        # 5 letters x 5 LEDs at 200mm
        assert output.derived.letters_total_leds == 25
        assert output.transformer.type == "60W"
        assert output.costs.transformer_cost == 2500
        assert output.costs.materials_base_cost == 31300 + 2500
        assert output.costs.materials_markup_cost == 6760
        assert output.total_cost == 11300 + 2500 + 20000 + 18500 + 6760

    def test_85_leds_selects_100w_not_60w(self, scenario_item, make_card):
        card = make_card(transformers=[
            {"type": "20W", "led_capacity": 40, "unit_cost_pence": 1500},
            {"type": "60W", "led_capacity": 80, "unit_cost_pence": 2500},
            {"type": "100W", "led_capacity": 120, "unit_cost_pence": 3500},
        ])
        raw = _with(
            scenario_item,
            illumination=True,
            letter_sets=[{"letter_type": "Fabricated", "finish": "Powder Coating", "height_mm": 200, "qty": 17}],
        )
        output = calculate(_item(raw, card), card)

        assert output.derived.total_leds == 85
        assert output.transformer.type == "100W"
        assert output.costs.transformer_cost == 3500

    def test_load_beyond_every_transformer_fails(self, scenario_item, rate_card):
        raw = _with(
            scenario_item,
            illumination=True,
            letter_sets=[{"letter_type": "Fabricated", "finish": "Powder Coating", "height_mm": 1000, "qty": 5}],
        )

        with pytest.raises(NoSuitableTransformerError) as exc_info:
            calculate(_item(raw, rate_card), rate_card)

        assert exc_info.value.required_leds == 180
        assert exc_info.value.max_capacity == 150

    def test_largest_transformer_warns(self, scenario_item, rate_card):
        raw = _with(
            scenario_item,
            illumination=True,
            letter_sets=[{"letter_type": "Fabricated", "finish": "Powder Coating", "height_mm": 1000, "qty": 4}],
        )
        output = calculate(_item(raw, rate_card), rate_card)

        assert output.transformer.type == "150W"
        assert len(output.warnings) == 1
        assert "largest" in output.warnings[0]

    def test_unlit_item_needs_no_led_tables(self, scenario_item, make_card):
        card = make_card(illumination_profiles=[], transformers=[])

        assert calculate(_item(scenario_item, card), card).total_cost == 56060


class TestAperture:

    def test_opal_and_leds_priced(self, scenario_item, rate_card):
        raw = _with(scenario_item, aperture={"width_mm": 400, "height_mm": 300, "opal_type": "Opal (5mm)"})
        output = calculate(_item(raw, rate_card), rate_card)
        costs = output.costs

        assert costs.aperture_opal_cost == 6500
        assert output.derived.aperture_leds == 4  # 2 x 2 at 200mm spacing
        assert costs.aperture_led_cost == 4 * 50
        assert costs.aperture_total_cost == 6700

    def test_aperture_leds_load_transformer_and_markup(self, scenario_item, rate_card):
        raw = _with(scenario_item, aperture={"width_mm": 400, "height_mm": 300, "opal_type": "Opal (5mm)"})
        output = calculate(_item(raw, rate_card), rate_card)

        assert output.transformer.type == "20W"
        assert output.costs.materials_base_cost == 31300 + 6700 + 1500
        assert output.costs.materials_markup_cost == 7900
        assert output.total_cost == 65900


class TestPanelFitting:

    def test_multi_sheet_panel(self, scenario_item, rate_card):
        raw = _with(scenario_item, width_mm=3000, height_mm=1500)
        output = calculate(_item(raw, rate_card), rate_card)

        assert (output.derived.panels_x, output.derived.panels_y) == (2, 2)
        assert output.costs.panel_material_cost == 4 * 9500
        assert output.costs.panel_finish_cost == 11250  # 4.5 m2 x 2500

    def test_allowance_reduces_sheets(self, scenario_item, rate_card):
        without = calculate(_item(_with(scenario_item, width_mm=2420, height_mm=1200), rate_card), rate_card)
        with_allowance = calculate(
            _item(_with(scenario_item, width_mm=2420, height_mm=1200, allowance_mm=10), rate_card),
            rate_card,
        )

        assert without.derived.panels_needed == 2
        assert with_allowance.derived.panels_needed == 1
        assert with_allowance.derived.adjusted_width_mm == 2400
        assert with_allowance.derived.adjusted_height_mm == 1180


class TestRounding:

    def test_finish_cost_rounded_once(self, scenario_item, rate_card):
        raw = _with(scenario_item, width_mm=1234, height_mm=567)
        output = calculate(_item(raw, rate_card), rate_card)

        # 0.699678 m2 x 2500 = 1749.195
        assert output.costs.panel_finish_cost == 1749

    def test_labour_half_pence_rounds_up(self, scenario_item, rate_card):
        raw = _with(scenario_item, labour_hours={"router": "0.333"})
        output = calculate(_item(raw, rate_card), rate_card)

        # 0.333 x 4500 = 1498.5
        assert output.costs.labour_cost == 1499

    def test_markup_half_pence_rounds_up(self, scenario_item, rate_card):
        output = calculate(_item(_with(scenario_item, markup_percent="12.5"), rate_card), rate_card)

        # 31300 x 12.5% = 3912.5
        assert output.costs.materials_markup_cost == 3913

    def test_labour_not_marked_up(self, scenario_item, rate_card):
        cheap = calculate(_item(_with(scenario_item, labour_hours={}), rate_card), rate_card)
        dear = calculate(_item(scenario_item, rate_card), rate_card)

        assert cheap.costs.materials_markup_cost == dear.costs.materials_markup_cost
        assert dear.total_cost - cheap.total_cost == 18500


class TestOverrides:

    def test_markup_override_used_and_reported(self, scenario_item, rate_card):
        raw = _with(scenario_item, overrides={
            "markup_percent": {"override": 10, "reason_code": "customer_discount", "note": "repeat customer"},
        })
        output = calculate(_item(raw, rate_card), rate_card)

        assert output.costs.materials_markup_cost == 3130
        assert output.markup_percent.base == Decimal("20")
        assert output.markup_percent.value == Decimal("10")
        assert output.has_overrides
        assert output.to_dict()["markup_percent"]["overridden"] is True

    def test_labour_override_used_and_reported(self, scenario_item, rate_card):
        raw = _with(scenario_item, overrides={
            "labour_hours": {
                "fabrication": {"override": 3, "original": 2, "reason_code": "rework", "note": "weld redo"},
            },
        })
        output = calculate(_item(raw, rate_card), rate_card)
        fabrication = next(line for line in output.labour if line.task == "fabrication")

        assert output.costs.labour_cost == 4500 + 3 * 5000 + 4000
        assert fabrication.hours.base == Decimal("2")
        assert fabrication.hours.value == Decimal("3")
        assert fabrication.hours.is_overridden
        assert output.total_cost == 56060 + 5000

    def test_no_overrides(self, scenario_item, rate_card):
        output = calculate(_item(scenario_item, rate_card), rate_card)

        assert not output.has_overrides
        assert output.overrides.is_empty


class TestInputBounds:

    def test_largest_valid_item_prices_exactly(self, scenario_item, rate_card):
        letters = {"letter_type": "Fabricated", "finish": "Powder Coating", "height_mm": 1000, "qty": 10_000}
        raw = _with(
            scenario_item,
            width_mm=10_000,
            height_mm=10_000,
            letter_sets=[letters, dict(letters), dict(letters)],
            labour_hours={task: 1000 for task in ("router", "fabrication", "assembly", "vinyl", "print")},
            markup_percent=100,
            overrides={"labour_hours": {"print": {"override": 1000, "reason_code": "rework", "note": "max"}}},
        )

        output = calculate(_item(raw, rate_card), rate_card)

        # 5 x 9 sheets of 2.4 x 1.2
        assert output.derived.panels_needed == 45
        assert output.costs.letters_total_cost == 3 * 10_000 * 24000
        assert output.costs.labour_cost == 1000 * (4500 + 5000 + 4000 + 3500 + 6000)
        assert output.costs.materials_markup_cost == output.costs.materials_base_cost
        assert output.total_cost == sum(output.costs.line_items().values())


SCENARIO_ROWS = [
    ("panel_prices", ("Aluminium 3mm", "2.4 x 1.2"), lambda r: r["material"] == "Aluminium 3mm" and r["sheet_size"] == "2.4 x 1.2"),
    ("panel_finishes", ("Powder Coating",), lambda r: r["finish"] == "Powder Coating"),
    ("letter_prices", ("Fabricated", "Powder Coating", 200), lambda r: (r["letter_type"], r["finish"], r["height_mm"]) == ("Fabricated", "Powder Coating", 200)),
    ("manufacturing_rates", ("router",), lambda r: r["task"] == "router"),
    ("manufacturing_rates", ("fabrication",), lambda r: r["task"] == "fabrication"),
    ("manufacturing_rates", ("assembly",), lambda r: r["task"] == "assembly"),
    ("manufacturing_rates", ("vinyl",), lambda r: r["task"] == "vinyl"),
    ("manufacturing_rates", ("print",), lambda r: r["task"] == "print"),
]


class TestMissingRateRows:
    """Removing any required row fails with an error naming exactly that row."""

    @pytest.mark.parametrize(
        "table,key,predicate",
        SCENARIO_ROWS,
        ids=[f"{t}-{'-'.join(map(str, k))}" for t, k, _ in SCENARIO_ROWS],
    )
    def test_scenario_row_removed(self, scenario_item, rate_card, make_card, table, key, predicate):
        item = _item(scenario_item, rate_card)
        card = make_card(drop=(table, predicate))

        with pytest.raises(MissingRateRowError) as exc_info:
            calculate(item, card)

        assert exc_info.value.table == table
        assert exc_info.value.key == key
        assert exc_info.value.pricing_set_id == "standard-2025"

    def test_illumination_profile_removed(self, scenario_item, rate_card, make_card):
        item = _item(_with(scenario_item, illumination=True), rate_card)
        card = make_card(drop=("illumination_profiles", lambda r: r["height_mm"] == 200))

        with pytest.raises(MissingRateRowError) as exc_info:
            calculate(item, card)

        assert exc_info.value.row_ref == "illumination_profiles[200]"

    def test_all_transformers_removed(self, scenario_item, rate_card, make_card):
        item = _item(_with(scenario_item, illumination=True), rate_card)
        card = make_card(transformers=[])

        with pytest.raises(MissingRateRowError) as exc_info:
            calculate(item, card)

        assert exc_info.value.table == "transformers"

    def test_opal_price_removed(self, scenario_item, rate_card, make_card):
        raw = _with(scenario_item, aperture={"width_mm": 400, "height_mm": 300, "opal_type": "Opal (10mm)"})
        item = _item(raw, rate_card)
        card = make_card(drop=("opal_prices", lambda r: r["opal_type"] == "Opal (10mm)"))

        with pytest.raises(MissingRateRowError) as exc_info:
            calculate(item, card)

        assert exc_info.value.key == ("Opal (10mm)", "2.4 x 1.2")

    def test_led_unit_cost_removed(self, scenario_item, rate_card, make_card):
        raw = _with(scenario_item, aperture={"width_mm": 400, "height_mm": 300, "opal_type": "Opal (5mm)"})
        item = _item(raw, rate_card)
        card = make_card(consumables=[])

        with pytest.raises(MissingRateRowError) as exc_info:
            calculate(item, card)

        assert exc_info.value.row_ref == "consumables[led_unit_cost]"
