"""
Hypothesis-based property tests for validation and pricing.

Properties:
- The validator never raises, whatever it is given
- Pricing is deterministic
- total_cost is exactly the sum of its line items, all whole pence
- Overrides take precedence over the input values they replace
- More panel or more letters never costs less
- Panel fitting never undersupplies sheets
"""

from decimal import Decimal
from pathlib import Path

from hypothesis import HealthCheck, given, settings
from hypothesis import strategies as st

import quoter_config
from quoter_config.catalog import DEFAULT_CATALOG, parse_sheet_size
from quoter_config.loader import load_rate_card
from quoter_engines.panel_fitting import fit_panels
from quoter_engines.panel_letters_v1 import calculate
from quoter_engines.validation import validate
from quoter_kernel.domain.pence import apply_percent

RATE_CARD = load_rate_card(Path(quoter_config.__file__).parent / "sets" / "standard_2025" / "rate_card.yaml")
RULES = RATE_CARD.letter_finish_rules

LETTER_COMBOS = sorted(
    (letter_type, finish)
    for letter_type, finishes in RULES.items()
    for finish in finishes
)

PROPERTY_SETTINGS = settings(
    max_examples=100,
    deadline=None,
    suppress_health_check=[HealthCheck.too_slow, HealthCheck.function_scoped_fixture],
)


@st.composite
def letter_sets(draw):
    count = draw(st.integers(min_value=1, max_value=3))
    sets = []
    for _ in range(count):
        letter_type, finish = draw(st.sampled_from(LETTER_COMBOS))
        sets.append({
            "letter_type": letter_type,
            "finish": finish,
            "height_mm": draw(st.sampled_from(DEFAULT_CATALOG.letter_heights)),
            "qty": draw(st.integers(min_value=1, max_value=40)),
        })
    return sets


hours = st.decimals(min_value=0, max_value=40, places=2, allow_nan=False, allow_infinity=False)


@st.composite
def raw_items(draw):
    return {
        "width_mm": draw(st.integers(min_value=50, max_value=10_000)),
        "height_mm": draw(st.integers(min_value=50, max_value=10_000)),
        "allowance_mm": draw(st.integers(min_value=0, max_value=20)),
        "material": draw(st.sampled_from(DEFAULT_CATALOG.materials)),
        "sheet_size": draw(st.sampled_from(DEFAULT_CATALOG.sheet_sizes)),
        "finish": draw(st.sampled_from(DEFAULT_CATALOG.panel_finishes)),
        "letter_sets": draw(letter_sets()),
        "labour_hours": {task: str(draw(hours)) for task in DEFAULT_CATALOG.labour_tasks},
        "markup_percent": str(draw(st.decimals(min_value=0, max_value=100, places=2))),
    }


def _price(raw):
    return calculate(validate(raw, RULES).unwrap(), RATE_CARD)


json_values = st.recursive(
    st.none() | st.booleans() | st.integers() | st.floats() | st.text(max_size=10),
    lambda children: st.lists(children, max_size=4) | st.dictionaries(st.text(max_size=10), children, max_size=4),
    max_leaves=20,
)


class TestValidatorTotality:

    @PROPERTY_SETTINGS
    @given(raw=st.dictionaries(st.text(max_size=15), json_values, max_size=8))
    def test_never_raises_on_arbitrary_input(self, raw):
        result = validate(raw, RULES)

        assert result.is_valid or result.errors

    @PROPERTY_SETTINGS
    @given(raw=raw_items(), field=st.sampled_from(["width_mm", "material", "letter_sets", "markup_percent"]), junk=json_values)
    def test_never_raises_on_corrupted_field(self, raw, field, junk):
        raw[field] = junk

        validate(raw, RULES)


class TestPricingProperties:

    @PROPERTY_SETTINGS
    @given(raw=raw_items())
    def test_deterministic(self, raw):
        assert _price(raw).to_dict() == _price(raw).to_dict()

    @PROPERTY_SETTINGS
    @given(raw=raw_items())
    def test_total_is_sum_of_whole_pence(self, raw):
        output = _price(raw)
        items = output.costs.line_items()

        assert output.total_cost == sum(items.values())
        assert all(isinstance(v, int) and v >= 0 for v in items.values())
        assert output.costs.panel_overall_cost == output.costs.panel_material_cost + output.costs.panel_finish_cost

    @PROPERTY_SETTINGS
    @given(raw=raw_items(), forced=st.decimals(min_value=0, max_value=100, places=1))
    def test_markup_override_wins(self, raw, forced):
        raw["overrides"] = {"markup_percent": {"override": str(forced), "reason_code": "other", "note": "fuzz"}}
        output = _price(raw)

        assert output.markup_percent.value == forced
        assert output.costs.materials_markup_cost == apply_percent(output.costs.materials_base_cost, forced)

    @PROPERTY_SETTINGS
    @given(raw=raw_items(), forced=hours)
    def test_labour_override_wins(self, raw, forced):
        raw["overrides"] = {"labour_hours": {"print": {"override": str(forced), "reason_code": "other", "note": "fuzz"}}}
        output = _price(raw)
        line = next(line for line in output.labour if line.task == "print")

        assert line.hours.value == forced
        assert line.hours.base == Decimal(raw["labour_hours"]["print"])

    @PROPERTY_SETTINGS
    @given(raw=raw_items(), extra=st.integers(min_value=1, max_value=20))
    def test_more_letters_never_cheaper(self, raw, extra):
        base = _price(raw)
        raw["letter_sets"][0]["qty"] += extra
        more = _price(raw)

        assert more.costs.letters_total_cost > base.costs.letters_total_cost
        assert more.total_cost >= base.total_cost

    @PROPERTY_SETTINGS
    @given(raw=raw_items(), extra=st.integers(min_value=1, max_value=2000))
    def test_wider_panel_never_cheaper(self, raw, extra):
        raw["width_mm"] = min(raw["width_mm"], 10_000 - extra)
        base = _price(raw)
        raw["width_mm"] += extra
        wider = _price(raw)

        assert wider.costs.panel_overall_cost >= base.costs.panel_overall_cost


class TestPanelFittingProperties:

    @PROPERTY_SETTINGS
    @given(
        width=st.integers(min_value=1, max_value=10_000),
        height=st.integers(min_value=1, max_value=10_000),
        label=st.sampled_from(DEFAULT_CATALOG.sheet_sizes),
    )
    def test_sheets_cover_panel_without_waste_column(self, width, height, label):
        sheet = parse_sheet_size(label)
        fit = fit_panels(width, height, 0, sheet)

        assert fit.panels_x * sheet.width_mm >= width > (fit.panels_x - 1) * sheet.width_mm
        assert fit.panels_y * sheet.height_mm >= height > (fit.panels_y - 1) * sheet.height_mm
