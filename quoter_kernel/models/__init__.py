"""ORM models for pricing sets and their rate tables."""

from quoter_kernel.models.pricing_set import PricingSet
from quoter_kernel.models.rate_rows import (
    ConsumableRow,
    IlluminationProfileRow,
    LetterFinishRuleRow,
    LetterPriceRow,
    ManufacturingRateRow,
    OpalPriceRow,
    PanelFinishRow,
    PanelPriceRow,
    TransformerRow,
)

# Rate table name -> row model.  Names match the rate card YAML tables.
RATE_ROW_MODELS = {
    "panel_prices": PanelPriceRow,
    "panel_finishes": PanelFinishRow,
    "manufacturing_rates": ManufacturingRateRow,
    "illumination_profiles": IlluminationProfileRow,
    "transformers": TransformerRow,
    "opal_prices": OpalPriceRow,
    "consumables": ConsumableRow,
    "letter_finish_rules": LetterFinishRuleRow,
    "letter_prices": LetterPriceRow,
}

__all__ = [
    "PricingSet",
    "PanelPriceRow",
    "PanelFinishRow",
    "ManufacturingRateRow",
    "IlluminationProfileRow",
    "TransformerRow",
    "OpalPriceRow",
    "ConsumableRow",
    "LetterFinishRuleRow",
    "LetterPriceRow",
    "RATE_ROW_MODELS",
]
