"""
Illumination sizing -- LED counts and transformer selection.

Pure functions.  A single transformer powers the whole item: the smallest
one whose LED capacity covers the load.  When none is large enough the
selection fails; it never falls back to the largest available.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from quoter_config.catalog import APERTURE_LED_SPACING_MM
from quoter_config.schema import TransformerSpec
from quoter_kernel.domain.pence import ceil_div
from quoter_kernel.exceptions import MissingRateRowError, NoSuitableTransformerError


def aperture_led_count(width_mm: int, height_mm: int, spacing_mm: int = APERTURE_LED_SPACING_MM) -> int:
    """LEDs laid on a grid at ``spacing_mm`` behind an opal window."""
    return ceil_div(width_mm, spacing_mm) * ceil_div(height_mm, spacing_mm)


@dataclass(frozen=True)
class TransformerSelection:
    transformer: TransformerSpec
    required_leds: int
    is_largest: bool

    @property
    def headroom(self) -> int:
        return self.transformer.led_capacity - self.required_leds


def select_transformer(
    required_leds: int,
    transformers: Sequence[TransformerSpec],
    pricing_set_id: str | None = None,
) -> TransformerSelection:
    """
    Pick the smallest transformer with ``led_capacity >= required_leds``.

    Ties on capacity go to the cheaper unit, then to type name.

    Raises:
        ValueError: if required_leds is not positive.
        MissingRateRowError: if there are no transformers at all.
        NoSuitableTransformerError: if every capacity is too small.
    """
    if required_leds <= 0:
        raise ValueError(f"required_leds must be positive, got {required_leds}")
    if not transformers:
        raise MissingRateRowError("transformers", (), pricing_set_id=pricing_set_id)

    ordered = sorted(transformers, key=lambda t: (t.led_capacity, t.unit_cost_pence, t.type))
    largest = ordered[-1].led_capacity
    for candidate in ordered:
        if candidate.led_capacity >= required_leds:
            return TransformerSelection(
                transformer=candidate,
                required_leds=required_leds,
                is_largest=candidate.led_capacity == largest,
            )

    raise NoSuitableTransformerError(
        required_leds=required_leds,
        max_capacity=largest,
        pricing_set_id=pricing_set_id,
    )
