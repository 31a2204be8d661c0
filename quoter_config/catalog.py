"""
Option catalog -- the closed set of options a quote item may select.

The catalog is what the UI offers and what a rate card must be able to
price.  It drives two things:

* the input validator (sheet sizes, letter types and heights are checked
  against it before any rate card lookup), and
* the completeness checker (every combination in the catalog must have a
  rate row before a pricing set may be activated).

Sheet sizes are labelled in metres ("2.4 x 1.2") and parsed exactly to
millimetres; no floats are involved.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation

MAX_PANEL_DIMENSION_MM = 10_000
MIN_LETTER_HEIGHT_MM = 50
MAX_LETTER_HEIGHT_MM = 1_000
MAX_LETTER_SETS = 3
MAX_LETTER_QTY = 10_000
MAX_LABOUR_HOURS = 1_000
APERTURE_LED_SPACING_MM = 200
LED_UNIT_COST_KEY = "led_unit_cost"
DEFAULT_OPAL_SHEET_SIZE = "2.4 x 1.2"

# Labour task names, in the order they are reported.
LABOUR_TASKS: tuple[str, ...] = ("router", "fabrication", "assembly", "vinyl", "print")

_SHEET_SIZE_RE = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*x\s*(\d+(?:\.\d+)?)\s*$")
_MM_PER_M = Decimal(1000)


@dataclass(frozen=True)
class SheetSize:
    """A standard manufacturing sheet, labelled in metres."""

    label: str
    width_mm: int
    height_mm: int

    @property
    def area_mm2(self) -> int:
        return self.width_mm * self.height_mm


def _metres_to_mm(text: str, label: str) -> int:
    try:
        mm = Decimal(text) * _MM_PER_M
    except InvalidOperation as exc:
        raise ValueError(f"Invalid sheet size {label!r}") from exc
    if mm != mm.to_integral_value() or mm <= 0:
        raise ValueError(f"Sheet size {label!r} is not a whole, positive number of mm")
    return int(mm)


def parse_sheet_size(label: str) -> SheetSize:
    """
    Parse a sheet size label such as ``"2.4 x 1.2"`` into millimetres.

    Raises:
        ValueError: if the label is not ``<metres> x <metres>``.
    """
    match = _SHEET_SIZE_RE.match(label)
    if match is None:
        raise ValueError(f"Invalid sheet size {label!r}; expected e.g. '2.4 x 1.2'")
    return SheetSize(
        label=label,
        width_mm=_metres_to_mm(match.group(1), label),
        height_mm=_metres_to_mm(match.group(2), label),
    )


@dataclass(frozen=True)
class OptionCatalog:
    """
    The option combinations a complete rate card must cover.

    Guarantees:
        - All members are tuples, in display order.
        - sheet_sizes and opal_sheet_sizes parse with parse_sheet_size().
    """

    materials: tuple[str, ...]
    sheet_sizes: tuple[str, ...]
    panel_finishes: tuple[str, ...]
    letter_types: tuple[str, ...]
    letter_heights: tuple[int, ...]
    opal_types: tuple[str, ...]
    opal_sheet_sizes: tuple[str, ...]
    transformer_types: tuple[str, ...]
    labour_tasks: tuple[str, ...] = LABOUR_TASKS
    consumables: tuple[str, ...] = (LED_UNIT_COST_KEY,)


DEFAULT_CATALOG = OptionCatalog(
    materials=("Aluminium 2.5mm", "Aluminium 3mm"),
    sheet_sizes=("2.4 x 1.2", "3 x 1.5"),
    panel_finishes=("Powder Coating", "Wet Spray", "Vinyl Wrap"),
    letter_types=("Fabricated", "Komacel", "Acrylic"),
    letter_heights=(50, 100, 150, 200, 250, 300, 350, 400, 450, 500, 600, 700, 800, 900, 1000),
    opal_types=("Opal (5mm)", "Opal (10mm)"),
    opal_sheet_sizes=(DEFAULT_OPAL_SHEET_SIZE,),
    transformer_types=("20W", "60W", "100W", "150W"),
)
