"""
Panel fitting -- how many standard sheets cover a panel.

Sheets are laid on a grid in their catalog orientation (no rotation) and
the count always rounds up; material is never undersupplied.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from quoter_config.catalog import SheetSize
from quoter_kernel.domain.pence import area_m2, ceil_div


@dataclass(frozen=True)
class PanelFit:
    """Result of fitting a panel onto standard sheets."""

    adjusted_width_mm: int
    adjusted_height_mm: int
    panels_x: int
    panels_y: int

    @property
    def panels_needed(self) -> int:
        return self.panels_x * self.panels_y

    @property
    def area_m2(self) -> Decimal:
        return area_m2(self.adjusted_width_mm, self.adjusted_height_mm)


def fit_panels(width_mm: int, height_mm: int, allowance_mm: int, sheet: SheetSize) -> PanelFit:
    """
    Fit a panel, reduced by ``allowance_mm`` on every edge, onto sheets.

    Raises:
        ValueError: if the adjusted dimensions are not positive.
    """
    adjusted_w = width_mm - 2 * allowance_mm
    adjusted_h = height_mm - 2 * allowance_mm
    if adjusted_w <= 0 or adjusted_h <= 0:
        raise ValueError(
            f"Adjusted panel {adjusted_w}x{adjusted_h}mm is not positive "
            f"(allowance {allowance_mm}mm)"
        )
    return PanelFit(
        adjusted_width_mm=adjusted_w,
        adjusted_height_mm=adjusted_h,
        panels_x=ceil_div(adjusted_w, sheet.width_mm),
        panels_y=ceil_div(adjusted_h, sheet.height_mm),
    )


def sheets_for_area(width_mm: int, height_mm: int, sheet: SheetSize) -> int:
    """Whole sheets needed to cover an area, by area rather than by grid."""
    return ceil_div(width_mm * height_mm, sheet.area_mm2)
