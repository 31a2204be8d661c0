#!/usr/bin/env python3
"""
Price one panel-letters quote item from a YAML or JSON file.

Usage:
    python scripts/price_item.py ITEM_FILE [--pricing-set ID] [--sets-dir DIR] [--json]

The item file holds the raw quote item (width_mm, height_mm, material,
sheet_size, finish, letter_sets, ...).  Prices against the named pricing
set from the YAML sets directory (default: standard-2025) and prints the
breakdown in pounds, or the full snapshot as JSON with --json.
"""

import argparse
import json
import logging
import sys
from pathlib import Path

# Add project root to path
ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))

from quoter_config.loader import load_yaml_file
from quoter_kernel.exceptions import InputValidationError, QuoterError
from quoter_kernel.logging_config import configure_logging
from quoter_services.quote_pricing_service import QuotePricingService
from quoter_services.rate_card_repository import DirectoryRateCardRepository


def _pounds(pence):
    if pence is None:
        return "-"
    return f"£{pence / 100:,.2f}"


def _print_breakdown(snapshot):
    out = snapshot.output
    d = out.derived
    c = out.costs
    print(f"Pricing set: {out.pricing_set_id} ({out.rate_card_checksum[:12]})")
    print(
        f"Panel: {d.adjusted_width_mm} x {d.adjusted_height_mm}mm, "
        f"{d.panels_x} x {d.panels_y} = {d.panels_needed} sheet(s), {d.area_m2} m2"
    )
    print(f"  panel material      {_pounds(c.panel_material_cost):>12}")
    print(f"  panel finish        {_pounds(c.panel_finish_cost):>12}")
    print(f"  aperture            {_pounds(c.aperture_total_cost):>12}")
    for b in out.letter_sets_breakdown:
        print(f"  {b.qty} x {b.type} {b.finish} {b.height_mm}mm @ {_pounds(b.unit_price)}"
              f" = {_pounds(b.subtotal)}")
    print(f"  letters             {_pounds(c.letters_total_cost):>12}")
    if out.transformer is not None:
        print(f"  transformer {out.transformer.type:<7} {_pounds(c.transformer_cost):>12}"
              f"  ({d.total_leds} LEDs)")
    print(f"  labour              {_pounds(c.labour_cost):>12}")
    flag = " (override)" if out.markup_percent.is_overridden else ""
    print(f"  markup {out.markup_percent.value}%{flag:<11} {_pounds(c.materials_markup_cost):>12}")
    print(f"  TOTAL               {_pounds(out.total_cost):>12}")
    for w in out.warnings:
        print(f"WARNING: {w}")


def main(argv=None):
    parser = argparse.ArgumentParser(description="Price a panel-letters quote item.")
    parser.add_argument("item_file", type=Path)
    parser.add_argument("--pricing-set", default="standard-2025")
    parser.add_argument("--sets-dir", type=Path, default=None)
    parser.add_argument("--json", action="store_true", help="print the full snapshot as JSON")
    parser.add_argument("--verbose", action="store_true", help="emit structured logs to stderr")
    args = parser.parse_args(argv)

    if args.verbose:
        configure_logging(level=logging.DEBUG)

    raw = load_yaml_file(args.item_file)
    service = QuotePricingService(DirectoryRateCardRepository(args.sets_dir))

    try:
        snapshot = service.price_item(raw, args.pricing_set)
    except InputValidationError as exc:
        print("Invalid quote item:", file=sys.stderr)
        for err in exc.errors:
            print(f"  {err}", file=sys.stderr)
        return 2
    except QuoterError as exc:
        print(f"Error [{exc.code}]: {exc}", file=sys.stderr)
        return 1

    if args.json:
        print(json.dumps(snapshot.to_dict(), indent=2, sort_keys=True))
    else:
        _print_breakdown(snapshot)
    return 0


if __name__ == "__main__":
    sys.exit(main())
