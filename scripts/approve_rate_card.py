#!/usr/bin/env python3
"""
Approve a rate card set by writing its checksum to APPROVED_FINGERPRINT.

Usage:
    python scripts/approve_rate_card.py [pricing_set_directory]

If no directory is given, defaults to
quoter_config/sets/standard_2025/

The script:
  1. Loads and parses rate_card.yaml from the directory
  2. Checks completeness against the option catalog
  3. Writes the rate card checksum to APPROVED_FINGERPRINT

Changing any rate row without re-running approval will cause
get_rate_card() to raise RateCardIntegrityError.
"""

import sys
from pathlib import Path

# Add project root to path
ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))

from quoter_config import RATE_CARD_FILENAME
from quoter_config.completeness import check_completeness
from quoter_config.integrity import write_pinned_fingerprint
from quoter_config.loader import load_rate_card


def approve(set_dir: Path) -> str:
    """Load, check completeness, and write the pin file.

    Returns the checksum that was written.
    """
    print(f"Loading rate card from: {set_dir}")
    rate_card = load_rate_card(set_dir / RATE_CARD_FILENAME)
    print(f"  pricing_set_id: {rate_card.pricing_set_id}")
    print(f"  name:           {rate_card.name}")
    for table, count in rate_card.row_counts().items():
        print(f"  {table:<22} {count} row(s)")

    print("Checking completeness...")
    result = check_completeness(rate_card)
    if not result.ok:
        print("INCOMPLETE:")
        for missing in result.missing:
            print(f"  MISSING: {missing}")
        sys.exit(1)
    for w in result.warnings:
        print(f"  WARNING: {w}")

    pin_path = write_pinned_fingerprint(set_dir, rate_card.checksum)
    print(f"  checksum: {rate_card.checksum}")
    print(f"Wrote {pin_path}")
    return rate_card.checksum


def main():
    if len(sys.argv) > 1:
        target = Path(sys.argv[1])
    else:
        target = ROOT / "quoter_config" / "sets" / "standard_2025"

    if not target.is_dir():
        print(f"Error: directory not found: {target}", file=sys.stderr)
        sys.exit(1)

    approve(target)
    print("Done. Rate card is now pinned.")


if __name__ == "__main__":
    main()
