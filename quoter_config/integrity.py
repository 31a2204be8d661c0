"""
Rate Card Integrity -- fingerprint pinning for approved pricing sets.

When a pricing set directory contains an APPROVED_FINGERPRINT file, the
rate card checksum must match the pinned value.  This prevents
unauthorized or accidental edits to an approved rate card.

The pin file is a single line: the SHA-256 hex string of
``RateCard.checksum``.

If no APPROVED_FINGERPRINT file exists, the check is skipped
(draft/dev workflow).
"""

from __future__ import annotations

from pathlib import Path

from quoter_kernel.exceptions import RateCardIntegrityError

PINFILE_NAME = "APPROVED_FINGERPRINT"


def read_pinned_fingerprint(set_dir: Path) -> str | None:
    """Read the APPROVED_FINGERPRINT file from a pricing set directory.

    Returns:
        The pinned SHA-256 hex string, or None if no pin file exists.
    """
    pin_path = set_dir / PINFILE_NAME
    if not pin_path.is_file():
        return None
    return pin_path.read_text().strip()


def write_pinned_fingerprint(set_dir: Path, checksum: str) -> Path:
    """Write (or overwrite) the pin file and return its path."""
    pin_path = set_dir / PINFILE_NAME
    pin_path.write_text(checksum + "\n")
    return pin_path


def verify_fingerprint_pin(
    pricing_set_id: str,
    checksum: str,
    set_dir: Path,
) -> None:
    """Verify that the rate card checksum matches the pin file.

    No-op if no APPROVED_FINGERPRINT file exists (draft/dev mode).

    Raises:
        RateCardIntegrityError: If pin exists and checksum does not match.
    """
    pinned = read_pinned_fingerprint(set_dir)
    if pinned is None:
        return

    if checksum != pinned:
        raise RateCardIntegrityError(
            pricing_set_id=pricing_set_id,
            expected=pinned,
            actual=checksum,
            pin_path=set_dir / PINFILE_NAME,
        )
