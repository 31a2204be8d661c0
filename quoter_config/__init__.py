"""
quoter_config -- rate card contract and the YAML directory entrypoint.

Responsibility:
    Owns the typed ``RateCard`` contract, the option catalog, the
    completeness check that gates activation, the pricing set lifecycle
    rules and fingerprint pinning.  ``get_rate_card()`` loads a pricing
    set from a directory of YAML rate cards.

Architecture position:
    Configuration -- sits above ``quoter_kernel`` and below
    ``quoter_engines`` / ``quoter_services``.  The kernel MUST NEVER
    import from ``quoter_config``.

Invariants enforced:
    - The engine never resolves "the current" rate card; callers always
      name the pricing set they want.
    - Fingerprint pinning: when an APPROVED_FINGERPRINT file exists, the
      rate card checksum must match the pinned value.

Failure modes:
    - ``RateCardNotFoundError`` -- no set in the directory has that id.
    - ``RateCardSchemaError`` -- the YAML content is malformed.
    - ``RateCardIntegrityError`` -- checksum does not match the pin file.

Audit relevance:
    Every successful ``get_rate_card()`` call emits a
    ``QUOTER_RATE_CARD_TRACE`` log entry with the pricing set id,
    checksum and row counts.
"""

from __future__ import annotations

from pathlib import Path

from quoter_config.catalog import DEFAULT_CATALOG, OptionCatalog, SheetSize, parse_sheet_size
from quoter_config.completeness import CompletenessResult, check_completeness
from quoter_config.integrity import verify_fingerprint_pin
from quoter_config.lifecycle import PricingSetStatus
from quoter_config.loader import load_yaml_file, parse_rate_card
from quoter_config.schema import RateCard, TransformerSpec
from quoter_kernel.exceptions import RateCardNotFoundError
from quoter_kernel.logging_config import get_logger

_logger = get_logger("config")

RATE_CARD_FILENAME = "rate_card.yaml"

# Default pricing sets directory
_DEFAULT_CONFIG_DIR = Path(__file__).parent / "sets"


def find_pricing_sets(config_dir: Path | None = None) -> dict[str, Path]:
    """Map pricing set id -> set directory for every rate card under config_dir."""
    sets_dir = config_dir or _DEFAULT_CONFIG_DIR
    found: dict[str, Path] = {}
    if not sets_dir.is_dir():
        return found
    for set_dir in sorted(sets_dir.iterdir()):
        card_path = set_dir / RATE_CARD_FILENAME
        if not card_path.is_file():
            continue
        data = load_yaml_file(card_path)
        pricing_set_id = data.get("pricing_set_id")
        if isinstance(pricing_set_id, str) and pricing_set_id:
            found.setdefault(pricing_set_id, set_dir)
    return found


def get_rate_card(
    pricing_set_id: str,
    config_dir: Path | None = None,
) -> RateCard:
    """Load the rate card for one pricing set from a YAML directory.

    Postconditions:
        - Returns a frozen ``RateCard`` whose ``pricing_set_id`` matches.
        - If an APPROVED_FINGERPRINT file exists, the checksum has been
          verified against it.

    Args:
        pricing_set_id: Identifier declared in the set's rate_card.yaml.
        config_dir: Override path to the pricing sets directory.
            Defaults to quoter_config/sets/.

    Raises:
        RateCardNotFoundError: If no set declares that id.
        RateCardSchemaError: If the rate card is malformed.
        RateCardIntegrityError: If the pin file does not match.
    """
    sets = find_pricing_sets(config_dir)
    set_dir = sets.get(pricing_set_id)
    if set_dir is None:
        raise RateCardNotFoundError(pricing_set_id)

    rate_card = parse_rate_card(load_yaml_file(set_dir / RATE_CARD_FILENAME))

    verify_fingerprint_pin(rate_card.pricing_set_id, rate_card.checksum, set_dir)

    _logger.info(
        "QUOTER_RATE_CARD_TRACE",
        extra={
            "trace_type": "QUOTER_RATE_CARD_TRACE",
            "pricing_set_id": rate_card.pricing_set_id,
            "pricing_set_name": rate_card.name,
            "checksum": rate_card.checksum,
            "row_counts": rate_card.row_counts(),
            "source": str(set_dir),
        },
    )

    return rate_card


__all__ = [
    "get_rate_card",
    "find_pricing_sets",
    "RATE_CARD_FILENAME",
    "RateCard",
    "TransformerSpec",
    "OptionCatalog",
    "DEFAULT_CATALOG",
    "SheetSize",
    "parse_sheet_size",
    "CompletenessResult",
    "check_completeness",
    "PricingSetStatus",
]
