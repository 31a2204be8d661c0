"""
Typed Exception Hierarchy for the Quoter.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

A quote that fails to price must tell the caller *why* in a way a program
can act on. "Add this missing price row" and "add a larger transformer"
are different remediations, and the admin UI needs to tell them apart
without parsing message strings.

Every exception here:
  1. Has a TYPED class (catch by type, not message)
  2. Has a CODE class attribute (machine-readable, API-safe)
  3. Carries structured DATA as attributes (table, key, counts, ids)

Example:
    try:
        output = calculate(item, rate_card)
    except MissingRateRowError as e:
        api_response(code=e.code, table=e.table, key=e.key)
    except NoSuitableTransformerError as e:
        api_response(code=e.code, required=e.required_leds)

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    QuoterError (base)
    |
    +-- InputValidationError
    |
    +-- RateCardError
    |   +-- MissingRateRowError
    |   +-- RateCardNotFoundError
    |   +-- RateCardSchemaError
    |   +-- RateCardIntegrityError
    |
    +-- DomainConstraintError
    |   +-- NoSuitableTransformerError
    |
    +-- PricingSetError
    |   +-- PricingSetNotFoundError
    |   +-- InvalidStatusTransitionError
    |   +-- PricingSetNotEditableError
    |   +-- RateCardIncompleteError
    |
    +-- QuoteError
        +-- PricingSetMismatchError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category        | Code                          | When Raised
----------------|-------------------------------|-----------------------------------
Validation      | validation_failed             | Raw quote item input is malformed
----------------|-------------------------------|-----------------------------------
Rate card       | missing_rate_row              | Engine lookup found no row
                | rate_card_not_found           | No rate card for pricing set id
                | invalid_rate_card             | Unknown/duplicate/malformed rows
                | rate_card_integrity_mismatch  | Checksum differs from pin file
----------------|-------------------------------|-----------------------------------
Domain          | no_suitable_transformer       | LED load exceeds every transformer
----------------|-------------------------------|-----------------------------------
Pricing set     | pricing_set_not_found         | Pricing set id doesn't exist
                | invalid_status_transition     | e.g. archived -> active
                | pricing_set_not_editable      | Editing rows of a non-draft set
                | rate_card_incomplete          | Activation blocked by gaps
----------------|-------------------------------|-----------------------------------
Quote           | pricing_set_mismatch          | Item priced on another set

===============================================================================
DESIGN DECISIONS
===============================================================================

1. Inherit from Exception, not ValueError/KeyError. Domain errors are
   catchable as a group and never confused with programming errors.

2. ``code`` is a class attribute. It is static per type, readable without
   an instance, and serialised by the structured log formatter.

3. RateCardError vs DomainConstraintError. A missing row is fixed by adding
   that row; an undersized transformer catalog is fixed by adding a larger
   transformer. Same data source, different remediation.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any


class QuoterError(Exception):
    """
    Base exception for all quoter errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "quoter_error"


# Validation


class InputValidationError(QuoterError):
    """Raw quote item input failed validation.

    Carries every field-level error found, never just the first.
    """

    code: str = "validation_failed"

    def __init__(self, errors: tuple[Any, ...]):
        self.errors = tuple(errors)
        fields = ", ".join(
            str(getattr(e, "field", None) or "<input>") for e in self.errors
        )
        super().__init__(
            f"Input validation failed with {len(self.errors)} error(s): {fields}"
        )


# Rate card exceptions


class RateCardError(QuoterError):
    """Base exception for rate card data problems."""

    code: str = "rate_card_error"


def format_row_key(table: str, key: tuple[Any, ...]) -> str:
    """Render a rate table row reference as ``table[k1, k2, ...]``."""
    return f"{table}[{', '.join(str(k) for k in key)}]"


class MissingRateRowError(RateCardError):
    """A rate card lookup required by the calculation has no row."""

    code: str = "missing_rate_row"

    def __init__(self, table: str, key: tuple[Any, ...], pricing_set_id: str | None = None):
        self.table = table
        self.key = tuple(key)
        self.pricing_set_id = pricing_set_id
        where = f" in pricing set {pricing_set_id}" if pricing_set_id else ""
        super().__init__(
            f"Missing rate row {format_row_key(table, self.key)}{where}"
        )

    @property
    def row_ref(self) -> str:
        return format_row_key(self.table, self.key)


class RateCardNotFoundError(RateCardError):
    """No rate card exists for the requested pricing set."""

    code: str = "rate_card_not_found"

    def __init__(self, pricing_set_id: str):
        self.pricing_set_id = pricing_set_id
        super().__init__(f"Rate card not found for pricing set: {pricing_set_id}")


class RateCardSchemaError(RateCardError):
    """Rate card source data is malformed.

    Raised at load time for unknown tables or fields, missing fields,
    non-integer or negative money values, and duplicate natural keys.
    """

    code: str = "invalid_rate_card"

    def __init__(self, pricing_set_id: str | None, problems: list[str]):
        self.pricing_set_id = pricing_set_id
        self.problems = list(problems)
        super().__init__(
            f"Rate card {pricing_set_id or '<unknown>'} is invalid: "
            + "; ".join(self.problems)
        )


class RateCardIntegrityError(RateCardError):
    """Rate card checksum does not match its approved pin file."""

    code: str = "rate_card_integrity_mismatch"

    def __init__(self, pricing_set_id: str, expected: str, actual: str, pin_path: Path):
        self.pricing_set_id = pricing_set_id
        self.expected = expected
        self.actual = actual
        self.pin_path = pin_path
        super().__init__(
            f"Rate card integrity check failed for '{pricing_set_id}': "
            f"pinned checksum {expected[:16]}... != "
            f"computed checksum {actual[:16]}... "
            f"(pin file: {pin_path})"
        )


# Domain constraint exceptions


class DomainConstraintError(QuoterError):
    """The rate card is present but insufficient for the requested job."""

    code: str = "domain_constraint"


class NoSuitableTransformerError(DomainConstraintError):
    """No single transformer can carry the required LED load."""

    code: str = "no_suitable_transformer"

    def __init__(self, required_leds: int, max_capacity: int, pricing_set_id: str | None = None):
        self.required_leds = required_leds
        self.max_capacity = max_capacity
        self.pricing_set_id = pricing_set_id
        super().__init__(
            f"No transformer can power {required_leds} LEDs; "
            f"largest available capacity is {max_capacity}. "
            f"Add a larger transformer to the rate card."
        )


# Pricing set exceptions


class PricingSetError(QuoterError):
    """Base exception for pricing set lifecycle errors."""

    code: str = "pricing_set_error"


class PricingSetNotFoundError(PricingSetError):
    """Pricing set with given ID was not found."""

    code: str = "pricing_set_not_found"

    def __init__(self, pricing_set_id: str):
        self.pricing_set_id = pricing_set_id
        super().__init__(f"Pricing set not found: {pricing_set_id}")


class InvalidStatusTransitionError(PricingSetError):
    """Requested lifecycle transition is not allowed."""

    code: str = "invalid_status_transition"

    def __init__(self, pricing_set_id: str, current: str, target: str):
        self.pricing_set_id = pricing_set_id
        self.current = current
        self.target = target
        super().__init__(
            f"Pricing set {pricing_set_id} cannot move from {current} to {target}"
        )


class PricingSetNotEditableError(PricingSetError):
    """Rate rows may only be changed on a draft pricing set."""

    code: str = "pricing_set_not_editable"

    def __init__(self, pricing_set_id: str, status: str):
        self.pricing_set_id = pricing_set_id
        self.status = status
        super().__init__(
            f"Pricing set {pricing_set_id} is {status}; only draft sets can be edited"
        )


class RateCardIncompleteError(PricingSetError):
    """Activation blocked because the rate card has missing rows."""

    code: str = "rate_card_incomplete"

    def __init__(self, pricing_set_id: str, missing: list[str]):
        self.pricing_set_id = pricing_set_id
        self.missing = list(missing)
        super().__init__(
            f"Cannot activate pricing set {pricing_set_id}: "
            f"{len(self.missing)} missing row(s): {', '.join(self.missing[:10])}"
        )


# Quote exceptions


class QuoteError(QuoterError):
    """Base exception for quote aggregation errors."""

    code: str = "quote_error"


class PricingSetMismatchError(QuoteError):
    """A quote item was priced against a different pricing set than its quote."""

    code: str = "pricing_set_mismatch"

    def __init__(self, quote_id: str, expected: str, actual: str, item_id: str | None = None):
        self.quote_id = quote_id
        self.expected = expected
        self.actual = actual
        self.item_id = item_id
        super().__init__(
            f"Quote {quote_id} is locked to pricing set {expected} but item "
            f"{item_id or '<unknown>'} was priced with {actual}"
        )
