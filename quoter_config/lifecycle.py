"""
Pricing set lifecycle status.

A pricing set is edited as a draft, activated once it is complete, and
archived when a newer set is activated.  At most one set is active.
Archived sets are kept so historic quotes can be re-priced against the
exact rates they were locked to.  Only drafts may be deleted.
"""

from enum import Enum, unique


@unique
class PricingSetStatus(str, Enum):
    """Lifecycle status for a pricing set."""

    DRAFT = "draft"
    ACTIVE = "active"
    ARCHIVED = "archived"


# Allowed status transitions (from -> set of valid next states)
ALLOWED_TRANSITIONS: dict[PricingSetStatus, frozenset[PricingSetStatus]] = {
    PricingSetStatus.DRAFT: frozenset({PricingSetStatus.ACTIVE}),
    PricingSetStatus.ACTIVE: frozenset({PricingSetStatus.ARCHIVED}),
    PricingSetStatus.ARCHIVED: frozenset(),  # Terminal
}

EDITABLE_STATUSES = frozenset({PricingSetStatus.DRAFT})
DELETABLE_STATUSES = frozenset({PricingSetStatus.DRAFT})


def validate_transition(current: PricingSetStatus, target: PricingSetStatus) -> bool:
    """Check if a status transition is valid."""
    return target in ALLOWED_TRANSITIONS.get(current, frozenset())


def is_editable(status: PricingSetStatus) -> bool:
    return status in EDITABLE_STATUSES
