"""
Module: quoter_kernel.models.pricing_set
Responsibility: ORM persistence for pricing sets, the versioned container
    that owns one rate card's worth of rate rows.
Architecture position: Kernel > Models.  May import from db/base.py only.
    MUST NOT import from services/, domain/, or outer layers.

Invariants enforced:
    - status is one of draft / active / archived (values of
      quoter_config.lifecycle.PricingSetStatus).  Transition rules are
      enforced by PricingSetService, not here.
    - At most one active pricing set; enforced by PricingSetService.activate,
      which archives the previous active set in the same transaction.
    - Rate rows belong to exactly one pricing set; PricingSetService deletes
      them before deleting a draft.
"""

from datetime import datetime
from uuid import UUID

from sqlalchemy import DateTime, ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from quoter_kernel.db.base import TrackedBase, UUIDString


class PricingSet(TrackedBase):
    """
    A named, versioned pricing set.

    Contract:
        Rows may be added only while the set is a draft.  Once active, the
        rows are the rate card that quotes lock to; once archived, the set
        is kept for re-pricing historic quotes and never edited again.

    Guarantees:
        - effective_from is stamped at activation and never changes.
        - cloned_from_id records the set a draft was copied from, if any.
    """

    __tablename__ = "pricing_sets"

    __table_args__ = (
        Index("idx_pricing_set_status", "status"),
    )

    name: Mapped[str] = mapped_column(String(100), nullable=False)

    status: Mapped[str] = mapped_column(String(20), nullable=False, default="draft")

    effective_from: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    archived_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    cloned_from_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        ForeignKey("pricing_sets.id", ondelete="SET NULL"),
        nullable=True,
    )

    notes: Mapped[str | None] = mapped_column(String(500), nullable=True)

    def __repr__(self) -> str:
        return f"<PricingSet {self.name} ({self.status})>"
