"""
PricingSetService -- pricing set lifecycle (draft -> active -> archived).

Responsibility:
    Create drafts (empty, cloned from another set, or imported from a
    RateCard), edit a draft's rate rows, activate a complete draft, and
    delete drafts.

Architecture position:
    Services -- imperative shell.  Flush-only; the caller owns the
    transaction, so archiving the old active set and activating the new
    one commit or roll back together.

Invariants enforced:
    - Only drafts accept row edits or deletion.
    - Activation is gated on ``check_completeness``; an incomplete set
      raises ``RateCardIncompleteError`` listing every missing row.
    - At most one active set: activation archives the previous one.
    - effective_from is stamped from the injected Clock at activation.

Failure modes:
    - PricingSetNotFoundError: unknown id.
    - PricingSetNotEditableError: row edit on an active/archived set.
    - InvalidStatusTransitionError: e.g. activating an archived set.
    - RateCardIncompleteError: activation of an incomplete draft.
    - RateCardSchemaError: a row is malformed or duplicates a key.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy import delete, select

from quoter_config.catalog import DEFAULT_CATALOG, OptionCatalog
from quoter_config.completeness import CompletenessResult, check_completeness
from quoter_config.lifecycle import PricingSetStatus, is_editable, validate_transition
from quoter_config.loader import parse_tables
from quoter_config.schema import TABLE_SPECS, RateCard
from quoter_kernel.domain.clock import Clock, SystemClock
from quoter_kernel.exceptions import (
    InvalidStatusTransitionError,
    PricingSetNotEditableError,
    PricingSetNotFoundError,
    RateCardIncompleteError,
    RateCardSchemaError,
)
from quoter_kernel.logging_config import get_logger
from quoter_kernel.models import RATE_ROW_MODELS, PricingSet
from quoter_services.base import BaseService
from quoter_services.rate_card_repository import SqlRateCardRepository, parse_pricing_set_id

logger = get_logger("services.pricing_set")


@dataclass(frozen=True)
class PricingSetInfo:
    """Read-only view of a pricing set."""

    id: str
    name: str
    status: PricingSetStatus
    effective_from: datetime | None
    archived_at: datetime | None
    cloned_from_id: str | None


class PricingSetService(BaseService):
    """
    Service for managing pricing set lifecycle and rate rows.

    Non-goals:
        - Does NOT call ``session.commit()``.
        - Does NOT price quotes; see QuotePricingService.
    """

    def __init__(
        self,
        session,
        clock: Clock | None = None,
        catalog: OptionCatalog = DEFAULT_CATALOG,
    ):
        super().__init__(session)
        self._clock = clock or SystemClock()
        self._catalog = catalog
        self._rate_cards = SqlRateCardRepository(session)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get(self, pricing_set_id: str) -> PricingSetInfo:
        return self._to_dto(self._get_model(pricing_set_id))

    def get_active(self) -> PricingSetInfo | None:
        model = self._active_model()
        return None if model is None else self._to_dto(model)

    def list_sets(self) -> list[PricingSetInfo]:
        models = self.session.execute(
            select(PricingSet).order_by(PricingSet.created_at, PricingSet.name)
        ).scalars().all()
        return [self._to_dto(m) for m in models]

    def load_rate_card(self, pricing_set_id: str) -> RateCard:
        return self._rate_cards.load_rate_card(pricing_set_id)

    def check_completeness(self, pricing_set_id: str) -> CompletenessResult:
        return check_completeness(self.load_rate_card(pricing_set_id), self._catalog)

    # ------------------------------------------------------------------
    # Drafts
    # ------------------------------------------------------------------

    def create_draft(
        self,
        name: str,
        actor_id: UUID,
        clone_from: str | None = None,
        notes: str | None = None,
    ) -> PricingSetInfo:
        """Create a draft, optionally copying every rate row of another set."""
        source = self._get_model(clone_from) if clone_from is not None else None

        draft = PricingSet(
            name=name,
            status=PricingSetStatus.DRAFT.value,
            created_by_id=actor_id,
            cloned_from_id=None if source is None else source.id,
            notes=notes,
        )
        self.session.add(draft)
        self.session.flush()

        if source is not None:
            source_card = self._rate_cards.load_rate_card(str(source.id))
            self._insert_rows(draft.id, source_card.table_rows())

        logger.info(
            "pricing_set_draft_created",
            extra={
                "pricing_set_id": str(draft.id),
                "pricing_set_name": name,
                "cloned_from_id": None if source is None else str(source.id),
                "actor_id": str(actor_id),
            },
        )
        return self._to_dto(draft)

    def create_draft_from_active(self, name: str, actor_id: UUID) -> PricingSetInfo:
        """Create a draft cloned from the active set, or empty if none is active."""
        active = self._active_model()
        return self.create_draft(
            name, actor_id, clone_from=None if active is None else str(active.id)
        )

    def import_rate_card(
        self,
        rate_card: RateCard,
        actor_id: UUID,
        name: str | None = None,
    ) -> PricingSetInfo:
        """Create a draft holding every row of an existing RateCard (e.g. a YAML set)."""
        info = self.create_draft(name or rate_card.name, actor_id)
        self._insert_rows(UUID(info.id), rate_card.table_rows())
        return info

    def add_row(self, pricing_set_id: str, table: str, row: dict[str, Any]) -> None:
        """
        Add one rate row to a draft.

        Raises:
            RateCardSchemaError: unknown table, malformed row, or duplicate key.
        """
        model = self._editable_model(pricing_set_id)
        if table not in TABLE_SPECS:
            raise RateCardSchemaError(str(model.id), [f"unknown table {table!r}"])

        current = self._rate_cards.load_rate_card(str(model.id)).table_rows()
        current[table].append(dict(row))
        parse_tables(str(model.id), model.name, current)

        self._insert_rows(model.id, {table: [row]})

    def remove_row(self, pricing_set_id: str, table: str, key: tuple[Any, ...]) -> bool:
        """Remove the row with natural key ``key`` from a draft. Returns False if absent."""
        model = self._editable_model(pricing_set_id)
        if table not in TABLE_SPECS:
            raise RateCardSchemaError(str(model.id), [f"unknown table {table!r}"])

        row_model = RATE_ROW_MODELS[table]
        key_fields = TABLE_SPECS[table].key_fields
        if len(key) != len(key_fields):
            raise RateCardSchemaError(
                str(model.id),
                [f"{table} key needs {len(key_fields)} part(s): {', '.join(key_fields)}"],
            )
        stmt = delete(row_model).where(row_model.pricing_set_id == model.id)
        for field_name, value in zip(key_fields, key):
            stmt = stmt.where(getattr(row_model, field_name) == value)
        result = self.session.execute(stmt)
        self.session.flush()
        return result.rowcount > 0

    def delete_draft(self, pricing_set_id: str, actor_id: UUID) -> None:
        model = self._get_model(pricing_set_id)
        status = PricingSetStatus(model.status)
        if status is not PricingSetStatus.DRAFT:
            raise PricingSetNotEditableError(str(model.id), status.value)

        for row_model in RATE_ROW_MODELS.values():
            self.session.execute(delete(row_model).where(row_model.pricing_set_id == model.id))
        self.session.delete(model)
        self.session.flush()

        logger.info(
            "pricing_set_draft_deleted",
            extra={"pricing_set_id": str(model.id), "actor_id": str(actor_id)},
        )

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def activate(self, pricing_set_id: str, actor_id: UUID) -> PricingSetInfo:
        """
        Make a complete draft the single active pricing set.

        Postconditions:
            - The set is active with effective_from = clock.now().
            - The previously active set, if any, is archived.
        """
        model = self._get_model(pricing_set_id)
        self._check_transition(model, PricingSetStatus.ACTIVE)

        completeness = check_completeness(
            self._rate_cards.load_rate_card(str(model.id)), self._catalog
        )
        if not completeness.ok:
            logger.warning(
                "pricing_set_activation_blocked",
                extra={
                    "pricing_set_id": str(model.id),
                    "missing_count": len(completeness.missing),
                },
            )
            raise RateCardIncompleteError(str(model.id), completeness.missing)

        now = self._clock.now()
        previous = self._active_model()
        if previous is not None:
            self._check_transition(previous, PricingSetStatus.ARCHIVED)
            previous.status = PricingSetStatus.ARCHIVED.value
            previous.archived_at = now
            previous.updated_by_id = actor_id
            self.session.flush()

        model.status = PricingSetStatus.ACTIVE.value
        model.effective_from = now
        model.updated_by_id = actor_id
        self.session.flush()

        logger.info(
            "pricing_set_activated",
            extra={
                "pricing_set_id": str(model.id),
                "archived_pricing_set_id": None if previous is None else str(previous.id),
                "effective_from": now,
                "warning_count": len(completeness.warnings),
                "actor_id": str(actor_id),
            },
        )
        return self._to_dto(model)

    def archive(self, pricing_set_id: str, actor_id: UUID) -> PricingSetInfo:
        """Retire the active set without activating a replacement."""
        model = self._get_model(pricing_set_id)
        self._check_transition(model, PricingSetStatus.ARCHIVED)
        model.status = PricingSetStatus.ARCHIVED.value
        model.archived_at = self._clock.now()
        model.updated_by_id = actor_id
        self.session.flush()
        logger.info(
            "pricing_set_archived",
            extra={"pricing_set_id": str(model.id), "actor_id": str(actor_id)},
        )
        return self._to_dto(model)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _get_model(self, pricing_set_id: str) -> PricingSet:
        set_uuid = parse_pricing_set_id(pricing_set_id)
        model = None if set_uuid is None else self.session.get(PricingSet, set_uuid)
        if model is None:
            raise PricingSetNotFoundError(str(pricing_set_id))
        return model

    def _editable_model(self, pricing_set_id: str) -> PricingSet:
        model = self._get_model(pricing_set_id)
        status = PricingSetStatus(model.status)
        if not is_editable(status):
            raise PricingSetNotEditableError(str(model.id), status.value)
        return model

    def _active_model(self) -> PricingSet | None:
        return self.session.execute(
            select(PricingSet).where(PricingSet.status == PricingSetStatus.ACTIVE.value)
        ).scalars().first()

    def _check_transition(self, model: PricingSet, target: PricingSetStatus) -> None:
        current = PricingSetStatus(model.status)
        if not validate_transition(current, target):
            raise InvalidStatusTransitionError(str(model.id), current.value, target.value)

    def _insert_rows(self, set_id: UUID, tables: dict[str, list[dict[str, Any]]]) -> None:
        for table, rows in tables.items():
            row_model = RATE_ROW_MODELS[table]
            for row in rows:
                self.session.add(row_model(pricing_set_id=set_id, **row))
        self.session.flush()

    def _to_dto(self, model: PricingSet) -> PricingSetInfo:
        return PricingSetInfo(
            id=str(model.id),
            name=model.name,
            status=PricingSetStatus(model.status),
            effective_from=model.effective_from,
            archived_at=model.archived_at,
            cloned_from_id=None if model.cloned_from_id is None else str(model.cloned_from_id),
        )
