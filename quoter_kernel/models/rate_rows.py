"""
Module: quoter_kernel.models.rate_rows
Responsibility: ORM persistence for the nine rate tables of a pricing set.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - Each table has a unique constraint on (pricing_set_id, natural key),
      so a rate card built from these rows has exactly one row per lookup.
    - Money columns are BigInteger pence; never Numeric.
    - letter_finish_rules stores one row per (letter_type, finish) pair;
      the allowed-finish set of a letter type is the union of its rows.
"""

from uuid import UUID

from sqlalchemy import BigInteger, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from quoter_kernel.db.base import Base, UUIDString


def _pricing_set_fk() -> Mapped[UUID]:
    return mapped_column(
        UUIDString(),
        ForeignKey("pricing_sets.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )


class PanelPriceRow(Base):
    """(material, sheet_size) -> unit cost of one sheet."""

    __tablename__ = "panel_prices"
    __table_args__ = (
        UniqueConstraint("pricing_set_id", "material", "sheet_size", name="uq_panel_price"),
    )

    pricing_set_id: Mapped[UUID] = _pricing_set_fk()
    material: Mapped[str] = mapped_column(String(100), nullable=False)
    sheet_size: Mapped[str] = mapped_column(String(20), nullable=False)
    unit_cost_pence: Mapped[int] = mapped_column(BigInteger, nullable=False)


class PanelFinishRow(Base):
    """(finish) -> cost per square metre."""

    __tablename__ = "panel_finishes"
    __table_args__ = (
        UniqueConstraint("pricing_set_id", "finish", name="uq_panel_finish"),
    )

    pricing_set_id: Mapped[UUID] = _pricing_set_fk()
    finish: Mapped[str] = mapped_column(String(100), nullable=False)
    cost_per_m2_pence: Mapped[int] = mapped_column(BigInteger, nullable=False)


class ManufacturingRateRow(Base):
    """(task) -> labour cost per hour."""

    __tablename__ = "manufacturing_rates"
    __table_args__ = (
        UniqueConstraint("pricing_set_id", "task", name="uq_manufacturing_rate"),
    )

    pricing_set_id: Mapped[UUID] = _pricing_set_fk()
    task: Mapped[str] = mapped_column(String(20), nullable=False)
    cost_per_hour_pence: Mapped[int] = mapped_column(BigInteger, nullable=False)


class IlluminationProfileRow(Base):
    """(height_mm) -> LEDs per letter."""

    __tablename__ = "illumination_profiles"
    __table_args__ = (
        UniqueConstraint("pricing_set_id", "height_mm", name="uq_illumination_profile"),
    )

    pricing_set_id: Mapped[UUID] = _pricing_set_fk()
    height_mm: Mapped[int] = mapped_column(Integer, nullable=False)
    leds_per_letter: Mapped[int] = mapped_column(Integer, nullable=False)


class TransformerRow(Base):
    """(type) -> LED capacity and unit cost."""

    __tablename__ = "transformers"
    __table_args__ = (
        UniqueConstraint("pricing_set_id", "type", name="uq_transformer"),
    )

    pricing_set_id: Mapped[UUID] = _pricing_set_fk()
    type: Mapped[str] = mapped_column(String(20), nullable=False)
    led_capacity: Mapped[int] = mapped_column(Integer, nullable=False)
    unit_cost_pence: Mapped[int] = mapped_column(BigInteger, nullable=False)


class OpalPriceRow(Base):
    """(opal_type, sheet_size) -> unit cost of one opal sheet."""

    __tablename__ = "opal_prices"
    __table_args__ = (
        UniqueConstraint("pricing_set_id", "opal_type", "sheet_size", name="uq_opal_price"),
    )

    pricing_set_id: Mapped[UUID] = _pricing_set_fk()
    opal_type: Mapped[str] = mapped_column(String(50), nullable=False)
    sheet_size: Mapped[str] = mapped_column(String(20), nullable=False)
    unit_cost_pence: Mapped[int] = mapped_column(BigInteger, nullable=False)


class ConsumableRow(Base):
    """(key) -> named constant in pence."""

    __tablename__ = "consumables"
    __table_args__ = (
        UniqueConstraint("pricing_set_id", "key", name="uq_consumable"),
    )

    pricing_set_id: Mapped[UUID] = _pricing_set_fk()
    key: Mapped[str] = mapped_column(String(100), nullable=False)
    value_pence: Mapped[int] = mapped_column(BigInteger, nullable=False)


class LetterFinishRuleRow(Base):
    """(letter_type, finish) -> finish allowed for that letter type."""

    __tablename__ = "letter_finish_rules"
    __table_args__ = (
        UniqueConstraint("pricing_set_id", "letter_type", "finish", name="uq_letter_finish_rule"),
    )

    pricing_set_id: Mapped[UUID] = _pricing_set_fk()
    letter_type: Mapped[str] = mapped_column(String(50), nullable=False)
    finish: Mapped[str] = mapped_column(String(100), nullable=False)


class LetterPriceRow(Base):
    """(letter_type, finish, height_mm) -> unit price of one letter."""

    __tablename__ = "letter_prices"
    __table_args__ = (
        UniqueConstraint(
            "pricing_set_id", "letter_type", "finish", "height_mm",
            name="uq_letter_price",
        ),
    )

    pricing_set_id: Mapped[UUID] = _pricing_set_fk()
    letter_type: Mapped[str] = mapped_column(String(50), nullable=False)
    finish: Mapped[str] = mapped_column(String(100), nullable=False)
    height_mm: Mapped[int] = mapped_column(Integer, nullable=False)
    unit_price_pence: Mapped[int] = mapped_column(BigInteger, nullable=False)
