"""
Panel-letters input types and the override resolution step.

Inputs are immutable values built by ``quoter_engines.validation``.
``resolve()`` turns base values plus optional overrides into
``Resolved`` pairs once, before any arithmetic runs, so the engine never
branches on "is there an override for this?".
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum, unique
from types import MappingProxyType
from typing import Any, Generic, Mapping, TypeVar

from quoter_config.catalog import DEFAULT_OPAL_SHEET_SIZE, LABOUR_TASKS

T = TypeVar("T")

_ZERO = Decimal("0")


@unique
class OverrideReason(str, Enum):
    """Why a computed value was overridden (audit trail)."""

    CUSTOMER_DISCOUNT = "customer_discount"
    REWORK = "rework"
    MATERIAL_VARIANCE = "material_variance"
    LABOUR_VARIANCE = "labour_variance"
    GOODWILL = "goodwill"
    OTHER = "other"


@dataclass(frozen=True)
class LetterSetInput:
    """A group of identical letters within one quote item."""

    letter_type: str
    finish: str
    height_mm: int
    qty: int
    text: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "letter_type": self.letter_type,
            "finish": self.finish,
            "height_mm": self.height_mm,
            "qty": self.qty,
        }
        if self.text is not None:
            data["text"] = self.text
        return data


@dataclass(frozen=True)
class ApertureInput:
    """An illuminated opal window cut into the panel."""

    width_mm: int
    height_mm: int
    opal_type: str
    sheet_size: str = DEFAULT_OPAL_SHEET_SIZE

    def to_dict(self) -> dict[str, Any]:
        return {
            "width_mm": self.width_mm,
            "height_mm": self.height_mm,
            "opal_type": self.opal_type,
            "sheet_size": self.sheet_size,
        }


@dataclass(frozen=True)
class Override:
    """A forced value with its audit trail."""

    override: Decimal
    reason_code: OverrideReason
    note: str
    original: Decimal | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "override": str(self.override),
            "original": None if self.original is None else str(self.original),
            "reason_code": self.reason_code.value,
            "note": self.note,
        }


@dataclass(frozen=True)
class Overrides:
    markup_percent: Override | None = None
    labour_hours: Mapping[str, Override] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "labour_hours", MappingProxyType(dict(self.labour_hours)))

    @property
    def is_empty(self) -> bool:
        return self.markup_percent is None and not self.labour_hours

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {}
        if self.markup_percent is not None:
            data["markup_percent"] = self.markup_percent.to_dict()
        if self.labour_hours:
            data["labour_hours"] = {
                task: self.labour_hours[task].to_dict()
                for task in LABOUR_TASKS
                if task in self.labour_hours
            }
        return data


@dataclass(frozen=True)
class PanelLettersV1Input:
    """
    One panel-with-letters quote item, validated and normalized.

    Guarantees (when built by ``validate``):
        - labour_hours has an entry for every labour task.
        - letter_sets is a non-empty tuple.
        - dimensions after allowance are positive.
    """

    width_mm: int
    height_mm: int
    material: str
    sheet_size: str
    finish: str
    letter_sets: tuple[LetterSetInput, ...]
    labour_hours: Mapping[str, Decimal]
    markup_percent: Decimal
    illumination: bool = False
    allowance_mm: int = 0
    aperture: ApertureInput | None = None
    overrides: Overrides = field(default_factory=Overrides)

    def __post_init__(self) -> None:
        object.__setattr__(self, "letter_sets", tuple(self.letter_sets))
        object.__setattr__(self, "labour_hours", MappingProxyType(dict(self.labour_hours)))

    @property
    def adjusted_width_mm(self) -> int:
        return self.width_mm - 2 * self.allowance_mm

    @property
    def adjusted_height_mm(self) -> int:
        return self.height_mm - 2 * self.allowance_mm

    def to_dict(self) -> dict[str, Any]:
        """JSON-safe form; Decimals become strings."""
        return {
            "width_mm": self.width_mm,
            "height_mm": self.height_mm,
            "allowance_mm": self.allowance_mm,
            "material": self.material,
            "sheet_size": self.sheet_size,
            "finish": self.finish,
            "letter_sets": [s.to_dict() for s in self.letter_sets],
            "illumination": self.illumination,
            "labour_hours": {
                task: str(self.labour_hours.get(task, _ZERO)) for task in LABOUR_TASKS
            },
            "markup_percent": str(self.markup_percent),
            "aperture": None if self.aperture is None else self.aperture.to_dict(),
            "overrides": self.overrides.to_dict(),
        }


@dataclass(frozen=True)
class Resolved(Generic[T]):
    """A base value and the override that replaces it, if any."""

    base: T
    override: T | None = None

    @property
    def value(self) -> T:
        return self.base if self.override is None else self.override

    @property
    def is_overridden(self) -> bool:
        return self.override is not None


@dataclass(frozen=True)
class ResolvedInput:
    """An input with every overridable field resolved."""

    item: PanelLettersV1Input
    labour_hours: Mapping[str, Resolved[Decimal]]
    markup_percent: Resolved[Decimal]


def resolve(item: PanelLettersV1Input) -> ResolvedInput:
    """Pair every overridable field with its override. Pure."""
    overrides = item.overrides
    labour = {}
    for task in LABOUR_TASKS:
        forced = overrides.labour_hours.get(task)
        labour[task] = Resolved(
            base=item.labour_hours.get(task, _ZERO),
            override=None if forced is None else forced.override,
        )
    markup = Resolved(
        base=item.markup_percent,
        override=None if overrides.markup_percent is None else overrides.markup_percent.override,
    )
    return ResolvedInput(
        item=item,
        labour_hours=MappingProxyType(labour),
        markup_percent=markup,
    )
