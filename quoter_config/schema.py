"""
Rate card schema (``quoter_config.schema``).

Responsibility
--------------
Defines the typed, immutable ``RateCard``: a closed set of nine named
tables, each keyed by an explicit compound-key type.  Every lookup the
pricing engine performs goes through a ``RateCard`` method that either
returns exactly one value or raises ``MissingRateRowError`` naming the
table and key.  Nothing defaults to zero.

Architecture position
---------------------
**Config layer** -- pure data.  Imported by the loader, the completeness
checker, the engines and the repositories.  No I/O, no ORM.

Invariants enforced
-------------------
* Tables are read-only (``MappingProxyType``) and the dataclass is frozen.
* Money values are ``int`` pence.
* ``checksum`` is a SHA-256 over the table content only; the pricing set
  id and name are identity, not content, so a cloned draft has the same
  checksum as its source until a row changes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, unique
from types import MappingProxyType
from typing import Any, Mapping, NamedTuple

from quoter_kernel.exceptions import MissingRateRowError
from quoter_kernel.utils.hashing import hash_payload


@unique
class LabourTask(str, Enum):
    """Manufacturing task priced per hour."""

    ROUTER = "router"
    FABRICATION = "fabrication"
    ASSEMBLY = "assembly"
    VINYL = "vinyl"
    PRINT = "print"


class PanelPriceKey(NamedTuple):
    material: str
    sheet_size: str


class OpalPriceKey(NamedTuple):
    opal_type: str
    sheet_size: str


class LetterPriceKey(NamedTuple):
    letter_type: str
    finish: str
    height_mm: int


@dataclass(frozen=True)
class TransformerSpec:
    """One transformer type: how many LEDs it carries and what it costs."""

    type: str
    led_capacity: int
    unit_cost_pence: int


class TableSpec(NamedTuple):
    """Column layout of one rate table as stored in YAML and SQL."""

    key_fields: tuple[str, ...]
    value_fields: tuple[str, ...]

    @property
    def fields(self) -> tuple[str, ...]:
        return self.key_fields + self.value_fields


# Table name -> layout.  Order is the canonical table order.
TABLE_SPECS: dict[str, TableSpec] = {
    "panel_prices": TableSpec(("material", "sheet_size"), ("unit_cost_pence",)),
    "panel_finishes": TableSpec(("finish",), ("cost_per_m2_pence",)),
    "manufacturing_rates": TableSpec(("task",), ("cost_per_hour_pence",)),
    "illumination_profiles": TableSpec(("height_mm",), ("leds_per_letter",)),
    "transformers": TableSpec(("type",), ("led_capacity", "unit_cost_pence")),
    "opal_prices": TableSpec(("opal_type", "sheet_size"), ("unit_cost_pence",)),
    "consumables": TableSpec(("key",), ("value_pence",)),
    "letter_finish_rules": TableSpec(("letter_type", "finish"), ()),
    "letter_prices": TableSpec(("letter_type", "finish", "height_mm"), ("unit_price_pence",)),
}

TABLE_NAMES: tuple[str, ...] = tuple(TABLE_SPECS)


def _frozen(mapping: Mapping) -> Mapping:
    return MappingProxyType(dict(mapping))


@dataclass(frozen=True, eq=False)
class RateCard:
    """
    Immutable bundle of pricing tables for one pricing set.

    Contract:
        Constructed once by a loader or repository and passed explicitly
        to every calculation.  Lookups raise ``MissingRateRowError`` on a
        miss; ``allowed_finishes`` is the only lookup that may legitimately
        be empty and is consulted by the validator, not the engine.
    """

    pricing_set_id: str
    name: str
    panel_prices: Mapping[PanelPriceKey, int] = field(default_factory=dict)
    panel_finishes: Mapping[str, int] = field(default_factory=dict)
    manufacturing_rates: Mapping[str, int] = field(default_factory=dict)
    illumination_profiles: Mapping[int, int] = field(default_factory=dict)
    transformers: Mapping[str, TransformerSpec] = field(default_factory=dict)
    opal_prices: Mapping[OpalPriceKey, int] = field(default_factory=dict)
    consumables: Mapping[str, int] = field(default_factory=dict)
    letter_finish_rules: Mapping[str, frozenset[str]] = field(default_factory=dict)
    letter_prices: Mapping[LetterPriceKey, int] = field(default_factory=dict)
    checksum: str = field(init=False, default="")

    def __post_init__(self) -> None:
        for table in TABLE_NAMES:
            object.__setattr__(self, table, _frozen(getattr(self, table)))
        object.__setattr__(
            self,
            "letter_finish_rules",
            _frozen({k: frozenset(v) for k, v in self.letter_finish_rules.items()}),
        )
        object.__setattr__(self, "checksum", hash_payload(self.table_rows()))

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def _miss(self, table: str, *key: Any) -> MissingRateRowError:
        return MissingRateRowError(table, key, pricing_set_id=self.pricing_set_id)

    def panel_unit_cost(self, material: str, sheet_size: str) -> int:
        key = PanelPriceKey(material, sheet_size)
        if key not in self.panel_prices:
            raise self._miss("panel_prices", *key)
        return self.panel_prices[key]

    def finish_cost_per_m2(self, finish: str) -> int:
        if finish not in self.panel_finishes:
            raise self._miss("panel_finishes", finish)
        return self.panel_finishes[finish]

    def labour_rate(self, task: str | LabourTask) -> int:
        name = LabourTask(task).value
        if name not in self.manufacturing_rates:
            raise self._miss("manufacturing_rates", name)
        return self.manufacturing_rates[name]

    def leds_per_letter(self, height_mm: int) -> int:
        if height_mm not in self.illumination_profiles:
            raise self._miss("illumination_profiles", height_mm)
        return self.illumination_profiles[height_mm]

    def opal_unit_cost(self, opal_type: str, sheet_size: str) -> int:
        key = OpalPriceKey(opal_type, sheet_size)
        if key not in self.opal_prices:
            raise self._miss("opal_prices", *key)
        return self.opal_prices[key]

    def consumable(self, key: str) -> int:
        if key not in self.consumables:
            raise self._miss("consumables", key)
        return self.consumables[key]

    def letter_unit_price(self, letter_type: str, finish: str, height_mm: int) -> int:
        key = LetterPriceKey(letter_type, finish, height_mm)
        if key not in self.letter_prices:
            raise self._miss("letter_prices", *key)
        return self.letter_prices[key]

    def allowed_finishes(self, letter_type: str) -> frozenset[str]:
        return self.letter_finish_rules.get(letter_type, frozenset())

    def transformers_by_capacity(self) -> tuple[TransformerSpec, ...]:
        """Transformers ordered smallest first; ties broken by cost then type."""
        return tuple(sorted(
            self.transformers.values(),
            key=lambda t: (t.led_capacity, t.unit_cost_pence, t.type),
        ))

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def table_rows(self) -> dict[str, list[dict[str, Any]]]:
        """Every table as a sorted list of row dicts, in YAML/SQL field names."""
        rows: dict[str, list[dict[str, Any]]] = {
            "panel_prices": [
                {"material": k.material, "sheet_size": k.sheet_size, "unit_cost_pence": v}
                for k, v in sorted(self.panel_prices.items())
            ],
            "panel_finishes": [
                {"finish": k, "cost_per_m2_pence": v}
                for k, v in sorted(self.panel_finishes.items())
            ],
            "manufacturing_rates": [
                {"task": k, "cost_per_hour_pence": v}
                for k, v in sorted(self.manufacturing_rates.items())
            ],
            "illumination_profiles": [
                {"height_mm": k, "leds_per_letter": v}
                for k, v in sorted(self.illumination_profiles.items())
            ],
            "transformers": [
                {"type": t.type, "led_capacity": t.led_capacity, "unit_cost_pence": t.unit_cost_pence}
                for _, t in sorted(self.transformers.items())
            ],
            "opal_prices": [
                {"opal_type": k.opal_type, "sheet_size": k.sheet_size, "unit_cost_pence": v}
                for k, v in sorted(self.opal_prices.items())
            ],
            "consumables": [
                {"key": k, "value_pence": v}
                for k, v in sorted(self.consumables.items())
            ],
            "letter_finish_rules": [
                {"letter_type": letter_type, "finish": finish}
                for letter_type, finishes in sorted(self.letter_finish_rules.items())
                for finish in sorted(finishes)
            ],
            "letter_prices": [
                {
                    "letter_type": k.letter_type,
                    "finish": k.finish,
                    "height_mm": k.height_mm,
                    "unit_price_pence": v,
                }
                for k, v in sorted(self.letter_prices.items())
            ],
        }
        return rows

    def row_counts(self) -> dict[str, int]:
        return {table: len(rows) for table, rows in self.table_rows().items()}

    def to_dict(self) -> dict[str, Any]:
        """JSON-safe form: identity, checksum and every table."""
        return {
            "pricing_set_id": self.pricing_set_id,
            "name": self.name,
            "checksum": self.checksum,
            "tables": self.table_rows(),
        }
