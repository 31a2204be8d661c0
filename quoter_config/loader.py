"""
Rate Card Loader (``quoter_config.loader``).

Responsibility
--------------
Loads a rate card YAML file and parses it into a frozen
``quoter_config.schema.RateCard``.  ``parse_tables`` is shared with the
SQL repository so both sources go through the same checks.

Invariants enforced
-------------------
* Unknown tables, unknown row fields, missing fields, non-integer or
  negative money, unknown labour tasks and duplicate natural keys are
  rejected at load time, never at lookup time.
* Every problem is collected; one ``RateCardSchemaError`` lists them all.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Structurally invalid content  -> ``RateCardSchemaError``.

YAML layout::

    pricing_set_id: standard-2025
    name: Standard 2025
    tables:
      panel_prices:
        - {material: Aluminium 3mm, sheet_size: 2.4 x 1.2, unit_cost_pence: 9500}
      ...
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from quoter_config.schema import (
    TABLE_SPECS,
    LabourTask,
    LetterPriceKey,
    OpalPriceKey,
    PanelPriceKey,
    RateCard,
    TransformerSpec,
)
from quoter_kernel.exceptions import RateCardSchemaError, format_row_key

_TOP_LEVEL_KEYS = frozenset({"pricing_set_id", "name", "description", "tables"})

_INT_FIELDS = frozenset({"height_mm", "leds_per_letter", "led_capacity"})
_POSITIVE_INT_FIELDS = frozenset({"height_mm", "led_capacity"})
_LABOUR_TASKS = frozenset(t.value for t in LabourTask)


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
    """
    with open(path) as f:
        return yaml.safe_load(f) or {}


def _check_value(field_name: str, value: Any, where: str, problems: list[str]) -> None:
    if field_name.endswith("_pence"):
        if isinstance(value, bool) or not isinstance(value, int):
            problems.append(f"{where}.{field_name} must be integer pence, got {value!r}")
        elif value < 0:
            problems.append(f"{where}.{field_name} must not be negative, got {value}")
    elif field_name in _INT_FIELDS:
        if isinstance(value, bool) or not isinstance(value, int):
            problems.append(f"{where}.{field_name} must be an integer, got {value!r}")
        elif field_name in _POSITIVE_INT_FIELDS and value <= 0:
            problems.append(f"{where}.{field_name} must be positive, got {value}")
        elif value < 0:
            problems.append(f"{where}.{field_name} must not be negative, got {value}")
    elif not isinstance(value, str) or not value.strip():
        problems.append(f"{where}.{field_name} must be a non-empty string, got {value!r}")
    elif field_name == "task" and value not in _LABOUR_TASKS:
        problems.append(f"{where}.task {value!r} is not a labour task")


def _check_rows(table: str, rows: Any, problems: list[str]) -> list[dict[str, Any]]:
    """Validate one table's rows; return only the rows that passed."""
    if rows is None:
        return []
    if not isinstance(rows, list):
        problems.append(f"{table} must be a list of rows")
        return []

    spec = TABLE_SPECS[table]
    expected = set(spec.fields)
    good: list[dict[str, Any]] = []
    seen: set[tuple[Any, ...]] = set()

    for i, row in enumerate(rows):
        where = f"{table}[{i}]"
        if not isinstance(row, dict):
            problems.append(f"{where} must be a mapping")
            continue
        before = len(problems)
        for unknown in sorted(set(row) - expected):
            problems.append(f"{where} has unknown field {unknown!r}")
        for missing in [f for f in spec.fields if f not in row]:
            problems.append(f"{where} is missing field {missing!r}")
        for name in spec.fields:
            if name in row:
                _check_value(name, row[name], where, problems)
        if len(problems) > before:
            continue

        key = tuple(row[f] for f in spec.key_fields)
        if key in seen:
            problems.append(f"duplicate row {format_row_key(table, key)}")
            continue
        seen.add(key)
        good.append(row)

    return good


def parse_tables(
    pricing_set_id: str,
    name: str,
    tables: dict[str, Any],
) -> RateCard:
    """
    Build a RateCard from table-name -> row-list data.

    Missing tables are empty; completeness is a separate check.

    Raises:
        RateCardSchemaError: listing every structural problem found.
    """
    problems: list[str] = []
    for unknown in sorted(set(tables) - set(TABLE_SPECS)):
        problems.append(f"unknown table {unknown!r}")

    rows = {t: _check_rows(t, tables.get(t), problems) for t in TABLE_SPECS}

    if problems:
        raise RateCardSchemaError(pricing_set_id, problems)

    finish_rules: dict[str, set[str]] = {}
    for r in rows["letter_finish_rules"]:
        finish_rules.setdefault(r["letter_type"], set()).add(r["finish"])

    return RateCard(
        pricing_set_id=pricing_set_id,
        name=name,
        panel_prices={
            PanelPriceKey(r["material"], r["sheet_size"]): r["unit_cost_pence"]
            for r in rows["panel_prices"]
        },
        panel_finishes={r["finish"]: r["cost_per_m2_pence"] for r in rows["panel_finishes"]},
        manufacturing_rates={
            r["task"]: r["cost_per_hour_pence"] for r in rows["manufacturing_rates"]
        },
        illumination_profiles={
            r["height_mm"]: r["leds_per_letter"] for r in rows["illumination_profiles"]
        },
        transformers={
            r["type"]: TransformerSpec(r["type"], r["led_capacity"], r["unit_cost_pence"])
            for r in rows["transformers"]
        },
        opal_prices={
            OpalPriceKey(r["opal_type"], r["sheet_size"]): r["unit_cost_pence"]
            for r in rows["opal_prices"]
        },
        consumables={r["key"]: r["value_pence"] for r in rows["consumables"]},
        letter_finish_rules={k: frozenset(v) for k, v in finish_rules.items()},
        letter_prices={
            LetterPriceKey(r["letter_type"], r["finish"], r["height_mm"]): r["unit_price_pence"]
            for r in rows["letter_prices"]
        },
    )


def parse_rate_card(data: dict[str, Any]) -> RateCard:
    """
    Parse a whole rate card document (the YAML layout above).

    Raises:
        RateCardSchemaError: if the document or any table is malformed.
    """
    pricing_set_id = data.get("pricing_set_id")
    problems: list[str] = []
    for unknown in sorted(set(data) - _TOP_LEVEL_KEYS):
        problems.append(f"unknown top-level key {unknown!r}")
    if not isinstance(pricing_set_id, str) or not pricing_set_id:
        problems.append("pricing_set_id is required")
    tables = data.get("tables") or {}
    if not isinstance(tables, dict):
        problems.append("tables must be a mapping of table name to rows")
        tables = {}
    if problems:
        raise RateCardSchemaError(pricing_set_id if isinstance(pricing_set_id, str) else None, problems)

    return parse_tables(pricing_set_id, str(data.get("name") or pricing_set_id), tables)


def load_rate_card(path: Path) -> RateCard:
    """Load and parse a rate card YAML file."""
    return parse_rate_card(load_yaml_file(path))
