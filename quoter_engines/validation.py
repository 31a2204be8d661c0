"""
Input validation -- raw quote item dict -> PanelLettersV1Input.

Pure functions.  ``validate`` never raises for bad input; it returns a
``ValidationResult`` carrying every field-level error found, each with the
dotted path of the offending field so a UI can attribute it.

Letter type / finish compatibility is a domain rule and is checked here
against the rate card's finish rules, before the engine runs.  Whether a
price row exists for the combination is the engine's concern.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Any, Mapping

from quoter_config.catalog import (
    DEFAULT_CATALOG,
    DEFAULT_OPAL_SHEET_SIZE,
    LABOUR_TASKS,
    MAX_LABOUR_HOURS,
    MAX_LETTER_HEIGHT_MM,
    MAX_LETTER_QTY,
    MAX_LETTER_SETS,
    MAX_PANEL_DIMENSION_MM,
    MIN_LETTER_HEIGHT_MM,
    OptionCatalog,
)
from quoter_engines.inputs import (
    ApertureInput,
    LetterSetInput,
    Override,
    OverrideReason,
    Overrides,
    PanelLettersV1Input,
)
from quoter_kernel.domain.dtos import FieldError, ValidationResult
from quoter_kernel.logging_config import get_logger

logger = get_logger("engines.validation")

# Error codes
MISSING_REQUIRED_FIELD = "MISSING_REQUIRED_FIELD"
INVALID_TYPE = "INVALID_TYPE"
OUT_OF_RANGE = "OUT_OF_RANGE"
INVALID_CHOICE = "INVALID_CHOICE"
UNKNOWN_FIELD = "UNKNOWN_FIELD"
UNKNOWN_OVERRIDE = "UNKNOWN_OVERRIDE"
FINISH_NOT_ALLOWED = "FINISH_NOT_ALLOWED"
NO_FINISH_RULES = "NO_FINISH_RULES"
OVERRIDE_BASE_MISMATCH = "OVERRIDE_BASE_MISMATCH"

_ITEM_FIELDS = frozenset({
    "width_mm", "height_mm", "allowance_mm", "material", "sheet_size", "finish",
    "letter_sets", "illumination", "labour_hours", "markup_percent", "aperture",
    "overrides",
})
# "type" is accepted as a short alias for "letter_type".
_LETTER_SET_FIELDS = frozenset({"letter_type", "type", "finish", "height_mm", "qty", "text"})
_APERTURE_FIELDS = frozenset({"width_mm", "height_mm", "opal_type", "sheet_size"})
_OVERRIDE_FIELDS = frozenset({"override", "original", "reason_code", "note"})
_OVERRIDE_TARGETS = frozenset({"markup_percent", "labour_hours"})

_HUNDRED = Decimal("100")
_MAX_HOURS = Decimal(MAX_LABOUR_HOURS)
_ZERO = Decimal("0")

_MISSING = object()


class _Errors:
    """Accumulates FieldErrors in the order they are found."""

    def __init__(self) -> None:
        self.items: list[FieldError] = []

    def add(self, code: str, field: str, message: str, **details: Any) -> None:
        self.items.append(FieldError(code=code, message=message, field=field, details=details or None))

    def __len__(self) -> int:
        return len(self.items)


def _path(prefix: str, name: str) -> str:
    return f"{prefix}.{name}" if prefix else name


def _check_unknown(raw: Mapping[str, Any], allowed: frozenset[str], prefix: str, errors: _Errors) -> None:
    for key in sorted(set(raw) - allowed, key=str):
        errors.add(UNKNOWN_FIELD, _path(prefix, str(key)), f"Unknown field {key!r}")


def _require(raw: Mapping[str, Any], name: str, prefix: str, errors: _Errors) -> Any:
    value = raw.get(name, _MISSING)
    if value is _MISSING or value is None:
        errors.add(MISSING_REQUIRED_FIELD, _path(prefix, name), f"{name} is required")
        return _MISSING
    return value


def _int(
    value: Any,
    path: str,
    errors: _Errors,
    minimum: int | None = None,
    maximum: int | None = None,
) -> int | None:
    if isinstance(value, bool) or not isinstance(value, int):
        errors.add(INVALID_TYPE, path, f"must be an integer, got {value!r}")
        return None
    if (minimum is not None and value < minimum) or (maximum is not None and value > maximum):
        bounds = f"{minimum if minimum is not None else '-inf'}..{maximum if maximum is not None else 'inf'}"
        errors.add(OUT_OF_RANGE, path, f"must be in {bounds}, got {value}", minimum=minimum, maximum=maximum)
        return None
    return value


def _decimal(
    value: Any,
    path: str,
    errors: _Errors,
    maximum: Decimal | None = None,
) -> Decimal | None:
    """Non-negative decimal; floats are converted via their repr."""
    if isinstance(value, bool) or not isinstance(value, (int, float, str, Decimal)):
        errors.add(INVALID_TYPE, path, f"must be a number, got {value!r}")
        return None
    try:
        number = value if isinstance(value, Decimal) else Decimal(str(value))
    except InvalidOperation:
        errors.add(INVALID_TYPE, path, f"must be a number, got {value!r}")
        return None
    if not number.is_finite():
        errors.add(INVALID_TYPE, path, f"must be a finite number, got {value!r}")
        return None
    if number < _ZERO or (maximum is not None and number > maximum):
        upper = "" if maximum is None else f" and at most {maximum}"
        errors.add(OUT_OF_RANGE, path, f"must be at least 0{upper}, got {number}")
        return None
    return number


def _string(value: Any, path: str, errors: _Errors) -> str | None:
    if not isinstance(value, str) or not value.strip():
        errors.add(INVALID_TYPE, path, f"must be a non-empty string, got {value!r}")
        return None
    return value


def _choice(value: Any, choices: tuple[str, ...], path: str, errors: _Errors) -> str | None:
    if value not in choices:
        errors.add(
            INVALID_CHOICE, path,
            f"{value!r} is not one of: {', '.join(choices)}",
            allowed=list(choices),
        )
        return None
    return value


# ---------------------------------------------------------------------------
# Sections
# ---------------------------------------------------------------------------


def _validate_letter_set(
    raw: Any,
    path: str,
    finish_rules: Mapping[str, frozenset[str]],
    catalog: OptionCatalog,
    errors: _Errors,
) -> LetterSetInput | None:
    if not isinstance(raw, Mapping):
        errors.add(INVALID_TYPE, path, "must be a mapping")
        return None
    before = len(errors)
    _check_unknown(raw, _LETTER_SET_FIELDS, path, errors)

    if "letter_type" in raw and "type" in raw:
        errors.add(INVALID_TYPE, _path(path, "type"), "give letter_type or type, not both")
        letter_type = _MISSING
    elif raw.get("letter_type") is None and raw.get("type") is not None:
        letter_type = raw["type"]
    else:
        letter_type = _require(raw, "letter_type", path, errors)
    if letter_type is not _MISSING:
        letter_type = _choice(letter_type, catalog.letter_types, _path(path, "letter_type"), errors)

    finish = _require(raw, "finish", path, errors)
    if finish is not _MISSING:
        finish = _string(finish, _path(path, "finish"), errors)

    if isinstance(letter_type, str) and isinstance(finish, str):
        allowed = finish_rules.get(letter_type, frozenset())
        if not allowed:
            errors.add(
                NO_FINISH_RULES, _path(path, "finish"),
                f"No finish rules exist for letter type {letter_type!r}",
            )
        elif finish not in allowed:
            errors.add(
                FINISH_NOT_ALLOWED, _path(path, "finish"),
                f"Finish {finish!r} is not allowed for {letter_type}; "
                f"allowed: {', '.join(sorted(allowed))}",
                allowed=sorted(allowed),
            )

    height = _require(raw, "height_mm", path, errors)
    if height is not _MISSING:
        height = _int(height, _path(path, "height_mm"), errors, MIN_LETTER_HEIGHT_MM, MAX_LETTER_HEIGHT_MM)

    text = raw.get("text")
    if text is not None and not isinstance(text, str):
        errors.add(INVALID_TYPE, _path(path, "text"), "must be a string")
        text = None

    qty: Any = raw.get("qty")
    if qty is not None:
        qty = _int(qty, _path(path, "qty"), errors, 1, MAX_LETTER_QTY)
    elif text is not None:
        qty = sum(1 for ch in text if not ch.isspace())
        if not 1 <= qty <= MAX_LETTER_QTY:
            errors.add(
                OUT_OF_RANGE, _path(path, "text"),
                f"must contain 1..{MAX_LETTER_QTY} letters, got {qty}",
            )
            qty = None
    else:
        errors.add(MISSING_REQUIRED_FIELD, _path(path, "qty"), "qty or text is required")

    if len(errors) > before:
        return None
    return LetterSetInput(
        letter_type=letter_type, finish=finish, height_mm=height, qty=qty, text=text,
    )


def _validate_aperture(raw: Any, catalog: OptionCatalog, errors: _Errors) -> ApertureInput | None:
    path = "aperture"
    if not isinstance(raw, Mapping):
        errors.add(INVALID_TYPE, path, "must be a mapping")
        return None
    before = len(errors)
    _check_unknown(raw, _APERTURE_FIELDS, path, errors)

    dims = {}
    for name in ("width_mm", "height_mm"):
        value = _require(raw, name, path, errors)
        if value is not _MISSING:
            dims[name] = _int(value, _path(path, name), errors, 1, MAX_PANEL_DIMENSION_MM)

    opal_type = _require(raw, "opal_type", path, errors)
    if opal_type is not _MISSING:
        opal_type = _choice(opal_type, catalog.opal_types, _path(path, "opal_type"), errors)

    sheet_size = _choice(
        raw.get("sheet_size", DEFAULT_OPAL_SHEET_SIZE),
        catalog.opal_sheet_sizes, _path(path, "sheet_size"), errors,
    )

    if len(errors) > before:
        return None
    return ApertureInput(
        width_mm=dims["width_mm"], height_mm=dims["height_mm"],
        opal_type=opal_type, sheet_size=sheet_size,
    )


def _validate_override(
    raw: Any,
    path: str,
    base: Decimal | None,
    maximum: Decimal | None,
    errors: _Errors,
) -> Override | None:
    if not isinstance(raw, Mapping):
        errors.add(INVALID_TYPE, path, "must be a mapping")
        return None
    before = len(errors)
    _check_unknown(raw, _OVERRIDE_FIELDS, path, errors)

    value = _require(raw, "override", path, errors)
    if value is not _MISSING:
        value = _decimal(value, _path(path, "override"), errors, maximum)

    original = raw.get("original")
    if original is not None:
        original = _decimal(original, _path(path, "original"), errors, maximum)
        if original is not None and base is not None and original != base:
            errors.add(
                OVERRIDE_BASE_MISMATCH, _path(path, "original"),
                f"original {original} does not match the input value {base}",
                expected=str(base), actual=str(original),
            )

    reason = _require(raw, "reason_code", path, errors)
    if reason is not _MISSING:
        choices = tuple(r.value for r in OverrideReason)
        reason = _choice(reason, choices, _path(path, "reason_code"), errors)

    note = _require(raw, "note", path, errors)
    if note is not _MISSING:
        note = _string(note, _path(path, "note"), errors)

    if len(errors) > before:
        return None
    return Override(
        override=value, reason_code=OverrideReason(reason), note=note, original=original,
    )


def _validate_overrides(
    raw: Any,
    labour_hours: Mapping[str, Decimal],
    markup: Decimal | None,
    errors: _Errors,
) -> Overrides:
    if raw is None:
        return Overrides()
    if not isinstance(raw, Mapping):
        errors.add(INVALID_TYPE, "overrides", "must be a mapping")
        return Overrides()

    for key in sorted(set(raw) - _OVERRIDE_TARGETS, key=str):
        errors.add(UNKNOWN_OVERRIDE, f"overrides.{key}", f"{key!r} is not an overridable field")

    markup_override = None
    if raw.get("markup_percent") is not None:
        markup_override = _validate_override(
            raw["markup_percent"], "overrides.markup_percent", markup, _HUNDRED, errors,
        )

    labour: dict[str, Override] = {}
    labour_raw = raw.get("labour_hours")
    if labour_raw is not None:
        if not isinstance(labour_raw, Mapping):
            errors.add(INVALID_TYPE, "overrides.labour_hours", "must be a mapping")
        else:
            for task in sorted(set(labour_raw) - set(LABOUR_TASKS), key=str):
                errors.add(
                    UNKNOWN_OVERRIDE, f"overrides.labour_hours.{task}",
                    f"{task!r} is not a labour task",
                )
            for task in LABOUR_TASKS:
                if labour_raw.get(task) is None:
                    continue
                parsed = _validate_override(
                    labour_raw[task], f"overrides.labour_hours.{task}",
                    labour_hours.get(task), _MAX_HOURS, errors,
                )
                if parsed is not None:
                    labour[task] = parsed

    return Overrides(markup_percent=markup_override, labour_hours=labour)


def _validate_labour_hours(raw: Any, errors: _Errors) -> dict[str, Decimal]:
    hours = {task: _ZERO for task in LABOUR_TASKS}
    if raw is None:
        return hours
    if not isinstance(raw, Mapping):
        errors.add(INVALID_TYPE, "labour_hours", "must be a mapping")
        return hours
    _check_unknown(raw, frozenset(LABOUR_TASKS), "labour_hours", errors)
    for task in LABOUR_TASKS:
        if raw.get(task) is None:
            continue
        value = _decimal(raw[task], f"labour_hours.{task}", errors, _MAX_HOURS)
        if value is not None:
            hours[task] = value
    return hours


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def validate(
    raw: Mapping[str, Any],
    finish_rules: Mapping[str, frozenset[str]],
    catalog: OptionCatalog = DEFAULT_CATALOG,
) -> ValidationResult[PanelLettersV1Input]:
    """
    Validate and normalize a raw panel-letters quote item.

    Args:
        raw: JSON-like dict as submitted by a client.
        finish_rules: letter type -> allowed finishes, normally
            ``rate_card.letter_finish_rules``.
        catalog: the selectable options.

    Returns:
        ValidationResult with a ``PanelLettersV1Input`` on success, or every
        field-level error on failure.
    """
    errors = _Errors()

    if not isinstance(raw, Mapping):
        errors.add(INVALID_TYPE, "", "quote item must be a mapping")
        return ValidationResult.failure(*errors.items)

    _check_unknown(raw, _ITEM_FIELDS, "", errors)

    dims: dict[str, int | None] = {}
    for name in ("width_mm", "height_mm"):
        value = _require(raw, name, "", errors)
        dims[name] = None if value is _MISSING else _int(value, name, errors, 1, MAX_PANEL_DIMENSION_MM)

    allowance = _int(raw.get("allowance_mm", 0), "allowance_mm", errors)
    if allowance is not None:
        for name in ("width_mm", "height_mm"):
            size = dims[name]
            if size is None:
                continue
            adjusted = size - 2 * allowance
            if adjusted <= 0:
                errors.add(
                    OUT_OF_RANGE, name,
                    f"{name} after allowance is {adjusted}mm; must be positive",
                )
            elif adjusted > MAX_PANEL_DIMENSION_MM:
                errors.add(
                    OUT_OF_RANGE, name,
                    f"{name} after allowance is {adjusted}mm; "
                    f"must be at most {MAX_PANEL_DIMENSION_MM}mm",
                    maximum=MAX_PANEL_DIMENSION_MM,
                )

    material = _require(raw, "material", "", errors)
    if material is not _MISSING:
        material = _string(material, "material", errors)

    sheet_size = _require(raw, "sheet_size", "", errors)
    if sheet_size is not _MISSING:
        sheet_size = _choice(sheet_size, catalog.sheet_sizes, "sheet_size", errors)

    finish = _require(raw, "finish", "", errors)
    if finish is not _MISSING:
        finish = _string(finish, "finish", errors)

    letter_sets: list[LetterSetInput] = []
    raw_sets = _require(raw, "letter_sets", "", errors)
    if raw_sets is not _MISSING:
        if not isinstance(raw_sets, (list, tuple)):
            errors.add(INVALID_TYPE, "letter_sets", "must be a list")
        elif not 1 <= len(raw_sets) <= MAX_LETTER_SETS:
            errors.add(
                OUT_OF_RANGE, "letter_sets",
                f"must contain 1..{MAX_LETTER_SETS} letter sets, got {len(raw_sets)}",
            )
        else:
            for i, raw_set in enumerate(raw_sets):
                parsed = _validate_letter_set(raw_set, f"letter_sets[{i}]", finish_rules, catalog, errors)
                if parsed is not None:
                    letter_sets.append(parsed)

    illumination = raw.get("illumination", False)
    if not isinstance(illumination, bool):
        errors.add(INVALID_TYPE, "illumination", f"must be true or false, got {illumination!r}")

    labour_hours = _validate_labour_hours(raw.get("labour_hours"), errors)

    markup = _require(raw, "markup_percent", "", errors)
    markup = None if markup is _MISSING else _decimal(markup, "markup_percent", errors, _HUNDRED)

    aperture = None
    if raw.get("aperture") is not None:
        aperture = _validate_aperture(raw["aperture"], catalog, errors)

    overrides = _validate_overrides(raw.get("overrides"), labour_hours, markup, errors)

    if errors.items:
        logger.info(
            "validation_failed",
            extra={
                "error_count": len(errors.items),
                "error_fields": [e.field for e in errors.items],
            },
        )
        return ValidationResult.failure(*errors.items)

    item = PanelLettersV1Input(
        width_mm=dims["width_mm"],
        height_mm=dims["height_mm"],
        allowance_mm=allowance,
        material=material,
        sheet_size=sheet_size,
        finish=finish,
        letter_sets=tuple(letter_sets),
        illumination=illumination,
        labour_hours=labour_hours,
        markup_percent=markup,
        aperture=aperture,
        overrides=overrides,
    )
    return ValidationResult.success(item)
