"""
Validation DTOs shared across layers.

Pure, immutable value objects. No I/O, no ORM.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

from quoter_kernel.exceptions import InputValidationError

T = TypeVar("T")


@dataclass(frozen=True)
class FieldError:
    """
    A single field-level validation error.

    Contract:
        Carries a machine-readable code, a human-readable message and the
        dotted path of the offending field (``letter_sets[1].finish``) so the
        caller can attribute the error to a UI control.
    """

    code: str
    message: str
    field: str | None = None
    details: dict[str, Any] | None = None

    def __str__(self) -> str:
        return f"{self.field}: {self.message}" if self.field else self.message


@dataclass(frozen=True)
class ValidationResult(Generic[T]):
    """
    Result of validation.

    Contract:
        Either ``value`` is the normalized, fully-typed object and ``errors``
        is empty, or ``value`` is None and ``errors`` lists every problem
        found. Never partial success.

    Guarantees:
        - Immutable (frozen dataclass)
        - errors is always a tuple (never None)
        - bool(result) == result.is_valid
    """

    value: T | None = None
    errors: tuple[FieldError, ...] = field(default_factory=tuple)

    @classmethod
    def success(cls, value: T) -> ValidationResult[T]:
        return cls(value=value, errors=())

    @classmethod
    def failure(cls, *errors: FieldError) -> ValidationResult[T]:
        return cls(value=None, errors=tuple(errors))

    @property
    def is_valid(self) -> bool:
        return not self.errors

    @property
    def messages(self) -> list[str]:
        return [str(e) for e in self.errors]

    def errors_for(self, field_path: str) -> list[FieldError]:
        """Errors attributed to ``field_path`` or any of its children."""
        return [
            e for e in self.errors
            if e.field is not None
            and (e.field == field_path or e.field.startswith(field_path + ".")
                 or e.field.startswith(field_path + "["))
        ]

    def unwrap(self) -> T:
        """Return the value or raise InputValidationError with every error."""
        if self.errors:
            raise InputValidationError(self.errors)
        assert self.value is not None
        return self.value

    def __bool__(self) -> bool:
        return self.is_valid
