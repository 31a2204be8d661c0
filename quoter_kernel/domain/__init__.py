"""
Pure domain layer.

Value helpers and DTOs with NO dependencies on ORM, database or I/O.
"""

from quoter_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from quoter_kernel.domain.dtos import FieldError, ValidationResult
from quoter_kernel.domain.pence import (
    apply_percent,
    area_cost,
    area_m2,
    ceil_div,
    round_half_up,
)

__all__ = [
    "Clock",
    "DeterministicClock",
    "SystemClock",
    "FieldError",
    "ValidationResult",
    "apply_percent",
    "area_cost",
    "area_m2",
    "ceil_div",
    "round_half_up",
]
