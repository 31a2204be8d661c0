"""
quoter_engines -- pure pricing calculations.

Nothing in this package performs I/O, reads the clock, or imports the
database layer.  Callers pass an explicit ``RateCard`` to every call.
"""

from quoter_engines.inputs import (
    ApertureInput,
    LetterSetInput,
    Override,
    OverrideReason,
    Overrides,
    PanelLettersV1Input,
    Resolved,
    ResolvedInput,
    resolve,
)
from quoter_engines.panel_letters_v1 import (
    CostBreakdown,
    DerivedDimensions,
    LabourLine,
    LetterSetBreakdown,
    PanelLettersV1Output,
    calculate,
)
from quoter_engines.validation import validate

__all__ = [
    "ApertureInput",
    "LetterSetInput",
    "Override",
    "OverrideReason",
    "Overrides",
    "PanelLettersV1Input",
    "Resolved",
    "ResolvedInput",
    "resolve",
    "validate",
    "calculate",
    "CostBreakdown",
    "DerivedDimensions",
    "LabourLine",
    "LetterSetBreakdown",
    "PanelLettersV1Output",
]
