"""Compensation calculation."""

from staffing_engine.calculators.compensation import (
    calculate_compensation,
    override_fields,
    round_to_cents,
)
from staffing_engine.calculators.types import (
    CompensationContext,
    CompensationOverride,
    CompensationResult,
    OverrideField,
    PayRateRule,
    RateModel,
)

__all__ = [
    "calculate_compensation",
    "override_fields",
    "round_to_cents",
    "CompensationContext",
    "CompensationOverride",
    "CompensationResult",
    "OverrideField",
    "PayRateRule",
    "RateModel",
]
