"""Type definitions for compensation calculation."""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any
from uuid import UUID


class RateModel(str, Enum):
    """Closed set of pay-rate formulas."""

    FLAT = "flat"
    PER_DIRECTION = "per_direction"
    PERCENT_REVENUE = "percent_revenue"
    TIERED_HOURS = "tiered_hours"
    TIERED_QUANTITY = "tiered_quantity"


def to_decimal(value: Any) -> Decimal | None:
    """Coerce a JSON-ish number to Decimal; None for blanks, garbage and non-finite values."""
    if value is None or isinstance(value, bool):
        return None
    if not isinstance(value, Decimal):
        try:
            value = Decimal(str(value).strip())
        except (InvalidOperation, ValueError):
            return None
    return value if value.is_finite() else None


@dataclass(frozen=True)
class PayRateRule:
    """Pay rule for one staffing position."""

    position_key: str
    position_label: str
    rate_model: RateModel
    parameters: dict[str, Any] = field(default_factory=dict)
    notes: str | None = None
    id: UUID | None = None

    def parameter(self, key: str) -> Decimal | None:
        return to_decimal(self.parameters.get(key))


@dataclass
class CompensationOverride:
    """Per-assignment adjustments to a rule, or a fixed manual total."""

    overrides: dict[str, Decimal] = field(default_factory=dict)
    manual_total: Decimal | None = None
    notes: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> CompensationOverride | None:
        """Parse a stored ``compensation_config`` value."""
        if not data:
            return None
        overrides: dict[str, Decimal] = {}
        for key, raw in (data.get("overrides") or {}).items():
            value = to_decimal(raw)
            if value is not None:
                overrides[key] = value
        return cls(
            overrides=overrides,
            manual_total=to_decimal(data.get("manual_total")),
            notes=data.get("notes"),
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize for the JSON ``compensation_config`` column."""
        data: dict[str, Any] = {
            "overrides": {k: float(v) for k, v in self.overrides.items()},
        }
        if self.manual_total is not None:
            data["manual_total"] = float(self.manual_total)
        if self.notes:
            data["notes"] = self.notes
        return data

    def merged_with(self, other: CompensationOverride | None) -> CompensationOverride:
        """Layer ``other`` on top of this override, key by key."""
        if other is None:
            return CompensationOverride(dict(self.overrides), self.manual_total, self.notes)
        return CompensationOverride(
            overrides={**self.overrides, **other.overrides},
            manual_total=(
                other.manual_total if other.manual_total is not None else self.manual_total
            ),
            notes=other.notes or self.notes,
        )


@dataclass(frozen=True)
class CompensationContext:
    """Event-level facts some rate models depend on."""

    revenue_pre_tax: Decimal | None = None
    event_duration_hours: Decimal | None = None
    currency_symbol: str = "MX$"


@dataclass(frozen=True)
class CompensationResult:
    """Outcome of a compensation calculation."""

    total: Decimal
    breakdown: str
    effective_parameters: dict[str, Decimal] = field(default_factory=dict)
    needs_revenue: bool = False


@dataclass(frozen=True)
class OverrideField:
    """An override input a rule accepts."""

    key: str
    label: str
    min: Decimal | None = None
    step: Decimal | None = None
    helper_text: str | None = None
