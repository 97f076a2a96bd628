"""Staff compensation calculator.

Priority order:
1. A manual total on the override wins outright.
2. No rule means nothing is owed.
3. Overrides are merged onto rule parameters key by key, then the rule's
   rate model picks the formula.

Results are floored at zero and rounded half-up to cents. The calculator is
pure: revenue and duration arrive through :class:`CompensationContext`.
"""

from __future__ import annotations

from collections.abc import Callable
from decimal import ROUND_HALF_UP, Decimal

from staffing_engine.calculators.types import (
    CompensationContext,
    CompensationOverride,
    CompensationResult,
    OverrideField,
    PayRateRule,
    RateModel,
    to_decimal,
)

ZERO = Decimal("0")
CENTS = Decimal("0.01")
DEFAULT_DIRECTIONS = Decimal("2")

_Outcome = tuple[Decimal, str, dict[str, Decimal]]


def round_to_cents(amount: Decimal) -> Decimal:
    """Round amount to 2 decimal places (cents)."""
    return amount.quantize(CENTS, rounding=ROUND_HALF_UP)


def _fmt(value: Decimal) -> str:
    """Render a number without trailing zeros ("2", "6.5", "125")."""
    text = format(value, "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text or "0"


class _Params:
    """Rule parameters with overrides layered on top."""

    def __init__(self, rule: PayRateRule, override: CompensationOverride | None):
        self.raw = dict(rule.parameters)
        self.values: dict[str, Decimal] = {}
        for key, value in rule.parameters.items():
            number = to_decimal(value)
            if number is not None:
                self.values[key] = number
        if override is not None:
            for key, value in override.overrides.items():
                number = to_decimal(value)
                if number is not None:
                    self.values[key] = number

    def pick(self, *keys: str, fallback: Decimal = ZERO) -> Decimal:
        """First present value among ``keys``, else ``fallback``."""
        for key in keys:
            if key in self.values:
                return self.values[key]
        return fallback


def _flat(params: _Params, context: CompensationContext) -> _Outcome:
    amount = params.pick("amount")
    return amount, "Flat per event", {"amount": amount}


def _per_direction(params: _Params, context: CompensationContext) -> _Outcome:
    amount_per_direction = params.pick("amount_per_direction")
    directions = params.pick("directions", "default_directions", fallback=DEFAULT_DIRECTIONS)
    total = amount_per_direction * directions
    breakdown = f"{_fmt(directions)} directions × {_fmt(amount_per_direction)}"
    return total, breakdown, {
        "amount_per_direction": amount_per_direction,
        "directions": directions,
    }


def _percent_revenue(params: _Params, context: CompensationContext) -> _Outcome:
    percentage = params.pick("percentage")
    revenue = to_decimal(context.revenue_pre_tax) or ZERO
    total = revenue * (percentage / Decimal("100"))
    breakdown = f"{_fmt(percentage)}% of {context.currency_symbol}{revenue:.2f}"
    return total, breakdown, {"percentage": percentage}


def _tiered_hours(params: _Params, context: CompensationContext) -> _Outcome:
    base_hours = params.pick("base_hours")
    base_amount = params.pick("base_amount")
    overtime_rate = params.pick("overtime_rate")
    hours = params.pick("hours", "default_hours", fallback=base_hours)

    base_rate = base_amount / base_hours if base_hours > 0 else ZERO
    base_span = min(hours, base_hours)
    overtime_hours = max(ZERO, hours - base_hours)
    total = base_span * base_rate + overtime_hours * overtime_rate
    breakdown = f"{_fmt(base_span)}h base + {_fmt(overtime_hours)}h overtime"
    return total, breakdown, {
        "hours": hours,
        "base_hours": base_hours,
        "base_amount": base_amount,
        "overtime_rate": overtime_rate,
    }


def _tiered_quantity(params: _Params, context: CompensationContext) -> _Outcome:
    base_quantity = params.pick("base_quantity")
    base_amount = params.pick("base_amount")
    extra_rate = params.pick("extra_rate")
    quantity = params.pick("quantity", fallback=base_quantity)

    if quantity <= base_quantity:
        total = base_amount
    else:
        total = base_amount + (quantity - base_quantity) * extra_rate
    unit_label = params.raw.get("unit_label") or "units"
    return total, f"{_fmt(quantity)} {unit_label}", {
        "quantity": quantity,
        "base_quantity": base_quantity,
        "base_amount": base_amount,
        "extra_rate": extra_rate,
    }


RATE_MODEL_FORMULAS: dict[RateModel, Callable[[_Params, CompensationContext], _Outcome]] = {
    RateModel.FLAT: _flat,
    RateModel.PER_DIRECTION: _per_direction,
    RateModel.PERCENT_REVENUE: _percent_revenue,
    RateModel.TIERED_HOURS: _tiered_hours,
    RateModel.TIERED_QUANTITY: _tiered_quantity,
}

_missing = set(RateModel) - set(RATE_MODEL_FORMULAS)
if _missing:
    raise RuntimeError(f"Rate models without a formula: {sorted(m.value for m in _missing)}")
del _missing


def calculate_compensation(
    rule: PayRateRule | None,
    override: CompensationOverride | None = None,
    context: CompensationContext | None = None,
) -> CompensationResult:
    """Compute what a staffer is owed for one assignment.

    Args:
        rule: Pay rule for the assignment's position, if any
        override: Per-assignment overrides or manual total
        context: Revenue and duration of the event

    Returns:
        CompensationResult with total, breakdown and effective parameters
    """
    context = context or CompensationContext()

    manual_total = to_decimal(override.manual_total) if override is not None else None
    if manual_total is not None:
        return CompensationResult(
            total=round_to_cents(manual_total),
            breakdown="Manual override",
            effective_parameters={"manual_total": manual_total},
        )

    if rule is None:
        return CompensationResult(total=ZERO, breakdown="No rule configured")

    formula = RATE_MODEL_FORMULAS[rule.rate_model]
    total, breakdown, effective = formula(_Params(rule, override), context)

    if not total.is_finite():
        total = ZERO
    return CompensationResult(
        total=round_to_cents(max(ZERO, total)),
        breakdown=breakdown,
        effective_parameters=effective,
        needs_revenue=(
            rule.rate_model is RateModel.PERCENT_REVENUE
            and not to_decimal(context.revenue_pre_tax)
        ),
    )


def override_fields(rule: PayRateRule | None) -> list[OverrideField]:
    """Override inputs an assignment on this rule may set."""
    if rule is None:
        return []
    if rule.rate_model is RateModel.PER_DIRECTION:
        return [
            OverrideField(
                "directions", "Directions", Decimal("0"), Decimal("1"), "Depart + return legs"
            )
        ]
    if rule.rate_model is RateModel.PERCENT_REVENUE:
        return [OverrideField("percentage", "Percent (%)", Decimal("0"), Decimal("0.1"))]
    if rule.rate_model is RateModel.TIERED_HOURS:
        return [OverrideField("hours", "Hours Worked", Decimal("0"), Decimal("0.25"))]
    if rule.rate_model is RateModel.TIERED_QUANTITY:
        return [OverrideField("quantity", "Quantity", Decimal("0"), Decimal("0.25"))]
    return []
