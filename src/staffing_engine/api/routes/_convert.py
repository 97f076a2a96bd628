"""Schema to domain conversions shared by the routes."""

from staffing_engine.api.schemas import CompensationContextIn, CompensationOverrideIn
from staffing_engine.calculators.types import CompensationContext, CompensationOverride


def to_context(payload: CompensationContextIn, currency_symbol: str) -> CompensationContext:
    return CompensationContext(
        revenue_pre_tax=payload.revenue_pre_tax,
        event_duration_hours=payload.event_duration_hours,
        currency_symbol=currency_symbol,
    )


def to_override(payload: CompensationOverrideIn | None) -> CompensationOverride | None:
    if payload is None:
        return None
    return CompensationOverride(
        overrides=dict(payload.overrides),
        manual_total=payload.manual_total,
        notes=payload.notes,
    )
