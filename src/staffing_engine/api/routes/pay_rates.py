"""Pay rate and compensation preview endpoints."""

from dataclasses import asdict

from fastapi import APIRouter

from staffing_engine.api.dependencies import Catalog
from staffing_engine.api.routes._convert import to_context, to_override
from staffing_engine.api.schemas import (
    CompensationPreviewRequest,
    CompensationResponse,
    OverrideFieldResponse,
    PayRateListResponse,
    PayRateRuleResponse,
)
from staffing_engine.calculators.compensation import calculate_compensation, override_fields
from staffing_engine.config import get_settings

router = APIRouter(tags=["pay-rates"])


@router.get("/pay-rates", response_model=PayRateListResponse)
async def list_pay_rates(catalog: Catalog) -> PayRateListResponse:
    """List the effective pay rules, including built-in defaults."""
    rules = await catalog.load()
    return PayRateListResponse(
        items=[
            PayRateRuleResponse(
                id=rule.id,
                position_key=rule.position_key,
                position_label=rule.position_label,
                rate_model=rule.rate_model.value,
                parameters=rule.parameters,
                notes=rule.notes,
                override_fields=[
                    OverrideFieldResponse(**asdict(f)) for f in override_fields(rule)
                ],
            )
            for rule in rules
        ],
        source=rules.source,
    )


@router.post("/compensation/preview", response_model=CompensationResponse)
async def preview_compensation(
    catalog: Catalog,
    payload: CompensationPreviewRequest,
) -> CompensationResponse:
    """Price a position without writing anything."""
    rules = await catalog.load()
    result = calculate_compensation(
        rules.get_rule(payload.position),
        to_override(payload.override),
        to_context(payload.context, get_settings().currency_symbol),
    )
    return CompensationResponse(
        total=result.total,
        breakdown=result.breakdown,
        effective_parameters=result.effective_parameters,
        needs_revenue=result.needs_revenue,
    )
