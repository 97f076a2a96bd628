"""Readiness and liveness endpoints."""

import logging

from fastapi import APIRouter, status
from pydantic import BaseModel
from sqlalchemy import func, select

from staffing_engine.api.dependencies import DbSession
from staffing_engine.models import StaffPayRate

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    """Whether the database answers and where pay rules will come from."""

    status: str
    database: str
    pay_rates: str
    configured_positions: int = 0


@router.get(
    "/health",
    response_model=HealthResponse,
    status_code=status.HTTP_200_OK,
)
async def health_check(db: DbSession) -> HealthResponse:
    """Report database reachability and whether pay rates fall back to defaults."""
    try:
        configured = await db.scalar(select(func.count()).select_from(StaffPayRate))
    except Exception:
        logger.warning("Health check could not read staff_pay_rate", exc_info=True)
        await db.rollback()
        return HealthResponse(status="degraded", database="unhealthy", pay_rates="defaults")

    return HealthResponse(
        status="healthy",
        database="healthy",
        pay_rates="configured" if configured else "defaults",
        configured_positions=configured or 0,
    )


@router.get("/live", status_code=status.HTTP_200_OK)
async def liveness_check() -> dict[str, str]:
    """Liveness check for container orchestration."""
    return {"status": "alive"}
