"""API routes."""

from staffing_engine.api.routes.health import router as health_router
from staffing_engine.api.routes.pay_rates import router as pay_rates_router
from staffing_engine.api.routes.payroll import router as payroll_router
from staffing_engine.api.routes.staffing import router as staffing_router

__all__ = ["health_router", "pay_rates_router", "payroll_router", "staffing_router"]
