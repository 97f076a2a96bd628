"""Pydantic schemas for API request/response models."""

from datetime import date, datetime
from decimal import Decimal
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ErrorResponse(BaseModel):
    """Schema for error responses."""

    detail: str
    code: str | None = None


# ============================================================================
# Compensation schemas
# ============================================================================


class CompensationContextIn(BaseModel):
    """Event facts some rate models need."""

    revenue_pre_tax: Decimal | None = Field(default=None, ge=0)
    event_duration_hours: Decimal | None = Field(default=None, ge=0)


class CompensationOverrideIn(BaseModel):
    """Per-assignment overrides or manual total."""

    overrides: dict[str, Decimal] = Field(default_factory=dict)
    manual_total: Decimal | None = None
    notes: str | None = None


class OverrideFieldResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    key: str
    label: str
    min: Decimal | None = None
    step: Decimal | None = None
    helper_text: str | None = None


class PayRateRuleResponse(BaseModel):
    """Schema for a pay rule."""

    id: UUID | None = None
    position_key: str
    position_label: str
    rate_model: str
    parameters: dict[str, Any]
    notes: str | None = None
    override_fields: list[OverrideFieldResponse] = Field(default_factory=list)


class PayRateListResponse(BaseModel):
    items: list[PayRateRuleResponse]
    source: str


class CompensationPreviewRequest(BaseModel):
    position: str
    override: CompensationOverrideIn | None = None
    context: CompensationContextIn = Field(default_factory=CompensationContextIn)


class CompensationResponse(BaseModel):
    total: Decimal
    breakdown: str
    effective_parameters: dict[str, Decimal]
    needs_revenue: bool = False


# ============================================================================
# Staffing schemas
# ============================================================================


class PositionSyncRequest(BaseModel):
    """Desired role -> staff map from the positions grid."""

    positions: dict[str, UUID | None]
    context: CompensationContextIn = Field(default_factory=CompensationContextIn)

    @field_validator("positions", mode="before")
    @classmethod
    def blank_means_unassigned(cls, value: Any) -> Any:
        if isinstance(value, dict):
            return {k: (None if v in ("", None) else v) for k, v in value.items()}
        return value


class SkippedRoleResponse(BaseModel):
    role: str
    reason: str


class SyncReportResponse(BaseModel):
    created: list[str]
    updated: list[str]
    deleted: list[str]
    skipped: list[SkippedRoleResponse]
    summary: str


class AssignStaffRequest(BaseModel):
    staff_id: UUID
    role: str = Field(min_length=1)
    pay_type: str = Field(default="flat", pattern="^(hourly|flat)$")
    manual_total: Decimal | None = Field(default=None, ge=0)
    context: CompensationContextIn = Field(default_factory=CompensationContextIn)


class AssignmentCreatedResponse(BaseModel):
    id: UUID


class SaveCompensationRequest(BaseModel):
    override: CompensationOverrideIn | None = None
    use_suggested: bool = False
    context: CompensationContextIn = Field(default_factory=CompensationContextIn)


# ============================================================================
# Payroll schemas
# ============================================================================


class PayrollBatchCreate(BaseModel):
    """Any date inside the target Sunday–Saturday week."""

    anchor_date: date


class PayrollBatchResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    period_start: date
    period_end: date
    payment_date: date
    total_amount: Decimal
    status: str
    processed_at: datetime | None = None


class PayrollBatchListResponse(BaseModel):
    items: list[PayrollBatchResponse]
    total: int


class PayrollItemResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    event_id: UUID
    staff_id: UUID
    staff_name: str | None = None
    event_name: str | None = None
    event_date: date | None = None
    venue_name: str | None = None
    role: str
    status: str
    pay_rate: Decimal | None = None
    total_pay: Decimal | None = None
    is_paid: bool
    paid_at: datetime | None = None
    payment_reference: str | None = None


class StaffTotalResponse(BaseModel):
    """What one staffer is owed across a batch."""

    staff_id: UUID
    staff_name: str | None = None
    total: Decimal
    items: list[UUID]


class PayrollBatchDetailResponse(PayrollBatchResponse):
    items: list[PayrollItemResponse]
    staff_totals: list[StaffTotalResponse]


class ProcessBatchResponse(BaseModel):
    batch_id: UUID
    status: str
    assignments_paid: int
