"""Staff, event, pay rate, assignment and payroll batch models."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Any
from uuid import UUID, uuid4

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    ForeignKey,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from staffing_engine.models.base import Base, TimestampMixin


# ===== Directory records =====


class StaffMember(Base, TimestampMixin):
    """A person who can be assigned to event roles."""

    __tablename__ = "staff_member"

    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    first_name: Mapped[str] = mapped_column(String, nullable=False)
    last_name: Mapped[str] = mapped_column(String, nullable=False, default="")
    email: Mapped[str | None] = mapped_column(String, nullable=True)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


class Event(Base, TimestampMixin):
    """A catered event. Only the fields payroll needs are mapped."""

    __tablename__ = "event"

    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    name: Mapped[str] = mapped_column(String, nullable=False)
    event_date: Mapped[date] = mapped_column("date", nullable=False)
    venue_name: Mapped[str | None] = mapped_column(String, nullable=True)


# ===== Pay Rates =====


class StaffPayRate(Base, TimestampMixin):
    """Administrator-configured pay rule for one staffing position."""

    __tablename__ = "staff_pay_rate"

    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    position_key: Mapped[str] = mapped_column(String, nullable=False, unique=True)
    position_label: Mapped[str] = mapped_column(String, nullable=False)
    rate_type: Mapped[str] = mapped_column(String, nullable=False)
    config: Mapped[dict[str, Any]] = mapped_column(nullable=False, default=dict)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    __table_args__ = (
        CheckConstraint(
            "rate_type IN ('flat', 'per_direction', 'percent_revenue', "
            "'tiered_hours', 'tiered_quantity')",
            name="staff_pay_rate_type_check",
        ),
    )


# ===== Payroll =====


class PayrollBatch(Base, TimestampMixin):
    """Weekly grouping of assignments paid together."""

    __tablename__ = "payroll_batch"

    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    period_start: Mapped[date] = mapped_column(nullable=False)
    period_end: Mapped[date] = mapped_column(nullable=False)
    payment_date: Mapped[date] = mapped_column(nullable=False)
    total_amount: Mapped[Decimal] = mapped_column(nullable=False)
    status: Mapped[str] = mapped_column(String, nullable=False, default="draft")
    processed_at: Mapped[datetime | None] = mapped_column(nullable=True)

    __table_args__ = (
        CheckConstraint(
            "status IN ('draft', 'processed', 'paid')",
            name="payroll_batch_status_check",
        ),
        CheckConstraint("period_end >= period_start", name="payroll_batch_dates_check"),
    )


class EventStaffAssignment(Base, TimestampMixin):
    """One staffer holding one role at one event."""

    __tablename__ = "event_staff_assignment"

    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    event_id: Mapped[UUID] = mapped_column(
        ForeignKey("event.id", ondelete="CASCADE"),
        nullable=False,
    )
    staff_id: Mapped[UUID] = mapped_column(
        ForeignKey("staff_member.id"),
        nullable=False,
    )
    role: Mapped[str] = mapped_column(String, nullable=False)
    status: Mapped[str] = mapped_column(String, nullable=False, default="confirmed")

    # Financials
    pay_type: Mapped[str] = mapped_column(String, nullable=False, default="flat")
    pay_rate: Mapped[Decimal | None] = mapped_column(nullable=True)
    total_pay: Mapped[Decimal | None] = mapped_column(nullable=True)
    pay_rate_id: Mapped[UUID | None] = mapped_column(nullable=True)
    compensation_config: Mapped[dict[str, Any] | None] = mapped_column(nullable=True)

    # Payroll status
    is_paid: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    paid_at: Mapped[datetime | None] = mapped_column(nullable=True)
    payroll_batch_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("payroll_batch.id"),
        nullable=True,
    )
    payment_reference: Mapped[str | None] = mapped_column(String, nullable=True)

    __table_args__ = (
        UniqueConstraint("event_id", "role", name="event_staff_assignment_role_unique"),
        CheckConstraint(
            "status IN ('pending', 'confirmed', 'declined', 'completed')",
            name="event_staff_assignment_status_check",
        ),
        CheckConstraint(
            "pay_type IN ('hourly', 'flat')",
            name="event_staff_assignment_pay_type_check",
        ),
    )

