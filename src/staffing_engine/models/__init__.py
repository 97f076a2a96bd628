"""SQLAlchemy ORM models."""

from staffing_engine.models.base import Base, TimestampMixin
from staffing_engine.models.staffing import (
    Event,
    EventStaffAssignment,
    PayrollBatch,
    StaffMember,
    StaffPayRate,
)

__all__ = [
    "Base",
    "TimestampMixin",
    "Event",
    "EventStaffAssignment",
    "PayrollBatch",
    "StaffMember",
    "StaffPayRate",
]
