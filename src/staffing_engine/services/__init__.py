"""Staffing engine services."""

from staffing_engine.services.assignment_service import AssignmentService
from staffing_engine.services.payroll_batcher import (
    NoEligibleAssignmentsError,
    PayrollBatcher,
    StaffTotal,
    staff_totals,
    week_containing,
)
from staffing_engine.services.reconciler import AssignmentReconciler, SkipReason, SyncReport
from staffing_engine.services.state_machine import (
    InvalidTransitionError,
    PayrollBatchStateMachine,
    PayrollBatchStatus,
)

__all__ = [
    "AssignmentService",
    "NoEligibleAssignmentsError",
    "PayrollBatcher",
    "StaffTotal",
    "staff_totals",
    "week_containing",
    "AssignmentReconciler",
    "SkipReason",
    "SyncReport",
    "InvalidTransitionError",
    "PayrollBatchStateMachine",
    "PayrollBatchStatus",
]
