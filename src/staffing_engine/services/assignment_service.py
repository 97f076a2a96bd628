"""Direct edits to event staff assignments.

Covers the free-form assignment list: adding a staffer to an event role,
saving per-assignment compensation overrides and removing an assignment.
The positions grid goes through :mod:`staffing_engine.services.reconciler`
instead; both respect the one-assignment-per-role rule.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import TYPE_CHECKING
from uuid import UUID

from staffing_engine.calculators.compensation import calculate_compensation
from staffing_engine.calculators.types import (
    CompensationContext,
    CompensationOverride,
    CompensationResult,
)
from staffing_engine.catalog.positions import normalize_role, role_label
from staffing_engine.stores.base import AssignmentNotFoundError

if TYPE_CHECKING:
    from staffing_engine.catalog.rate_catalog import RateRuleCatalog
    from staffing_engine.stores.base import AssignmentStore, EventLookup, StaffDirectory

logger = logging.getLogger(__name__)


class StaffNotFoundError(Exception):
    """Raised when a staff id is not in the staff directory."""

    def __init__(self, staff_id: UUID):
        self.staff_id = staff_id
        super().__init__(f"Staff member {staff_id} not found")


class EventNotFoundError(Exception):
    """Raised when an event id does not exist."""

    def __init__(self, event_id: UUID):
        self.event_id = event_id
        super().__init__(f"Event {event_id} not found")


class AssignmentLockedError(Exception):
    """Raised when editing pay on an assignment already in a payroll batch."""

    def __init__(self, assignment_id: UUID, batch_id: UUID | None):
        self.assignment_id = assignment_id
        self.batch_id = batch_id
        super().__init__(
            f"Assignment {assignment_id} is locked by payroll batch {batch_id}"
        )


class AssignmentService:
    """Service for single-assignment edits."""

    def __init__(
        self,
        assignments: AssignmentStore,
        staff: StaffDirectory,
        events: EventLookup,
        catalog: RateRuleCatalog,
    ):
        self.assignments = assignments
        self.staff = staff
        self.events = events
        self.catalog = catalog

    async def assign_staff(
        self,
        event_id: UUID,
        staff_id: UUID,
        role: str,
        context: CompensationContext | None = None,
        manual_total: Decimal | None = None,
        pay_type: str = "flat",
    ) -> UUID:
        """Add a staffer to an event role, priced from the role's rule.

        A ``manual_total`` is stored as the assignment's override and wins
        over the rule.

        Raises:
            ValueError: If ``role`` is blank
            EventNotFoundError: If the event does not exist
            StaffNotFoundError: If the staffer does not exist
            DuplicateAssignmentError: If the role is already filled
        """
        role_id = normalize_role(role)
        if role_id is None:
            raise ValueError("Role is required")
        if await self.events.get_event_date(event_id) is None:
            raise EventNotFoundError(event_id)
        if not await self.staff.staff_exists(staff_id):
            raise StaffNotFoundError(staff_id)

        rules = await self.catalog.load()
        rule = rules.get_rule(role_id)
        override = (
            CompensationOverride(manual_total=manual_total) if manual_total is not None else None
        )
        result = calculate_compensation(rule, override, context)

        assignment_id = await self.assignments.insert_assignment(
            {
                "event_id": event_id,
                "staff_id": staff_id,
                "role": role_label(role_id),
                "status": "confirmed",
                "pay_type": pay_type,
                "pay_rate": result.total,
                "total_pay": result.total,
                "compensation_config": override.to_dict() if override else None,
                "pay_rate_id": rule.id if rule else None,
                "is_paid": False,
            }
        )
        logger.info("Assigned staff %s to %s on event %s", staff_id, role_label(role_id), event_id)
        return assignment_id

    async def save_compensation(
        self,
        assignment_id: UUID,
        override: CompensationOverride | None,
        context: CompensationContext | None = None,
        use_suggested: bool = False,
    ) -> CompensationResult:
        """Recalculate and persist an assignment's pay.

        ``override`` is layered over the stored configuration key by key.
        With ``use_suggested`` any manual total is dropped so the rule's
        figure is saved.

        Raises:
            AssignmentNotFoundError: If the assignment does not exist
            AssignmentLockedError: If the assignment is in a payroll batch
        """
        assignment = await self.assignments.get_assignment(assignment_id)
        if assignment is None:
            raise AssignmentNotFoundError(assignment_id)
        if assignment.payroll_batch_id is not None or assignment.is_paid:
            raise AssignmentLockedError(assignment_id, assignment.payroll_batch_id)

        stored = CompensationOverride.from_dict(assignment.compensation_config)
        config = stored.merged_with(override) if stored else override
        if use_suggested and config is not None:
            config = CompensationOverride(overrides=dict(config.overrides), notes=config.notes)

        rules = await self.catalog.load()
        rule = rules.get_rule(assignment.role)
        result = calculate_compensation(rule, config, context)

        await self.assignments.update_assignment(
            assignment_id,
            {
                "pay_rate": result.total,
                "total_pay": result.total,
                "compensation_config": config.to_dict() if config else None,
                "pay_rate_id": rule.id if rule else None,
            },
        )
        return result

    async def remove_assignment(self, assignment_id: UUID) -> None:
        """Delete an assignment that has not entered payroll.

        Raises:
            AssignmentNotFoundError: If the assignment does not exist
            AssignmentLockedError: If the assignment is in a payroll batch
        """
        assignment = await self.assignments.get_assignment(assignment_id)
        if assignment is None:
            raise AssignmentNotFoundError(assignment_id)
        if assignment.payroll_batch_id is not None or assignment.is_paid:
            raise AssignmentLockedError(assignment_id, assignment.payroll_batch_id)
        await self.assignments.delete_assignment(assignment_id)
