"""Weekly payroll batch generation and processing.

A batch covers one Sunday–Saturday week and is paid the following
Wednesday. It collects every confirmed or completed assignment that is unpaid,
not yet batched, and belongs to an event dated inside the week. Amounts come
from the persisted ``total_pay`` (or ``pay_rate``); nothing is recalculated.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from typing import TYPE_CHECKING
from uuid import UUID

from staffing_engine.calculators.compensation import round_to_cents
from staffing_engine.services.state_machine import (
    PayrollBatchStateMachine,
    PayrollBatchStatus,
)
from staffing_engine.stores.base import AssignmentFilter

if TYPE_CHECKING:
    from staffing_engine.models import EventStaffAssignment, PayrollBatch
    from staffing_engine.stores.base import AssignmentStore, BatchStore

logger = logging.getLogger(__name__)

ELIGIBLE_STATUSES = ("confirmed", "completed")
PAYMENT_OFFSET = timedelta(days=3)


@dataclass(frozen=True)
class PayPeriod:
    """A Sunday–Saturday pay week."""

    start: date
    end: date

    @property
    def payment_date(self) -> date:
        return self.start + PAYMENT_OFFSET

    def contains(self, day: date) -> bool:
        return self.start <= day <= self.end


def week_containing(anchor: date) -> PayPeriod:
    """The Sunday–Saturday week that contains ``anchor``."""
    if isinstance(anchor, datetime):
        anchor = anchor.date()
    start = anchor - timedelta(days=(anchor.weekday() + 1) % 7)
    return PayPeriod(start=start, end=start + timedelta(days=6))


def payment_reference(batch_id: UUID) -> str:
    """Reference stamped on every assignment of a batch."""
    return f"RUN-{str(batch_id)[:8]}"


def assignment_payout(assignment: EventStaffAssignment) -> Decimal:
    """Amount owed for an assignment: total_pay, else pay_rate, else zero."""
    if assignment.total_pay is not None:
        return Decimal(assignment.total_pay)
    if assignment.pay_rate is not None:
        return Decimal(assignment.pay_rate)
    return Decimal("0")


@dataclass
class StaffTotal:
    """One staffer's share of a batch."""

    staff_id: UUID
    total: Decimal
    assignment_ids: list[UUID]


def staff_totals(assignments: list[EventStaffAssignment]) -> list[StaffTotal]:
    """Group assignments by staffer, in order of first appearance."""
    groups: dict[UUID, StaffTotal] = {}
    for assignment in assignments:
        group = groups.get(assignment.staff_id)
        if group is None:
            group = groups[assignment.staff_id] = StaffTotal(
                assignment.staff_id, Decimal("0"), []
            )
        group.total += assignment_payout(assignment)
        group.assignment_ids.append(assignment.id)
    for group in groups.values():
        group.total = round_to_cents(group.total)
    return list(groups.values())


class NoEligibleAssignmentsError(Exception):
    """Raised when a pay period has nothing to pay."""

    def __init__(self, period: PayPeriod):
        self.period = period
        super().__init__(
            f"No eligible assignments found for {period.start.isoformat()} "
            f"to {period.end.isoformat()}"
        )


class BatchNotFoundError(Exception):
    """Raised when a payroll batch id does not exist."""

    def __init__(self, batch_id: UUID):
        self.batch_id = batch_id
        super().__init__(f"Payroll batch {batch_id} not found")


class BatchLinkConflictError(Exception):
    """Raised when some selected assignments were claimed by another batch."""

    def __init__(self, batch_id: UUID, expected: int, linked: int):
        self.batch_id = batch_id
        self.expected = expected
        self.linked = linked
        super().__init__(
            f"Payroll batch {batch_id} linked {linked} of {expected} assignments; "
            "another batch claimed the rest"
        )


class PayrollBatcher:
    """Creates and processes weekly payroll batches.

    Operations:
    - create_batch: select eligible assignments for a week and link them
    - process_batch: mark the batch and its assignments paid (draft → paid)

    Store failures propagate; run both operations inside one transaction so
    a failed link leaves no half-built batch behind.
    """

    def __init__(self, assignments: AssignmentStore, batches: BatchStore):
        self.assignments = assignments
        self.batches = batches

    async def eligible_assignments(self, period: PayPeriod) -> list[EventStaffAssignment]:
        """Unpaid, unbatched, confirmed/completed assignments of the period's events."""
        return await self.assignments.find_assignments(
            AssignmentFilter(
                is_paid=False,
                statuses=ELIGIBLE_STATUSES,
                unbatched=True,
                event_date_from=period.start,
                event_date_to=period.end,
            )
        )

    async def create_batch(self, anchor: date) -> UUID:
        """Create a draft batch for the week containing ``anchor``.

        Raises:
            NoEligibleAssignmentsError: If the week has nothing to pay
            BatchLinkConflictError: If another batch claimed some assignments
        """
        period = week_containing(anchor)
        eligible = await self.eligible_assignments(period)
        if not eligible:
            raise NoEligibleAssignmentsError(period)

        total = round_to_cents(sum((assignment_payout(a) for a in eligible), Decimal("0")))

        batch_id = await self.batches.insert_batch(
            {
                "period_start": period.start,
                "period_end": period.end,
                "payment_date": period.payment_date,
                "total_amount": total,
                "status": PayrollBatchStatus.DRAFT.value,
            }
        )

        ids = [a.id for a in eligible]
        reference = payment_reference(batch_id)
        linked = await self.batches.bulk_link_assignments(ids, batch_id, reference)
        if linked != len(ids):
            raise BatchLinkConflictError(batch_id, expected=len(ids), linked=linked)

        logger.info(
            "Created payroll batch %s for %s..%s: %d assignments, total %s",
            batch_id,
            period.start,
            period.end,
            len(ids),
            total,
        )
        return batch_id

    async def process_batch(self, batch_id: UUID, paid_at: datetime | None = None) -> int:
        """Mark a draft batch and all of its assignments paid.

        Returns the number of assignments marked paid.

        Raises:
            BatchNotFoundError: If the batch does not exist
            InvalidTransitionError: If the batch is not a draft
        """
        batch = await self.batches.get_batch(batch_id)
        if batch is None:
            raise BatchNotFoundError(batch_id)

        PayrollBatchStateMachine.validate_transition(batch.status, PayrollBatchStatus.PAID)

        paid_at = paid_at or datetime.now(timezone.utc)
        await self.batches.update_batch(
            batch_id,
            {"status": PayrollBatchStatus.PAID.value, "processed_at": paid_at},
        )
        count = await self.assignments.mark_batch_paid(batch_id, paid_at)
        logger.info("Processed payroll batch %s: %d assignments paid", batch_id, count)
        return count

    async def get_batch(self, batch_id: UUID) -> PayrollBatch:
        batch = await self.batches.get_batch(batch_id)
        if batch is None:
            raise BatchNotFoundError(batch_id)
        return batch

    async def batch_items(self, batch_id: UUID) -> list[EventStaffAssignment]:
        """Assignments linked to a batch."""
        return await self.assignments.find_assignments(AssignmentFilter(batch_id=batch_id))
