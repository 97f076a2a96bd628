"""Record store interfaces consumed by the staffing core.

The core never talks to a database directly. Services receive objects that
satisfy these protocols; :mod:`staffing_engine.stores.sql` provides the
SQLAlchemy implementation and tests supply fakes.
"""

from __future__ import annotations

from contextlib import AbstractAsyncContextManager
from dataclasses import dataclass
from datetime import date, datetime
from typing import TYPE_CHECKING, Any, Protocol
from uuid import UUID

if TYPE_CHECKING:
    from staffing_engine.models import (
        Event,
        EventStaffAssignment,
        PayrollBatch,
        StaffMember,
        StaffPayRate,
    )


class DuplicateAssignmentError(Exception):
    """Raised when an event already has an assignment for a role."""

    def __init__(self, event_id: UUID, role: str):
        self.event_id = event_id
        self.role = role
        super().__init__(f"Event {event_id} already has an assignment for role '{role}'")


class AssignmentNotFoundError(Exception):
    """Raised when an assignment id does not exist."""

    def __init__(self, assignment_id: UUID):
        self.assignment_id = assignment_id
        super().__init__(f"Assignment {assignment_id} not found")


@dataclass(frozen=True)
class AssignmentFilter:
    """Criteria for :meth:`AssignmentStore.find_assignments`.

    ``None`` means "don't filter on this field".
    """

    is_paid: bool | None = None
    statuses: tuple[str, ...] | None = None
    batch_id: UUID | None = None
    unbatched: bool = False
    event_date_from: date | None = None
    event_date_to: date | None = None


class StaffDirectory(Protocol):
    async def staff_exists(self, staff_id: UUID) -> bool: ...

    async def list_staff(self) -> list[StaffMember]: ...


class Transactional(Protocol):
    def savepoint(self) -> AbstractAsyncContextManager[None]:
        """Scope whose writes roll back together if the block raises.

        The surrounding transaction stays usable after the rollback.
        """
        ...


class AssignmentStore(Transactional, Protocol):
    async def list_assignments(self, event_id: UUID) -> list[EventStaffAssignment]: ...

    async def get_assignment(self, assignment_id: UUID) -> EventStaffAssignment | None: ...

    async def insert_assignment(self, values: dict[str, Any]) -> UUID: ...

    async def update_assignment(self, assignment_id: UUID, fields: dict[str, Any]) -> None: ...

    async def delete_assignment(self, assignment_id: UUID) -> None: ...

    async def find_assignments(self, criteria: AssignmentFilter) -> list[EventStaffAssignment]: ...

    async def mark_batch_paid(self, batch_id: UUID, paid_at: datetime) -> int: ...


class RateRuleStore(Transactional, Protocol):
    async def list_rules(self) -> list[StaffPayRate]: ...


class BatchStore(Protocol):
    async def insert_batch(self, values: dict[str, Any]) -> UUID: ...

    async def get_batch(self, batch_id: UUID) -> PayrollBatch | None: ...

    async def list_batches(self) -> list[PayrollBatch]: ...

    async def update_batch(self, batch_id: UUID, fields: dict[str, Any]) -> None: ...

    async def bulk_link_assignments(
        self, assignment_ids: list[UUID], batch_id: UUID, reference: str
    ) -> int: ...


class EventLookup(Protocol):
    async def get_event_date(self, event_id: UUID) -> date | None: ...

    async def get_events(self, event_ids: list[UUID]) -> list[Event]: ...
