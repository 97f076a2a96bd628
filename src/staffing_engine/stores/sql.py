"""SQLAlchemy implementation of the record store interfaces."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import date, datetime
from typing import Any
from uuid import UUID, uuid4

from sqlalchemy import delete, insert, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from staffing_engine.models import (
    Event,
    EventStaffAssignment,
    PayrollBatch,
    StaffMember,
    StaffPayRate,
)
from staffing_engine.stores.base import (
    AssignmentFilter,
    AssignmentNotFoundError,
    DuplicateAssignmentError,
)


def _as_uuid(value: UUID | str) -> UUID | None:
    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value))
    except ValueError:
        return None


class SqlRecordStore:
    """Staff directory, assignment, rate rule, batch and event store in one.

    All operations run on the caller's session; committing is the caller's
    job (see :func:`staffing_engine.database.get_session`).
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    @asynccontextmanager
    async def savepoint(self) -> AsyncIterator[None]:
        """Run the block inside a SAVEPOINT on the caller's transaction."""
        async with self.session.begin_nested():
            yield

    # ----- Staff directory -----

    async def staff_exists(self, staff_id: UUID | str) -> bool:
        staff_uuid = _as_uuid(staff_id)
        if staff_uuid is None:
            return False
        result = await self.session.execute(
            select(StaffMember.id).where(StaffMember.id == staff_uuid).limit(1)
        )
        return result.first() is not None

    async def list_staff(self) -> list[StaffMember]:
        result = await self.session.execute(
            select(StaffMember).order_by(StaffMember.first_name, StaffMember.last_name)
        )
        return list(result.scalars().all())

    # ----- Assignments -----

    async def list_assignments(self, event_id: UUID) -> list[EventStaffAssignment]:
        result = await self.session.execute(
            select(EventStaffAssignment)
            .where(EventStaffAssignment.event_id == event_id)
            .order_by(EventStaffAssignment.created_at, EventStaffAssignment.id)
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all())

    async def get_assignment(self, assignment_id: UUID) -> EventStaffAssignment | None:
        result = await self.session.execute(
            select(EventStaffAssignment)
            .where(EventStaffAssignment.id == assignment_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def insert_assignment(self, values: dict[str, Any]) -> UUID:
        """Insert an assignment row.

        Raises:
            DuplicateAssignmentError: If the event already has the role
        """
        values = {"id": uuid4(), **values}
        table = EventStaffAssignment.__table__
        dialect = self.session.get_bind().dialect.name

        if dialect in ("postgresql", "sqlite"):
            # ON CONFLICT keeps the surrounding transaction usable.
            if dialect == "postgresql":
                from sqlalchemy.dialects.postgresql import insert as dialect_insert
            else:
                from sqlalchemy.dialects.sqlite import insert as dialect_insert

            stmt = (
                dialect_insert(table)
                .values(**values)
                .on_conflict_do_nothing(index_elements=["event_id", "role"])
                .returning(table.c.id)
            )
            inserted = (await self.session.execute(stmt)).scalar_one_or_none()
            if inserted is None:
                raise DuplicateAssignmentError(values["event_id"], values["role"])
            return inserted

        try:
            await self.session.execute(insert(table).values(**values))
        except IntegrityError as exc:
            raise DuplicateAssignmentError(values["event_id"], values["role"]) from exc
        return values["id"]

    async def update_assignment(self, assignment_id: UUID, fields: dict[str, Any]) -> None:
        result = await self.session.execute(
            update(EventStaffAssignment)
            .where(EventStaffAssignment.id == assignment_id)
            .values(**fields)
        )
        if not result.rowcount:
            raise AssignmentNotFoundError(assignment_id)

    async def delete_assignment(self, assignment_id: UUID) -> None:
        await self.session.execute(
            delete(EventStaffAssignment).where(EventStaffAssignment.id == assignment_id)
        )

    async def find_assignments(self, criteria: AssignmentFilter) -> list[EventStaffAssignment]:
        query = select(EventStaffAssignment)

        if criteria.is_paid is not None:
            query = query.where(EventStaffAssignment.is_paid == criteria.is_paid)
        if criteria.statuses is not None:
            query = query.where(EventStaffAssignment.status.in_(criteria.statuses))
        if criteria.batch_id is not None:
            query = query.where(EventStaffAssignment.payroll_batch_id == criteria.batch_id)
        if criteria.unbatched:
            query = query.where(EventStaffAssignment.payroll_batch_id.is_(None))
        if criteria.event_date_from is not None or criteria.event_date_to is not None:
            query = query.join(Event, Event.id == EventStaffAssignment.event_id)
            if criteria.event_date_from is not None:
                query = query.where(Event.event_date >= criteria.event_date_from)
            if criteria.event_date_to is not None:
                query = query.where(Event.event_date <= criteria.event_date_to)

        result = await self.session.execute(
            query.order_by(EventStaffAssignment.created_at, EventStaffAssignment.id)
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all())

    async def mark_batch_paid(self, batch_id: UUID, paid_at: datetime) -> int:
        result = await self.session.execute(
            update(EventStaffAssignment)
            .where(EventStaffAssignment.payroll_batch_id == batch_id)
            .values(is_paid=True, paid_at=paid_at)
        )
        return result.rowcount or 0

    # ----- Rate rules -----

    async def list_rules(self) -> list[StaffPayRate]:
        result = await self.session.execute(
            select(StaffPayRate).order_by(StaffPayRate.position_key)
        )
        return list(result.scalars().all())

    # ----- Payroll batches -----

    async def insert_batch(self, values: dict[str, Any]) -> UUID:
        batch = PayrollBatch(**values)
        self.session.add(batch)
        await self.session.flush()
        return batch.id

    async def get_batch(self, batch_id: UUID) -> PayrollBatch | None:
        result = await self.session.execute(
            select(PayrollBatch)
            .where(PayrollBatch.id == batch_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def list_batches(self) -> list[PayrollBatch]:
        result = await self.session.execute(
            select(PayrollBatch).order_by(PayrollBatch.period_start.desc())
        )
        return list(result.scalars().all())

    async def update_batch(self, batch_id: UUID, fields: dict[str, Any]) -> None:
        await self.session.execute(
            update(PayrollBatch).where(PayrollBatch.id == batch_id).values(**fields)
        )

    async def bulk_link_assignments(
        self, assignment_ids: list[UUID], batch_id: UUID, reference: str
    ) -> int:
        """Attach unbatched assignments to a batch.

        Returns the number of rows linked. Rows already claimed by another
        batch are left alone and not counted.
        """
        if not assignment_ids:
            return 0
        result = await self.session.execute(
            update(EventStaffAssignment)
            .where(
                EventStaffAssignment.id.in_(assignment_ids),
                EventStaffAssignment.payroll_batch_id.is_(None),
            )
            .values(payroll_batch_id=batch_id, payment_reference=reference)
        )
        return result.rowcount or 0

    # ----- Events -----

    async def get_event_date(self, event_id: UUID) -> date | None:
        result = await self.session.execute(
            select(Event.event_date).where(Event.id == event_id)
        )
        return result.scalar_one_or_none()

    async def get_events(self, event_ids: list[UUID]) -> list[Event]:
        if not event_ids:
            return []
        result = await self.session.execute(select(Event).where(Event.id.in_(event_ids)))
        return list(result.scalars().all())
