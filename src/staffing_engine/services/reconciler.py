"""Event staffing reconciler.

Keeps the persisted assignments of one event in line with a desired
``role -> staff`` map coming from the positions grid. Each role is handled on
its own: a failure is recorded as a skip and the remaining roles still
reconcile. Running the same map twice produces no writes the second time.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any
from uuid import UUID

from staffing_engine.calculators.compensation import calculate_compensation
from staffing_engine.calculators.types import CompensationContext, PayRateRule
from staffing_engine.catalog.positions import RoleId, normalize_role, role_label

if TYPE_CHECKING:
    from staffing_engine.catalog.rate_catalog import RateRuleCatalog, RuleBook
    from staffing_engine.models import EventStaffAssignment
    from staffing_engine.stores.base import AssignmentStore, StaffDirectory

logger = logging.getLogger(__name__)

StaffValidator = Callable[[UUID], Awaitable[bool]]


class SkipReason(str, Enum):
    """Why a role was left untouched."""

    USER_NOT_FOUND = "user_not_found"
    VALIDATE_FAILED = "validate_failed"
    SELECT_ERROR = "select_error"
    UPSERT_FAILED = "upsert_failed"
    CREATE_FAILED = "create_failed"
    DELETE_FAILED = "delete_failed"


@dataclass(frozen=True)
class SkippedRole:
    role: str
    reason: SkipReason


@dataclass
class SyncReport:
    """Per-role outcome of a reconciliation, by role label."""

    created: list[str] = field(default_factory=list)
    updated: list[str] = field(default_factory=list)
    deleted: list[str] = field(default_factory=list)
    skipped: list[SkippedRole] = field(default_factory=list)

    @property
    def has_changes(self) -> bool:
        return bool(self.created or self.updated or self.deleted)

    def skip(self, role: str, reason: SkipReason) -> None:
        self.skipped.append(SkippedRole(role=role, reason=reason))

    def summary(self) -> str:
        """Human summary, ending in "1 skipped: Driver B: user_not_found"."""
        text = (
            f"{len(self.created)} created, {len(self.updated)} updated, "
            f"{len(self.deleted)} deleted, {len(self.skipped)} skipped"
        )
        if self.skipped:
            details = ", ".join(f"{s.role}: {s.reason.value}" for s in self.skipped)
            text += f": {details}"
        return text

    def to_dict(self) -> dict[str, Any]:
        return {
            "created": list(self.created),
            "updated": list(self.updated),
            "deleted": list(self.deleted),
            "skipped": [{"role": s.role, "reason": s.reason.value} for s in self.skipped],
        }


@dataclass
class _Slot:
    """What the reconciler knows about one persisted assignment."""

    assignment_id: UUID
    staff_id: UUID


class AssignmentReconciler:
    """Reconciles an event's staffing roster against a desired positions map."""

    def __init__(
        self,
        assignments: AssignmentStore,
        staff: StaffDirectory,
        catalog: RateRuleCatalog,
    ):
        self.assignments = assignments
        self.staff = staff
        self.catalog = catalog

    async def reconcile(
        self,
        event_id: UUID,
        desired: Mapping[str, UUID | None],
        current: list[EventStaffAssignment] | None = None,
        validate_staff_exists: StaffValidator | None = None,
        context: CompensationContext | None = None,
    ) -> SyncReport:
        """Make the event's assignments match ``desired``.

        Args:
            event_id: Event whose roster is reconciled
            desired: Role key (or label) to staff id; None/empty clears the role
            current: Persisted assignments, loaded from the store when omitted
            validate_staff_exists: Staff check, defaults to the staff directory
            context: Revenue/duration used to price newly created assignments

        Returns:
            SyncReport listing created, updated, deleted and skipped roles
        """
        logger.debug("Reconciling event %s positions: %s", event_id, dict(desired))
        report = SyncReport()
        validate = validate_staff_exists or self.staff.staff_exists
        context = context or CompensationContext()
        rules = await self.catalog.load()

        index: dict[RoleId, list[_Slot]] | None
        if current is None:
            try:
                async with self.assignments.savepoint():
                    current = await self.assignments.list_assignments(event_id)
            except Exception:
                logger.exception("Failed to load assignments for event %s", event_id)
                current = None
        index = self._index(current) if current is not None else None

        for role_key, staff_id in desired.items():
            role_id = normalize_role(role_key)
            if role_id is None:
                logger.warning("Ignoring blank role key in positions for event %s", event_id)
                continue
            label = role_label(role_id)

            if index is None:
                report.skip(label, SkipReason.SELECT_ERROR)
                continue

            await self._reconcile_role(
                event_id,
                role_id,
                label,
                _coerce_staff_id(staff_id),
                index,
                validate,
                rules,
                context,
                report,
            )

        logger.info("Reconciled event %s: %s", event_id, report.summary())
        return report

    async def _reconcile_role(
        self,
        event_id: UUID,
        role_id: RoleId,
        label: str,
        staff_id: UUID | None,
        index: dict[RoleId, list[_Slot]],
        validate: StaffValidator,
        rules: RuleBook,
        context: CompensationContext,
        report: SyncReport,
    ) -> None:
        # Each role writes inside its own savepoint; the report is only
        # touched once that savepoint has been released.
        slots = index.get(role_id, [])

        if staff_id is None:
            if not slots:
                return
            try:
                async with self.assignments.savepoint():
                    for slot in slots:
                        await self.assignments.delete_assignment(slot.assignment_id)
            except Exception:
                logger.exception("Failed to remove %s from event %s", label, event_id)
                report.skip(label, SkipReason.DELETE_FAILED)
                return
            index.pop(role_id, None)
            report.deleted.append(label)
            return

        try:
            async with self.assignments.savepoint():
                exists = await validate(staff_id)
        except Exception:
            logger.exception("Failed to validate staff %s for %s", staff_id, label)
            report.skip(label, SkipReason.VALIDATE_FAILED)
            return
        if not exists:
            logger.warning("Skipping %s: staff %s not found", label, staff_id)
            report.skip(label, SkipReason.USER_NOT_FOUND)
            return

        if not slots:
            await self._create(event_id, role_id, label, staff_id, index, rules, context, report)
            return

        # Older data may hold several rows for one role; keep the first.
        existing, extras = slots[0], slots[1:]
        reassign = existing.staff_id != staff_id
        try:
            async with self.assignments.savepoint():
                for extra in extras:
                    await self.assignments.delete_assignment(extra.assignment_id)
                if reassign:
                    await self.assignments.update_assignment(
                        existing.assignment_id, {"staff_id": staff_id}
                    )
        except Exception:
            logger.exception("Failed to upsert %s on event %s", label, event_id)
            report.skip(label, SkipReason.UPSERT_FAILED)
            return

        index[role_id] = [existing]
        report.deleted.extend(label for _ in extras)
        if reassign:
            existing.staff_id = staff_id
            report.updated.append(label)

    async def _create(
        self,
        event_id: UUID,
        role_id: RoleId,
        label: str,
        staff_id: UUID,
        index: dict[RoleId, list[_Slot]],
        rules: RuleBook,
        context: CompensationContext,
        report: SyncReport,
    ) -> None:
        values = self._new_assignment_values(
            event_id, label, staff_id, rules.get_rule(role_id), context
        )
        try:
            async with self.assignments.savepoint():
                assignment_id = await self.assignments.insert_assignment(values)
        except Exception as exc:
            # Another editor may have created the role in the meantime.
            logger.warning(
                "Create of %s on event %s failed (%s), retrying as update", label, event_id, exc
            )
            try:
                async with self.assignments.savepoint():
                    rows = await self.assignments.list_assignments(event_id)
                    existing = next((r for r in rows if normalize_role(r.role) == role_id), None)
                    if existing is not None:
                        await self.assignments.update_assignment(
                            existing.id, {"staff_id": staff_id}
                        )
            except Exception:
                logger.exception("Retry of %s on event %s failed", label, event_id)
                report.skip(label, SkipReason.CREATE_FAILED)
                return
            if existing is None:
                report.skip(label, SkipReason.CREATE_FAILED)
                return
            index[role_id] = [_Slot(existing.id, staff_id)]
            report.updated.append(label)
            return

        index[role_id] = [_Slot(assignment_id, staff_id)]
        report.created.append(label)

    @staticmethod
    def _new_assignment_values(
        event_id: UUID,
        label: str,
        staff_id: UUID,
        rule: PayRateRule | None,
        context: CompensationContext,
    ) -> dict[str, Any]:
        result = calculate_compensation(rule, None, context)
        return {
            "event_id": event_id,
            "staff_id": staff_id,
            "role": label,
            "status": "confirmed",
            "pay_type": "flat",
            "pay_rate": result.total,
            "total_pay": result.total,
            "compensation_config": None,
            "pay_rate_id": rule.id if rule else None,
            "is_paid": False,
        }

    @staticmethod
    def _index(current: list[EventStaffAssignment]) -> dict[RoleId, list[_Slot]]:
        index: dict[RoleId, list[_Slot]] = {}
        for assignment in current:
            role_id = normalize_role(assignment.role)
            if role_id is None:
                continue
            index.setdefault(role_id, []).append(_Slot(assignment.id, assignment.staff_id))
        return index


def _coerce_staff_id(value: UUID | str | None) -> UUID | str | None:
    """Blank means unassigned; unparseable ids go through to validation and fail there."""
    if value is None or isinstance(value, UUID):
        return value
    text = str(value).strip()
    if not text:
        return None
    try:
        return UUID(text)
    except ValueError:
        return text
