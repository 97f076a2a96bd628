"""Tests for the event staffing reconciler."""

from decimal import Decimal
from uuid import uuid4

import pytest
from sqlalchemy import select, text

from fakes import FakeAssignment, FakeAssignmentStore, FakeRuleStore, FakeStaffDirectory

from staffing_engine.calculators.types import CompensationContext
from staffing_engine.catalog.positions import normalize_role
from staffing_engine.catalog.rate_catalog import RateRuleCatalog
from staffing_engine.models import EventStaffAssignment
from staffing_engine.services.reconciler import AssignmentReconciler, SkipReason, SyncReport
from staffing_engine.stores.base import DuplicateAssignmentError

EVENT_ID = uuid4()
ANA = uuid4()
BETO = uuid4()
CARLA = uuid4()


@pytest.fixture
def assignments() -> FakeAssignmentStore:
    return FakeAssignmentStore()


@pytest.fixture
def reconciler(assignments) -> AssignmentReconciler:
    return AssignmentReconciler(
        assignments,
        FakeStaffDirectory([ANA, BETO, CARLA]),
        RateRuleCatalog(FakeRuleStore()),
    )


def _roles(store: FakeAssignmentStore) -> dict[str, object]:
    return {normalize_role(row.role): row.staff_id for row in store.rows.values()}


class TestCreateUpdateDelete:
    async def test_creates_missing_roles(self, reconciler, assignments):
        """New roles are inserted with the label and the rule's price."""
        report = await reconciler.reconcile(EVENT_ID, {"driver_a": ANA, "box_prep": BETO})

        assert report.created == ["Driver A", "Box Prep"]
        assert report.skipped == []
        rows = {row.role: row for row in assignments.rows.values()}
        assert rows["Driver A"].total_pay == Decimal("250.00")
        assert rows["Driver A"].pay_rate == Decimal("250.00")
        assert rows["Driver A"].status == "confirmed"
        assert rows["Driver A"].is_paid is False
        assert rows["Box Prep"].total_pay == Decimal("200.00")

    async def test_updates_changed_staff(self, reconciler, assignments):
        row = FakeAssignment(event_id=EVENT_ID, staff_id=ANA, role="Driver A")
        assignments.rows[row.id] = row

        report = await reconciler.reconcile(EVENT_ID, {"driver_a": BETO})

        assert report.updated == ["Driver A"]
        assert row.staff_id == BETO
        assert len(assignments.rows) == 1

    @pytest.mark.parametrize("cleared", [None, ""])
    async def test_deletes_cleared_roles(self, reconciler, assignments, cleared):
        row = FakeAssignment(event_id=EVENT_ID, staff_id=ANA, role="Cleaning")
        assignments.rows[row.id] = row

        report = await reconciler.reconcile(EVENT_ID, {"cleaning": cleared})

        assert report.deleted == ["Cleaning"]
        assert assignments.rows == {}

    async def test_clearing_empty_role_is_a_no_op(self, reconciler, assignments):
        report = await reconciler.reconcile(EVENT_ID, {"cleaning": None})

        assert not report.has_changes
        assert assignments.writes == 0

    async def test_roles_not_in_desired_are_untouched(self, reconciler, assignments):
        """Only roles named in the map are reconciled."""
        row = FakeAssignment(event_id=EVENT_ID, staff_id=ANA, role="Cleaning")
        assignments.rows[row.id] = row

        await reconciler.reconcile(EVENT_ID, {"driver_a": BETO})

        assert row.id in assignments.rows

    async def test_percent_rule_uses_context_revenue(self, reconciler, assignments):
        context = CompensationContext(revenue_pre_tax=Decimal("20000"))
        await reconciler.reconcile(EVENT_ID, {"sales_logistics_1": ANA}, context=context)

        (row,) = assignments.rows.values()
        assert row.role == "Sales & Logistics"
        assert row.total_pay == Decimal("1200.00")

    async def test_label_keys_match_stored_keys(self, reconciler, assignments):
        """A row stored under the key matches a desired map keyed by label."""
        row = FakeAssignment(event_id=EVENT_ID, staff_id=ANA, role="driver_a")
        assignments.rows[row.id] = row

        report = await reconciler.reconcile(EVENT_ID, {"Driver A": ANA})

        assert not report.has_changes
        assert assignments.writes == 0


class TestIdempotency:
    async def test_second_run_writes_nothing(self, reconciler, assignments):
        desired = {"driver_a": ANA, "driver_b": BETO, "operator_1": CARLA, "cleaning": None}

        first = await reconciler.reconcile(EVENT_ID, desired)
        writes = assignments.writes
        second = await reconciler.reconcile(EVENT_ID, desired)

        assert first.has_changes
        assert not second.has_changes
        assert second.skipped == []
        assert assignments.writes == writes

    async def test_final_state_matches_desired(self, reconciler, assignments):
        for row in (
            FakeAssignment(event_id=EVENT_ID, staff_id=ANA, role="Driver A"),
            FakeAssignment(event_id=EVENT_ID, staff_id=ANA, role="Cleaning"),
        ):
            assignments.rows[row.id] = row

        desired = {"driver_a": BETO, "cleaning": None, "box_prep": CARLA}
        report = await reconciler.reconcile(EVENT_ID, desired)

        assert report.skipped == []
        assert _roles(assignments) == {"driver_a": BETO, "box_prep": CARLA}


class TestSkips:
    async def test_unknown_staff_is_skipped(self, reconciler, assignments):
        report = await reconciler.reconcile(EVENT_ID, {"driver_a": ANA, "driver_b": uuid4()})

        assert report.created == ["Driver A"]
        assert report.skipped[0].role == "Driver B"
        assert report.skipped[0].reason is SkipReason.USER_NOT_FOUND
        assert report.summary() == (
            "1 created, 0 updated, 0 deleted, 1 skipped: Driver B: user_not_found"
        )

    async def test_unparseable_staff_id_is_skipped(self, reconciler, assignments):
        report = await reconciler.reconcile(EVENT_ID, {"driver_a": "not-a-uuid"})

        assert report.skipped[0].reason is SkipReason.USER_NOT_FOUND
        assert assignments.rows == {}

    async def test_validator_failure_is_isolated(self, reconciler, assignments):
        """One role's validation error leaves the other roles reconciled."""

        async def validate(staff_id):
            if staff_id == BETO:
                raise RuntimeError("directory timeout")
            return True

        report = await reconciler.reconcile(
            EVENT_ID,
            {"driver_a": ANA, "driver_b": BETO, "cleaning": CARLA},
            validate_staff_exists=validate,
        )

        assert report.created == ["Driver A", "Cleaning"]
        assert [(s.role, s.reason) for s in report.skipped] == [
            ("Driver B", SkipReason.VALIDATE_FAILED)
        ]

    async def test_load_failure_skips_every_role(self, reconciler, assignments):
        assignments.fail_list = True

        report = await reconciler.reconcile(EVENT_ID, {"driver_a": ANA, "cleaning": None})

        assert [s.reason for s in report.skipped] == [SkipReason.SELECT_ERROR] * 2
        assert assignments.writes == 0

    async def test_supplied_current_is_not_reloaded(self, reconciler, assignments):
        assignments.fail_list = True

        report = await reconciler.reconcile(EVENT_ID, {"driver_a": ANA}, current=[])

        assert report.created == ["Driver A"]

    async def test_delete_failure(self, reconciler, assignments):
        row = FakeAssignment(event_id=EVENT_ID, staff_id=ANA, role="Cleaning")
        assignments.rows[row.id] = row
        assignments.fail_delete = True

        report = await reconciler.reconcile(EVENT_ID, {"cleaning": None, "driver_a": ANA})

        assert [(s.role, s.reason) for s in report.skipped] == [
            ("Cleaning", SkipReason.DELETE_FAILED)
        ]
        assert report.created == ["Driver A"]

    async def test_blank_role_key_is_ignored(self, reconciler, assignments):
        report = await reconciler.reconcile(EVENT_ID, {"  ": ANA})

        assert report == SyncReport()


class TestCreateRace:
    async def test_duplicate_on_create_becomes_update(self, reconciler, assignments):
        """A role created concurrently by another editor is updated instead."""

        def other_editor(values):
            assignments.add_external(
                FakeAssignment(event_id=EVENT_ID, staff_id=CARLA, role="Driver A")
            )
            assignments.on_insert = None

        assignments.on_insert = other_editor

        report = await reconciler.reconcile(EVENT_ID, {"driver_a": ANA}, current=[])

        assert report.created == []
        assert report.updated == ["Driver A"]
        assert _roles(assignments) == {"driver_a": ANA}

    async def test_create_failure_without_conflicting_row(self, reconciler, assignments):
        assignments.fail_insert = RuntimeError("insert refused")

        report = await reconciler.reconcile(EVENT_ID, {"driver_a": ANA, "driver_b": BETO})

        assert [s.reason for s in report.skipped] == [SkipReason.CREATE_FAILED] * 2
        assert assignments.rows == {}


class TestDuplicates:
    async def test_duplicate_rows_are_pruned(self, reconciler, assignments):
        """Older data with two rows for one role collapses to a single row."""
        first = FakeAssignment(event_id=EVENT_ID, staff_id=ANA, role="Driver A")
        second = FakeAssignment(event_id=EVENT_ID, staff_id=BETO, role="driver_a")
        assignments.rows[first.id] = first
        assignments.rows[second.id] = second

        report = await reconciler.reconcile(EVENT_ID, {"driver_a": ANA})

        assert report.deleted == ["Driver A"]
        assert list(assignments.rows) == [first.id]

    async def test_failed_prune_reports_role_once(self, reconciler, assignments):
        """A prune that fails part way is rolled back and only reported as skipped."""
        first = FakeAssignment(event_id=EVENT_ID, staff_id=ANA, role="Driver A")
        second = FakeAssignment(event_id=EVENT_ID, staff_id=BETO, role="driver_a")
        third = FakeAssignment(event_id=EVENT_ID, staff_id=CARLA, role="DRIVER A")
        for row in (first, second, third):
            assignments.rows[row.id] = row
        assignments.delete_failures = {third.id}

        report = await reconciler.reconcile(EVENT_ID, {"driver_a": ANA})

        assert report.deleted == []
        assert [(s.role, s.reason) for s in report.skipped] == [
            ("Driver A", SkipReason.UPSERT_FAILED)
        ]
        assert set(assignments.rows) == {first.id, second.id, third.id}


class TestSqlStore:
    """Reconciling against the SQLAlchemy store."""

    async def test_create_then_idempotent(self, store, staff, event):
        reconciler = AssignmentReconciler(store, store, RateRuleCatalog(store))
        desired = {"driver_a": staff["ana"].id, "cleaning": staff["beto"].id}

        first = await reconciler.reconcile(event.id, desired)
        second = await reconciler.reconcile(event.id, desired)

        assert first.created == ["Driver A", "Cleaning"]
        assert not second.has_changes
        rows = await store.list_assignments(event.id)
        assert {row.role for row in rows} == {"Driver A", "Cleaning"}
        assert {row.total_pay for row in rows} == {Decimal("250.00"), Decimal("350.00")}

    async def test_update_and_delete(self, store, staff, event):
        reconciler = AssignmentReconciler(store, store, RateRuleCatalog(store))
        await reconciler.reconcile(
            event.id, {"driver_a": staff["ana"].id, "cleaning": staff["beto"].id}
        )

        report = await reconciler.reconcile(
            event.id, {"driver_a": staff["carla"].id, "cleaning": None}
        )

        assert report.updated == ["Driver A"]
        assert report.deleted == ["Cleaning"]
        rows = await store.list_assignments(event.id)
        assert [(row.role, row.staff_id) for row in rows] == [("Driver A", staff["carla"].id)]

    async def test_insert_conflict_raises_duplicate(self, store, staff, event):
        values = {"event_id": event.id, "staff_id": staff["ana"].id, "role": "Box Prep"}
        await store.insert_assignment(values)

        with pytest.raises(DuplicateAssignmentError):
            await store.insert_assignment({**values, "staff_id": staff["beto"].id})

        rows = await store.list_assignments(event.id)
        assert len(rows) == 1

    async def test_unknown_staff_skipped(self, store, staff, event):
        reconciler = AssignmentReconciler(store, store, RateRuleCatalog(store))

        report = await reconciler.reconcile(event.id, {"driver_a": uuid4()})

        assert report.skipped[0].reason is SkipReason.USER_NOT_FOUND
        assert await store.list_assignments(event.id) == []

    async def test_database_error_on_one_role_keeps_the_others(
        self, session, session_factory, store, staff, event
    ):
        """Rows written for healthy roles survive another role's failed insert."""
        event_id = event.id
        ids = {name: member.id for name, member in staff.items()}
        await session.execute(
            text(
                "CREATE TRIGGER refuse_cleaning BEFORE INSERT ON event_staff_assignment "
                "WHEN NEW.role = 'Cleaning' "
                "BEGIN SELECT RAISE(ABORT, 'cleaning insert refused'); END"
            )
        )
        reconciler = AssignmentReconciler(store, store, RateRuleCatalog(store))

        report = await reconciler.reconcile(
            event_id,
            {"driver_a": ids["ana"], "cleaning": ids["beto"], "box_prep": ids["carla"]},
        )
        await session.commit()

        assert report.created == ["Driver A", "Box Prep"]
        assert [(s.role, s.reason) for s in report.skipped] == [
            ("Cleaning", SkipReason.CREATE_FAILED)
        ]
        async with session_factory() as other:
            roles = (
                await other.execute(
                    select(EventStaffAssignment.role).where(
                        EventStaffAssignment.event_id == event_id
                    )
                )
            ).scalars().all()
        assert sorted(roles) == ["Box Prep", "Driver A"]

    async def test_failed_update_restores_pruned_duplicates(self, session, store, staff, event):
        """A role whose update fails keeps its duplicate rows and reports one skip."""
        for role, member in (("Driver A", "ana"), ("driver_a", "beto")):
            await store.insert_assignment(
                {"event_id": event.id, "staff_id": staff[member].id, "role": role}
            )
        await session.execute(
            text(
                "CREATE TRIGGER refuse_updates BEFORE UPDATE ON event_staff_assignment "
                "BEGIN SELECT RAISE(ABORT, 'updates refused'); END"
            )
        )
        reconciler = AssignmentReconciler(store, store, RateRuleCatalog(store))

        report = await reconciler.reconcile(event.id, {"driver_a": staff["carla"].id})

        assert report.deleted == []
        assert report.updated == []
        assert [(s.role, s.reason) for s in report.skipped] == [
            ("Driver A", SkipReason.UPSERT_FAILED)
        ]
        assert len(await store.list_assignments(event.id)) == 2

    async def test_rule_store_failure_leaves_session_usable(self, session, store, staff, event):
        """Falling back to default rules does not poison the caller's transaction."""
        await session.execute(text("DROP TABLE staff_pay_rate"))
        reconciler = AssignmentReconciler(store, store, RateRuleCatalog(store))

        report = await reconciler.reconcile(event.id, {"box_prep": staff["ana"].id})

        assert report.created == ["Box Prep"]
        (row,) = await store.list_assignments(event.id)
        assert row.total_pay == Decimal("200.00")
