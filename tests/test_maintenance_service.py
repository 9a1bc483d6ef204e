"""Tests for MaintenanceService: scheduling, completion and the read views."""

from datetime import timedelta

import pytest
from sqlalchemy import func, select

from core.exceptions import BusinessRuleViolation, PersistenceError, ResourceNotFound, ValidationError
from db.models import Machine, MachineStatus, MaintenanceRecord, MaintenanceStatus
from schemas.maintenance import (
    MaintenanceComplete,
    MaintenanceCreate,
    MaintenanceRange,
    MaintenanceStatusFilter,
)
from services.maintenance_service import MaintenanceService

from conftest import TODAY, pinned_today

pytestmark = pytest.mark.asyncio


@pytest.fixture
def service(db_session) -> MaintenanceService:
    return MaintenanceService(db_session, pinned_today, upcoming_window_days=7)


async def record_count(db_session) -> int:
    result = await db_session.execute(select(func.count(MaintenanceRecord.id)))
    return result.scalar_one()


def ids(rows) -> list[int]:
    return [row.id for row in rows]


# =============================================================================
# Scheduling
# =============================================================================

class TestSchedule:

    async def test_creates_pending_record(self, service, make_machine):
        machine = await make_machine()
        due = TODAY + timedelta(days=4)

        record = await service.schedule(MaintenanceCreate(machine_id=machine.id, scheduled_date=due))

        assert record.id is not None
        assert record.machine_id == machine.id
        assert record.scheduled_date == due
        assert record.status is MaintenanceStatus.PENDING
        assert record.completed_date is None
        assert record.technician_name is None

    async def test_past_date_is_allowed(self, service, make_machine):
        machine = await make_machine()
        record = await service.schedule(
            MaintenanceCreate(machine_id=machine.id, scheduled_date=TODAY - timedelta(days=3))
        )
        assert record.status is MaintenanceStatus.PENDING

    async def test_missing_machine_writes_nothing(self, service, db_session):
        with pytest.raises(ResourceNotFound) as exc_info:
            await service.schedule(MaintenanceCreate(machine_id=77, scheduled_date=TODAY))

        assert exc_info.value.resource_type == "Machine"
        assert await record_count(db_session) == 0


# =============================================================================
# Completion
# =============================================================================

class TestComplete:

    async def test_completes_record_and_advances_machine(self, service, make_machine, make_record):
        machine = await make_machine(
            status=MachineStatus.MAINTENANCE,
            frequency=14,
            last_maintenance_date=TODAY - timedelta(days=40),
        )
        pending = await make_record(machine, TODAY - timedelta(days=2))

        record = await service.complete(
            pending.id,
            MaintenanceComplete(technician_name="Jane Smith", remarks="Greased bearings"),
        )

        assert record.status is MaintenanceStatus.COMPLETED
        assert record.completed_date == TODAY
        assert record.technician_name == "Jane Smith"
        assert record.remarks == "Greased bearings"

        refreshed = await service.db.get(Machine, machine.id)
        assert refreshed.status is MachineStatus.RUNNING
        assert refreshed.last_maintenance_date == TODAY
        assert refreshed.next_due_date == TODAY + timedelta(days=14)

    async def test_remarks_are_optional(self, service, make_machine, make_record):
        machine = await make_machine()
        pending = await make_record(machine, TODAY)

        record = await service.complete(pending.id, MaintenanceComplete(technician_name="Jane Smith"))

        assert record.status is MaintenanceStatus.COMPLETED
        assert record.remarks is None

    async def test_missing_record_writes_nothing(self, service, make_machine):
        machine = await make_machine(next_due_date=TODAY + timedelta(days=9))

        with pytest.raises(ResourceNotFound) as exc_info:
            await service.complete(555, MaintenanceComplete(technician_name="Jane Smith"))

        assert exc_info.value.to_dict() == {"message": "Maintenance record not found"}
        unchanged = await service.db.get(Machine, machine.id)
        assert unchanged.last_maintenance_date is None
        assert unchanged.next_due_date == TODAY + timedelta(days=9)

    async def test_completing_twice_is_rejected(self, service, make_machine, make_record):
        machine = await make_machine()
        done = await make_record(
            machine,
            TODAY - timedelta(days=1),
            MaintenanceStatus.COMPLETED,
            technician_name="John Doe",
        )

        with pytest.raises(BusinessRuleViolation):
            await service.complete(done.id, MaintenanceComplete(technician_name="Jane Smith"))

        again = await service.get_record(done.id)
        assert again.technician_name == "John Doe"
        assert again.completed_date == TODAY - timedelta(days=1)

    async def test_failed_machine_write_rolls_back_record(
        self, service, db_session, make_machine, make_record, monkeypatch
    ):
        machine = await make_machine(frequency=14)
        pending = await make_record(machine, TODAY - timedelta(days=2))
        # Capture ids up front: the service's rollback expires loaded instances
        pending_id, machine_id = pending.id, machine.id
        # A value the Date column refuses, so the flush fails mid-commit
        monkeypatch.setattr(
            "services.maintenance_service.compute_next_due_date",
            lambda anchor, frequency_days: "not-a-date",
        )

        with pytest.raises(PersistenceError) as exc_info:
            await service.complete(pending_id, MaintenanceComplete(technician_name="Jane Smith"))

        assert exc_info.value.operation == "complete_maintenance"
        stored_record = (
            await db_session.execute(
                select(
                    MaintenanceRecord.status,
                    MaintenanceRecord.completed_date,
                    MaintenanceRecord.technician_name,
                ).where(MaintenanceRecord.id == pending_id)
            )
        ).one()
        assert stored_record.status is MaintenanceStatus.PENDING
        assert stored_record.completed_date is None
        assert stored_record.technician_name is None

        stored_machine = (
            await db_session.execute(
                select(Machine.last_maintenance_date, Machine.status).where(Machine.id == machine_id)
            )
        ).one()
        assert stored_machine.last_maintenance_date is None
        assert stored_machine.status is MachineStatus.RUNNING


# =============================================================================
# Read views
# =============================================================================

class TestViews:

    async def test_overdue_returns_past_due_pending_only(self, service, plant):
        overdue = await service.overdue()
        assert ids(overdue) == [plant["records"]["overdue"].id]
        assert overdue[0].display_status == "Overdue"
        assert overdue[0].machine_name == "CNC Lathe A1"

    async def test_upcoming_returns_records_inside_window(self, service, plant):
        upcoming = await service.upcoming()
        assert ids(upcoming) == [plant["records"]["upcoming"].id]
        assert upcoming[0].display_status == "Pending"

    async def test_upcoming_custom_horizon(self, service, plant):
        upcoming = await service.upcoming(days=30)
        assert ids(upcoming) == [plant["records"]["upcoming"].id, plant["records"]["later"].id]

    async def test_upcoming_rejects_empty_horizon(self, service):
        with pytest.raises(ValidationError) as exc_info:
            await service.upcoming(days=0)
        assert exc_info.value.to_dict()["field"] == "days"

    async def test_due_today_is_upcoming(self, service, make_machine, make_record):
        machine = await make_machine()
        today_record = await make_record(machine, TODAY)

        assert ids(await service.upcoming()) == [today_record.id]
        assert await service.overdue() == []

    async def test_view_reads_the_clock_once(self, db_session, make_machine, make_record):
        machine = await make_machine()
        yesterday_record = await make_record(machine, TODAY - timedelta(days=1))
        readings = []

        def advancing_clock():
            readings.append(TODAY + timedelta(days=len(readings)))
            return readings[-1]

        rows = await MaintenanceService(db_session, advancing_clock).overdue()

        assert readings == [TODAY]
        assert ids(rows) == [yesterday_record.id]
        assert rows[0].display_status == "Overdue"

    async def test_history_puts_completed_first(self, service, plant):
        records = plant["records"]
        history = await service.history(plant["machines"][0].id)

        assert history[0].id == records["completed"].id
        assert history[0].status is MaintenanceStatus.COMPLETED
        # Pending records follow, latest scheduled first
        assert ids(history[1:]) == [records["later"].id, records["upcoming"].id, records["overdue"].id]

    async def test_history_of_missing_machine_raises(self, service):
        with pytest.raises(ResourceNotFound):
            await service.history(9999)

    async def test_history_of_machine_without_records(self, service, plant):
        assert await service.history(plant["machines"][1].id) == []

    async def test_list_all_newest_scheduled_first(self, service, plant):
        records = plant["records"]
        listing = await service.list_records()

        assert listing[0].id == records["later"].id
        assert listing[1].id == records["upcoming"].id
        # Same scheduled date: higher id first
        assert ids(listing[2:]) == [records["completed"].id, records["overdue"].id]

    async def test_list_by_stored_status(self, service, plant):
        completed = await service.list_records(status=MaintenanceStatusFilter.COMPLETED)
        pending = await service.list_records(status=MaintenanceStatusFilter.PENDING)

        assert ids(completed) == [plant["records"]["completed"].id]
        assert len(pending) == 3
        assert {row.status for row in pending} == {MaintenanceStatus.PENDING}

    async def test_status_overdue_means_overdue_view(self, service, plant):
        rows = await service.list_records(status=MaintenanceStatusFilter.OVERDUE)
        assert ids(rows) == [plant["records"]["overdue"].id]

    async def test_range_takes_precedence_over_status(self, service, plant):
        rows = await service.list_records(
            status=MaintenanceStatusFilter.COMPLETED,
            range_=MaintenanceRange.UPCOMING,
        )
        assert ids(rows) == [plant["records"]["upcoming"].id]

    async def test_machine_filter_narrows_range(self, service, plant, make_record):
        other = plant["machines"][2]
        other_overdue = await make_record(other, TODAY - timedelta(days=3))

        everything = await service.list_records(range_=MaintenanceRange.OVERDUE)
        narrowed = await service.list_records(machine_id=other.id, range_=MaintenanceRange.OVERDUE)

        assert ids(everything) == [other_overdue.id, plant["records"]["overdue"].id]
        assert ids(narrowed) == [other_overdue.id]


# =============================================================================
# Counts
# =============================================================================

class TestCounts:

    async def test_overdue_and_upcoming_counts(self, service, plant):
        assert await service.count_overdue() == 1
        assert await service.count_upcoming() == 1
        assert await service.count_upcoming(days=11) == 2

    async def test_count_by_status(self, service, plant):
        assert await service.count_by_status() == {
            MaintenanceStatus.PENDING: 3,
            MaintenanceStatus.COMPLETED: 1,
        }

    async def test_completed_by_technician(self, service, plant, make_record):
        lathe = plant["machines"][0]
        for _ in range(2):
            await make_record(lathe, TODAY - timedelta(days=8), MaintenanceStatus.COMPLETED, technician_name="Ana Ruiz")

        assert await service.completed_by_technician() == [("Ana Ruiz", 2), ("Jane Smith", 1)]
