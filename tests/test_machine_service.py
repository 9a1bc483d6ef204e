"""Tests for MachineService against an in-memory database."""

from datetime import timedelta

import pytest
from sqlalchemy import func, select

from core.exceptions import ResourceNotFound
from db.models import MachineStatus, MaintenanceRecord, MaintenanceStatus
from schemas.machine import MachineCreate, MachinePatch
from services.machine_service import MachineService
from conftest import TODAY, pinned_today

pytestmark = pytest.mark.asyncio


@pytest.fixture
def service(db_session) -> MachineService:
    return MachineService(db_session, pinned_today)


def lathe_payload(**overrides) -> MachineCreate:
    data = {"name": "CNC Lathe A1", "location": "Zone 1", "maintenanceFrequencyDays": 30}
    data.update(overrides)
    return MachineCreate.model_validate(data)


class TestCreate:

    async def test_next_due_date_defaults_to_today_plus_frequency(self, service):
        machine = await service.create_machine(lathe_payload())

        assert machine.id is not None
        assert machine.next_due_date == TODAY + timedelta(days=30)
        assert machine.created_on == TODAY
        assert machine.status is MachineStatus.RUNNING
        assert machine.last_maintenance_date is None

    async def test_explicit_next_due_date_is_kept(self, service):
        due = TODAY + timedelta(days=3)
        machine = await service.create_machine(lathe_payload(nextDueDate=due.isoformat()))
        assert machine.next_due_date == due

    async def test_ids_are_unique(self, service):
        first = await service.create_machine(lathe_payload())
        second = await service.create_machine(lathe_payload(name="Robotic Arm R2"))
        assert first.id != second.id


class TestRead:

    async def test_list_is_alphabetical(self, service, make_machine):
        await make_machine("Welding Station W1")
        await make_machine("CNC Lathe A1")
        await make_machine("Hydraulic Press H5")

        names = [m.name for m in await service.list_machines()]
        assert names == ["CNC Lathe A1", "Hydraulic Press H5", "Welding Station W1"]

    async def test_get_missing_machine_raises(self, service):
        with pytest.raises(ResourceNotFound) as exc_info:
            await service.get_machine(999)
        assert exc_info.value.to_dict() == {"message": "Machine not found"}

    async def test_health_score_without_records(self, service, make_machine):
        machine = await make_machine()
        _, score = await service.get_machine_with_health(machine.id)
        assert score == 100

    async def test_health_score_three_of_four(self, service, make_machine, make_record):
        machine = await make_machine()
        for offset in (-30, -20, -10):
            await make_record(machine, TODAY + timedelta(days=offset), MaintenanceStatus.COMPLETED)
        await make_record(machine, TODAY + timedelta(days=5))

        _, score = await service.get_machine_with_health(machine.id)
        assert score == 75

    async def test_health_score_ignores_other_machines(self, service, make_machine, make_record):
        machine = await make_machine()
        other = await make_machine("Robotic Arm R2")
        await make_record(other, TODAY)

        _, score = await service.get_machine_with_health(machine.id)
        assert score == 100

    async def test_counts(self, service, plant):
        assert await service.count_machines() == 5
        counts = await service.count_by_status()
        assert counts == {
            MachineStatus.RUNNING: 3,
            MachineStatus.STOPPED: 1,
            MachineStatus.MAINTENANCE: 1,
        }


class TestUpdate:

    async def test_patch_changes_only_given_fields(self, service, make_machine):
        machine = await make_machine(next_due_date=TODAY + timedelta(days=2))

        updated = await service.update_machine(
            machine.id, MachinePatch.model_validate({"location": "Zone 9", "status": "Stopped"})
        )

        assert updated.location == "Zone 9"
        assert updated.status is MachineStatus.STOPPED
        assert updated.name == "CNC Lathe A1"
        assert updated.next_due_date == TODAY + timedelta(days=2)

    async def test_new_last_maintenance_date_rederives_due_date(self, service, make_machine):
        machine = await make_machine(frequency=30)
        last = TODAY - timedelta(days=10)

        updated = await service.update_machine(
            machine.id, MachinePatch.model_validate({"lastMaintenanceDate": last.isoformat()})
        )

        assert updated.last_maintenance_date == last
        assert updated.next_due_date == last + timedelta(days=30)

    async def test_new_frequency_rederives_from_creation_without_history(self, service, make_machine):
        machine = await make_machine(frequency=30)

        updated = await service.update_machine(
            machine.id, MachinePatch.model_validate({"maintenanceFrequencyDays": 90})
        )

        assert updated.next_due_date == machine.created_on + timedelta(days=90)

    async def test_new_frequency_uses_existing_last_maintenance_date(self, service, make_machine):
        last = TODAY - timedelta(days=5)
        machine = await make_machine(frequency=30, last_maintenance_date=last)

        updated = await service.update_machine(
            machine.id, MachinePatch.model_validate({"maintenanceFrequencyDays": 7})
        )

        assert updated.next_due_date == last + timedelta(days=7)

    async def test_update_missing_machine_raises(self, service):
        with pytest.raises(ResourceNotFound):
            await service.update_machine(42, MachinePatch.model_validate({"name": "Ghost"}))


class TestDelete:

    async def test_delete_cascades_to_records(self, service, db_session, plant):
        lathe = plant["machines"][0]

        await service.delete_machine(lathe.id)

        remaining = await db_session.execute(
            select(func.count(MaintenanceRecord.id)).where(MaintenanceRecord.machine_id == lathe.id)
        )
        assert remaining.scalar_one() == 0
        assert await service.get(lathe.id) is None
        assert await service.count_machines() == 4

    async def test_delete_keeps_other_machines_records(self, service, db_session, make_machine, make_record):
        doomed = await make_machine()
        kept = await make_machine("Robotic Arm R2")
        await make_record(doomed, TODAY)
        await make_record(kept, TODAY)

        await service.delete_machine(doomed.id)

        total = await db_session.execute(select(func.count(MaintenanceRecord.id)))
        assert total.scalar_one() == 1

    async def test_delete_missing_machine_raises(self, service):
        with pytest.raises(ResourceNotFound):
            await service.delete_machine(404)


class TestBaseOperations:

    async def test_get_multi_pages_by_id(self, service, plant):
        first_page = await service.get_multi(skip=0, limit=2)
        second_page = await service.get_multi(skip=2, limit=2)

        assert [m.id for m in first_page] == [plant["machines"][0].id, plant["machines"][1].id]
        assert len(second_page) == 2

    async def test_generic_delete(self, service, make_machine):
        machine = await make_machine()
        await service.delete(machine.id)
        assert await service.get(machine.id) is None
