"""Facility Maintenance Tracker - Machine Service.

Encapsulates all business logic for machines: registration with the
derived next due date, partial updates that keep the due date consistent,
cascade deletion and the health score.
"""

from __future__ import annotations

from datetime import date
from typing import Any

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from db.models import Machine, MachineStatus, MaintenanceRecord
from schemas.machine import MachineCreate, MachinePatch
from services.base import BaseService
from services.lifecycle import TodayProvider, compute_next_due_date, health_score

# Patch fields that move the derived next due date
_SCHEDULE_FIELDS = frozenset({"last_maintenance_date", "maintenance_frequency_days"})


class MachineService(BaseService[Machine, MachineCreate, MachinePatch]):
    """Service for machine registry operations."""

    resource_name = "Machine"

    def __init__(self, db: AsyncSession, today: TodayProvider = date.today):
        super().__init__(Machine, db, today)

    async def list_machines(self) -> list[Machine]:
        """All machines, alphabetical by name."""
        result = await self.db.execute(
            select(Machine).order_by(Machine.name.asc(), Machine.id.asc())
        )
        return list(result.scalars().all())

    async def get_machine(self, machine_id: int) -> Machine:
        return await self.get_or_raise(machine_id)

    async def get_machine_with_health(self, machine_id: int) -> tuple[Machine, int]:
        """Machine plus its health score over every record it ever had."""
        machine = await self.get_machine(machine_id)
        result = await self.db.execute(
            select(MaintenanceRecord.status).where(MaintenanceRecord.machine_id == machine_id)
        )
        score = health_score(result.scalars().all())
        self.logger.debug("Computed health score", machine_id=machine_id, health_score=score)
        return machine, score

    async def create_machine(self, payload: MachineCreate) -> Machine:
        """Register a machine; ``next_due_date`` defaults to today + frequency."""
        today = self.today()
        data: dict[str, Any] = payload.model_dump()
        if data.get("next_due_date") is None:
            data["next_due_date"] = compute_next_due_date(today, payload.maintenance_frequency_days)
        data["created_on"] = today

        machine = await self.create(data)
        self.logger.info(
            "Machine registered",
            machine_id=machine.id,
            frequency_days=machine.maintenance_frequency_days,
            next_due_date=str(machine.next_due_date),
        )
        return machine

    async def update_machine(self, machine_id: int, patch: MachinePatch) -> Machine:
        """Apply a partial update.

        Changing the last maintenance date or the frequency re-derives the
        next due date from ``last_maintenance_date or created_on``.
        """
        machine = await self.get_machine(machine_id)
        changes = patch.changes()

        if _SCHEDULE_FIELDS & changes.keys():
            last = changes.get("last_maintenance_date", machine.last_maintenance_date)
            frequency = changes.get("maintenance_frequency_days", machine.maintenance_frequency_days)
            changes["next_due_date"] = compute_next_due_date(last or machine.created_on, frequency)

        return await self.update(db_obj=machine, obj_in=changes)

    async def delete_machine(self, machine_id: int) -> None:
        """Delete a machine together with its maintenance history."""
        machine = await self.get_machine(machine_id)
        result = await self.db.execute(
            delete(MaintenanceRecord).where(MaintenanceRecord.machine_id == machine_id)
        )
        await self.db.delete(machine)
        await self.commit("delete_machine")

        self.logger.info(
            "Machine deleted",
            machine_id=machine_id,
            records_deleted=result.rowcount,
        )

    async def count_machines(self) -> int:
        result = await self.db.execute(select(func.count(Machine.id)))
        return int(result.scalar_one())

    async def count_by_status(self) -> dict[MachineStatus, int]:
        """Machine count per status; every status is present."""
        result = await self.db.execute(
            select(Machine.status, func.count(Machine.id)).group_by(Machine.status)
        )
        counts = {status: 0 for status in MachineStatus}
        for status, count in result.all():
            counts[MachineStatus(status)] = int(count)
        return counts
