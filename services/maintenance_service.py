"""Facility Maintenance Tracker - Maintenance Service.

Scheduling and completion of maintenance records, and the joined
read views (all records, upcoming, overdue, per-machine history).

Completion touches two aggregates (the record and its machine) and
commits them in a single transaction.
"""

from __future__ import annotations

from datetime import date
from typing import Any

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from core.exceptions import BusinessRuleViolation, ResourceNotFound, ValidationError
from db.models import Machine, MachineStatus, MaintenanceRecord, MaintenanceStatus
from schemas.maintenance import (
    MaintenanceComplete,
    MaintenanceCreate,
    MaintenanceRange,
    MaintenanceRecordWithMachine,
    MaintenanceStatusFilter,
)
from services.base import BaseService
from services.lifecycle import (
    DEFAULT_UPCOMING_WINDOW_DAYS,
    TodayProvider,
    compute_next_due_date,
    display_status,
    overdue_cutoff,
    upcoming_window,
)


class MaintenanceService(BaseService[MaintenanceRecord, MaintenanceCreate, MaintenanceComplete]):
    """Service for the maintenance record lifecycle."""

    resource_name = "Maintenance record"

    def __init__(
        self,
        db: AsyncSession,
        today: TodayProvider = date.today,
        upcoming_window_days: int = DEFAULT_UPCOMING_WINDOW_DAYS,
    ):
        super().__init__(MaintenanceRecord, db, today)
        self.upcoming_window_days = upcoming_window_days

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def get_record(self, record_id: int) -> MaintenanceRecord:
        return await self.get_or_raise(record_id)

    async def schedule(self, payload: MaintenanceCreate) -> MaintenanceRecord:
        """Create a Pending record for an existing machine.

        Raises:
            ResourceNotFound: If the machine does not exist. Nothing is written.
        """
        machine = await self.db.get(Machine, payload.machine_id)
        if machine is None:
            raise ResourceNotFound("Machine", payload.machine_id)

        record = await self.create({
            "machine_id": payload.machine_id,
            "scheduled_date": payload.scheduled_date,
            "status": MaintenanceStatus.PENDING,
        })
        self.logger.info(
            "Maintenance scheduled",
            record_id=record.id,
            machine_id=record.machine_id,
            scheduled_date=str(record.scheduled_date),
        )
        return record

    async def complete(self, record_id: int, payload: MaintenanceComplete) -> MaintenanceRecord:
        """Complete a Pending record and advance its machine's schedule.

        Both writes share one commit: the record becomes Completed today, and
        the machine gets ``last_maintenance_date = today``,
        ``next_due_date = today + frequency`` and status Running.

        Raises:
            ResourceNotFound: If the record does not exist. Nothing is written.
            BusinessRuleViolation: If the record is already completed.
        """
        record = await self.get_or_raise(record_id)
        if record.status == MaintenanceStatus.COMPLETED:
            raise BusinessRuleViolation(
                "Maintenance record is already completed",
                {"record_id": record_id},
            )

        today = self.today()
        record.status = MaintenanceStatus.COMPLETED
        record.completed_date = today
        record.technician_name = payload.technician_name
        record.remarks = payload.remarks

        machine = await self.db.get(Machine, record.machine_id)
        if machine is None:
            self.logger.warning(
                "Completed record has no machine, schedule not advanced",
                record_id=record_id,
                machine_id=record.machine_id,
            )
        else:
            machine.last_maintenance_date = today
            machine.next_due_date = compute_next_due_date(today, machine.maintenance_frequency_days)
            machine.status = MachineStatus.RUNNING

        await self.commit("complete_maintenance")
        await self.db.refresh(record)

        self.logger.info(
            "Maintenance completed",
            record_id=record_id,
            machine_id=record.machine_id,
            next_due_date=str(machine.next_due_date) if machine is not None else None,
        )
        return record

    # =========================================================================
    # Joined read views
    # =========================================================================

    async def list_records(
        self,
        machine_id: int | None = None,
        status: MaintenanceStatusFilter | None = None,
        range_: MaintenanceRange | None = None,
    ) -> list[MaintenanceRecordWithMachine]:
        """Records with machine names, newest scheduled date first.

        ``range_`` selects a derived view and takes precedence over
        ``status``; ``status=Overdue`` is the same as ``range_=overdue``.
        ``machine_id`` narrows every view.
        """
        if range_ is MaintenanceRange.UPCOMING:
            return await self.upcoming(machine_id=machine_id)
        if range_ is MaintenanceRange.OVERDUE or status is MaintenanceStatusFilter.OVERDUE:
            return await self.overdue(machine_id=machine_id)

        query = self._joined_query(machine_id)
        if status is not None:
            query = query.where(MaintenanceRecord.status == MaintenanceStatus(status.value))
        query = query.order_by(MaintenanceRecord.scheduled_date.desc(), MaintenanceRecord.id.desc())
        return await self._fetch_joined(query, self.today())

    async def upcoming(
        self,
        days: int | None = None,
        machine_id: int | None = None,
    ) -> list[MaintenanceRecordWithMachine]:
        """Pending records due within the horizon (today included), soonest first."""
        today = self.today()
        start, end = self._upcoming_window(days, today)
        query = (
            self._joined_query(machine_id)
            .where(
                MaintenanceRecord.status == MaintenanceStatus.PENDING,
                MaintenanceRecord.scheduled_date >= start,
                MaintenanceRecord.scheduled_date < end,
            )
            .order_by(MaintenanceRecord.scheduled_date.asc(), MaintenanceRecord.id.asc())
        )
        return await self._fetch_joined(query, today)

    async def overdue(self, machine_id: int | None = None) -> list[MaintenanceRecordWithMachine]:
        """Pending records scheduled before today, oldest first."""
        today = self.today()
        query = (
            self._joined_query(machine_id)
            .where(
                MaintenanceRecord.status == MaintenanceStatus.PENDING,
                MaintenanceRecord.scheduled_date < overdue_cutoff(today),
            )
            .order_by(MaintenanceRecord.scheduled_date.asc(), MaintenanceRecord.id.asc())
        )
        return await self._fetch_joined(query, today)

    async def history(self, machine_id: int) -> list[MaintenanceRecordWithMachine]:
        """Every record of one machine, most recently completed first.

        Raises:
            ResourceNotFound: If the machine does not exist.
        """
        if await self.db.get(Machine, machine_id) is None:
            raise ResourceNotFound("Machine", machine_id)

        query = self._joined_query(machine_id).order_by(
            MaintenanceRecord.completed_date.desc().nulls_last(),
            MaintenanceRecord.scheduled_date.desc(),
            MaintenanceRecord.id.desc(),
        )
        return await self._fetch_joined(query, self.today())

    # =========================================================================
    # Counts
    # =========================================================================

    async def count_overdue(self) -> int:
        return await self._count(
            MaintenanceRecord.status == MaintenanceStatus.PENDING,
            MaintenanceRecord.scheduled_date < overdue_cutoff(self.today()),
        )

    async def count_upcoming(self, days: int | None = None) -> int:
        start, end = self._upcoming_window(days, self.today())
        return await self._count(
            MaintenanceRecord.status == MaintenanceStatus.PENDING,
            MaintenanceRecord.scheduled_date >= start,
            MaintenanceRecord.scheduled_date < end,
        )

    async def count_by_status(self) -> dict[MaintenanceStatus, int]:
        """Stored status counts; every status is present."""
        result = await self.db.execute(
            select(MaintenanceRecord.status, func.count(MaintenanceRecord.id))
            .group_by(MaintenanceRecord.status)
        )
        counts = {status: 0 for status in MaintenanceStatus}
        for status, count in result.all():
            counts[MaintenanceStatus(status)] = int(count)
        return counts

    async def completed_by_technician(self) -> list[tuple[str, int]]:
        """Completed record count per technician, busiest first."""
        completed = func.count(MaintenanceRecord.id).label("completed")
        result = await self.db.execute(
            select(MaintenanceRecord.technician_name, completed)
            .where(
                MaintenanceRecord.status == MaintenanceStatus.COMPLETED,
                MaintenanceRecord.technician_name.is_not(None),
                MaintenanceRecord.technician_name != "",
            )
            .group_by(MaintenanceRecord.technician_name)
            .order_by(completed.desc(), MaintenanceRecord.technician_name.asc())
        )
        return [(name, int(count)) for name, count in result.all()]

    # =========================================================================
    # Helpers
    # =========================================================================

    def _upcoming_window(self, days: int | None, today: date) -> tuple[date, date]:
        if days is None:
            days = self.upcoming_window_days
        if days <= 0:
            raise ValidationError("days", "Upcoming horizon must be at least one day")
        return upcoming_window(today, days)

    @staticmethod
    def _joined_query(machine_id: int | None) -> Select[Any]:
        query = select(MaintenanceRecord, Machine.name).outerjoin(
            Machine, MaintenanceRecord.machine_id == Machine.id
        )
        if machine_id is not None:
            query = query.where(MaintenanceRecord.machine_id == machine_id)
        return query

    async def _fetch_joined(self, query: Select[Any], today: date) -> list[MaintenanceRecordWithMachine]:
        result = await self.db.execute(query)
        return [
            MaintenanceRecordWithMachine(
                id=record.id,
                machine_id=record.machine_id,
                machine_name=machine_name,
                scheduled_date=record.scheduled_date,
                completed_date=record.completed_date,
                status=record.status,
                technician_name=record.technician_name,
                remarks=record.remarks,
                display_status=display_status(record.status, record.scheduled_date, today),
            )
            for record, machine_name in result.all()
        ]

    async def _count(self, *criteria: Any) -> int:
        result = await self.db.execute(
            select(func.count(MaintenanceRecord.id)).where(*criteria)
        )
        return int(result.scalar_one())
