"""Facility Maintenance Tracker - Statistics Service.

Aggregates for the dashboard cards and the analytics charts, computed
fresh on every call. Each call reads the clock once, so every count in
one response is taken against the same "today".
"""

from __future__ import annotations

from datetime import date

from sqlalchemy.ext.asyncio import AsyncSession

from db.models import MachineStatus, MaintenanceStatus
from logger import get_logger
from schemas.stats import DashboardStats, ReportStats, TechnicianTaskCount
from services.lifecycle import DEFAULT_UPCOMING_WINDOW_DAYS, TaskClassification, TodayProvider
from services.machine_service import MachineService
from services.maintenance_service import MaintenanceService

logger = get_logger(__name__)


class StatsService:
    """Read-only aggregate queries over machines and maintenance records."""

    def __init__(
        self,
        db: AsyncSession,
        today: TodayProvider = date.today,
        upcoming_window_days: int = DEFAULT_UPCOMING_WINDOW_DAYS,
    ):
        self.db = db
        self.today = today
        self.upcoming_window_days = upcoming_window_days
        self.logger = logger.bind(service="StatsService")

    def _services(self) -> tuple[MachineService, MaintenanceService]:
        """Machine and maintenance services pinned to a single reading of the clock."""
        current = self.today()

        def pinned() -> date:
            return current

        return (
            MachineService(self.db, pinned),
            MaintenanceService(self.db, pinned, self.upcoming_window_days),
        )

    async def dashboard(self) -> DashboardStats:
        machines, maintenance = self._services()
        machine_counts = await machines.count_by_status()
        stats = DashboardStats(
            total_machines=sum(machine_counts.values()),
            machines_in_maintenance=machine_counts[MachineStatus.MAINTENANCE],
            overdue_tasks=await maintenance.count_overdue(),
            upcoming_tasks=await maintenance.count_upcoming(),
        )
        self.logger.debug("Dashboard stats computed", **stats.model_dump())
        return stats

    async def reports(self) -> ReportStats:
        """Technician workload, task status split and machine status split."""
        machines, maintenance = self._services()
        technicians = await maintenance.completed_by_technician()
        stored = await maintenance.count_by_status()
        overdue = await maintenance.count_overdue()
        machine_counts = await machines.count_by_status()

        return ReportStats(
            tasks_by_technician=[
                TechnicianTaskCount(technician_name=name, completed_tasks=count)
                for name, count in technicians
            ],
            task_status_distribution={
                TaskClassification.COMPLETED.value: stored[MaintenanceStatus.COMPLETED],
                TaskClassification.OVERDUE.value: overdue,
                MaintenanceStatus.PENDING.value: stored[MaintenanceStatus.PENDING] - overdue,
            },
            machine_status_distribution={
                status.value: machine_counts[status] for status in MachineStatus
            },
        )
