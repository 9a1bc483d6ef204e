"""Facility Maintenance Tracker - Service Layer.

This package contains business logic services that encapsulate
domain operations and keep API routes thin.

Services:
    - MachineService: Machine registry, health score
    - MaintenanceService: Scheduling, completion, upcoming/overdue views
    - StatsService: Dashboard and report aggregates
    - BaseService: Generic CRUD operations (for ORM models)

Usage:
    from services import MachineService

    # In FastAPI route
    async def list_machines(db: AsyncSession = Depends(get_db)):
        return await MachineService(db).list_machines()
"""

from services.base import BaseService
from services.machine_service import MachineService
from services.maintenance_service import MaintenanceService
from services.stats_service import StatsService

__all__ = [
    "BaseService",
    "MachineService",
    "MaintenanceService",
    "StatsService",
]
