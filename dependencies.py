"""Facility Maintenance Tracker - FastAPI Dependencies.

Dependency injection for the database session, the current date and the
domain services. Everything is resolved from ``request.app.state``, which
the application factory fills; there are no module-level singletons.

Usage:
    from dependencies import get_machine_service

    @router.get("/machines")
    async def list_machines(service: MachineService = Depends(get_machine_service)):
        ...
"""

from __future__ import annotations

from collections.abc import AsyncGenerator
from datetime import date
from typing import Annotated

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from config import Settings
from database import Database
from services.lifecycle import TodayProvider
from services.machine_service import MachineService
from services.maintenance_service import MaintenanceService
from services.stats_service import StatsService


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_database(request: Request) -> Database:
    return request.app.state.database


async def get_db(
    database: Annotated[Database, Depends(get_database)],
) -> AsyncGenerator[AsyncSession, None]:
    """Database session for one request; committed on success, rolled back on error."""
    async with database.session() as session:
        yield session


def get_today() -> TodayProvider:
    """Source of "today" for date rules. Tests override this to pin the date."""
    return date.today


def get_machine_service(
    db: Annotated[AsyncSession, Depends(get_db)],
    today: Annotated[TodayProvider, Depends(get_today)],
) -> MachineService:
    return MachineService(db, today)


def get_maintenance_service(
    db: Annotated[AsyncSession, Depends(get_db)],
    today: Annotated[TodayProvider, Depends(get_today)],
    settings: Annotated[Settings, Depends(get_app_settings)],
) -> MaintenanceService:
    return MaintenanceService(db, today, settings.maintenance.upcoming_window_days)


def get_stats_service(
    db: Annotated[AsyncSession, Depends(get_db)],
    today: Annotated[TodayProvider, Depends(get_today)],
    settings: Annotated[Settings, Depends(get_app_settings)],
) -> StatsService:
    return StatsService(db, today, settings.maintenance.upcoming_window_days)


MachineServiceDep = Annotated[MachineService, Depends(get_machine_service)]
MaintenanceServiceDep = Annotated[MaintenanceService, Depends(get_maintenance_service)]
StatsServiceDep = Annotated[StatsService, Depends(get_stats_service)]
