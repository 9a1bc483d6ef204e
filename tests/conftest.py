"""Facility Maintenance Tracker - Pytest Configuration & Fixtures.

Provides an isolated testing environment with:
1. A fresh in-memory SQLite database per test (aiosqlite + StaticPool).
2. A pinned "today" so date rules are deterministic.
3. AsyncClient for testing FastAPI endpoints in-process.
4. Factory fixtures for machines and maintenance records.

Usage:
    async def test_my_endpoint(client, plant):
        response = await client.get("/api/machines")
        assert response.status_code == 200
"""

from datetime import date, timedelta
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from api_server import create_app
from config import DatabaseSettings, LogSettings, MaintenanceSettings, Settings
from database import Database
from db.models import Machine, MachineStatus, MaintenanceRecord, MaintenanceStatus
from dependencies import get_today

TODAY = date(2024, 6, 15)


def pinned_today() -> date:
    return TODAY


# =============================================================================
# Settings & Database
# =============================================================================

@pytest.fixture
def settings() -> Settings:
    """Explicit settings so a developer's .env never leaks into tests."""
    return Settings(
        environment="development",
        database=DatabaseSettings(driver="sqlite", sqlite_path=":memory:"),
        log=LogSettings(level="WARNING", format="text"),
        maintenance=MaintenanceSettings(upcoming_window_days=7, seed_demo_data=False),
    )


@pytest_asyncio.fixture
async def database(settings) -> AsyncGenerator[Database, None]:
    """Connected in-memory database with the schema created.

    Every test gets its own database, so nothing leaks between tests.
    """
    database = Database(settings.database)
    await database.connect()
    await database.create_all()

    yield database

    await database.disconnect()


@pytest_asyncio.fixture
async def db_session(database) -> AsyncGenerator[AsyncSession, None]:
    """Session for service-level tests."""
    async with database.session() as session:
        yield session


# =============================================================================
# API Client
# =============================================================================

@pytest.fixture
def app(settings, database):
    """Application bound to the test database with "today" pinned.

    ASGITransport does not run the lifespan, so the database is connected
    by the ``database`` fixture instead.
    """
    app = create_app(settings, database)
    app.dependency_overrides[get_today] = lambda: pinned_today
    yield app
    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client calling the app directly without a network socket."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


# =============================================================================
# Data Factories
# =============================================================================

@pytest.fixture
def make_machine(db_session):
    """Factory fixture inserting a machine created 60 days before TODAY."""

    async def _make(
        name: str = "CNC Lathe A1",
        *,
        location: str = "Zone 1",
        status: MachineStatus = MachineStatus.RUNNING,
        frequency: int = 30,
        **fields,
    ) -> Machine:
        machine = Machine(
            name=name,
            location=location,
            status=status,
            maintenance_frequency_days=frequency,
            created_on=fields.pop("created_on", TODAY - timedelta(days=60)),
            **fields,
        )
        db_session.add(machine)
        await db_session.commit()
        return machine

    return _make


@pytest.fixture
def make_record(db_session):
    """Factory fixture inserting a maintenance record for a machine."""

    async def _make(
        machine: Machine,
        scheduled_date: date,
        status: MaintenanceStatus = MaintenanceStatus.PENDING,
        **fields,
    ) -> MaintenanceRecord:
        if status == MaintenanceStatus.COMPLETED:
            fields.setdefault("completed_date", scheduled_date)
            fields.setdefault("technician_name", "John Doe")
        record = MaintenanceRecord(
            machine_id=machine.id,
            scheduled_date=scheduled_date,
            status=status,
            **fields,
        )
        db_session.add(record)
        await db_session.commit()
        return record

    return _make


@pytest_asyncio.fixture
async def plant(make_machine, make_record) -> dict:
    """Five machines (one in Maintenance) and four records on the first machine.

    Records, relative to TODAY:
        overdue    today-1  Pending
        upcoming   today+3  Pending
        later      today+10 Pending
        completed  today-1  Completed
    """
    lathe = await make_machine("CNC Lathe A1")
    machines = [
        lathe,
        await make_machine("Conveyor Belt C3", location="Loading Bay", status=MachineStatus.MAINTENANCE, frequency=7),
        await make_machine("Hydraulic Press H5", location="Zone 2", frequency=14),
        await make_machine("Robotic Arm R2", location="Assembly Line", frequency=60),
        await make_machine("Welding Station W1", status=MachineStatus.STOPPED, frequency=10),
    ]
    records = {
        "overdue": await make_record(lathe, TODAY - timedelta(days=1)),
        "upcoming": await make_record(lathe, TODAY + timedelta(days=3)),
        "later": await make_record(lathe, TODAY + timedelta(days=10)),
        "completed": await make_record(
            lathe,
            TODAY - timedelta(days=1),
            MaintenanceStatus.COMPLETED,
            technician_name="Jane Smith",
            remarks="Replaced filter",
        ),
    }
    return {"machines": machines, "records": records}
