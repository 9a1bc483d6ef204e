"""Facility Maintenance Tracker - Demo Data Seeding.

Fills an empty database with a small plant: five machines and three
maintenance records (one overdue, one due tomorrow, one completed
yesterday) so the dashboard has something to show.
"""

from __future__ import annotations

import random
from datetime import date, timedelta

from sqlalchemy.ext.asyncio import AsyncSession

from db.models import Machine, MachineStatus, MaintenanceRecord, MaintenanceStatus
from logger import get_logger
from services.lifecycle import TodayProvider
from services.machine_service import MachineService

logger = get_logger(__name__)

DEMO_MACHINES: tuple[dict, ...] = (
    {"name": "CNC Lathe A1", "location": "Zone 1", "maintenance_frequency_days": 30, "status": MachineStatus.RUNNING},
    {"name": "Hydraulic Press H5", "location": "Zone 2", "maintenance_frequency_days": 14, "status": MachineStatus.RUNNING},
    {"name": "Conveyor Belt C3", "location": "Loading Bay", "maintenance_frequency_days": 7, "status": MachineStatus.MAINTENANCE},
    {"name": "Robotic Arm R2", "location": "Assembly Line", "maintenance_frequency_days": 60, "status": MachineStatus.RUNNING},
    {"name": "Welding Station W1", "location": "Zone 1", "maintenance_frequency_days": 10, "status": MachineStatus.STOPPED},
)


async def seed_demo_data(
    db: AsyncSession,
    today: TodayProvider = date.today,
    rng: random.Random | None = None,
) -> bool:
    """Insert the demo plant if there are no machines yet.

    Returns:
        True if data was inserted, False if the database already had machines.
    """
    if await MachineService(db, today).count_machines() > 0:
        logger.info("Database already populated, skipping demo seed")
        return False

    rng = rng or random.Random()
    current = today()

    machines = []
    for attrs in DEMO_MACHINES:
        machine = Machine(
            **attrs,
            last_maintenance_date=current - timedelta(days=30),
            # Spread due dates so some machines are late and some are not
            next_due_date=current + timedelta(days=rng.randint(-5, 14)),
            created_on=current - timedelta(days=30),
        )
        db.add(machine)
        machines.append(machine)
    await db.flush()

    yesterday = current - timedelta(days=1)
    db.add_all([
        MaintenanceRecord(
            machine_id=machines[0].id,
            scheduled_date=current - timedelta(days=5),
            status=MaintenanceStatus.PENDING,
        ),
        MaintenanceRecord(
            machine_id=machines[1].id,
            scheduled_date=current + timedelta(days=1),
            status=MaintenanceStatus.PENDING,
        ),
        MaintenanceRecord(
            machine_id=machines[2].id,
            scheduled_date=yesterday,
            completed_date=yesterday,
            status=MaintenanceStatus.COMPLETED,
            technician_name="John Doe",
            remarks="Replaced filter",
        ),
    ])
    await db.commit()

    logger.info("Demo data seeded", machines=len(machines), records=3)
    return True
