"""Facility Maintenance Tracker - ORM Models.

Importing this package registers every table on ``Base.metadata``.
"""

from db.models.machine import Machine, MachineStatus
from db.models.maintenance_record import MaintenanceRecord, MaintenanceStatus

__all__ = [
    "Machine",
    "MachineStatus",
    "MaintenanceRecord",
    "MaintenanceStatus",
]
