"""Facility Maintenance Tracker - API Schemas.

Request/response models for machines, maintenance records, statistics
and errors. All wire names are camelCase.
"""

from .machine import Machine, MachineCreate, MachineDetail, MachinePatch
from .maintenance import (
    MaintenanceComplete,
    MaintenanceCreate,
    MaintenanceRange,
    MaintenanceRecord,
    MaintenanceRecordWithMachine,
    MaintenanceStatusFilter,
)
from .response import CamelModel, ErrorResponse, ORJSONResponse, error_response
from .stats import DashboardStats, ReportStats, TechnicianTaskCount

__all__ = [
    "CamelModel",
    "DashboardStats",
    "ErrorResponse",
    "Machine",
    "MachineCreate",
    "MachineDetail",
    "MachinePatch",
    "MaintenanceComplete",
    "MaintenanceCreate",
    "MaintenanceRange",
    "MaintenanceRecord",
    "MaintenanceRecordWithMachine",
    "MaintenanceStatusFilter",
    "ORJSONResponse",
    "ReportStats",
    "TechnicianTaskCount",
    "error_response",
]
