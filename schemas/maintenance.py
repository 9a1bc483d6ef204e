"""Facility Maintenance Tracker - Maintenance Record Schemas.

Pydantic models for scheduling, completing and listing maintenance
records, plus the query-string enums of ``GET /maintenance``.
"""

from __future__ import annotations

import enum
from datetime import date
from typing import Optional

from pydantic import Field

from db.models import MaintenanceStatus
from schemas.response import CamelModel


class MaintenanceRange(str, enum.Enum):
    """Derived, time-relative views."""
    UPCOMING = "upcoming"
    OVERDUE = "overdue"


class MaintenanceStatusFilter(str, enum.Enum):
    """``status`` query values. Overdue selects the derived overdue view."""
    PENDING = "Pending"
    COMPLETED = "Completed"
    OVERDUE = "Overdue"


class MaintenanceCreate(CamelModel):
    """Payload for scheduling maintenance. Records always start Pending."""
    machine_id: int = Field(..., gt=0)
    scheduled_date: date


class MaintenanceComplete(CamelModel):
    """Payload for completing a pending maintenance record."""
    technician_name: str = Field(..., min_length=1, max_length=255)
    remarks: Optional[str] = Field(None, max_length=4000)


class MaintenanceRecord(CamelModel):
    """Stored maintenance record."""
    id: int
    machine_id: int
    scheduled_date: date
    completed_date: Optional[date] = None
    status: MaintenanceStatus
    technician_name: Optional[str] = None
    remarks: Optional[str] = None


class MaintenanceRecordWithMachine(MaintenanceRecord):
    """Record joined with its machine's name for display.

    ``displayStatus`` is ``Overdue`` for a past-due Pending record and the
    stored status otherwise.
    """
    machine_name: Optional[str] = None
    display_status: str
