"""Facility Maintenance Tracker - Statistics Schemas."""

from __future__ import annotations

from pydantic import Field

from schemas.response import CamelModel


class DashboardStats(CamelModel):
    """Aggregate counts for the dashboard header cards."""
    total_machines: int = Field(..., ge=0)
    machines_in_maintenance: int = Field(..., ge=0)
    overdue_tasks: int = Field(..., ge=0)
    upcoming_tasks: int = Field(..., ge=0)


class TechnicianTaskCount(CamelModel):
    """Completed tasks attributed to one technician."""
    technician_name: str
    completed_tasks: int = Field(..., ge=0)


class ReportStats(CamelModel):
    """Aggregates behind the analytics charts.

    ``taskStatusDistribution`` keys: Completed, Overdue, Pending (Pending
    excludes overdue tasks). ``machineStatusDistribution`` keys: Running,
    Maintenance, Stopped.
    """
    tasks_by_technician: list[TechnicianTaskCount]
    task_status_distribution: dict[str, int]
    machine_status_distribution: dict[str, int]
