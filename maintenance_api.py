"""
Maintenance Tracker API Routes
Machines, maintenance records and dashboard statistics.

Routers are mounted by api_server.create_app under the configured
prefix (``/api`` by default). Request bodies are validated by the
schemas before any service call; services raise domain exceptions that
api_server maps to HTTP status codes.
"""

from typing import List, Optional

from fastapi import APIRouter, Query, Response, status

from dependencies import MachineServiceDep, MaintenanceServiceDep, StatsServiceDep
from schemas import (
    DashboardStats,
    ErrorResponse,
    Machine,
    MachineCreate,
    MachineDetail,
    MachinePatch,
    MaintenanceComplete,
    MaintenanceCreate,
    MaintenanceRange,
    MaintenanceRecord,
    MaintenanceRecordWithMachine,
    MaintenanceStatusFilter,
    ReportStats,
)

NOT_FOUND = {404: {"model": ErrorResponse, "description": "Resource not found"}}
INVALID = {400: {"model": ErrorResponse, "description": "Validation error"}}

machines_router = APIRouter(prefix="/machines", tags=["Machines"])
maintenance_router = APIRouter(prefix="/maintenance", tags=["Maintenance"])
stats_router = APIRouter(prefix="/stats", tags=["Statistics"])


# =============================================================================
# MACHINES
# =============================================================================

@machines_router.get("", response_model=List[Machine])
async def list_machines(service: MachineServiceDep):
    """All machines, alphabetical by name."""
    return await service.list_machines()


@machines_router.get("/{machine_id}", response_model=MachineDetail, responses=NOT_FOUND)
async def get_machine(machine_id: int, service: MachineServiceDep):
    """One machine with its computed health score."""
    machine, score = await service.get_machine_with_health(machine_id)
    return MachineDetail(**Machine.model_validate(machine).model_dump(), health_score=score)


@machines_router.post(
    "",
    response_model=Machine,
    status_code=status.HTTP_201_CREATED,
    responses=INVALID,
)
async def create_machine(payload: MachineCreate, service: MachineServiceDep):
    """Register a machine. nextDueDate defaults to today + frequency."""
    return await service.create_machine(payload)


@machines_router.put(
    "/{machine_id}",
    response_model=Machine,
    responses={**INVALID, **NOT_FOUND},
)
async def update_machine(machine_id: int, patch: MachinePatch, service: MachineServiceDep):
    """Partial update; only the fields present in the body change."""
    return await service.update_machine(machine_id, patch)


@machines_router.delete(
    "/{machine_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    responses=NOT_FOUND,
)
async def delete_machine(machine_id: int, service: MachineServiceDep):
    """Delete a machine and its maintenance history."""
    await service.delete_machine(machine_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@machines_router.get(
    "/{machine_id}/history",
    response_model=List[MaintenanceRecordWithMachine],
    responses=NOT_FOUND,
)
async def get_machine_history(machine_id: int, service: MaintenanceServiceDep):
    """Maintenance history of one machine, most recently completed first."""
    return await service.history(machine_id)


# =============================================================================
# MAINTENANCE
# =============================================================================

@maintenance_router.get("", response_model=List[MaintenanceRecordWithMachine], responses=INVALID)
async def list_maintenance(
    service: MaintenanceServiceDep,
    machine_id: Optional[int] = Query(None, alias="machineId", gt=0, description="Filter by machine"),
    status_filter: Optional[MaintenanceStatusFilter] = Query(None, alias="status", description="Stored status, or Overdue"),
    range_: Optional[MaintenanceRange] = Query(None, alias="range", description="Derived view: upcoming or overdue"),
):
    """List maintenance records joined with machine names."""
    return await service.list_records(machine_id=machine_id, status=status_filter, range_=range_)


@maintenance_router.get("/{record_id}", response_model=MaintenanceRecord, responses=NOT_FOUND)
async def get_maintenance(record_id: int, service: MaintenanceServiceDep):
    return await service.get_record(record_id)


@maintenance_router.post(
    "",
    response_model=MaintenanceRecord,
    status_code=status.HTTP_201_CREATED,
    responses={**INVALID, **NOT_FOUND},
)
async def schedule_maintenance(payload: MaintenanceCreate, service: MaintenanceServiceDep):
    """Schedule a Pending maintenance task for an existing machine."""
    return await service.schedule(payload)


@maintenance_router.post(
    "/{record_id}/complete",
    response_model=MaintenanceRecord,
    responses={
        **INVALID,
        **NOT_FOUND,
        409: {"model": ErrorResponse, "description": "Already completed"},
    },
)
async def complete_maintenance(record_id: int, payload: MaintenanceComplete, service: MaintenanceServiceDep):
    """Complete a task; the machine's schedule advances and it returns to Running."""
    return await service.complete(record_id, payload)


# =============================================================================
# STATISTICS
# =============================================================================

@stats_router.get("/dashboard", response_model=DashboardStats)
async def dashboard_stats(service: StatsServiceDep):
    """Machine and task counts for the dashboard cards."""
    return await service.dashboard()


@stats_router.get("/reports", response_model=ReportStats)
async def report_stats(service: StatsServiceDep):
    """Technician workload and status distributions for the analytics charts."""
    return await service.reports()
