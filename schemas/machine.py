"""Facility Maintenance Tracker - Machine Schemas.

Pydantic models for Machine API requests and responses.
JSON uses camelCase (``maintenanceFrequencyDays``); snake_case is
accepted on input as well.
"""

from __future__ import annotations

from datetime import date
from typing import Optional

from pydantic import ConfigDict, Field, field_validator

from db.models import MachineStatus
from schemas.response import CamelModel

NON_NULLABLE_PATCH_FIELDS = (
    "name",
    "location",
    "status",
    "maintenance_frequency_days",
)


def _blank_to_none(v: Optional[str]) -> Optional[str]:
    if isinstance(v, str) and not v.strip():
        return None
    return v


class MachineBase(CamelModel):
    """Shared properties for Machine models."""
    name: str = Field(..., min_length=1, max_length=255)
    location: str = Field(..., min_length=1, max_length=255)
    status: MachineStatus = MachineStatus.RUNNING
    maintenance_frequency_days: int = Field(..., gt=0, le=36500)
    last_maintenance_date: Optional[date] = None
    image_url: Optional[str] = Field(None, max_length=2048)

    @field_validator("image_url", mode="before")
    @classmethod
    def blank_image_url_to_none(cls, v: Optional[str]) -> Optional[str]:
        return _blank_to_none(v)


class MachineCreate(MachineBase):
    """Payload for registering a machine.

    ``nextDueDate`` may be supplied here and nowhere else; when omitted it
    is derived from the creation date and the frequency.
    """
    next_due_date: Optional[date] = None


class MachinePatch(CamelModel):
    """Partial update of a machine.

    Only the fields listed here may change. Unknown fields (including
    ``nextDueDate``, which is always derived) are rejected, and fields
    that cannot be empty reject an explicit ``null``.
    """
    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = Field(None, min_length=1, max_length=255)
    location: Optional[str] = Field(None, min_length=1, max_length=255)
    status: Optional[MachineStatus] = None
    maintenance_frequency_days: Optional[int] = Field(None, gt=0, le=36500)
    last_maintenance_date: Optional[date] = None
    image_url: Optional[str] = Field(None, max_length=2048)

    @field_validator("image_url", mode="before")
    @classmethod
    def blank_image_url_to_none(cls, v: Optional[str]) -> Optional[str]:
        return _blank_to_none(v)

    # Defaults are not validated, so this only fires on an explicit null
    @field_validator(*NON_NULLABLE_PATCH_FIELDS)
    @classmethod
    def reject_null(cls, v: object) -> object:
        if v is None:
            raise ValueError("Field cannot be null")
        return v

    def changes(self) -> dict[str, object]:
        """Fields explicitly present in the request, by attribute name."""
        return self.model_dump(exclude_unset=True)


class Machine(MachineBase):
    """Full Machine resource response."""
    id: int
    next_due_date: Optional[date] = None
    created_on: date


class MachineDetail(Machine):
    """Single-machine response with the computed health score."""
    health_score: int = Field(..., ge=0, le=100)
