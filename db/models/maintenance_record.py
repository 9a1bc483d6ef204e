"""Facility Maintenance Tracker - Maintenance Record ORM Model.

One scheduled or completed service event tied to a machine.
"""

from __future__ import annotations

import enum
from datetime import date
from typing import TYPE_CHECKING

from sqlalchemy import Date, Enum, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from db.base import Base

if TYPE_CHECKING:
    from db.models.machine import Machine


class MaintenanceStatus(str, enum.Enum):
    """Stored lifecycle state. "Overdue" is derived at query time, never stored."""
    PENDING = "Pending"
    COMPLETED = "Completed"


class MaintenanceRecord(Base):
    """Maintenance task entity."""
    __tablename__ = "maintenance_records"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    machine_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("machines.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    scheduled_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    completed_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    status: Mapped[MaintenanceStatus] = mapped_column(
        Enum(
            MaintenanceStatus,
            name="maintenance_status",
            native_enum=False,
            length=20,
            values_callable=lambda statuses: [s.value for s in statuses],
        ),
        nullable=False,
        default=MaintenanceStatus.PENDING,
    )
    technician_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    remarks: Mapped[str | None] = mapped_column(Text, nullable=True)

    machine: Mapped[Machine] = relationship(back_populates="maintenance_records")

    def __repr__(self) -> str:
        return (
            f"<MaintenanceRecord id={self.id} machine_id={self.machine_id} "
            f"status={self.status.value} scheduled={self.scheduled_date}>"
        )
