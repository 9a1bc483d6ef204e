"""Facility Maintenance Tracker - Machine ORM Model.

Defines the Machine entity: a piece of tracked equipment with a fixed
re-service interval.
"""

from __future__ import annotations

import enum
from datetime import date
from typing import TYPE_CHECKING

from sqlalchemy import Date, Enum, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from db.base import Base

if TYPE_CHECKING:
    from db.models.maintenance_record import MaintenanceRecord


class MachineStatus(str, enum.Enum):
    """Operating state of a machine."""
    RUNNING = "Running"
    STOPPED = "Stopped"
    MAINTENANCE = "Maintenance"


class Machine(Base):
    """Machine entity representing a physical asset."""
    __tablename__ = "machines"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    location: Mapped[str] = mapped_column(String(255), nullable=False)
    status: Mapped[MachineStatus] = mapped_column(
        Enum(
            MachineStatus,
            name="machine_status",
            native_enum=False,
            length=20,
            values_callable=lambda statuses: [s.value for s in statuses],
        ),
        nullable=False,
        default=MachineStatus.RUNNING,
    )
    maintenance_frequency_days: Mapped[int] = mapped_column(Integer, nullable=False)
    last_maintenance_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    next_due_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    image_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_on: Mapped[date] = mapped_column(Date, nullable=False, default=date.today)

    # Records go away with their machine (ON DELETE CASCADE does the work)
    maintenance_records: Mapped[list[MaintenanceRecord]] = relationship(
        back_populates="machine",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        return f"<Machine id={self.id} name={self.name!r} status={self.status.value}>"
