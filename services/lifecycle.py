"""Facility Maintenance Tracker - Maintenance Lifecycle Rules.

Pure date arithmetic and classification shared by the services and the
SQL queries. Nothing here reads the clock: callers pass ``today`` in.

Classification of a maintenance record relative to ``today``:

    Completed  status == Completed
    Overdue    Pending and scheduled_date <  today
    Upcoming   Pending and today <= scheduled_date < today + horizon
    Scheduled  Pending and scheduled_date >= today + horizon

A Pending record due today is Upcoming, so every Pending record lands in
exactly one bucket.
"""

from __future__ import annotations

import enum
from collections.abc import Callable, Iterable
from datetime import date, timedelta

from db.models import MaintenanceStatus

DEFAULT_UPCOMING_WINDOW_DAYS = 7

TodayProvider = Callable[[], date]


class TaskClassification(str, enum.Enum):
    """Time-relative view of a maintenance record."""
    COMPLETED = "Completed"
    OVERDUE = "Overdue"
    UPCOMING = "Upcoming"
    SCHEDULED = "Scheduled"


def compute_next_due_date(anchor: date, frequency_days: int) -> date:
    """Next service date: ``anchor`` plus the re-service interval in calendar days."""
    if frequency_days <= 0:
        raise ValueError("frequency_days must be positive")
    return anchor + timedelta(days=frequency_days)


def overdue_cutoff(today: date) -> date:
    """Pending records scheduled strictly before this date are overdue."""
    return today


def upcoming_window(today: date, horizon_days: int = DEFAULT_UPCOMING_WINDOW_DAYS) -> tuple[date, date]:
    """Half-open ``[start, end)`` range of scheduled dates counted as upcoming."""
    if horizon_days <= 0:
        raise ValueError("horizon_days must be positive")
    return today, today + timedelta(days=horizon_days)


def classify(
    status: MaintenanceStatus,
    scheduled_date: date,
    today: date,
    horizon_days: int = DEFAULT_UPCOMING_WINDOW_DAYS,
) -> TaskClassification:
    """Place a record in exactly one bucket."""
    if status == MaintenanceStatus.COMPLETED:
        return TaskClassification.COMPLETED
    if scheduled_date < overdue_cutoff(today):
        return TaskClassification.OVERDUE
    start, end = upcoming_window(today, horizon_days)
    if start <= scheduled_date < end:
        return TaskClassification.UPCOMING
    return TaskClassification.SCHEDULED


def display_status(status: MaintenanceStatus, scheduled_date: date, today: date) -> str:
    """Label shown on task badges: past-due Pending tasks read "Overdue"."""
    if classify(status, scheduled_date, today) is TaskClassification.OVERDUE:
        return TaskClassification.OVERDUE.value
    return status.value


def health_score(statuses: Iterable[MaintenanceStatus]) -> int:
    """Percentage of a machine's records that reached Completed.

    100 when the machine has no records. Halves round up.

    >>> health_score([MaintenanceStatus.COMPLETED] * 3 + [MaintenanceStatus.PENDING])
    75
    """
    total = 0
    completed = 0
    for status in statuses:
        total += 1
        if status == MaintenanceStatus.COMPLETED:
            completed += 1
    if total == 0:
        return 100
    return (200 * completed + total) // (2 * total)
