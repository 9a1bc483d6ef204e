"""Facility Maintenance Tracker - Database Declarative Base.

Shared SQLAlchemy declarative base for all ORM models.
"""

from typing import Any

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""
    id: Any
