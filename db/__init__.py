"""Facility Maintenance Tracker - Database layer (declarative base and ORM models)."""
