"""Facility Maintenance Tracker - Core utilities."""
