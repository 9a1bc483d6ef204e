"""Facility Maintenance Tracker - Core Exceptions.

Domain-specific exceptions for the service layer.
Services raise these; the API layer converts them to HTTP responses
(see ``api_server.register_exception_handlers``).

Usage:
    from core.exceptions import ResourceNotFound

    class MachineService:
        async def get_or_raise(self, machine_id: int):
            machine = await self.get(machine_id)
            if not machine:
                raise ResourceNotFound("Machine", machine_id)
            return machine
"""

from __future__ import annotations

from typing import Any


class MaintenanceTrackerError(Exception):
    """Base exception for all maintenance tracker domain errors."""

    status_code: int = 500

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to the API error body."""
        return {"message": self.message}


class ResourceNotFound(MaintenanceTrackerError):
    """Raised when a requested resource does not exist.

    Maps to HTTP 404 Not Found.

    Attributes:
        resource_type: Type of resource (e.g., "Machine", "Maintenance record").
        resource_id: Identifier of the missing resource.
    """

    status_code = 404

    def __init__(self, resource_type: str, resource_id: Any):
        self.resource_type = resource_type
        self.resource_id = resource_id
        message = f"{resource_type} not found"
        super().__init__(message, {"resource_type": resource_type, "resource_id": str(resource_id)})


class ValidationError(MaintenanceTrackerError):
    """Raised when input validation fails beyond Pydantic's scope.

    Maps to HTTP 400 Bad Request.
    """

    status_code = 400

    def __init__(self, field: str | None, message: str):
        self.field = field
        super().__init__(message, {"field": field} if field else {})

    def to_dict(self) -> dict[str, Any]:
        body = super().to_dict()
        if self.field:
            body["field"] = self.field
        return body


class BusinessRuleViolation(MaintenanceTrackerError):
    """Raised when a lifecycle rule is violated.

    Maps to HTTP 409 Conflict.

    Examples:
        - Completing a maintenance record that is already completed
    """

    status_code = 409

    def __init__(self, rule: str, context: dict[str, Any] | None = None):
        self.rule = rule
        self.context = context or {}
        super().__init__(rule, {"rule": rule, **self.context})


class PersistenceError(MaintenanceTrackerError):
    """Raised when the database rejects a write.

    Maps to HTTP 500 Internal Server Error.
    """

    status_code = 500

    def __init__(self, operation: str, original_error: str):
        self.operation = operation
        self.original_error = original_error
        super().__init__(
            f"Database operation '{operation}' failed",
            {"operation": operation, "error": original_error},
        )
