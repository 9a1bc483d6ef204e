"""Facility Maintenance Tracker - Shared API Schemas.

Provides the camelCase base model used by every resource schema, the
error body returned by all 4xx/5xx responses, and a high-performance
ORJSONResponse class for faster serialization.

Error Format:
    {
        "message": "Machine not found",   // always present
        "field": "maintenanceFrequencyDays"  // validation errors only
    }
"""

from __future__ import annotations

from typing import Any

import orjson
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base for API models: camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
        str_strip_whitespace=True,
    )


class ErrorResponse(BaseModel):
    """Standard error body for 4xx/5xx status codes.

    Example:
        {"message": "Field required", "field": "technicianName"}
    """

    message: str = Field(..., description="Human-readable error message")
    field: str | None = Field(None, description="Offending field for validation errors")

    def to_content(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)


# =============================================================================
# High-Performance ORJSON Response
# =============================================================================

def _orjson_serializer(obj: Any) -> bytes:
    """Serialize object to JSON bytes using orjson.

    orjson writes ``datetime.date`` as ``YYYY-MM-DD`` natively.
    """
    return orjson.dumps(
        obj,
        option=(
            orjson.OPT_UTC_Z |
            orjson.OPT_NAIVE_UTC |
            orjson.OPT_NON_STR_KEYS
        ),
    )


class ORJSONResponse(JSONResponse):
    """High-performance JSON response using orjson.

    Usage:
        app = FastAPI(default_response_class=ORJSONResponse)
    """

    media_type = "application/json"

    def render(self, content: Any) -> bytes:
        if hasattr(content, "model_dump"):
            content = content.model_dump(mode="json", by_alias=True)
        return _orjson_serializer(content)


def error_response(status_code: int, message: str, field: str | None = None) -> ORJSONResponse:
    """Build an error response with the standard body."""
    return ORJSONResponse(
        status_code=status_code,
        content=ErrorResponse(message=message, field=field).to_content(),
    )
