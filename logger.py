"""Facility Maintenance Tracker - Structured Logging.

Provides structured JSON logging for deployed environments and colored
console output for local development, with automatic request context
injection.

Usage:
    from logger import get_logger, configure_logging

    # Initialize at startup
    configure_logging(environment="production")

    # Get a logger
    logger = get_logger(__name__)
    logger.info("Machine created", machine_id=42)
"""

from __future__ import annotations

import logging
import re
import sys
import time
import uuid
from contextvars import ContextVar
from typing import Any

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from structlog.types import EventDict, Processor, WrappedLogger

SERVICE_NAME = "maintenance-tracker"

# =============================================================================
# Context Variables for Request Tracking
# =============================================================================
# Set by RequestContextMiddleware and included in every log entry

request_id_var: ContextVar[str | None] = ContextVar("request_id", default=None)
correlation_id_var: ContextVar[str | None] = ContextVar("correlation_id", default=None)


# =============================================================================
# Secret Filtering
# =============================================================================

SENSITIVE_FIELD_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"password", re.IGNORECASE),
    re.compile(r"secret", re.IGNORECASE),
    re.compile(r"token", re.IGNORECASE),
    re.compile(r"api[_-]?key", re.IGNORECASE),
    re.compile(r"authorization", re.IGNORECASE),
    re.compile(r"cookie", re.IGNORECASE),
)

REDACTED = "[REDACTED]"


def _is_sensitive_field(field_name: str) -> bool:
    return any(pattern.search(field_name) for pattern in SENSITIVE_FIELD_PATTERNS)


def _sanitize_value(value: Any, field_name: str = "") -> Any:
    """Recursively redact values stored under sensitive keys."""
    if field_name and _is_sensitive_field(field_name):
        return REDACTED

    if isinstance(value, dict):
        return {k: _sanitize_value(v, str(k)) for k, v in value.items()}

    if isinstance(value, (list, tuple)):
        return type(value)(_sanitize_value(item, field_name) for item in value)

    return value


# =============================================================================
# Structlog Processors
# =============================================================================

def add_request_context(
    logger: WrappedLogger,
    method_name: str,
    event_dict: EventDict,
) -> EventDict:
    """Inject request context (request_id, correlation_id) into log entries."""
    request_id = request_id_var.get()
    if request_id:
        event_dict["request_id"] = request_id

    correlation_id = correlation_id_var.get()
    if correlation_id:
        event_dict["correlation_id"] = correlation_id

    return event_dict


def sanitize_sensitive_data(
    logger: WrappedLogger,
    method_name: str,
    event_dict: EventDict,
) -> EventDict:
    """Remove secrets from log entries."""
    return {k: _sanitize_value(v, k) for k, v in event_dict.items()}


def add_service_context(
    logger: WrappedLogger,
    method_name: str,
    event_dict: EventDict,
) -> EventDict:
    """Add service metadata for log aggregation."""
    event_dict.setdefault("service", SERVICE_NAME)
    return event_dict


# =============================================================================
# Logging Configuration
# =============================================================================

def configure_logging(
    environment: str = "development",
    log_level: str = "INFO",
    json_format: bool | None = None,
) -> None:
    """Configure structured logging for the application.

    Args:
        environment: Deployment environment (development, staging, production).
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        json_format: Force JSON output. If None, auto-detect based on environment.
    """
    use_json = json_format if json_format is not None else (environment != "development")

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        add_service_context,
        add_request_context,
        sanitize_sensitive_data,
    ]

    if use_json:
        shared_processors.extend([
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ])
    else:
        shared_processors.append(
            structlog.dev.ConsoleRenderer(
                colors=True,
                exception_formatter=structlog.dev.rich_traceback,
            )
        )

    structlog.configure(
        processors=shared_processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, log_level.upper()),
        force=True,
    )

    # Suppress noisy third-party loggers
    for noisy_logger in ("uvicorn.access", "aiosqlite", "asyncio"):
        logging.getLogger(noisy_logger).setLevel(logging.WARNING)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a configured structlog logger.

    Example:
        >>> logger = get_logger(__name__)
        >>> logger.info("Maintenance scheduled", record_id=7)
    """
    return structlog.stdlib.get_logger(name)


# =============================================================================
# FastAPI Middleware for Request Context
# =============================================================================

class RequestContextMiddleware(BaseHTTPMiddleware):
    """Inject request/correlation ids into every log entry of a request.

    Usage:
        app = FastAPI()
        app.add_middleware(RequestContextMiddleware)
    """

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request_id_var.set(request_id)

        correlation_id = request.headers.get("X-Correlation-ID") or request_id
        correlation_id_var.set(correlation_id)

        logger = get_logger("maintenance.http")

        start_time = time.perf_counter()
        logger.info(
            "Request started",
            method=request.method,
            path=request.url.path,
            query=str(request.query_params) if request.query_params else None,
        )

        try:
            response = await call_next(request)

            duration_ms = (time.perf_counter() - start_time) * 1000
            logger.info(
                "Request completed",
                method=request.method,
                path=request.url.path,
                status_code=response.status_code,
                duration_ms=round(duration_ms, 2),
            )

            response.headers["X-Request-ID"] = request_id
            response.headers["X-Correlation-ID"] = correlation_id

            return response

        except Exception as exc:
            duration_ms = (time.perf_counter() - start_time) * 1000
            logger.exception(
                "Request failed",
                method=request.method,
                path=request.url.path,
                duration_ms=round(duration_ms, 2),
                error_type=type(exc).__name__,
            )
            raise

        finally:
            request_id_var.set(None)
            correlation_id_var.set(None)
