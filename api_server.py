#!/usr/bin/env python3
"""
Facility Maintenance Tracker API Server

Endpoints (under the configured prefix, /api by default):
- /machines                      : Machine registry (CRUD, health score, history)
- /maintenance                   : Scheduling, completion, upcoming/overdue views
- /stats/dashboard, /stats/reports : Aggregates for the dashboard client
- /health                        : Database health check
- /docs                          : Swagger UI (auto-generated)

Run with:
    uvicorn api_server:create_app --factory
"""

import uuid
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from config import Settings, get_settings
from core.exceptions import MaintenanceTrackerError
from database import Database
from logger import RequestContextMiddleware, configure_logging, get_logger
from maintenance_api import machines_router, maintenance_router, stats_router
from schemas.response import ORJSONResponse, error_response
from services.seed_service import seed_demo_data

logger = get_logger(__name__)

# Location segments that are not field names
_LOCATION_ROOTS = {"body", "query", "path", "header", "cookie"}


# =============================================================================
# LIFESPAN (Startup/Shutdown)
# =============================================================================
@asynccontextmanager
async def lifespan(app: FastAPI):
    """Connect the database on startup, dispose it on shutdown."""
    settings: Settings = app.state.settings
    database: Database = app.state.database

    logger.info(
        "Starting API server",
        app=settings.app_name,
        version=settings.app_version,
        environment=settings.environment,
        database=settings.database.dsn_safe,
    )

    await database.connect()
    await database.create_all()

    if settings.maintenance.seed_demo_data:
        async with database.session() as db:
            await seed_demo_data(db)

    yield

    logger.info("Shutting down API server")
    await database.disconnect()


# =============================================================================
# EXCEPTION HANDLERS
# =============================================================================
def _validation_field(loc: tuple) -> Optional[str]:
    parts = [str(part) for part in loc if isinstance(part, str) and part not in _LOCATION_ROOTS]
    return ".".join(parts) or None


def register_exception_handlers(app: FastAPI) -> None:
    """Map domain and framework errors to ``{"message": ..., "field": ...}`` bodies."""

    @app.exception_handler(MaintenanceTrackerError)
    async def domain_exception_handler(request: Request, exc: MaintenanceTrackerError):
        log = logger.warning if exc.status_code < 500 else logger.error
        log(
            "Request rejected",
            path=request.url.path,
            error_type=type(exc).__name__,
            status_code=exc.status_code,
            **exc.details,
        )
        return ORJSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        """Malformed input is a 400 with the first problem spelled out."""
        errors = exc.errors()
        first = errors[0] if errors else {"msg": "Invalid request", "loc": ()}
        field = _validation_field(tuple(first.get("loc", ())))
        message = f"{field}: {first['msg']}" if field else first["msg"]
        logger.info(
            "Request validation failed",
            path=request.url.path,
            field=field,
            error_count=len(errors),
        )
        return error_response(400, message, field)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        """Pass framework HTTP errors (404 route, 405 method) through with the standard body."""
        return ORJSONResponse(
            status_code=exc.status_code,
            content={"message": str(exc.detail)},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """
        Catches all unhandled exceptions.
        Logs the full trace but returns a clean error to the client.
        """
        error_id = str(uuid.uuid4())
        logger.exception(
            "Unhandled error",
            error_id=error_id,
            path=request.url.path,
            method=request.method,
            error_type=type(exc).__name__,
        )
        return error_response(500, f"An internal error occurred. Reference ID: {error_id}")


# =============================================================================
# FASTAPI APP
# =============================================================================
def create_app(
    settings: Optional[Settings] = None,
    database: Optional[Database] = None,
) -> FastAPI:
    """Build the application.

    Args:
        settings: Configuration; defaults to environment-derived settings.
        database: Pre-built database (tests pass a connected in-memory one).
    """
    settings = settings or get_settings()
    configure_logging(
        environment=settings.environment,
        log_level=settings.log.level,
        json_format=None if settings.log.format is None else settings.log.format == "json",
    )

    app = FastAPI(
        title=settings.api.title,
        description="Machines, maintenance scheduling and dashboard statistics for a facility.",
        version=settings.app_version,
        lifespan=lifespan,
        default_response_class=ORJSONResponse,
        debug=settings.debug,
    )
    app.state.settings = settings
    app.state.database = database or Database(settings.database)

    register_exception_handlers(app)

    app.add_middleware(RequestContextMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.api.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    for router in (machines_router, maintenance_router, stats_router):
        app.include_router(router, prefix=settings.api.prefix)

    @app.get("/health", tags=["System"])
    async def health_check(request: Request):
        """Public health check for load balancers."""
        health = await request.app.state.database.check_health()
        status_code = 200 if health["status"] == "healthy" else 503
        return ORJSONResponse(content=health, status_code=status_code)

    return app


# =============================================================================
# MAIN
# =============================================================================
if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "api_server:create_app",
        factory=True,
        host="0.0.0.0",
        port=8000,
        reload=False,
        log_level="info"
    )
