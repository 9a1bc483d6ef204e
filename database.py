"""Facility Maintenance Tracker - Database Connection Manager.

Async database connection management using SQLAlchemy 2.0 (Async).
SQLite runs through aiosqlite, PostgreSQL through asyncpg.

The ``Database`` object owns the engine and the session factory. It is
constructed once by the application factory, stored on ``app.state`` and
handed to request handlers through the ``get_db`` dependency; nothing here
is module-global.

Usage:
    from database import Database

    database = Database(settings.database)
    await database.connect()
    await database.create_all()

    async with database.session() as db:
        result = await db.execute(select(Machine))
"""

from __future__ import annotations

import time
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from sqlalchemy import event, text
from sqlalchemy.exc import DBAPIError, InterfaceError, OperationalError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from config import DatabaseSettings
from db.base import Base
from logger import get_logger

logger = get_logger(__name__)

SLOW_QUERY_THRESHOLD_MS = 500
_QUERY_START_KEY = "_query_start_time"


class Database:
    """Engine + session factory for one database."""

    def __init__(self, settings: DatabaseSettings):
        self.settings = settings
        self._engine: AsyncEngine | None = None
        self._session_maker: async_sessionmaker[AsyncSession] | None = None

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def connect(self) -> None:
        """Create the engine and validate connectivity.

        Raises:
            RuntimeError: If the database cannot be reached.
        """
        if self._engine is not None:
            logger.warning("Database already initialized, skipping")
            return

        try:
            self._engine = self._create_engine()
            self._session_maker = async_sessionmaker(
                bind=self._engine,
                class_=AsyncSession,
                expire_on_commit=False,  # Avoid lazy loading issues with async
                autoflush=False,
            )

            async with self._engine.begin() as conn:
                await conn.execute(text("SELECT 1"))

            logger.info("Database initialized", dsn=self.settings.dsn_safe)

        except Exception as exc:
            logger.error(
                "Database initialization failed",
                error_type=type(exc).__name__,
                error=str(exc),
            )
            if self._engine is not None:
                await self._engine.dispose()
            self._engine = None
            self._session_maker = None
            raise RuntimeError(f"Failed to initialize database: {exc}") from exc

    async def disconnect(self) -> None:
        """Dispose all pooled connections."""
        if self._engine is None:
            logger.warning("Database not initialized, nothing to shutdown")
            return

        try:
            await self._engine.dispose()
            logger.info("Database connections disposed")
        finally:
            self._engine = None
            self._session_maker = None

    async def create_all(self) -> None:
        """Create missing tables for every ORM model."""
        # Register models on Base.metadata
        import db.models  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database schema ensured", tables=sorted(Base.metadata.tables))

    async def drop_all(self) -> None:
        """Drop every ORM table."""
        import db.models  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)
        logger.warning("Database schema dropped")

    @property
    def engine(self) -> AsyncEngine:
        if self._engine is None:
            raise RuntimeError("Database not initialized. Call connect() first.")
        return self._engine

    # =========================================================================
    # Sessions
    # =========================================================================

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """Provide a session; commit on success, roll back on error.

        Example:
            async with database.session() as db:
                await MachineService(db).list_machines()
        """
        if self._session_maker is None:
            raise RuntimeError("Database not initialized. Call connect() first.")

        session = self._session_maker()
        try:
            yield session
            await session.commit()
        except (OperationalError, InterfaceError) as exc:
            await session.rollback()
            logger.error(
                "Database connection error",
                error_type=type(exc).__name__,
                error=str(exc),
            )
            raise
        except DBAPIError as exc:
            await session.rollback()
            logger.error(
                "Database operation failed",
                error_type=type(exc).__name__,
                error=str(exc),
            )
            raise
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()

    # =========================================================================
    # Health Check
    # =========================================================================

    async def check_health(self) -> dict[str, Any]:
        """Check database connectivity for the health endpoint."""
        if self._engine is None:
            return {"status": "unhealthy", "error": "Database not initialized"}

        try:
            async with self._engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            return {"status": "healthy", "backend": self.settings.driver}
        except Exception as exc:
            logger.error(
                "Database health check failed",
                error_type=type(exc).__name__,
                error=str(exc),
            )
            return {"status": "unhealthy", "error": str(exc)}

    # =========================================================================
    # Engine Factory
    # =========================================================================

    def _create_engine(self) -> AsyncEngine:
        settings = self.settings
        logger.info("Creating database engine", dsn=settings.dsn_safe, driver=settings.driver)

        if settings.is_sqlite:
            kwargs: dict[str, Any] = {"connect_args": {"check_same_thread": False}}
            if settings.sqlite_path == ":memory:":
                # One shared connection, otherwise every checkout sees an empty database
                kwargs["poolclass"] = StaticPool
            engine = create_async_engine(settings.async_dsn, echo=settings.echo, **kwargs)
            _enable_sqlite_foreign_keys(engine)
        else:
            engine = create_async_engine(
                settings.async_dsn,
                pool_size=settings.pool_size,
                max_overflow=settings.max_overflow,
                pool_timeout=30,
                pool_recycle=1800,
                pool_pre_ping=True,
                echo=settings.echo,
                hide_parameters=True,
            )

        _register_slow_query_logging(engine)
        return engine


def _enable_sqlite_foreign_keys(engine: AsyncEngine) -> None:
    """SQLite ignores ON DELETE CASCADE unless foreign keys are switched on per connection."""

    @event.listens_for(engine.sync_engine, "connect")
    def on_connect(dbapi_connection: Any, connection_record: Any) -> None:
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def _register_slow_query_logging(engine: AsyncEngine) -> None:
    @event.listens_for(engine.sync_engine, "before_cursor_execute")
    def before_cursor_execute(
        conn: Any,
        cursor: Any,
        statement: str,
        parameters: Any,
        context: Any,
        executemany: bool,
    ) -> None:
        conn.info[_QUERY_START_KEY] = time.perf_counter()

    @event.listens_for(engine.sync_engine, "after_cursor_execute")
    def after_cursor_execute(
        conn: Any,
        cursor: Any,
        statement: str,
        parameters: Any,
        context: Any,
        executemany: bool,
    ) -> None:
        start_time = conn.info.pop(_QUERY_START_KEY, None)
        if start_time is None:
            return

        elapsed_ms = (time.perf_counter() - start_time) * 1000
        if elapsed_ms > SLOW_QUERY_THRESHOLD_MS:
            truncated_statement = statement[:500] + "..." if len(statement) > 500 else statement
            logger.warning(
                "slow_query",
                query=truncated_statement,
                latency_ms=round(elapsed_ms, 2),
                threshold_ms=SLOW_QUERY_THRESHOLD_MS,
            )
