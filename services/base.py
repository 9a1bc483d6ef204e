"""Facility Maintenance Tracker - Base Service Interface.

Implements the Service Repository pattern to decouple business logic
from API routes. Domain services inherit from this base class.

Features:
    - Generic CRUD operations (get, create, update, delete)
    - Automatic logging with context
    - Domain exceptions instead of HTTP errors (the API layer maps them)
    - Explicit commit per write, rollback on failure

Usage:
    class MachineService(BaseService[Machine, MachineCreate, MachinePatch]):
        def __init__(self, db: AsyncSession):
            super().__init__(Machine, db)
"""

from __future__ import annotations

from datetime import date
from typing import Any, Generic, TypeVar

from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from core.exceptions import PersistenceError, ResourceNotFound
from logger import get_logger
from services.lifecycle import TodayProvider

ModelType = TypeVar("ModelType")
CreateSchemaType = TypeVar("CreateSchemaType", bound=BaseModel)
UpdateSchemaType = TypeVar("UpdateSchemaType", bound=BaseModel)

logger = get_logger(__name__)


class BaseService(Generic[ModelType, CreateSchemaType, UpdateSchemaType]):
    """Base class for all business logic services.

    Provides standard CRUD operations and session management.
    API routes should use these services instead of raw DB usage.
    """

    resource_name: str = "Resource"

    def __init__(
        self,
        model: type[ModelType],
        db: AsyncSession,
        today: TodayProvider = date.today,
    ):
        """Initialize service with model class and database session.

        Args:
            model: The SQLAlchemy model class.
            db: The async database session.
            today: Returns the current calendar date; injectable for tests.
        """
        self.model = model
        self.db = db
        self.today = today
        self.logger = logger.bind(service=self.__class__.__name__)

    async def get(self, id: Any) -> ModelType | None:
        """Get a single record by primary key."""
        return await self.db.get(self.model, id)

    async def get_or_raise(self, id: Any) -> ModelType:
        """Get record or raise ResourceNotFound."""
        obj = await self.get(id)
        if obj is None:
            raise ResourceNotFound(self.resource_name, id)
        return obj

    async def get_multi(
        self,
        *,
        skip: int = 0,
        limit: int = 100
    ) -> list[ModelType]:
        """Get multiple records with pagination."""
        result = await self.db.execute(
            select(self.model).order_by(self.model.id).offset(skip).limit(limit)
        )
        return list(result.scalars().all())

    async def create(self, obj_in: CreateSchemaType | dict[str, Any]) -> ModelType:
        """Create a new record."""
        if isinstance(obj_in, dict):
            obj_in_data = obj_in
        else:
            obj_in_data = obj_in.model_dump()

        db_obj = self.model(**obj_in_data)  # type: ignore[call-arg]
        self.db.add(db_obj)
        await self.commit("create")
        await self.db.refresh(db_obj)

        self.logger.info(
            "Created new record",
            id=getattr(db_obj, "id", None),
            model=self.model.__name__,
        )
        return db_obj

    async def update(
        self,
        *,
        db_obj: ModelType,
        obj_in: UpdateSchemaType | dict[str, Any]
    ) -> ModelType:
        """Update an existing record with the fields present in ``obj_in``."""
        if isinstance(obj_in, dict):
            update_data = obj_in
        else:
            update_data = obj_in.model_dump(exclude_unset=True)

        for field, value in update_data.items():
            if hasattr(db_obj, field):
                setattr(db_obj, field, value)

        self.db.add(db_obj)
        await self.commit("update")
        await self.db.refresh(db_obj)

        self.logger.info(
            "Updated record",
            id=getattr(db_obj, "id", None),
            changes=sorted(update_data.keys()),
        )
        return db_obj

    async def delete(self, id: Any) -> ModelType:
        """Delete a record by primary key or raise ResourceNotFound."""
        obj = await self.get_or_raise(id)
        await self.db.delete(obj)
        await self.commit("delete")

        self.logger.info(
            "Deleted record",
            id=id,
            model=self.model.__name__,
        )
        return obj

    async def commit(self, operation: str) -> None:
        """Commit the current transaction; roll back and raise on failure."""
        try:
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            self.logger.warning(
                "Commit failed - integrity error",
                operation=operation,
                error=str(e.orig),
            )
            raise PersistenceError(operation, str(e.orig)) from e
        except SQLAlchemyError as e:
            await self.db.rollback()
            self.logger.error(
                "Transaction rolled back",
                operation=operation,
                error=str(e),
            )
            raise PersistenceError(operation, str(e)) from e
