"""
Base Repository for the Admissions CRM

Generic async repository implementing tenant-scoped CRUD operations.
Every query is filtered on the tenant the repository was built for, so
a row belonging to another tenant behaves exactly like a missing row.
"""

from abc import ABC, abstractmethod
from typing import Any, TypeVar, Generic, List, Optional, Type
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import SQLModel


# Type variables for generic repository
ModelType = TypeVar("ModelType", bound=SQLModel)
CreateSchemaType = TypeVar("CreateSchemaType", bound=SQLModel)
UpdateSchemaType = TypeVar("UpdateSchemaType", bound=SQLModel)


class IReadRepository(ABC, Generic[ModelType]):
    """Interface for read operations."""

    @abstractmethod
    async def get_by_id(self, id: UUID) -> Optional[ModelType]:
        """Get a single record by ID."""
        pass

    @abstractmethod
    async def get_all(
        self,
        skip: int = 0,
        limit: int = 100
    ) -> List[ModelType]:
        """Get all records with pagination."""
        pass

    @abstractmethod
    async def exists(self, id: UUID) -> bool:
        """Check if a record exists."""
        pass


class IWriteRepository(ABC, Generic[ModelType, CreateSchemaType, UpdateSchemaType]):
    """Interface for write operations."""

    @abstractmethod
    async def create(self, data: CreateSchemaType, **extra: Any) -> ModelType:
        """Create a new record."""
        pass

    @abstractmethod
    async def update(
        self,
        id: UUID,
        data: UpdateSchemaType
    ) -> Optional[ModelType]:
        """Update an existing record."""
        pass

    @abstractmethod
    async def delete(self, id: UUID) -> bool:
        """Delete a record by ID."""
        pass


class BaseRepository(
    IReadRepository[ModelType],
    IWriteRepository[ModelType, CreateSchemaType, UpdateSchemaType],
    Generic[ModelType, CreateSchemaType, UpdateSchemaType]
):
    """
    Generic async repository with tenant-scoped CRUD operations.

    Args:
        model: The SQLModel table class (must have a tenant_id column)
        session: Async database session
        tenant_id: Tenant every read and write is scoped to
    """

    def __init__(self, model: Type[ModelType], session: AsyncSession, tenant_id: UUID):
        self._model = model
        self._session = session
        self._tenant_id = tenant_id

    @property
    def session(self) -> AsyncSession:
        """Get the current session."""
        return self._session

    @property
    def tenant_id(self) -> UUID:
        return self._tenant_id

    def _select(self):
        """SELECT over this model restricted to the repository's tenant."""
        return select(self._model).where(self._model.tenant_id == self._tenant_id)

    async def _scalars(self, stmt) -> List[ModelType]:
        result = await self._session.execute(stmt)
        return list(result.scalars().all())

    async def _scalar_one_or_none(self, stmt) -> Optional[ModelType]:
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by_id(self, id: UUID) -> Optional[ModelType]:
        """
        Get a single record by its primary key.

        Returns:
            Model instance or None if not found in this tenant
        """
        return await self._scalar_one_or_none(
            self._select().where(self._model.id == id)
        )

    async def get_many(self, ids: List[UUID]) -> List[ModelType]:
        """Get all records whose id is in ``ids`` (missing ids are skipped)."""
        if not ids:
            return []
        return await self._scalars(self._select().where(self._model.id.in_(ids)))

    async def get_all(
        self,
        skip: int = 0,
        limit: int = 100
    ) -> List[ModelType]:
        """
        Get all records with pagination.

        Args:
            skip: Number of records to skip
            limit: Maximum records to return
        """
        stmt = self._select().offset(skip).limit(limit)
        return await self._scalars(stmt)

    async def exists(self, id: UUID) -> bool:
        """Check if a record exists."""
        result = await self.get_by_id(id)
        return result is not None

    async def create(self, data: CreateSchemaType, **extra: Any) -> ModelType:
        """
        Create a new record owned by the repository's tenant.

        Args:
            data: Create schema with field values
            extra: Additional column values not on the create schema

        Returns:
            Created model instance
        """
        values = data.model_dump()
        values.update(extra)
        values["tenant_id"] = self._tenant_id
        db_obj = self._model.model_validate(values)
        return await self.save(db_obj)

    async def save(self, db_obj: ModelType) -> ModelType:
        """Flush pending changes on ``db_obj`` and reload it."""
        self._session.add(db_obj)
        await self._session.flush()
        await self._session.refresh(db_obj)
        return db_obj

    async def update(
        self,
        id: UUID,
        data: UpdateSchemaType
    ) -> Optional[ModelType]:
        """
        Update an existing record.

        Returns:
            Updated model instance or None if not found
        """
        db_obj = await self.get_by_id(id)
        if not db_obj:
            return None

        # Get update data, excluding unset fields
        update_data = data.model_dump(exclude_unset=True)

        for field, value in update_data.items():
            setattr(db_obj, field, value)

        return await self.save(db_obj)

    async def delete(self, id: UUID) -> bool:
        """
        Delete a record by ID.

        Returns:
            True if deleted, False if not found
        """
        db_obj = await self.get_by_id(id)
        if not db_obj:
            return False

        await self._session.delete(db_obj)
        await self._session.flush()
        return True

    async def count(self) -> int:
        """Get total count of records for this tenant."""
        stmt = (
            select(func.count())
            .select_from(self._model)
            .where(self._model.tenant_id == self._tenant_id)
        )
        result = await self._session.execute(stmt)
        return result.scalar_one()
