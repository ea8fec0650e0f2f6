"""
Base repository operations.

This module contains base CRUD operations shared by the model repositories.
Repositories never commit: the caller owns the transaction, so writes made
inside a batch chunk commit or roll back together with the chunk.
"""

from typing import Any, Generic, Iterable, List, Optional, Type, TypeVar

from sqlalchemy import delete, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from weather_batch.database import Base

ModelType = TypeVar("ModelType", bound=Base)


class CRUDBase(Generic[ModelType]):
    """
    Base CRUD operations class.

    Provides generic operations that can be used by specific model repositories.
    """

    def __init__(self, model: Type[ModelType]):
        """
        Initialize CRUD operations for a specific model.

        Args:
            model: The SQLAlchemy model class
        """
        self.model = model

    async def get(self, db: AsyncSession, id: Any) -> Optional[ModelType]:
        """
        Get a single record by ID.

        Args:
            db: Database session
            id: Record ID

        Returns:
            Model instance or None if not found
        """
        result = await db.execute(select(self.model).where(self.model.id == id))
        return result.scalars().first()

    async def get_multi(
        self,
        db: AsyncSession,
        *,
        skip: int = 0,
        limit: int = 100
    ) -> List[ModelType]:
        """
        Get multiple records with pagination, newest id first.

        Args:
            db: Database session
            skip: Number of records to skip
            limit: Maximum number of records to return

        Returns:
            List of model instances
        """
        result = await db.execute(
            select(self.model).order_by(self.model.id.desc()).offset(skip).limit(limit)
        )
        return result.scalars().all()

    async def count(self, db: AsyncSession) -> int:
        """Count all records of the model."""
        result = await db.execute(select(func.count()).select_from(self.model))
        return result.scalar_one()

    async def save_all(self, db: AsyncSession, objs: Iterable[ModelType]) -> List[ModelType]:
        """
        Add records to the session and flush them.

        New rows receive their ids; pending changes on attached rows are
        written. Nothing is committed.

        Args:
            db: Database session
            objs: Model instances to persist

        Returns:
            The persisted instances
        """
        objs = list(objs)
        db.add_all(objs)
        await db.flush()
        return objs

    async def delete_all(self, db: AsyncSession) -> int:
        """
        Delete every record of the model.

        Returns:
            Number of deleted rows
        """
        result = await db.execute(delete(self.model))
        await db.flush()
        return result.rowcount
