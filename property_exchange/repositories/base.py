"""
Base repository class with common CRUD operations using async SQLAlchemy.
Provides generic database operations that can be extended by specific repositories.

Write methods take a ``commit`` flag: services that compose several writes
into one atomic unit pass ``commit=False`` and commit once at the end.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, delete, func
from sqlalchemy.sql import ColumnElement
from property_exchange.database import Base
from typing import TypeVar, Generic, Optional, List, Dict, Any, Type
import uuid
import logging

logger = logging.getLogger(__name__)

ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """
    Base repository class providing common CRUD operations.
    Uses async SQLAlchemy for all database operations with proper error handling.
    """

    def __init__(self, model: Type[ModelType], db: AsyncSession):
        """
        Initialize repository with model class and database session.

        Args:
            model: SQLAlchemy model class
            db: Async database session
        """
        self.model = model
        self.db = db

    async def create(self, obj_in: Dict[str, Any], commit: bool = True) -> ModelType:
        """
        Create a new record in the database.

        Args:
            obj_in: Dictionary of field values for the new record
            commit: Commit immediately; otherwise only flush

        Returns:
            Created model instance

        Raises:
            Exception: If database operation fails
        """
        try:
            db_obj = self.model(**obj_in)
            self.db.add(db_obj)
            if commit:
                await self.db.commit()
            else:
                await self.db.flush()
            logger.debug(f"Created {self.model.__name__} with id: {db_obj.id}")
            return db_obj
        except Exception as e:
            if commit:
                await self.db.rollback()
            logger.error(f"Failed to create {self.model.__name__}: {e}")
            raise

    async def get_by_id(
        self,
        id: uuid.UUID,
        for_update: bool = False,
        fresh: bool = False
    ) -> Optional[ModelType]:
        """
        Get a record by its ID.

        Args:
            id: UUID of the record to retrieve
            for_update: Take a row lock (SELECT ... FOR UPDATE) where supported
            fresh: Overwrite any copy already held in the session identity map

        Returns:
            Model instance if found, None otherwise
        """
        query = select(self.model).where(self.model.id == id)
        if for_update:
            query = query.with_for_update()
        if fresh or for_update:
            query = query.execution_options(populate_existing=True)

        result = await self.db.execute(query)
        obj = result.scalar_one_or_none()

        if obj:
            logger.debug(f"Retrieved {self.model.__name__} with id: {id}")
        else:
            logger.debug(f"{self.model.__name__} with id {id} not found")

        return obj

    async def get_multi(
        self,
        *criteria: ColumnElement,
        filters: Optional[Dict[str, Any]] = None,
        order_by: Optional[str] = None,
        skip: int = 0,
        limit: Optional[int] = None
    ) -> List[ModelType]:
        """
        Get multiple records with optional filtering, pagination, and ordering.

        Args:
            criteria: SQL expressions combined with AND
            filters: Dictionary of equality filters by field name
            order_by: Field name to order by (prefix with '-' for descending)
            skip: Number of records to skip (for pagination)
            limit: Maximum number of records to return

        Returns:
            List of model instances
        """
        query = select(self.model).where(*criteria)

        if filters:
            for field, value in filters.items():
                if not hasattr(self.model, field):
                    raise ValueError(f"Field '{field}' does not exist on {self.model.__name__}")
                if isinstance(value, (list, set, tuple)):
                    query = query.where(getattr(self.model, field).in_(value))
                else:
                    query = query.where(getattr(self.model, field) == value)

        if order_by:
            field_name = order_by.lstrip('-')
            column = getattr(self.model, field_name)
            query = query.order_by(column.desc() if order_by.startswith('-') else column)
        else:
            # Default ordering by created_at descending
            query = query.order_by(self.model.created_at.desc())

        query = query.offset(skip)
        if limit is not None:
            query = query.limit(limit)

        result = await self.db.execute(query)
        objects = result.scalars().all()

        logger.debug(f"Retrieved {len(objects)} {self.model.__name__} records")
        return list(objects)

    async def count(self, *criteria: ColumnElement) -> int:
        """
        Count records matching optional criteria.

        Returns:
            Number of matching records
        """
        query = select(func.count(self.model.id)).where(*criteria)
        result = await self.db.execute(query)
        return result.scalar_one()

    async def exists(self, id: uuid.UUID) -> bool:
        """
        Check if a record exists by its ID.

        Args:
            id: UUID of the record to check

        Returns:
            True if record exists, False otherwise
        """
        return await self.count(self.model.id == id) > 0

    async def delete(self, id: uuid.UUID, commit: bool = True) -> bool:
        """
        Delete a record by its ID.

        Args:
            id: UUID of the record to delete
            commit: Commit immediately

        Returns:
            True if record was deleted, False if not found
        """
        return await self.delete_where(self.model.id == id, commit=commit) > 0

    async def delete_where(self, criterion: ColumnElement, commit: bool = False) -> int:
        """
        Delete every record matching a criterion.

        Args:
            criterion: SQL expression selecting the rows
            commit: Commit immediately; defaults to False for use inside atomic units

        Returns:
            Number of records deleted
        """
        try:
            stmt = delete(self.model).where(criterion).execution_options(synchronize_session=False)
            result = await self.db.execute(stmt)
            if commit:
                await self.db.commit()

            logger.debug(f"Deleted {result.rowcount} {self.model.__name__} records")
            return result.rowcount
        except Exception as e:
            if commit:
                await self.db.rollback()
            logger.error(f"Failed to delete {self.model.__name__} records: {e}")
            raise
