"""
Base repository.

Generic async data access shared by all repositories.
"""

from collections.abc import Iterable
from typing import Any, Generic, TypeVar

from sqlalchemy import func, insert, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.base import Base

# Generic type for model
ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """
    Base repository with generic operations.

    Type Parameters:
        ModelType: SQLAlchemy model class

    Example:
        class ParticipantRepository(BaseRepository[Participant]):
            def __init__(self, session: AsyncSession):
                super().__init__(Participant, session)
    """

    def __init__(
        self, model: type[ModelType], session: AsyncSession
    ) -> None:
        """
        Initialize repository.

        Args:
            model: SQLAlchemy model class
            session: Async database session
        """
        self.model = model
        self.session = session

    async def get_by_id(self, id: int) -> ModelType | None:
        """
        Get entity by ID.

        Args:
            id: Entity ID

        Returns:
            Entity or None if not found
        """
        return await self.session.get(self.model, id)

    async def get_for_update(self, id: int) -> ModelType | None:
        """
        Get entity by ID with a row lock (SELECT ... FOR UPDATE).

        Must be called inside a transaction; the lock is held until
        commit or rollback.

        Args:
            id: Entity ID

        Returns:
            Locked entity or None if not found
        """
        stmt = select(self.model).where(self.model.id == id).with_for_update()
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_many(self, ids: Iterable[int]) -> list[ModelType]:
        """
        Get entities by IDs in one query.

        Result order is not guaranteed; missing IDs are skipped.

        Args:
            ids: Entity IDs

        Returns:
            Found entities
        """
        id_list = list(dict.fromkeys(ids))
        if not id_list:
            return []

        stmt = select(self.model).where(self.model.id.in_(id_list))
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def create(self, **data: Any) -> ModelType:
        """
        Create new entity.

        Args:
            **data: Entity data

        Returns:
            Created entity
        """
        entity = self.model(**data)
        self.session.add(entity)
        await self.session.flush()
        await self.session.refresh(entity)
        return entity

    async def bulk_create(
        self, items: list[dict[str, Any]]
    ) -> list[ModelType]:
        """
        Create multiple entities using RETURNING to avoid N+1 refresh.

        Args:
            items: List of entity data dicts

        Returns:
            List of created entities
        """
        if not items:
            return []

        stmt = insert(self.model).values(items).returning(self.model)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def find_paginated(
        self,
        page: int = 1,
        per_page: int = 100,
        order_by: Any = None,
        **filters: Any,
    ) -> tuple[list[ModelType], int]:
        """
        Find entities with pagination.

        Args:
            page: Page number (1-indexed)
            per_page: Items per page
            order_by: Ordering clause (default: by id)
            **filters: Column equality filters

        Returns:
            Tuple of (items, total_count)
        """
        count_stmt = select(func.count(self.model.id)).filter_by(**filters)
        count_result = await self.session.execute(count_stmt)
        total = count_result.scalar() or 0

        offset = (page - 1) * per_page
        stmt = (
            select(self.model)
            .filter_by(**filters)
            .order_by(order_by if order_by is not None else self.model.id)
            .offset(offset)
            .limit(per_page)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all()), total
