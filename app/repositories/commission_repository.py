"""
Commission repository.

Data access layer for CommissionRecord model.
"""

from collections.abc import Iterable
from datetime import datetime
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.commission_record import CommissionRecord
from app.models.enums import CommissionStatus
from app.repositories.base import BaseRepository


class CommissionRepository(BaseRepository[CommissionRecord]):
    """Commission record repository."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize commission repository."""
        super().__init__(CommissionRecord, session)

    async def create_many(
        self, records: list[dict[str, Any]]
    ) -> list[CommissionRecord]:
        """
        Insert several commission records in one statement.

        Args:
            records: Record data dicts

        Returns:
            Created records
        """
        return await self.bulk_create(records)

    async def find_by_order(self, order_id: int) -> list[CommissionRecord]:
        """
        Get commission records produced by an order, by level.

        Args:
            order_id: Purchase order ID

        Returns:
            Records ordered by level
        """
        stmt = (
            select(CommissionRecord)
            .where(CommissionRecord.order_id == order_id)
            .order_by(CommissionRecord.level)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def find_by_user_since(
        self, user_id: int, since: datetime
    ) -> list[CommissionRecord]:
        """
        Get a recipient's commission records created at or after since.

        Args:
            user_id: Recipient ID
            since: Inclusive lower bound on created_at

        Returns:
            Matching records
        """
        stmt = select(CommissionRecord).where(
            CommissionRecord.user_id == user_id,
            CommissionRecord.created_at >= since,
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def find_paid_by_users(
        self, user_ids: Iterable[int], start: datetime, end: datetime
    ) -> list[CommissionRecord]:
        """
        Get PAID commission records of any of user_ids in [start, end].

        Args:
            user_ids: Recipient IDs
            start: Inclusive lower bound on created_at
            end: Inclusive upper bound on created_at

        Returns:
            Matching records
        """
        id_list = list(dict.fromkeys(user_ids))
        if not id_list:
            return []

        stmt = select(CommissionRecord).where(
            CommissionRecord.user_id.in_(id_list),
            CommissionRecord.status == CommissionStatus.PAID.value,
            CommissionRecord.created_at >= start,
            CommissionRecord.created_at <= end,
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
