"""
Purchase order repository.

Data access layer for PurchaseOrder model and stock movements.
"""

from collections.abc import Iterable
from datetime import datetime
from typing import Any

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.enums import OrderStatus
from app.models.product import Product, ProductSpec
from app.models.purchase_order import PurchaseOrder
from app.repositories.base import BaseRepository
from app.utils.exceptions import InsufficientStockError


class PurchaseOrderRepository(BaseRepository[PurchaseOrder]):
    """Purchase order repository with atomic stock operations."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize purchase order repository."""
        super().__init__(PurchaseOrder, session)

    async def order_no_exists(self, order_no: str) -> bool:
        """
        Check if an order number is already taken.

        Args:
            order_no: Order number

        Returns:
            True if an order with this number exists
        """
        stmt = select(PurchaseOrder.id).where(PurchaseOrder.order_no == order_no)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none() is not None

    async def find_by_user(
        self,
        user_id: int,
        role: str = "buyer",
        page: int = 1,
        per_page: int = 20,
        status: str | None = None,
    ) -> tuple[list[PurchaseOrder], int]:
        """
        Get a page of orders where the user is the buyer or the seller.

        Args:
            user_id: Participant ID
            role: "buyer" or "seller"
            page: Page number (1-indexed)
            per_page: Items per page
            status: Only orders in this status (optional)

        Returns:
            Tuple of (orders newest first, total_count)
        """
        column = "seller_id" if role == "seller" else "buyer_id"
        filters: dict[str, Any] = {column: user_id}
        if status is not None:
            filters["status"] = status

        return await self.find_paginated(
            page,
            per_page,
            order_by=PurchaseOrder.created_at.desc(),
            **filters,
        )

    async def find_completed_by_buyers(
        self, buyer_ids: Iterable[int], start: datetime, end: datetime
    ) -> list[PurchaseOrder]:
        """
        Get completed orders placed by any of buyer_ids in [start, end].

        Args:
            buyer_ids: Buyer IDs
            start: Inclusive lower bound on created_at
            end: Inclusive upper bound on created_at

        Returns:
            Matching orders
        """
        id_list = list(dict.fromkeys(buyer_ids))
        if not id_list:
            return []

        stmt = select(PurchaseOrder).where(
            PurchaseOrder.buyer_id.in_(id_list),
            PurchaseOrder.status == OrderStatus.COMPLETED.value,
            PurchaseOrder.created_at >= start,
            PurchaseOrder.created_at <= end,
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def decrement_stock(self, spec_id: int, quantity: int) -> int:
        """
        Atomically take stock from a spec.

        A single conditional UPDATE re-reads and decrements the stock, so
        concurrent purchases against the same spec can never drive it
        negative. The product's aggregate stock is reduced in the same
        transaction.

        Args:
            spec_id: Product spec ID
            quantity: Units to take

        Returns:
            Remaining spec stock

        Raises:
            InsufficientStockError: If the spec is inactive, missing or
                has fewer than quantity units
        """
        stmt = (
            update(ProductSpec)
            .where(
                ProductSpec.id == spec_id,
                ProductSpec.is_active.is_(True),
                ProductSpec.stock >= quantity,
            )
            .values(stock=ProductSpec.stock - quantity)
            .returning(ProductSpec.product_id, ProductSpec.stock)
        )
        result = await self.session.execute(stmt)
        row = result.one_or_none()
        if row is None:
            raise InsufficientStockError(spec_id, quantity)

        await self.session.execute(
            update(Product)
            .where(Product.id == row.product_id)
            .values(total_stock=func.greatest(Product.total_stock - quantity, 0))
        )
        return row.stock

    async def restore_stock(self, spec_id: int, quantity: int) -> None:
        """
        Return stock taken by a cancelled order.

        Args:
            spec_id: Product spec ID
            quantity: Units to return
        """
        stmt = (
            update(ProductSpec)
            .where(ProductSpec.id == spec_id)
            .values(stock=ProductSpec.stock + quantity)
            .returning(ProductSpec.product_id)
        )
        result = await self.session.execute(stmt)
        product_id = result.scalar_one_or_none()
        if product_id is None:
            return

        await self.session.execute(
            update(Product)
            .where(Product.id == product_id)
            .values(total_stock=Product.total_stock + quantity)
        )
