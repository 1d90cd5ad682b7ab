"""
Product repository.

Data access layer for Product and ProductSpec models.
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.models.product import Product, ProductSpec
from app.repositories.base import BaseRepository


class ProductRepository(BaseRepository[Product]):
    """Product repository with spec loading."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize product repository."""
        super().__init__(Product, session)

    async def get_by_id(self, id: int) -> Product | None:
        """
        Get product with its specs eagerly loaded.

        Args:
            id: Product ID

        Returns:
            Product or None
        """
        stmt = (
            select(Product)
            .where(Product.id == id)
            .options(selectinload(Product.specs))
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_spec(self, spec_id: int) -> ProductSpec | None:
        """
        Get a single product spec.

        Args:
            spec_id: Spec ID

        Returns:
            ProductSpec or None
        """
        return await self.session.get(ProductSpec, spec_id)
