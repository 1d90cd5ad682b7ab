"""
Product and product spec models.

A product is sold through one or more specs (SKU variants); each spec
carries its own price and stock.
"""

from datetime import UTC, datetime
from decimal import Decimal

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Integer,
    String,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import Base
from app.models.enums import ProductStatus
from app.models.types import MoneyType


class Product(Base):
    """
    Product entity.

    Attributes:
        id: Primary key
        name: Display name
        status: Availability status
        total_stock: Aggregate stock across specs
        purchase_limit: Optional per-order quantity cap
        min_rank: Optional minimum buyer rank
        specs: Spec variants
    """

    __tablename__ = "products"
    __table_args__ = (
        CheckConstraint(
            'total_stock >= 0', name='check_product_total_stock_non_negative'
        ),
        CheckConstraint(
            'purchase_limit IS NULL OR purchase_limit > 0',
            name='check_product_purchase_limit_positive',
        ),
    )

    # Primary key
    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    status: Mapped[str] = mapped_column(
        String(20),
        default=ProductStatus.ACTIVE.value,
        nullable=False,
        index=True,
    )
    total_stock: Mapped[int] = mapped_column(
        Integer, default=0, nullable=False
    )

    # Product-specific purchase restrictions
    purchase_limit: Mapped[int | None] = mapped_column(
        Integer, nullable=True
    )
    min_rank: Mapped[str | None] = mapped_column(
        String(20), nullable=True
    )

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(UTC), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
        nullable=False
    )

    # Relationships
    specs: Mapped[list["ProductSpec"]] = relationship(
        "ProductSpec",
        back_populates="product",
        cascade="all, delete-orphan",
    )

    @property
    def is_active(self) -> bool:
        """Check if product is on sale."""
        return self.status == ProductStatus.ACTIVE.value

    def __repr__(self) -> str:
        return (
            f"<Product(id={self.id}, status={self.status}, "
            f"total_stock={self.total_stock})>"
        )


class ProductSpec(Base):
    """Product spec (SKU variant) with its own price and stock."""

    __tablename__ = "product_specs"
    __table_args__ = (
        CheckConstraint('stock >= 0', name='check_spec_stock_non_negative'),
        CheckConstraint('price >= 0', name='check_spec_price_non_negative'),
    )

    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )
    product_id: Mapped[int] = mapped_column(
        ForeignKey("products.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    price: Mapped[Decimal] = mapped_column(
        MoneyType, default=Decimal("0"), nullable=False
    )
    stock: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    is_active: Mapped[bool] = mapped_column(
        Boolean, default=True, nullable=False
    )

    product: Mapped["Product"] = relationship(
        "Product", back_populates="specs"
    )

    def __repr__(self) -> str:
        return (
            f"<ProductSpec(id={self.id}, product_id={self.product_id}, "
            f"stock={self.stock}, price={self.price})>"
        )
