"""
Commission record model.

One row per upline level paid for a completed purchase order.
"""

from datetime import UTC, datetime
from decimal import Decimal

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
)
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base
from app.models.enums import CommissionSourceType, CommissionStatus
from app.models.types import MoneyType, RateType


class CommissionRecord(Base):
    """
    Commission record entity.

    Created only by the commission calculator. Amount and rate never
    change after creation; status is advanced by the payout process.

    Attributes:
        user_id: Recipient
        order_id: Completed order that produced the commission
        amount: Commission amount, rounded to cents
        rate: Applied rate (base rate * 0.8^(level-1))
        level: 1-based position in the commission path
        source_user_id: Seller of the order
    """

    __tablename__ = "commission_records"
    __table_args__ = (
        CheckConstraint('amount > 0', name='check_commission_amount_positive'),
        CheckConstraint('level >= 1', name='check_commission_level_positive'),
        Index('ix_commission_records_user_created', 'user_id', 'created_at'),
    )

    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )
    user_id: Mapped[int] = mapped_column(
        ForeignKey("participants.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    order_id: Mapped[int] = mapped_column(
        ForeignKey("purchase_orders.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    amount: Mapped[Decimal] = mapped_column(MoneyType, nullable=False)
    rate: Mapped[Decimal] = mapped_column(RateType, nullable=False)
    level: Mapped[int] = mapped_column(Integer, nullable=False)
    source_user_id: Mapped[int] = mapped_column(
        ForeignKey("participants.id", ondelete="RESTRICT"), nullable=False
    )
    source_type: Mapped[str] = mapped_column(
        String(20),
        default=CommissionSourceType.PURCHASE.value,
        nullable=False,
    )
    status: Mapped[str] = mapped_column(
        String(20),
        default=CommissionStatus.PENDING.value,
        nullable=False,
        index=True,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(UTC), nullable=False
    )

    def __repr__(self) -> str:
        return (
            f"<CommissionRecord(id={self.id}, user_id={self.user_id}, "
            f"order_id={self.order_id}, level={self.level}, "
            f"amount={self.amount})>"
        )
