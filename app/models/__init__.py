"""
Database models.

Exports all SQLAlchemy models for easy imports.
"""

from app.models.base import Base

# Status enums
from app.models.enums import (
    CommissionSourceType,
    CommissionStatus,
    OrderStatus,
    ParticipantStatus,
    PaymentStatus,
    ProductStatus,
)

# Core models
from app.models.commission_record import CommissionRecord
from app.models.participant import Participant
from app.models.product import Product, ProductSpec
from app.models.purchase_order import PurchaseOrder

__all__ = [
    # Base
    "Base",
    # Enums
    "CommissionSourceType",
    "CommissionStatus",
    "OrderStatus",
    "ParticipantStatus",
    "PaymentStatus",
    "ProductStatus",
    # Core Models
    "CommissionRecord",
    "Participant",
    "Product",
    "ProductSpec",
    "PurchaseOrder",
]
