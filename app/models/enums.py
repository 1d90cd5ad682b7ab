"""
Status enumerations.

Values are stored as plain strings in the database.
"""

from enum import Enum


class ParticipantStatus(str, Enum):
    """Participant account status."""

    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"
    SUSPENDED = "SUSPENDED"


class ProductStatus(str, Enum):
    """Product availability status."""

    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"


class OrderStatus(str, Enum):
    """Purchase order lifecycle status."""

    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    PROCESSING = "PROCESSING"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"
    REFUNDED = "REFUNDED"


class PaymentStatus(str, Enum):
    """Purchase order payment status."""

    UNPAID = "UNPAID"
    PAID = "PAID"
    REFUNDED = "REFUNDED"


class CommissionStatus(str, Enum):
    """Commission record payout status."""

    PENDING = "PENDING"
    PAID = "PAID"


class CommissionSourceType(str, Enum):
    """What produced a commission record."""

    PURCHASE = "PURCHASE"
