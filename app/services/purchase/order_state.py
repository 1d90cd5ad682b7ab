"""
Purchase order state machine.

    PENDING -> CONFIRMED -> PROCESSING -> COMPLETED -> REFUNDED
    PENDING | CONFIRMED -> CANCELLED
"""

from app.models.enums import OrderStatus
from app.utils.exceptions import InvalidOrderTransitionError


ORDER_TRANSITIONS: dict[OrderStatus, frozenset[OrderStatus]] = {
    OrderStatus.PENDING: frozenset(
        {OrderStatus.CONFIRMED, OrderStatus.CANCELLED}
    ),
    OrderStatus.CONFIRMED: frozenset(
        {OrderStatus.PROCESSING, OrderStatus.CANCELLED}
    ),
    OrderStatus.PROCESSING: frozenset({OrderStatus.COMPLETED}),
    OrderStatus.COMPLETED: frozenset({OrderStatus.REFUNDED}),
    OrderStatus.CANCELLED: frozenset(),
    OrderStatus.REFUNDED: frozenset(),
}


def can_transition(current: OrderStatus | str, target: OrderStatus | str) -> bool:
    """Check if an order may move from current to target status."""
    return OrderStatus(target) in ORDER_TRANSITIONS[OrderStatus(current)]


def ensure_transition(
    order_id: int, current: OrderStatus | str, target: OrderStatus | str
) -> None:
    """
    Validate an order status change.

    Raises:
        InvalidOrderTransitionError: If the change is not allowed
    """
    if not can_transition(current, target):
        raise InvalidOrderTransitionError(
            order_id, OrderStatus(current).value, OrderStatus(target).value
        )
