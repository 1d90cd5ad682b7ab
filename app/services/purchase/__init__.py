"""
Purchase validation package.

Split into check mixins combined by PurchaseValidator:
- purchase_team_checks: account status, team relationship, seller rank
- purchase_stock_checks: product status, stock, restrictions
- purchase_validator_core: authorization flow and result type
- order_state: order status transitions
"""

from app.services.purchase.order_state import (
    ORDER_TRANSITIONS,
    can_transition,
    ensure_transition,
)
from app.services.purchase.purchase_stock_checks import (
    ProductSnapshot,
    PurchaseRestrictions,
)
from app.services.purchase.purchase_validator_core import (
    AuthorizationResult,
    PurchaseValidator,
)


__all__ = [
    "ORDER_TRANSITIONS",
    "AuthorizationResult",
    "ProductSnapshot",
    "PurchaseRestrictions",
    "PurchaseValidator",
    "can_transition",
    "ensure_transition",
]
