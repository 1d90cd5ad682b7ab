"""
Services.

Business logic layer.
"""

# Base Service Infrastructure
from app.services.base_service import (
    BaseService,
    ServiceResult,
    log_operation,
    transaction,
)

# Engine and order lifecycle
from app.services.purchase_engine import PurchaseEngine
from app.services.purchase_order_service import (
    PurchaseOrderService,
    generate_order_no,
)


__all__ = [
    "BaseService",
    "PurchaseEngine",
    "PurchaseOrderService",
    "ServiceResult",
    "generate_order_no",
    "log_operation",
    "transaction",
]
