"""
Order completion task.

Completes a purchase order in the background; commission is distributed
in the same transaction. Redelivered messages are harmless because a
second completion fails the state transition check.
"""

import dramatiq
from loguru import logger

from app.services.base_service import ServiceResult
from app.services.purchase_order_service import PurchaseOrderService
from app.utils.exceptions import SystemFailure
from jobs.async_runner import create_local_session, run_async


@dramatiq.actor(max_retries=3, time_limit=60_000)  # 1 min timeout
def complete_purchase_order(order_id: int) -> None:
    """
    Complete a purchase order.

    System failures are raised so the Retries middleware backs off and
    tries again; business failures are logged and dropped.

    Args:
        order_id: Purchase order ID
    """
    logger.info(f"Completing purchase order {order_id}")
    result = run_async(_complete_purchase_order_async(order_id))

    if result.success:
        logger.info(f"Purchase order {order_id} completed")
        return

    if result.is_system_error:
        raise SystemFailure(
            RuntimeError(result.error), correlation_id=result.correlation_id
        )

    logger.warning(
        f"Purchase order {order_id} not completed: {result.error}",
        extra={"order_id": order_id, "error_code": result.error_code},
    )


async def _complete_purchase_order_async(order_id: int) -> ServiceResult:
    """Async implementation of order completion."""
    async with create_local_session() as session:
        service = PurchaseOrderService(session)
        return await service.complete_order(order_id)
