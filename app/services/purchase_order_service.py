"""
Purchase order service.

Creates orders from approved authorizations and drives them through
their lifecycle. Stock is reserved at creation and returned on
cancellation; commission is distributed when an order completes.
"""

import math
import secrets
import string
import time
from collections.abc import Awaitable, Callable
from datetime import UTC, datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from app.config.business_constants import (
    DEFAULT_ORDERS_PER_PAGE,
    MAX_ORDERS_PER_PAGE,
    MONEY_QUANTUM,
    ORDER_LIST_ROLES,
    ORDER_NO_PREFIX,
    ORDER_NO_RANDOM_LENGTH,
)
from app.models.enums import OrderStatus, PaymentStatus
from app.models.purchase_order import PurchaseOrder
from app.repositories.commission_repository import CommissionRepository
from app.repositories.participant_repository import ParticipantRepository
from app.repositories.product_repository import ProductRepository
from app.repositories.purchase_order_repository import PurchaseOrderRepository
from app.services.base_service import (
    BaseService,
    ServiceResult,
    log_operation,
    transaction,
)
from app.services.cache.lookup_cache import LookupCache
from app.services.purchase.order_state import ensure_transition
from app.services.purchase_engine import PurchaseEngine
from app.utils.exceptions import (
    REPOSITORY_ERRORS,
    EngineError,
    NotFoundError,
    SystemFailure,
)


ORDER_NO_ALPHABET = string.digits + string.ascii_uppercase
MAX_ORDER_NO_ATTEMPTS = 5


def generate_order_no(now_ms: int | None = None) -> str:
    """
    Generate an order number: PO + ms timestamp + random base-36 suffix.

    Args:
        now_ms: Timestamp in milliseconds (default: now)

    Returns:
        Uppercase order number
    """
    timestamp = now_ms if now_ms is not None else int(time.time() * 1000)
    suffix = "".join(
        secrets.choice(ORDER_NO_ALPHABET) for _ in range(ORDER_NO_RANDOM_LENGTH)
    )
    return f"{ORDER_NO_PREFIX}{timestamp}{suffix}".upper()


class PurchaseOrderService(BaseService):
    """
    Purchase order lifecycle.

    Every mutation runs in one transaction under a row lock on the
    order, so each transition (and the commission distribution tied to
    COMPLETED) is applied at most once.
    """

    def __init__(
        self,
        session: AsyncSession,
        engine: PurchaseEngine | None = None,
        cache: LookupCache | None = None,
    ) -> None:
        """
        Initialize purchase order service.

        Args:
            session: Async database session
            engine: Purchase engine (built over session if omitted)
            cache: Lookup cache for a newly built engine
        """
        super().__init__(session)
        if engine is None:
            engine = PurchaseEngine.from_session(session, cache=cache)
        self.engine = engine
        self.order_repo = PurchaseOrderRepository(session)
        self.product_repo = ProductRepository(session)
        self.participant_repo = ParticipantRepository(session)
        self.commission_repo = CommissionRepository(session)

    async def _guard(
        self,
        operation: str,
        action: Callable[[], Awaitable[Any]],
        **context: Any,
    ) -> ServiceResult:
        """Run action, turning engine and storage errors into failure results."""
        try:
            return ServiceResult.ok(await action())
        except EngineError as e:
            return ServiceResult.from_exception(e)
        except REPOSITORY_ERRORS as e:
            failure = SystemFailure(e)
            self.logger.error(
                f"{operation} failed with system error",
                extra={
                    "operation": operation,
                    "correlation_id": failure.correlation_id,
                    "error": str(e),
                    **context,
                },
            )
            return ServiceResult.from_exception(failure)

    async def _generate_unique_order_no(self) -> str:
        for _ in range(MAX_ORDER_NO_ATTEMPTS):
            order_no = generate_order_no()
            if not await self.order_repo.order_no_exists(order_no):
                return order_no
        raise EngineError("Could not generate a unique order number")

    @log_operation
    async def create_order(
        self,
        buyer_id: int,
        seller_id: int,
        product_id: int,
        spec_id: int,
        quantity: int,
    ) -> ServiceResult:
        """
        Authorize and place a purchase order.

        Args:
            buyer_id: Buyer participant ID
            seller_id: Seller the buyer asked for
            product_id: Product ID
            spec_id: Spec (variant) to buy
            quantity: Units

        Returns:
            ServiceResult with the PENDING order; on rejection the
            AuthorizationResult is attached as data
        """
        authorization = await self.engine.authorize(
            buyer_id, seller_id, product_id, quantity
        )
        if not authorization.approved:
            return ServiceResult(
                success=False,
                data=authorization,
                error="; ".join(authorization.reasons),
                error_code=authorization.error_code,
                correlation_id=authorization.correlation_id,
            )

        result = await self._guard(
            "create_order",
            lambda: self._place_order(
                buyer_id,
                authorization.resolved_seller_id,
                product_id,
                spec_id,
                quantity,
            ),
            buyer_id=buyer_id,
            seller_id=seller_id,
            product_id=product_id,
            spec_id=spec_id,
            quantity=quantity,
        )
        if result.success:
            self.engine.invalidate_product(product_id)
        return result

    @transaction
    async def _place_order(
        self,
        buyer_id: int,
        seller_id: int,
        product_id: int,
        spec_id: int,
        quantity: int,
    ) -> PurchaseOrder:
        spec = await self.product_repo.get_spec(spec_id)
        if spec is None or spec.product_id != product_id or not spec.is_active:
            raise NotFoundError("spec", spec_id)

        # Conditional update re-reads stock; raises InsufficientStockError
        await self.order_repo.decrement_stock(spec_id, quantity)

        order_no = await self._generate_unique_order_no()
        unit_price = Decimal(spec.price)
        total_amount = (unit_price * quantity).quantize(
            MONEY_QUANTUM, rounding=ROUND_HALF_UP
        )

        order = await self.order_repo.create(
            order_no=order_no,
            buyer_id=buyer_id,
            seller_id=seller_id,
            product_id=product_id,
            spec_id=spec_id,
            quantity=quantity,
            unit_price=unit_price,
            total_amount=total_amount,
            status=OrderStatus.PENDING.value,
            payment_status=PaymentStatus.UNPAID.value,
        )

        self.logger.info(
            f"Purchase order {order_no} created",
            extra={
                "order_id": order.id,
                "buyer_id": buyer_id,
                "seller_id": seller_id,
                "spec_id": spec_id,
                "quantity": quantity,
                "total_amount": str(total_amount),
            },
        )
        return order

    async def _lock_for_transition(
        self, order_id: int, target: OrderStatus
    ) -> PurchaseOrder:
        order = await self.order_repo.get_for_update(order_id)
        if order is None:
            raise NotFoundError("order", order_id)
        ensure_transition(order_id, order.status, target)
        return order

    @transaction
    async def _confirm(self, order_id: int) -> PurchaseOrder:
        order = await self._lock_for_transition(order_id, OrderStatus.CONFIRMED)
        order.status = OrderStatus.CONFIRMED.value
        order.confirmed_at = datetime.now(UTC)
        return order

    @transaction
    async def _start_processing(self, order_id: int) -> PurchaseOrder:
        order = await self._lock_for_transition(order_id, OrderStatus.PROCESSING)
        order.status = OrderStatus.PROCESSING.value
        return order

    @transaction
    async def _complete(self, order_id: int) -> PurchaseOrder:
        order = await self._lock_for_transition(order_id, OrderStatus.COMPLETED)

        seller = await self.participant_repo.get_by_id(order.seller_id)
        if seller is None:
            raise NotFoundError("seller", order.seller_id)

        order.status = OrderStatus.COMPLETED.value
        order.payment_status = PaymentStatus.PAID.value
        order.completed_at = datetime.now(UTC)

        records = await self.engine.calculator.distribute(
            order.id,
            order.seller_id,
            seller.rank,
            order.total_amount,
            self.engine.commission_max_depth,
        )
        self.logger.info(
            f"Order {order.order_no} completed",
            extra={"order_id": order.id, "commission_records": len(records)},
        )
        return order

    @transaction
    async def _cancel(self, order_id: int) -> PurchaseOrder:
        order = await self._lock_for_transition(order_id, OrderStatus.CANCELLED)
        await self.order_repo.restore_stock(order.spec_id, order.quantity)
        order.status = OrderStatus.CANCELLED.value
        order.cancelled_at = datetime.now(UTC)
        return order

    @transaction
    async def _refund(self, order_id: int) -> PurchaseOrder:
        order = await self._lock_for_transition(order_id, OrderStatus.REFUNDED)
        order.status = OrderStatus.REFUNDED.value
        order.payment_status = PaymentStatus.REFUNDED.value
        return order

    @log_operation
    async def confirm_order(self, order_id: int) -> ServiceResult:
        """PENDING -> CONFIRMED."""
        return await self._guard(
            "confirm_order", lambda: self._confirm(order_id), order_id=order_id
        )

    @log_operation
    async def start_processing(self, order_id: int) -> ServiceResult:
        """CONFIRMED -> PROCESSING."""
        return await self._guard(
            "start_processing",
            lambda: self._start_processing(order_id),
            order_id=order_id,
        )

    @log_operation
    async def complete_order(self, order_id: int) -> ServiceResult:
        """
        PROCESSING -> COMPLETED, marking the order paid.

        Commission records are written in the same transaction, using
        the seller's rank as stored at completion time.
        """
        return await self._guard(
            "complete_order", lambda: self._complete(order_id), order_id=order_id
        )

    @log_operation
    async def cancel_order(self, order_id: int) -> ServiceResult:
        """PENDING or CONFIRMED -> CANCELLED, returning reserved stock."""
        result = await self._guard(
            "cancel_order", lambda: self._cancel(order_id), order_id=order_id
        )
        if result.success:
            self.engine.invalidate_product(result.data.product_id)
        return result

    @log_operation
    async def refund_order(self, order_id: int) -> ServiceResult:
        """COMPLETED -> REFUNDED."""
        return await self._guard(
            "refund_order", lambda: self._refund(order_id), order_id=order_id
        )

    async def get_order_commissions(self, order_id: int) -> list:
        """Commission records produced by an order, by level."""
        return await self.commission_repo.find_by_order(order_id)

    async def get_user_orders(
        self,
        user_id: int,
        role: str = "buyer",
        page: int = 1,
        per_page: int = DEFAULT_ORDERS_PER_PAGE,
        status: OrderStatus | str | None = None,
    ) -> dict[str, Any]:
        """
        List a participant's orders, newest first.

        Args:
            user_id: Participant ID
            role: "buyer" for orders placed, "seller" for orders received
            page: Page number (1-indexed)
            per_page: Items per page, at most MAX_ORDERS_PER_PAGE
            status: Only orders in this status (optional)

        Returns:
            Dict with orders and pagination (page, per_page, total,
            total_pages)

        Raises:
            ValueError: On unknown role or status, or a bad page
        """
        if role not in ORDER_LIST_ROLES:
            raise ValueError(
                f"Unknown role {role!r}, expected one of "
                f"{', '.join(ORDER_LIST_ROLES)}"
            )
        if page < 1:
            raise ValueError(f"page must be >= 1, got {page}")
        if not 1 <= per_page <= MAX_ORDERS_PER_PAGE:
            raise ValueError(
                f"per_page must be between 1 and {MAX_ORDERS_PER_PAGE}, "
                f"got {per_page}"
            )
        status_value = OrderStatus(status).value if status is not None else None

        orders, total = await self.order_repo.find_by_user(
            user_id, role, page, per_page, status_value
        )
        return {
            "orders": orders,
            "pagination": {
                "page": page,
                "per_page": per_page,
                "total": total,
                "total_pages": math.ceil(total / per_page),
            },
        }
