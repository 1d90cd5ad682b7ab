"""
Exception handling utilities.

Defines categorized exception types for proper error handling.

Business-rule violations (rank, team, stock, restrictions) are not
exceptions: they are collected as reasons on an authorization result.
"""

import asyncio
import uuid

from sqlalchemy.exc import SQLAlchemyError


class EngineError(Exception):
    """Base class for purchase engine errors."""

    error_code = "ENGINE_ERROR"


class NotFoundError(EngineError):
    """Raised when a buyer, seller, product or order does not exist."""

    error_code = "NOT_FOUND"

    def __init__(self, entity: str, entity_id: int) -> None:
        super().__init__(f"{entity} {entity_id} not found")
        self.entity = entity
        self.entity_id = entity_id


class InsufficientStockError(EngineError):
    """Raised when an atomic stock decrement cannot be satisfied."""

    error_code = "INSUFFICIENT_STOCK"

    def __init__(self, spec_id: int, requested: int) -> None:
        super().__init__(
            f"Insufficient stock for spec {spec_id}: requested {requested}"
        )
        self.spec_id = spec_id
        self.requested = requested


class InvalidOrderTransitionError(EngineError):
    """Raised when an order status change is not allowed."""

    error_code = "INVALID_TRANSITION"

    def __init__(self, order_id: int, current: str, target: str) -> None:
        super().__init__(
            f"Order {order_id} cannot move from {current} to {target}"
        )
        self.order_id = order_id
        self.current = current
        self.target = target


class RankConfigurationError(EngineError):
    """Raised at startup when the rank benefit table is incomplete."""

    error_code = "RANK_CONFIGURATION"


class SystemFailure(EngineError):
    """
    Underlying repository failure surfaced to the caller.

    Carries a correlation id so support can find the logged context.
    Retrying may help, unlike a business rejection.
    """

    error_code = "SYSTEM_ERROR"
    public_message = "Internal error, please retry later"

    def __init__(self, cause: BaseException, correlation_id: str | None = None) -> None:
        self.correlation_id = correlation_id or new_correlation_id()
        super().__init__(f"{self.public_message} (ref {self.correlation_id})")
        self.cause = cause


# Errors raised by persistence and cache backends
REPOSITORY_ERRORS = (
    SQLAlchemyError,
    OSError,
    asyncio.TimeoutError,
)


def new_correlation_id() -> str:
    """Generate a correlation id for support lookups."""
    return uuid.uuid4().hex


def is_repository_error(exc: BaseException) -> bool:
    """
    Check if exception comes from the storage layer.

    Args:
        exc: Exception to check

    Returns:
        True if a retry may succeed
    """
    return isinstance(exc, REPOSITORY_ERRORS)
