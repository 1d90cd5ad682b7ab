"""
Base service class.

Provides common functionality for session-bound services including
logging, result containers and transaction decorators.
"""

import functools
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, TypeVar

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from app.utils.exceptions import EngineError, SystemFailure


# Type variable for generic decorator return types
T = TypeVar("T")


@dataclass
class ServiceResult:
    """
    Standard service result container.

    Business failures carry the error code of the EngineError that
    caused them. System failures carry SYSTEM_ERROR and a correlation id
    pointing at the logged context.
    """

    success: bool
    data: Any = None
    error: str | None = None
    error_code: str | None = None
    correlation_id: str | None = None

    @classmethod
    def ok(cls, data: Any = None) -> "ServiceResult":
        """Create a successful result."""
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, error: str, code: str | None = None) -> "ServiceResult":
        """Create a business failure result."""
        return cls(success=False, error=error, error_code=code)

    @classmethod
    def from_exception(cls, exc: Exception) -> "ServiceResult":
        """
        Convert an exception into a failure result.

        EngineError subclasses keep their message and code; anything
        else is reported as a generic system failure.
        """
        if isinstance(exc, SystemFailure):
            return cls(
                success=False,
                error=exc.public_message,
                error_code=exc.error_code,
                correlation_id=exc.correlation_id,
            )
        if isinstance(exc, EngineError):
            return cls.fail(str(exc), exc.error_code)
        return cls.from_exception(SystemFailure(exc))

    @property
    def is_system_error(self) -> bool:
        return self.error_code == SystemFailure.error_code


class BaseService:
    """
    Base service class.

    Provides common functionality for all service classes:
    - Session management
    - Logging with bound service context
    - Transaction helpers
    """

    def __init__(self, session: AsyncSession) -> None:
        """
        Initialize base service.

        Args:
            session: Async database session
        """
        self.session = session
        self.logger = logger.bind(service=self.__class__.__name__)

    async def commit(self) -> None:
        await self.session.commit()

    async def rollback(self) -> None:
        await self.session.rollback()


def transaction(func: Callable[..., T]) -> Callable[..., T]:
    """
    Decorator to wrap method in transaction with automatic commit/rollback.

    Commits on success, rolls back on exception. Business errors
    (EngineError) are logged at warning level, everything else at error
    level with the traceback.

    Usage:
        @transaction
        async def complete_order(self, order_id: int):
            ...

    Args:
        func: Async method to wrap

    Returns:
        Wrapped async method
    """
    @functools.wraps(func)
    async def wrapper(self: BaseService, *args: Any, **kwargs: Any) -> Any:
        try:
            result = await func(self, *args, **kwargs)
            await self.commit()
            return result
        except EngineError as e:
            await self.rollback()
            self.logger.warning(
                f"Transaction rolled back in {func.__name__}: {e}",
                extra={"function": func.__name__, "error_code": e.error_code},
            )
            raise
        except Exception as e:
            await self.rollback()
            self.logger.error(
                f"Transaction failed in {func.__name__}",
                extra={
                    "error": str(e),
                    "function": func.__name__,
                },
                exc_info=True,
            )
            raise

    return wrapper


def log_operation(func: Callable[..., T]) -> Callable[..., T]:
    """
    Decorator to log method entry/exit with timing.

    Usage:
        @log_operation
        async def create_order(self, buyer_id: int, ...):
            ...

    Args:
        func: Async method to wrap

    Returns:
        Wrapped async method
    """
    @functools.wraps(func)
    async def wrapper(self: BaseService, *args: Any, **kwargs: Any) -> Any:
        start_time = time.time()

        self.logger.debug(
            f"Starting {func.__name__}",
            extra={
                "function": func.__name__,
                "args": [a for a in args if isinstance(a, int | str)],
                "kwargs_keys": list(kwargs.keys()),
            },
        )

        try:
            result = await func(self, *args, **kwargs)
        except Exception as e:
            self.logger.error(
                f"Failed {func.__name__}",
                extra={
                    "function": func.__name__,
                    "duration_seconds": round(time.time() - start_time, 3),
                    "error": str(e),
                    "success": False,
                },
            )
            raise

        self.logger.info(
            f"Completed {func.__name__}",
            extra={
                "function": func.__name__,
                "duration_seconds": round(time.time() - start_time, 3),
                "success": getattr(result, "success", True),
            },
        )
        return result

    return wrapper
