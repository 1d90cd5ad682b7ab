"""
Purchase engine facade.

Wires the lookup cache, team resolver, path finder, purchase validator
and commission calculator over one set of repositories, and keeps the
operational counters exposed for diagnostics.
"""

import time
from datetime import datetime
from decimal import Decimal
from typing import Any

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from app.config.ranks import Rank, RankBenefitTable
from app.config.settings import settings
from app.repositories.commission_repository import CommissionRepository
from app.repositories.participant_repository import ParticipantRepository
from app.repositories.product_repository import ProductRepository
from app.repositories.purchase_order_repository import PurchaseOrderRepository
from app.services.base_service import ServiceResult
from app.services.cache.lookup_cache import LookupCache
from app.services.commission.commission_calculator import CommissionCalculator
from app.services.purchase.purchase_stock_checks import PRODUCT_KEY
from app.services.purchase.purchase_validator_core import (
    AuthorizationResult,
    PurchaseValidator,
)
from app.services.team.hierarchy_resolver import TeamHierarchyResolver
from app.services.team.path_finder import SupplyChainPathFinder
from app.services.team.snapshots import ParticipantSnapshot, SupplierOption
from app.utils.exceptions import REPOSITORY_ERRORS, SystemFailure


class PurchaseEngine:
    """
    Entry point for purchase authorization and commission distribution.

    authorize, distribute and preview_commission turn storage failures
    into SYSTEM_ERROR results with a correlation id. Other exceptions
    are programming errors and propagate.
    The engine owns its cache; pass one in to share it across sessions.
    """

    def __init__(
        self,
        participant_repo: ParticipantRepository,
        product_repo: ProductRepository,
        commission_repo: CommissionRepository,
        cache: LookupCache | None = None,
        benefits: RankBenefitTable | None = None,
        ancestor_max_depth: int | None = None,
        commission_max_depth: int | None = None,
        order_repo: PurchaseOrderRepository | None = None,
    ) -> None:
        """
        Initialize purchase engine.

        Args:
            participant_repo: Participant data access
            product_repo: Product data access
            commission_repo: Commission record storage
            cache: Lookup cache (new one from settings if omitted)
            benefits: Rank benefit table
            ancestor_max_depth: Team search bound (default from settings)
            commission_max_depth: Commission path bound (default from settings)
            order_repo: Order queries for team performance (optional)
        """
        # LookupCache defines __len__, so an empty shared cache is falsy
        if cache is None:
            cache = LookupCache(
                max_size=settings.lookup_cache_max_size,
                ttl_seconds=settings.lookup_cache_ttl_seconds,
            )
        self.cache = cache
        self.benefits = benefits or RankBenefitTable()
        self.ancestor_max_depth = (
            ancestor_max_depth
            if ancestor_max_depth is not None
            else settings.ancestor_max_depth
        )
        self.commission_max_depth = (
            commission_max_depth
            if commission_max_depth is not None
            else settings.commission_max_depth
        )

        self.resolver = TeamHierarchyResolver(
            participant_repo, self.cache, self.ancestor_max_depth
        )
        self.path_finder = SupplyChainPathFinder(self.resolver)
        self.validator = PurchaseValidator(
            self.resolver,
            self.path_finder,
            product_repo,
            self.cache,
            self.benefits,
            self.ancestor_max_depth,
        )
        self.calculator = CommissionCalculator(
            self.resolver,
            participant_repo,
            commission_repo,
            self.benefits,
            order_repo=order_repo,
        )

        self.logger = logger.bind(service="PurchaseEngine")
        self._total_authorizations = 0
        self._system_errors = 0
        self._total_response_ms = 0.0

    @classmethod
    def from_session(
        cls, session: AsyncSession, cache: LookupCache | None = None, **kwargs: Any
    ) -> "PurchaseEngine":
        """
        Build an engine over SQLAlchemy repositories.

        Args:
            session: Async database session
            cache: Lookup cache to share (optional)
            **kwargs: Forwarded to the constructor

        Returns:
            PurchaseEngine
        """
        return cls(
            ParticipantRepository(session),
            ProductRepository(session),
            CommissionRepository(session),
            cache=cache,
            order_repo=PurchaseOrderRepository(session),
            **kwargs,
        )

    def _system_failure(
        self, operation: str, exc: Exception, context: dict[str, Any]
    ) -> SystemFailure:
        failure = SystemFailure(exc)
        self._system_errors += 1
        self.logger.error(
            f"{operation} failed with system error",
            extra={
                "operation": operation,
                "correlation_id": failure.correlation_id,
                "error": str(exc),
                **context,
            },
            exc_info=True,
        )
        return failure

    async def authorize(
        self,
        buyer_id: int,
        seller_id: int,
        product_id: int,
        quantity: int,
    ) -> AuthorizationResult:
        """
        Decide whether a buyer may purchase from a seller.

        Returns:
            AuthorizationResult (storage failures as SYSTEM_ERROR)
        """
        start = time.perf_counter()
        self._total_authorizations += 1
        try:
            return await self.validator.authorize(
                buyer_id, seller_id, product_id, quantity
            )
        except REPOSITORY_ERRORS as e:
            failure = self._system_failure(
                "authorize",
                e,
                {
                    "buyer_id": buyer_id,
                    "seller_id": seller_id,
                    "product_id": product_id,
                    "quantity": quantity,
                },
            )
            return AuthorizationResult.system_error(failure)
        finally:
            self._total_response_ms += (time.perf_counter() - start) * 1000

    async def distribute(
        self,
        order_id: int,
        seller_id: int,
        seller_rank: Rank | str,
        total_amount: Decimal,
        max_depth: int | None = None,
    ) -> ServiceResult:
        """
        Create commission records for a completed order.

        Runs in the caller's transaction; nothing is committed here.

        Returns:
            ServiceResult with the created records as data
        """
        if max_depth is None:
            max_depth = self.commission_max_depth
        try:
            records = await self.calculator.distribute(
                order_id,
                seller_id,
                seller_rank,
                total_amount,
                max_depth,
            )
        except REPOSITORY_ERRORS as e:
            failure = self._system_failure(
                "distribute",
                e,
                {
                    "order_id": order_id,
                    "seller_id": seller_id,
                    "total_amount": str(total_amount),
                },
            )
            return ServiceResult.from_exception(failure)
        return ServiceResult.ok(records)

    async def preview_commission(
        self,
        seller_id: int,
        seller_rank: Rank | str,
        total_amount: Decimal,
        max_depth: int | None = None,
    ) -> ServiceResult:
        """
        Compute a commission quote without persisting.

        Returns:
            ServiceResult with a CommissionPreview as data
        """
        if max_depth is None:
            max_depth = self.commission_max_depth
        try:
            preview = await self.calculator.preview_commission(
                seller_id,
                seller_rank,
                total_amount,
                max_depth,
            )
        except REPOSITORY_ERRORS as e:
            failure = self._system_failure(
                "preview_commission",
                e,
                {"seller_id": seller_id, "total_amount": str(total_amount)},
            )
            return ServiceResult.from_exception(failure)
        return ServiceResult.ok(preview)

    async def find_optimal_supply_path(
        self, participant_id: int, max_depth: int | None = None
    ) -> list[SupplierOption]:
        """Ancestors the participant may restock from, nearest first."""
        return await self.path_finder.find_optimal_supply_path(
            participant_id, max_depth
        )

    async def resolve_ancestors(
        self, participant_id: int, max_depth: int | None = None
    ) -> list[ParticipantSnapshot]:
        """Ancestor chain, nearest first."""
        return await self.resolver.resolve_ancestors(participant_id, max_depth)

    async def get_user_commission_stats(
        self, user_id: int, period: str = "month"
    ) -> dict[str, Any]:
        return await self.calculator.get_user_commission_stats(user_id, period)

    async def get_team_performance(
        self, user_id: int, start: datetime, end: datetime
    ) -> dict[str, Any]:
        """Team size, completed team orders and paid team commission."""
        return await self.calculator.calculate_team_performance(
            user_id, start, end
        )

    def invalidate_participant(self, participant_id: int) -> None:
        """Drop cached data after a rank or team change."""
        self.resolver.invalidate_participant(participant_id)

    def invalidate_product(self, product_id: int) -> None:
        """Drop the cached product after a stock or status change."""
        self.cache.invalidate(PRODUCT_KEY.format(id=product_id))

    def clear_cache(self) -> None:
        self.cache.clear()

    def get_cache_stats(self) -> dict[str, Any]:
        return self.cache.stats()

    def get_performance_stats(self) -> dict[str, Any]:
        """
        Get operational counters.

        Returns:
            Dict with total_authorizations, system_errors,
            average_response_time_ms and cache_hit_rate (percent)
        """
        average = (
            self._total_response_ms / self._total_authorizations
            if self._total_authorizations
            else 0.0
        )
        return {
            "total_authorizations": self._total_authorizations,
            "system_errors": self._system_errors,
            "average_response_time_ms": round(average, 3),
            "cache_hit_rate": self.cache.hit_rate,
        }
