"""
Purchase validation core module.

Contains the authorization flow and AuthorizationResult class.
"""

from dataclasses import dataclass, field

from loguru import logger

from app.config.business_constants import DEFAULT_ANCESTOR_MAX_DEPTH
from app.config.ranks import RankBenefitTable
from app.repositories.product_repository import ProductRepository
from app.services.cache.lookup_cache import LookupCache
from app.services.purchase.purchase_stock_checks import (
    PurchaseRestrictions,
    StockChecksMixin,
)
from app.services.purchase.purchase_team_checks import TeamChecksMixin
from app.services.team.hierarchy_resolver import TeamHierarchyResolver
from app.services.team.path_finder import SupplyChainPathFinder
from app.utils.exceptions import SystemFailure


@dataclass
class AuthorizationResult:
    """Result of purchase authorization."""

    approved: bool
    reasons: list[str] = field(default_factory=list)
    resolved_seller_id: int | None = None
    restrictions: PurchaseRestrictions | None = None
    search_path: tuple[int, ...] = ()
    error_code: str | None = None
    correlation_id: str | None = None

    @classmethod
    def approve(
        cls,
        resolved_seller_id: int,
        restrictions: PurchaseRestrictions,
        search_path: tuple[int, ...] = (),
    ) -> "AuthorizationResult":
        """Create an approved result."""
        return cls(
            approved=True,
            resolved_seller_id=resolved_seller_id,
            restrictions=restrictions,
            search_path=search_path,
        )

    @classmethod
    def reject(
        cls, reasons: list[str], code: str = "PURCHASE_REJECTED", **kwargs
    ) -> "AuthorizationResult":
        """Create a rejected result carrying every violated rule."""
        return cls(approved=False, reasons=reasons, error_code=code, **kwargs)

    @classmethod
    def system_error(cls, failure: SystemFailure) -> "AuthorizationResult":
        """Create a retryable failure result with a correlation id."""
        return cls(
            approved=False,
            reasons=[failure.public_message],
            error_code=failure.error_code,
            correlation_id=failure.correlation_id,
        )

    @property
    def is_system_error(self) -> bool:
        return self.error_code == SystemFailure.error_code


class PurchaseValidator(TeamChecksMixin, StockChecksMixin):
    """
    Validator for purchase requests.

    Pure decision over read data: nothing is written. Only missing
    entities short-circuit; every other violated rule is accumulated.
    """

    def __init__(
        self,
        resolver: TeamHierarchyResolver,
        path_finder: SupplyChainPathFinder,
        product_repo: ProductRepository,
        cache: LookupCache,
        benefits: RankBenefitTable | None = None,
        ancestor_max_depth: int = DEFAULT_ANCESTOR_MAX_DEPTH,
    ) -> None:
        """
        Initialize purchase validator.

        Args:
            resolver: Team hierarchy resolver
            path_finder: Skip-level seller search
            product_repo: Product data access
            cache: Lookup cache shared with the resolver
            benefits: Rank benefit table
            ancestor_max_depth: Bound for team and seller searches
        """
        self.resolver = resolver
        self.path_finder = path_finder
        self.product_repo = product_repo
        self.cache = cache
        self.benefits = benefits or RankBenefitTable()
        self.ancestor_max_depth = ancestor_max_depth

    async def authorize(
        self,
        buyer_id: int,
        seller_id: int,
        product_id: int,
        quantity: int,
    ) -> AuthorizationResult:
        """
        Run all checks and return the authorization decision.

        Repository errors propagate to the caller.

        Args:
            buyer_id: Buyer participant ID
            seller_id: Nominal seller participant ID
            product_id: Product ID
            quantity: Requested units

        Returns:
            AuthorizationResult with resolved seller on approval or the
            full list of reasons on rejection
        """
        # 1. Existence. The repositories share one AsyncSession, so the
        # reads are awaited in turn.
        buyer = await self.resolver.get_participant(buyer_id)
        seller = await self.resolver.get_participant(seller_id)
        product = await self.get_product(product_id)

        missing = [
            message
            for entity, message in (
                (buyer, "buyer not found"),
                (seller, "seller not found"),
                (product, "product not found"),
            )
            if entity is None
        ]
        if missing:
            return AuthorizationResult.reject(missing, code="NOT_FOUND")

        reasons = self.check_account_status(buyer, seller)

        # 2. Team relationship
        effective_seller = None
        search_path: tuple[int, ...] = ()
        team_ok, error_msg = await self.check_team_relationship(buyer, seller)
        if not team_ok:
            reasons.append(error_msg)
        else:
            # 3. Rank comparison, only meaningful inside a valid team link
            effective_seller, search_path = await self.resolve_seller(
                buyer, seller
            )
            if effective_seller is None:
                reasons.append(
                    "seller rank too low and no higher ancestor found"
                )

        # 4. Product and stock
        reasons.extend(self.check_product_stock(product, quantity))

        # 5. Restrictions
        restrictions = self.compute_restrictions(buyer, product)
        reasons.extend(self.check_restrictions(buyer, quantity, restrictions))

        if reasons:
            logger.info(
                "Purchase rejected",
                extra={
                    "buyer_id": buyer_id,
                    "seller_id": seller_id,
                    "product_id": product_id,
                    "quantity": quantity,
                    "reasons": reasons,
                },
            )
            return AuthorizationResult.reject(
                reasons, restrictions=restrictions, search_path=search_path
            )

        return AuthorizationResult.approve(
            effective_seller.id, restrictions, search_path
        )
