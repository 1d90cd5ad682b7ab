"""
Purchase stock and restriction checks module.

Contains product-side validation checks:
- Product status and active specs
- Aggregate stock versus requested quantity
- Rank-tiered and product-specific purchase restrictions
"""

from dataclasses import dataclass
from typing import Any

from app.config.ranks import Rank, RankBenefitTable, parse_rank, rank_index
from app.models.enums import ProductStatus
from app.repositories.product_repository import ProductRepository
from app.services.cache.lookup_cache import LookupCache
from app.services.team.snapshots import ParticipantSnapshot


PRODUCT_KEY = "product:{id}"


@dataclass(frozen=True, slots=True)
class SpecSnapshot:
    """Read-only copy of an active product spec."""

    id: int
    stock: int
    price: Any


@dataclass(frozen=True, slots=True)
class ProductSnapshot:
    """Read-only copy of the product fields the validator needs."""

    id: int
    status: str
    total_stock: int
    active_specs: tuple[SpecSnapshot, ...]
    purchase_limit: int | None = None
    min_rank: Rank | None = None

    @property
    def is_active(self) -> bool:
        return self.status == ProductStatus.ACTIVE.value

    @property
    def available_stock(self) -> int:
        """Aggregate stock; falls back to the sum of active specs."""
        if self.total_stock > 0:
            return self.total_stock
        return sum(spec.stock for spec in self.active_specs)

    @classmethod
    def from_model(cls, product: Any) -> "ProductSnapshot":
        status = product.status
        if isinstance(status, ProductStatus):
            status = status.value

        return cls(
            id=product.id,
            status=status,
            total_stock=product.total_stock or 0,
            active_specs=tuple(
                SpecSnapshot(id=spec.id, stock=spec.stock, price=spec.price)
                for spec in (product.specs or [])
                if spec.is_active
            ),
            purchase_limit=product.purchase_limit,
            min_rank=parse_rank(product.min_rank) if product.min_rank else None,
        )


@dataclass(frozen=True, slots=True)
class PurchaseRestrictions:
    """Per buyer and product limits derived at validation time."""

    max_quantity: int | None = None
    min_rank: Rank | None = None


class StockChecksMixin:
    """Mixin providing product, stock and restriction checks."""

    product_repo: ProductRepository
    cache: LookupCache
    benefits: RankBenefitTable

    async def get_product(self, product_id: int) -> ProductSnapshot | None:
        """
        Get product snapshot (cached).

        Args:
            product_id: Product ID

        Returns:
            Snapshot or None if not found
        """
        key = PRODUCT_KEY.format(id=product_id)
        cached = self.cache.get(key)
        if cached is not None:
            return cached

        product = await self.product_repo.get_by_id(product_id)
        if product is None:
            return None

        snapshot = ProductSnapshot.from_model(product)
        self.cache.set(key, snapshot)
        return snapshot

    def check_product_stock(
        self, product: ProductSnapshot, quantity: int
    ) -> list[str]:
        """
        Check product availability and stock.

        Args:
            product: Product snapshot
            quantity: Requested units

        Returns:
            Violated rules, empty if the product can supply quantity
        """
        if not product.is_active:
            return ["product is not active"]

        if not product.active_specs:
            return ["product has no active specs"]

        available = product.available_stock
        if available < quantity:
            return [
                f"insufficient stock: available {available}, "
                f"requested {quantity}"
            ]

        return []

    def compute_restrictions(
        self, buyer: ParticipantSnapshot, product: ProductSnapshot
    ) -> PurchaseRestrictions:
        """
        Derive purchase restrictions for a buyer and product.

        Starts from the buyer's rank default and tightens it with the
        product's own limits; the stricter value always wins.
        """
        max_quantity = self.benefits.default_max_quantity(buyer.rank)
        if product.purchase_limit:
            max_quantity = min(max_quantity, product.purchase_limit)

        return PurchaseRestrictions(
            max_quantity=max_quantity, min_rank=product.min_rank
        )

    def check_restrictions(
        self,
        buyer: ParticipantSnapshot,
        quantity: int,
        restrictions: PurchaseRestrictions,
    ) -> list[str]:
        """
        Check quantity and rank limits.

        Returns:
            Violated rules
        """
        reasons: list[str] = []

        if quantity <= 0:
            reasons.append("quantity must be positive")

        if (
            restrictions.max_quantity is not None
            and quantity > restrictions.max_quantity
        ):
            reasons.append(
                f"quantity {quantity} exceeds purchase limit "
                f"{restrictions.max_quantity}"
            )

        if (
            restrictions.min_rank is not None
            and buyer.rank_index < rank_index(restrictions.min_rank)
        ):
            reasons.append(
                f"buyer rank {buyer.rank.value} is below required rank "
                f"{restrictions.min_rank.value}"
            )

        return reasons
