"""
Purchase team and rank checks module.

Contains participant-side validation checks:
- Buyer and seller account status
- Team relationship (buyer must be a descendant of the seller)
- Rank comparison with skip-level seller substitution
"""

from loguru import logger

from app.services.team.hierarchy_resolver import TeamHierarchyResolver
from app.services.team.path_finder import SupplyChainPathFinder
from app.services.team.snapshots import ParticipantSnapshot


class TeamChecksMixin:
    """Mixin providing team relationship and rank checks."""

    resolver: TeamHierarchyResolver
    path_finder: SupplyChainPathFinder
    ancestor_max_depth: int

    def check_account_status(
        self, buyer: ParticipantSnapshot, seller: ParticipantSnapshot
    ) -> list[str]:
        """
        Check that both participants are active.

        Returns:
            Violated rules
        """
        reasons: list[str] = []
        if not buyer.is_active:
            reasons.append("buyer account is not active")
        if not seller.is_active:
            reasons.append("seller account is not active")
        return reasons

    async def check_team_relationship(
        self, buyer: ParticipantSnapshot, seller: ParticipantSnapshot
    ) -> tuple[bool, str | None]:
        """
        Check the buyer sits below the seller in the team tree.

        Args:
            buyer: Buyer snapshot
            seller: Nominal seller snapshot

        Returns:
            Tuple of (is_valid, error_message)
        """
        distance = await self.resolver.team_distance(
            seller.id, buyer.id, self.ancestor_max_depth
        )
        if distance <= 0:
            return False, "no valid team relationship"
        return True, None

    async def resolve_seller(
        self, buyer: ParticipantSnapshot, seller: ParticipantSnapshot
    ) -> tuple[ParticipantSnapshot | None, tuple[int, ...]]:
        """
        Pick the effective seller for a buyer.

        A seller ranked above the buyer is used as-is. Otherwise the
        nearest active ancestor of the seller ranked above the buyer
        takes over. That ancestor is also above the seller, so the buyer
        remains its descendant.

        Args:
            buyer: Buyer snapshot
            seller: Nominal seller snapshot

        Returns:
            Tuple of (effective seller or None, id path searched)
        """
        if seller.rank_index > buyer.rank_index:
            return seller, ()

        match = await self.path_finder.find_higher_rank_ancestor(
            seller.id, buyer.rank_index, self.ancestor_max_depth
        )
        if match is None:
            logger.info(
                "No higher rank seller available",
                extra={
                    "buyer_id": buyer.id,
                    "seller_id": seller.id,
                    "buyer_rank": buyer.rank.value,
                    "seller_rank": seller.rank.value,
                },
            )
            return None, ()

        logger.info(
            f"Seller {seller.id} substituted by ancestor "
            f"{match.participant.id}",
            extra={
                "buyer_id": buyer.id,
                "seller_id": seller.id,
                "resolved_seller_id": match.participant.id,
                "resolved_rank": match.rank.value,
                "path": list(match.path),
            },
        )
        return match.participant, match.path
