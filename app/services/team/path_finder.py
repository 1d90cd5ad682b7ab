"""
Supply chain path finder.

Finds ancestors a participant may restock from: active and strictly
higher ranked.
"""

from loguru import logger

from app.services.team.hierarchy_resolver import TeamHierarchyResolver
from app.services.team.snapshots import AncestorMatch, SupplierOption


class SupplyChainPathFinder:
    """Rank-aware searches over resolved ancestor chains."""

    def __init__(self, resolver: TeamHierarchyResolver) -> None:
        """
        Initialize path finder.

        Args:
            resolver: Ancestor chain resolver
        """
        self.resolver = resolver

    async def find_higher_rank_ancestor(
        self,
        start_id: int,
        min_rank_index: int,
        max_depth: int | None = None,
    ) -> AncestorMatch | None:
        """
        Find the nearest active ancestor ranked above min_rank_index.

        The chain is fetched once and scanned nearest to farthest, so the
        result is never more than max_depth hops above start_id.

        Args:
            start_id: Participant to search upward from (not a candidate)
            min_rank_index: Rank index the ancestor must strictly exceed
            max_depth: Search bound (default from config)

        Returns:
            Match with the id path walked, or None
        """
        chain = await self.resolver.resolve_ancestors(start_id, max_depth)

        for position, ancestor in enumerate(chain):
            if not ancestor.is_active:
                continue
            if ancestor.rank_index > min_rank_index:
                path = (start_id,) + tuple(a.id for a in chain[: position + 1])
                logger.debug(
                    "Higher rank ancestor found",
                    extra={
                        "start_id": start_id,
                        "min_rank_index": min_rank_index,
                        "ancestor_id": ancestor.id,
                        "path": list(path),
                    },
                )
                return AncestorMatch(
                    participant=ancestor, rank=ancestor.rank, path=path
                )

        logger.debug(
            "No higher rank ancestor",
            extra={
                "start_id": start_id,
                "min_rank_index": min_rank_index,
                "chain_length": len(chain),
            },
        )
        return None

    async def find_optimal_supply_path(
        self, participant_id: int, max_depth: int | None = None
    ) -> list[SupplierOption]:
        """
        List every ancestor the participant may restock from.

        Args:
            participant_id: Buyer
            max_depth: Search bound (default from config)

        Returns:
            Active ancestors ranked above the participant, nearest first;
            empty if the participant is unknown
        """
        participant = await self.resolver.get_participant(participant_id)
        if participant is None:
            return []

        chain = await self.resolver.resolve_ancestors(participant_id, max_depth)

        return [
            SupplierOption(
                participant_id=ancestor.id,
                rank=ancestor.rank,
                distance=distance,
            )
            for distance, ancestor in enumerate(chain, start=1)
            if ancestor.is_active and ancestor.rank_index > participant.rank_index
        ]
