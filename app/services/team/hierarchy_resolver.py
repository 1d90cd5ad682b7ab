"""
Team hierarchy resolver.

Resolves a participant's ancestor chain (nearest first) with a hard
depth bound, reading through the lookup cache.
"""

from loguru import logger

from app.config.business_constants import DEFAULT_ANCESTOR_MAX_DEPTH
from app.repositories.participant_repository import ParticipantRepository
from app.services.cache.lookup_cache import LookupCache
from app.services.team.snapshots import ParticipantSnapshot, chain_ids


PARTICIPANT_KEY = "participant:{id}"
ANCESTORS_KEY_PREFIX = "ancestors:"
ANCESTORS_KEY = ANCESTORS_KEY_PREFIX + "{id}:{depth}"


class TeamHierarchyResolver:
    """
    Resolves ancestor chains over the parent pointer.

    Uses the precomputed team path when a participant has one (one batch
    query), otherwise walks parent_id one hop at a time. Both strategies
    stop after max_depth ancestors, so corrupted data containing a cycle
    ends the walk instead of looping.

    Inactive ancestors stay in the chain so distances remain stable;
    callers filter by status.

    Absence of ancestry is a valid outcome: unknown participants yield an
    empty chain. Repository errors propagate.
    """

    def __init__(
        self,
        participant_repo: ParticipantRepository,
        cache: LookupCache,
        default_max_depth: int = DEFAULT_ANCESTOR_MAX_DEPTH,
    ) -> None:
        """
        Initialize resolver.

        Args:
            participant_repo: Participant data access
            cache: Lookup cache shared with the rest of the engine
            default_max_depth: Depth used when callers pass none
        """
        self.participant_repo = participant_repo
        self.cache = cache
        self.default_max_depth = default_max_depth

    async def get_participant(
        self, participant_id: int
    ) -> ParticipantSnapshot | None:
        """
        Get participant snapshot (cached).

        Args:
            participant_id: Participant ID

        Returns:
            Snapshot or None if not found
        """
        key = PARTICIPANT_KEY.format(id=participant_id)
        cached = self.cache.get(key)
        if cached is not None:
            return cached

        participant = await self.participant_repo.get_by_id(participant_id)
        if participant is None:
            return None

        snapshot = ParticipantSnapshot.from_model(participant)
        self.cache.set(key, snapshot)
        return snapshot

    async def resolve_ancestors(
        self, participant_id: int, max_depth: int | None = None
    ) -> list[ParticipantSnapshot]:
        """
        Get ancestor chain, nearest ancestor first.

        Args:
            participant_id: Participant ID
            max_depth: Maximum number of ancestors (default from config)

        Returns:
            Ancestors, at most max_depth long; empty if none or unknown
        """
        depth = max_depth if max_depth is not None else self.default_max_depth
        if depth <= 0:
            return []

        key = ANCESTORS_KEY.format(id=participant_id, depth=depth)
        cached = self.cache.get(key)
        if cached is not None:
            return list(cached)

        participant = await self.get_participant(participant_id)
        if participant is None:
            return []

        if participant.team_path:
            chain = await self._ancestors_from_path(participant, depth)
        else:
            chain = await self._ancestors_by_traversal(participant, depth)

        if chain:
            self.cache.set(key, tuple(chain))

        logger.debug(
            "Ancestor chain resolved",
            extra={
                "participant_id": participant_id,
                "max_depth": depth,
                "chain": chain_ids(chain),
            },
        )
        return chain

    async def _ancestors_from_path(
        self, participant: ParticipantSnapshot, max_depth: int
    ) -> list[ParticipantSnapshot]:
        """
        Resolve ancestors from the precomputed team path in one query.

        The path is stored most distant first; the last max_depth ids
        are the nearest ancestors. The chain is cut at the first id that
        no longer exists so later distances are not shifted.
        """
        path_ids: list[int] = []
        for ancestor_id in reversed(participant.team_path):
            if ancestor_id == participant.id or ancestor_id in path_ids:
                continue
            path_ids.append(ancestor_id)
            if len(path_ids) == max_depth:
                break

        if not path_ids:
            return []

        rows = await self.participant_repo.get_many(path_ids)
        by_id = {
            row.id: ParticipantSnapshot.from_model(row) for row in rows
        }

        chain: list[ParticipantSnapshot] = []
        for ancestor_id in path_ids:
            snapshot = by_id.get(ancestor_id)
            if snapshot is None:
                logger.warning(
                    "Team path references missing participant",
                    extra={
                        "participant_id": participant.id,
                        "missing_id": ancestor_id,
                    },
                )
                break
            self.cache.set(PARTICIPANT_KEY.format(id=snapshot.id), snapshot)
            chain.append(snapshot)

        return chain

    async def _ancestors_by_traversal(
        self, participant: ParticipantSnapshot, max_depth: int
    ) -> list[ParticipantSnapshot]:
        """Resolve ancestors by following parent_id, one hop at a time."""
        chain: list[ParticipantSnapshot] = []
        visited = {participant.id}
        current = participant

        while len(chain) < max_depth and current.parent_id is not None:
            if current.parent_id in visited:
                logger.warning(
                    "Cycle detected in team tree",
                    extra={
                        "participant_id": participant.id,
                        "repeated_id": current.parent_id,
                    },
                )
                break

            parent = await self.get_participant(current.parent_id)
            if parent is None:
                break

            chain.append(parent)
            visited.add(parent.id)
            current = parent

        return chain

    async def team_distance(
        self,
        upline_id: int,
        downline_id: int,
        max_depth: int | None = None,
    ) -> int:
        """
        Get how many levels upline_id sits above downline_id.

        Args:
            upline_id: Candidate ancestor
            downline_id: Candidate descendant
            max_depth: Search bound (default from config)

        Returns:
            1-based distance, 0 for the same participant, -1 if unrelated
        """
        if upline_id == downline_id:
            return 0

        chain = await self.resolve_ancestors(downline_id, max_depth)
        for position, ancestor in enumerate(chain, start=1):
            if ancestor.id == upline_id:
                return position
        return -1

    def invalidate_participant(self, participant_id: int) -> None:
        """
        Drop cached data that may embed this participant.

        Any ancestor chain can contain the participant, so all chains
        are dropped along with the participant's own snapshot.
        """
        self.cache.invalidate(PARTICIPANT_KEY.format(id=participant_id))
        dropped = self.cache.invalidate_prefix(ANCESTORS_KEY_PREFIX)
        logger.debug(
            "Participant cache invalidated",
            extra={
                "participant_id": participant_id,
                "chains_dropped": dropped,
            },
        )
