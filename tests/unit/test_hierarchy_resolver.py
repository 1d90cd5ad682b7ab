"""
Unit tests for team hierarchy resolution.

Tests cover:
- Team path resolution (one batch query)
- Parent traversal fallback
- Depth bound and cycle guard
- Caching and invalidation
"""

import pytest

from app.config.ranks import Rank
from app.services.team.hierarchy_resolver import TeamHierarchyResolver
from tests.fakes import FakeParticipantRepository, make_participant


@pytest.fixture
def resolver(participant_repo, cache):
    return TeamHierarchyResolver(participant_repo, cache, default_max_depth=10)


def ids(chain):
    return [p.id for p in chain]


class TestResolveAncestors:
    """Test ancestor chain resolution."""

    @pytest.mark.asyncio
    async def test_team_path_nearest_first(self, resolver, participant_repo):
        chain = await resolver.resolve_ancestors(4)

        assert ids(chain) == [3, 2, 1]
        assert chain[0].rank is Rank.STAR_1
        assert participant_repo.get_many_calls == 1

    @pytest.mark.asyncio
    async def test_team_path_respects_max_depth(self, resolver):
        chain = await resolver.resolve_ancestors(4, max_depth=2)
        assert ids(chain) == [3, 2]

    @pytest.mark.asyncio
    async def test_traversal_without_team_path(self, resolver, participant_repo):
        chain = await resolver.resolve_ancestors(6)

        assert ids(chain) == [5, 3, 2, 1]
        assert participant_repo.get_many_calls == 0

    @pytest.mark.asyncio
    async def test_traversal_respects_max_depth(self, resolver):
        chain = await resolver.resolve_ancestors(6, max_depth=2)
        assert ids(chain) == [5, 3]

    @pytest.mark.asyncio
    async def test_root_has_no_ancestors(self, resolver):
        assert await resolver.resolve_ancestors(1) == []

    @pytest.mark.asyncio
    async def test_unknown_participant(self, resolver):
        assert await resolver.resolve_ancestors(999) == []

    @pytest.mark.asyncio
    async def test_zero_depth(self, resolver):
        assert await resolver.resolve_ancestors(4, max_depth=0) == []

    @pytest.mark.asyncio
    async def test_inactive_ancestors_kept(self, cache):
        repo = FakeParticipantRepository(
            [
                make_participant(1, "DIRECTOR"),
                make_participant(2, "STAR_3", status="INACTIVE", parent_id=1),
                make_participant(3, "VIP", parent_id=2),
            ]
        )
        resolver = TeamHierarchyResolver(repo, cache)

        chain = await resolver.resolve_ancestors(3)

        assert ids(chain) == [2, 1]
        assert chain[0].is_active is False

    @pytest.mark.asyncio
    async def test_cycle_terminates(self, cache):
        repo = FakeParticipantRepository(
            [
                make_participant(1, "VIP", parent_id=3),
                make_participant(2, "VIP", parent_id=1),
                make_participant(3, "VIP", parent_id=2),
            ]
        )
        resolver = TeamHierarchyResolver(repo, cache)

        chain = await resolver.resolve_ancestors(3)

        assert ids(chain) == [2, 1]

    @pytest.mark.asyncio
    async def test_broken_team_path_keeps_prefix(self, cache):
        repo = FakeParticipantRepository(
            [
                make_participant(1, "DIRECTOR"),
                make_participant(3, "STAR_1", team_path="/1/2/"),
                make_participant(4, "VIP", team_path="/1/2/3/"),
            ]
        )
        resolver = TeamHierarchyResolver(repo, cache)

        chain = await resolver.resolve_ancestors(4)

        # 2 is missing, so 1 is not reported at a shifted distance
        assert ids(chain) == [3]

    @pytest.mark.asyncio
    async def test_repository_error_propagates(self, resolver, participant_repo):
        participant_repo.error = OSError("connection reset")
        with pytest.raises(OSError):
            await resolver.resolve_ancestors(4)


class TestResolverCaching:
    """Test lookup cache usage."""

    @pytest.mark.asyncio
    async def test_second_resolution_served_from_cache(
        self, resolver, participant_repo
    ):
        await resolver.resolve_ancestors(6)
        reads = participant_repo.get_by_id_calls

        chain = await resolver.resolve_ancestors(6)

        assert ids(chain) == [5, 3, 2, 1]
        assert participant_repo.get_by_id_calls == reads

    @pytest.mark.asyncio
    async def test_chain_expires(self, resolver, participant_repo, clock):
        await resolver.resolve_ancestors(4)
        clock.advance(120)

        await resolver.resolve_ancestors(4)

        assert participant_repo.get_many_calls == 2

    @pytest.mark.asyncio
    async def test_invalidate_participant(self, resolver, participant_repo):
        await resolver.resolve_ancestors(4)
        participant_repo.rows[3].rank = "STAR_5"

        resolver.invalidate_participant(3)
        chain = await resolver.resolve_ancestors(4)

        assert chain[0].rank is Rank.STAR_5


class TestTeamDistance:
    """Test team relationship distance."""

    @pytest.mark.asyncio
    async def test_direct_parent(self, resolver):
        assert await resolver.team_distance(3, 4) == 1

    @pytest.mark.asyncio
    async def test_distant_ancestor(self, resolver):
        assert await resolver.team_distance(1, 6) == 4

    @pytest.mark.asyncio
    async def test_same_participant(self, resolver):
        assert await resolver.team_distance(4, 4) == 0

    @pytest.mark.asyncio
    async def test_unrelated(self, resolver):
        assert await resolver.team_distance(4, 5) == -1
        assert await resolver.team_distance(3, 9) == -1

    @pytest.mark.asyncio
    async def test_beyond_max_depth(self, resolver):
        assert await resolver.team_distance(1, 6, max_depth=3) == -1
