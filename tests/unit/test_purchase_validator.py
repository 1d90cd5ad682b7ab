"""
Unit tests for purchase authorization.

Tests cover:
- Approval with the nominal seller
- Skip-level seller substitution
- Team relationship and rank rejections
- Stock and restriction rejections, accumulated in a fixed order
"""

import asyncio
import itertools

import pytest

from app.config.ranks import Rank
from app.services.purchase.purchase_validator_core import PurchaseValidator
from app.services.team.hierarchy_resolver import TeamHierarchyResolver
from app.services.team.path_finder import SupplyChainPathFinder
from tests.fakes import (
    FakeParticipantRepository,
    FakeProductRepository,
    make_participant,
    make_product,
    make_spec,
)


def build_validator(participant_repo, product_repo, cache):
    resolver = TeamHierarchyResolver(participant_repo, cache)
    return PurchaseValidator(
        resolver,
        SupplyChainPathFinder(resolver),
        product_repo,
        cache,
    )


@pytest.fixture
def validator(participant_repo, product_repo, cache):
    return build_validator(participant_repo, product_repo, cache)


class TestAuthorizeApproval:
    """Test approved purchases."""

    @pytest.mark.asyncio
    async def test_higher_ranked_seller_used_as_is(self, validator):
        result = await validator.authorize(5, 3, 100, 2)

        assert result.approved is True
        assert result.reasons == []
        assert result.resolved_seller_id == 3
        assert result.restrictions.max_quantity == 10
        assert result.search_path == ()

    @pytest.mark.asyncio
    async def test_skip_level_seller(self, validator):
        # STAR_2 buyer, STAR_1 seller: nearest ancestor above STAR_2 is STAR_4
        result = await validator.authorize(4, 3, 100, 1)

        assert result.approved is True
        assert result.resolved_seller_id == 2
        assert result.search_path == (3, 2)

    @pytest.mark.asyncio
    async def test_distant_seller(self, validator):
        result = await validator.authorize(6, 1, 100, 5)

        assert result.approved is True
        assert result.resolved_seller_id == 1

    @pytest.mark.asyncio
    async def test_stock_from_active_specs(self, participant_repo, cache):
        product_repo = FakeProductRepository(
            [
                make_product(
                    300,
                    total_stock=0,
                    specs=[
                        make_spec(1, 300, stock=3),
                        make_spec(2, 300, stock=40, is_active=False),
                    ],
                )
            ]
        )
        validator = build_validator(participant_repo, product_repo, cache)

        assert (await validator.authorize(5, 3, 300, 3)).approved is True

        result = await validator.authorize(5, 3, 300, 4)
        assert result.reasons == ["insufficient stock: available 3, requested 4"]

    @pytest.mark.asyncio
    async def test_product_served_from_cache(self, validator, product_repo):
        await validator.authorize(5, 3, 100, 1)
        await validator.authorize(6, 5, 100, 1)

        assert product_repo.get_by_id_calls == 1

    @pytest.mark.asyncio
    async def test_reads_never_overlap_on_shared_session(
        self, participant_repo, product_repo, cache
    ):
        """Repositories built on one AsyncSession get one query at a time."""
        in_flight = 0
        peak = 0

        def one_at_a_time(read):
            async def wrapped(id):
                nonlocal in_flight, peak
                in_flight += 1
                peak = max(peak, in_flight)
                await asyncio.sleep(0)
                try:
                    return await read(id)
                finally:
                    in_flight -= 1

            return wrapped

        participant_repo.get_by_id = one_at_a_time(participant_repo.get_by_id)
        product_repo.get_by_id = one_at_a_time(product_repo.get_by_id)
        validator = build_validator(participant_repo, product_repo, cache)

        result = await validator.authorize(4, 3, 100, 1)

        assert result.approved is True
        assert peak == 1


class TestAuthorizeRejection:
    """Test rejected purchases."""

    @pytest.mark.asyncio
    async def test_missing_entities_short_circuit(self, validator):
        result = await validator.authorize(999, 998, 100, 1)

        assert result.approved is False
        assert result.error_code == "NOT_FOUND"
        assert result.reasons == ["buyer not found", "seller not found"]

    @pytest.mark.asyncio
    async def test_missing_product(self, validator):
        result = await validator.authorize(5, 3, 12345, 1)
        assert result.reasons == ["product not found"]

    @pytest.mark.asyncio
    async def test_buyer_without_ancestors(self, validator):
        result = await validator.authorize(9, 1, 100, 1)

        assert result.approved is False
        assert result.error_code == "PURCHASE_REJECTED"
        assert result.reasons == ["no valid team relationship"]
        assert result.resolved_seller_id is None

    @pytest.mark.asyncio
    async def test_seller_below_buyer_in_tree(self, validator):
        result = await validator.authorize(3, 4, 100, 1)
        assert result.reasons == ["no valid team relationship"]

    @pytest.mark.asyncio
    async def test_no_higher_ancestor(self, product_repo, cache):
        repo = FakeParticipantRepository(
            [
                make_participant(1, "VIP"),
                make_participant(2, "STAR_1", parent_id=1),
            ]
        )
        validator = build_validator(repo, product_repo, cache)

        result = await validator.authorize(2, 1, 100, 1)

        assert result.approved is False
        assert result.reasons == [
            "seller rank too low and no higher ancestor found"
        ]

    @pytest.mark.asyncio
    async def test_inactive_accounts(self, product_repo, cache):
        repo = FakeParticipantRepository(
            [
                make_participant(1, "DIRECTOR", status="SUSPENDED"),
                make_participant(2, "VIP", status="INACTIVE", parent_id=1),
            ]
        )
        validator = build_validator(repo, product_repo, cache)

        result = await validator.authorize(2, 1, 100, 1)

        assert result.reasons == [
            "buyer account is not active",
            "seller account is not active",
        ]

    @pytest.mark.asyncio
    async def test_out_of_stock_product(self, validator):
        result = await validator.authorize(5, 3, 200, 1)

        assert result.approved is False
        assert result.reasons == ["insufficient stock: available 0, requested 1"]

    @pytest.mark.asyncio
    async def test_product_without_active_specs(self, participant_repo, cache):
        product_repo = FakeProductRepository(
            [make_product(300, total_stock=0, specs=[])]
        )
        validator = build_validator(participant_repo, product_repo, cache)

        result = await validator.authorize(5, 3, 300, 1)
        assert result.reasons == ["product has no active specs"]

    @pytest.mark.asyncio
    async def test_rank_quantity_limit(self, validator):
        result = await validator.authorize(6, 5, 100, 6)

        assert result.reasons == ["quantity 6 exceeds purchase limit 5"]
        assert result.restrictions.max_quantity == 5

    @pytest.mark.asyncio
    async def test_product_limit_wins_when_stricter(self, participant_repo, cache):
        product_repo = FakeProductRepository(
            [make_product(300, purchase_limit=3, min_rank="STAR_1")]
        )
        validator = build_validator(participant_repo, product_repo, cache)

        result = await validator.authorize(5, 3, 300, 4)

        assert result.restrictions.max_quantity == 3
        assert result.restrictions.min_rank is Rank.STAR_1
        assert result.reasons == [
            "quantity 4 exceeds purchase limit 3",
            "buyer rank VIP is below required rank STAR_1",
        ]

    @pytest.mark.asyncio
    async def test_non_positive_quantity(self, validator):
        result = await validator.authorize(5, 3, 100, 0)
        assert result.reasons == ["quantity must be positive"]

    @pytest.mark.asyncio
    async def test_reasons_accumulate_in_check_order(
        self, participant_repo, cache
    ):
        product_repo = FakeProductRepository(
            [make_product(300, status="INACTIVE")]
        )
        validator = build_validator(participant_repo, product_repo, cache)

        result = await validator.authorize(9, 3, 300, 11)

        assert result.reasons == [
            "no valid team relationship",
            "product is not active",
            "quantity 11 exceeds purchase limit 10",
        ]


class TestAuthorizeInvariant:
    """Approval implies a higher-ranked resolved seller above the buyer."""

    @pytest.mark.asyncio
    async def test_all_pairs(self, validator, team):
        resolver = validator.resolver
        ids = [p.id for p in team]

        for buyer_id, seller_id in itertools.permutations(ids, 2):
            result = await validator.authorize(buyer_id, seller_id, 100, 1)
            if not result.approved:
                continue

            buyer = await resolver.get_participant(buyer_id)
            resolved = await resolver.get_participant(result.resolved_seller_id)
            assert resolved.rank_index > buyer.rank_index
            assert await resolver.team_distance(resolved.id, buyer_id) > 0
