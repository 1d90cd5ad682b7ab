"""
Unit tests for commission calculation and distribution.

Tests cover:
- Geometric decay over the referral chain
- Absolute amount cutoff
- Inactive and cyclic chains
- Preview idempotence
- Commission statistics periods
- Team performance over a date window
"""

from datetime import UTC, datetime
from decimal import Decimal

import pytest

from app.services.commission.commission_calculator import (
    CommissionCalculator,
    period_start,
)
from app.services.team.hierarchy_resolver import TeamHierarchyResolver
from tests.fakes import FakeParticipantRepository, make_participant


@pytest.fixture
def chain_repo():
    """Seller 10 and its referral upline; 12 has only a parent link."""
    return FakeParticipantRepository(
        [
            make_participant(10, "STAR_1", referrer_id=11, parent_id=99),
            make_participant(11, "STAR_2", referrer_id=12),
            make_participant(12, "STAR_3", parent_id=13),
            make_participant(13, "STAR_4", referrer_id=14),
            make_participant(14, "STAR_5", referrer_id=15),
            make_participant(15, "DIRECTOR"),
            make_participant(20, "VIP", referrer_id=21),
            make_participant(21, "VIP", referrer_id=20),
        ]
    )


@pytest.fixture
def calculator(chain_repo, commission_repo, cache):
    return CommissionCalculator(
        TeamHierarchyResolver(chain_repo, cache), chain_repo, commission_repo
    )


class TestCommissionPath:
    """Test recipient path construction."""

    @pytest.mark.asyncio
    async def test_referrer_then_parent(self, calculator):
        path = await calculator.get_commission_path(10, max_depth=6)
        assert [p.id for p in path] == [10, 11, 12, 13, 14, 15]

    @pytest.mark.asyncio
    async def test_bounded_by_max_depth(self, calculator):
        path = await calculator.get_commission_path(10, max_depth=3)
        assert [p.id for p in path] == [10, 11, 12]

    @pytest.mark.asyncio
    async def test_inactive_skipped(self, calculator, chain_repo):
        chain_repo.rows[11].status = "INACTIVE"
        path = await calculator.get_commission_path(10, max_depth=5)
        assert [p.id for p in path] == [10, 12, 13, 14]

    @pytest.mark.asyncio
    async def test_cycle_stops(self, calculator):
        path = await calculator.get_commission_path(20, max_depth=5)
        assert [p.id for p in path] == [20, 21]

    @pytest.mark.asyncio
    async def test_unknown_seller(self, calculator):
        assert await calculator.get_commission_path(404) == []


class TestDistribute:
    """Test persisted distribution."""

    @pytest.mark.asyncio
    async def test_five_level_decay(self, calculator, commission_repo):
        records = await calculator.distribute(1, 10, "STAR_1", Decimal("1000"))

        assert [r.user_id for r in records] == [10, 11, 12, 13, 14]
        assert [r.level for r in records] == [1, 2, 3, 4, 5]
        assert [r.amount for r in records] == [
            Decimal("80.00"),
            Decimal("64.00"),
            Decimal("51.20"),
            Decimal("40.96"),
            Decimal("32.77"),
        ]
        assert records[4].rate == Decimal("0.03276800")
        assert all(r.source_user_id == 10 for r in records)
        assert all(r.status == "PENDING" for r in records)
        assert len(commission_repo.records) == 5

    @pytest.mark.asyncio
    async def test_amounts_strictly_decrease(self, calculator):
        records = await calculator.distribute(1, 10, "DIRECTOR", Decimal("250"))
        amounts = [r.amount for r in records]
        assert amounts == sorted(amounts, reverse=True)
        assert len(set(amounts)) == len(amounts)

    @pytest.mark.asyncio
    async def test_stops_at_amount_floor(self, calculator):
        # 0.016, 0.0128, 0.01024, then 0.008192 <= 0.01
        records = await calculator.distribute(1, 10, "STAR_1", Decimal("0.20"))

        assert [r.level for r in records] == [1, 2, 3]
        assert all(r.amount > 0 for r in records)

    @pytest.mark.asyncio
    async def test_normal_rank_earns_nothing(self, calculator, commission_repo):
        records = await calculator.distribute(1, 10, "NORMAL", Decimal("1000"))

        assert records == []
        assert commission_repo.records == []

    @pytest.mark.asyncio
    async def test_distribute_reads_fresh_status(self, calculator, chain_repo):
        await calculator.preview_commission(10, "STAR_1", Decimal("1000"))
        chain_repo.rows[11].status = "INACTIVE"

        records = await calculator.distribute(1, 10, "STAR_1", Decimal("1000"))

        assert 11 not in [r.user_id for r in records]


class TestPreviewCommission:
    """Test non-persisting preview."""

    @pytest.mark.asyncio
    async def test_matches_distribution(self, calculator):
        preview = await calculator.preview_commission(
            10, "STAR_1", Decimal("1000")
        )

        assert preview.base_rate == Decimal("0.08")
        assert [line.amount for line in preview.lines] == [
            Decimal("80.00"),
            Decimal("64.00"),
            Decimal("51.20"),
            Decimal("40.96"),
            Decimal("32.77"),
        ]
        assert preview.total_commission == Decimal("268.93")

    @pytest.mark.asyncio
    async def test_idempotent_and_side_effect_free(
        self, calculator, commission_repo
    ):
        first = await calculator.preview_commission(10, "STAR_1", Decimal("1000"))
        second = await calculator.preview_commission(10, "STAR_1", Decimal("1000"))

        assert first == second
        assert commission_repo.records == []


class TestCommissionStats:
    """Test statistics aggregation."""

    @pytest.mark.asyncio
    async def test_stats(self, calculator, commission_repo):
        await calculator.distribute(1, 10, "STAR_1", Decimal("1000"))
        await calculator.distribute(2, 11, "STAR_2", Decimal("100"))
        commission_repo.records[0].status = "PAID"
        await commission_repo.create_many(
            [
                {
                    "user_id": 11,
                    "order_id": 3,
                    "amount": Decimal("500"),
                    "rate": Decimal("0.1"),
                    "level": 1,
                    "source_user_id": 11,
                    "status": "PAID",
                    "created_at": datetime(2000, 1, 1, tzinfo=UTC),
                }
            ]
        )

        stats = await calculator.get_user_commission_stats(11, "year")

        # 64.00 from order 1 (level 2) and 10.00 from order 2 (level 1)
        assert stats["total"] == Decimal("74.00")
        assert stats["pending"] == Decimal("74.00")
        assert stats["paid"] == Decimal("0")
        assert stats["order_count"] == 2
        assert stats["average_per_order"] == Decimal("37.00")

    @pytest.mark.asyncio
    async def test_stats_empty(self, calculator):
        stats = await calculator.get_user_commission_stats(10, "day")

        assert stats["total"] == Decimal("0")
        assert stats["order_count"] == 0
        assert stats["average_per_order"] == Decimal("0.00")

    @pytest.mark.asyncio
    async def test_unknown_period(self, calculator):
        with pytest.raises(ValueError):
            await calculator.get_user_commission_stats(10, "decade")


class TestPeriodStart:
    """Test period boundaries (UTC)."""

    NOW = datetime(2026, 10, 15, 13, 30, tzinfo=UTC)  # a Thursday

    @pytest.mark.parametrize(
        "period,expected",
        [
            ("day", datetime(2026, 10, 15, tzinfo=UTC)),
            ("week", datetime(2026, 10, 12, tzinfo=UTC)),
            ("month", datetime(2026, 10, 1, tzinfo=UTC)),
            ("year", datetime(2026, 1, 1, tzinfo=UTC)),
        ],
    )
    def test_boundaries(self, period, expected):
        assert period_start(period, self.NOW) == expected


class TestTeamPerformance:
    """Test team performance over a date window."""

    START = datetime(2026, 10, 1, tzinfo=UTC)
    END = datetime(2026, 10, 31, 23, 59, tzinfo=UTC)
    INSIDE = datetime(2026, 10, 10, tzinfo=UTC)
    OUTSIDE = datetime(2026, 9, 30, tzinfo=UTC)

    @pytest.fixture
    def team_calculator(self, participant_repo, commission_repo, order_repo, cache):
        return CommissionCalculator(
            TeamHierarchyResolver(participant_repo, cache),
            participant_repo,
            commission_repo,
            order_repo=order_repo,
        )

    @staticmethod
    def commission(user_id, amount, status, created_at):
        return {
            "user_id": user_id,
            "order_id": 1,
            "amount": Decimal(amount),
            "rate": Decimal("0.05"),
            "level": 1,
            "source_user_id": user_id,
            "status": status,
            "created_at": created_at,
        }

    @pytest.mark.asyncio
    async def test_team_totals(
        self, team_calculator, participant_repo, order_repo, commission_repo
    ):
        participant_repo.rows[5].status = "SUSPENDED"
        for buyer_id, status, amount, created_at in [
            (4, "COMPLETED", "100.00", self.INSIDE),
            (5, "COMPLETED", "50.50", self.INSIDE),
            (4, "CANCELLED", "70.00", self.INSIDE),
            (3, "COMPLETED", "30.00", self.OUTSIDE),
            (1, "COMPLETED", "999.00", self.INSIDE),
        ]:
            await order_repo.create(
                buyer_id=buyer_id,
                status=status,
                total_amount=Decimal(amount),
                created_at=created_at,
            )
        await commission_repo.create_many(
            [
                self.commission(3, "8.00", "PAID", self.INSIDE),
                self.commission(4, "5.00", "PENDING", self.INSIDE),
                self.commission(4, "6.00", "PAID", self.OUTSIDE),
                self.commission(1, "40.00", "PAID", self.INSIDE),
            ]
        )

        stats = await team_calculator.calculate_team_performance(
            2, self.START, self.END
        )

        # 3 by parent link, 4 and 5 through the team path; 1 is the upline
        assert stats["team_size"] == 3
        assert stats["active_members"] == 2
        assert stats["total_orders"] == 2
        assert stats["total_amount"] == Decimal("150.50")
        assert stats["total_commission"] == Decimal("8.00")

    @pytest.mark.asyncio
    async def test_referral_counts_as_member(self, commission_repo, order_repo, cache):
        repo = FakeParticipantRepository(
            [
                make_participant(1, "STAR_1"),
                make_participant(2, "VIP", referrer_id=1),
            ]
        )
        calculator = CommissionCalculator(
            TeamHierarchyResolver(repo, cache),
            repo,
            commission_repo,
            order_repo=order_repo,
        )

        stats = await calculator.calculate_team_performance(
            1, self.START, self.END
        )

        assert stats["team_size"] == 1

    @pytest.mark.asyncio
    async def test_leaf_has_empty_team(self, team_calculator):
        stats = await team_calculator.calculate_team_performance(
            6, self.START, self.END
        )

        assert stats["team_size"] == 0
        assert stats["total_orders"] == 0
        assert stats["total_amount"] == Decimal("0")
        assert stats["total_commission"] == Decimal("0")

    @pytest.mark.asyncio
    async def test_reversed_window(self, team_calculator):
        with pytest.raises(ValueError):
            await team_calculator.calculate_team_performance(
                2, self.END, self.START
            )

    @pytest.mark.asyncio
    async def test_requires_order_repository(self, calculator):
        with pytest.raises(ValueError):
            await calculator.calculate_team_performance(
                10, self.START, self.END
            )
