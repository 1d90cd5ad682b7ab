"""
Commission calculator.

Distributes a completed order's commission up the seller's referral
chain with geometric decay: level i (0-based) earns
base_rate * 0.8^i of the order total, while that amount stays above
the absolute floor.
"""

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from loguru import logger

from app.config.business_constants import (
    COMMISSION_DECAY_FACTOR,
    COMMISSION_STATS_PERIODS,
    DEFAULT_COMMISSION_MAX_DEPTH,
    MIN_COMMISSION_AMOUNT,
    MONEY_QUANTUM,
    RATE_QUANTUM,
)
from app.config.ranks import Rank, RankBenefitTable, parse_rank
from app.models.commission_record import CommissionRecord
from app.models.enums import (
    CommissionSourceType,
    CommissionStatus,
    ParticipantStatus,
)
from app.repositories.commission_repository import CommissionRepository
from app.repositories.participant_repository import ParticipantRepository
from app.repositories.purchase_order_repository import PurchaseOrderRepository
from app.services.team.hierarchy_resolver import TeamHierarchyResolver
from app.services.team.snapshots import ParticipantSnapshot, chain_ids


@dataclass(frozen=True, slots=True)
class CommissionLine:
    """One recipient's share of an order."""

    user_id: int
    level: int
    rate: Decimal
    amount: Decimal


@dataclass(frozen=True, slots=True)
class CommissionPreview:
    """Commission breakdown computed without persisting anything."""

    seller_id: int
    seller_rank: Rank
    base_rate: Decimal
    total_amount: Decimal
    lines: tuple[CommissionLine, ...]

    @property
    def total_commission(self) -> Decimal:
        return sum((line.amount for line in self.lines), Decimal("0"))


def period_start(period: str, now: datetime | None = None) -> datetime:
    """
    Get the UTC start of a statistics period.

    Args:
        period: One of day, week, month, year
        now: Reference time (default: current UTC time)

    Returns:
        Inclusive period start

    Raises:
        ValueError: If period is unknown
    """
    if period not in COMMISSION_STATS_PERIODS:
        raise ValueError(
            f"Unknown period {period!r}, expected one of "
            f"{', '.join(COMMISSION_STATS_PERIODS)}"
        )

    now = now or datetime.now(UTC)
    day = now.replace(hour=0, minute=0, second=0, microsecond=0)

    if period == "day":
        return day
    if period == "week":
        return day - timedelta(days=day.weekday())
    if period == "month":
        return day.replace(day=1)
    return day.replace(month=1, day=1)


class CommissionCalculator:
    """
    Computes and persists upline commissions.

    Does not deduplicate: the order workflow must call distribute at
    most once per order.
    """

    def __init__(
        self,
        resolver: TeamHierarchyResolver,
        participant_repo: ParticipantRepository,
        commission_repo: CommissionRepository,
        benefits: RankBenefitTable | None = None,
        order_repo: PurchaseOrderRepository | None = None,
    ) -> None:
        """
        Initialize commission calculator.

        Args:
            resolver: Cached participant lookups for previews
            participant_repo: Uncached lookups for distribution
            commission_repo: Commission record storage
            benefits: Rank benefit table
            order_repo: Order queries for team performance
        """
        self.resolver = resolver
        self.participant_repo = participant_repo
        self.commission_repo = commission_repo
        self.order_repo = order_repo
        self.benefits = benefits or RankBenefitTable()

    async def _load_fresh(self, participant_id: int) -> ParticipantSnapshot | None:
        participant = await self.participant_repo.get_by_id(participant_id)
        if participant is None:
            return None
        return ParticipantSnapshot.from_model(participant)

    async def get_commission_path(
        self,
        seller_id: int,
        max_depth: int = DEFAULT_COMMISSION_MAX_DEPTH,
        fresh: bool = False,
    ) -> list[ParticipantSnapshot]:
        """
        Get commission recipients, seller first.

        Walks referrer_id, falling back to parent_id, for at most
        max_depth participants. Inactive participants are skipped and
        take no level. A repeated id ends the walk.

        Args:
            seller_id: Seller of the order
            max_depth: Maximum participants walked
            fresh: Bypass the lookup cache (used when persisting)

        Returns:
            Active participants in payout order
        """
        load = self._load_fresh if fresh else self.resolver.get_participant

        path: list[ParticipantSnapshot] = []
        visited: set[int] = set()
        current_id: int | None = seller_id

        for _ in range(max_depth):
            if current_id is None or current_id in visited:
                break
            visited.add(current_id)

            participant = await load(current_id)
            if participant is None:
                break

            if participant.is_active:
                path.append(participant)

            current_id = participant.referrer_id or participant.parent_id

        return path

    def calculate_lines(
        self,
        path: list[ParticipantSnapshot],
        base_rate: Decimal,
        total_amount: Decimal,
    ) -> list[CommissionLine]:
        """
        Apply the decaying rate over a commission path.

        Stops at the first level whose unrounded amount is not above
        MIN_COMMISSION_AMOUNT; later levels would only be smaller.
        """
        lines: list[CommissionLine] = []
        total = Decimal(total_amount)

        for i, recipient in enumerate(path):
            rate = base_rate * COMMISSION_DECAY_FACTOR**i
            amount = total * rate
            if amount <= MIN_COMMISSION_AMOUNT:
                break

            lines.append(
                CommissionLine(
                    user_id=recipient.id,
                    level=i + 1,
                    rate=rate.quantize(RATE_QUANTUM, rounding=ROUND_HALF_UP),
                    amount=amount.quantize(MONEY_QUANTUM, rounding=ROUND_HALF_UP),
                )
            )

        return lines

    async def preview_commission(
        self,
        seller_id: int,
        seller_rank: Rank | str,
        total_amount: Decimal,
        max_depth: int = DEFAULT_COMMISSION_MAX_DEPTH,
    ) -> CommissionPreview:
        """
        Compute the commission breakdown without persisting.

        Args:
            seller_id: Seller of the order
            seller_rank: Seller rank (sets the base rate)
            total_amount: Order total
            max_depth: Maximum participants walked

        Returns:
            CommissionPreview
        """
        rank = parse_rank(seller_rank)
        base_rate = self.benefits.base_commission_rate(rank)
        path = await self.get_commission_path(seller_id, max_depth)

        return CommissionPreview(
            seller_id=seller_id,
            seller_rank=rank,
            base_rate=base_rate,
            total_amount=Decimal(total_amount),
            lines=tuple(self.calculate_lines(path, base_rate, total_amount)),
        )

    async def distribute(
        self,
        order_id: int,
        seller_id: int,
        seller_rank: Rank | str,
        total_amount: Decimal,
        max_depth: int = DEFAULT_COMMISSION_MAX_DEPTH,
    ) -> list[CommissionRecord]:
        """
        Create commission records for a completed order.

        Must run inside the transaction that completes the order; no
        commit happens here.

        Args:
            order_id: Completed order
            seller_id: Resolved seller of the order
            seller_rank: Seller rank read in the same transaction
            total_amount: Order total
            max_depth: Maximum participants walked

        Returns:
            Created records, level order
        """
        rank = parse_rank(seller_rank)
        base_rate = self.benefits.base_commission_rate(rank)
        if base_rate <= 0:
            logger.info(
                f"Seller rank {rank.value} earns no commission",
                extra={"order_id": order_id, "seller_id": seller_id},
            )
            return []

        path = await self.get_commission_path(seller_id, max_depth, fresh=True)
        lines = self.calculate_lines(path, base_rate, total_amount)
        if not lines:
            return []

        records: list[dict[str, Any]] = [
            {
                "user_id": line.user_id,
                "order_id": order_id,
                "amount": line.amount,
                "rate": line.rate,
                "level": line.level,
                "source_user_id": seller_id,
                "source_type": CommissionSourceType.PURCHASE.value,
                "status": CommissionStatus.PENDING.value,
            }
            for line in lines
        ]
        created = await self.commission_repo.create_many(records)

        logger.info(
            f"Distributed commission for order {order_id}",
            extra={
                "order_id": order_id,
                "seller_id": seller_id,
                "seller_rank": rank.value,
                "total_amount": str(total_amount),
                "recipients": chain_ids(path[: len(lines)]),
                "amounts": [str(line.amount) for line in lines],
            },
        )
        return created

    async def get_user_commission_stats(
        self, user_id: int, period: str = "month"
    ) -> dict[str, Any]:
        """
        Summarize a recipient's commissions since the period start.

        Args:
            user_id: Recipient
            period: day, week, month or year

        Returns:
            Dict with total, pending, paid, order_count and
            average_per_order
        """
        since = period_start(period)
        records = await self.commission_repo.find_by_user_since(user_id, since)

        total = Decimal("0")
        pending = Decimal("0")
        paid = Decimal("0")
        order_ids: set[int] = set()

        for record in records:
            amount = Decimal(record.amount)
            total += amount
            if record.status == CommissionStatus.PAID.value:
                paid += amount
            else:
                pending += amount
            order_ids.add(record.order_id)

        order_count = len(order_ids)
        average = (
            (total / order_count).quantize(MONEY_QUANTUM, rounding=ROUND_HALF_UP)
            if order_count
            else Decimal("0.00")
        )

        return {
            "period": period,
            "since": since,
            "total": total,
            "pending": pending,
            "paid": paid,
            "order_count": order_count,
            "average_per_order": average,
        }

    async def calculate_team_performance(
        self, user_id: int, start: datetime, end: datetime
    ) -> dict[str, Any]:
        """
        Summarize a team's purchases and paid commission in [start, end].

        The team is every direct child, direct referral and deeper
        member whose team path passes through user_id. Only COMPLETED
        orders placed by members and PAID commission earned by members
        are counted.

        Args:
            user_id: Team leader
            start: Inclusive window start
            end: Inclusive window end

        Returns:
            Dict with team_size, active_members, total_orders,
            total_amount and total_commission

        Raises:
            ValueError: If the window is empty or no order repository
                was configured
        """
        if start > end:
            raise ValueError(f"start {start} is after end {end}")
        if self.order_repo is None:
            raise ValueError("team performance needs an order repository")

        members = await self.participant_repo.find_team_members(user_id)
        member_ids = [member.id for member in members]
        active_members = sum(
            1 for member in members if member.status == ParticipantStatus.ACTIVE.value
        )

        orders = await self.order_repo.find_completed_by_buyers(
            member_ids, start, end
        )
        commissions = await self.commission_repo.find_paid_by_users(
            member_ids, start, end
        )

        total_amount = sum(
            (Decimal(order.total_amount) for order in orders), Decimal("0")
        )
        total_commission = sum(
            (Decimal(record.amount) for record in commissions), Decimal("0")
        )

        logger.debug(
            f"Team performance for {user_id}: {len(orders)} orders",
            extra={
                "user_id": user_id,
                "team_size": len(members),
                "total_amount": str(total_amount),
            },
        )

        return {
            "user_id": user_id,
            "start": start,
            "end": end,
            "team_size": len(members),
            "active_members": active_members,
            "total_orders": len(orders),
            "total_amount": total_amount,
            "total_commission": total_commission,
        }
