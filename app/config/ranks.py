"""
Single source of truth for participant ranks.

Ranks form a total order; comparisons always use the ordinal index in
RANK_ORDER. Every rank must have an entry in RANK_BENEFITS, which is
checked when this module is imported.
"""

from decimal import Decimal
from enum import Enum
from typing import NamedTuple

from app.utils.exceptions import RankConfigurationError


class Rank(str, Enum):
    """Participant ranks, lowest first."""

    NORMAL = "NORMAL"
    VIP = "VIP"
    STAR_1 = "STAR_1"
    STAR_2 = "STAR_2"
    STAR_3 = "STAR_3"
    STAR_4 = "STAR_4"
    STAR_5 = "STAR_5"
    DIRECTOR = "DIRECTOR"


class RankBenefits(NamedTuple):
    """Per-rank commission and purchase settings."""

    base_commission_rate: Decimal  # Rate paid at commission level 1
    default_max_quantity: int  # Per-order quantity cap for a buyer of this rank
    display_name: str


RANK_ORDER: tuple[Rank, ...] = tuple(Rank)

RANK_BENEFITS: dict[Rank, RankBenefits] = {
    Rank.NORMAL: RankBenefits(Decimal("0"), 5, "Normal member"),
    Rank.VIP: RankBenefits(Decimal("0.05"), 10, "VIP member"),
    Rank.STAR_1: RankBenefits(Decimal("0.08"), 20, "1-star manager"),
    Rank.STAR_2: RankBenefits(Decimal("0.10"), 20, "2-star manager"),
    Rank.STAR_3: RankBenefits(Decimal("0.12"), 20, "3-star manager"),
    Rank.STAR_4: RankBenefits(Decimal("0.14"), 20, "4-star manager"),
    Rank.STAR_5: RankBenefits(Decimal("0.16"), 20, "5-star manager"),
    Rank.DIRECTOR: RankBenefits(Decimal("0.20"), 20, "Director"),
}


def validate_rank_benefits(
    table: dict[Rank, RankBenefits] = RANK_BENEFITS,
) -> None:
    """
    Ensure the benefit table covers every rank with sane values.

    Raises:
        RankConfigurationError: If a rank is missing or misconfigured
    """
    missing = [rank.value for rank in Rank if rank not in table]
    if missing:
        raise RankConfigurationError(
            f"Rank benefit table is missing ranks: {', '.join(missing)}"
        )

    for rank, benefits in table.items():
        if not Decimal("0") <= benefits.base_commission_rate < Decimal("1"):
            raise RankConfigurationError(
                f"Commission rate for {rank.value} must be in [0, 1)"
            )
        if benefits.default_max_quantity <= 0:
            raise RankConfigurationError(
                f"Default max quantity for {rank.value} must be positive"
            )


def parse_rank(value: str | Rank) -> Rank:
    """
    Convert a stored rank value to Rank.

    Raises:
        ValueError: If value is not a known rank
    """
    if isinstance(value, Rank):
        return value
    return Rank(value)


def rank_index(rank: str | Rank) -> int:
    """Ordinal position of a rank (NORMAL = 0, DIRECTOR = 7)."""
    return RANK_ORDER.index(parse_rank(rank))


class RankBenefitTable:
    """
    Lookup over a rank benefit mapping.

    Wraps RANK_BENEFITS by default; tests and alternative programmes
    can pass their own mapping, which is validated on construction.
    """

    def __init__(
        self, benefits: dict[Rank, RankBenefits] | None = None
    ) -> None:
        self._benefits = benefits if benefits is not None else RANK_BENEFITS
        validate_rank_benefits(self._benefits)

    def base_commission_rate(self, rank: str | Rank) -> Decimal:
        return self._benefits[parse_rank(rank)].base_commission_rate

    def default_max_quantity(self, rank: str | Rank) -> int:
        return self._benefits[parse_rank(rank)].default_max_quantity


validate_rank_benefits()
