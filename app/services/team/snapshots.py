"""
Immutable participant views used by the team services.

Snapshots are what the lookup cache stores, so they are frozen and
detached from any database session.
"""

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

from app.config.ranks import Rank, parse_rank, rank_index
from app.models.enums import ParticipantStatus
from app.models.participant import parse_team_path


@dataclass(frozen=True, slots=True)
class ParticipantSnapshot:
    """Read-only copy of the participant fields the engine needs."""

    id: int
    rank: Rank
    status: str
    parent_id: int | None = None
    referrer_id: int | None = None
    team_path: tuple[int, ...] = ()

    @property
    def is_active(self) -> bool:
        return self.status == ParticipantStatus.ACTIVE.value

    @property
    def rank_index(self) -> int:
        return rank_index(self.rank)

    @classmethod
    def from_model(cls, participant: Any) -> "ParticipantSnapshot":
        """
        Build a snapshot from a Participant row (or any object with the
        same attributes).

        Raises:
            ValueError: If the stored rank is unknown
        """
        team_path = participant.team_path
        if isinstance(team_path, str) or team_path is None:
            path_ids = parse_team_path(team_path)
        else:
            path_ids = tuple(int(i) for i in team_path)

        status = participant.status
        if isinstance(status, ParticipantStatus):
            status = status.value

        return cls(
            id=participant.id,
            rank=parse_rank(participant.rank),
            status=status,
            parent_id=participant.parent_id,
            referrer_id=participant.referrer_id,
            team_path=path_ids,
        )


@dataclass(frozen=True, slots=True)
class AncestorMatch:
    """Nearest qualifying ancestor found by an upward search."""

    participant: ParticipantSnapshot
    rank: Rank
    path: tuple[int, ...]  # start id, then every ancestor walked, match last


@dataclass(frozen=True, slots=True)
class SupplierOption:
    """An ancestor a participant may restock from."""

    participant_id: int
    rank: Rank
    distance: int  # 1-based position in the ancestor chain


def chain_ids(chain: Iterable[ParticipantSnapshot]) -> list[int]:
    """Ids of a resolved chain, in chain order."""
    return [participant.id for participant in chain]
