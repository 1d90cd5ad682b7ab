"""
Participant repository.

Data access layer for Participant model.
"""

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.participant import TEAM_PATH_SEPARATOR, Participant
from app.repositories.base import BaseRepository


class ParticipantRepository(BaseRepository[Participant]):
    """Participant repository (read-only for the purchase engine)."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize participant repository."""
        super().__init__(Participant, session)

    async def find_team_members(self, leader_id: int) -> list[Participant]:
        """
        Get everyone in a participant's team.

        A member is a direct child, a direct referral, or anyone whose
        team path passes through the leader.

        Args:
            leader_id: Team leader ID

        Returns:
            Team members, leader excluded
        """
        marker = f"{TEAM_PATH_SEPARATOR}{leader_id}{TEAM_PATH_SEPARATOR}"
        stmt = select(Participant).where(
            Participant.id != leader_id,
            or_(
                Participant.parent_id == leader_id,
                Participant.referrer_id == leader_id,
                Participant.team_path.contains(marker),
            ),
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
