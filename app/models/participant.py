"""
Participant model.

Represents a member of the distribution hierarchy (team tree).
"""

from datetime import UTC, datetime
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.config.ranks import Rank
from app.models.base import Base
from app.models.enums import ParticipantStatus


TEAM_PATH_SEPARATOR = "/"


class Participant(Base):
    """
    Participant in the team tree.

    Rank and team placement are written by rank-upgrade and
    team-assignment workflows; the purchase engine only reads them.

    Attributes:
        id: Primary key
        rank: Rank value (see app.config.ranks.Rank)
        status: Account status
        parent_id: Direct upline in the team tree
        referrer_id: Upline used for commission distribution
        team_path: Ancestor ids, most distant first, "/1/4/9/"
    """

    __tablename__ = "participants"

    # Primary key
    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )

    username: Mapped[str | None] = mapped_column(
        String(255), nullable=True, index=True
    )

    rank: Mapped[str] = mapped_column(
        String(20), default=Rank.NORMAL.value, nullable=False, index=True
    )
    status: Mapped[str] = mapped_column(
        String(20),
        default=ParticipantStatus.ACTIVE.value,
        nullable=False,
        index=True,
    )

    # Hierarchy
    parent_id: Mapped[int | None] = mapped_column(
        ForeignKey("participants.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    referrer_id: Mapped[int | None] = mapped_column(
        ForeignKey("participants.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    team_path: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
        comment="Precomputed ancestor ids, most distant first",
    )

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(UTC), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
        nullable=False
    )

    # Relationships
    parent: Mapped[Optional["Participant"]] = relationship(
        "Participant",
        remote_side=[id],
        foreign_keys=[parent_id],
    )
    referrer: Mapped[Optional["Participant"]] = relationship(
        "Participant",
        remote_side=[id],
        foreign_keys=[referrer_id],
    )

    @property
    def is_active(self) -> bool:
        """Check if participant account is active."""
        return self.status == ParticipantStatus.ACTIVE.value

    def __repr__(self) -> str:
        return (
            f"<Participant(id={self.id}, rank={self.rank}, "
            f"status={self.status}, parent_id={self.parent_id})>"
        )


def parse_team_path(team_path: str | None) -> tuple[int, ...]:
    """
    Split a stored team path into ancestor ids, most distant first.

    Non-numeric segments are ignored.
    """
    if not team_path:
        return ()
    return tuple(
        int(segment)
        for segment in team_path.split(TEAM_PATH_SEPARATOR)
        if segment.strip().isdigit()
    )
