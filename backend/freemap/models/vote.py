"""Vote model: one judgment per voter per point."""

from datetime import datetime

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Integer,
    SmallInteger,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from freemap.database import Base, utc_now

VOTE_UNIQUE_CONSTRAINT = "uq_votes_voter_point"


class Vote(Base):
    """An up (+1) or down (-1) vote on a point.

    Votes are append-only: never updated, never retracted.
    """

    __tablename__ = "votes"
    __table_args__ = (
        UniqueConstraint("voter_id", "point_id", name=VOTE_UNIQUE_CONSTRAINT),
        CheckConstraint("value IN (1, -1)", name="ck_votes_value"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    voter_id: Mapped[str] = mapped_column(String(255), nullable=False)
    point_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("points.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    value: Mapped[int] = mapped_column(SmallInteger, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utc_now,
    )

    # Relationships
    point: Mapped["Point"] = relationship("Point", back_populates="votes")  # noqa: F821
