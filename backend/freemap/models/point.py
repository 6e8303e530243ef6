"""Point model for user-submitted map annotations."""

from datetime import datetime

from sqlalchemy import Boolean, DateTime, Double, Index, Integer, String, Text, false
from sqlalchemy.orm import Mapped, mapped_column, relationship

from freemap.database import Base, utc_now


class Point(Base):
    """A geotagged message dropped onto the map.

    Points are never physically deleted. ``hidden`` only ever moves from
    False to True, either by owner deletion or by community downvotes.
    """

    __tablename__ = "points"
    __table_args__ = (Index("idx_points_hidden_created", "hidden", "created_at"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    # Position
    longitude: Mapped[float] = mapped_column(Double, nullable=False)
    latitude: Mapped[float] = mapped_column(Double, nullable=False)

    # Content
    body: Mapped[str] = mapped_column(Text, nullable=False)
    icon: Mapped[str] = mapped_column(String(64), nullable=False, default="", server_default="")

    # Ownership (opaque creator identity, e.g. a hashed email)
    created_by: Mapped[str] = mapped_column(String(255), nullable=False, index=True)

    # Moderation
    hidden: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=false()
    )

    # Timestamp
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utc_now,
        index=True,
    )

    # Relationships
    votes: Mapped[list["Vote"]] = relationship("Vote", back_populates="point")  # noqa: F821
