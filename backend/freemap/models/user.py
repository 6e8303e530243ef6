"""Verified identities and their session cookies.

These tables are owned by the email verification flow. The point service
only reads them to answer "is this session verified" and "is this identity
banned".
"""

from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, String, UniqueConstraint, false
from sqlalchemy.orm import Mapped, mapped_column, relationship

from freemap.database import Base, utc_now


class User(Base):
    """An email identity, stored as salted hashes of its local part and domain."""

    __tablename__ = "users"
    __table_args__ = (UniqueConstraint("username", "domain", name="uq_users_username_domain"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    username: Mapped[str] = mapped_column(String(255), nullable=False)
    domain: Mapped[str] = mapped_column(String(255), nullable=False)
    banned: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=false()
    )

    # Pending verification code
    code: Mapped[str | None] = mapped_column(String(64), index=True)
    code_created_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    cookies: Mapped[list["SessionCookie"]] = relationship(
        "SessionCookie", back_populates="user"
    )


class SessionCookie(Base):
    """A browser session issued after a verification code was redeemed."""

    __tablename__ = "cookies"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    cookie: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utc_now,
    )

    user: Mapped["User"] = relationship("User", back_populates="cookies")
