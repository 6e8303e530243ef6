"""SQLAlchemy ORM models."""

from freemap.models.point import Point
from freemap.models.user import SessionCookie, User
from freemap.models.vote import Vote

__all__ = [
    "Point",
    "SessionCookie",
    "User",
    "Vote",
]
