"""Persistence of point rows."""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta

from sqlalchemy import Select, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from freemap.database import utc_now
from freemap.exceptions import PersistenceError
from freemap.models import Point
from freemap.schemas.points import BoundingBox

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PointRecord:
    """A stored point as seen by one particular viewer."""

    id: int
    longitude: float
    latitude: float
    body: str
    icon: str
    created_at: datetime
    viewer_can_delete: bool = False
    hidden: bool = False


def visible_points_query(
    box: BoundingBox, requester_id: str, cutoff: datetime, limit: int
) -> Select:
    """Select visible points inside ``box`` created after ``cutoff``.

    ``can_delete`` is computed in SQL so creator identities never leave
    the database.
    """
    can_delete = (Point.created_by == requester_id).label("can_delete")
    return (
        select(
            Point.id,
            Point.longitude,
            Point.latitude,
            Point.body,
            Point.icon,
            Point.created_at,
            can_delete,
        )
        .where(Point.hidden.is_(False))
        .where(Point.created_at > cutoff)
        .where(Point.longitude.between(box.min_lng, box.max_lng))
        .where(Point.latitude.between(box.min_lat, box.max_lat))
        .limit(limit)
    )


class PointStore:
    """Creates, lists and soft-deletes points.

    Every operation opens its own session so the store can be shared
    between request handlers and background moderation workers.
    """

    def __init__(self, session_maker: async_sessionmaker[AsyncSession]):
        self._session_maker = session_maker

    async def create(
        self, longitude: float, latitude: float, body: str, icon: str, creator_id: str
    ) -> tuple[int, datetime]:
        """Insert a new visible point. Returns its id and creation time."""
        point = Point(
            longitude=longitude,
            latitude=latitude,
            body=body,
            icon=icon,
            created_by=creator_id,
            hidden=False,
            created_at=utc_now(),
        )
        try:
            async with self._session_maker() as db:
                db.add(point)
                await db.commit()
        except SQLAlchemyError as e:
            raise PersistenceError("create point", e) from e

        logger.debug(f"Created point {point.id} at ({longitude}, {latitude})")
        return point.id, point.created_at

    async def list_visible(
        self, box: BoundingBox, requester_id: str, max_age: timedelta, limit: int
    ) -> list[PointRecord]:
        """Visible points inside ``box`` no older than ``max_age``, at most ``limit``."""
        query = visible_points_query(box, requester_id, utc_now() - max_age, limit)
        try:
            async with self._session_maker() as db:
                result = await db.execute(query)
                rows = result.all()
        except SQLAlchemyError as e:
            raise PersistenceError("list points", e) from e

        return [
            PointRecord(
                id=row.id,
                longitude=row.longitude,
                latitude=row.latitude,
                body=row.body,
                icon=row.icon,
                created_at=row.created_at,
                viewer_can_delete=bool(row.can_delete),
            )
            for row in rows
        ]

    async def get(self, point_id: int) -> PointRecord | None:
        """Fetch a point regardless of visibility."""
        try:
            async with self._session_maker() as db:
                result = await db.execute(select(Point).where(Point.id == point_id))
                point = result.scalar()
        except SQLAlchemyError as e:
            raise PersistenceError("get point", e) from e

        if point is None:
            return None
        return PointRecord(
            id=point.id,
            longitude=point.longitude,
            latitude=point.latitude,
            body=point.body,
            icon=point.icon,
            created_at=point.created_at,
            hidden=point.hidden,
        )

    async def hide(self, point_id: int) -> bool:
        """Hide a point. Idempotent; returns True only if it was visible before."""
        stmt = (
            update(Point)
            .where(Point.id == point_id)
            .where(Point.hidden.is_(False))
            .values(hidden=True)
        )
        try:
            async with self._session_maker() as db:
                result = await db.execute(stmt)
                await db.commit()
        except SQLAlchemyError as e:
            raise PersistenceError("hide point", e) from e

        return result.rowcount > 0

    async def soft_delete_by_owner(self, point_id: int, requester_id: str) -> bool:
        """Hide a point on behalf of its creator.

        A requester who is not the creator (or an unknown id) is a silent
        no-op; callers cannot tell the two apart. Returns True if a visible
        point was hidden, for logging only.
        """
        stmt = (
            update(Point)
            .where(Point.id == point_id)
            .where(Point.created_by == requester_id)
            .where(Point.hidden.is_(False))
            .values(hidden=True)
        )
        try:
            async with self._session_maker() as db:
                result = await db.execute(stmt)
                await db.commit()
        except SQLAlchemyError as e:
            raise PersistenceError("delete point", e) from e

        return result.rowcount > 0
