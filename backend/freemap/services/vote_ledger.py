"""Vote ledger: one vote per voter per point, and score aggregation."""

import enum
import logging

from sqlalchemy import func, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from freemap.database import utc_now
from freemap.exceptions import PersistenceError, PointValidationError
from freemap.models import Vote
from freemap.models.vote import VOTE_UNIQUE_CONSTRAINT

logger = logging.getLogger(__name__)

VALID_VOTE_VALUES = (1, -1)


class VoteOutcome(str, enum.Enum):
    """Result of casting a vote."""

    RECORDED = "recorded"
    ALREADY_VOTED = "already_voted"


class VoteLedger:
    """Append-only record of per-voter-per-point judgments.

    Duplicate votes are rejected by the unique index on
    (voter_id, point_id), never by an application lock, so the ledger
    stays correct with any number of service instances.
    """

    def __init__(self, session_maker: async_sessionmaker[AsyncSession]):
        self._session_maker = session_maker

    async def cast_vote(self, voter_id: str, point_id: int, value: int) -> VoteOutcome:
        """Record a vote unless this voter already voted on this point."""
        if value not in VALID_VOTE_VALUES:
            raise PointValidationError(f"vote value must be +1 or -1, got {value}")

        stmt = (
            pg_insert(Vote)
            .values(voter_id=voter_id, point_id=point_id, value=value, created_at=utc_now())
            .on_conflict_do_nothing(index_elements=["voter_id", "point_id"])
        )
        try:
            async with self._session_maker() as db:
                result = await db.execute(stmt)
                await db.commit()
        except IntegrityError as e:
            # A concurrent insert that lost the race on the unique index
            if VOTE_UNIQUE_CONSTRAINT in str(e):
                logger.debug(f"Duplicate vote by {voter_id} on point {point_id} ignored")
                return VoteOutcome.ALREADY_VOTED
            raise PersistenceError("cast vote", e) from e
        except SQLAlchemyError as e:
            raise PersistenceError("cast vote", e) from e

        if result.rowcount == 0:
            logger.debug(f"Duplicate vote by {voter_id} on point {point_id} ignored")
            return VoteOutcome.ALREADY_VOTED
        return VoteOutcome.RECORDED

    async def score_for(self, point_id: int) -> int:
        """Sum of all recorded vote values for a point (0 if none)."""
        query = select(func.coalesce(func.sum(Vote.value), 0)).where(Vote.point_id == point_id)
        try:
            async with self._session_maker() as db:
                result = await db.execute(query)
                score = result.scalar()
        except SQLAlchemyError as e:
            raise PersistenceError("score point", e) from e

        return int(score or 0)
