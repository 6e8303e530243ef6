"""Point lifecycle: submit, list, delete and vote, with score-driven hiding."""

import logging
import math
from datetime import timedelta

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from freemap.config import Settings
from freemap.exceptions import PersistenceError, PointValidationError
from freemap.schemas.geo import PointFeature, feature_from_record
from freemap.schemas.points import BoundingBox
from freemap.services.links import linkify
from freemap.services.moderation import ModerationPolicy, ModerationWorker
from freemap.services.point_store import PointRecord, PointStore
from freemap.services.vote_ledger import VoteLedger, VoteOutcome

logger = logging.getLogger(__name__)


class PointService:
    """Orchestrates the point store, vote ledger and moderation policy.

    Submit and list surface storage failures to the caller. Delete and vote
    are best-effort: failures are logged and the caller gets an empty
    response either way.
    """

    def __init__(
        self,
        store: PointStore,
        ledger: VoteLedger,
        policy: ModerationPolicy,
        settings: Settings,
    ):
        self.store = store
        self.ledger = ledger
        self.policy = policy
        self.settings = settings
        self.worker = ModerationWorker(
            self.check_and_hide,
            workers=settings.moderation_workers,
            queue_size=settings.moderation_queue_size,
        )

    async def start(self) -> None:
        await self.worker.start()

    async def stop(self) -> None:
        await self.worker.stop()

    async def submit(
        self, longitude: float, latitude: float, message: str, icon: str, created_by: str
    ) -> list[PointFeature]:
        """Store a new point and return it as a one-element feature list."""
        if not (math.isfinite(longitude) and math.isfinite(latitude)):
            raise PointValidationError("coordinates must be finite numbers")
        body = message.strip()
        if not body:
            raise PointValidationError("message must not be empty")

        body = linkify(body, self.settings.link_hosts)
        point_id, created_at = await self.store.create(
            longitude, latitude, body, icon, created_by
        )
        logger.info(f"Point {point_id} submitted at ({longitude}, {latitude})")

        record = PointRecord(
            id=point_id,
            longitude=longitude,
            latitude=latitude,
            body=body,
            icon=icon,
            created_at=created_at,
            viewer_can_delete=True,
        )
        return [feature_from_record(record)]

    async def list_points(self, box: BoundingBox) -> list[PointFeature]:
        """Visible, recent points inside the viewport."""
        records = await self.store.list_visible(
            box,
            box.requested_by,
            timedelta(hours=self.settings.recency_hours),
            self.settings.list_limit,
        )
        return [feature_from_record(record) for record in records]

    async def delete(self, point_id: int, created_by: str) -> None:
        """Owner-initiated soft delete. Never reports whether anything happened."""
        try:
            deleted = await self.store.soft_delete_by_owner(point_id, created_by)
        except PersistenceError as e:
            logger.error(f"Failed to delete point {point_id}: {e}")
            return

        if deleted:
            logger.info(f"Point {point_id} deleted by its owner")
        else:
            logger.debug(f"Delete of point {point_id} ignored (not owner, missing or hidden)")

    async def vote(self, point_id: int, voter: str, value: int) -> VoteOutcome | None:
        """Cast a vote and, if it counted, queue a hide-check.

        Returns the outcome, or None when storage failed.
        """
        try:
            outcome = await self.ledger.cast_vote(voter, point_id, value)
        except PersistenceError as e:
            logger.error(f"Failed to record vote on point {point_id}: {e}")
            return None

        if outcome is VoteOutcome.RECORDED:
            self.worker.submit(point_id)
        return outcome

    async def check_and_hide(self, point_id: int) -> bool:
        """Recompute the score and hide the point if the policy says so."""
        score = await self.ledger.score_for(point_id)
        if not self.policy.should_hide(score):
            return False

        hidden = await self.store.hide(point_id)
        if hidden:
            logger.info(f"Point {point_id} hidden by community vote (score {score})")
        return hidden


def build_point_service(
    settings: Settings, session_maker: async_sessionmaker[AsyncSession]
) -> PointService:
    """Wire the service and its collaborators from explicit configuration."""
    return PointService(
        store=PointStore(session_maker),
        ledger=VoteLedger(session_maker),
        policy=ModerationPolicy(hide_threshold=settings.hide_threshold),
        settings=settings,
    )
