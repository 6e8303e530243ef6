"""Shared test helpers: mocked sessions and in-memory collaborators."""

from datetime import datetime, timedelta
from unittest.mock import AsyncMock, MagicMock

import pytest

from freemap.config import Settings
from freemap.database import utc_now
from freemap.exceptions import PointValidationError
from freemap.schemas.points import BoundingBox
from freemap.services.moderation import ModerationPolicy
from freemap.services.point_service import PointService
from freemap.services.point_store import PointRecord
from freemap.services.vote_ledger import VoteOutcome


def mock_session_maker(db):
    """Wrap a mock session so ``async with maker() as db`` yields it."""
    ctx = MagicMock()
    ctx.__aenter__ = AsyncMock(return_value=db)
    ctx.__aexit__ = AsyncMock(return_value=False)
    return MagicMock(return_value=ctx)


def mock_db(result=None):
    """A mock AsyncSession whose execute() returns ``result``."""
    db = AsyncMock()
    db.add = MagicMock()
    db.commit = AsyncMock()
    db.execute = AsyncMock(return_value=result if result is not None else MagicMock())
    return db


class FakePointStore:
    """Dict-backed stand-in for PointStore with the same contract."""

    def __init__(self):
        self.rows: dict[int, dict] = {}
        self.hide_calls: list[int] = []
        self._next_id = 1

    async def create(self, longitude, latitude, body, icon, creator_id):
        point_id = self._next_id
        self._next_id += 1
        created_at = utc_now()
        self.rows[point_id] = {
            "longitude": longitude,
            "latitude": latitude,
            "body": body,
            "icon": icon,
            "created_by": creator_id,
            "created_at": created_at,
            "hidden": False,
        }
        return point_id, created_at

    def backdate(self, point_id: int, age: timedelta) -> None:
        self.rows[point_id]["created_at"] = utc_now() - age

    async def list_visible(self, box: BoundingBox, requester_id, max_age, limit):
        cutoff: datetime = utc_now() - max_age
        records = [
            PointRecord(
                id=point_id,
                longitude=row["longitude"],
                latitude=row["latitude"],
                body=row["body"],
                icon=row["icon"],
                created_at=row["created_at"],
                viewer_can_delete=row["created_by"] == requester_id,
            )
            for point_id, row in self.rows.items()
            if not row["hidden"]
            and row["created_at"] > cutoff
            and box.contains(row["longitude"], row["latitude"])
        ]
        return records[:limit]

    async def get(self, point_id):
        row = self.rows.get(point_id)
        if row is None:
            return None
        return PointRecord(
            id=point_id,
            longitude=row["longitude"],
            latitude=row["latitude"],
            body=row["body"],
            icon=row["icon"],
            created_at=row["created_at"],
            hidden=row["hidden"],
        )

    async def hide(self, point_id):
        self.hide_calls.append(point_id)
        row = self.rows.get(point_id)
        if row is None or row["hidden"]:
            return False
        row["hidden"] = True
        return True

    async def soft_delete_by_owner(self, point_id, requester_id):
        row = self.rows.get(point_id)
        if row is None or row["hidden"] or row["created_by"] != requester_id:
            return False
        row["hidden"] = True
        return True


class FakeVoteLedger:
    """Set-backed stand-in for VoteLedger enforcing one vote per pair."""

    def __init__(self):
        self.votes: dict[tuple[str, int], int] = {}

    async def cast_vote(self, voter_id, point_id, value):
        if value not in (1, -1):
            raise PointValidationError("bad vote value")
        key = (voter_id, point_id)
        if key in self.votes:
            return VoteOutcome.ALREADY_VOTED
        self.votes[key] = value
        return VoteOutcome.RECORDED

    async def score_for(self, point_id):
        return sum(v for (_, pid), v in self.votes.items() if pid == point_id)


class FakeGate:
    """Verification gate answering from a cookie-to-user map and a ban set."""

    def __init__(self, sessions=None, banned=()):
        self.sessions = dict(sessions or {})
        self.banned = set(banned)

    async def is_banned(self, identity):
        return identity in self.banned

    async def session_identity(self, session_token):
        return self.sessions.get(session_token)

    async def is_verified_session(self, session_token):
        identity = self.sessions.get(session_token)
        return identity is not None and identity not in self.banned


@pytest.fixture
def settings():
    """Settings with defaults, independent of any local .env."""
    return Settings(_env_file=None, database_url="sqlite+aiosqlite:///test.db")


@pytest.fixture
def store():
    return FakePointStore()


@pytest.fixture
def ledger():
    return FakeVoteLedger()


@pytest.fixture
def service(store, ledger, settings):
    """PointService wired to in-memory collaborators."""
    return PointService(store, ledger, ModerationPolicy(settings.hide_threshold), settings)
