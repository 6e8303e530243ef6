"""Tests for PointStore against a mocked async session."""

from datetime import UTC, datetime, timedelta
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest
from sqlalchemy.dialects import postgresql
from sqlalchemy.exc import OperationalError

from freemap.exceptions import PersistenceError
from freemap.models import Point
from freemap.schemas.points import BoundingBox
from freemap.services.point_store import PointStore, visible_points_query

from conftest import mock_db, mock_session_maker

BOX = BoundingBox(min_lng=-75, min_lat=40, max_lng=-73, max_lat=41, requested_by="u1")


def _compile(query) -> str:
    return str(query.compile(dialect=postgresql.dialect()))


class TestVisiblePointsQuery:
    """Tests for the list query shape."""

    def test_filters_hidden_and_age(self):
        sql = _compile(visible_points_query(BOX, "u1", datetime.now(UTC), 500))
        assert "points.hidden IS false" in sql
        assert "points.created_at >" in sql

    def test_filters_box_inclusively(self):
        sql = _compile(visible_points_query(BOX, "u1", datetime.now(UTC), 500))
        assert "points.longitude BETWEEN" in sql
        assert "points.latitude BETWEEN" in sql

    def test_limit_applied(self):
        sql = _compile(visible_points_query(BOX, "u1", datetime.now(UTC), 500))
        assert "LIMIT" in sql

    def test_creator_not_selected(self):
        query = visible_points_query(BOX, "u1", datetime.now(UTC), 500)
        names = [c.name for c in query.selected_columns]
        assert "created_by" not in names
        assert "can_delete" in names


class TestCreate:
    """Tests for PointStore.create."""

    async def test_create_returns_id_and_timestamp(self):
        db = mock_db()

        async def assign_id():
            db.add.call_args[0][0].id = 17

        db.commit.side_effect = assign_id
        store = PointStore(mock_session_maker(db))

        point_id, created_at = await store.create(-74.0, 40.7, "hi", "flag", "u1")

        assert point_id == 17
        assert created_at.tzinfo is not None
        added = db.add.call_args[0][0]
        assert isinstance(added, Point)
        assert added.hidden is False
        assert added.created_by == "u1"
        assert (added.longitude, added.latitude) == (-74.0, 40.7)

    async def test_create_wraps_storage_errors(self):
        db = mock_db()
        db.commit.side_effect = OperationalError("INSERT", {}, Exception("connection refused"))
        store = PointStore(mock_session_maker(db))

        with pytest.raises(PersistenceError) as exc_info:
            await store.create(0, 0, "hi", "", "u1")
        assert exc_info.value.operation == "create point"


class TestListVisible:
    """Tests for PointStore.list_visible."""

    async def test_maps_rows_to_records(self):
        now = datetime.now(UTC)
        result = MagicMock()
        result.all.return_value = [
            SimpleNamespace(
                id=1, longitude=-74.0, latitude=40.5, body="a", icon="", created_at=now,
                can_delete=True,
            ),
            SimpleNamespace(
                id=2, longitude=-73.5, latitude=40.9, body="b", icon="x", created_at=now,
                can_delete=None,
            ),
        ]
        store = PointStore(mock_session_maker(mock_db(result)))

        records = await store.list_visible(BOX, "u1", timedelta(hours=12), 500)

        assert [r.id for r in records] == [1, 2]
        assert records[0].viewer_can_delete is True
        assert records[1].viewer_can_delete is False

    async def test_list_wraps_storage_errors(self):
        db = mock_db()
        db.execute.side_effect = OperationalError("SELECT", {}, Exception("timeout"))
        store = PointStore(mock_session_maker(db))

        with pytest.raises(PersistenceError):
            await store.list_visible(BOX, "u1", timedelta(hours=12), 500)


class TestHideAndDelete:
    """Tests for hide and soft_delete_by_owner."""

    async def test_hide_reports_transition(self):
        store = PointStore(mock_session_maker(mock_db(MagicMock(rowcount=1))))
        assert await store.hide(5) is True

    async def test_hide_already_hidden(self):
        store = PointStore(mock_session_maker(mock_db(MagicMock(rowcount=0))))
        assert await store.hide(5) is False

    async def test_hide_only_touches_visible_rows(self):
        db = mock_db(MagicMock(rowcount=1))
        store = PointStore(mock_session_maker(db))
        await store.hide(5)
        sql = _compile(db.execute.call_args[0][0])
        assert sql.startswith("UPDATE points SET hidden=")
        assert "points.hidden IS false" in sql
        db.commit.assert_awaited_once()

    async def test_delete_requires_owner(self):
        db = mock_db(MagicMock(rowcount=0))
        store = PointStore(mock_session_maker(db))
        assert await store.soft_delete_by_owner(5, "someone-else") is False
        sql = _compile(db.execute.call_args[0][0])
        assert "points.created_by =" in sql

    async def test_delete_by_owner(self):
        store = PointStore(mock_session_maker(mock_db(MagicMock(rowcount=1))))
        assert await store.soft_delete_by_owner(5, "u1") is True

    async def test_delete_wraps_storage_errors(self):
        db = mock_db()
        db.execute.side_effect = OperationalError("UPDATE", {}, Exception("down"))
        store = PointStore(mock_session_maker(db))
        with pytest.raises(PersistenceError):
            await store.soft_delete_by_owner(5, "u1")


class TestGet:
    """Tests for PointStore.get."""

    async def test_missing_point(self):
        result = MagicMock()
        result.scalar.return_value = None
        store = PointStore(mock_session_maker(mock_db(result)))
        assert await store.get(99) is None

    async def test_hidden_point_returned(self):
        point = Point(
            id=3, longitude=1.0, latitude=2.0, body="b", icon="", created_by="u1",
            hidden=True, created_at=datetime.now(UTC),
        )
        result = MagicMock()
        result.scalar.return_value = point
        store = PointStore(mock_session_maker(mock_db(result)))

        record = await store.get(3)
        assert record.id == 3
        assert record.hidden is True
