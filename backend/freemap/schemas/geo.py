"""GeoJSON-style wire representation of points."""

from datetime import UTC, datetime
from typing import Literal

from pydantic import BaseModel

from freemap.services.point_store import PointRecord


class Geometry(BaseModel):
    """Point geometry; coordinates are [lng, lat] as GeoJSON requires."""

    type: Literal["Point"] = "Point"
    coordinates: tuple[float, float]


class FeatureProperties(BaseModel):
    """Display properties of a point."""

    point_id: str
    icon: str
    message: str
    created_at: str


class PointFeature(BaseModel):
    """A point as rendered on the map, with the per-viewer delete flag."""

    can_delete: bool
    type: Literal["Feature"] = "Feature"
    properties: FeatureProperties
    geometry: Geometry


def format_timestamp(ts: datetime) -> str:
    """Render ISO-8601 with seconds precision and an explicit UTC offset."""
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=UTC)
    return ts.isoformat(timespec="seconds")


def feature_from_record(record: PointRecord) -> PointFeature:
    """Project a stored point onto the wire representation."""
    return PointFeature(
        can_delete=record.viewer_can_delete,
        properties=FeatureProperties(
            point_id=str(record.id),
            icon=record.icon,
            message=record.body,
            created_at=format_timestamp(record.created_at),
        ),
        geometry=Geometry(coordinates=(record.longitude, record.latitude)),
    )
