"""Request schemas for the point endpoints."""

from dataclasses import dataclass

from pydantic import BaseModel, ConfigDict, Field, FiniteFloat, field_validator


class Coord(BaseModel):
    """A latitude/longitude pair as sent by the map front-end."""

    lat: FiniteFloat
    lng: FiniteFloat


@dataclass(frozen=True)
class BoundingBox:
    """A rectangular lat/lng region scoping a list request.

    Corners are normalised on construction so the box is the same
    whichever way round the caller supplied them. Edges are inclusive.
    """

    min_lng: float
    min_lat: float
    max_lng: float
    max_lat: float
    requested_by: str = ""

    @classmethod
    def from_corners(cls, ne: Coord, sw: Coord, requested_by: str = "") -> "BoundingBox":
        return cls(
            min_lng=min(ne.lng, sw.lng),
            min_lat=min(ne.lat, sw.lat),
            max_lng=max(ne.lng, sw.lng),
            max_lat=max(ne.lat, sw.lat),
            requested_by=requested_by,
        )

    def contains(self, lng: float, lat: float) -> bool:
        return self.min_lng <= lng <= self.max_lng and self.min_lat <= lat <= self.max_lat


def _utf8_encodable(v: str) -> str:
    """Reject text the database cannot store, such as lone surrogates."""
    try:
        v.encode("utf-8")
    except UnicodeEncodeError as e:
        raise ValueError("text must be valid UTF-8") from e
    return v


class NewPointRequest(BaseModel):
    """Request to drop a new point onto the map.

    ``created_by`` may be omitted when the caller holds a verified session.
    """

    coords: Coord
    created_by: str = Field(default="", max_length=255)
    message: str = Field(..., max_length=4000)
    icon: str = Field(default="", max_length=64)

    @field_validator("created_by", "icon")
    @classmethod
    def text_encodable(cls, v: str) -> str:
        return _utf8_encodable(v)

    @field_validator("message")
    @classmethod
    def message_not_blank(cls, v: str) -> str:
        """Reject messages that are empty after trimming or not storable."""
        v = _utf8_encodable(v).strip()
        if not v:
            raise ValueError("message must not be empty")
        return v


class BoundsRequest(BaseModel):
    """Request for the points visible inside the current map viewport."""

    model_config = ConfigDict(populate_by_name=True)

    requested_by: str = Field(default="", max_length=255)
    ne: Coord = Field(..., alias="NE")
    sw: Coord = Field(..., alias="SW")

    @field_validator("requested_by")
    @classmethod
    def text_encodable(cls, v: str) -> str:
        return _utf8_encodable(v)

    def to_box(self, requested_by: str | None = None) -> BoundingBox:
        """Box for this viewport; ``requested_by`` overrides the body's viewer."""
        viewer = self.requested_by if requested_by is None else requested_by
        return BoundingBox.from_corners(self.ne, self.sw, viewer)


class DeleteRequest(BaseModel):
    """Request by a point's owner to remove it from the map."""

    point_id: int
    created_by: str = Field(default="", max_length=255)

    @field_validator("created_by")
    @classmethod
    def text_encodable(cls, v: str) -> str:
        return _utf8_encodable(v)


class VoteRequest(BaseModel):
    """An up- or downvote; the direction comes from the route."""

    point_id: int
    voter: str = Field(default="", max_length=255)

    @field_validator("voter")
    @classmethod
    def text_encodable(cls, v: str) -> str:
        return _utf8_encodable(v)
