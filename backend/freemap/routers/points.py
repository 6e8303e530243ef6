"""Point endpoints used by the map front-end."""

from fastapi import APIRouter, Depends, Request, Response

from freemap.auth.verification import (
    effective_identity,
    optional_session_identity,
    require_session_identity,
)
from freemap.schemas.geo import PointFeature
from freemap.schemas.points import BoundsRequest, DeleteRequest, NewPointRequest, VoteRequest
from freemap.services.point_service import PointService

router = APIRouter(prefix="/api/v1", tags=["points"])


def get_point_service(request: Request) -> PointService:
    """Dependency returning the service built at startup."""
    return request.app.state.point_service


@router.post("/point", response_model=list[PointFeature])
async def submit_point(
    body: NewPointRequest,
    service: PointService = Depends(get_point_service),
    identity: str | None = Depends(require_session_identity),
) -> list[PointFeature]:
    """Drop a new point on the map. Returns it as a one-element feature list."""
    return await service.submit(
        longitude=body.coords.lng,
        latitude=body.coords.lat,
        message=body.message,
        icon=body.icon,
        created_by=effective_identity(body.created_by, identity, "created_by"),
    )


@router.post("/points", response_model=list[PointFeature])
async def list_points(
    body: BoundsRequest,
    service: PointService = Depends(get_point_service),
    identity: str | None = Depends(optional_session_identity),
) -> list[PointFeature]:
    """List recent visible points inside the NE/SW viewport."""
    return await service.list_points(body.to_box(requested_by=identity))


@router.post("/delete")
async def delete_point(
    body: DeleteRequest,
    service: PointService = Depends(get_point_service),
    identity: str | None = Depends(require_session_identity),
) -> Response:
    """Hide a point if the caller created it. The response is empty either way."""
    created_by = effective_identity(body.created_by, identity, "created_by")
    await service.delete(body.point_id, created_by)
    return Response(status_code=200)


async def _cast(
    body: VoteRequest, value: int, service: PointService, identity: str | None
) -> Response:
    voter = effective_identity(body.voter, identity, "voter")
    await service.vote(body.point_id, voter, value)
    return Response(status_code=200)


@router.post("/upvote")
async def upvote_point(
    body: VoteRequest,
    service: PointService = Depends(get_point_service),
    identity: str | None = Depends(require_session_identity),
) -> Response:
    """Upvote a point. Repeat votes are silently ignored."""
    return await _cast(body, 1, service, identity)


@router.post("/downvote")
async def downvote_point(
    body: VoteRequest,
    service: PointService = Depends(get_point_service),
    identity: str | None = Depends(require_session_identity),
) -> Response:
    """Downvote a point. Enough downvotes hide it for everyone."""
    return await _cast(body, -1, service, identity)
