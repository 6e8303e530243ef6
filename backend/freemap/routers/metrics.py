"""Prometheus metrics endpoint."""

from datetime import UTC, datetime, timedelta

from fastapi import APIRouter, Depends, Request
from fastapi.responses import PlainTextResponse
from prometheus_client import CONTENT_TYPE_LATEST, CollectorRegistry, Gauge, generate_latest
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from freemap.database import get_db
from freemap.models import Point, Vote
from freemap.services.point_service import PointService

router = APIRouter(tags=["metrics"])


async def collect_metrics(db: AsyncSession, service: PointService) -> bytes:
    """Collect all metrics and return Prometheus format."""
    registry = CollectorRegistry()

    points_visible = Gauge(
        "freemap_points_visible",
        "Visible points inside the listing recency window",
        registry=registry,
    )
    points_hidden = Gauge(
        "freemap_points_hidden",
        "Points hidden by their owner or by community vote",
        registry=registry,
    )
    votes_total = Gauge(
        "freemap_votes_total",
        "Recorded votes by value",
        ["value"],
        registry=registry,
    )
    queue_depth = Gauge(
        "freemap_moderation_queue_depth",
        "Hide-checks waiting for a moderation worker",
        registry=registry,
    )

    cutoff = datetime.now(UTC) - timedelta(hours=service.settings.recency_hours)

    visible_count = await db.execute(
        select(func.count())
        .select_from(Point)
        .where(Point.hidden.is_(False), Point.created_at > cutoff)
    )
    points_visible.set(visible_count.scalar() or 0)

    hidden_count = await db.execute(
        select(func.count()).select_from(Point).where(Point.hidden.is_(True))
    )
    points_hidden.set(hidden_count.scalar() or 0)

    vote_counts = await db.execute(
        select(Vote.value, func.count()).group_by(Vote.value)
    )
    for value, count in vote_counts.all():
        votes_total.labels(value="up" if value > 0 else "down").set(count)

    queue_depth.set(service.worker.pending)

    return generate_latest(registry)


@router.get("/metrics", response_class=PlainTextResponse)
async def prometheus_metrics(
    request: Request, db: AsyncSession = Depends(get_db)
) -> PlainTextResponse:
    """Prometheus metrics endpoint."""
    metrics_data = await collect_metrics(db, request.app.state.point_service)
    return PlainTextResponse(content=metrics_data, media_type=CONTENT_TYPE_LATEST)
