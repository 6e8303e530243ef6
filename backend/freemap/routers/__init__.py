"""API routers."""

from freemap.routers.health import router as health_router
from freemap.routers.metrics import router as metrics_router
from freemap.routers.points import router as points_router
from freemap.routers.verify import router as verify_router

__all__ = [
    "health_router",
    "metrics_router",
    "points_router",
    "verify_router",
]
