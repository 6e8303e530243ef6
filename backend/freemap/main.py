"""Main FastAPI application."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from freemap import __version__
from freemap.auth.verification import DatabaseVerificationGate
from freemap.config import get_settings
from freemap.database import async_session_maker, close_db, init_db
from freemap.exceptions import (
    PersistenceError,
    PointValidationError,
    persistence_handler,
    point_validation_handler,
    request_validation_handler,
)
from freemap.routers import health_router, metrics_router, points_router, verify_router
from freemap.services.point_service import build_point_service

settings = get_settings()

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    # Startup
    logger.info("Starting freemap...")

    await init_db()
    logger.info("Database initialized")

    point_service = build_point_service(settings, async_session_maker)
    await point_service.start()
    app.state.point_service = point_service
    app.state.verification_gate = DatabaseVerificationGate(async_session_maker)
    logger.info(
        f"Point service started (hide threshold {settings.hide_threshold}, "
        f"verification {'required' if settings.require_verification else 'optional'})"
    )

    yield

    # Shutdown
    logger.info("Shutting down freemap...")

    await point_service.stop()
    await close_db()

    logger.info("Shutdown complete")


# Create FastAPI application
app = FastAPI(
    title="freemap",
    description="Anonymous geotagged messages with community moderation",
    version=__version__,
    lifespan=lifespan,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Error mapping
app.add_exception_handler(RequestValidationError, request_validation_handler)
app.add_exception_handler(PointValidationError, point_validation_handler)
app.add_exception_handler(PersistenceError, persistence_handler)

# Include routers
app.include_router(health_router)
app.include_router(metrics_router)
app.include_router(points_router)
app.include_router(verify_router)


@app.get("/")
async def root():
    """Root endpoint - shows API info."""
    return {
        "name": "freemap",
        "version": __version__,
        "docs": "/docs",
        "health": "/health",
        "metrics": "/metrics",
    }
