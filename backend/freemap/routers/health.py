"""Health check endpoint."""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from freemap import __version__
from freemap.database import get_db

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


@router.get("/health")
async def health(db: AsyncSession = Depends(get_db)) -> dict:
    """Report service status and database reachability."""
    try:
        await db.execute(text("SELECT 1"))
        database_connected = True
    except SQLAlchemyError as e:
        logger.warning(f"Health check could not reach the database: {e}")
        database_connected = False

    return {
        "status": "ok" if database_connected else "degraded",
        "version": __version__,
        "database_connected": database_connected,
    }
