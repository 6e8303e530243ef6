"""Database engine, session management and schema migration."""

import asyncio
import logging
from collections.abc import AsyncGenerator
from datetime import UTC, datetime
from pathlib import Path

from alembic import command
from alembic.config import Config
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from freemap.config import get_settings

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    """Return the current UTC time as a timezone-aware datetime."""
    return datetime.now(UTC)


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""

    pass


settings = get_settings()

engine = create_async_engine(
    settings.database_url,
    echo=settings.debug,
    pool_pre_ping=True,
    pool_size=10,
    max_overflow=20,
)

async_session_maker = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Dependency that provides a database session."""
    async with async_session_maker() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


BACKEND_DIR = Path(__file__).resolve().parent.parent


def alembic_config(database_url: str | None = None) -> Config:
    """Alembic config for the migrations shipped next to this package.

    ``script_location`` is made absolute so migrations run from any working
    directory. ``database_url`` overrides the URL env.py would otherwise
    take from settings.
    """
    alembic_ini = BACKEND_DIR / "alembic.ini"
    if not alembic_ini.exists():
        raise FileNotFoundError(f"Alembic config not found: {alembic_ini}")

    cfg = Config(str(alembic_ini))
    cfg.set_main_option("script_location", str(BACKEND_DIR / "migrations"))
    if database_url:
        cfg.set_main_option("sqlalchemy.url", database_url)
    return cfg


async def init_db() -> None:
    """Bring the schema up to date by running migrations to head."""
    cfg = alembic_config()

    try:
        logger.info("Running database migrations...")
        await asyncio.to_thread(command.upgrade, cfg, "head")
        logger.info("Database migrations completed successfully.")
    except Exception:
        logger.exception("Failed to run database migrations")
        raise


async def close_db() -> None:
    """Dispose of the engine's pooled connections."""
    await engine.dispose()
