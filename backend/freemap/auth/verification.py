"""Verification gate consumed by the point endpoints.

The email verification flow (codes, mail, cookies) lives elsewhere; this
module only asks it which user owns a session, whether a session is
verified, and whether an identity is banned.

When verification is required the caller's identity is the user id behind
the session cookie, never a value taken from the request body.
"""

import logging
from typing import Protocol

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from freemap.config import Settings, get_settings
from freemap.exceptions import PointValidationError
from freemap.models import SessionCookie, User

logger = logging.getLogger(__name__)


class VerificationGate(Protocol):
    """What the point service needs from the verification subsystem."""

    async def is_banned(self, identity: str) -> bool: ...

    async def is_verified_session(self, session_token: str) -> bool: ...

    async def session_identity(self, session_token: str) -> str | None: ...


class DatabaseVerificationGate:
    """Answers gate questions from the ``users`` and ``cookies`` tables.

    An identity is a user id rendered as a string. Lookup failures deny
    rather than raise, so a storage outage closes the gate.
    """

    def __init__(self, session_maker: async_sessionmaker[AsyncSession]):
        self._session_maker = session_maker

    async def is_banned(self, identity: str) -> bool:
        # Only users can be banned; anything else has no row to carry the flag
        try:
            user_id = int(identity)
        except (TypeError, ValueError):
            return False

        try:
            async with self._session_maker() as db:
                result = await db.execute(select(User.banned).where(User.id == user_id))
                banned = result.scalar()
        except SQLAlchemyError as e:
            logger.error(f"Ban lookup failed for {identity}: {e}")
            return True
        return bool(banned)

    async def session_identity(self, session_token: str) -> str | None:
        """User id owning ``session_token``, banned or not. None if unknown."""
        if not session_token:
            return None

        query = select(SessionCookie.user_id).where(SessionCookie.cookie == session_token)
        try:
            async with self._session_maker() as db:
                result = await db.execute(query)
                user_id = result.scalar()
        except SQLAlchemyError as e:
            logger.error(f"Session lookup failed: {e}")
            return None

        return None if user_id is None else str(user_id)

    async def is_verified_session(self, session_token: str) -> bool:
        if not session_token:
            return False

        query = (
            select(User.id, User.banned)
            .join(SessionCookie, SessionCookie.user_id == User.id)
            .where(SessionCookie.cookie == session_token)
        )
        try:
            async with self._session_maker() as db:
                result = await db.execute(query)
                row = result.first()
        except SQLAlchemyError as e:
            logger.error(f"Session lookup failed: {e}")
            return False

        return row is not None and not row.banned


def get_verification_gate(request: Request) -> VerificationGate:
    """Dependency returning the gate built at startup."""
    return request.app.state.verification_gate


def session_token(request: Request, settings: Settings) -> str:
    return request.cookies.get(settings.session_cookie_name, "")


async def require_session_identity(
    request: Request,
    gate: VerificationGate = Depends(get_verification_gate),
    settings: Settings = Depends(get_settings),
) -> str | None:
    """Identity of the caller's verified, non-banned session.

    Returns None when verification is not required, leaving the identity
    to the request body.
    """
    if not settings.require_verification:
        return None

    identity = await gate.session_identity(session_token(request, settings))
    if identity is None:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Verification required",
        )
    if await gate.is_banned(identity):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Banned")
    return identity


async def optional_session_identity(
    request: Request,
    gate: VerificationGate = Depends(get_verification_gate),
    settings: Settings = Depends(get_settings),
) -> str | None:
    """Session identity for read-only routes; never rejects."""
    if not settings.require_verification:
        return None
    return await gate.session_identity(session_token(request, settings))


def effective_identity(claimed: str, verified: str | None, field: str) -> str:
    """Pick the identity a request acts as.

    A verified session always wins over ``claimed``. Without one the body
    value is used and must be present.
    """
    if verified is not None:
        return verified
    if not claimed:
        raise PointValidationError(f"{field} is required")
    return claimed
