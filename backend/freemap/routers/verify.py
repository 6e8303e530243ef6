"""Session verification status for the front-end's login indicator."""

from fastapi import APIRouter, Depends, Request

from freemap.auth.verification import VerificationGate, get_verification_gate, session_token
from freemap.config import Settings, get_settings

router = APIRouter(prefix="/api/v1", tags=["verification"])


@router.get("/is_verified")
async def is_verified(
    request: Request,
    gate: VerificationGate = Depends(get_verification_gate),
    settings: Settings = Depends(get_settings),
) -> dict:
    """Report whether the session cookie belongs to a verified, non-banned user."""
    verified = await gate.is_verified_session(session_token(request, settings))
    return {"verified": verified}
