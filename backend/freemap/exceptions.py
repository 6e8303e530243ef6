"""Error taxonomy and FastAPI exception handlers."""

import logging

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class FreemapError(Exception):
    """Base class for application errors."""


class PointValidationError(FreemapError):
    """Malformed request: non-finite coordinates, empty message, bad vote value."""


class PersistenceError(FreemapError):
    """Storage unavailable or a constraint failure other than a duplicate vote."""

    def __init__(self, operation: str, cause: Exception | None = None):
        self.operation = operation
        self.cause = cause
        message = f"{operation} failed"
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message)


async def point_validation_handler(request: Request, exc: PointValidationError) -> JSONResponse:
    """Map domain validation failures to 400."""
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"detail": str(exc)})


async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Map malformed request bodies to 400 instead of FastAPI's default 422."""
    logger.warning(f"Rejected request to {request.url.path}: {exc.errors()}")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": jsonable_errors(exc)},
    )


async def persistence_handler(request: Request, exc: PersistenceError) -> JSONResponse:
    """Surface storage failures on the primary read/write paths."""
    logger.error(f"Storage failure on {request.url.path}: {exc}")
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"detail": "Storage unavailable"},
    )


def jsonable_errors(exc: RequestValidationError) -> list[dict]:
    """Strip non-serialisable context (e.g. the raised ValueError) from pydantic errors."""
    errors = []
    for error in exc.errors():
        errors.append({key: error[key] for key in ("type", "loc", "msg") if key in error})
    return errors
