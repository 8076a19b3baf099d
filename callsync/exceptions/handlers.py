import logging

from fastapi import Request
from fastapi.responses import JSONResponse

from .custom import (
    AgentNotFoundError,
    BolnaError,
    CallNotFoundError,
    RateLimitError,
    TenantMismatchError,
    UnauthenticatedError,
    UserNotFoundError,
)

logger = logging.getLogger(__name__)


async def bolna_error_handler(_request: Request, exc: BolnaError) -> JSONResponse:
    logger.error("Bolna error: %s (status=%s)", exc.message, exc.status_code)
    return JSONResponse(
        status_code=502,
        content={"detail": f"Bolna error: {exc.message}"},
    )


async def rate_limit_error_handler(_request: Request, exc: RateLimitError) -> JSONResponse:
    logger.warning("Rate limit hit for %s", exc.service)
    return JSONResponse(
        status_code=429,
        content={"detail": f"Rate limit exceeded for {exc.service}"},
    )


async def unauthenticated_error_handler(
    _request: Request, exc: UnauthenticatedError
) -> JSONResponse:
    return JSONResponse(status_code=401, content={"detail": exc.message})


async def user_not_found_error_handler(
    _request: Request, exc: UserNotFoundError
) -> JSONResponse:
    return JSONResponse(status_code=404, content={"detail": "User not found"})


async def tenant_mismatch_error_handler(
    _request: Request, exc: TenantMismatchError
) -> JSONResponse:
    return JSONResponse(
        status_code=403,
        content={
            "detail": "Forbidden: Cannot access other organization's data",
            "error": "Organization ID mismatch",
        },
    )


async def call_not_found_error_handler(
    _request: Request, exc: CallNotFoundError
) -> JSONResponse:
    return JSONResponse(status_code=404, content={"detail": "Call not found"})


async def agent_not_found_error_handler(
    _request: Request, exc: AgentNotFoundError
) -> JSONResponse:
    return JSONResponse(status_code=404, content={"detail": "Agent not found"})
