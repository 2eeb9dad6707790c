"""Health check endpoints.

Unauthenticated: they report only connectivity and configuration flags,
never token data.
"""

from fastapi import APIRouter, Response, status
from pydantic import BaseModel

from tokengate.core import check_db_connection, settings
from tokengate.services.last_used import get_last_used_recorder

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str
    database: str
    signing_configured: bool


class HealthDetailResponse(HealthResponse):
    """Health plus token service internals."""

    allowed_scopes: list[str]
    max_lifetime_hours: int
    last_used_pending: int


async def _base_health(response: Response) -> dict:
    db_healthy = await check_db_connection()

    # Set appropriate status code for container orchestration
    if not db_healthy:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    return {
        "status": "healthy" if db_healthy else "unhealthy",
        "version": settings.app_version,
        "database": "connected" if db_healthy else "disconnected",
        "signing_configured": bool(settings.token_signing_secret),
    }


@router.get(
    "/health",
    response_model=HealthResponse,
    responses={
        status.HTTP_200_OK: {"description": "Service is healthy"},
        status.HTTP_503_SERVICE_UNAVAILABLE: {"description": "Service is unhealthy"},
    },
)
async def health_check(response: Response) -> HealthResponse:
    """
    Health check endpoint.

    Returns 503 if the database is unavailable. A missing signing secret is
    reported but does not make the service unhealthy.
    """
    return HealthResponse(**await _base_health(response))


@router.get(
    "/health/detail",
    response_model=HealthDetailResponse,
    responses={
        status.HTTP_503_SERVICE_UNAVAILABLE: {"description": "Service is unhealthy"},
    },
)
async def health_detail(response: Response) -> HealthDetailResponse:
    """Health plus the scope whitelist and background write backlog."""
    return HealthDetailResponse(
        **await _base_health(response),
        allowed_scopes=sorted(settings.allowed_scopes),
        max_lifetime_hours=settings.token_max_lifetime_hours,
        last_used_pending=get_last_used_recorder().pending,
    )
