"""Liveness endpoint: database reachability and live socket count."""

from fastapi import APIRouter, Depends, Request, Response, status
from pydantic import BaseModel

from socialhub.core import check_db_connection, settings
from socialhub.services.connections import ConnectionRegistry

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    status: str
    version: str
    database: str
    online_users: int


def _registry(request: Request) -> ConnectionRegistry:
    return request.app.state.connections


@router.get(
    "/health",
    response_model=HealthResponse,
    responses={status.HTTP_503_SERVICE_UNAVAILABLE: {"model": HealthResponse}},
)
async def health_check(
    response: Response,
    registry: ConnectionRegistry = Depends(_registry),
) -> HealthResponse:
    """Report 503 while the database cannot be reached."""
    database_up = await check_db_connection()
    if not database_up:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    return HealthResponse(
        status="healthy" if database_up else "unhealthy",
        version=settings.app_version,
        database="connected" if database_up else "disconnected",
        online_users=len(registry.online_users()),
    )
