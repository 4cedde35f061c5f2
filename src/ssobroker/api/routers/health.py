"""Health and status endpoints.

Public endpoints for health checks and system status.
No authentication required.
"""

from fastapi import APIRouter
from pydantic import BaseModel, Field

from ssobroker.settings import settings
from ssobroker.version import __version__

router = APIRouter(tags=["Health"])


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = Field(description="Health status (ok, degraded, down)")
    version: str = Field(description="Application version")


class StatusResponse(BaseModel):
    """System status response."""

    status: str = Field(description="System status")
    version: str = Field(description="Application version")
    store_backend: str = Field(description="Repository backend (memory, filesystem)")
    jwt_configured: bool = Field(description="Whether a token signing secret is set")
    state_signing: bool = Field(description="Whether OAuth state is HMAC-signed")


@router.get("/health")
async def health() -> HealthResponse:
    """Health check endpoint.

    Returns:
        HealthResponse with status and version
    """
    return HealthResponse(
        status="ok",
        version=__version__,
    )


@router.get("/status")
async def status() -> StatusResponse:
    """System status endpoint.

    Reports configuration shape only; never secret values.
    """
    return StatusResponse(
        status="ok" if settings.auth.jwt_secret else "degraded",
        version=__version__,
        store_backend=settings.store.backend,
        jwt_configured=bool(settings.auth.jwt_secret),
        state_signing=bool(settings.auth.state_signing_secret),
    )
