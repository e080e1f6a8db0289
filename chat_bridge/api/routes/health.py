"""
Health Router - Liveness and readiness endpoints

Neither endpoint requires the shared secret; they expose no downstream data.

Reference Documents:
- Building Microservices (Newman) pp. 273-275: Service metrics and synthetic monitoring
"""

import logging

from fastapi import APIRouter, Depends, Response
from pydantic import BaseModel

from chat_bridge import __version__
from chat_bridge.api.deps import get_gateway
from chat_bridge.services.gateway import Gateway

logger = logging.getLogger(__name__)


# =============================================================================
# Response Models
# =============================================================================


class HealthResponse(BaseModel):
    """Health check response model."""

    status: str
    version: str


class ReadinessResponse(BaseModel):
    """Readiness check response model."""

    status: str
    checks: dict[str, bool]


router = APIRouter(prefix="/health", tags=["Health"])


@router.get("", response_model=HealthResponse)
async def health() -> HealthResponse:
    """Liveness probe: the process is up and serving."""
    return HealthResponse(status="ok", version=__version__)


@router.get("/ready", response_model=ReadinessResponse)
async def readiness(
    response: Response,
    gateway: Gateway = Depends(get_gateway),
) -> ReadinessResponse:
    """
    Readiness probe: the downstream chat service answers.

    Returns 503 with status "not_ready" when the downstream is unreachable.
    """
    downstream_ok = await gateway.downstream.ping()
    if not downstream_ok:
        logger.warning("Readiness check failed: downstream chat service unreachable")
        response.status_code = 503
        return ReadinessResponse(status="not_ready", checks={"downstream": False})
    return ReadinessResponse(status="ready", checks={"downstream": True})
