"""
Health Router

Liveness and readiness endpoints.

The gateway can always answer (fallback mode needs no upstream), so
readiness never fails; it reports "degraded" when no API key is
configured or the circuit is not closed.
"""

import logging

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from assistant_gateway import __version__
from assistant_gateway.api.deps import get_chat_gateway
from assistant_gateway.models.domain import CircuitState
from assistant_gateway.services.chat import ChatGateway

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])


class HealthResponse(BaseModel):
    """Health check response model."""

    status: str
    version: str


class ReadinessResponse(BaseModel):
    """Readiness check response model."""

    status: str
    checks: dict[str, bool]


@router.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    return HealthResponse(status="healthy", version=__version__)


@router.get("/health/ready", response_model=ReadinessResponse)
async def readiness(gateway: ChatGateway = Depends(get_chat_gateway)) -> ReadinessResponse:
    """
    Readiness with per-component checks.

    Returns:
        status "ready" when every check passes, "degraded" otherwise.
    """
    snapshot = gateway.status()
    checks = {
        "api_configured": snapshot.api_configured,
        "circuit_closed": snapshot.circuit.state == CircuitState.CLOSED,
    }
    status = "ready" if all(checks.values()) else "degraded"
    if status != "ready":
        logger.debug("Readiness degraded: %s", checks)
    return ReadinessResponse(status=status, checks=checks)
