"""
Response Models

Pydantic models for API response serialization. Responses are emitted by
alias so the web client keeps receiving camelCase keys.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from assistant_gateway.models.domain import ChatMode


class CircuitStateBody(BaseModel):
    """Circuit status as rendered to clients."""

    state: str
    failures: int
    cooldown_remaining: Optional[int] = Field(default=None, alias="cooldownRemaining")

    model_config = {"populate_by_name": True}


class RateLimitInfo(BaseModel):
    remaining: int
    limit: int


class ChatMetadata(BaseModel):
    """
    Optional diagnostics attached to every chat response.

    usedFallback reports whether the secondary model was used.
    """

    attempts: Optional[int] = None
    used_fallback: Optional[bool] = Field(default=None, alias="usedFallback")
    circuit_state: Optional[CircuitStateBody] = Field(default=None, alias="circuitState")
    rate_limit: RateLimitInfo = Field(..., alias="rateLimit")

    model_config = {"populate_by_name": True}


class ChatResponse(BaseModel):
    """Body of a successful POST /api/v1/chatbot/chat."""

    success: bool = True
    response: str
    mode: Optional[ChatMode] = None
    timestamp: datetime
    metadata: ChatMetadata


class SimpleChatResponse(BaseModel):
    """Body of the /help and /resources endpoints."""

    success: bool = True
    response: str
    mode: Optional[ChatMode] = None


class StatusResponse(BaseModel):
    """Body of GET /api/v1/chatbot/status."""

    success: bool = True
    circuit: CircuitStateBody
    api_configured: bool = Field(..., alias="apiConfigured")

    model_config = {"populate_by_name": True}


class ResetResponse(BaseModel):
    success: bool = True
    message: str = "Circuit breaker reset"


class ConnectionTestResponse(BaseModel):
    """Body of POST /api/v1/chatbot/test."""

    success: bool
    message: Optional[str] = None
    error: Optional[str] = None
    attempts: Optional[int] = None
    used_fallback: Optional[bool] = Field(default=None, alias="usedFallback")
    circuit_state: Optional[CircuitStateBody] = Field(default=None, alias="circuitState")

    model_config = {"populate_by_name": True}


class ErrorResponse(BaseModel):
    """Body of every non-2xx response produced by the gateway."""

    success: bool = False
    message: str
    error_code: Optional[str] = Field(default=None, alias="errorCode")
    retry_after: Optional[int] = Field(default=None, alias="retryAfter")

    model_config = {"populate_by_name": True}
