"""Models Package.

Domain value objects plus the Pydantic request/response models of the API.
"""

from assistant_gateway.models.domain import (
    AssignmentContext,
    ChatMode,
    ChatResult,
    CircuitState,
    CircuitStatus,
    ConnectionTestResult,
    GatewayStatus,
    HistoryEntry,
)
from assistant_gateway.models.requests import ChatRequest, HelpRequest, ResourcesRequest
from assistant_gateway.models.responses import (
    ChatMetadata,
    ChatResponse,
    CircuitStateBody,
    ConnectionTestResponse,
    ErrorResponse,
    RateLimitInfo,
    ResetResponse,
    SimpleChatResponse,
    StatusResponse,
)

__all__ = [
    # Domain
    "AssignmentContext",
    "ChatMode",
    "ChatResult",
    "CircuitState",
    "CircuitStatus",
    "ConnectionTestResult",
    "GatewayStatus",
    "HistoryEntry",
    # Requests
    "ChatRequest",
    "HelpRequest",
    "ResourcesRequest",
    # Responses
    "ChatMetadata",
    "ChatResponse",
    "CircuitStateBody",
    "ConnectionTestResponse",
    "ErrorResponse",
    "RateLimitInfo",
    "ResetResponse",
    "SimpleChatResponse",
    "StatusResponse",
]
