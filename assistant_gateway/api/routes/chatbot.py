"""
Chatbot Router

Endpoints under /api/v1/chatbot. Every endpoint that reaches the chat
gateway is rate limited per caller identity; the limiter runs before the
gateway, so a rejected request never touches the circuit breaker or the
generative API.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends

from assistant_gateway.api.auth import Identity, Role, get_current_identity, require_role
from assistant_gateway.api.deps import (
    get_assignment_store,
    get_chat_gateway,
    get_rate_limiter,
)
from assistant_gateway.core.exceptions import GatewayValidationError, RateLimitError
from assistant_gateway.models.domain import AssignmentContext, CircuitStatus
from assistant_gateway.models.requests import ChatRequest, HelpRequest, ResourcesRequest
from assistant_gateway.models.responses import (
    ChatMetadata,
    ChatResponse,
    CircuitStateBody,
    ConnectionTestResponse,
    RateLimitInfo,
    ResetResponse,
    SimpleChatResponse,
    StatusResponse,
)
from assistant_gateway.observability.metrics import record_rate_limit_rejection
from assistant_gateway.services.chat import ChatGateway
from assistant_gateway.services.rate_limit import RateLimiter, RateLimitResult
from assistant_gateway.stores.assignments import AssignmentStore, AssignmentStoreError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/chatbot", tags=["Chatbot"])


# =============================================================================
# Helpers
# =============================================================================


async def enforce_rate_limit(
    identity: Identity = Depends(get_current_identity),
    limiter: RateLimiter = Depends(get_rate_limiter),
) -> RateLimitResult:
    """
    Count the request against the caller's window.

    Raises:
        RateLimitError: The caller is over the limit (rendered as 429).
    """
    result = await limiter.check(identity.user_id)
    if not result.allowed:
        record_rate_limit_rejection()
        logger.warning("Rate limit exceeded for user %s", identity.user_id)
        raise RateLimitError(
            f"Too many requests. Please wait {result.retry_after} seconds.",
            retry_after=result.retry_after,
            limit=result.limit,
        )
    return result


async def load_assignment_context(
    store: AssignmentStore, assignment_id: Optional[str]
) -> Optional[AssignmentContext]:
    """Assignment context for assignment_id; None when absent or unreadable."""
    if not assignment_id:
        return None
    try:
        assignment = await store.get(assignment_id)
    except AssignmentStoreError as e:
        logger.error("Failed to fetch assignment %s: %s", assignment_id, e)
        return None
    return assignment.to_context() if assignment else None


def circuit_body(status: Optional[CircuitStatus]) -> Optional[CircuitStateBody]:
    if status is None:
        return None
    return CircuitStateBody(
        state=status.state.value,
        failures=status.failures,
        cooldown_remaining=status.cooldown_remaining,
    )


# =============================================================================
# Chat
# =============================================================================


@router.post("/chat", response_model=ChatResponse)
async def chat(
    request: ChatRequest,
    rate_limit: RateLimitResult = Depends(enforce_rate_limit),
    gateway: ChatGateway = Depends(get_chat_gateway),
    store: AssignmentStore = Depends(get_assignment_store),
) -> ChatResponse:
    """
    Answer a student's message.

    Upstream failures never surface as errors: the response is always
    success=true with a mode naming where the text came from.
    """
    if not request.message.strip():
        raise GatewayValidationError("Message is required", field="message")

    context = await load_assignment_context(store, request.assignment_id)
    result = await gateway.chat(request.message, context, request.conversation_history)

    return ChatResponse(
        success=True,
        response=result.text,
        mode=result.mode,
        timestamp=result.timestamp,
        metadata=ChatMetadata(
            attempts=result.attempts or None,
            used_fallback=result.used_secondary_model,
            circuit_state=circuit_body(result.circuit),
            rate_limit=RateLimitInfo(remaining=rate_limit.remaining, limit=rate_limit.limit),
        ),
    )


@router.post("/help/{assignment_id}", response_model=SimpleChatResponse)
async def assignment_help(
    assignment_id: str,
    request: HelpRequest,
    _rate_limit: RateLimitResult = Depends(enforce_rate_limit),
    gateway: ChatGateway = Depends(get_chat_gateway),
    store: AssignmentStore = Depends(get_assignment_store),
) -> SimpleChatResponse:
    """Ask a question about one assignment."""
    if not request.question.strip():
        raise GatewayValidationError("Question is required", field="question")

    context = await load_assignment_context(store, assignment_id)
    result = await gateway.chat(request.question, context)
    return SimpleChatResponse(response=result.text, mode=result.mode)


@router.post("/resources", response_model=SimpleChatResponse)
async def learning_resources(
    request: ResourcesRequest,
    _rate_limit: RateLimitResult = Depends(enforce_rate_limit),
    gateway: ChatGateway = Depends(get_chat_gateway),
) -> SimpleChatResponse:
    """Suggest learning resources for a topic."""
    if not request.topic.strip():
        raise GatewayValidationError("Topic is required", field="topic")

    result = await gateway.chat(f"Suggest learning resources for: {request.topic.strip()}")
    return SimpleChatResponse(response=result.text, mode=result.mode)


# =============================================================================
# Status / administration
# =============================================================================


@router.get("/status", response_model=StatusResponse)
async def status(
    _identity: Identity = Depends(get_current_identity),
    gateway: ChatGateway = Depends(get_chat_gateway),
) -> StatusResponse:
    snapshot = gateway.status()
    return StatusResponse(
        circuit=circuit_body(snapshot.circuit),
        api_configured=snapshot.api_configured,
    )


@router.post("/circuit/reset", response_model=ResetResponse)
async def reset_circuit(
    identity: Identity = Depends(require_role(Role.TEACHER, Role.ADMIN)),
    gateway: ChatGateway = Depends(get_chat_gateway),
) -> ResetResponse:
    """Close the circuit breaker. Teachers and admins only; idempotent."""
    message = gateway.reset_circuit()
    logger.info("Circuit breaker reset by %s (%s)", identity.user_id, identity.role.value)
    return ResetResponse(message=message)


@router.post("/test", response_model=ConnectionTestResponse)
async def test_connection(
    _identity: Identity = Depends(get_current_identity),
    gateway: ChatGateway = Depends(get_chat_gateway),
) -> ConnectionTestResponse:
    """Probe the generative API with a fixed prompt."""
    result = await gateway.test_connection()
    return ConnectionTestResponse(
        success=result.success,
        message=result.message,
        error=result.error,
        attempts=result.attempts or None,
        used_fallback=result.used_secondary_model,
        circuit_state=circuit_body(result.circuit),
    )
