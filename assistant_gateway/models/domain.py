"""
Domain Models

Value objects passed between the chat gateway, its resilience components and
the API layer: assignment context, conversation history, circuit status,
and the chat result envelope.

Pattern: Domain models as value objects (frozen Pydantic models)
"""

from datetime import date, datetime, timezone
from enum import Enum
from typing import Optional, Union

from pydantic import BaseModel, Field


# =============================================================================
# Chat modes
# =============================================================================


class ChatMode(str, Enum):
    """
    Where the text of a chat result came from.
    """

    GENERATIVE = "generative"
    FALLBACK_NO_KEY = "fallback_no_key"
    FALLBACK_CIRCUIT_OPEN = "fallback_circuit_open"
    FALLBACK_NO_TEXT = "fallback_no_text"
    FALLBACK_ERROR = "fallback_error"


class CircuitState(str, Enum):
    """Derived state of the circuit breaker."""

    CLOSED = "CLOSED"
    OPEN = "OPEN"
    HALF_OPEN = "HALF_OPEN"


# =============================================================================
# Assignment context and history
# =============================================================================


class AssignmentContext(BaseModel):
    """
    The parts of an assignment the assistant may talk about.

    Attributes:
        title: Assignment title.
        description: Free-text description / instructions.
        due_date: Due date, if the assignment has one.
        max_marks: Maximum marks available.
    """

    title: str
    description: Optional[str] = None
    due_date: Optional[Union[datetime, date, str]] = None
    max_marks: Optional[float] = None

    model_config = {"frozen": True}

    def formatted_due_date(self) -> Optional[str]:
        """Due date as YYYY-MM-DD (strings are passed through)."""
        if self.due_date is None:
            return None
        if isinstance(self.due_date, (datetime, date)):
            return self.due_date.strftime("%Y-%m-%d")
        return str(self.due_date) or None

    def formatted_max_marks(self) -> Optional[str]:
        if self.max_marks is None:
            return None
        if float(self.max_marks).is_integer():
            return str(int(self.max_marks))
        return str(self.max_marks)


class HistoryEntry(BaseModel):
    """One turn of the conversation as rendered by the client."""

    sender: str = Field(..., description="Who sent the turn (e.g. user, bot)")
    text: str = Field(default="", description="Turn text")

    model_config = {"frozen": True}


# =============================================================================
# Circuit status
# =============================================================================


class CircuitStatus(BaseModel):
    """
    Observability snapshot of the circuit breaker.

    Attributes:
        state: Derived state (CLOSED, OPEN, HALF_OPEN).
        failures: Current consecutive failure count.
        cooldown_remaining: Whole seconds until the cooldown ends (0 when closed).
    """

    state: CircuitState
    failures: int = Field(ge=0)
    cooldown_remaining: int = Field(default=0, ge=0)

    model_config = {"frozen": True}


# =============================================================================
# Chat result envelope
# =============================================================================


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ChatResult(BaseModel):
    """
    Uniform result of ChatGateway.chat().

    success is False only for rejected input (empty message); every upstream
    failure still produces success=True with a fallback mode.

    Attributes:
        success: Whether a reply was produced.
        text: Reply text (or a rejection message when success is False).
        mode: Reply source; None for rejected input.
        attempts: Upstream invocations made for this reply.
        used_secondary_model: Whether the secondary model produced / was tried.
        timestamp: When the result was assembled (UTC).
        error: Underlying upstream error text, for fallback_error / fallback_no_text.
        circuit: Circuit status snapshot, when relevant.
    """

    success: bool
    text: str
    mode: Optional[ChatMode] = None
    attempts: int = 0
    used_secondary_model: bool = False
    timestamp: datetime = Field(default_factory=utc_now)
    error: Optional[str] = None
    circuit: Optional[CircuitStatus] = None


class ConnectionTestResult(BaseModel):
    """Result of probing the generative API with a fixed prompt."""

    success: bool
    message: Optional[str] = None
    error: Optional[str] = None
    attempts: int = 0
    used_secondary_model: bool = False
    circuit: Optional[CircuitStatus] = None


class GatewayStatus(BaseModel):
    """Circuit status plus whether an API key is configured."""

    circuit: CircuitStatus
    api_configured: bool
