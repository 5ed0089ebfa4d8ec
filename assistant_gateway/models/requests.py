"""
Request Models

Pydantic models for API request validation. Field aliases keep the camelCase
wire format used by the web client (assignmentId, conversationHistory).
"""

from typing import Optional

from pydantic import BaseModel, Field

from assistant_gateway.models.domain import HistoryEntry


class ChatRequest(BaseModel):
    """
    Body of POST /api/v1/chatbot/chat.

    Emptiness of message is checked by the route, so whitespace-only input
    gets the {success: false} envelope rather than a 422.
    """

    message: str = Field(default="", description="Student message")
    assignment_id: Optional[str] = Field(
        default=None,
        alias="assignmentId",
        description="Assignment the question is about",
    )
    conversation_history: list[HistoryEntry] = Field(
        default_factory=list,
        alias="conversationHistory",
        description="Earlier turns, oldest first",
    )

    model_config = {"populate_by_name": True}


class HelpRequest(BaseModel):
    """Body of POST /api/v1/chatbot/help/{assignment_id}."""

    question: str = Field(default="")


class ResourcesRequest(BaseModel):
    """Body of POST /api/v1/chatbot/resources."""

    topic: str = Field(default="")
