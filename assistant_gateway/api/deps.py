"""
API Dependencies

FastAPI dependency functions for the API layer. The components are built
once by create_app() and kept on app.state; these functions hand them to
the routes. Tests can replace any of them through app.dependency_overrides.
"""

from fastapi import Request

from assistant_gateway.services.chat import ChatGateway
from assistant_gateway.services.rate_limit import RateLimiter
from assistant_gateway.stores.assignments import AssignmentStore


def get_chat_gateway(request: Request) -> ChatGateway:
    return request.app.state.chat_gateway


def get_rate_limiter(request: Request) -> RateLimiter:
    return request.app.state.rate_limiter


def get_assignment_store(request: Request) -> AssignmentStore:
    return request.app.state.assignment_store
