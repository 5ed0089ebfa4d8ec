"""
API Routes Package.
"""

from assistant_gateway.api.routes.chatbot import router as chatbot_router
from assistant_gateway.api.routes.health import router as health_router

__all__ = ["chatbot_router", "health_router"]
