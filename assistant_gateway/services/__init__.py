"""
Services module - chat gateway, prompt assembly, fallback responder and
rate limiting.
"""

from assistant_gateway.services.chat import ChatGateway
from assistant_gateway.services.fallback import FallbackResponder, FallbackRule
from assistant_gateway.services.prompt import build_prompt
from assistant_gateway.services.rate_limit import (
    FixedWindowRateLimiter,
    RateLimiter,
    RateLimitResult,
)

__all__ = [
    "ChatGateway",
    "FallbackResponder",
    "FallbackRule",
    "FixedWindowRateLimiter",
    "RateLimiter",
    "RateLimitResult",
    "build_prompt",
]
