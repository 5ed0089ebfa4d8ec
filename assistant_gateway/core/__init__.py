"""
Core module for the Study Assistant Gateway.

This module contains configuration, exceptions, and shared utilities.
"""

from assistant_gateway.core.config import Settings, get_settings
from assistant_gateway.core.exceptions import (
    AssistantGatewayException,
    AuthenticationError,
    AuthorizationError,
    ErrorCode,
    GatewayValidationError,
    MissingCredentialError,
    ModelUnavailableError,
    PermanentUpstreamError,
    RateLimitError,
    TransientUpstreamError,
    UpstreamError,
)

__all__ = [
    # Config
    "Settings",
    "get_settings",
    # Exceptions
    "ErrorCode",
    "AssistantGatewayException",
    "UpstreamError",
    "TransientUpstreamError",
    "PermanentUpstreamError",
    "MissingCredentialError",
    "ModelUnavailableError",
    "RateLimitError",
    "GatewayValidationError",
    "AuthenticationError",
    "AuthorizationError",
]
