"""
Clients Package

Outbound clients of the gateway: the pooled HTTP client factory and the
generative API adapter.
"""

from assistant_gateway.clients.gemini import (
    TEXT_EXTRACTORS,
    TRANSIENT_STATUS_CODES,
    GenerationConfig,
    GenerativeClient,
    extract_text,
)
from assistant_gateway.clients.http import create_http_client

__all__ = [
    "GenerativeClient",
    "GenerationConfig",
    "extract_text",
    "TEXT_EXTRACTORS",
    "TRANSIENT_STATUS_CODES",
    "create_http_client",
]
