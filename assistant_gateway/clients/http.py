"""
HTTP Client Module

Factory for the pooled httpx.AsyncClient used to reach the generative API.

Pattern: Factory pattern for creating configured HTTP clients
"""

from typing import Optional

import httpx


DEFAULT_TIMEOUT_SECONDS: float = 30.0
"""Wall-clock budget for one upstream call; exceeding it is a transient failure."""

DEFAULT_MAX_CONNECTIONS: int = 100

DEFAULT_MAX_KEEPALIVE: int = 20

USER_AGENT = "study-assistant-gateway/1.0"


def create_http_client(
    timeout_seconds: Optional[float] = None,
    max_connections: Optional[int] = None,
    max_keepalive: Optional[int] = None,
    headers: Optional[dict[str, str]] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> httpx.AsyncClient:
    """
    Create a configured HTTP client with connection pooling and timeouts.

    Retries are not configured on the transport: the retry controller owns
    the retry policy, and a transport-level retry would multiply attempts.

    Args:
        timeout_seconds: Request timeout in seconds (default: 30.0)
        max_connections: Maximum connections in pool (default: 100)
        max_keepalive: Maximum keepalive connections (default: 20)
        headers: Additional headers to include in all requests
        transport: Transport override (httpx.MockTransport in tests)

    Returns:
        httpx.AsyncClient: Configured async HTTP client
    """
    timeout = timeout_seconds if timeout_seconds is not None else DEFAULT_TIMEOUT_SECONDS
    max_conn = max_connections if max_connections is not None else DEFAULT_MAX_CONNECTIONS
    max_keep = max_keepalive if max_keepalive is not None else DEFAULT_MAX_KEEPALIVE

    limits = httpx.Limits(
        max_connections=max_conn,
        max_keepalive_connections=max_keep,
    )

    default_headers = {
        "User-Agent": USER_AGENT,
        "Accept": "application/json",
    }
    if headers:
        default_headers.update(headers)

    return httpx.AsyncClient(
        timeout=httpx.Timeout(timeout),
        limits=limits,
        headers=default_headers,
        transport=transport,
    )
