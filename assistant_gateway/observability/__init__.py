"""
Observability Package - structured logging with correlation ids, and the
Prometheus metrics in observability.metrics.
"""

from assistant_gateway.observability.logging import (
    configure_logging,
    correlation_id_context,
    get_correlation_id,
    get_logger,
    redact_key,
    set_correlation_id,
)

__all__ = [
    "configure_logging",
    "correlation_id_context",
    "get_correlation_id",
    "get_logger",
    "redact_key",
    "set_correlation_id",
]
