"""
Resilience patterns for the Study Assistant Gateway.

- CircuitBreaker: derived-state breaker guarding the generative API
- RetryController: full-jitter backoff plus secondary-model attempt
"""

from assistant_gateway.resilience.circuit_breaker import CircuitBreaker
from assistant_gateway.resilience.retry import RetryController, RetryResult

__all__ = [
    # Circuit Breaker
    "CircuitBreaker",
    # Retry
    "RetryController",
    "RetryResult",
]
