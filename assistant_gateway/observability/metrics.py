"""
Gateway Metrics

Prometheus metrics for the circuit breaker, the retry controller, the
chat gateway and the rate limiter.

Metric names are module constants.
"""

from prometheus_client import Counter, Gauge

METRIC_CIRCUIT_TRANSITIONS = "assistant_gateway_circuit_breaker_state_transitions_total"
METRIC_CIRCUIT_STATE = "assistant_gateway_circuit_breaker_state"
METRIC_UPSTREAM_ATTEMPTS = "assistant_gateway_upstream_attempts_total"
METRIC_CHAT_RESPONSES = "assistant_gateway_chat_responses_total"
METRIC_RATE_LIMIT_REJECTIONS = "assistant_gateway_rate_limit_rejections_total"


# =============================================================================
# Circuit Breaker
# =============================================================================

CIRCUIT_STATE_TRANSITIONS = Counter(
    name=METRIC_CIRCUIT_TRANSITIONS,
    documentation="Total number of circuit breaker state transitions",
    labelnames=["circuit_name", "to_state", "from_state"],
)

CIRCUIT_STATE_GAUGE = Gauge(
    name=METRIC_CIRCUIT_STATE,
    documentation="Current state of circuit breaker (0=closed, 1=half_open, 2=open)",
    labelnames=["circuit_name"],
)

_STATE_TO_NUMERIC = {
    "closed": 0,
    "half_open": 1,
    "open": 2,
}


def record_circuit_state_transition(
    circuit_name: str,
    to_state: str,
    from_state: str,
) -> None:
    """
    Record a circuit breaker state transition and update the state gauge.

    Args:
        circuit_name: Name of the circuit breaker
        to_state: State transitioning to (closed, open, half_open)
        from_state: State transitioning from (closed, open, half_open)
    """
    to_state = to_state.lower()
    from_state = from_state.lower()
    CIRCUIT_STATE_TRANSITIONS.labels(
        circuit_name=circuit_name,
        to_state=to_state,
        from_state=from_state,
    ).inc()

    CIRCUIT_STATE_GAUGE.labels(circuit_name=circuit_name).set(
        _STATE_TO_NUMERIC.get(to_state, 0)
    )


# =============================================================================
# Upstream attempts
# =============================================================================

UPSTREAM_ATTEMPTS = Counter(
    name=METRIC_UPSTREAM_ATTEMPTS,
    documentation="Generative API invocations by model and outcome",
    labelnames=["model", "outcome"],
)


def record_upstream_attempt(model: str, outcome: str) -> None:
    """
    Args:
        model: Model identifier the call was addressed to
        outcome: success, transient, permanent or missing_credential
    """
    UPSTREAM_ATTEMPTS.labels(model=model, outcome=outcome).inc()


# =============================================================================
# Chat gateway / rate limiter
# =============================================================================

CHAT_RESPONSES = Counter(
    name=METRIC_CHAT_RESPONSES,
    documentation="Chat responses by mode",
    labelnames=["mode"],
)

RATE_LIMIT_REJECTIONS = Counter(
    name=METRIC_RATE_LIMIT_REJECTIONS,
    documentation="Chat requests rejected by the per-identity rate limiter",
)


def record_chat_response(mode: str) -> None:
    CHAT_RESPONSES.labels(mode=mode).inc()


def record_rate_limit_rejection() -> None:
    RATE_LIMIT_REJECTIONS.inc()
