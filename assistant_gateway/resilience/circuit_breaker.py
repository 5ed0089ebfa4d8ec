"""
Circuit Breaker

Process-wide breaker guarding the generative API.

The state is derived, not stored: the breaker keeps a failure count, the
time of the last failure and the number of half-open probes consumed, and
computes CLOSED / OPEN / HALF_OPEN from them on every read.

    CLOSED:    failure_count < threshold
    OPEN:      failure_count >= threshold and the cooldown has not elapsed,
               or the cooldown has elapsed and every probe slot is used
    HALF_OPEN: failure_count >= threshold, cooldown elapsed, a probe slot free

Probe slots are consumed by attempt_half_open(), which the chat gateway
calls before every upstream request while failure_count > 0, whether or not
the threshold has been reached.

Thread Safety:
    All reads and writes of the three fields happen under one threading.Lock.
    The lock is never held across an await, so a caller sleeping in backoff
    never blocks another caller's breaker check.
"""

import logging
import math
import threading
import time
from typing import Callable, Optional

from assistant_gateway.models.domain import CircuitState, CircuitStatus
from assistant_gateway.observability.metrics import record_circuit_state_transition

logger = logging.getLogger(__name__)

DEFAULT_FAILURE_THRESHOLD = 3
DEFAULT_COOLDOWN_SECONDS = 60.0
DEFAULT_MAX_HALF_OPEN_PROBES = 1


class CircuitBreaker:
    """
    Failure-counting circuit breaker with a derived state machine.

    Example:
        >>> breaker = CircuitBreaker(failure_threshold=3, cooldown_seconds=60)
        >>> if not breaker.is_open():
        ...     if breaker.failure_count > 0:
        ...         breaker.attempt_half_open()
        ...     ...  # call upstream, then record_success() / record_failure()

    Attributes:
        name: Identifier used in logs and metrics
        failure_threshold: Failures needed to open the circuit
        cooldown_seconds: Seconds the circuit blocks after the last failure
        max_half_open_probes: Probe requests allowed once the cooldown ends
    """

    def __init__(
        self,
        failure_threshold: int = DEFAULT_FAILURE_THRESHOLD,
        cooldown_seconds: float = DEFAULT_COOLDOWN_SECONDS,
        max_half_open_probes: int = DEFAULT_MAX_HALF_OPEN_PROBES,
        name: str = "generative-api",
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """
        Initialize CircuitBreaker.

        Args:
            failure_threshold: Number of failures before opening
            cooldown_seconds: Seconds to block after the most recent failure
            max_half_open_probes: Probe slots available after the cooldown
            name: Name for identification and metrics
            clock: Monotonic time source in seconds (injectable for tests)
        """
        self._failure_threshold = failure_threshold
        self._cooldown_seconds = cooldown_seconds
        self._max_half_open_probes = max_half_open_probes
        self._name = name
        self._clock = clock

        self._failure_count = 0
        self._last_failure_at: Optional[float] = None
        self._half_open_probes_used = 0

        self._lock = threading.Lock()

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def name(self) -> str:
        return self._name

    @property
    def failure_threshold(self) -> int:
        return self._failure_threshold

    @property
    def cooldown_seconds(self) -> float:
        return self._cooldown_seconds

    @property
    def max_half_open_probes(self) -> int:
        return self._max_half_open_probes

    @property
    def failure_count(self) -> int:
        """Current consecutive failure count."""
        with self._lock:
            return self._failure_count

    @property
    def half_open_probes_used(self) -> int:
        with self._lock:
            return self._half_open_probes_used

    @property
    def state(self) -> CircuitState:
        """Derived state, computed on read."""
        with self._lock:
            return self._derive_state()

    # =========================================================================
    # Derived state (callers hold the lock)
    # =========================================================================

    def _elapsed_since_failure(self) -> float:
        if self._last_failure_at is None:
            return math.inf
        return self._clock() - self._last_failure_at

    def _derive_state(self) -> CircuitState:
        if self._failure_count < self._failure_threshold:
            return CircuitState.CLOSED
        if self._elapsed_since_failure() < self._cooldown_seconds:
            return CircuitState.OPEN
        if self._half_open_probes_used < self._max_half_open_probes:
            return CircuitState.HALF_OPEN
        return CircuitState.OPEN

    def _transition(self, before: CircuitState) -> None:
        after = self._derive_state()
        if after != before:
            record_circuit_state_transition(self._name, after.value, before.value)

    # =========================================================================
    # Operations
    # =========================================================================

    def is_open(self) -> bool:
        """
        Whether requests must be blocked.

        Returns False in HALF_OPEN so a probe request can go through.
        """
        with self._lock:
            state = self._derive_state()
        if state == CircuitState.HALF_OPEN:
            logger.info("Circuit breaker %s: half-open, permitting probe", self._name)
        return state == CircuitState.OPEN

    def record_failure(self) -> None:
        """
        Record an upstream failure.

        Increments the failure count, stamps the failure time and frees the
        probe slots for the next cooldown.
        """
        with self._lock:
            before = self._derive_state()
            self._failure_count += 1
            self._last_failure_at = self._clock()
            self._half_open_probes_used = 0
            failures = self._failure_count
            self._transition(before)
        logger.warning(
            "Circuit breaker %s: failure recorded (%d/%d)",
            self._name,
            failures,
            self._failure_threshold,
        )

    def record_success(self) -> None:
        """Record an upstream success: full reset of the failure count and probes."""
        with self._lock:
            before = self._derive_state()
            had_failures = self._failure_count > 0
            self._failure_count = 0
            self._half_open_probes_used = 0
            self._transition(before)
        if had_failures:
            logger.info("Circuit breaker %s: success, resetting", self._name)

    def attempt_half_open(self) -> None:
        """Consume a probe slot."""
        with self._lock:
            before = self._derive_state()
            self._half_open_probes_used += 1
            self._transition(before)

    def reset(self) -> None:
        """Administrative reset. Idempotent."""
        with self._lock:
            before = self._derive_state()
            self._failure_count = 0
            self._last_failure_at = None
            self._half_open_probes_used = 0
            self._transition(before)
        logger.info("Circuit breaker %s: manually reset", self._name)

    def status(self) -> CircuitStatus:
        """
        Snapshot for observability.

        cooldown_remaining is whole seconds rounded up, 0 below the threshold.
        """
        with self._lock:
            state = self._derive_state()
            remaining = 0
            if self._failure_count >= self._failure_threshold:
                left = max(0.0, self._cooldown_seconds - self._elapsed_since_failure())
                remaining = math.ceil(left)
            return CircuitStatus(
                state=state,
                failures=self._failure_count,
                cooldown_remaining=remaining,
            )
