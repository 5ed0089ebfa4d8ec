"""
Retry Controller

Wraps the generative client with bounded full-jitter exponential backoff on
the primary model, followed by a single attempt on an optional secondary
model.

    primary:   up to max_retries + 1 attempts; only TransientUpstreamError
               is retried, anything else propagates at once
    backoff:   min(max_backoff_ms, base_delay_ms * 2**k * U[0.5, 1.0)) after
               failed attempt k (0-indexed), none after the last attempt
    secondary: one attempt when configured and different from the primary;
               a 401/403 from it is retried once with the key sent as a
               query parameter
    terminal:  ModelUnavailableError carrying the cumulative attempt count

Backoff sleeps are plain awaits; nothing here holds a lock.
"""

import asyncio
import logging
import random
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional, Protocol

from assistant_gateway.clients.gemini import extract_text
from assistant_gateway.core.config import Settings
from assistant_gateway.core.exceptions import (
    ModelUnavailableError,
    PermanentUpstreamError,
    TransientUpstreamError,
    UpstreamError,
)

logger = logging.getLogger(__name__)

DEFAULT_MAX_RETRIES = 3
DEFAULT_BASE_DELAY_MS = 500
DEFAULT_MAX_BACKOFF_MS = 10_000


class GenerateFn(Protocol):
    """What the retry controller needs from the generative client."""

    async def generate(
        self, prompt: str, model: str, use_key_query_param: bool = False
    ) -> dict[str, Any]:
        ...


@dataclass(frozen=True)
class RetryResult:
    """
    Outcome of a successful call_with_retry().

    Attributes:
        text: Extracted reply text; None when the response held no usable text.
        attempts: Upstream invocations made (primary plus secondary).
        used_secondary: Whether the reply came from the secondary model.
        model: Model that produced the response.
        raw: Raw provider response.
    """

    text: Optional[str]
    attempts: int
    used_secondary: bool
    model: str
    raw: dict[str, Any]


class RetryController:
    """
    Retry/backoff policy around GenerativeClient.generate().

    Args:
        client: Object exposing generate(prompt, model, use_key_query_param).
        max_retries: Retries after the first primary attempt.
        base_delay_ms: Base backoff delay.
        max_backoff_ms: Backoff cap, independent of the attempt number.
        sleep: Awaitable sleep in seconds (injectable for tests).
        rng: Random source for jitter (injectable for tests).
    """

    def __init__(
        self,
        client: GenerateFn,
        max_retries: int = DEFAULT_MAX_RETRIES,
        base_delay_ms: int = DEFAULT_BASE_DELAY_MS,
        max_backoff_ms: int = DEFAULT_MAX_BACKOFF_MS,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        rng: Optional[random.Random] = None,
    ) -> None:
        self._client = client
        self._max_retries = max_retries
        self._base_delay_ms = base_delay_ms
        self._max_backoff_ms = max_backoff_ms
        self._sleep = sleep
        self._rng = rng or random.Random()

    @classmethod
    def from_settings(cls, client: GenerateFn, settings: Settings) -> "RetryController":
        return cls(
            client=client,
            max_retries=settings.max_retries,
            base_delay_ms=settings.base_delay_ms,
            max_backoff_ms=settings.max_backoff_ms,
        )

    @property
    def max_retries(self) -> int:
        return self._max_retries

    @property
    def max_attempts(self) -> int:
        """Primary attempts: max_retries + 1."""
        return self._max_retries + 1

    def backoff_ms(self, attempt: int) -> int:
        """
        Delay after failed attempt number `attempt` (0-indexed).
        """
        jitter = 0.5 + self._rng.random() * 0.5
        delay = self._base_delay_ms * (2 ** attempt) * jitter
        return int(round(min(self._max_backoff_ms, delay)))

    async def call_with_retry(
        self,
        prompt: str,
        primary_model: str,
        secondary_model: Optional[str] = None,
    ) -> RetryResult:
        """
        Generate a reply, retrying transient failures.

        Raises:
            UpstreamError: A non-transient primary error, tagged with attempts.
            ModelUnavailableError: Primary exhausted and no (working) secondary.
        """
        attempts = 0
        last_error: Optional[UpstreamError] = None

        for attempt in range(self.max_attempts):
            attempts += 1
            try:
                raw = await self._client.generate(prompt, primary_model)
                return RetryResult(
                    text=extract_text(raw),
                    attempts=attempts,
                    used_secondary=False,
                    model=primary_model,
                    raw=raw,
                )
            except TransientUpstreamError as e:
                last_error = e
                if attempt == self.max_attempts - 1:
                    logger.warning(
                        "Transient error (status=%s) attempt=%d/%d, primary exhausted",
                        e.status_code,
                        attempts,
                        self.max_attempts,
                    )
                    break
                delay = self.backoff_ms(attempt)
                logger.warning(
                    "Transient error (status=%s) attempt=%d/%d. Backing off %dms",
                    e.status_code,
                    attempts,
                    self.max_attempts,
                    delay,
                )
                await self._sleep(delay / 1000)
            except UpstreamError as e:
                e.attempts = attempts
                e.used_secondary = False
                raise

        if secondary_model and secondary_model != primary_model:
            return await self._call_secondary(prompt, secondary_model, attempts)

        raise ModelUnavailableError(
            f"Model unavailable after {attempts} attempts"
            + (f": {last_error.message}" if last_error else ""),
            model=primary_model,
            status_code=last_error.status_code if last_error else None,
            attempts=attempts,
            used_secondary=False,
        ) from last_error

    async def _call_secondary(
        self, prompt: str, model: str, attempts: int
    ) -> RetryResult:
        logger.info(
            "Primary failed after %d attempts. Trying secondary model: %s",
            attempts,
            model,
        )
        attempts += 1
        try:
            raw = await self._client.generate(prompt, model)
        except PermanentUpstreamError as e:
            if not e.is_authorization_error:
                raise self._unavailable(model, attempts, e) from e
            logger.warning(
                "Secondary model auth issue (status=%s); retrying with key query param",
                e.status_code,
            )
            attempts += 1
            try:
                raw = await self._client.generate(prompt, model, use_key_query_param=True)
            except UpstreamError as e2:
                raise self._unavailable(model, attempts, e2) from e2
        except UpstreamError as e:
            raise self._unavailable(model, attempts, e) from e

        return RetryResult(
            text=extract_text(raw),
            attempts=attempts,
            used_secondary=True,
            model=model,
            raw=raw,
        )

    @staticmethod
    def _unavailable(model: str, attempts: int, cause: UpstreamError) -> ModelUnavailableError:
        return ModelUnavailableError(
            f"Model unavailable after {attempts} attempts: {cause.message}",
            model=model,
            status_code=cause.status_code,
            response_body=cause.response_body,
            attempts=attempts,
            used_secondary=True,
        )
