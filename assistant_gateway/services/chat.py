"""
Chat Gateway

Public entry point of the assistant. Orchestrates the circuit breaker, the
retry controller and the fallback responder, and turns every upstream
outcome into a ChatResult envelope. chat() never raises: upstream failures
become success=True results whose mode says where the text came from.

Step order for a non-empty message:
    1. circuit open        -> fallback_circuit_open (no upstream call)
    2. no API key          -> fallback_no_key (no breaker interaction)
    3. build the prompt
    4. failure_count > 0   -> attempt_half_open()
    5. retry controller    -> record_success(); generative or fallback_no_text
    6. terminal failure    -> record_failure(); fallback_error

Pattern: Service Layer
Pattern: Dependency Injection (client, retry controller, breaker, responder)
"""

from typing import Optional, Sequence

from assistant_gateway.clients.gemini import GenerativeClient
from assistant_gateway.core.config import Settings
from assistant_gateway.core.exceptions import UpstreamError
from assistant_gateway.models.domain import (
    AssignmentContext,
    ChatMode,
    ChatResult,
    ConnectionTestResult,
    GatewayStatus,
    HistoryEntry,
)
from assistant_gateway.observability.logging import get_logger
from assistant_gateway.observability.metrics import record_chat_response
from assistant_gateway.resilience.circuit_breaker import CircuitBreaker
from assistant_gateway.resilience.retry import RetryController
from assistant_gateway.services.fallback import REASON_CIRCUIT_OPEN, FallbackResponder
from assistant_gateway.services.prompt import DEFAULT_HISTORY_TURNS, build_prompt

logger = get_logger(__name__)

EMPTY_MESSAGE = "Empty message"
CONNECTION_TEST_PROMPT = 'Say "Hello! API key is working."'


class ChatGateway:
    """
    Resilient chat orchestration over the generative API.

    Attributes:
        _client: Generative client (only its credential flag is read here).
        _retry: Retry controller wrapping the client.
        _breaker: Shared circuit breaker.
        _responder: Rule-based fallback responder.
        _primary_model: Model tried first.
        _secondary_model: Model tried once after the primary is exhausted.
        _history_turns: Conversation turns included in the prompt.

    Example:
        >>> gateway = ChatGateway(client, retry, breaker, FallbackResponder())
        >>> result = await gateway.chat("How do I start?")
        >>> result.mode
        <ChatMode.FALLBACK_NO_KEY: 'fallback_no_key'>
    """

    def __init__(
        self,
        client: GenerativeClient,
        retry: RetryController,
        breaker: CircuitBreaker,
        responder: Optional[FallbackResponder] = None,
        primary_model: str = "gemini-2.5-flash",
        secondary_model: Optional[str] = None,
        history_turns: int = DEFAULT_HISTORY_TURNS,
    ) -> None:
        self._client = client
        self._retry = retry
        self._breaker = breaker
        self._responder = responder or FallbackResponder()
        self._primary_model = primary_model
        self._secondary_model = secondary_model
        self._history_turns = history_turns

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        client: GenerativeClient,
        breaker: CircuitBreaker,
        responder: Optional[FallbackResponder] = None,
    ) -> "ChatGateway":
        return cls(
            client=client,
            retry=RetryController.from_settings(client, settings),
            breaker=breaker,
            responder=responder,
            primary_model=settings.generative_model,
            secondary_model=settings.fallback_model,
            history_turns=settings.history_turns,
        )

    @property
    def breaker(self) -> CircuitBreaker:
        return self._breaker

    @property
    def api_configured(self) -> bool:
        return self._client.has_credential

    # =========================================================================
    # chat()
    # =========================================================================

    async def chat(
        self,
        message: str,
        assignment_context: Optional[AssignmentContext] = None,
        conversation_history: Optional[Sequence[HistoryEntry]] = None,
    ) -> ChatResult:
        """
        Answer a student's message.

        Args:
            message: The student's message.
            assignment_context: Assignment the question may be about.
            conversation_history: Earlier turns, oldest first.

        Returns:
            ChatResult; success is False only for an empty message.
        """
        if not isinstance(message, str) or not message.strip():
            return ChatResult(success=False, text=EMPTY_MESSAGE)

        # 1. Circuit breaker first
        if self._breaker.is_open():
            status = self._breaker.status()
            logger.warning(
                "chat_circuit_open",
                cooldown_remaining=status.cooldown_remaining,
                failures=status.failures,
            )
            text = self._responder.respond(
                message,
                assignment_context,
                reason=REASON_CIRCUIT_OPEN,
                cooldown_remaining=status.cooldown_remaining,
            )
            return self._result(text, ChatMode.FALLBACK_CIRCUIT_OPEN, circuit=status)

        # 2. Fallback-only mode
        if not self._client.has_credential:
            logger.warning("chat_no_api_key")
            text = self._responder.respond(message, assignment_context)
            return self._result(text, ChatMode.FALLBACK_NO_KEY)

        # 3. Prompt
        prompt = build_prompt(
            message,
            assignment_context,
            conversation_history,
            history_turns=self._history_turns,
        )

        # 4. Probe bookkeeping
        if self._breaker.failure_count > 0:
            self._breaker.attempt_half_open()

        # 5/6. Upstream
        try:
            result = await self._retry.call_with_retry(
                prompt, self._primary_model, self._secondary_model
            )
        except UpstreamError as e:
            self._breaker.record_failure()
            logger.error(
                "chat_upstream_failed",
                error=e.message,
                status_code=e.status_code,
                attempts=e.attempts,
                used_secondary=e.used_secondary,
            )
            text = self._responder.respond(message, assignment_context)
            return self._result(
                text,
                ChatMode.FALLBACK_ERROR,
                attempts=e.attempts,
                used_secondary_model=e.used_secondary,
                error=e.message,
                circuit=self._breaker.status(),
            )
        except Exception as e:
            self._breaker.record_failure()
            logger.exception("chat_unexpected_error", error_type=type(e).__name__)
            text = self._responder.respond(message, assignment_context)
            return self._result(
                text,
                ChatMode.FALLBACK_ERROR,
                error=f"{type(e).__name__}: {e}",
                circuit=self._breaker.status(),
            )

        self._breaker.record_success()

        if result.text:
            logger.info(
                "chat_completed",
                model=result.model,
                attempts=result.attempts,
                used_secondary=result.used_secondary,
            )
            return self._result(
                result.text,
                ChatMode.GENERATIVE,
                attempts=result.attempts,
                used_secondary_model=result.used_secondary,
            )

        logger.warning("chat_no_text", model=result.model, attempts=result.attempts)
        text = self._responder.respond(message, assignment_context)
        return self._result(
            text,
            ChatMode.FALLBACK_NO_TEXT,
            attempts=result.attempts,
            used_secondary_model=result.used_secondary,
            error="no_text",
        )

    @staticmethod
    def _result(text: str, mode: ChatMode, **kwargs) -> ChatResult:
        record_chat_response(mode.value)
        return ChatResult(success=True, text=text, mode=mode, **kwargs)

    # =========================================================================
    # Administration
    # =========================================================================

    async def test_connection(self) -> ConnectionTestResult:
        """
        Probe the generative API with a fixed prompt.

        Honours the breaker like chat() does and feeds the outcome back into it.
        Without an API key nothing is sent and the breaker is left alone.
        """
        if self._breaker.is_open():
            return ConnectionTestResult(
                success=False,
                error="Circuit breaker is open",
                circuit=self._breaker.status(),
            )

        if not self._client.has_credential:
            return ConnectionTestResult(success=False, error="Missing generative API key")

        try:
            result = await self._retry.call_with_retry(
                CONNECTION_TEST_PROMPT, self._primary_model, self._secondary_model
            )
        except UpstreamError as e:
            self._breaker.record_failure()
            logger.error("connection_test_failed", error=e.message, attempts=e.attempts)
            return ConnectionTestResult(
                success=False,
                error=e.message,
                attempts=e.attempts,
                used_secondary_model=e.used_secondary,
                circuit=self._breaker.status(),
            )
        except Exception as e:
            self._breaker.record_failure()
            logger.exception("connection_test_unexpected_error", error_type=type(e).__name__)
            return ConnectionTestResult(
                success=False,
                error=f"{type(e).__name__}: {e}",
                circuit=self._breaker.status(),
            )

        self._breaker.record_success()
        logger.info("connection_test_succeeded", attempts=result.attempts)
        return ConnectionTestResult(
            success=True,
            message=result.text,
            attempts=result.attempts,
            used_secondary_model=result.used_secondary,
        )

    def status(self) -> GatewayStatus:
        return GatewayStatus(
            circuit=self._breaker.status(),
            api_configured=self.api_configured,
        )

    def reset_circuit(self) -> str:
        """Reset the circuit breaker. Idempotent."""
        self._breaker.reset()
        return "Circuit breaker reset"
