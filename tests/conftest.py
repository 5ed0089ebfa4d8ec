"""
Pytest configuration and shared fixtures.

Time and sleeping are injected everywhere they matter (breaker clock,
limiter clock, retry sleep), so the suite never waits on a real clock.
The generative API is replaced by httpx.MockTransport handlers.
"""

import sys
from pathlib import Path
from typing import Any, Callable, Optional

import httpx
import pytest

# Add project root to Python path for imports
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

GATEWAY_ENV_VARS = (
    "GOOGLE_API_KEY",
    "GEMINI_API_KEY",
    "GENERATIVE_MODEL",
    "FALLBACK_MODEL",
    "GENERATIVE_API_BASE",
    "MAX_RETRIES",
    "BASE_DELAY_MS",
)


# =============================================================================
# Test Markers
# =============================================================================


def pytest_configure(config):
    """
    Register custom markers for test categorization.
    """
    config.addinivalue_line("markers", "unit: Unit tests for individual components")
    config.addinivalue_line("markers", "integration: End-to-end tests through the HTTP API")


# =============================================================================
# Environment isolation
# =============================================================================


@pytest.fixture(autouse=True)
def clean_gateway_env(monkeypatch):
    """Keep a developer's real key or overrides out of the tests."""
    import os

    from assistant_gateway.core.config import get_settings

    for name in GATEWAY_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    for name in list(os.environ):
        if name.startswith("ASSISTANT_GATEWAY_"):
            monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


# =============================================================================
# Fakes
# =============================================================================


class FakeClock:
    """Manually advanced time source, usable as clock=fake_clock."""

    def __init__(self, start: float = 1_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingSleep:
    """Async sleep replacement that returns at once and records delays."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


class ScriptedGenerate:
    """
    Stand-in for GenerativeClient.generate().

    Each call pops the next outcome: an exception instance is raised, anything
    else is returned. The last outcome repeats once the script runs out.
    """

    def __init__(self, *outcomes: Any) -> None:
        self.outcomes = list(outcomes)
        self.calls: list[dict[str, Any]] = []

    async def generate(
        self, prompt: str, model: str, use_key_query_param: bool = False
    ) -> dict[str, Any]:
        self.calls.append(
            {"prompt": prompt, "model": model, "use_key_query_param": use_key_query_param}
        )
        outcome = self.outcomes.pop(0) if len(self.outcomes) > 1 else self.outcomes[0]
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome


def gemini_body(text: str) -> dict[str, Any]:
    """A generateContent response carrying text in the usual shape."""
    return {
        "candidates": [
            {"content": {"parts": [{"text": text}], "role": "model"}, "finishReason": "STOP"}
        ]
    }


def mock_http_client(
    handler: Callable[[httpx.Request], httpx.Response],
) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


class UpstreamStub:
    """
    MockTransport handler standing in for the generative API.

    Replies are (status, body) pairs consumed in order; the last one repeats.
    Every request received is kept in .requests.
    """

    def __init__(self, *replies: tuple[int, Any]) -> None:
        self.replies = list(replies) or [(200, gemini_body("ok"))]
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        status, body = self.replies.pop(0) if len(self.replies) > 1 else self.replies[0]
        return httpx.Response(status, json=body)

    @property
    def call_count(self) -> int:
        return len(self.requests)


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def no_sleep() -> RecordingSleep:
    return RecordingSleep()


# =============================================================================
# Domain fixtures
# =============================================================================


@pytest.fixture
def assignment_context():
    from assistant_gateway.models.domain import AssignmentContext

    return AssignmentContext(
        title="Binary Search Trees",
        description="Implement insert, delete and in-order traversal for a BST.",
        due_date="2025-03-14",
        max_marks=50,
    )


@pytest.fixture
def poem_context():
    from assistant_gateway.models.domain import AssignmentContext

    return AssignmentContext(
        title="Autumn Poem",
        description="Write a 12-line poem about autumn.",
        max_marks=20,
    )


@pytest.fixture
def test_settings():
    """Settings with a key, no backoff delay and the default resilience limits."""
    from assistant_gateway.core.config import Settings

    return Settings(
        google_api_key="AIzaSyTESTKEY0123456789",
        generative_model="gemini-2.5-flash",
        api_base="https://generative.test/v1beta",
        base_delay_ms=0,
        environment="development",
    )


@pytest.fixture
def make_gateway(fake_clock, no_sleep):
    """
    Factory for a ChatGateway over a scripted client.

    Returns (gateway, client, breaker).
    """
    from assistant_gateway.resilience.circuit_breaker import CircuitBreaker
    from assistant_gateway.resilience.retry import RetryController
    from assistant_gateway.services.chat import ChatGateway

    def _make(
        *outcomes: Any,
        has_credential: bool = True,
        secondary_model: Optional[str] = None,
        max_retries: int = 3,
    ):
        client = ScriptedGenerate(*(outcomes or (gemini_body("ok"),)))
        client.has_credential = has_credential
        breaker = CircuitBreaker(clock=fake_clock)
        retry = RetryController(client, max_retries=max_retries, sleep=no_sleep)
        gateway = ChatGateway(
            client=client,
            retry=retry,
            breaker=breaker,
            primary_model="gemini-2.5-flash",
            secondary_model=secondary_model,
        )
        return gateway, client, breaker

    return _make


@pytest.fixture
def gemini_response() -> Callable[[str], dict[str, Any]]:
    return gemini_body


@pytest.fixture
def scripted_client() -> type:
    return ScriptedGenerate


@pytest.fixture
def http_client_for() -> Callable[..., httpx.AsyncClient]:
    return mock_http_client


# =============================================================================
# Application fixtures
# =============================================================================

STUDENT_HEADERS = {"X-User-Id": "student-1", "X-User-Role": "student"}
TEACHER_HEADERS = {"X-User-Id": "teacher-1", "X-User-Role": "teacher"}


@pytest.fixture
def student_headers() -> dict[str, str]:
    return dict(STUDENT_HEADERS)


@pytest.fixture
def teacher_headers() -> dict[str, str]:
    return dict(TEACHER_HEADERS)


@pytest.fixture
def seeded_store():
    from assistant_gateway.stores.assignments import Assignment, InMemoryAssignmentStore

    return InMemoryAssignmentStore(
        [
            Assignment(
                id="bst-1",
                title="Binary Search Trees",
                description="Implement insert, delete and in-order traversal for a BST.",
                due_date="2025-03-14",
                max_marks=50,
            )
        ]
    )


@pytest.fixture
def make_client(test_settings, fake_clock, seeded_store):
    """
    Factory for a TestClient over a fully wired app.

    The generative API is an UpstreamStub; the breaker and the rate limiter
    share the fake clock. Returns (client, upstream, app).
    """
    from contextlib import ExitStack

    from fastapi.testclient import TestClient

    from assistant_gateway.main import create_app
    from assistant_gateway.resilience.circuit_breaker import CircuitBreaker
    from assistant_gateway.services.rate_limit import FixedWindowRateLimiter

    stack = ExitStack()

    def _make(
        *replies: tuple[int, Any],
        settings=None,
        max_requests: int = 10,
    ):
        upstream = UpstreamStub(*replies)
        app = create_app(
            settings=settings or test_settings,
            http_client=mock_http_client(upstream),
            breaker=CircuitBreaker(clock=fake_clock),
            rate_limiter=FixedWindowRateLimiter(
                max_requests=max_requests, window_seconds=60.0, clock=fake_clock
            ),
            assignment_store=seeded_store,
        )
        client = stack.enter_context(TestClient(app))
        return client, upstream, app

    yield _make
    stack.close()
