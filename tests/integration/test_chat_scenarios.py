"""
End-to-end chat scenarios through the HTTP API.

The whole stack is real (routes, limiter, gateway, retry controller,
breaker, generative client); only the generative API itself is stubbed
at the httpx transport.
"""

import pytest

pytestmark = pytest.mark.integration

CHAT_URL = "/api/v1/chatbot/chat"

HOW_TO_START_GENERIC = (
    "To start any assignment:\n"
    "1. Read requirements carefully\n"
    "2. Break it into smaller tasks\n"
    "3. Plan before coding/writing\n"
    "4. Test frequently\n\n"
    "What specific assignment are you working on?"
)


def _chat(client, headers, message: str, **extra):
    return client.post(CHAT_URL, json={"message": message, **extra}, headers=headers)


class TestNoApiKey:

    def test_every_chat_answered_from_rules(self, make_client, student_headers) -> None:
        from assistant_gateway.core.config import Settings

        client, upstream, app = make_client(settings=Settings(google_api_key=""))

        data = _chat(client, student_headers, "hello").json()

        assert data["success"] is True
        assert data["mode"] == "fallback_no_key"
        assert upstream.call_count == 0
        assert app.state.breaker.failure_count == 0


class TestUpstreamOutage:

    def test_503_exhausts_retries_once(self, make_client, student_headers) -> None:
        client, upstream, app = make_client((503, {"error": {"code": 503}}))

        data = _chat(client, student_headers, "Can you help me start?").json()

        assert upstream.call_count == 4
        assert data["mode"] == "fallback_error"
        assert data["response"] == HOW_TO_START_GENERIC
        assert data["metadata"]["attempts"] == 4
        assert app.state.breaker.failure_count == 1

    def test_three_outages_open_the_circuit(self, make_client, student_headers) -> None:
        client, upstream, app = make_client((503, {}))

        for _ in range(3):
            _chat(client, student_headers, "hi")
        calls = upstream.call_count
        data = _chat(client, student_headers, "hi").json()

        assert calls == 12
        assert data["mode"] == "fallback_circuit_open"
        assert upstream.call_count == calls

    def test_secondary_model_rescues(
        self, make_client, student_headers, test_settings, gemini_response
    ) -> None:
        settings = test_settings.model_copy(update={"fallback_model": "gemini-2.0-flash"})
        client, upstream, app = make_client(
            *([(503, {})] * 4),
            (200, gemini_response("From the secondary model")),
            settings=settings,
        )

        data = _chat(client, student_headers, "hi").json()

        assert data["mode"] == "generative"
        assert data["response"] == "From the secondary model"
        assert data["metadata"]["usedFallback"] is True
        assert data["metadata"]["attempts"] == 5
        assert "gemini-2.0-flash" in upstream.requests[-1].url.path
        assert app.state.breaker.failure_count == 0

    def test_secondary_auth_failure_retries_with_query_key(
        self, make_client, student_headers, test_settings, gemini_response
    ) -> None:
        settings = test_settings.model_copy(update={"fallback_model": "gemini-2.0-flash"})
        client, upstream, _ = make_client(
            *([(503, {})] * 4),
            (401, {"error": {"status": "UNAUTHENTICATED"}}),
            (200, gemini_response("Query key worked")),
            settings=settings,
        )

        data = _chat(client, student_headers, "hi").json()

        assert data["response"] == "Query key worked"
        assert upstream.call_count == 6
        last = upstream.requests[-1]
        assert last.url.params["key"] == "AIzaSyTESTKEY0123456789"
        assert "x-goog-api-key" not in last.headers


class TestCircuitOpen:

    def test_open_circuit_makes_no_upstream_calls(
        self, make_client, student_headers, fake_clock
    ) -> None:
        client, upstream, app = make_client()
        for _ in range(3):
            app.state.breaker.record_failure()
        fake_clock.advance(15.0)

        data = _chat(client, student_headers, "hi").json()

        assert data["mode"] == "fallback_circuit_open"
        assert "~45s" in data["response"]
        assert upstream.call_count == 0

    def test_probe_after_cooldown_closes(
        self, make_client, student_headers, fake_clock, teacher_headers
    ) -> None:
        client, upstream, app = make_client()
        for _ in range(3):
            app.state.breaker.record_failure()
        fake_clock.advance(61.0)

        data = _chat(client, student_headers, "hi").json()
        status = client.get("/api/v1/chatbot/status", headers=teacher_headers).json()

        assert data["mode"] == "generative"
        assert upstream.call_count == 1
        assert status["circuit"] == {"state": "CLOSED", "failures": 0, "cooldownRemaining": 0}


class TestFallbackContent:

    def test_how_to_start_verbatim(self, make_client, student_headers) -> None:
        from assistant_gateway.core.config import Settings

        client, _, _ = make_client(settings=Settings(google_api_key=""))

        data = _chat(client, student_headers, "Can you help me start?").json()

        assert data["response"] == HOW_TO_START_GENERIC

    def test_no_text_reply_uses_rules(self, make_client, student_headers) -> None:
        client, upstream, app = make_client((200, {"candidates": [{"finishReason": "SAFETY"}]}))

        response = _chat(client, student_headers, "Explain the requirements", assignmentId="bst-1")
        data = response.json()

        assert data["mode"] == "fallback_no_text"
        assert "**Binary Search Trees** Requirements" in data["response"]
        assert app.state.breaker.failure_count == 0
