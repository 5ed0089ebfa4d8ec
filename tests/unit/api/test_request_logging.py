"""
Tests for RequestLoggingMiddleware and header redaction.
"""

import logging

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from assistant_gateway.api.middleware.logging import (
    REQUEST_ID_HEADER,
    RequestLoggingMiddleware,
    redact_sensitive_headers,
)
from assistant_gateway.observability.logging import get_correlation_id


@pytest.fixture
def client() -> TestClient:
    app = FastAPI()
    app.add_middleware(RequestLoggingMiddleware)

    @app.get("/echo")
    async def echo() -> dict:
        return {"correlation_id": get_correlation_id()}

    @app.get("/missing")
    async def missing() -> dict:
        from fastapi import HTTPException

        raise HTTPException(status_code=404)

    return TestClient(app)


class TestRedaction:

    @pytest.mark.parametrize(
        "header",
        ["Authorization", "x-goog-api-key", "X-API-Key", "Cookie", "x-auth-token"],
    )
    def test_sensitive_headers_redacted(self, header: str) -> None:
        assert redact_sensitive_headers({header: "secret"}) == {header: "[REDACTED]"}

    def test_other_headers_kept(self) -> None:
        headers = {"Content-Type": "application/json", "X-User-Id": "u1"}

        assert redact_sensitive_headers(headers) == headers


class TestCorrelationId:

    def test_request_id_propagated(self, client: TestClient) -> None:
        response = client.get("/echo", headers={REQUEST_ID_HEADER: "req-123"})

        assert response.json() == {"correlation_id": "req-123"}
        assert response.headers[REQUEST_ID_HEADER] == "req-123"

    def test_request_id_generated(self, client: TestClient) -> None:
        response = client.get("/echo")

        generated = response.headers[REQUEST_ID_HEADER]
        assert len(generated) == 36
        assert response.json() == {"correlation_id": generated}

    def test_context_cleared_after_request(self, client: TestClient) -> None:
        client.get("/echo", headers={REQUEST_ID_HEADER: "req-456"})

        assert get_correlation_id() is None


class TestRequestLogLines:

    def test_completion_logged_at_info(self, client: TestClient, caplog) -> None:
        with caplog.at_level(logging.INFO, logger="assistant_gateway.api.middleware.logging"):
            client.get("/echo")

        records = [r for r in caplog.records if "/echo" in r.getMessage()]
        assert records
        assert records[-1].levelno == logging.INFO
        assert "GET /echo 200" in records[-1].getMessage()
        assert "duration=" in records[-1].getMessage()

    def test_client_errors_logged_at_warning(self, client: TestClient, caplog) -> None:
        with caplog.at_level(logging.INFO, logger="assistant_gateway.api.middleware.logging"):
            client.get("/missing")

        records = [r for r in caplog.records if "/missing 404" in r.getMessage()]
        assert records[-1].levelno == logging.WARNING

    def test_debug_line_redacts_key(self, client: TestClient, caplog) -> None:
        with caplog.at_level(logging.DEBUG, logger="assistant_gateway.api.middleware.logging"):
            client.get("/echo", headers={"x-goog-api-key": "AIzaSySECRET"})

        text = "\n".join(r.getMessage() for r in caplog.records)
        assert "AIzaSySECRET" not in text
        assert "[REDACTED]" in text
