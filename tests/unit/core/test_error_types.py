"""
Tests for the gateway exception hierarchy.
"""

import pytest


class TestUpstreamErrors:

    def test_hierarchy(self) -> None:
        from assistant_gateway.core.exceptions import (
            AssistantGatewayException,
            MissingCredentialError,
            ModelUnavailableError,
            PermanentUpstreamError,
            TransientUpstreamError,
            UpstreamError,
        )

        for cls in (
            TransientUpstreamError,
            PermanentUpstreamError,
            MissingCredentialError,
            ModelUnavailableError,
        ):
            assert issubclass(cls, UpstreamError)
        assert issubclass(UpstreamError, AssistantGatewayException)

    def test_error_codes(self) -> None:
        from assistant_gateway.core.exceptions import (
            ErrorCode,
            MissingCredentialError,
            ModelUnavailableError,
            PermanentUpstreamError,
            TransientUpstreamError,
        )

        assert TransientUpstreamError("x").error_code == ErrorCode.UPSTREAM_TRANSIENT
        assert PermanentUpstreamError("x").error_code == ErrorCode.UPSTREAM_PERMANENT
        assert MissingCredentialError().error_code == ErrorCode.MISSING_CREDENTIAL
        assert ModelUnavailableError().error_code == ErrorCode.MODEL_UNAVAILABLE

    def test_upstream_attributes(self) -> None:
        from assistant_gateway.core.exceptions import TransientUpstreamError

        error = TransientUpstreamError(
            "Generative API error 503",
            model="gemini-2.5-flash",
            status_code=503,
            response_body={"error": {"code": 503}},
        )

        assert str(error) == "Generative API error 503"
        assert error.model == "gemini-2.5-flash"
        assert error.status_code == 503
        assert error.response_body == {"error": {"code": 503}}
        assert error.attempts == 0
        assert error.used_secondary is False

    def test_attempts_from_kwargs(self) -> None:
        from assistant_gateway.core.exceptions import ModelUnavailableError

        error = ModelUnavailableError(attempts=5, used_secondary=True)

        assert error.attempts == 5
        assert error.used_secondary is True

    @pytest.mark.parametrize(
        "status,expected", [(401, True), (403, True), (400, False), (404, False)]
    )
    def test_is_authorization_error(self, status: int, expected: bool) -> None:
        from assistant_gateway.core.exceptions import PermanentUpstreamError

        assert PermanentUpstreamError("x", status_code=status).is_authorization_error is expected


class TestApiErrors:

    def test_rate_limit_error(self) -> None:
        from assistant_gateway.core.exceptions import ErrorCode, RateLimitError

        error = RateLimitError("Too many requests", retry_after=42, limit=10)

        assert error.retry_after == 42
        assert error.limit == 10
        assert error.error_code == ErrorCode.RATE_LIMIT_ERROR

    def test_validation_error_fields(self) -> None:
        from assistant_gateway.core.exceptions import GatewayValidationError

        error = GatewayValidationError("Message is required", field="message", value="")

        assert error.field == "message"
        assert error.value == ""

    def test_authentication_default_message(self) -> None:
        from assistant_gateway.core.exceptions import AuthenticationError

        assert AuthenticationError().message == "Not authorized, no identity"

    def test_extra_kwargs_become_attributes(self) -> None:
        from assistant_gateway.core.exceptions import AssistantGatewayException

        error = AssistantGatewayException("boom", request_id="req-1")

        assert error.request_id == "req-1"
