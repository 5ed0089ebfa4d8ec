"""
Custom exceptions for the Study Assistant Gateway.

All exceptions inherit from AssistantGatewayException and include error codes
for consistent error handling and API responses.

Upstream errors are raised only by the generative client and the retry
controller; the chat gateway converts every one of them into a successful
fallback envelope. The API layer maps the remaining exceptions to JSON
error responses (see assistant_gateway.api.errors).
"""

from enum import Enum
from typing import Any, Optional


# =============================================================================
# Error Codes
# =============================================================================


class ErrorCode(str, Enum):
    """
    Machine-readable error codes shared by logging and API responses.
    """

    GATEWAY_ERROR = "GATEWAY_ERROR"
    UPSTREAM_TRANSIENT = "UPSTREAM_TRANSIENT"
    UPSTREAM_PERMANENT = "UPSTREAM_PERMANENT"
    MISSING_CREDENTIAL = "MISSING_CREDENTIAL"
    MODEL_UNAVAILABLE = "MODEL_UNAVAILABLE"
    RATE_LIMIT_ERROR = "RATE_LIMIT_ERROR"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    AUTHENTICATION_ERROR = "AUTHENTICATION_ERROR"
    AUTHORIZATION_ERROR = "AUTHORIZATION_ERROR"


# =============================================================================
# Base Exception
# =============================================================================


class AssistantGatewayException(Exception):
    """
    Base exception for all gateway errors.

    Attributes:
        message: Human-readable error message.
        error_code: Machine-readable error code from ErrorCode enum.
    """

    def __init__(
        self,
        message: str,
        error_code: str = ErrorCode.GATEWAY_ERROR,
        **kwargs: Any,
    ) -> None:
        """
        Initialize the exception.

        Args:
            message: Human-readable error message.
            error_code: Machine-readable error code.
            **kwargs: Additional attributes to set on the exception.
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code

        for key, value in kwargs.items():
            setattr(self, key, value)


# =============================================================================
# Upstream (generative provider) errors
# =============================================================================


class UpstreamError(AssistantGatewayException):
    """
    Exception for generative provider failures.

    The retry controller tags every error it lets through with the number
    of upstream invocations made so far and whether the secondary model
    was involved.

    Attributes:
        model: Model identifier the request was addressed to.
        status_code: HTTP status code (None for network-level failures).
        response_body: Parsed provider response body, when one was received.
        attempts: Upstream invocations made before this error surfaced.
        used_secondary: Whether the secondary model had been attempted.
    """

    def __init__(
        self,
        message: str,
        model: Optional[str] = None,
        status_code: Optional[int] = None,
        response_body: Any = None,
        error_code: str = ErrorCode.GATEWAY_ERROR,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, error_code, **kwargs)
        self.model = model
        self.status_code = status_code
        self.response_body = response_body
        self.attempts: int = kwargs.get("attempts", 0)
        self.used_secondary: bool = kwargs.get("used_secondary", False)


class TransientUpstreamError(UpstreamError):
    """
    Retryable failure: network error, timeout, or 429/502/503/504.
    """

    def __init__(self, message: str, **kwargs: Any) -> None:
        kwargs.setdefault("error_code", ErrorCode.UPSTREAM_TRANSIENT)
        super().__init__(message, **kwargs)


class PermanentUpstreamError(UpstreamError):
    """
    Non-retryable provider failure (any other non-2xx status).
    """

    def __init__(self, message: str, **kwargs: Any) -> None:
        kwargs.setdefault("error_code", ErrorCode.UPSTREAM_PERMANENT)
        super().__init__(message, **kwargs)

    @property
    def is_authorization_error(self) -> bool:
        """True for 401/403 responses."""
        return self.status_code in (401, 403)


class MissingCredentialError(UpstreamError):
    """
    No API credential configured. Never retried.
    """

    def __init__(self, message: str = "Missing generative API key", **kwargs: Any) -> None:
        kwargs.setdefault("error_code", ErrorCode.MISSING_CREDENTIAL)
        super().__init__(message, **kwargs)


class ModelUnavailableError(UpstreamError):
    """
    Terminal failure: the primary retries and any secondary attempt are exhausted.
    """

    def __init__(self, message: str = "Model unavailable after retries", **kwargs: Any) -> None:
        kwargs.setdefault("error_code", ErrorCode.MODEL_UNAVAILABLE)
        super().__init__(message, **kwargs)


# =============================================================================
# RateLimitError
# =============================================================================


class RateLimitError(AssistantGatewayException):
    """
    Raised when an identity exceeds its chat request budget.

    Attributes:
        retry_after: Seconds until the window resets.
        limit: The rate limit that was exceeded.
    """

    def __init__(
        self,
        message: str,
        retry_after: Optional[int] = None,
        limit: Optional[int] = None,
        error_code: str = ErrorCode.RATE_LIMIT_ERROR,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, error_code, **kwargs)
        self.retry_after = retry_after
        self.limit = limit


# =============================================================================
# Request validation / auth
# =============================================================================


class GatewayValidationError(AssistantGatewayException):
    """
    Exception for request validation errors beyond Pydantic's built-in checks.

    Named GatewayValidationError to avoid conflict with pydantic.ValidationError.

    Attributes:
        field: Name of the field that failed validation.
        value: The invalid value (if safe to include).
    """

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        value: Any = None,
        error_code: str = ErrorCode.VALIDATION_ERROR,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, error_code, **kwargs)
        self.field = field
        self.value = value


class AuthenticationError(AssistantGatewayException):
    """No identity was supplied by the authentication layer."""

    def __init__(self, message: str = "Not authorized, no identity", **kwargs: Any) -> None:
        super().__init__(message, ErrorCode.AUTHENTICATION_ERROR, **kwargs)


class AuthorizationError(AssistantGatewayException):
    """The identity's role does not permit the operation."""

    def __init__(self, message: str, role: Optional[str] = None, **kwargs: Any) -> None:
        super().__init__(message, ErrorCode.AUTHORIZATION_ERROR, **kwargs)
        self.role = role
