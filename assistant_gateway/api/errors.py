"""
Exception handlers

Translate gateway exceptions raised in routes and dependencies into the
{success: false, message, ...} JSON envelope the web client expects.

    GatewayValidationError -> 400
    AuthenticationError    -> 401
    AuthorizationError     -> 403
    RateLimitError         -> 429 (+ Retry-After header)
    any other gateway error -> 500
"""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from assistant_gateway.core.exceptions import (
    AssistantGatewayException,
    AuthenticationError,
    AuthorizationError,
    GatewayValidationError,
    RateLimitError,
)
from assistant_gateway.models.responses import ErrorResponse

logger = logging.getLogger(__name__)

_STATUS_BY_TYPE: tuple[tuple[type, int], ...] = (
    (GatewayValidationError, 400),
    (AuthenticationError, 401),
    (AuthorizationError, 403),
    (RateLimitError, 429),
)


def status_for(exc: AssistantGatewayException) -> int:
    for exc_type, status in _STATUS_BY_TYPE:
        if isinstance(exc, exc_type):
            return status
    return 500


def _error_response(exc: AssistantGatewayException) -> JSONResponse:
    status = status_for(exc)
    retry_after = getattr(exc, "retry_after", None)
    body = ErrorResponse(
        message=exc.message,
        error_code=getattr(exc.error_code, "value", exc.error_code),
        retry_after=retry_after,
    )
    headers = {"Retry-After": str(retry_after)} if retry_after is not None else None
    return JSONResponse(
        status_code=status,
        content=body.model_dump(by_alias=True, exclude_none=True),
        headers=headers,
    )


async def gateway_exception_handler(
    request: Request, exc: AssistantGatewayException
) -> JSONResponse:
    status = status_for(exc)
    if status >= 500:
        logger.error(
            "Unhandled gateway error on %s %s: %s",
            request.method,
            request.url.path,
            exc.message,
        )
    else:
        logger.info(
            "%s %s rejected with %d: %s",
            request.method,
            request.url.path,
            status,
            exc.message,
        )
    return _error_response(exc)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AssistantGatewayException, gateway_exception_handler)
