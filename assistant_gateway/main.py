"""
Study Assistant Gateway - Main Application Entry Point

create_app() builds the components once (generative client, circuit
breaker, chat gateway, rate limiter, assignment store), keeps them on
app.state for the dependency functions in api/deps.py, and wires routes,
middleware, exception handlers and the /metrics endpoint.

Run with:
    uvicorn assistant_gateway.main:app --port 5000
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Optional

import httpx
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from prometheus_client import make_asgi_app

from assistant_gateway import __version__
from assistant_gateway.api.errors import register_exception_handlers
from assistant_gateway.api.middleware.logging import RequestLoggingMiddleware
from assistant_gateway.api.routes.chatbot import router as chatbot_router
from assistant_gateway.api.routes.health import router as health_router
from assistant_gateway.clients.gemini import GenerativeClient
from assistant_gateway.clients.http import create_http_client
from assistant_gateway.core.config import Settings, get_settings
from assistant_gateway.observability.logging import configure_logging, get_logger
from assistant_gateway.resilience.circuit_breaker import CircuitBreaker
from assistant_gateway.services.chat import ChatGateway
from assistant_gateway.services.rate_limit import FixedWindowRateLimiter, RateLimiter
from assistant_gateway.stores.assignments import AssignmentStore, InMemoryAssignmentStore

# Application metadata
APP_NAME = "Study Assistant Gateway"
APP_DESCRIPTION = "Resilient generative-AI chat gateway for the assignment portal"

logger = get_logger(__name__)


# =============================================================================
# Lifespan Context Manager
# =============================================================================


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Startup / shutdown.

    Components already exist when the app starts; shutdown closes the
    pooled HTTP client.
    """
    settings: Settings = app.state.settings
    logger.info(
        "service_starting",
        service=settings.service_name,
        version=__version__,
        environment=settings.environment,
        api_configured=settings.api_configured,
        model=settings.generative_model,
        fallback_model=settings.fallback_model,
    )
    app.state.initialized = True

    yield

    logger.info("service_stopping", service=settings.service_name)
    await app.state.generative_client.aclose()
    app.state.initialized = False


# =============================================================================
# Component wiring
# =============================================================================


def build_assignment_store(settings: Settings) -> AssignmentStore:
    if settings.assignments_file:
        return InMemoryAssignmentStore.from_json_file(settings.assignments_file)
    return InMemoryAssignmentStore()


def create_app(
    settings: Optional[Settings] = None,
    http_client: Optional[httpx.AsyncClient] = None,
    breaker: Optional[CircuitBreaker] = None,
    rate_limiter: Optional[RateLimiter] = None,
    assignment_store: Optional[AssignmentStore] = None,
) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        settings: Settings to use (default: get_settings()).
        http_client: Pre-built httpx client for the generative API.
        breaker: Circuit breaker instance (built from settings when omitted).
        rate_limiter: Rate limiter instance (built from settings when omitted).
        assignment_store: Assignment store (seeded from assignments_file when omitted).
    """
    settings = settings or get_settings()
    configure_logging(level=settings.log_level)
    logging.getLogger("httpx").setLevel(logging.WARNING)

    client = GenerativeClient.from_settings(
        settings,
        http_client=http_client
        if http_client is not None
        else create_http_client(timeout_seconds=settings.request_timeout_seconds),
    )
    if breaker is None:
        breaker = CircuitBreaker(
            failure_threshold=settings.circuit_failure_threshold,
            cooldown_seconds=settings.circuit_cooldown_seconds,
            max_half_open_probes=settings.circuit_max_half_open_probes,
        )
    if rate_limiter is None:
        rate_limiter = FixedWindowRateLimiter.from_settings(settings)
    if assignment_store is None:
        assignment_store = build_assignment_store(settings)

    is_production = settings.environment == "production"
    app = FastAPI(
        title=APP_NAME,
        description=APP_DESCRIPTION,
        version=__version__,
        docs_url=None if is_production else "/docs",
        redoc_url=None if is_production else "/redoc",
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.generative_client = client
    app.state.breaker = breaker
    app.state.chat_gateway = ChatGateway.from_settings(settings, client, breaker)
    app.state.rate_limiter = rate_limiter
    app.state.assignment_store = assignment_store

    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.get_cors_origins(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)
    app.include_router(health_router)
    app.include_router(chatbot_router)
    app.mount("/metrics", make_asgi_app())

    @app.get("/", tags=["Info"])
    async def root() -> dict[str, Any]:
        """Root endpoint returning basic service information."""
        return {
            "service": APP_NAME,
            "version": __version__,
            "docs": "disabled" if is_production else "/docs",
        }

    return app


app = create_app()
