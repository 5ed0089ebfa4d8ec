"""
Core configuration module for the Study Assistant Gateway.

This module provides centralized configuration management using Pydantic Settings.
All configuration is loaded from environment variables with the
ASSISTANT_GATEWAY_ prefix. The provider settings also accept the bare names
used by earlier deployments (GOOGLE_API_KEY, GENERATIVE_MODEL, MAX_RETRIES, ...).

With no configuration at all the gateway runs in fallback-only mode: every
chat is answered by the rule-based responder.
"""

from functools import lru_cache
from typing import Literal, Optional

from pydantic import AliasChoices, Field, SecretStr, field_validator
from pydantic_settings import BaseSettings

ENV_PREFIX = "ASSISTANT_GATEWAY_"

DEFAULT_API_BASE = "https://generativelanguage.googleapis.com/v1beta"
DEFAULT_GENERATIVE_MODEL = "gemini-2.5-flash"


def _aliases(name: str, *legacy: str) -> AliasChoices:
    """Accept the prefixed variable first, then any legacy names."""
    return AliasChoices(name, f"{ENV_PREFIX}{name.upper()}", *legacy)


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Example: ASSISTANT_GATEWAY_RATE_LIMIT_MAX_REQUESTS=20
    """

    # =========================================================================
    # Service Configuration
    # =========================================================================
    service_name: str = Field(
        default="study-assistant-gateway",
        description="Name of the service for logging and identification",
    )
    port: int = Field(default=5000, ge=1, le=65535)
    environment: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Deployment environment",
    )
    log_level: str = Field(default="INFO", description="Root log level")
    cors_origins: str = Field(
        default="http://localhost:5173",
        description="Comma-separated list of allowed CORS origins",
    )

    # =========================================================================
    # Generative Provider
    # SecretStr masks the key in logs/repr, use .get_secret_value() to access
    # =========================================================================
    google_api_key: SecretStr = Field(
        default=SecretStr(""),
        validation_alias=_aliases("google_api_key", "GOOGLE_API_KEY", "GEMINI_API_KEY"),
        description="Generative Language API key; empty means fallback-only mode",
    )
    generative_model: str = Field(
        default=DEFAULT_GENERATIVE_MODEL,
        validation_alias=_aliases("generative_model", "GENERATIVE_MODEL"),
    )
    fallback_model: Optional[str] = Field(
        default=None,
        validation_alias=_aliases("fallback_model", "FALLBACK_MODEL"),
        description="Secondary model tried once after the primary is exhausted",
    )
    api_base: str = Field(
        default=DEFAULT_API_BASE,
        validation_alias=_aliases("api_base", "GENERATIVE_API_BASE"),
    )
    request_timeout_seconds: float = Field(default=30.0, gt=0, le=300.0)

    # Generation parameters sent with every request
    temperature: float = Field(default=0.7, ge=0.0, le=2.0)
    top_p: float = Field(default=0.95, ge=0.0, le=1.0)
    max_output_tokens: int = Field(default=1024, gt=0)

    # =========================================================================
    # Retry / Backoff
    # =========================================================================
    max_retries: int = Field(
        default=3,
        ge=0,
        le=10,
        validation_alias=_aliases("max_retries", "MAX_RETRIES"),
    )
    base_delay_ms: int = Field(
        default=500,
        ge=0,
        validation_alias=_aliases("base_delay_ms", "BASE_DELAY_MS"),
    )
    max_backoff_ms: int = Field(default=10_000, ge=0)

    # =========================================================================
    # Circuit Breaker
    # =========================================================================
    circuit_failure_threshold: int = Field(default=3, ge=1, le=100)
    circuit_cooldown_seconds: float = Field(default=60.0, gt=0, le=3600.0)
    circuit_max_half_open_probes: int = Field(default=1, ge=1)

    # =========================================================================
    # Rate Limiting
    # =========================================================================
    rate_limit_max_requests: int = Field(default=10, ge=1)
    rate_limit_window_seconds: float = Field(default=60.0, gt=0)
    rate_limit_max_entries: int = Field(
        default=10_000,
        ge=1,
        description="Upper bound on identities tracked by the rate limiter",
    )

    # =========================================================================
    # Prompt Assembly / Assignment Store
    # =========================================================================
    history_turns: int = Field(default=6, ge=0, le=50)
    assignments_file: Optional[str] = Field(
        default=None,
        description="Optional JSON file used to seed the in-memory assignment store",
    )

    model_config = {
        "env_prefix": ENV_PREFIX,
        "case_sensitive": False,
        "extra": "ignore",
        "populate_by_name": True,
    }

    @field_validator("api_base")
    @classmethod
    def validate_api_base(cls, v: str) -> str:
        """Validate API base URL format."""
        if not v.startswith(("http://", "https://")):
            raise ValueError("API base must start with http:// or https://")
        return v.rstrip("/")

    @field_validator("fallback_model")
    @classmethod
    def blank_fallback_is_none(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip():
            return None
        return v

    @property
    def api_key(self) -> str:
        """Plain API key value ("" when unconfigured)."""
        return self.google_api_key.get_secret_value().strip()

    @property
    def api_configured(self) -> bool:
        return bool(self.api_key)

    def get_cors_origins(self) -> list[str]:
        """
        Development allows all origins; other environments use cors_origins.
        """
        if self.environment == "development":
            return ["*"]
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]


@lru_cache
def get_settings() -> Settings:
    """
    Get the application settings singleton.

    Uses functools.lru_cache to ensure only one Settings instance is created.
    """
    return Settings()
