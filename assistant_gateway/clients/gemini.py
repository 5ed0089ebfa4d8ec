"""
Generative API Client - Google Generative Language (Gemini) adapter

Issues a single generateContent request per call and classifies the outcome.
Retrying is the retry controller's job; this client never retries.

Outcome classification:
    2xx                              -> parsed JSON body
    request error (network, timeout,
      undecodable body)              -> TransientUpstreamError
    429, 502, 503, 504               -> TransientUpstreamError
    any other non-2xx                -> PermanentUpstreamError
    no API key configured            -> MissingCredentialError (no network call)

The provider has returned the text in several shapes over time. Extraction
walks an ordered list of strategies and returns the first non-empty string.
"""

import json
import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional

import httpx

from assistant_gateway.clients.http import create_http_client
from assistant_gateway.core.config import DEFAULT_API_BASE, Settings
from assistant_gateway.core.exceptions import (
    MissingCredentialError,
    PermanentUpstreamError,
    TransientUpstreamError,
)
from assistant_gateway.observability.logging import redact_key
from assistant_gateway.observability.metrics import record_upstream_attempt

logger = logging.getLogger(__name__)

TRANSIENT_STATUS_CODES = frozenset({429, 502, 503, 504})

API_KEY_HEADER = "x-goog-api-key"
API_KEY_QUERY_PARAM = "key"


# =============================================================================
# Generation parameters
# =============================================================================


@dataclass(frozen=True)
class GenerationConfig:
    """Sampling parameters sent with every request."""

    temperature: float = 0.7
    top_p: float = 0.95
    max_output_tokens: int = 1024

    def to_payload(self) -> dict[str, Any]:
        return {
            "temperature": self.temperature,
            "topP": self.top_p,
            "maxOutputTokens": self.max_output_tokens,
        }


# =============================================================================
# Text extraction strategies
# =============================================================================

TextExtractor = Callable[[dict[str, Any]], Optional[str]]


def _clean(value: Any) -> Optional[str]:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def _first_candidate(response: dict[str, Any]) -> Optional[dict[str, Any]]:
    candidates = response.get("candidates")
    if isinstance(candidates, list) and candidates and isinstance(candidates[0], dict):
        return candidates[0]
    return None


def _from_content_entries(response: dict[str, Any]) -> Optional[str]:
    """candidates[0].content as a list of entries with parts or text."""
    candidate = _first_candidate(response)
    if candidate is None or not isinstance(candidate.get("content"), list):
        return None
    for entry in candidate["content"]:
        if not isinstance(entry, dict):
            continue
        parts = entry.get("parts")
        if isinstance(parts, list):
            for part in parts:
                text = _clean(part.get("text")) if isinstance(part, dict) else None
                if text:
                    return text
        text = _clean(entry.get("text"))
        if text:
            return text
    return None


def _from_content_parts(response: dict[str, Any]) -> Optional[str]:
    """candidates[0].content.parts[].text, joined with newlines."""
    candidate = _first_candidate(response)
    if candidate is None:
        return None
    content = candidate.get("content")
    if not isinstance(content, dict) or not isinstance(content.get("parts"), list):
        return None
    texts = [
        part.get("text") or ""
        for part in content["parts"]
        if isinstance(part, dict) and isinstance(part.get("text") or "", str)
    ]
    return _clean("\n".join(texts))


def _from_candidate_output(response: dict[str, Any]) -> Optional[str]:
    candidate = _first_candidate(response)
    return _clean(candidate.get("output")) if candidate else None


def _from_candidate_message(response: dict[str, Any]) -> Optional[str]:
    candidate = _first_candidate(response)
    return _clean(candidate.get("message")) if candidate else None


def _from_top_level_output(response: dict[str, Any]) -> Optional[str]:
    return _clean(response.get("output"))


def _from_top_level_text(response: dict[str, Any]) -> Optional[str]:
    return _clean(response.get("text"))


def _from_candidate_output_any(response: dict[str, Any]) -> Optional[str]:
    """candidates[0].output of any truthy type, as its string form."""
    candidate = _first_candidate(response)
    output = candidate.get("output") if candidate else None
    if not output:
        return None
    return _clean(output if isinstance(output, str) else str(output))


TEXT_EXTRACTORS: tuple[TextExtractor, ...] = (
    _from_content_entries,
    _from_content_parts,
    _from_candidate_output,
    _from_candidate_message,
    _from_top_level_output,
    _from_top_level_text,
    _from_candidate_output_any,
)


def extract_text(response: Any) -> Optional[str]:
    """
    Return the first non-empty text any extraction strategy finds.

    Returns:
        The stripped text, or None when the response holds no usable text.
    """
    if not isinstance(response, dict):
        return None
    for extractor in TEXT_EXTRACTORS:
        text = extractor(response)
        if text:
            return text
    return None


# =============================================================================
# Client
# =============================================================================


class GenerativeClient:
    """
    Single-shot client for the generateContent endpoint.

    Args:
        api_key: Generative Language API key ("" or None means unconfigured).
        api_base: Base URL of the API.
        generation_config: Sampling parameters.
        timeout_seconds: Per-call timeout.
        http_client: Pre-built httpx.AsyncClient (created when omitted).

    Example:
        >>> async with GenerativeClient(api_key="AIza...") as client:
        ...     body = await client.generate("Hello", "gemini-2.5-flash")
        ...     print(extract_text(body))
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        api_base: str = DEFAULT_API_BASE,
        generation_config: Optional[GenerationConfig] = None,
        timeout_seconds: float = 30.0,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self._api_key = (api_key or "").strip()
        self._api_base = api_base.rstrip("/")
        self._generation_config = generation_config or GenerationConfig()
        self._timeout_seconds = timeout_seconds
        self._client = http_client or create_http_client(timeout_seconds=timeout_seconds)

        if not self._api_key:
            logger.warning("No generative API key configured; fallback-only mode")

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> "GenerativeClient":
        return cls(
            api_key=settings.api_key,
            api_base=settings.api_base,
            generation_config=GenerationConfig(
                temperature=settings.temperature,
                top_p=settings.top_p,
                max_output_tokens=settings.max_output_tokens,
            ),
            timeout_seconds=settings.request_timeout_seconds,
            http_client=http_client,
        )

    async def __aenter__(self) -> "GenerativeClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    @property
    def has_credential(self) -> bool:
        return bool(self._api_key)

    # =========================================================================
    # Request building
    # =========================================================================

    def build_payload(self, prompt: str) -> dict[str, Any]:
        """Single-turn generateContent body."""
        return {
            "contents": [{"parts": [{"text": prompt}]}],
            "generationConfig": self._generation_config.to_payload(),
        }

    def build_url(self, model: str) -> str:
        model_path = model if model.startswith("models/") else f"models/{model}"
        return f"{self._api_base}/{model_path}:generateContent"

    # =========================================================================
    # generate()
    # =========================================================================

    async def generate(
        self,
        prompt: str,
        model: str,
        use_key_query_param: bool = False,
    ) -> dict[str, Any]:
        """
        Issue one generation request.

        Args:
            prompt: Full prompt text.
            model: Model identifier, with or without the models/ prefix.
            use_key_query_param: Send the key as ?key= instead of the header.

        Returns:
            Parsed provider response body.

        Raises:
            MissingCredentialError: No API key configured.
            TransientUpstreamError: Network failure, timeout, 429/502/503/504.
            PermanentUpstreamError: Any other non-2xx status.
        """
        if not self._api_key:
            record_upstream_attempt(model, "missing_credential")
            raise MissingCredentialError(model=model)

        url = self.build_url(model)
        headers = {"Content-Type": "application/json"}
        params: dict[str, str] = {}
        if use_key_query_param:
            params[API_KEY_QUERY_PARAM] = self._api_key
        else:
            headers[API_KEY_HEADER] = self._api_key

        logger.info(
            "generateContent -> %s (key=%s, use_key_query_param=%s)",
            model,
            redact_key(self._api_key),
            use_key_query_param,
        )

        try:
            response = await self._client.post(
                url,
                json=self.build_payload(prompt),
                headers=headers,
                params=params or None,
                timeout=self._timeout_seconds,
            )
        except httpx.TimeoutException as e:
            record_upstream_attempt(model, "transient")
            raise TransientUpstreamError(
                f"Generative API timed out after {self._timeout_seconds:g}s",
                model=model,
            ) from e
        except httpx.RequestError as e:
            record_upstream_attempt(model, "transient")
            raise TransientUpstreamError(
                f"Generative API request failed: {type(e).__name__}",
                model=model,
            ) from e

        body = self._parse_body(response)

        if response.is_success:
            record_upstream_attempt(model, "success")
            return body

        status = response.status_code
        message = f"Generative API error {status}"
        if status in TRANSIENT_STATUS_CODES:
            record_upstream_attempt(model, "transient")
            raise TransientUpstreamError(
                message, model=model, status_code=status, response_body=body
            )
        record_upstream_attempt(model, "permanent")
        raise PermanentUpstreamError(
            message, model=model, status_code=status, response_body=body
        )

    @staticmethod
    def _parse_body(response: httpx.Response) -> dict[str, Any]:
        """JSON body, or {"rawText": ...} when the body is not JSON."""
        text = response.text
        if not text:
            return {}
        try:
            parsed = json.loads(text)
        except json.JSONDecodeError:
            return {"rawText": text}
        return parsed if isinstance(parsed, dict) else {"rawText": text}
