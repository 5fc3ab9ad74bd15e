"""Integration with the Anthropic Messages API."""
from __future__ import annotations

from typing import Any
from urllib.parse import urlparse

import httpx

from rewriter.core.errors import ConfigurationError, ErrorCategory, ServiceError
from rewriter.logging import get_logger

from .rewrite_service import RewriteResponse

logger = get_logger(__name__)

DEFAULT_MODEL = "claude-opus-4-5-20251101"
DEFAULT_MAX_TOKENS = 16384
PLACEHOLDER_KEY = "sk-ant-YOUR_API_KEY_HERE"

STATUS_CATEGORIES: dict[int, ErrorCategory] = {
    408: ErrorCategory.TIMEOUT,
    429: ErrorCategory.RATE_LIMITED,
    502: ErrorCategory.OVERLOADED,
    503: ErrorCategory.OVERLOADED,
    504: ErrorCategory.TIMEOUT,
    529: ErrorCategory.OVERLOADED,
}

ERROR_TYPE_CATEGORIES: dict[str, ErrorCategory] = {
    "overloaded_error": ErrorCategory.OVERLOADED,
    "rate_limit_error": ErrorCategory.RATE_LIMITED,
    "timeout_error": ErrorCategory.TIMEOUT,
}

# Fallback signatures for faults that arrive without a structured error type.
MESSAGE_SIGNATURES: tuple[tuple[str, ErrorCategory], ...] = (
    ("overloaded", ErrorCategory.OVERLOADED),
    ("unavailable", ErrorCategory.OVERLOADED),
    ("rate_limit", ErrorCategory.RATE_LIMITED),
    ("rate limit", ErrorCategory.RATE_LIMITED),
    ("too many requests", ErrorCategory.RATE_LIMITED),
    ("etimedout", ErrorCategory.TIMEOUT),
    ("timed out", ErrorCategory.TIMEOUT),
    ("timeout", ErrorCategory.TIMEOUT),
    ("econnreset", ErrorCategory.CONNECTION_RESET),
    ("connection reset", ErrorCategory.CONNECTION_RESET),
    ("socket hang up", ErrorCategory.CONNECTION_RESET),
)


def classify_message(message: str) -> ErrorCategory:
    lowered = message.lower()
    for signature, category in MESSAGE_SIGNATURES:
        if signature in lowered:
            return category
    return ErrorCategory.OTHER


class AnthropicRewriteService:
    """Rewrite service backed by ``POST /v1/messages``."""

    def __init__(
        self,
        api_key: str | None,
        *,
        api_base: str = "https://api.anthropic.com",
        api_version: str = "2023-06-01",
        max_tokens: int = DEFAULT_MAX_TOKENS,
        timeout: float = 300.0,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        parsed = urlparse(api_base)
        if not parsed.scheme or not parsed.netloc:
            raise ValueError("api_base must include scheme and host")

        self._api_key = api_key or ""
        self._api_version = api_version
        self._max_tokens = max_tokens
        self._request_url = f"{parsed.scheme}://{parsed.netloc}{parsed.path.rstrip('/')}/v1/messages"
        self._client = http_client or httpx.AsyncClient(timeout=timeout)
        self._owns_client = http_client is None

    # ------------------------------------------------------------------
    # helpers
    # ------------------------------------------------------------------
    def _headers(self) -> dict[str, str]:
        return {
            "x-api-key": self._api_key,
            "anthropic-version": self._api_version,
            "content-type": "application/json",
        }

    def _build_payload(self, system_instructions: str, user_content: str, model: str) -> dict[str, Any]:
        return {
            "model": model,
            "max_tokens": self._max_tokens,
            "system": system_instructions,
            "messages": [{"role": "user", "content": user_content}],
        }

    @staticmethod
    def _error_details(response: httpx.Response) -> tuple[str | None, str]:
        try:
            body = response.json()
        except ValueError:
            return None, response.text or response.reason_phrase
        error = body.get("error") if isinstance(body, dict) else None
        if not isinstance(error, dict):
            return None, response.text or response.reason_phrase
        return error.get("type"), str(error.get("message") or error.get("type") or response.reason_phrase)

    def _raise_for_response(self, response: httpx.Response) -> None:
        error_type, message = self._error_details(response)
        if response.status_code == 401 or error_type == "authentication_error":
            raise ServiceError(
                ErrorCategory.OTHER,
                "Invalid API key. Please check ANTHROPIC_API_KEY.",
            )

        category = ERROR_TYPE_CATEGORIES.get(error_type or "")
        if category is None:
            category = STATUS_CATEGORIES.get(response.status_code)
        if category is None:
            category = classify_message(message) if response.status_code >= 500 else ErrorCategory.OTHER
        raise ServiceError(category, f"Anthropic API error ({response.status_code}): {message}")

    @staticmethod
    def _extract_text(body: dict[str, Any]) -> str | None:
        blocks = body.get("content") or []
        parts = [
            block.get("text", "")
            for block in blocks
            if isinstance(block, dict) and block.get("type") == "text"
        ]
        if not parts:
            return None
        return "".join(parts)

    # ------------------------------------------------------------------
    # public API
    # ------------------------------------------------------------------
    def check_configured(self) -> None:
        key = self._api_key
        if not key or key == PLACEHOLDER_KEY or not key.startswith("sk-ant-"):
            raise ConfigurationError(
                "Anthropic API key is not configured. Please set ANTHROPIC_API_KEY in the environment."
            )

    async def invoke(self, system_instructions: str, user_content: str, model: str) -> RewriteResponse:
        payload = self._build_payload(system_instructions, user_content, model)
        try:
            response = await self._client.post(self._request_url, headers=self._headers(), json=payload)
        except httpx.TimeoutException as exc:
            raise ServiceError(ErrorCategory.TIMEOUT, f"Anthropic API request timed out: {exc}") from exc
        except httpx.TransportError as exc:
            raise ServiceError(ErrorCategory.CONNECTION_RESET, f"Anthropic API connection failed: {exc}") from exc
        except httpx.HTTPError as exc:
            raise ServiceError(ErrorCategory.OTHER, f"Anthropic API request failed: {exc}") from exc

        if response.status_code >= 400:
            self._raise_for_response(response)

        try:
            body = response.json()
        except ValueError as exc:
            raise ServiceError(ErrorCategory.OTHER, "Anthropic API returned a non-JSON response") from exc
        if not isinstance(body, dict):
            raise ServiceError(ErrorCategory.OTHER, "Anthropic API returned an unexpected response body")

        logger.debug("anthropic response id=%s usage=%s", body.get("id"), body.get("usage"))
        return RewriteResponse(
            text=self._extract_text(body),
            model=body.get("model"),
            stop_reason=body.get("stop_reason"),
        )

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()


__all__ = ["AnthropicRewriteService", "classify_message", "DEFAULT_MODEL", "DEFAULT_MAX_TOKENS"]
