"""Remote rewriting service hooks.

The orchestrator talks to the large-language-model provider through the
small :class:`RewriteService` contract below.  Until a provider is installed
with ``configure_rewrite_service`` (normally during application start-up) the
unconfigured fallback rejects every job with a configuration error.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from rewriter.core.errors import ConfigurationError


@dataclass(slots=True)
class RewriteResponse:
    """Container returned by :class:`RewriteService` implementations."""

    text: str | None
    model: str | None = None
    stop_reason: str | None = None


class RewriteService(Protocol):
    """Contract for rewriting-service integrations."""

    def check_configured(self) -> None:
        """Raise ``ConfigurationError`` when credentials are missing or unusable."""

    async def invoke(self, system_instructions: str, user_content: str, model: str) -> RewriteResponse:
        """Send one document and return the rewritten text, raising ``ServiceError`` on failure."""


class UnconfiguredRewriteService:
    """Fallback used when no provider credentials are available."""

    def check_configured(self) -> None:
        raise ConfigurationError(
            "Anthropic API key is not configured. Please set ANTHROPIC_API_KEY in the environment."
        )

    async def invoke(self, system_instructions: str, user_content: str, model: str) -> RewriteResponse:
        self.check_configured()
        return RewriteResponse(text=None)  # pragma: no cover - check_configured always raises


_service: RewriteService = UnconfiguredRewriteService()


def configure_rewrite_service(service: RewriteService | None) -> None:
    """Install the service used by rewrite jobs; ``None`` restores the fallback."""

    global _service
    _service = service if service is not None else UnconfiguredRewriteService()


def get_rewrite_service() -> RewriteService:
    return _service
